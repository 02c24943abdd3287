"""
Notifications raised by the device controller.
"""
import asyncio
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import structlog

logger = structlog.get_logger(__name__)


class IgdEventType(str, Enum):
    SCAN_STARTED = "scan_started"
    SCAN_FINISHED = "scan_finished"
    DATA_REFRESHED = "data_refreshed"


class IgdEvent:
    def __init__(self, event_type: IgdEventType, payload: Optional[Dict[str, Any]] = None):
        self.event_type = event_type
        self.payload = payload or {}

    def __repr__(self):
        return f"<IgdEvent type='{self.event_type.value}' payload_keys={sorted(self.payload)}>"


EventCallback = Callable[[IgdEvent], None]


class EventBus:
    """
    Delivers events to subscriber callbacks, in subscription order, and
    optionally to an asyncio.Queue for consumers that prefer to pull.
    """

    def __init__(self, output_queue: Optional[asyncio.Queue] = None):
        self.output_queue = output_queue
        self._subscribers: Dict[IgdEventType, List[EventCallback]] = defaultdict(list)

    def subscribe(self, event_type: IgdEventType, callback: EventCallback) -> Callable[[], None]:
        """Registers ``callback`` for ``event_type`` and returns a function that unregisters it."""
        self._subscribers[event_type].append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers[event_type]:
                self._subscribers[event_type].remove(callback)

        return unsubscribe

    def emit(self, event_type: IgdEventType, **payload: Any) -> IgdEvent:
        event = IgdEvent(event_type, payload)
        logger.debug("Emitting event", event_type=event_type.value)
        for callback in list(self._subscribers[event_type]):
            try:
                callback(event)
            except Exception as e:
                # A failing subscriber must not break the controller sequence
                logger.exception("Event subscriber raised", event_type=event_type.value, error=str(e))
        if self.output_queue is not None:
            self.output_queue.put_nowait(event)
        return event
