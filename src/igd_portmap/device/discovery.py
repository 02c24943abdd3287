"""
DiscoveryWorker: runs SSDP discovery off the controller's sequence.
"""
import asyncio
from typing import Callable, Optional

import structlog

from ..config import DiscoveryConfig
from ..upnp.backend import ControlBackend
from .device_list import DeviceListHolder

logger = structlog.get_logger(__name__)


class DiscoveryWorker:
    """
    At most one discovery runs at a time. Discovery itself blocks, so it runs
    in a worker thread; the result is installed into the DeviceListHolder from
    that thread. ``on_finished`` is called on the event loop once the worker is
    done, whatever the outcome.
    """

    def __init__(
        self,
        backend: ControlBackend,
        device_lists: DeviceListHolder,
        discovery_config: DiscoveryConfig,
        on_finished: Callable[[], None],
    ):
        self.backend = backend
        self.device_lists = device_lists
        self.discovery_config = discovery_config
        self._on_finished = on_finished
        self._task: Optional[asyncio.Task] = None
        self.logger = logger.bind(component="DiscoveryWorker")

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Starts a discovery unless one is in flight. Returns True if a new one started."""
        if self.is_running:
            self.logger.debug("Discovery already in progress; start request ignored.")
            return False
        self._task = asyncio.get_running_loop().create_task(self._run())
        self._task.add_done_callback(self._task_done)
        self.logger.info("Discovery started.", timeout_ms=self.discovery_config.timeout_ms)
        return True

    async def _run(self) -> int:
        return await asyncio.to_thread(self._discover_and_install)

    def _discover_and_install(self) -> int:
        # Worker thread
        device_list = self.backend.discover(self.discovery_config)
        self.device_lists.replace(device_list)
        return device_list.count

    def _task_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            self.logger.info("Discovery task was cancelled.")
            return
        exc = task.exception()
        if exc is not None:
            self.logger.error("Discovery failed", error=str(exc), exc_info=exc)
        else:
            self.logger.info("Discovery finished.", device_count=task.result())
        self._on_finished()

    async def wait(self) -> None:
        """Waits for the in-flight discovery, if any. Discovery cannot be cancelled, only awaited."""
        if self._task is not None and not self._task.done():
            await asyncio.wait({self._task})
