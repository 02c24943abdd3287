"""
Lock-guarded ownership of the discovered device list.
"""
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog

from ..upnp.backend import ControlBackend, DeviceList

logger = structlog.get_logger(__name__)


class DeviceListHolder:
    """
    Owns at most one DeviceList. The discovery thread replaces it and the
    controller reads it; both go through the same mutex, held only for the
    swap or the read, so nobody sees a half-replaced list.
    """

    def __init__(self, backend: ControlBackend):
        self._backend = backend
        self._lock = threading.Lock()
        self._device_list: Optional[DeviceList] = None

    def replace(self, device_list: DeviceList) -> None:
        """Installs a new list, releasing the previous one first."""
        with self._lock:
            previous = self._device_list
            if previous is not None and previous is not device_list:
                self._backend.release_device_list(previous)
            self._device_list = device_list
        logger.debug("Device list installed", device_count=device_list.count)

    def release(self) -> None:
        with self._lock:
            if self._device_list is not None:
                self._backend.release_device_list(self._device_list)
                self._device_list = None

    @contextmanager
    def borrowed(self) -> Iterator[Optional[DeviceList]]:
        """Holds the lock while the caller reads the list. Do not do router I/O in here."""
        with self._lock:
            yield self._device_list

    @property
    def device_count(self) -> int:
        with self._lock:
            return self._device_list.count if self._device_list is not None else 0
