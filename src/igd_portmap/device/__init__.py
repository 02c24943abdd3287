"""
IGD device-state lifecycle: discovery, selection, the port-mapping cache,
mutations and the controller that ties them together.
"""

from .controller import IgdDeviceController
from .device_list import DeviceListHolder
from .discovery import DiscoveryWorker
from .events import EventBus, IgdEvent, IgdEventType
from .mapping_cache import MappingCache, read_port_mappings
from .mutator import MappingMutator
from .selector import select_valid_igd

__all__ = [
    "DeviceListHolder",
    "DiscoveryWorker",
    "EventBus",
    "IgdDeviceController",
    "IgdEvent",
    "IgdEventType",
    "MappingCache",
    "MappingMutator",
    "read_port_mappings",
    "select_valid_igd",
]
