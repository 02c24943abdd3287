"""igd-portmap - UPnP Internet Gateway Device control point.

Discovers the router's UPnP control service, mirrors its NAT port-mapping
table in memory, and adds or deletes mappings while keeping that mirror
consistent with the router.
"""

__version__ = "0.1.0"

from .config import Config
from .device import IgdDeviceController, IgdEventType
from .models import PortMapping, Protocol

__all__ = ["Config", "IgdDeviceController", "IgdEventType", "PortMapping", "Protocol"]
