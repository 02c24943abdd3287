"""
UPnP control-library seam.

This package holds the contract the device logic needs from a UPnP control
library, the miniupnpc implementation of it, and the error taxonomy.
"""

from .backend import ControlBackend, DeviceList
from .errors import describe_upnp_error
from .exceptions import (
    EnumerationError,
    IgdError,
    InvalidProtocolError,
    NoValidIGDError,
    QueryFailedError,
    RouterRejectedError,
)

__all__ = [
    "ControlBackend",
    "DeviceList",
    "EnumerationError",
    "IgdError",
    "InvalidProtocolError",
    "NoValidIGDError",
    "QueryFailedError",
    "RouterRejectedError",
    "describe_upnp_error",
]
