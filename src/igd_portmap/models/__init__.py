"""
Pydantic models for igd-portmap.
"""
from .common import BasePydanticModel, IgdStatus, Protocol
from .igd import (
    ConnectivityState,
    IgdEndpoint,
    PortMapping,
    RawPortMappingEntry,
    SelectionResult,
)

__all__ = [
    "BasePydanticModel",
    "ConnectivityState",
    "IgdEndpoint",
    "IgdStatus",
    "PortMapping",
    "Protocol",
    "RawPortMappingEntry",
    "SelectionResult",
]
