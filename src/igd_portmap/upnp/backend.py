"""
Control Backend Abstract Class.

This is the seam to the UPnP control library: SSDP discovery, IGD selection
and the SOAP actions of the WANIPConnection service. Everything here is
blocking; callers on an event loop run it in a worker thread.
"""
import abc
from typing import Any, Optional, Tuple

from ..config import DiscoveryConfig
from ..models.common import IgdStatus
from ..models.igd import IgdEndpoint, RawPortMappingEntry
from .errors import describe_upnp_error


class DeviceList:
    """
    Opaque list of candidate devices returned by discovery.

    ``handle`` is whatever the backend needs to select from the list later.
    ``count`` may be 0; an empty list is a normal discovery outcome.
    """

    def __init__(self, handle: Any, count: int = 0):
        self.handle = handle
        self.count = count
        self.released = False

    def __repr__(self) -> str:
        return f"<DeviceList count={self.count} released={self.released}>"


class ControlBackend(abc.ABC):
    """
    Abstract Base Class for a UPnP control library.
    Mutating calls return a numeric result code, 0 meaning success.
    """

    @abc.abstractmethod
    def discover(self, discovery_config: DiscoveryConfig) -> DeviceList:
        """Runs SSDP discovery for ``discovery_config.timeout_ms`` and returns the candidates."""
        pass

    def release_device_list(self, device_list: DeviceList) -> None:
        """Frees a device list. Backends holding native resources override this."""
        device_list.released = True

    @abc.abstractmethod
    def select_valid_device(self, device_list: DeviceList) -> Optional[IgdEndpoint]:
        """
        Runs the library's own IGD selection over the list and returns the
        candidate endpoint, or None when nothing was selected. Called with the
        device-list lock held, so it must not issue control calls of its own.
        """
        pass

    @abc.abstractmethod
    def classify_device(self, endpoint: IgdEndpoint) -> IgdStatus:
        """
        Asks the selected device whether it is an IGD and whether its WAN link
        is up: NOT_IGD, CONNECTED or NOT_CONNECTED. Called after the
        device-list lock is released.
        """
        pass

    def release_endpoint(self, endpoint: IgdEndpoint) -> None:
        """Frees the resources behind an endpoint (URLs, descriptions)."""
        pass

    @abc.abstractmethod
    def get_external_ip(self, endpoint: IgdEndpoint) -> Tuple[int, str]:
        """Returns ``(code, ip)``; ``ip`` is meaningless when ``code`` is non-zero."""
        pass

    @abc.abstractmethod
    def get_port_mapping_entry(self, endpoint: IgdEndpoint, index: int) -> Tuple[int, Optional[RawPortMappingEntry]]:
        """Returns ``(code, entry)`` for the zero-based ``index`` of the router's table."""
        pass

    @abc.abstractmethod
    def delete_port_mapping(self, endpoint: IgdEndpoint, external_port: int, protocol: str, remote_host: str = "") -> int:
        pass

    @abc.abstractmethod
    def add_port_mapping(
        self,
        endpoint: IgdEndpoint,
        external_port: int,
        internal_port: int,
        internal_client: str,
        description: str,
        protocol: str,
        remote_host: str = "",
        lease_duration: int = 0,
    ) -> int:
        pass

    def describe_error(self, code: int) -> str:
        return describe_upnp_error(code)
