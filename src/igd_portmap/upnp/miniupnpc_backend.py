"""
ControlBackend implemented over the miniupnpc Python binding.

The binding keeps the discovered device list and the selected IGD's URLs
inside one ``miniupnpc.UPnP`` object, so a fresh object is created for every
discovery and that object doubles as the endpoint handle after selection.
Errors surface as ``Exception(strupnperror(code))``; the code is recovered
from the message.
"""
from typing import Optional, Tuple

import miniupnpc  # type: ignore[import-not-found]
import structlog

from ..config import DiscoveryConfig
from ..models.common import IgdStatus
from ..models.igd import IgdEndpoint, RawPortMappingEntry
from .backend import ControlBackend, DeviceList
from .errors import (
    SPECIFIED_ARRAY_INDEX_INVALID,
    UPNPCOMMAND_SUCCESS,
    UPNPCOMMAND_UNKNOWN_ERROR,
    code_from_message,
)

logger = structlog.get_logger(__name__)


def _error_code(exc: Exception) -> int:
    return code_from_message(str(exc))


class MiniupnpcBackend(ControlBackend):

    def __init__(self):
        self.logger = logger.bind(backend="miniupnpc")

    def discover(self, discovery_config: DiscoveryConfig) -> DeviceList:
        upnp = miniupnpc.UPnP()
        upnp.discoverdelay = discovery_config.timeout_ms
        if discovery_config.local_port:
            upnp.localport = discovery_config.local_port
        if discovery_config.multicast_interface:
            upnp.multicastif = discovery_config.multicast_interface
        if discovery_config.minissdpd_socket:
            upnp.minissdpdsocket = discovery_config.minissdpd_socket

        try:
            count = upnp.discover()
        except Exception as e:
            # Some builds raise with the message "Success" after a good discovery
            if str(e) == "Success":
                count = 1
            else:
                self.logger.warning("SSDP discovery failed; treating as no devices", error=str(e))
                count = 0
        self.logger.debug("SSDP discovery returned", device_count=count)
        return DeviceList(handle=upnp, count=count)

    def select_valid_device(self, device_list: DeviceList) -> Optional[IgdEndpoint]:
        upnp = device_list.handle
        if device_list.count == 0:
            return None

        try:
            control_url = upnp.selectigd()
        except Exception as e:
            self.logger.info("No IGD selected from device list", error=str(e))
            return None

        # The binding does not expose the service type, so it stays None
        return IgdEndpoint(control_url=control_url, lan_address=upnp.lanaddr or "", handle=upnp)

    def classify_device(self, endpoint: IgdEndpoint) -> IgdStatus:
        # Devices without a WAN connection service cannot report a connection type
        try:
            endpoint.handle.connectiontype()
        except Exception as e:
            self.logger.info("Selected device is not an IGD", control_url=endpoint.control_url, error=str(e))
            return IgdStatus.NOT_IGD

        try:
            status, _uptime, _last_error = endpoint.handle.statusinfo()
        except Exception as e:
            self.logger.warning("GetStatusInfo failed; reporting not connected", error=str(e))
            return IgdStatus.NOT_CONNECTED
        return IgdStatus.CONNECTED if status == "Connected" else IgdStatus.NOT_CONNECTED

    def get_external_ip(self, endpoint: IgdEndpoint) -> Tuple[int, str]:
        try:
            ip = endpoint.handle.externalipaddress()
        except Exception as e:
            return _error_code(e), ""
        if not ip:
            return UPNPCOMMAND_UNKNOWN_ERROR, ""
        return UPNPCOMMAND_SUCCESS, ip

    def get_port_mapping_entry(self, endpoint: IgdEndpoint, index: int) -> Tuple[int, Optional[RawPortMappingEntry]]:
        # The binding returns None for every failure, end of table included
        entry = endpoint.handle.getgenericportmapping(index)
        if entry is None:
            return SPECIFIED_ARRAY_INDEX_INVALID, None
        ext_port, protocol, (int_client, int_port), description, enabled, remote_host, duration = entry
        return UPNPCOMMAND_SUCCESS, RawPortMappingEntry(
            external_port=str(ext_port),
            internal_client=int_client or "",
            internal_port=str(int_port),
            protocol=protocol or "",
            description=description or "",
            enabled=str(enabled) if enabled is not None else "",
            remote_host=remote_host or "",
            duration=str(duration) if duration is not None else "",
        )

    def delete_port_mapping(self, endpoint: IgdEndpoint, external_port: int, protocol: str, remote_host: str = "") -> int:
        try:
            if remote_host:
                endpoint.handle.deleteportmapping(external_port, protocol, remote_host)
            else:
                endpoint.handle.deleteportmapping(external_port, protocol)
        except Exception as e:
            return _error_code(e)
        return UPNPCOMMAND_SUCCESS

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
        try:
            endpoint.handle.addportmapping(
                external_port, protocol, internal_client, internal_port,
                description, remote_host, lease_duration
            )
        except Exception as e:
            return _error_code(e)
        return UPNPCOMMAND_SUCCESS
