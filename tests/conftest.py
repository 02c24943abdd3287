"""
Shared fixtures: a scripted in-memory router standing in for the UPnP control library.
"""
import threading
from typing import List, Optional, Tuple

import pytest

from igd_portmap.config import Config, DiscoveryConfig
from igd_portmap.device.controller import IgdDeviceController
from igd_portmap.models.common import IgdStatus
from igd_portmap.models.igd import IgdEndpoint, RawPortMappingEntry
from igd_portmap.upnp.backend import ControlBackend, DeviceList
from igd_portmap.upnp.errors import SPECIFIED_ARRAY_INDEX_INVALID


def raw_entry(ext_port, protocol, client, int_port, description, enabled="1", remote_host="", duration="0") -> RawPortMappingEntry:
    return RawPortMappingEntry(
        external_port=str(ext_port),
        internal_client=client,
        internal_port=str(int_port),
        protocol=protocol,
        description=description,
        enabled=enabled,
        remote_host=remote_host,
        duration=duration,
    )


class FakeRouterBackend(ControlBackend):
    """ControlBackend over an in-memory NAT table, recording every call."""

    def __init__(self, table: Optional[List[RawPortMappingEntry]] = None):
        self.table: List[RawPortMappingEntry] = list(table or [])
        self.device_count = 1
        self.status = IgdStatus.CONNECTED
        self.external_ip: Tuple[int, str] = (0, "203.0.113.7")
        self.lan_address = "192.168.1.10"
        self.add_code = 0
        self.delete_code = 0
        # (index, code): answer ``code`` instead of the entry at ``index``
        self.enumeration_failure: Optional[Tuple[int, int]] = None
        self.discover_gate: Optional[threading.Event] = None

        self.discover_calls = 0
        self.classify_calls = 0
        self.device_lists: List[DeviceList] = []
        self.released_lists: List[DeviceList] = []
        self.endpoints: List[IgdEndpoint] = []
        self.released_endpoints: List[IgdEndpoint] = []
        self.add_calls: List[tuple] = []
        self.delete_calls: List[tuple] = []

    def discover(self, discovery_config: DiscoveryConfig) -> DeviceList:
        self.discover_calls += 1
        if self.discover_gate is not None:
            self.discover_gate.wait(timeout=5)
        device_list = DeviceList(handle=f"devlist-{self.discover_calls}", count=self.device_count)
        self.device_lists.append(device_list)
        return device_list

    def release_device_list(self, device_list: DeviceList) -> None:
        super().release_device_list(device_list)
        self.released_lists.append(device_list)

    def select_valid_device(self, device_list: DeviceList) -> Optional[IgdEndpoint]:
        if self.status == IgdStatus.NO_DEVICE or device_list.count == 0:
            return None
        endpoint = IgdEndpoint(
            control_url=f"http://192.168.1.1:5000/ctl/IPConn/{len(self.endpoints)}",
            service_type="urn:schemas-upnp-org:service:WANIPConnection:1",
            lan_address=self.lan_address,
        )
        self.endpoints.append(endpoint)
        return endpoint

    def classify_device(self, endpoint: IgdEndpoint) -> IgdStatus:
        self.classify_calls += 1
        return self.status

    def release_endpoint(self, endpoint: IgdEndpoint) -> None:
        self.released_endpoints.append(endpoint)

    def get_external_ip(self, endpoint: IgdEndpoint) -> Tuple[int, str]:
        return self.external_ip

    def get_port_mapping_entry(self, endpoint: IgdEndpoint, index: int) -> Tuple[int, Optional[RawPortMappingEntry]]:
        if self.enumeration_failure is not None and self.enumeration_failure[0] == index:
            return self.enumeration_failure[1], None
        if index >= len(self.table):
            return SPECIFIED_ARRAY_INDEX_INVALID, None
        return 0, self.table[index]

    def delete_port_mapping(self, endpoint: IgdEndpoint, external_port: int, protocol: str, remote_host: str = "") -> int:
        self.delete_calls.append((external_port, protocol, remote_host))
        if self.delete_code:
            return self.delete_code
        self.table = [
            e for e in self.table
            if not (e.external_port == str(external_port) and e.protocol == protocol)
        ]
        return 0

    def add_port_mapping(self, endpoint, external_port, internal_port, internal_client, description, protocol, remote_host="", lease_duration=0) -> int:
        self.add_calls.append((external_port, internal_port, internal_client, description, protocol, remote_host, lease_duration))
        if self.add_code:
            return self.add_code
        self.table.append(raw_entry(external_port, protocol, internal_client, internal_port, description, duration=str(lease_duration)))
        return 0


@pytest.fixture
def app_config():
    return Config()


@pytest.fixture
def router_table():
    return [
        raw_entry(80, "TCP", "192.168.1.5", 8080, "web"),
        raw_entry(53, "UDP", "192.168.1.2", 53, "dns"),
    ]


@pytest.fixture
def fake_backend(router_table):
    return FakeRouterBackend(router_table)


@pytest.fixture
def controller(app_config, fake_backend):
    return IgdDeviceController(app_config, backend=fake_backend)


@pytest.fixture
def make_entry():
    return raw_entry
