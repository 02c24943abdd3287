"""Tests for port-mapping enumeration and the MappingCache."""

import itertools

import pytest

from igd_portmap.device.mapping_cache import EnumerationPass, MappingCache, read_port_mappings, sort_mappings
from igd_portmap.models.common import Protocol
from igd_portmap.models.igd import IgdEndpoint, PortMapping


@pytest.fixture
def endpoint():
    return IgdEndpoint(control_url="http://192.168.1.1:5000/ctl/IPConn", lan_address="192.168.1.10")


def test_enumeration_orders_by_sort_key(fake_backend, endpoint):
    """Router order web(80/TCP), dns(53/UDP): 53*2+1=107 sorts before 80*2+0=160."""
    enumeration = read_port_mappings(fake_backend, endpoint, (713, 714))

    assert [(m.external_port, m.protocol) for m in enumeration.entries] == [
        (53, Protocol.UDP),
        (80, Protocol.TCP),
    ]
    assert [m.sort_key for m in enumeration.entries] == [107, 160]
    assert enumeration.error is None


def test_same_port_tcp_before_udp(fake_backend, endpoint, make_entry):
    fake_backend.table = [
        make_entry(5000, "UDP", "192.168.1.3", 5000, "b"),
        make_entry(5000, "TCP", "192.168.1.3", 5000, "a"),
    ]
    entries = read_port_mappings(fake_backend, endpoint, (713,)).entries
    assert [m.protocol for m in entries] == [Protocol.TCP, Protocol.UDP]


def test_empty_table(fake_backend, endpoint):
    fake_backend.table = []
    enumeration = read_port_mappings(fake_backend, endpoint, (713, 714))
    assert enumeration.entries == []
    assert enumeration.error is None


def test_alternative_end_of_table_code(fake_backend, endpoint):
    fake_backend.enumeration_failure = (2, 714)
    enumeration = read_port_mappings(fake_backend, endpoint, (713, 714))
    assert len(enumeration.entries) == 2
    assert enumeration.error is None


def test_genuine_error_mid_enumeration_keeps_partial_table(fake_backend, endpoint):
    fake_backend.enumeration_failure = (1, 501)

    enumeration = read_port_mappings(fake_backend, endpoint, (713, 714))

    assert [m.description for m in enumeration.entries] == ["web"]
    assert enumeration.error is not None
    assert enumeration.error.index == 1
    assert enumeration.error.code == 501
    assert enumeration.error.message == "Action Failed"


def test_sort_is_deterministic_for_equal_sort_keys():
    """Entries sharing a sort key come out in the same order whatever order the router used."""
    mappings = [
        PortMapping(external_port=8000, internal_client="192.168.1.4", internal_port=80, protocol=Protocol.TCP, description="beta"),
        PortMapping(external_port=8000, internal_client="192.168.1.4", internal_port=80, protocol=Protocol.TCP, description="alpha"),
        PortMapping(external_port=8000, internal_client="192.168.1.4", internal_port=80, protocol=Protocol.TCP, description="gamma",
                    remote_host="198.51.100.1"),
        PortMapping(external_port=21, internal_client="192.168.1.4", internal_port=21, protocol=Protocol.TCP, description="ftp"),
    ]
    expected = [m.description for m in sort_mappings(mappings)]

    assert expected == ["ftp", "alpha", "beta", "gamma"]
    for permutation in itertools.permutations(mappings):
        assert [m.description for m in sort_mappings(permutation)] == expected


@pytest.mark.asyncio
async def test_reload_replaces_contents(fake_backend, endpoint, make_entry):
    cache = MappingCache()
    await cache.reload(fake_backend, endpoint)
    assert len(cache) == 2

    fake_backend.table = [make_entry(22, "TCP", "192.168.1.9", 22, "ssh")]
    await cache.reload(fake_backend, endpoint)

    assert [m.description for m in cache] == ["ssh"]
    assert cache.complete


@pytest.mark.asyncio
async def test_reload_records_truncation(fake_backend, endpoint):
    fake_backend.enumeration_failure = (0, -3)
    cache = MappingCache()

    await cache.reload(fake_backend, endpoint)

    assert len(cache) == 0
    assert not cache.complete
    assert cache.last_enumeration_error.code == -3


def test_find_and_clear():
    cache = MappingCache()
    web = PortMapping(external_port=80, internal_client="192.168.1.5", internal_port=8080, protocol=Protocol.TCP)
    cache.load(EnumerationPass([web], None))

    assert cache.find(80, Protocol.TCP) is web
    assert cache.find(80, Protocol.UDP) is None

    cache.clear()
    assert len(cache) == 0
    assert cache.entries == ()
