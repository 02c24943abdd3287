"""
In-memory snapshot of the router's port-mapping table.
"""
import asyncio
from typing import Iterable, Iterator, List, NamedTuple, Optional, Tuple

import structlog

from ..models.common import Protocol
from ..models.igd import IgdEndpoint, PortMapping
from ..upnp.backend import ControlBackend
from ..upnp.errors import UPNPCOMMAND_SUCCESS
from ..upnp.exceptions import EnumerationError

logger = structlog.get_logger(__name__)


class EnumerationPass(NamedTuple):
    entries: List[PortMapping]
    error: Optional[EnumerationError]


def sort_mappings(entries: Iterable[PortMapping]) -> List[PortMapping]:
    return sorted(entries, key=lambda m: m.ordering_key)


def read_port_mappings(backend: ControlBackend, endpoint: IgdEndpoint, end_of_table_codes: Iterable[int]) -> EnumerationPass:
    """
    Reads the router's table entry by entry, from index 0 until the router
    answers with a non-zero code. Blocking; run it off the event loop.

    Codes in ``end_of_table_codes`` are the normal end of the table. Any other
    code also stops the pass, keeping what was read, and is returned as an
    EnumerationError so a truncated table is distinguishable from a full one.
    """
    end_codes = set(end_of_table_codes)
    entries: List[PortMapping] = []
    error: Optional[EnumerationError] = None
    index = 0
    while True:
        code, raw = backend.get_port_mapping_entry(endpoint, index)
        if code != UPNPCOMMAND_SUCCESS or raw is None:
            if code not in end_codes:
                error = EnumerationError(index, code, backend.describe_error(code))
            break
        entries.append(PortMapping.from_raw(raw))
        index += 1
    return EnumerationPass(sort_mappings(entries), error)


class MappingCache:
    """
    Ordered by PortMapping.sort_key ascending. Never patched in place: every
    refresh or successful mutation clears it and loads a complete new pass.
    """

    def __init__(self, end_of_table_codes: Iterable[int] = (713, 714)):
        self.end_of_table_codes: Tuple[int, ...] = tuple(end_of_table_codes)
        self._entries: List[PortMapping] = []
        self.last_enumeration_error: Optional[EnumerationError] = None

    def __iter__(self) -> Iterator[PortMapping]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> PortMapping:
        return self._entries[index]

    @property
    def entries(self) -> Tuple[PortMapping, ...]:
        return tuple(self._entries)

    @property
    def complete(self) -> bool:
        """False when the last pass was cut short by a router error."""
        return self.last_enumeration_error is None

    def clear(self) -> None:
        self._entries = []
        self.last_enumeration_error = None

    def load(self, enumeration: EnumerationPass) -> None:
        self._entries = list(enumeration.entries)
        self.last_enumeration_error = enumeration.error

    def find(self, external_port: int, protocol: Protocol) -> Optional[PortMapping]:
        for mapping in self._entries:
            if mapping.external_port == external_port and mapping.protocol == protocol:
                return mapping
        return None

    async def reload(self, backend: ControlBackend, endpoint: IgdEndpoint) -> None:
        """Clears the cache and repopulates it from a full enumeration of the router."""
        self.clear()
        enumeration = await asyncio.to_thread(read_port_mappings, backend, endpoint, self.end_of_table_codes)
        self.load(enumeration)
        log = logger.bind(control_url=endpoint.control_url, entry_count=len(self._entries))
        if enumeration.error is not None:
            log.warning(
                "Port-mapping enumeration stopped early",
                index=enumeration.error.index,
                code=enumeration.error.code,
                message=enumeration.error.message,
            )
        else:
            log.info("Port-mapping table read")
