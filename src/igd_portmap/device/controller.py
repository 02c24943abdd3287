"""
IgdDeviceController: the one object callers talk to.

Lifecycle: scan -> select -> populate cache -> expose state. Discovery runs in
the background; everything else runs one operation at a time on the
controller's sequence, awaiting router I/O in worker threads.
"""
import asyncio
from typing import Optional, Tuple, Union

import structlog

from ..config import Config
from ..models.common import IgdStatus, Protocol
from ..models.igd import ConnectivityState, IgdEndpoint, PortMapping
from ..upnp.backend import ControlBackend
from ..upnp.errors import UPNPCOMMAND_SUCCESS
from ..upnp.exceptions import NoValidIGDError, QueryFailedError
from .device_list import DeviceListHolder
from .discovery import DiscoveryWorker
from .events import EventBus, IgdEventType
from .mapping_cache import MappingCache
from .mutator import MappingMutator
from .selector import select_valid_igd

logger = structlog.get_logger(__name__)


class IgdDeviceController:

    def __init__(
        self,
        app_config: Config,
        backend: Optional[ControlBackend] = None,
        event_queue: Optional[asyncio.Queue] = None,
    ):
        """
        Args:
            app_config: The global application configuration.
            backend: UPnP control library. Defaults to the miniupnpc binding.
            event_queue: Optional queue that receives every IgdEvent.
        """
        if backend is None:
            from ..upnp.miniupnpc_backend import MiniupnpcBackend
            backend = MiniupnpcBackend()
        self.app_config = app_config
        self.backend = backend
        self.logger = logger.bind(component="IgdDeviceController")
        self.events = EventBus(output_queue=event_queue)

        self._device_lists = DeviceListHolder(backend)
        self._scanner = DiscoveryWorker(
            backend, self._device_lists, app_config.discovery, on_finished=self._on_scan_finished
        )
        self._cache = MappingCache(app_config.mapping.end_of_table_codes)
        self._mutator = MappingMutator(backend, self._cache, app_config.mapping)

        self._endpoint: Optional[IgdEndpoint] = None
        self._lan_address = ""
        self._connectivity = ConnectivityState()
        self._refresh_task: Optional[asyncio.Task] = None
        # Serialises refresh/add/delete; they share endpoint and cache
        self._sequence = asyncio.Lock()

    # ------------------------------------------------------------------ state

    @property
    def has_valid_igd(self) -> bool:
        return self._endpoint is not None

    @property
    def connected(self) -> bool:
        return self._connectivity.connected

    @property
    def external_ip(self) -> str:
        return self._connectivity.external_ip

    @property
    def connectivity(self) -> ConnectivityState:
        return self._connectivity

    @property
    def lan_address(self) -> str:
        return self._lan_address

    @property
    def endpoint(self) -> Optional[IgdEndpoint]:
        return self._endpoint

    @property
    def mappings(self) -> MappingCache:
        """Read-only use only; iteration order is sort_key ascending."""
        return self._cache

    @property
    def is_scanning(self) -> bool:
        return self._scanner.is_running

    def find_mapping(self, external_port: int, protocol: Union[Protocol, str]) -> Optional[PortMapping]:
        if not isinstance(protocol, Protocol):
            protocol = Protocol.parse(protocol)
        return self._cache.find(external_port, protocol)

    # ------------------------------------------------------------- lifecycle

    def scan(self) -> None:
        """Starts discovery in the background. A scan already in flight makes this a no-op,
        but SCAN_STARTED is raised either way."""
        self.events.emit(IgdEventType.SCAN_STARTED)
        self._scanner.start()

    async def wait_for_scan(self) -> None:
        """Waits for the in-flight discovery and the refresh it triggers."""
        await self._scanner.wait()
        if self._refresh_task is not None and not self._refresh_task.done():
            await self._refresh_task

    async def scan_and_wait(self) -> None:
        self.scan()
        await self.wait_for_scan()

    def _on_scan_finished(self) -> None:
        # Runs on the event loop, posted by the discovery worker's done callback
        self.events.emit(IgdEventType.SCAN_FINISHED, device_count=self._device_lists.device_count)
        self._refresh_task = asyncio.get_running_loop().create_task(self.refresh())

    async def refresh(self) -> None:
        """Re-selects the IGD and rebuilds connectivity and the mapping cache.

        Selection and query failures become state (no IGD, empty IP, not
        connected). DATA_REFRESHED is emitted exactly once per call.
        """
        async with self._sequence:
            try:
                await self._refresh_locked()
            finally:
                self.events.emit(
                    IgdEventType.DATA_REFRESHED,
                    has_valid_igd=self.has_valid_igd,
                    entry_count=len(self._cache),
                )

    async def _refresh_locked(self) -> None:
        self._release_endpoint()
        self._cache.clear()
        self._connectivity = ConnectivityState()

        try:
            selection = await asyncio.to_thread(select_valid_igd, self.backend, self._device_lists)
        except NoValidIGDError as e:
            self.logger.info("No valid IGD; mapping table left empty", reason=str(e))
            return

        self._endpoint = selection.endpoint
        self._lan_address = selection.lan_address

        try:
            external_ip = await self._query_external_ip(self._endpoint)
        except QueryFailedError as e:
            self.logger.warning("External IP unavailable", error=str(e))
            external_ip = ""
        # Selection already asked the router for its link status
        connected = selection.status == IgdStatus.CONNECTED
        self._connectivity = ConnectivityState(connected=connected, external_ip=external_ip)
        self.logger.info("Connectivity refreshed", connected=connected, external_ip=external_ip)

        await self._cache.reload(self.backend, self._endpoint)

    async def _query_external_ip(self, endpoint: IgdEndpoint) -> str:
        code, ip = await asyncio.to_thread(self.backend.get_external_ip, endpoint)
        if code != UPNPCOMMAND_SUCCESS:
            raise QueryFailedError("GetExternalIPAddress", code)
        return ip

    # -------------------------------------------------------------- mutation

    async def delete_port_mapping(self, mapping: PortMapping) -> None:
        """Deletes ``mapping`` on the router and re-reads the table.

        Raises:
            NoValidIGDError: no IGD is selected.
            InvalidProtocolError: the mapping's protocol is not TCP or UDP.
            RouterRejectedError: the router refused; the cache is unchanged.
        """
        async with self._sequence:
            endpoint = self._require_endpoint()
            await self._mutator.delete(endpoint, mapping)
            self.events.emit(IgdEventType.DATA_REFRESHED, has_valid_igd=True, entry_count=len(self._cache))

    async def add_port_mapping(
        self,
        external_port: int,
        protocol: Union[Protocol, str],
        internal_port: int,
        internal_client: str,
        description: str,
    ) -> None:
        """Adds a mapping on the router and re-reads the table.

        Raises:
            NoValidIGDError: no IGD is selected.
            RouterRejectedError: the router refused; the cache is unchanged.
        """
        async with self._sequence:
            endpoint = self._require_endpoint()
            await self._mutator.add(endpoint, external_port, protocol, internal_port, internal_client, description)
            self.events.emit(IgdEventType.DATA_REFRESHED, has_valid_igd=True, entry_count=len(self._cache))

    def _require_endpoint(self) -> IgdEndpoint:
        if self._endpoint is None:
            raise NoValidIGDError()
        return self._endpoint

    # -------------------------------------------------------------- teardown

    def _release_endpoint(self) -> None:
        if self._endpoint is not None:
            self.backend.release_endpoint(self._endpoint)
        self._endpoint = None
        self._lan_address = ""

    async def close(self) -> None:
        """Waits for in-flight discovery (and its refresh), then frees the device list and endpoint."""
        try:
            await self.wait_for_scan()
        finally:
            async with self._sequence:
                self._device_lists.release()
                self._release_endpoint()
                self._cache.clear()
                self._connectivity = ConnectivityState()
            self.logger.info("Controller closed.")

    async def __aenter__(self) -> "IgdDeviceController":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.close()

    def snapshot(self) -> Tuple[ConnectivityState, Tuple[PortMapping, ...]]:
        return self._connectivity, self._cache.entries
