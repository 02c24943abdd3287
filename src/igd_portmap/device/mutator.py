"""
Add/delete against the router, followed by reconciliation of the cache.
"""
import asyncio
from typing import Union

import structlog

from ..config import MappingConfig
from ..models.common import Protocol
from ..models.igd import IgdEndpoint, PortMapping
from ..upnp.backend import ControlBackend
from ..upnp.errors import UPNPCOMMAND_SUCCESS
from ..upnp.exceptions import InvalidProtocolError, RouterRejectedError
from .mapping_cache import MappingCache

logger = structlog.get_logger(__name__)


class MappingMutator:
    """
    Every mutation is fire-and-reconcile: on success the cache is cleared and
    re-read from the router, on failure it is left as it was. The router may
    apply more than the requested change, so the cache is never patched locally.
    """

    def __init__(self, backend: ControlBackend, cache: MappingCache, mapping_config: MappingConfig):
        self.backend = backend
        self.cache = cache
        self.mapping_config = mapping_config
        self.logger = logger.bind(component="MappingMutator")

    async def delete(self, endpoint: IgdEndpoint, mapping: PortMapping) -> None:
        """Deletes ``mapping`` on the router, keyed by external port and protocol.

        Raises:
            InvalidProtocolError: the entry's protocol is neither TCP nor UDP.
                The router is not contacted.
            RouterRejectedError: the router answered with a non-zero code.
        """
        if not mapping.protocol.is_mappable:
            raise InvalidProtocolError(mapping.protocol_text or mapping.protocol.value)

        code = await asyncio.to_thread(
            self.backend.delete_port_mapping,
            endpoint,
            mapping.external_port,
            mapping.protocol.value,
            self.mapping_config.default_remote_host,
        )
        self._check(code, "DeletePortMapping", external_port=mapping.external_port, protocol=mapping.protocol.value)
        await self.cache.reload(self.backend, endpoint)

    async def add(
        self,
        endpoint: IgdEndpoint,
        external_port: int,
        protocol: Union[Protocol, str],
        internal_port: int,
        internal_client: str,
        description: str,
    ) -> None:
        """Asks the router for a new mapping. Arguments go through unvalidated; the router decides.

        Raises:
            RouterRejectedError: the router answered with a non-zero code.
        """
        protocol_text = protocol.value if isinstance(protocol, Protocol) else protocol
        code = await asyncio.to_thread(
            self.backend.add_port_mapping,
            endpoint,
            external_port,
            internal_port,
            internal_client,
            description,
            protocol_text,
            self.mapping_config.default_remote_host,
            self.mapping_config.default_lease_duration,
        )
        self._check(code, "AddPortMapping", external_port=external_port, protocol=protocol_text)
        await self.cache.reload(self.backend, endpoint)

    def _check(self, code: int, action: str, **context) -> None:
        if code == UPNPCOMMAND_SUCCESS:
            self.logger.info(f"{action} succeeded", **context)
            return
        message = self.backend.describe_error(code)
        self.logger.warning(f"{action} rejected by router", code=code, message=message, **context)
        raise RouterRejectedError(code, message)
