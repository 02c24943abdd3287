from typing import Any

from pydantic import Field, computed_field

from .common import BasePydanticModel, IgdStatus, Protocol


def _to_port(text: str | int) -> int:
    """Parses router port text. Unparseable text and values outside 0..65535 are clamped to 0."""
    try:
        value = int(text)
    except (TypeError, ValueError):
        return 0
    return value if 0 <= value <= 65535 else 0


class IgdEndpoint(BasePydanticModel):
    """The control service of the selected IGD and the LAN address used to reach it."""
    control_url: str
    # None when the control library does not report the service type
    service_type: str | None = None
    lan_address: str = ""
    # Backend-specific object the control library needs for further calls
    handle: Any = Field(default=None, exclude=True, repr=False)


class SelectionResult(BasePydanticModel):
    status: IgdStatus
    endpoint: IgdEndpoint | None = None
    lan_address: str = ""


class ConnectivityState(BasePydanticModel):
    connected: bool = False
    external_ip: str = ""


class RawPortMappingEntry(BasePydanticModel):
    """One GetGenericPortMappingEntry answer, as text exactly as the router sent it."""
    external_port: str = ""
    internal_client: str = ""
    internal_port: str = ""
    protocol: str = ""
    description: str = ""
    enabled: str = ""
    remote_host: str = ""
    duration: str = ""


class PortMapping(BasePydanticModel):
    external_port: int = Field(ge=0, le=65535)
    internal_client: str
    internal_port: int = Field(ge=0, le=65535)
    protocol: Protocol
    # Protocol text as reported, kept for display of INVALID entries
    protocol_text: str = ""
    description: str = ""
    enabled: str = ""
    remote_host: str = ""
    duration: str = ""

    @classmethod
    def from_raw(cls, raw: RawPortMappingEntry) -> "PortMapping":
        return cls(
            external_port=_to_port(raw.external_port),
            internal_client=raw.internal_client,
            internal_port=_to_port(raw.internal_port),
            protocol=Protocol.parse(raw.protocol),
            protocol_text=raw.protocol,
            description=raw.description,
            enabled=raw.enabled,
            remote_host=raw.remote_host,
            duration=raw.duration,
        )

    @computed_field
    @property
    def sort_key(self) -> int:
        return self.external_port * 2 + self.protocol.ordinal

    @computed_field
    @property
    def display_label(self) -> str:
        proto = self.protocol_text or self.protocol.value
        return f"{self.description} ({proto} {self.external_port}->{self.internal_client}:{self.internal_port})"

    @property
    def ordering_key(self) -> tuple:
        # sort_key first, the rest only breaks ties so the order depends on the entries alone
        return (self.sort_key, self.description, self.remote_host, self.internal_client, self.internal_port)
