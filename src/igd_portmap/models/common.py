from enum import Enum, IntEnum

from pydantic import BaseModel


class BasePydanticModel(BaseModel):
    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
        "frozen": True,
    }

class Protocol(str, Enum):
    """Transport protocol of a NAT rule, as a closed set.

    The router reports protocol as free text. Only the exact strings "TCP"
    and "UDP" are recognised; anything else becomes INVALID.
    """
    TCP = "TCP"
    UDP = "UDP"
    INVALID = "Invalid"

    @classmethod
    def parse(cls, text: str) -> "Protocol":
        if text == "TCP":
            return cls.TCP
        if text == "UDP":
            return cls.UDP
        return cls.INVALID

    @property
    def ordinal(self) -> int:
        return _PROTOCOL_ORDINALS[self]

    @property
    def is_mappable(self) -> bool:
        return self is not Protocol.INVALID

_PROTOCOL_ORDINALS = {Protocol.TCP: 0, Protocol.UDP: 1, Protocol.INVALID: 2}

class IgdStatus(IntEnum):
    """Outcome of IGD selection over a discovered device list (UPNP_GetValidIGD convention)."""
    NO_DEVICE = 0
    CONNECTED = 1
    NOT_CONNECTED = 2
    NOT_IGD = 3

    @property
    def is_valid(self) -> bool:
        return self in (IgdStatus.CONNECTED, IgdStatus.NOT_CONNECTED)
