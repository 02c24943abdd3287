"""
Custom exceptions for IGD control operations.
"""
from typing import Optional

class IgdError(Exception):
    """Base class for all IGD control errors."""
    pass

class NoValidIGDError(IgdError):
    """Raised when discovery found no usable Internet Gateway Device,
    or an operation needs a selected IGD and none is held."""
    def __init__(self, message: str = "No valid UPnP Internet Gateway Device", status: Optional[int] = None):
        super().__init__(message)
        self.status = status

class RouterRejectedError(IgdError):
    """Raised when the router answers a mutation with a non-zero result code.
    The code and the library's rendering of it are kept verbatim."""
    def __init__(self, code: int, message: str):
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message

class InvalidProtocolError(IgdError):
    """Raised when a mapping with an unrecognised protocol is submitted for deletion."""
    def __init__(self, protocol_text: str):
        super().__init__(f"Cannot address a mapping with protocol {protocol_text!r}; expected TCP or UDP")
        self.protocol_text = protocol_text

class QueryFailedError(IgdError):
    """Raised by the controller when the external IP query fails; absorbed by refresh."""
    def __init__(self, query: str, code: Optional[int] = None):
        super().__init__(f"{query} query failed" + (f" (code {code})" if code is not None else ""))
        self.query = query
        self.code = code

class EnumerationError(IgdError):
    """Describes a port-mapping enumeration cut short by a genuine router error.
    Recorded on the mapping cache, not raised out of a refresh."""
    def __init__(self, index: int, code: int, message: str):
        super().__init__(f"Enumeration stopped at index {index}: {code}: {message}")
        self.index = index
        self.code = code
        self.message = message
