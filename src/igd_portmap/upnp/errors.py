"""UPnP result codes and their human-readable names, as used by miniupnpc."""

UPNPCOMMAND_SUCCESS = 0
UPNPCOMMAND_UNKNOWN_ERROR = -1
UPNPCOMMAND_INVALID_ARGS = -2
UPNPCOMMAND_HTTP_ERROR = -3
UPNPCOMMAND_INVALID_RESPONSE = -4
UPNPCOMMAND_MEM_ALLOC_ERROR = -5

SPECIFIED_ARRAY_INDEX_INVALID = 713
NO_SUCH_ENTRY_IN_ARRAY = 714
CONFLICT_IN_MAPPING_ENTRY = 718

UPNP_ERROR_NAMES: dict[int, str] = {
    UPNPCOMMAND_SUCCESS: "Success",
    UPNPCOMMAND_UNKNOWN_ERROR: "Miniupnpc Unknown Error",
    UPNPCOMMAND_INVALID_ARGS: "Miniupnpc Invalid Arguments",
    UPNPCOMMAND_HTTP_ERROR: "Miniupnpc HTTP error",
    UPNPCOMMAND_INVALID_RESPONSE: "Miniupnpc Invalid response",
    UPNPCOMMAND_MEM_ALLOC_ERROR: "Miniupnpc Memory allocation error",
    401: "Invalid Action",
    402: "Invalid Args",
    501: "Action Failed",
    600: "Argument Value Invalid",
    601: "Argument Value Out of Range",
    602: "Optional Action Not Implemented",
    603: "Out of Memory",
    604: "Human Intervention Required",
    605: "String Argument Too Long",
    606: "Action not authorized",
    701: "PinholeSpaceExhausted",
    702: "FirewallDisabled",
    703: "InboundPinholeNotAllowed",
    704: "NoSuchEntry",
    705: "ProtocolNotSupported",
    706: "InternalPortWildcardingNotAllowed",
    707: "ProtocolWildcardingNotAllowed",
    708: "WildcardNotPermittedInSrcIP",
    709: "NoPacketSent",
    SPECIFIED_ARRAY_INDEX_INVALID: "SpecifiedArrayIndexInvalid",
    NO_SUCH_ENTRY_IN_ARRAY: "NoSuchEntryInArray",
    715: "WildCardNotPermittedInSrcIP",
    716: "WildCardNotPermittedInExtPort",
    CONFLICT_IN_MAPPING_ENTRY: "ConflictInMappingEntry",
    724: "SamePortValuesRequired",
    725: "OnlyPermanentLeasesSupported",
    726: "RemoteHostOnlySupportsWildcard",
    727: "ExternalPortOnlySupportsWildcard",
    728: "NoPortMapsAvailable",
    729: "ConflictWithOtherMechanisms",
    732: "WildCardNotPermittedInIntPort",
}

_CODES_BY_NAME = {name: code for code, name in UPNP_ERROR_NAMES.items()}


def describe_upnp_error(code: int) -> str:
    """Returns the name of a UPnP result code, or a generic text for codes nobody registered."""
    return UPNP_ERROR_NAMES.get(code, f"Unknown UPnP error {code}")


def code_from_message(message: str) -> int:
    """Maps a miniupnpc exception message back to its result code.

    The Python binding raises ``Exception(strupnperror(code))``, so the name is
    all that survives. Unrecognised messages map to UPNPCOMMAND_UNKNOWN_ERROR.
    """
    return _CODES_BY_NAME.get(message.strip(), UPNPCOMMAND_UNKNOWN_ERROR)
