"""
Selection of a usable IGD from the discovered device list.
"""
import structlog

from ..models.common import IgdStatus
from ..models.igd import SelectionResult
from ..upnp.backend import ControlBackend
from ..upnp.exceptions import NoValidIGDError
from .device_list import DeviceListHolder

logger = structlog.get_logger(__name__)


def select_valid_igd(backend: ControlBackend, device_lists: DeviceListHolder) -> SelectionResult:
    """Picks the IGD to talk to. Blocking; run it off the event loop.

    Only the library's selection step reads the device list under its lock;
    the device is classified after the lock is released. A connected IGD and
    an IGD whose WAN link is down are both accepted.

    Raises:
        NoValidIGDError: no list was discovered yet, or nothing in it is a usable
            IGD. Any endpoint the library acquired on the way is released first.
    """
    with device_lists.borrowed() as device_list:
        if device_list is None:
            raise NoValidIGDError("No device list; run a scan first", status=IgdStatus.NO_DEVICE)
        endpoint = backend.select_valid_device(device_list)

    if endpoint is None:
        raise NoValidIGDError(status=IgdStatus.NO_DEVICE)

    status = IgdStatus(backend.classify_device(endpoint))
    if not status.is_valid:
        backend.release_endpoint(endpoint)
        raise NoValidIGDError(status=status)

    logger.info(
        "IGD selected",
        status=status.name,
        control_url=endpoint.control_url,
        lan_address=endpoint.lan_address,
    )
    return SelectionResult(status=status, endpoint=endpoint, lan_address=endpoint.lan_address)
