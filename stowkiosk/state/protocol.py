"""Station update protocol.

Every station mutation, whether it comes from an HTTP client or a Slack
button, goes through :class:`StationUpdateProtocol`: values are validated,
the write is applied through the store, and a ``stationUpdate`` event with
the full post-write record is broadcast.
"""

from typing import Any, Dict, Optional

from .models import LEGACY_COMPOSITE_STATUSES, Indicator, Status, normalize_status
from .stations import StationStore, StationUpdate
from ..errors import InvalidTransition
from ..realtime.hub import BroadcastEvent, BroadcastHub


STATUS_CYCLE = {
    Status.AQ: Status.PS,
    Status.PS: Status.INACTIVE,
    Status.INACTIVE: Status.AQ,
}


def next_status(current: str) -> Status:
    """AQ -> PS -> Inactive -> AQ.

    Legacy composite values are normalized first, so ``AQ+PS`` cycles
    as AQ.
    """
    raw = current.value if isinstance(current, Status) else current
    if raw in LEGACY_COMPOSITE_STATUSES:
        raw, _ = normalize_status(raw)
    try:
        status = Status(raw)
    except ValueError:
        raise InvalidTransition(f'Cannot cycle unknown status {raw!r}')
    return STATUS_CYCLE[status]


def toggle_end_indicator(current: str) -> Indicator:
    """Hi <-> Lo."""
    try:
        indicator = Indicator(current.value if isinstance(current, Indicator) else current)
    except ValueError:
        raise InvalidTransition(f'Cannot toggle unknown end indicator {current!r}')
    return Indicator.LO if indicator is Indicator.HI else Indicator.HI


class StationUpdateProtocol:
    """Validate, persist and broadcast station changes."""

    def __init__(self, store: StationStore, hub: BroadcastHub):
        self.store = store
        self.hub = hub

    def apply(
        self,
        station_id: int,
        status: Optional[str] = None,
        end_indicator: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Apply a partial update and broadcast the result.

        Raises:
            InvalidTransition: Status or indicator outside the allowed values
            NoOpUpdate: Neither field supplied
            NotFoundError: Unknown station id
        """
        update = StationUpdate(status=status, end_indicator=end_indicator)
        station = self.store.apply(station_id, update)
        self.hub.broadcast(BroadcastEvent('stationUpdate', station))
        return station

    def cycle_status(self, station_id: int, current_status: str) -> Dict[str, Any]:
        return self.apply(station_id, status=next_status(current_status))

    def toggle_indicator(self, station_id: int, current_end: str) -> Dict[str, Any]:
        return self.apply(station_id, end_indicator=toggle_end_indicator(current_end))
