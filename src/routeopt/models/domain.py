"""Domain models for stops and routing constraints."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""

    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass(slots=True, frozen=True)
class TimeWindow:
    """Interval within which a stop must be visited."""

    earliest_arrival: datetime
    latest_departure: datetime


@dataclass(slots=True, frozen=True)
class Location:
    """A stop to visit. Identity is ``id``; the optimizer only reorders references."""

    id: str
    name: str
    latitude: float
    longitude: float
    time_window: Optional[TimeWindow] = None
    service_time: Optional[float] = None
    priority: Optional[float] = None
    capacity_required: Optional[float] = None


@dataclass(slots=True)
class Constraints:
    max_distance: Optional[float] = None
    max_time: Optional[float] = None
    vehicle_capacity: Optional[float] = None
    respect_time_windows: bool = False
    start_location: Optional[Location] = None
    end_location: Optional[Location] = None
    # Hints forwarded to the routing provider only.
    avoid_tolls: bool = False
    avoid_highways: bool = False
