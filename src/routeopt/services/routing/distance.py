"""Pairwise distance/time oracle with a shared memo table."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

import httpx

from ...config import settings
from ...models.domain import Constraints, Location
from ..geospatial import haversine_m, travel_minutes
from .models import CacheStats

logger = logging.getLogger(__name__)

StopKey = tuple[str, float, float]
PairKey = tuple[StopKey, StopKey]


class DistanceProvider(Protocol):
    """Anything returning an OSRM-shaped table (``distances`` in m, ``durations`` in s)."""

    def table(self, coordinates: Sequence[tuple[float, float]], exclude: Sequence[str] | None = None) -> dict:
        ...


def pair_key(a: Location, b: Location) -> PairKey:
    """Order-independent cache key for a pair of stops.

    Ids are only unique within one request, so coordinates are part of the key.
    """
    first = (a.id, a.latitude, a.longitude)
    second = (b.id, b.latitude, b.longitude)
    return (first, second) if first <= second else (second, first)


def _exclusions(constraints: Constraints | None) -> list[str]:
    if constraints is None:
        return []
    exclude: list[str] = []
    if constraints.avoid_tolls:
        exclude.append("toll")
    if constraints.avoid_highways:
        exclude.append("motorway")
    return exclude


class DistanceOracle:
    """Memoised symmetric distance (meters) and travel time (minutes) lookups.

    Entries are only ever added, one key at a time, so a single oracle can be
    shared by optimizations running concurrently. Callers bound memory with
    :meth:`clear`.
    """

    def __init__(
        self,
        provider: DistanceProvider | None = None,
        average_speed_kmh: float | None = None,
    ) -> None:
        self.provider = provider
        self.average_speed_kmh = average_speed_kmh or settings.average_speed_kmh
        self._distances: dict[PairKey, float] = {}
        self._times: dict[PairKey, float] = {}

    def distance(self, a: Location, b: Location) -> float:
        if a.id == b.id:
            return 0.0
        key = pair_key(a, b)
        cached = self._distances.get(key)
        if cached is None:
            cached = haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)
            self._distances[key] = cached
        return cached

    def travel_time(self, a: Location, b: Location) -> float:
        if a.id == b.id:
            return 0.0
        key = pair_key(a, b)
        cached = self._times.get(key)
        if cached is None:
            cached = travel_minutes(self.distance(a, b), self.average_speed_kmh)
            self._times[key] = cached
        return cached

    def precompute(self, locations: Sequence[Location], constraints: Constraints | None = None) -> None:
        """Fill both caches for every pair so the optimizers never compute on the hot path."""
        unique = list({location.id: location for location in locations}.values())
        if self.provider is not None and len(unique) >= 2:
            self._load_from_provider(unique, constraints)

        for i, first in enumerate(unique):
            for second in unique[i + 1:]:
                self.travel_time(first, second)

    def _load_from_provider(self, locations: list[Location], constraints: Constraints | None) -> None:
        missing = [
            (i, j)
            for i in range(len(locations))
            for j in range(i + 1, len(locations))
            if pair_key(locations[i], locations[j]) not in self._distances
        ]
        if not missing:
            return

        coordinates = [(location.latitude, location.longitude) for location in locations]
        try:
            table = self.provider.table(coordinates, exclude=_exclusions(constraints) or None)
        except (httpx.HTTPError, ConnectionError, ValueError) as e:
            logger.warning(f"Routing provider table request failed: {e}. Using haversine fallback.")
            return

        distances = table.get("distances") or []
        durations = table.get("durations") or []
        unreachable = 0
        for i, j in missing:
            try:
                meters = distances[i][j]
                seconds = durations[i][j]
            except IndexError:
                meters = seconds = None
            if meters is None or seconds is None:
                unreachable += 1
                continue
            key = pair_key(locations[i], locations[j])
            self._distances[key] = float(meters)
            self._times[key] = float(seconds) / 60.0

        if unreachable:
            logger.warning(
                f"{unreachable} of {len(missing)} stop pairs unreachable via routing provider; "
                f"using haversine estimates for them."
            )

    def clear(self) -> None:
        self._distances.clear()
        self._times.clear()

    def stats(self) -> CacheStats:
        return CacheStats(distances=len(self._distances), times=len(self._times))
