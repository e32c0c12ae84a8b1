"""Route evaluation, fitness and constraint validation."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Sequence

from ...config import settings
from ...models.domain import Constraints, Location, as_utc
from .distance import DistanceOracle
from .models import RouteMetrics, Solution

DISTANCE_PENALTY_PER_METER = 10.0
TIME_PENALTY_PER_MINUTE = 100.0
CAPACITY_PENALTY_PER_UNIT = 1000.0
LATENESS_PENALTY_PER_MINUTE = 100.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class ScheduledStop:
    location: Location
    arrival: datetime
    departure: datetime
    late_minutes: float


def required_capacity(route: Sequence[Location]) -> float:
    # A round trip lists its depot twice; load is counted once per stop.
    unique = {location.id: location for location in route}
    return sum(location.capacity_required or 0 for location in unique.values())


class SolutionEvaluator:
    """Turns an ordered route into totals, a ranking score and violations."""

    def __init__(
        self,
        oracle: DistanceOracle,
        fuel_cost_per_km: float | None = None,
        time_cost_per_hour: float | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.oracle = oracle
        self.fuel_cost_per_km = settings.fuel_cost_per_km if fuel_cost_per_km is None else fuel_cost_per_km
        self.time_cost_per_hour = settings.time_cost_per_hour if time_cost_per_hour is None else time_cost_per_hour
        self.clock = clock

    def totals(self, route: Sequence[Location]) -> tuple[float, float]:
        """Return ``(distance_m, time_min)`` including service time at every destination."""
        total_distance = 0.0
        total_time = 0.0
        for current, following in zip(route, route[1:]):
            total_distance += self.oracle.distance(current, following)
            total_time += self.oracle.travel_time(current, following)
            total_time += following.service_time or 0
        return total_distance, total_time

    def cost(self, distance: float, time: float) -> float:
        fuel_cost = (distance / 1000.0) * self.fuel_cost_per_km
        time_cost = (time / 60.0) * self.time_cost_per_hour
        return fuel_cost + time_cost

    @staticmethod
    def score(distance: float, time: float, location_count: int) -> float:
        """Relative 0-100 ranking signal; only meaningful when comparing candidates."""
        count = max(1, location_count)
        distance_penalty = min(50.0, distance / (count * 10000.0))
        time_penalty = min(30.0, time / (count * 60.0))
        return max(0.0, 100.0 - distance_penalty - time_penalty)

    def evaluate(self, route: Sequence[Location], constraints: Constraints | None = None) -> RouteMetrics:
        total_distance, total_time = self.totals(route)
        return RouteMetrics(
            total_distance=total_distance,
            total_time=total_time,
            total_cost=self.cost(total_distance, total_time),
            score=self.score(total_distance, total_time, len(route)),
        )

    def schedule(self, route: Sequence[Location], start: datetime | None = None) -> list[ScheduledStop]:
        """Simulate arrival/departure instants, waiting at stops reached before their window opens."""
        moment = as_utc(start) if start is not None else self.clock()
        stops: list[ScheduledStop] = []
        previous: Location | None = None
        for location in route:
            if previous is not None:
                moment += timedelta(minutes=self.oracle.travel_time(previous, location))
            arrival = moment
            late_minutes = 0.0
            window = location.time_window
            if window is not None:
                opens = as_utc(window.earliest_arrival)
                if moment < opens:
                    moment = opens
            if previous is not None:
                moment += timedelta(minutes=location.service_time or 0)
            if window is not None:
                closes = as_utc(window.latest_departure)
                if moment > closes:
                    late_minutes = (moment - closes).total_seconds() / 60.0
            stops.append(ScheduledStop(location=location, arrival=arrival, departure=moment, late_minutes=late_minutes))
            previous = location
        return stops

    def fitness(self, route: Sequence[Location], constraints: Constraints | None = None) -> float:
        """Lower is better; infeasible routes rank last but are still comparable."""
        total_distance, total_time = self.totals(route)
        penalties = 0.0
        if constraints is not None:
            if constraints.max_distance and total_distance > constraints.max_distance:
                penalties += (total_distance - constraints.max_distance) * DISTANCE_PENALTY_PER_METER
            if constraints.max_time and total_time > constraints.max_time:
                penalties += (total_time - constraints.max_time) * TIME_PENALTY_PER_MINUTE
            if constraints.vehicle_capacity:
                excess = required_capacity(route) - constraints.vehicle_capacity
                if excess > 0:
                    penalties += excess * CAPACITY_PENALTY_PER_UNIT
            if constraints.respect_time_windows:
                lateness = sum(stop.late_minutes for stop in self.schedule(route))
                penalties += lateness * LATENESS_PENALTY_PER_MINUTE
        return total_distance + total_time + penalties

    def to_solution(
        self,
        route: Sequence[Location],
        constraints: Constraints | None,
        algorithm: str,
    ) -> Solution:
        metrics = self.evaluate(route, constraints)
        return Solution(
            route=list(route),
            total_distance=metrics.total_distance,
            total_time=metrics.total_time,
            total_cost=metrics.total_cost,
            algorithm=algorithm,
            optimization_score=metrics.score,
        )

    def validate(self, solution: Solution, constraints: Constraints | None) -> Solution:
        """Recompute totals and annotate breaches; the route itself is never changed."""
        metrics = self.evaluate(solution.route, constraints)
        violations: list[str] = []
        if constraints is not None:
            if constraints.max_distance and metrics.total_distance > constraints.max_distance:
                violations.append(
                    f"Exceeds maximum distance by {round(metrics.total_distance - constraints.max_distance)}m"
                )
            if constraints.max_time and metrics.total_time > constraints.max_time:
                violations.append(
                    f"Exceeds maximum time by {round(metrics.total_time - constraints.max_time)} minutes"
                )
            if constraints.vehicle_capacity:
                total_required = required_capacity(solution.route)
                if total_required > constraints.vehicle_capacity:
                    violations.append(
                        f"Exceeds vehicle capacity by {total_required - constraints.vehicle_capacity:g}"
                    )
            if constraints.respect_time_windows:
                for stop in self.schedule(solution.route):
                    if stop.late_minutes > 0:
                        violations.append(
                            f"Misses time window at {stop.location.name} ({stop.location.id}) "
                            f"by {round(stop.late_minutes)} minutes"
                        )

        return replace(
            solution,
            route=list(solution.route),
            total_distance=metrics.total_distance,
            total_time=metrics.total_time,
            total_cost=metrics.total_cost,
            optimization_score=metrics.score,
            violations=violations,
        )
