"""Priority and time-window aware nearest-neighbour construction."""

from __future__ import annotations

import math
import random
from datetime import datetime, timedelta
from typing import Sequence

from ...models.domain import Constraints, Location, as_utc
from .base import build_problem
from .distance import DistanceOracle
from .evaluator import SolutionEvaluator
from .models import OptimizationOptions, Solution

MISSED_WINDOW_PENALTY = 50000.0
EARLY_ARRIVAL_PENALTY = 10000.0


def location_score(
    location: Location,
    distance: float,
    constraints: Constraints,
    arrival: datetime,
) -> float:
    """Lower is better: distance pulled forward by priority, pushed back by window misses."""
    score = distance
    if location.priority:
        score = score / math.sqrt(location.priority)

    if constraints.respect_time_windows and location.time_window is not None:
        if arrival < as_utc(location.time_window.earliest_arrival):
            score += EARLY_ARRIVAL_PENALTY
        if arrival > as_utc(location.time_window.latest_departure):
            score += MISSED_WINDOW_PENALTY
    return score


class NearestNeighborOptimizer:
    name = "nearest_neighbor"

    def optimize(
        self,
        locations: Sequence[Location],
        constraints: Constraints,
        options: OptimizationOptions,
        oracle: DistanceOracle,
        evaluator: SolutionEvaluator,
        rng: random.Random | None = None,
    ) -> Solution:
        problem = build_problem(locations, constraints)
        unvisited = list(problem.body)
        if problem.head:
            current = problem.head[0]
        else:
            current = unvisited.pop(0)
        ordered: list[Location] = [] if problem.head else [current]

        moment = evaluator.clock()
        while unvisited:
            best_location = unvisited[0]
            best_score = math.inf
            for location in unvisited:
                arrival = moment + timedelta(minutes=oracle.travel_time(current, location))
                score = location_score(location, oracle.distance(current, location), constraints, arrival)
                if score < best_score:
                    best_score = score
                    best_location = location

            moment += timedelta(
                minutes=oracle.travel_time(current, best_location) + (best_location.service_time or 0)
            )
            ordered.append(best_location)
            unvisited.remove(best_location)
            current = best_location

        if problem.head:
            route = problem.assemble(ordered)
        else:
            route = [*ordered, *problem.tail]
        return evaluator.to_solution(route, constraints, self.name)
