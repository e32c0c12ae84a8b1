"""2-opt local search."""

from __future__ import annotations

import logging
from typing import Sequence

from ...config import settings
from ...models.domain import Constraints, Location
from .distance import DistanceOracle
from .evaluator import SolutionEvaluator
from .models import Solution

logger = logging.getLogger(__name__)

# Gains below this are float noise and would make the scan cycle.
MIN_GAIN_METERS = 1e-9


class TwoOptImprover:
    """First-improvement 2-opt over an open path.

    Only the interior segment ``route[i+1..j]`` is ever reversed, so the first
    and last positions (where start/end pins live) never move.
    """

    def __init__(self, oracle: DistanceOracle, max_passes: int | None = None) -> None:
        self.oracle = oracle
        self.max_passes = max_passes or settings.two_opt_max_passes

    def improve_route(self, route: Sequence[Location]) -> list[Location]:
        best = list(route)
        distance = self.oracle.distance
        passes = 0
        improved = True
        while improved and passes < self.max_passes:
            improved = False
            passes += 1
            last = len(best) - 1
            for i in range(0, last - 2):
                for j in range(i + 2, last):
                    current = distance(best[i], best[i + 1]) + distance(best[j], best[j + 1])
                    swapped = distance(best[i], best[j]) + distance(best[i + 1], best[j + 1])
                    if current - swapped > MIN_GAIN_METERS:
                        best[i + 1:j + 1] = reversed(best[i + 1:j + 1])
                        improved = True
                        break
                if improved:
                    break

        if passes >= self.max_passes and improved:
            logger.debug(f"2-opt stopped at pass cap ({self.max_passes}) for {len(best)} stops")
        return best

    def improve(
        self,
        solution: Solution,
        constraints: Constraints | None,
        evaluator: SolutionEvaluator,
    ) -> Solution:
        route = self.improve_route(solution.route)
        return evaluator.to_solution(route, constraints, f"{solution.algorithm}_2opt")
