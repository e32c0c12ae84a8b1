"""Multi-stop route optimization entry point.

Runs one optimizer, or the hybrid selection of several, polishes the winner
with 2-opt and annotates constraint violations. Distance and time lookups are
memoised in a :class:`DistanceOracle` owned by the optimizer instance; the
cache outlives single calls so repeated work over the same geography is cheap,
and must be cleared periodically by the owner.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import replace
from typing import Sequence

from ...config import settings
from ...models.domain import Constraints, Location
from .annealing import AnnealingOptimizer
from .base import RouteOptimizerStrategy
from .distance import DistanceOracle, DistanceProvider
from .evaluator import SolutionEvaluator
from .genetic import GeneticOptimizer
from .models import CacheStats, OptimizationOptions, Solution
from .nearest_neighbor import NearestNeighborOptimizer
from .two_opt import TwoOptImprover

logger = logging.getLogger(__name__)

DEFAULT_BOUNDED_REQUEST = 500


class RouteOptimizer:
    def __init__(
        self,
        oracle: DistanceOracle | None = None,
        evaluator: SolutionEvaluator | None = None,
        improver: TwoOptImprover | None = None,
        strategies: Sequence[RouteOptimizerStrategy] | None = None,
    ) -> None:
        self.oracle = oracle or DistanceOracle()
        self.evaluator = evaluator or SolutionEvaluator(self.oracle)
        self.improver = improver or TwoOptImprover(self.oracle)
        self.fallback = NearestNeighborOptimizer()
        self.strategies: dict[str, RouteOptimizerStrategy] = {
            strategy.name: strategy
            for strategy in (strategies or (self.fallback, GeneticOptimizer(), AnnealingOptimizer()))
        }

    @classmethod
    def with_provider(cls, provider: DistanceProvider) -> "RouteOptimizer":
        return cls(oracle=DistanceOracle(provider=provider))

    def solve(
        self,
        locations: Sequence[Location],
        constraints: Constraints | None = None,
        options: OptimizationOptions | None = None,
    ) -> Solution:
        if len(locations) < 2:
            raise ValueError("Route optimization requires at least 2 locations.")
        constraints = constraints or Constraints()
        options = options or OptimizationOptions(algorithm=settings.default_algorithm)
        if options.algorithm != "hybrid" and options.algorithm not in self.strategies:
            raise ValueError(f"Unknown optimization algorithm '{options.algorithm}'.")

        if len(locations) > settings.large_instance_threshold:
            logger.warning(
                f"Optimizing a large route ({len(locations)} stops); "
                f"expect longer solve times and lower solution quality."
            )

        started = time.perf_counter()
        try:
            self.oracle.precompute(self._all_stops(locations, constraints), constraints)
            if options.algorithm == "hybrid":
                best = self._solve_hybrid(locations, constraints, options)
            else:
                best = self._run(self.strategies[options.algorithm], locations, constraints, options)
            best = self.improver.improve(best, constraints, self.evaluator)
            solution = self.evaluator.validate(best, constraints)
        except Exception:
            logger.exception(
                f"Route optimization failed for {len(locations)} stops; falling back to nearest neighbor."
            )
            fallback = self._run(self.fallback, locations, constraints, options)
            return self.evaluator.validate(fallback, constraints)

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"Route optimized: stops={len(locations)} algorithm={solution.algorithm} "
            f"distance={solution.total_distance:.0f}m time={solution.total_time:.1f}min "
            f"score={solution.optimization_score:.2f} violations={len(solution.violations)} "
            f"elapsed={elapsed_ms:.0f}ms"
        )
        return solution

    def hybrid_plan(
        self, location_count: int, options: OptimizationOptions
    ) -> list[tuple[RouteOptimizerStrategy, OptimizationOptions]]:
        """Strategies the hybrid mode runs for an instance of ``location_count`` stops."""
        nearest = self.strategies["nearest_neighbor"]
        annealing = self.strategies["simulated_annealing"]
        if location_count <= settings.hybrid_full_search_max_stops:
            return [
                (nearest, options),
                (annealing, options),
                (self.strategies["genetic"], options),
            ]
        if location_count <= settings.hybrid_annealing_max_stops:
            return [(nearest, options), (annealing, options)]

        bounded = replace(
            options,
            max_iterations=min(
                settings.hybrid_bounded_annealing_iterations,
                options.max_iterations or DEFAULT_BOUNDED_REQUEST,
            ),
        )
        return [(nearest, options), (annealing, bounded)]

    def _solve_hybrid(
        self,
        locations: Sequence[Location],
        constraints: Constraints,
        options: OptimizationOptions,
    ) -> Solution:
        candidates = [
            self.improver.improve(self._run(strategy, locations, constraints, run_options), constraints, self.evaluator)
            for strategy, run_options in self.hybrid_plan(len(locations), options)
        ]
        best = candidates[0]
        for candidate in candidates[1:]:
            if candidate.optimization_score > best.optimization_score:
                best = candidate
        logger.debug(
            "Hybrid candidates: "
            + ", ".join(f"{candidate.algorithm}={candidate.optimization_score:.3f}" for candidate in candidates)
        )
        return replace(best, algorithm="hybrid")

    def _run(
        self,
        strategy: RouteOptimizerStrategy,
        locations: Sequence[Location],
        constraints: Constraints,
        options: OptimizationOptions,
    ) -> Solution:
        # A fresh generator per strategy: seeded runs match standalone and hybrid.
        seed = options.seed if options.seed is not None else settings.random_seed
        rng = random.Random(seed)
        return strategy.optimize(locations, constraints, options, self.oracle, self.evaluator, rng)

    @staticmethod
    def _all_stops(locations: Sequence[Location], constraints: Constraints) -> list[Location]:
        pins = [pin for pin in (constraints.start_location, constraints.end_location) if pin is not None]
        return [*locations, *pins]

    def clear_cache(self) -> None:
        self.oracle.clear()

    def cache_stats(self) -> CacheStats:
        return self.oracle.stats()


route_optimizer = RouteOptimizer()


def solve(
    locations: Sequence[Location],
    constraints: Constraints | None = None,
    options: OptimizationOptions | None = None,
) -> Solution:
    return route_optimizer.solve(locations, constraints, options)


def clear_cache() -> None:
    route_optimizer.clear_cache()


def cache_stats() -> CacheStats:
    return route_optimizer.cache_stats()
