"""Simulated annealing over stop permutations."""

from __future__ import annotations

import logging
import math
import random
from typing import Sequence

from ...config import settings
from ...models.domain import Constraints, Location
from .base import Deadline, build_problem
from .distance import DistanceOracle
from .evaluator import SolutionEvaluator
from .models import OptimizationOptions, Solution

logger = logging.getLogger(__name__)


def acceptance_probability(energy_delta: float, temperature: float) -> float:
    if energy_delta < 0:
        return 1.0
    return math.exp(-energy_delta / temperature)


class AnnealingOptimizer:
    name = "simulated_annealing"

    def __init__(
        self,
        cooling_rate: float | None = None,
        min_temperature: float | None = None,
    ) -> None:
        self.cooling_rate = cooling_rate or settings.annealing_cooling_rate
        self.min_temperature = min_temperature or settings.annealing_min_temperature

    def optimize(
        self,
        locations: Sequence[Location],
        constraints: Constraints,
        options: OptimizationOptions,
        oracle: DistanceOracle,
        evaluator: SolutionEvaluator,
        rng: random.Random,
    ) -> Solution:
        problem = build_problem(locations, constraints)
        temperature = options.temperature or settings.annealing_initial_temperature
        max_iterations = options.max_iterations or settings.annealing_max_iterations
        deadline = Deadline(options.time_limit)

        current_body = list(problem.body)
        if len(current_body) < 2:
            return evaluator.to_solution(problem.assemble(current_body), constraints, self.name)

        current_metrics = evaluator.evaluate(problem.assemble(current_body), constraints)
        current_energy = current_metrics.total_distance + current_metrics.total_time
        best_body = list(current_body)
        # Best by score; equal scores fall back to lower energy.
        best_key = (current_metrics.score, -current_energy)

        iteration = 0
        while temperature > self.min_temperature and iteration < max_iterations:
            if deadline.expired():
                logger.debug(f"Annealing hit time limit after {iteration} iterations")
                break

            neighbor = list(current_body)
            i = rng.randrange(len(neighbor))
            j = rng.randrange(len(neighbor))
            neighbor[i], neighbor[j] = neighbor[j], neighbor[i]

            metrics = evaluator.evaluate(problem.assemble(neighbor), constraints)
            energy = metrics.total_distance + metrics.total_time
            delta = energy - current_energy

            if delta < 0 or rng.random() < acceptance_probability(delta, temperature):
                current_body = neighbor
                current_energy = energy
                key = (metrics.score, -energy)
                if key > best_key:
                    best_body, best_key = list(neighbor), key

            temperature *= self.cooling_rate
            iteration += 1

        return evaluator.to_solution(problem.assemble(best_body), constraints, self.name)
