"""Genetic algorithm over stop permutations."""

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

Individual = list[Location]


def tournament_selection(
    evaluated: Sequence[tuple[Individual, float]],
    rng: random.Random,
    size: int,
) -> Individual:
    """Fittest (lowest fitness) of ``size`` uniformly drawn individuals."""
    best_route, best_fitness = evaluated[rng.randrange(len(evaluated))]
    for _ in range(1, size):
        route, fitness = evaluated[rng.randrange(len(evaluated))]
        if fitness < best_fitness:
            best_route, best_fitness = route, fitness
    return best_route


def order_crossover(parent1: Individual, parent2: Individual, rng: random.Random) -> Individual:
    """Copy a random slice of ``parent1``; fill the gaps in ``parent2`` order."""
    size = len(parent1)
    start = rng.randrange(size)
    end = rng.randint(start, size - 1)

    segment = parent1[start:end + 1]
    taken = {location.id for location in segment}
    remainder = [location for location in parent2 if location.id not in taken]
    return [*remainder[:start], *segment, *remainder[start:]]


def swap_mutation(route: Individual, rng: random.Random) -> Individual:
    mutated = list(route)
    i = rng.randrange(len(mutated))
    j = rng.randrange(len(mutated))
    mutated[i], mutated[j] = mutated[j], mutated[i]
    return mutated


class GeneticOptimizer:
    name = "genetic"

    def __init__(
        self,
        mutation_rate: float | None = None,
        elite_fraction: float | None = None,
        tournament_size: int | None = None,
    ) -> None:
        self.mutation_rate = settings.genetic_mutation_rate if mutation_rate is None else mutation_rate
        self.elite_fraction = settings.genetic_elite_fraction if elite_fraction is None else elite_fraction
        self.tournament_size = tournament_size or settings.genetic_tournament_size

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
        if len(problem.body) < 2:
            return evaluator.to_solution(problem.assemble(problem.body), constraints, self.name)

        population_size = options.population_size or min(
            settings.genetic_max_population, len(locations) * 10
        )
        population_size = max(2, population_size)
        generations = options.max_iterations or settings.genetic_max_generations
        elite_size = max(1, math.floor(population_size * self.elite_fraction))
        deadline = Deadline(options.time_limit)

        def fitness(body: Individual) -> float:
            return evaluator.fitness(problem.assemble(body), constraints)

        population: list[Individual] = []
        for _ in range(population_size):
            individual = list(problem.body)
            rng.shuffle(individual)
            population.append(individual)

        best_body = list(problem.body)
        best_fitness = fitness(best_body)
        stale_generations = 0

        for generation in range(generations):
            evaluated = sorted(
                ((individual, fitness(individual)) for individual in population),
                key=lambda pair: pair[1],
            )

            if evaluated[0][1] < best_fitness:
                best_body, best_fitness = list(evaluated[0][0]), evaluated[0][1]
                stale_generations = 0
            else:
                stale_generations += 1

            if options.improvement_threshold and stale_generations >= options.improvement_threshold:
                logger.debug(f"Genetic search stagnated after {generation + 1} generations")
                break
            if deadline.expired():
                logger.debug(f"Genetic search hit time limit after {generation + 1} generations")
                break
            if generation == generations - 1:
                break

            next_population: list[Individual] = [list(route) for route, _ in evaluated[:elite_size]]
            while len(next_population) < population_size:
                parent1 = tournament_selection(evaluated, rng, self.tournament_size)
                parent2 = tournament_selection(evaluated, rng, self.tournament_size)
                child = order_crossover(parent1, parent2, rng)
                if rng.random() < self.mutation_rate:
                    child = swap_mutation(child, rng)
                next_population.append(child)
            population = next_population

        return evaluator.to_solution(problem.assemble(best_body), constraints, self.name)
