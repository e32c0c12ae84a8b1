import random

from routeopt.models.domain import Constraints, Location
from routeopt.services.routing import genetic
from routeopt.services.routing.distance import DistanceOracle
from routeopt.services.routing.evaluator import SolutionEvaluator
from routeopt.services.routing.genetic import (
    GeneticOptimizer,
    order_crossover,
    swap_mutation,
    tournament_selection,
)
from routeopt.services.routing.models import OptimizationOptions


def _location(lid: str, lat: float, lon: float) -> Location:
    return Location(id=lid, name=f"Stop {lid}", latitude=lat, longitude=lon)


def _stops(count: int = 7) -> list[Location]:
    rng = random.Random(5)
    return [_location(f"S{i}", rng.uniform(21.4, 21.6), rng.uniform(39.1, 39.3)) for i in range(count)]


class CountingEvaluator(SolutionEvaluator):
    def __init__(self, oracle):
        super().__init__(oracle)
        self.fitness_calls = 0

    def fitness(self, route, constraints=None):
        self.fitness_calls += 1
        return super().fitness(route, constraints)


def test_order_crossover_yields_a_permutation():
    rng = random.Random(1)
    stops = _stops(8)
    parent1 = list(stops)
    parent2 = list(reversed(stops))

    for _ in range(20):
        child = order_crossover(parent1, parent2, rng)
        assert sorted(stop.id for stop in child) == sorted(stop.id for stop in stops)


def test_order_crossover_keeps_a_parent1_segment_in_place():
    stops = _stops(6)
    parent1 = list(stops)
    parent2 = list(reversed(stops))

    rng = random.Random(3)
    start = rng.randrange(6)
    end = rng.randint(start, 5)
    child = order_crossover(parent1, parent2, random.Random(3))

    assert child[start:end + 1] == parent1[start:end + 1]


def test_swap_mutation_preserves_members():
    stops = _stops(5)
    mutated = swap_mutation(stops, random.Random(9))

    assert sorted(stop.id for stop in mutated) == sorted(stop.id for stop in stops)


def test_tournament_prefers_fitter_individuals():
    stops = _stops(3)
    evaluated = [([stops[0]], 30.0), ([stops[1]], 10.0), ([stops[2]], 20.0)]

    winner = tournament_selection(evaluated, random.Random(0), size=200)

    assert winner == [stops[1]]


def test_genetic_returns_pinned_permutation():
    stops = _stops()
    oracle = DistanceOracle()
    evaluator = SolutionEvaluator(oracle)
    constraints = Constraints(start_location=stops[3], end_location=stops[5])

    solution = GeneticOptimizer().optimize(
        stops, constraints, OptimizationOptions(max_iterations=40), oracle, evaluator, random.Random(2)
    )

    assert solution.route[0].id == "S3"
    assert solution.route[-1].id == "S5"
    assert sorted(stop.id for stop in solution.route) == sorted(stop.id for stop in stops)
    assert solution.algorithm == "genetic"


def test_genetic_is_deterministic_for_a_seed():
    stops = _stops()
    oracle = DistanceOracle()
    evaluator = SolutionEvaluator(oracle)
    options = OptimizationOptions(max_iterations=30)

    first = GeneticOptimizer().optimize(stops, Constraints(), options, oracle, evaluator, random.Random(7))
    second = GeneticOptimizer().optimize(stops, Constraints(), options, oracle, evaluator, random.Random(7))

    assert [stop.id for stop in first.route] == [stop.id for stop in second.route]


def test_genetic_never_returns_worse_than_input_order():
    stops = _stops()
    oracle = DistanceOracle()
    evaluator = SolutionEvaluator(oracle)

    solution = GeneticOptimizer().optimize(
        stops, Constraints(), OptimizationOptions(max_iterations=50), oracle, evaluator, random.Random(4)
    )

    assert evaluator.fitness(solution.route) <= evaluator.fitness(stops)


def test_stagnation_threshold_stops_early():
    stops = _stops(4)
    oracle = DistanceOracle()
    evaluator = CountingEvaluator(oracle)
    options = OptimizationOptions(max_iterations=500, population_size=10, improvement_threshold=3)

    GeneticOptimizer().optimize(
        stops, Constraints(start_location=stops[0]), options, oracle, evaluator, random.Random(1)
    )

    assert evaluator.fitness_calls < 500 * 10


def test_final_generation_is_not_bred(monkeypatch):
    crossovers = []

    def counting_crossover(parent1, parent2, rng):
        crossovers.append(1)
        return order_crossover(parent1, parent2, rng)

    monkeypatch.setattr(genetic, "order_crossover", counting_crossover)
    stops = _stops(5)
    oracle = DistanceOracle()
    evaluator = CountingEvaluator(oracle)
    options = OptimizationOptions(max_iterations=2, population_size=10)

    GeneticOptimizer(elite_fraction=0.2).optimize(
        stops, Constraints(), options, oracle, evaluator, random.Random(2)
    )

    # Only the first generation breeds: 10 minus 2 elites.
    assert len(crossovers) == 8
    # Input order plus two evaluated generations.
    assert evaluator.fitness_calls == 1 + 2 * 10
