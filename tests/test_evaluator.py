from datetime import datetime, timedelta, timezone

import pytest

from routeopt.models.domain import Constraints, Location, TimeWindow
from routeopt.services.routing.distance import DistanceOracle
from routeopt.services.routing.evaluator import SolutionEvaluator

NOW = datetime(2026, 1, 5, 8, 0, tzinfo=timezone.utc)


def _location(lid: str, lat: float, lon: float, **extra) -> Location:
    return Location(id=lid, name=f"Stop {lid}", latitude=lat, longitude=lon, **extra)


def _evaluator() -> SolutionEvaluator:
    oracle = DistanceOracle(average_speed_kmh=50)
    return SolutionEvaluator(oracle, fuel_cost_per_km=0.15, time_cost_per_hour=25, clock=lambda: NOW)


def test_totals_include_destination_service_time():
    evaluator = _evaluator()
    oracle = evaluator.oracle
    a = _location("A", 0.0, 0.0, service_time=30)
    b = _location("B", 0.0, 0.1, service_time=10)
    c = _location("C", 0.0, 0.2, service_time=5)

    metrics = evaluator.evaluate([a, b, c])

    assert metrics.total_distance == pytest.approx(oracle.distance(a, b) + oracle.distance(b, c))
    assert metrics.total_time == pytest.approx(oracle.travel_time(a, b) + oracle.travel_time(b, c) + 15)


def test_cost_model_is_linear_in_distance_and_time():
    evaluator = _evaluator()

    assert evaluator.cost(10000, 60) == pytest.approx(10 * 0.15 + 25)
    assert evaluator.cost(0, 0) == 0


def test_score_is_capped_and_floored():
    assert SolutionEvaluator.score(0, 0, 3) == 100
    assert SolutionEvaluator.score(100000, 60, 2) == pytest.approx(94.5)
    assert SolutionEvaluator.score(10**12, 10**9, 2) == pytest.approx(20)


def test_validate_reports_distance_time_and_capacity_breaches():
    evaluator = _evaluator()
    route = [
        _location("A", 0.0, 0.0, capacity_required=4),
        _location("B", 0.0, 1.0, capacity_required=4),
        _location("C", 0.0, 2.0, capacity_required=4),
    ]
    solution = evaluator.to_solution(route, None, "nearest_neighbor")

    validated = evaluator.validate(
        solution, Constraints(max_distance=1000, max_time=10, vehicle_capacity=10)
    )

    assert validated.route == route
    assert any(v.startswith("Exceeds maximum distance") for v in validated.violations)
    assert any(v.startswith("Exceeds maximum time") for v in validated.violations)
    assert "Exceeds vehicle capacity by 2" in validated.violations


def test_validate_without_breaches_has_no_violations():
    evaluator = _evaluator()
    route = [_location("A", 0.0, 0.0), _location("B", 0.0, 0.01)]
    solution = evaluator.to_solution(route, None, "genetic")

    validated = evaluator.validate(solution, Constraints(max_distance=10_000, max_time=60))

    assert validated.violations == []
    assert validated.algorithm == "genetic"


def test_closed_time_window_is_reported_only_when_respected():
    evaluator = _evaluator()
    closed = _location(
        "LATE",
        0.0,
        0.05,
        time_window=TimeWindow(NOW - timedelta(days=1, hours=2), NOW - timedelta(days=1)),
    )
    route = [_location("A", 0.0, 0.0), closed]
    solution = evaluator.to_solution(route, None, "nearest_neighbor")

    respected = evaluator.validate(solution, Constraints(respect_time_windows=True))
    ignored = evaluator.validate(solution, Constraints(respect_time_windows=False))

    assert any("LATE" in violation for violation in respected.violations)
    assert ignored.violations == []


def test_schedule_waits_for_window_to_open():
    evaluator = _evaluator()
    opens = NOW + timedelta(hours=3)
    later = _location("B", 0.0, 0.01, service_time=10, time_window=TimeWindow(opens, opens + timedelta(hours=1)))

    schedule = evaluator.schedule([_location("A", 0.0, 0.0), later])

    assert schedule[1].arrival < opens
    assert schedule[1].departure == opens + timedelta(minutes=10)
    assert schedule[1].late_minutes == 0


def test_fitness_penalises_constraint_excess():
    evaluator = _evaluator()
    route = [_location("A", 0.0, 0.0), _location("B", 0.0, 1.0)]

    unconstrained = evaluator.fitness(route, Constraints())
    constrained = evaluator.fitness(route, Constraints(max_distance=1000))
    metrics = evaluator.evaluate(route)

    assert unconstrained == pytest.approx(metrics.total_distance + metrics.total_time)
    assert constrained > unconstrained
