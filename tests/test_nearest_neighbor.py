from datetime import datetime, timedelta, timezone

from routeopt.models.domain import Constraints, Location, TimeWindow
from routeopt.services.routing.distance import DistanceOracle
from routeopt.services.routing.evaluator import SolutionEvaluator
from routeopt.services.routing.models import OptimizationOptions
from routeopt.services.routing.nearest_neighbor import NearestNeighborOptimizer

NOW = datetime(2026, 1, 5, 8, 0, tzinfo=timezone.utc)


def _location(lid: str, lat: float, lon: float, **extra) -> Location:
    return Location(id=lid, name=f"Stop {lid}", latitude=lat, longitude=lon, **extra)


def _solve(locations, constraints=None):
    oracle = DistanceOracle()
    evaluator = SolutionEvaluator(oracle, clock=lambda: NOW)
    return NearestNeighborOptimizer().optimize(
        locations, constraints or Constraints(), OptimizationOptions(), oracle, evaluator
    )


def _square():
    return [
        _location("a", 0.0, 0.0),
        _location("b", 0.0, 1.0),
        _location("c", 1.0, 1.0),
        _location("d", 1.0, 0.0),
    ]


def test_unit_square_walks_the_perimeter():
    solution = _solve(_square())

    assert [stop.id for stop in solution.route] == ["a", "b", "c", "d"]
    assert solution.algorithm == "nearest_neighbor"


def test_starts_from_pinned_location():
    stops = _square()
    solution = _solve(stops, Constraints(start_location=stops[2]))

    assert solution.route[0].id == "c"
    assert sorted(stop.id for stop in solution.route) == ["a", "b", "c", "d"]


def test_end_pin_inside_the_set_stays_last():
    stops = _square()
    solution = _solve(stops, Constraints(end_location=stops[1]))

    assert solution.route[-1].id == "b"
    assert len(solution.route) == 4


def test_end_pin_outside_the_set_is_appended():
    depot = _location("depot", 0.5, 0.5)
    solution = _solve(_square(), Constraints(end_location=depot))

    assert [stop.id for stop in solution.route][-1] == "depot"
    assert len(solution.route) == 5


def test_round_trip_returns_to_start():
    stops = _square()
    solution = _solve(stops, Constraints(start_location=stops[0], end_location=stops[0]))

    ids = [stop.id for stop in solution.route]
    assert ids[0] == ids[-1] == "a"
    assert sorted(ids[1:-1]) == ["b", "c", "d"]


def test_priority_pulls_a_farther_stop_forward():
    origin = _location("origin", 0.0, 0.0)
    near = _location("near", 0.0, 0.01)
    urgent = _location("urgent", 0.0, 0.015, priority=9)

    solution = _solve([origin, near, urgent])

    assert [stop.id for stop in solution.route] == ["origin", "urgent", "near"]


def test_closed_window_is_deferred_when_windows_are_respected():
    origin = _location("origin", 0.0, 0.0)
    closed = _location(
        "closed",
        0.0,
        0.01,
        time_window=TimeWindow(NOW - timedelta(days=1, hours=1), NOW - timedelta(days=1)),
    )
    far = _location("far", 0.0, 0.2)

    respected = _solve([origin, closed, far], Constraints(respect_time_windows=True))
    ignored = _solve([origin, closed, far])

    assert [stop.id for stop in respected.route] == ["origin", "far", "closed"]
    assert [stop.id for stop in ignored.route] == ["origin", "closed", "far"]
