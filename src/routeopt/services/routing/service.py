"""Route optimization orchestration service."""

from __future__ import annotations

import logging
from functools import lru_cache

from ...config import settings
from ...models.domain import Constraints, Location, TimeWindow
from ...schemas.routing import (
    LocationModel,
    OptimizationRequest,
    OptimizationResponse,
    RouteConstraintsModel,
    TimeWindowModel,
)
from .base import build_problem
from .models import OptimizationOptions
from .osrm_client import OSRMClient
from .solver import RouteOptimizer, route_optimizer

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_route_optimizer() -> RouteOptimizer:
    """Shared optimizer; backed by OSRM when a base URL is configured."""
    if not settings.osrm_base_url:
        return route_optimizer
    try:
        client = OSRMClient()
    except ValueError as e:
        logger.error(f"OSRM client initialization failed: {e}. Using haversine distances.")
        return route_optimizer
    logger.info(f"Route optimizer using OSRM distances from {client.base_url}")
    return RouteOptimizer.with_provider(client)


def _to_location(model: LocationModel) -> Location:
    window = None
    if model.time_window is not None:
        window = TimeWindow(
            earliest_arrival=model.time_window.earliest_arrival,
            latest_departure=model.time_window.latest_departure,
        )
    return Location(
        id=model.id,
        name=model.name or model.id,
        latitude=model.latitude,
        longitude=model.longitude,
        time_window=window,
        service_time=model.service_time,
        priority=model.priority,
        capacity_required=model.capacity_required,
    )


def _to_location_model(location: Location) -> LocationModel:
    window = None
    if location.time_window is not None:
        window = TimeWindowModel(
            earliest_arrival=location.time_window.earliest_arrival,
            latest_departure=location.time_window.latest_departure,
        )
    return LocationModel(
        id=location.id,
        name=location.name,
        latitude=location.latitude,
        longitude=location.longitude,
        time_window=window,
        service_time=location.service_time,
        priority=location.priority,
        capacity_required=location.capacity_required,
    )


def _build_constraints(payload: RouteConstraintsModel | None) -> Constraints:
    if payload is None:
        return Constraints()
    return Constraints(
        max_distance=payload.max_distance,
        max_time=payload.max_time,
        vehicle_capacity=payload.vehicle_capacity,
        respect_time_windows=payload.respect_time_windows,
        start_location=_to_location(payload.start_location) if payload.start_location else None,
        end_location=_to_location(payload.end_location) if payload.end_location else None,
        avoid_tolls=payload.avoid_tolls,
        avoid_highways=payload.avoid_highways,
    )


def _build_options(payload: OptimizationRequest) -> OptimizationOptions:
    if payload.options is None:
        return OptimizationOptions(algorithm=settings.default_algorithm)
    values = payload.options.model_dump()
    if values["algorithm"] is None:
        values["algorithm"] = settings.default_algorithm
    return OptimizationOptions(**values)


def optimize_stops(payload: OptimizationRequest) -> OptimizationResponse:
    locations = [_to_location(model) for model in payload.locations]
    ids = [location.id for location in locations]
    if len(set(ids)) != len(ids):
        raise ValueError("Location ids must be unique within a request.")

    constraints = _build_constraints(payload.constraints)
    options = _build_options(payload)
    optimizer = get_route_optimizer()

    solution = optimizer.solve(locations, constraints, options)

    # Savings are reported against visiting the stops in the order given.
    input_order = build_problem(locations, constraints)
    baseline = optimizer.evaluator.evaluate(input_order.assemble(input_order.body), constraints)
    cache = optimizer.cache_stats()
    metadata = {
        "stops": len(locations),
        "distance_source": "osrm" if optimizer.oracle.provider is not None else "haversine",
        "baseline_distance": baseline.total_distance,
        "baseline_time": baseline.total_time,
        "distance_saved": max(0.0, baseline.total_distance - solution.total_distance),
        "time_saved": max(0.0, baseline.total_time - solution.total_time),
        "cache": {"distances": cache.distances, "times": cache.times},
    }
    if options.seed is not None:
        metadata["seed"] = options.seed

    return OptimizationResponse(
        route=[_to_location_model(location) for location in solution.route],
        total_distance=solution.total_distance,
        total_time=solution.total_time,
        total_cost=solution.total_cost,
        violations=list(solution.violations),
        algorithm=solution.algorithm,
        optimization_score=solution.optimization_score,
        metadata=metadata,
    )
