"""Route optimization endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.routing import CacheStatsModel, OptimizationRequest, OptimizationResponse
from ...services.routing.service import get_route_optimizer, optimize_stops

router = APIRouter(prefix="/routes", tags=["routes"])
logger = logging.getLogger(__name__)


@router.post("/optimize", response_model=OptimizationResponse, status_code=status.HTTP_200_OK)
def optimize(payload: OptimizationRequest) -> OptimizationResponse:
    try:
        return optimize_stops(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error optimizing route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize route: {exc}",
        ) from exc


@router.get("/cache", response_model=CacheStatsModel, status_code=status.HTTP_200_OK)
def cache_stats() -> CacheStatsModel:
    stats = get_route_optimizer().cache_stats()
    return CacheStatsModel(distances=stats.distances, times=stats.times)


@router.delete("/cache", response_model=CacheStatsModel, status_code=status.HTTP_200_OK)
def clear_cache() -> CacheStatsModel:
    """Drop memoised distances; meant for periodic maintenance jobs."""
    optimizer = get_route_optimizer()
    before = optimizer.cache_stats()
    optimizer.clear_cache()
    logger.info(f"Cleared route cache ({before.distances} distances, {before.times} times)")
    return CacheStatsModel(distances=0, times=0)
