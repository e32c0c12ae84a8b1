"""Multi-stop route optimization."""

from .models import CacheStats, OptimizationOptions, Solution
from .solver import RouteOptimizer, cache_stats, clear_cache, solve

__all__ = [
    "CacheStats",
    "OptimizationOptions",
    "RouteOptimizer",
    "Solution",
    "cache_stats",
    "clear_cache",
    "solve",
]
