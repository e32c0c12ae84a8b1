"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional

from ...models.domain import Location

Algorithm = Literal["nearest_neighbor", "genetic", "simulated_annealing", "hybrid"]


@dataclass(slots=True)
class OptimizationOptions:
    algorithm: Algorithm = "hybrid"
    max_iterations: Optional[int] = None
    time_limit: Optional[float] = None
    population_size: Optional[int] = None
    temperature: Optional[float] = None
    improvement_threshold: Optional[int] = None
    seed: Optional[int] = None


@dataclass(slots=True)
class RouteMetrics:
    total_distance: float
    total_time: float
    total_cost: float
    score: float


@dataclass(slots=True)
class Solution:
    route: List[Location]
    total_distance: float
    total_time: float
    total_cost: float
    algorithm: str
    optimization_score: float
    violations: List[str] = field(default_factory=list)


@dataclass(slots=True)
class CacheStats:
    distances: int
    times: int
