"""Route optimization request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator


class TimeWindowModel(BaseModel):
    earliest_arrival: datetime
    latest_departure: datetime

    @model_validator(mode="after")
    def _check_order(self) -> "TimeWindowModel":
        if self.latest_departure < self.earliest_arrival:
            raise ValueError("latest_departure must not be before earliest_arrival")
        return self


class LocationModel(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    time_window: Optional[TimeWindowModel] = None
    service_time: Optional[float] = Field(None, ge=0, description="Minutes spent at the stop.")
    priority: Optional[float] = Field(None, ge=1, le=10, description="Higher values are visited earlier.")
    capacity_required: Optional[float] = Field(None, ge=0)


class RouteConstraintsModel(BaseModel):
    max_distance: Optional[float] = Field(None, gt=0, description="Meters.")
    max_time: Optional[float] = Field(None, gt=0, description="Minutes.")
    vehicle_capacity: Optional[float] = Field(None, gt=0)
    respect_time_windows: bool = False
    start_location: Optional[LocationModel] = None
    end_location: Optional[LocationModel] = None
    avoid_tolls: bool = False
    avoid_highways: bool = False


class OptimizationOptionsModel(BaseModel):
    algorithm: Optional[Literal["nearest_neighbor", "genetic", "simulated_annealing", "hybrid"]] = Field(
        None, description="Defaults to the configured default algorithm."
    )
    max_iterations: Optional[int] = Field(None, ge=1)
    time_limit: Optional[float] = Field(None, gt=0, description="Advisory budget in seconds.")
    population_size: Optional[int] = Field(None, ge=2)
    temperature: Optional[float] = Field(None, gt=0)
    improvement_threshold: Optional[int] = Field(
        None,
        ge=1,
        description="Stop the genetic search after this many generations without improvement.",
    )
    seed: Optional[int] = None


class OptimizationRequest(BaseModel):
    locations: List[LocationModel]
    constraints: Optional[RouteConstraintsModel] = None
    options: Optional[OptimizationOptionsModel] = None


class OptimizationResponse(BaseModel):
    route: List[LocationModel]
    total_distance: float
    total_time: float
    total_cost: float
    violations: List[str]
    algorithm: str
    optimization_score: float
    metadata: dict


class CacheStatsModel(BaseModel):
    distances: int
    times: int
