"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ROUTEOPT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Multi-stop Route Optimizer API"
    api_prefix: str = "/api"
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile to use when computing travel times.",
    )
    osrm_max_retries: int = Field(default=3, ge=0)
    osrm_backoff_seconds: float = Field(default=1.0, ge=0.0)
    osrm_timeout_seconds: float = Field(default=30.0, gt=0.0)

    average_speed_kmh: float = Field(
        default=50.0,
        gt=0.0,
        description="Speed used to derive travel time from great-circle distance.",
    )
    fuel_cost_per_km: float = Field(default=0.15, ge=0.0)
    time_cost_per_hour: float = Field(default=25.0, ge=0.0)

    default_algorithm: Literal["nearest_neighbor", "genetic", "simulated_annealing", "hybrid"] = "hybrid"

    genetic_max_generations: int = Field(default=500, ge=1)
    genetic_max_population: int = Field(default=100, ge=2)
    genetic_mutation_rate: float = Field(default=0.02, ge=0.0, le=1.0)
    genetic_elite_fraction: float = Field(default=0.2, ge=0.0, le=1.0)
    genetic_tournament_size: int = Field(default=3, ge=1)

    annealing_initial_temperature: float = Field(default=10000.0, gt=0.0)
    annealing_cooling_rate: float = Field(default=0.995, gt=0.0, lt=1.0)
    annealing_min_temperature: float = Field(default=1.0, gt=0.0)
    annealing_max_iterations: int = Field(default=10000, ge=1)

    two_opt_max_passes: int = Field(default=1000, ge=1)

    hybrid_full_search_max_stops: int = Field(
        default=8,
        ge=2,
        description="Largest instance for which the hybrid mode also runs the genetic optimizer.",
    )
    hybrid_annealing_max_stops: int = Field(
        default=10,
        ge=2,
        description="Largest instance for which the hybrid mode runs annealing with the requested iterations.",
    )
    hybrid_bounded_annealing_iterations: int = Field(default=1000, ge=1)
    large_instance_threshold: int = Field(default=50, ge=2)
    random_seed: Optional[int] = Field(
        default=None,
        description="Seed applied when a request does not carry one. None draws from system entropy.",
    )

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
