from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic import ConfigDict, field_validator

ENV_BOOL_TRUE = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in ENV_BOOL_TRUE


@dataclass(frozen=True)
class SolverProfile:
    tolerance: int
    max_iterations: int
    bound_multiplier: int
    max_expansions: int


class Settings(BaseModel):
    solver_tolerance: int = Field(default_factory=lambda: int(os.getenv("VNPIT_SOLVER_TOLERANCE", "1")))
    solver_max_iterations: int = Field(
        default_factory=lambda: int(os.getenv("VNPIT_SOLVER_MAX_ITERATIONS", "60"))
    )
    solver_bound_multiplier: int = Field(
        default_factory=lambda: int(os.getenv("VNPIT_SOLVER_BOUND_MULTIPLIER", "50"))
    )
    solver_max_expansions: int = Field(
        default_factory=lambda: int(os.getenv("VNPIT_SOLVER_MAX_EXPANSIONS", "16"))
    )
    default_region: int = Field(default_factory=lambda: int(os.getenv("VNPIT_DEFAULT_REGION", "1")))
    log_dir: str = Field(default_factory=lambda: os.getenv("VNPIT_LOG_DIR", "logs"))
    file_logging: bool = Field(default_factory=lambda: _env_bool("VNPIT_FILE_LOGGING", True))
    build_version: str = Field(default_factory=lambda: os.getenv("BUILD_VERSION", "dev"))
    build_sha: str = Field(default_factory=lambda: os.getenv("BUILD_SHA", "local"))

    # Values come from default factories, so validators must also run on defaults.
    model_config = ConfigDict(frozen=True, validate_default=True)

    @field_validator("solver_tolerance")
    @classmethod
    def _validate_tolerance(cls, value: int) -> int:
        if value < 0:
            raise ValueError("VNPIT_SOLVER_TOLERANCE must not be negative")
        return value

    @field_validator("solver_max_iterations", "solver_bound_multiplier")
    @classmethod
    def _validate_positive(cls, value: int) -> int:
        return max(1, value)

    @field_validator("solver_max_expansions")
    @classmethod
    def _validate_expansions(cls, value: int) -> int:
        return max(0, value)

    @field_validator("default_region")
    @classmethod
    def _validate_region(cls, value: int) -> int:
        if value not in {1, 2, 3, 4}:
            raise ValueError(f"VNPIT_DEFAULT_REGION must be 1-4, got {value}")
        return value

    def solver_profile(self) -> SolverProfile:
        return SolverProfile(
            tolerance=self.solver_tolerance,
            max_iterations=self.solver_max_iterations,
            bound_multiplier=self.solver_bound_multiplier,
            max_expansions=self.solver_max_expansions,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
