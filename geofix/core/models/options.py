"""
Run configuration: validation and correction knobs.
"""

import os

from pydantic import BaseModel, Field, model_validator


class ValidationOptions(BaseModel):
    """
    Tolerances, absolute limits and batch settings for a validation run.

    Attributes:
        cumulative_tolerance: Maximum |cumulative[i] - (cumulative[i-1] + current[i])|
            accepted as consistent
        critical_threshold: Differences above this are Critical
        error_threshold: Differences above this (and not Critical) are Error
        max_current_period_value: Hard limit on |current period value|
        max_cumulative_value: Hard limit on |cumulative value|
        batch_size: Points per batch
        max_degree_of_parallelism: Worker threads per batch (0 means CPU count)
        max_processing_time_minutes: Wall-clock budget for a run
        enable_memory_cleanup: Run garbage collection periodically
        memory_cleanup_frequency: Points processed between collections
    """

    cumulative_tolerance: float = Field(2.0, ge=0.0)
    critical_threshold: float = Field(5.0, ge=0.0)
    error_threshold: float = Field(3.0, ge=0.0)
    max_current_period_value: float = Field(5.0, gt=0.0)
    max_cumulative_value: float = Field(10.0, gt=0.0)
    batch_size: int = Field(50, ge=1)
    max_degree_of_parallelism: int = Field(0, ge=0)
    max_processing_time_minutes: float = Field(30.0, gt=0.0)
    enable_memory_cleanup: bool = True
    memory_cleanup_frequency: int = Field(200, ge=1)

    class Config:
        json_schema_extra = {
            "example": {
                "cumulative_tolerance": 2.0,
                "critical_threshold": 5.0,
                "error_threshold": 3.0,
                "max_current_period_value": 5.0,
                "max_cumulative_value": 10.0,
                "batch_size": 50,
                "max_degree_of_parallelism": 0,
                "max_processing_time_minutes": 30,
                "enable_memory_cleanup": True,
                "memory_cleanup_frequency": 200
            }
        }

    @model_validator(mode="after")
    def check_thresholds(self):
        """Validate that error_threshold <= critical_threshold."""
        if self.error_threshold > self.critical_threshold:
            raise ValueError(
                f"error_threshold ({self.error_threshold}) must not exceed "
                f"critical_threshold ({self.critical_threshold})"
            )
        return self

    @property
    def effective_parallelism(self) -> int:
        """Worker count with 0 resolved to the number of available cores."""
        if self.max_degree_of_parallelism > 0:
            return self.max_degree_of_parallelism
        return os.cpu_count() or 1

    @property
    def max_processing_seconds(self) -> float:
        return self.max_processing_time_minutes * 60.0


class CorrectionOptions(ValidationOptions):
    """
    Validation options plus the knobs of the correction algorithm.

    Attributes:
        random_seed: Base seed for reproducible redistribution weights
        adjustment_range: Maximum change per period as a fraction of |original value|
        minimum_adjustment: Floor of the per-period cap for near-zero values
        time_factor_weight: How strongly larger time gaps attract more of the error
    """

    random_seed: int = 42
    adjustment_range: float = Field(0.05, ge=0.0)
    minimum_adjustment: float = Field(0.001, ge=0.0)
    time_factor_weight: float = Field(1.0, ge=0.0)

    class Config:
        json_schema_extra = {
            "example": {
                "cumulative_tolerance": 2.0,
                "random_seed": 42,
                "adjustment_range": 0.05,
                "minimum_adjustment": 0.001,
                "time_factor_weight": 1.0
            }
        }
