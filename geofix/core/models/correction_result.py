"""
Correction outcome models: per point and for a whole run.
"""

from pydantic import BaseModel, Field, computed_field

from .adjustment_record import AdjustmentRecord
from .enums import CorrectionStatus, ValidationStatus
from .validation_result import ValidationResult


class PointCorrectionResult(BaseModel):
    """
    Outcome of validating and correcting one monitoring point.

    Attributes:
        point_name: Processed point
        status: Success, Error or Skipped
        validation_status: Outcome of the initial validation (Valid when the
            point had no violations, NeedsAdjustment when some were eligible
            for correction, Invalid otherwise)
        message: Human-readable summary
        validation_results: Results of the initial validation
        residual_results: Results of re-validating the corrected data
        skipped_results: Absolute-limit results, passed through with
            correction_status Skipped; their periods are never changed
        adjustments: Adjustments applied to this point, in period order
        corrected_periods: Number of distinct periods changed
        corrected_values: Number of individual values changed
    """

    point_name: str
    status: CorrectionStatus
    validation_status: ValidationStatus = ValidationStatus.NOT_VALIDATED
    message: str = ""
    validation_results: list[ValidationResult] = Field(default_factory=list)
    residual_results: list[ValidationResult] = Field(default_factory=list)
    skipped_results: list[ValidationResult] = Field(default_factory=list)
    adjustments: list[AdjustmentRecord] = Field(default_factory=list)
    corrected_periods: int = 0
    corrected_values: int = 0

    @property
    def was_corrected(self) -> bool:
        return self.status == CorrectionStatus.SUCCESS and len(self.adjustments) > 0

    @property
    def has_skipped_limits(self) -> bool:
        return len(self.skipped_results) > 0


class CorrectionResult(BaseModel):
    """
    Aggregate result of one batch run.

    The run distinguishes points that were fully validated/corrected (Success),
    validated but not auto-correctable (Skipped), failed (Error) and never
    started because the time budget ran out (unprocessed_points).

    Attributes:
        point_results: Per-point results in input order
        adjustment_records: All adjustments, ordered by point then period
        completed: False when the run stopped on its time budget
        unprocessed_points: Names of points that were never started
        elapsed_seconds: Wall-clock duration of the run
    """

    point_results: list[PointCorrectionResult] = Field(default_factory=list)
    adjustment_records: list[AdjustmentRecord] = Field(default_factory=list)
    completed: bool = True
    unprocessed_points: list[str] = Field(default_factory=list)
    elapsed_seconds: float = 0.0

    class Config:
        json_schema_extra = {
            "example": {
                "point_results": [
                    {"point_name": "P1", "status": "success", "validation_status": "needs_adjustment",
                     "corrected_periods": 1, "corrected_values": 1}
                ],
                "completed": True,
                "unprocessed_points": [],
                "elapsed_seconds": 0.42
            }
        }

    @computed_field
    @property
    def total_points(self) -> int:
        return len(self.point_results)

    @computed_field
    @property
    def valid_points(self) -> int:
        return sum(1 for r in self.point_results if r.validation_status == ValidationStatus.VALID)

    @computed_field
    @property
    def invalid_points(self) -> int:
        return sum(
            1 for r in self.point_results
            if r.validation_status in (ValidationStatus.INVALID, ValidationStatus.NEEDS_ADJUSTMENT)
        )

    @computed_field
    @property
    def corrected_points(self) -> int:
        return sum(1 for r in self.point_results if r.was_corrected)

    @computed_field
    @property
    def success_count(self) -> int:
        return self._count(CorrectionStatus.SUCCESS)

    @computed_field
    @property
    def skipped_points(self) -> int:
        return self._count(CorrectionStatus.SKIPPED)

    @computed_field
    @property
    def error_points(self) -> int:
        return self._count(CorrectionStatus.ERROR)

    @computed_field
    @property
    def limit_skipped_points(self) -> int:
        """Points with absolute-limit violations left uncorrected, whatever their status."""
        return sum(1 for r in self.point_results if r.has_skipped_limits)

    @computed_field
    @property
    def limit_violation_count(self) -> int:
        return sum(len(r.skipped_results) for r in self.point_results)

    def _count(self, status: CorrectionStatus) -> int:
        return sum(1 for r in self.point_results if r.status == status)

    def get_point_result(self, point_name: str) -> PointCorrectionResult | None:
        for result in self.point_results:
            if result.point_name == point_name:
                return result
        return None

    def get_summary(self) -> str:
        lines = [
            f"Points: {self.total_points} processed, {len(self.unprocessed_points)} not processed"
            + ("" if self.completed else " (time budget exceeded)"),
            f"Validation: {self.valid_points} valid, {self.invalid_points} invalid",
            f"Correction: {self.success_count} success ({self.corrected_points} corrected), "
            f"{self.skipped_points} skipped, {self.error_points} error",
            f"Adjustments: {len(self.adjustment_records)}",
            f"Absolute-limit violations: {self.limit_violation_count} in {self.limit_skipped_points} point(s)",
            f"Elapsed: {self.elapsed_seconds:.2f}s",
        ]
        return "\n".join(lines)
