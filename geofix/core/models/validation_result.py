"""
ValidationResult model representing the outcome of one check (ephemeral).
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import Axis, CorrectionStatus, ValidationSeverity, ValidationStatus


class ValidationResult(BaseModel):
    """
    Outcome of one check on one period and axis.

    Note: ValidationResult is immutable once produced. Derived results
    (e.g. a limit violation reported as skipped) are built with model_copy.

    Attributes:
        status: Valid, Invalid, NeedsAdjustment or NotValidated
        severity: Info, Warning, Error or Critical
        validation_type: Name of the check that produced the result
        point_name: Checked point
        axis: Checked axis (None for point-level results)
        timestamp: Timestamp of the checked period
        period_key: Formatted period time ("YYYY-MM-DD HH:00")
        row_number: Source row of the checked period
        source_file: Source file of the checked period
        can_adjust: Whether the correction engine may fix this violation
        description: Human-readable description
        expected_value: Value the rule expected
        actual_value: Value found in the data
        difference: |actual - expected|
        rule: Text of the rule that was checked
        details: Extra free-form details
        correction_status: Set by the correction engine on results it passes
            through untouched; absolute-limit results carry Skipped while their
            status stays Invalid
    """

    status: ValidationStatus
    severity: ValidationSeverity
    validation_type: str
    point_name: str
    axis: Axis | None = None
    timestamp: datetime | None = None
    period_key: str | None = None
    row_number: int | None = None
    source_file: str | None = None
    can_adjust: bool = False
    description: str = ""
    expected_value: float | None = None
    actual_value: float | None = None
    difference: float | None = None
    rule: str = ""
    details: list[str] = Field(default_factory=list)
    correction_status: CorrectionStatus | None = None

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "status": "invalid",
                "severity": "warning",
                "validation_type": "cumulative_invariant",
                "point_name": "P1",
                "axis": "X",
                "timestamp": "2025-03-02T08:00:00",
                "period_key": "2025-03-02 08:00",
                "row_number": 13,
                "can_adjust": True,
                "description": "X cumulative deviates from previous cumulative + current period",
                "expected_value": 0.8,
                "actual_value": 1.0,
                "difference": 0.2,
                "rule": "cumulative[i] = cumulative[i-1] + current_period[i]"
            }
        }

    @property
    def is_violation(self) -> bool:
        return self.status in (ValidationStatus.INVALID, ValidationStatus.NEEDS_ADJUSTMENT)
