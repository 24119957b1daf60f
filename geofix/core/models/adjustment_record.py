"""
AdjustmentRecord model representing one in-memory change to a period.
"""

from datetime import datetime

from pydantic import BaseModel, Field, computed_field

from .enums import AdjustmentKind, Axis


class AdjustmentRecord(BaseModel):
    """
    Audit entry for a single correction applied to one period and axis.

    Attributes:
        point_name: Monitoring point the period belongs to
        axis: Axis whose values were changed
        timestamp: Timestamp of the adjusted period
        row_number: Source row of the adjusted period (provenance)
        kind: Which value(s) changed: current_period, cumulative or both
        original_value: Current-period value before correction
        corrected_value: Current-period value after correction
        original_cumulative: Cumulative value before correction
        corrected_cumulative: Cumulative value after correction
        reason: Human-readable explanation of the change
    """

    point_name: str = Field(..., min_length=1)
    axis: Axis
    timestamp: datetime
    row_number: int = 0
    kind: AdjustmentKind
    original_value: float
    corrected_value: float
    original_cumulative: float
    corrected_cumulative: float
    reason: str

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "point_name": "P1",
                "axis": "X",
                "timestamp": "2025-03-01T08:00:00",
                "row_number": 12,
                "kind": "cumulative",
                "original_value": 0.3,
                "corrected_value": 0.3,
                "original_cumulative": 1.0,
                "corrected_cumulative": 0.8,
                "reason": "Cumulative rewritten to previous cumulative + current period"
            }
        }

    @computed_field
    @property
    def delta(self) -> float:
        """Change of the primary value (cumulative for cumulative-only records)."""
        if self.kind == AdjustmentKind.CUMULATIVE:
            return self.corrected_cumulative - self.original_cumulative
        return self.corrected_value - self.original_value

    @property
    def cumulative_delta(self) -> float:
        return self.corrected_cumulative - self.original_cumulative
