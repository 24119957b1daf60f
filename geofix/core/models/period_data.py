"""
PeriodData model representing one observation of a monitoring point.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .adjustment_record import AdjustmentRecord
from .enums import Axis, ValidationStatus

FORMATTED_TIME_PATTERN = "%Y-%m-%d %H:00"


class PeriodData(BaseModel):
    """
    One timestamped observation of a monitoring point.

    PeriodData is in-memory only: built once per run from normalized input,
    mutated in place by the correction engine, and discarded afterwards.

    Attributes:
        point_name: Survey point identifier (business key)
        timestamp: Observation time (source file date + hour)
        row_number: Source row (provenance only)
        sequence_number: Position of the record in its source (provenance only)
        source_file: Name of the file the record came from
        mileage: Chainage of the point (informational)
        current_period_x/y/z: Incremental change since the previous period
        cumulative_x/y/z: Running total
        daily_x/y/z: Daily rate (informational, not checked)
        can_adjust: False marks an anchor the correction engine never touches
        validation_status: Latest validation outcome for this record
        validation_errors: Messages from the latest validation
        adjustments: Ordered audit trail of corrections applied to this record
    """

    point_name: str = Field(..., min_length=1)
    timestamp: datetime
    row_number: int = 0
    sequence_number: int = 0
    source_file: str | None = None
    mileage: float | None = None

    current_period_x: float = 0.0
    current_period_y: float = 0.0
    current_period_z: float = 0.0
    cumulative_x: float = 0.0
    cumulative_y: float = 0.0
    cumulative_z: float = 0.0
    daily_x: float = 0.0
    daily_y: float = 0.0
    daily_z: float = 0.0

    can_adjust: bool = True
    validation_status: ValidationStatus = ValidationStatus.NOT_VALIDATED
    validation_errors: list[str] = Field(default_factory=list)
    adjustments: list[AdjustmentRecord] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "point_name": "P1",
                "timestamp": "2025-03-01T08:00:00",
                "row_number": 12,
                "sequence_number": 4,
                "source_file": "2025-3-1-08.xls",
                "mileage": 1250.5,
                "current_period_x": 0.3,
                "current_period_y": -0.1,
                "current_period_z": 0.0,
                "cumulative_x": 1.0,
                "cumulative_y": -0.4,
                "cumulative_z": 0.2,
                "can_adjust": True,
                "validation_status": "not_validated"
            }
        }

    @property
    def formatted_time(self) -> str:
        """Hour-resolution key used to match reference records, e.g. '2025-03-01 08:00'."""
        return self.timestamp.strftime(FORMATTED_TIME_PATTERN)

    @property
    def has_been_adjusted(self) -> bool:
        return len(self.adjustments) > 0

    def current_period(self, axis: Axis) -> float:
        return getattr(self, f"current_period_{Axis(axis).value.lower()}")

    def cumulative(self, axis: Axis) -> float:
        return getattr(self, f"cumulative_{Axis(axis).value.lower()}")

    def daily(self, axis: Axis) -> float:
        return getattr(self, f"daily_{Axis(axis).value.lower()}")

    def set_current_period(self, axis: Axis, value: float) -> None:
        setattr(self, f"current_period_{Axis(axis).value.lower()}", value)

    def set_cumulative(self, axis: Axis, value: float) -> None:
        setattr(self, f"cumulative_{Axis(axis).value.lower()}", value)

    def add_adjustment(self, record: AdjustmentRecord) -> None:
        self.adjustments.append(record)

    def add_validation_error(self, message: str) -> None:
        self.validation_errors.append(message)

    def reset_validation(self) -> None:
        """Clear status and messages ahead of a new validation pass."""
        self.validation_status = ValidationStatus.NOT_VALIDATED
        self.validation_errors = []
