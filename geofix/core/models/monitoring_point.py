"""
MonitoringPoint model aggregating all periods of one survey point.
"""

from bisect import bisect_right
from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from .adjustment_record import AdjustmentRecord
from .enums import ValidationStatus
from .period_data import PeriodData


class MonitoringPoint(BaseModel):
    """
    All periods recorded for one point name, kept sorted by timestamp.

    Sorting is stable: periods sharing a timestamp keep their insertion order.

    Attributes:
        point_name: Survey point identifier
        periods: Observations sorted by timestamp
        reference_data: Optional comparison record for cross-validation
        validation_status: Aggregate status of the latest validation
        adjustments: Log of every adjustment applied to this point
    """

    point_name: str = Field(..., min_length=1)
    periods: list[PeriodData] = Field(default_factory=list)
    reference_data: PeriodData | None = None
    validation_status: ValidationStatus = ValidationStatus.NOT_VALIDATED
    adjustments: list[AdjustmentRecord] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "point_name": "P1",
                "periods": [
                    {"point_name": "P1", "timestamp": "2025-03-01T08:00:00",
                     "current_period_x": 0.5, "cumulative_x": 0.5, "can_adjust": False},
                    {"point_name": "P1", "timestamp": "2025-03-02T08:00:00",
                     "current_period_x": 0.3, "cumulative_x": 1.0}
                ],
                "validation_status": "not_validated"
            }
        }

    @field_validator("periods")
    @classmethod
    def sort_periods(cls, v: list[PeriodData]) -> list[PeriodData]:
        return sorted(v, key=lambda p: p.timestamp)

    @model_validator(mode="after")
    def check_period_names(self) -> "MonitoringPoint":
        for period in self.periods:
            if not _same_name(period.point_name, self.point_name):
                raise ValueError(
                    f"Period for point '{period.point_name}' cannot belong to '{self.point_name}'"
                )
        if self.reference_data is not None and not _same_name(self.reference_data.point_name, self.point_name):
            raise ValueError(
                f"Reference record for point '{self.reference_data.point_name}' "
                f"cannot belong to '{self.point_name}'"
            )
        return self

    def add_period(self, period: PeriodData) -> None:
        """
        Insert a period keeping timestamp order.

        Raises:
            ValueError: If the period belongs to a different point
        """
        if not _same_name(period.point_name, self.point_name):
            raise ValueError(
                f"Period for point '{period.point_name}' cannot belong to '{self.point_name}'"
            )
        keys = [p.timestamp for p in self.periods]
        self.periods.insert(bisect_right(keys, period.timestamp), period)

    def set_reference_data(self, reference: PeriodData | None) -> None:
        """
        Attach the comparison record used for eligibility decisions.

        Raises:
            ValueError: If the record belongs to a different point
        """
        if reference is not None and not _same_name(reference.point_name, self.point_name):
            raise ValueError(
                f"Reference record for point '{reference.point_name}' cannot belong to '{self.point_name}'"
            )
        self.reference_data = reference

    def add_adjustment(self, record: AdjustmentRecord) -> None:
        self.adjustments.append(record)

    def snapshot(self) -> tuple[PeriodData, ...]:
        """Immutable view of the sorted periods."""
        return tuple(self.periods)

    @property
    def period_count(self) -> int:
        return len(self.periods)

    @property
    def earliest_time(self) -> datetime | None:
        return self.periods[0].timestamp if self.periods else None

    @property
    def latest_time(self) -> datetime | None:
        return self.periods[-1].timestamp if self.periods else None

    def get_period_by_time(self, timestamp: datetime) -> PeriodData | None:
        for period in self.periods:
            if period.timestamp == timestamp:
                return period
        return None

    def previous_period(self, timestamp: datetime) -> PeriodData | None:
        """Latest period strictly earlier than timestamp."""
        previous = None
        for period in self.periods:
            if period.timestamp >= timestamp:
                break
            previous = period
        return previous


def _same_name(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()
