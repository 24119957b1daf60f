"""
Summary statistics over validation results and adjustment records.
"""

from collections import Counter
from typing import Iterable

from pydantic import BaseModel, Field

from .adjustment_record import AdjustmentRecord
from .enums import ValidationStatus
from .validation_result import ValidationResult


class ValidationStatistics(BaseModel):
    """
    Counts of validation results by status, severity, type, point and file.

    Examples:
        >>> stats = ValidationStatistics.from_results(results)  # doctest: +SKIP
        >>> print(stats.get_summary())  # doctest: +SKIP
    """

    total_results: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
    by_severity: dict[str, int] = Field(default_factory=dict)
    by_type: dict[str, int] = Field(default_factory=dict)
    by_point: dict[str, int] = Field(default_factory=dict)
    by_file: dict[str, int] = Field(default_factory=dict)
    adjustable_count: int = 0

    @classmethod
    def from_results(cls, results: Iterable[ValidationResult]) -> "ValidationStatistics":
        by_status: Counter = Counter()
        by_severity: Counter = Counter()
        by_type: Counter = Counter()
        by_point: Counter = Counter()
        by_file: Counter = Counter()
        total = 0
        adjustable = 0

        for result in results:
            total += 1
            by_status[result.status.value] += 1
            by_severity[result.severity.value] += 1
            # Point and file tallies count problems only
            if result.is_violation:
                by_type[result.validation_type] += 1
                by_point[result.point_name] += 1
                if result.source_file:
                    by_file[result.source_file] += 1
                if result.can_adjust:
                    adjustable += 1

        return cls(
            total_results=total,
            by_status=dict(by_status),
            by_severity=dict(by_severity),
            by_type=dict(by_type),
            by_point=dict(by_point),
            by_file=dict(by_file),
            adjustable_count=adjustable,
        )

    @property
    def valid_count(self) -> int:
        return self.by_status.get(ValidationStatus.VALID.value, 0)

    @property
    def invalid_count(self) -> int:
        return self.by_status.get(ValidationStatus.INVALID.value, 0)

    @property
    def violation_count(self) -> int:
        return sum(self.by_type.values())

    def get_summary(self) -> str:
        severities = ", ".join(f"{k}={v}" for k, v in sorted(self.by_severity.items()))
        return (
            f"Validation results: {self.total_results} "
            f"(valid={self.valid_count}, invalid={self.invalid_count}, "
            f"adjustable={self.adjustable_count}); severity: {severities or 'none'}"
        )

    def get_detailed_info(self, top: int = 10) -> str:
        """Multi-line report with the most affected types, points and files."""
        lines = [self.get_summary()]
        for title, counts in (
            ("By validation type", self.by_type),
            ("Most affected points", self.by_point),
            ("Most affected files", self.by_file),
        ):
            if not counts:
                continue
            lines.append(f"{title}:")
            ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))[:top]
            lines.extend(f"  {name}: {count}" for name, count in ranked)
        return "\n".join(lines)


class CorrectionStatistics(BaseModel):
    """Counts and magnitudes of applied adjustments."""

    total_adjustments: int = 0
    by_kind: dict[str, int] = Field(default_factory=dict)
    by_axis: dict[str, int] = Field(default_factory=dict)
    by_point: dict[str, int] = Field(default_factory=dict)
    max_abs_delta: float = 0.0
    mean_abs_delta: float = 0.0

    @classmethod
    def from_records(cls, records: Iterable[AdjustmentRecord]) -> "CorrectionStatistics":
        by_kind: Counter = Counter()
        by_axis: Counter = Counter()
        by_point: Counter = Counter()
        deltas = []

        for record in records:
            by_kind[record.kind.value] += 1
            by_axis[record.axis.value] += 1
            by_point[record.point_name] += 1
            deltas.append(abs(record.delta))

        return cls(
            total_adjustments=len(deltas),
            by_kind=dict(by_kind),
            by_axis=dict(by_axis),
            by_point=dict(by_point),
            max_abs_delta=max(deltas, default=0.0),
            mean_abs_delta=sum(deltas) / len(deltas) if deltas else 0.0,
        )

    def get_summary(self) -> str:
        kinds = ", ".join(f"{k}={v}" for k, v in sorted(self.by_kind.items()))
        return (
            f"Adjustments: {self.total_adjustments} across {len(self.by_point)} points "
            f"({kinds or 'none'}); max |delta|={self.max_abs_delta:.6f}, "
            f"mean |delta|={self.mean_abs_delta:.6f}"
        )

    def get_detailed_info(self, top: int = 10) -> str:
        lines = [self.get_summary()]
        if self.by_axis:
            lines.append("By axis: " + ", ".join(f"{k}={v}" for k, v in sorted(self.by_axis.items())))
        if self.by_point:
            lines.append("Most adjusted points:")
            ranked = sorted(self.by_point.items(), key=lambda kv: (-kv[1], kv[0]))[:top]
            lines.extend(f"  {name}: {count}" for name, count in ranked)
        return "\n".join(lines)
