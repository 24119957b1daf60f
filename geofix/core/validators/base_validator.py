"""
Base validator interface for all monitoring checks.

All validators must inherit from BaseValidator and implement the validate() method.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Sequence

from geofix.core.models import (
    Axis,
    PeriodData,
    ValidationOptions,
    ValidationResult,
    ValidationSeverity,
    ValidationStatus,
)
from geofix.utils.numeric import NonFiniteValueError, is_finite

# (index, period, axis) -> whether a violation on that period and axis may be auto-corrected
EligibilityCheck = Callable[[int, PeriodData, Axis], bool]


class ValidationError(Exception):
    """Raised when a check cannot be evaluated on the data it was given."""

    def __init__(self, rule_name: str, field_name: str, message: str):
        self.rule_name = rule_name
        self.field_name = field_name
        self.message = message
        super().__init__(f"[{rule_name}] {field_name}: {message}")


class BaseValidator(ABC):
    """
    Abstract base class for all validators.

    Each validator implements one check type (cumulative_invariant,
    absolute_limit) over a point's time-sorted periods and returns one
    ValidationResult per violation. A check that passes returns nothing.
    """

    def __init__(self, parameters: dict[str, Any] | None = None):
        """
        Initialize validator.

        Args:
            parameters: Check-specific parameters overriding the run options
        """
        self.parameters = parameters or {}

    @abstractmethod
    def validate(
        self,
        point_name: str,
        periods: Sequence[PeriodData],
        options: ValidationOptions,
        eligibility: EligibilityCheck | None = None,
    ) -> list[ValidationResult]:
        """
        Check a point's periods.

        Args:
            point_name: Name of the checked point
            periods: Periods sorted by timestamp
            options: Tolerances and limits
            eligibility: Decides can_adjust for correctable violations
                (None means every correctable violation is eligible)

        Returns:
            One result per violation found

        Raises:
            ValidationError: If a value cannot be checked (NaN/Infinity)
        """
        pass

    @property
    @abstractmethod
    def rule_type(self) -> str:
        """Return the rule type identifier."""
        pass

    def _value(self, period: PeriodData, field: str, axis: Axis) -> float:
        value = getattr(period, field)(axis)
        if not is_finite(value):
            raise ValidationError(
                rule_name=self.rule_type,
                field_name=f"{field}_{axis.value.lower()}",
                message=str(NonFiniteValueError(value, f"row {period.row_number} of {period.point_name}")),
            )
        return value

    def _violation(
        self,
        period: PeriodData,
        axis: Axis,
        severity: ValidationSeverity,
        can_adjust: bool,
        **fields: Any,
    ) -> ValidationResult:
        return ValidationResult(
            status=ValidationStatus.INVALID,
            severity=severity,
            validation_type=self.rule_type,
            point_name=period.point_name,
            axis=axis,
            timestamp=period.timestamp,
            period_key=period.formatted_time,
            row_number=period.row_number,
            source_file=period.source_file,
            can_adjust=can_adjust,
            **fields,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(params={self.parameters})"
