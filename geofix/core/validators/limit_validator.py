"""
AbsoluteLimitValidator - validates per-period values stay within hard limits.
"""

from typing import Sequence

from geofix.core.models import Axis, PeriodData, ValidationOptions, ValidationResult, ValidationSeverity
from geofix.utils.numeric import format_number

from .base_validator import BaseValidator, EligibilityCheck


class AbsoluteLimitValidator(BaseValidator):
    """
    Validates that |current period| and |cumulative| stay within the limits.

    Violations are hard failures: always can_adjust=False, never corrected.

    Parameters:
    - max_current_period_value: Overrides the option of the same name
    - max_cumulative_value: Overrides the option of the same name
    """

    def validate(
        self,
        point_name: str,
        periods: Sequence[PeriodData],
        options: ValidationOptions,
        eligibility: EligibilityCheck | None = None,
    ) -> list[ValidationResult]:
        max_current = self.parameters.get("max_current_period_value", options.max_current_period_value)
        max_cumulative = self.parameters.get("max_cumulative_value", options.max_cumulative_value)
        results = []

        for axis in Axis:
            for period in periods:
                current = self._value(period, "current_period", axis)
                if abs(current) > max_current:
                    results.append(self._limit_violation(period, axis, "current period", current, max_current))

                cumulative = self._value(period, "cumulative", axis)
                if abs(cumulative) > max_cumulative:
                    results.append(self._limit_violation(period, axis, "cumulative", cumulative, max_cumulative))

        return results

    def _limit_violation(
        self, period: PeriodData, axis: Axis, label: str, value: float, limit: float
    ) -> ValidationResult:
        return self._violation(
            period,
            axis,
            ValidationSeverity.ERROR,
            can_adjust=False,
            description=(
                f"{axis.value} {label} value {format_number(value)} exceeds limit {format_number(limit)}"
            ),
            expected_value=limit,
            actual_value=value,
            difference=abs(value) - limit,
            rule=f"|{label.replace(' ', '_')}| <= {format_number(limit)}",
        )

    @property
    def rule_type(self) -> str:
        return "absolute_limit"
