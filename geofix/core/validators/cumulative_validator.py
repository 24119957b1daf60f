"""
CumulativeInvariantValidator - checks cumulative[i] = cumulative[i-1] + current_period[i].
"""

from typing import Sequence

from geofix.core.models import Axis, PeriodData, ValidationOptions, ValidationResult, ValidationSeverity
from geofix.utils.numeric import format_number, is_greater_than, is_less_than_or_equal, safe_abs_diff, safe_add

from .base_validator import BaseValidator, EligibilityCheck

CUMULATIVE_RULE = "cumulative[i] = cumulative[i-1] + current_period[i]"


def classify_severity(difference: float, options: ValidationOptions) -> ValidationSeverity:
    """
    Severity of an invariant violation by magnitude.

    Examples:
        >>> classify_severity(3.5, ValidationOptions())
        <ValidationSeverity.ERROR: 'error'>
        >>> classify_severity(5.5, ValidationOptions())
        <ValidationSeverity.CRITICAL: 'critical'>
    """
    if is_greater_than(difference, options.critical_threshold):
        return ValidationSeverity.CRITICAL
    if is_greater_than(difference, options.error_threshold):
        return ValidationSeverity.ERROR
    return ValidationSeverity.WARNING


class CumulativeInvariantValidator(BaseValidator):
    """
    Validates the telescoping relation between adjacent periods on every axis.

    Differences within the tolerance pass silently. The first period has no
    predecessor and is never checked.

    Parameters:
    - tolerance: Overrides options.cumulative_tolerance
    - axes: Restricts the check to these axes (default X, Y, Z)
    """

    def validate(
        self,
        point_name: str,
        periods: Sequence[PeriodData],
        options: ValidationOptions,
        eligibility: EligibilityCheck | None = None,
    ) -> list[ValidationResult]:
        tolerance = self.parameters.get("tolerance", options.cumulative_tolerance)
        axes = [Axis(a) for a in self.parameters.get("axes", list(Axis))]
        results = []

        for axis in axes:
            for i in range(1, len(periods)):
                previous, current = periods[i - 1], periods[i]
                expected = safe_add(
                    self._value(previous, "cumulative", axis),
                    self._value(current, "current_period", axis),
                )
                actual = self._value(current, "cumulative", axis)
                difference = safe_abs_diff(actual, expected)

                if is_less_than_or_equal(difference, tolerance):
                    continue

                can_adjust = eligibility(i, current, axis) if eligibility is not None else True
                results.append(self._violation(
                    current,
                    axis,
                    classify_severity(difference, options),
                    can_adjust,
                    description=(
                        f"{axis.value} cumulative {format_number(actual)} deviates from previous "
                        f"cumulative + current period ({format_number(expected)}) by {format_number(difference)}"
                    ),
                    expected_value=expected,
                    actual_value=actual,
                    difference=difference,
                    rule=CUMULATIVE_RULE,
                    details=[
                        f"previous_period={previous.formatted_time}",
                        f"tolerance={format_number(tolerance)}",
                    ] + ([] if can_adjust else ["reference record exists; manual review required"]),
                ))

        return results

    @property
    def rule_type(self) -> str:
        return "cumulative_invariant"
