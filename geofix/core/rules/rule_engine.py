"""
Validation engine for applying monitoring checks to points.

The engine builds its checks from rule configurations, runs them over a
point's time-sorted periods and produces validation results, deciding which
invariant violations are eligible for automatic correction.
"""

from typing import Any, Iterable, Protocol

from geofix.core.models import (
    Axis,
    MonitoringPoint,
    PeriodData,
    ValidationOptions,
    ValidationResult,
    ValidationSeverity,
    ValidationStatistics,
    ValidationStatus,
)
from geofix.core.validators import (
    AbsoluteLimitValidator,
    BaseValidator,
    CumulativeInvariantValidator,
    EligibilityCheck,
    ValidationError,
)
from geofix.observability.logger import get_logger
from geofix.utils.numeric import NonFiniteValueError

logger = get_logger(__name__)

DATA_MISSING = "data_missing"
PROCESSING_ERROR = "processing_error"
POINT_VALID = "point_valid"
CUMULATIVE_INVARIANT = "cumulative_invariant"


class ReferenceLookup(Protocol):
    """Anything that can tell whether a reference record exists for a period."""

    def has_reference(self, point_name: str, formatted_time: str) -> bool:
        ...


class ValidationEngine:
    """
    Runs the registered checks on monitoring points.

    Rules are applied in order and all violations are collected. A point
    without violations gets a single Valid/Info result.

    Examples:
        >>> engine = ValidationEngine(ValidationOptions(cumulative_tolerance=0.1))
        >>> results = engine.validate(point)  # doctest: +SKIP
    """

    VALIDATOR_REGISTRY = {
        "cumulative_invariant": CumulativeInvariantValidator,
        "absolute_limit": AbsoluteLimitValidator,
    }

    DEFAULT_RULES = [
        {"rule_name": "cumulative_invariant", "rule_type": "cumulative_invariant"},
        {"rule_name": "absolute_limit", "rule_type": "absolute_limit"},
    ]

    def __init__(
        self,
        options: ValidationOptions | None = None,
        rules: list[dict[str, Any]] | None = None,
    ):
        """
        Initialize the engine.

        Args:
            options: Tolerances and limits (defaults to ValidationOptions())
            rules: List of rule configurations, each containing:
                   - rule_name: str
                   - rule_type: str (cumulative_invariant, absolute_limit)
                   - parameters: Dict[str, Any] (optional)
                   - enabled: bool (default True)
        """
        self.options = options or ValidationOptions()
        self.rules = rules if rules is not None else self.DEFAULT_RULES
        self.validators: list[tuple[str, BaseValidator]] = []
        self._build_validators()

    def _build_validators(self) -> None:
        """Build validator instances from rule configurations."""
        for rule in self.rules:
            if not rule.get("enabled", True):
                continue

            rule_name = rule["rule_name"]
            rule_type = rule["rule_type"]

            validator_class = self.VALIDATOR_REGISTRY.get(rule_type)
            if not validator_class:
                raise ValueError(f"Unknown rule type: {rule_type}")

            try:
                validator = validator_class(rule.get("parameters", {}))
            except (TypeError, ValueError) as e:
                raise ValueError(f"Failed to create validator for rule '{rule_name}': {e}") from e
            self.validators.append((rule_name, validator))

    def validate(
        self,
        point: MonitoringPoint,
        reference_index: ReferenceLookup | None = None,
    ) -> list[ValidationResult]:
        """
        Validate one point.

        Args:
            point: The point to validate
            reference_index: Lookup of trusted reference records; a violation on a
                period with a reference record and a preceding period is not
                eligible for automatic correction

        Returns:
            Violations found, or a single Valid/Info result
        """
        periods = point.snapshot()

        def eligibility(index: int, period: PeriodData, axis: Axis) -> bool:
            has_previous = index > 0
            return not (has_previous and self._has_reference(point, period, reference_index))

        return self._run(point, periods, eligibility)

    def validate_corrected_data(
        self,
        point: MonitoringPoint,
        validation_results: Iterable[ValidationResult] | None = None,
    ) -> list[ValidationResult]:
        """
        Re-validate a point after correction.

        Eligibility is carried over from the initial validation: a residual
        violation at a period, row and axis that was left for manual review
        stays can_adjust=False. Any other residual violation is reported as
        adjustable.

        Args:
            point: The corrected point
            validation_results: Results of the initial validation
        """
        manual_review = self.manual_review_keys(validation_results or [])

        def eligibility(index: int, period: PeriodData, axis: Axis) -> bool:
            return (period.timestamp, period.row_number, axis) not in manual_review

        return self._run(point, point.snapshot(), eligibility)

    @staticmethod
    def manual_review_keys(results: Iterable[ValidationResult]) -> set[tuple]:
        """(timestamp, row_number, axis) of invariant violations not eligible for correction."""
        return {
            (r.timestamp, r.row_number, r.axis)
            for r in results
            if r.validation_type == CUMULATIVE_INVARIANT and r.is_violation and not r.can_adjust
        }

    def validate_all(
        self,
        points: Iterable[MonitoringPoint],
        reference_index: ReferenceLookup | None = None,
    ) -> dict[str, list[ValidationResult]]:
        """
        Validate a set of points.

        Returns:
            Results per point name, in input order
        """
        return {point.point_name: self.validate(point, reference_index) for point in points}

    def get_statistics(self, results: Iterable[ValidationResult]) -> ValidationStatistics:
        return ValidationStatistics.from_results(results)

    def get_rule_summary(self) -> dict[str, Any]:
        return {
            "total_rules": len(self.validators),
            "rules": [name for name, _ in self.validators],
            "cumulative_tolerance": self.options.cumulative_tolerance,
        }

    @staticmethod
    def summarize_status(results: Iterable[ValidationResult]) -> ValidationStatus:
        """
        Aggregate status of a point from its results.

        Valid when nothing was violated, NeedsAdjustment when at least one
        violation is eligible for correction, Invalid otherwise.
        """
        violations = [r for r in results if r.is_violation]
        if not violations:
            return ValidationStatus.VALID
        if any(r.can_adjust for r in violations):
            return ValidationStatus.NEEDS_ADJUSTMENT
        return ValidationStatus.INVALID

    def _run(
        self,
        point: MonitoringPoint,
        periods: tuple[PeriodData, ...],
        eligibility: EligibilityCheck | None,
    ) -> list[ValidationResult]:
        if not periods:
            result = ValidationResult(
                status=ValidationStatus.INVALID,
                severity=ValidationSeverity.CRITICAL,
                validation_type=DATA_MISSING,
                point_name=point.point_name,
                description=f"Point {point.point_name} has no periods",
                rule="a point must have at least one period",
            )
            point.validation_status = ValidationStatus.INVALID
            return [result]

        for period in periods:
            period.reset_validation()

        results: list[ValidationResult] = []
        try:
            for _, validator in self.validators:
                results.extend(validator.validate(point.point_name, periods, self.options, eligibility))
        except (ValidationError, NonFiniteValueError, ArithmeticError) as e:
            logger.warning(
                "Validation failed for point",
                extra={"point_name": point.point_name, "error": str(e)},
            )
            point.validation_status = ValidationStatus.INVALID
            return [self.processing_error(point.point_name, e)]

        if not results:
            for period in periods:
                period.validation_status = ValidationStatus.VALID
            point.validation_status = ValidationStatus.VALID
            return [ValidationResult(
                status=ValidationStatus.VALID,
                severity=ValidationSeverity.INFO,
                validation_type=POINT_VALID,
                point_name=point.point_name,
                timestamp=periods[-1].timestamp,
                period_key=periods[-1].formatted_time,
                can_adjust=False,
                description=f"All {len(periods)} periods of {point.point_name} are consistent",
            )]

        self._mark_periods(periods, results)
        point.validation_status = self.summarize_status(results)
        return results

    @staticmethod
    def _mark_periods(periods: tuple[PeriodData, ...], results: list[ValidationResult]) -> None:
        by_key: dict[tuple, list[ValidationResult]] = {}
        for result in results:
            by_key.setdefault((result.timestamp, result.row_number), []).append(result)

        for period in periods:
            found = by_key.get((period.timestamp, period.row_number), [])
            if not found:
                period.validation_status = ValidationStatus.VALID
                continue
            for result in found:
                period.add_validation_error(result.description)
            if all(r.can_adjust for r in found):
                period.validation_status = ValidationStatus.NEEDS_ADJUSTMENT
            else:
                period.validation_status = ValidationStatus.INVALID

    @staticmethod
    def _has_reference(
        point: MonitoringPoint,
        period: PeriodData,
        reference_index: ReferenceLookup | None,
    ) -> bool:
        reference = point.reference_data
        if (
            reference is not None
            and reference.point_name.casefold() == point.point_name.casefold()
            and reference.formatted_time == period.formatted_time
        ):
            return True
        if reference_index is None:
            return False
        return reference_index.has_reference(point.point_name, period.formatted_time)

    @staticmethod
    def processing_error(point_name: str, error: Exception) -> ValidationResult:
        return ValidationResult(
            status=ValidationStatus.INVALID,
            severity=ValidationSeverity.CRITICAL,
            validation_type=PROCESSING_ERROR,
            point_name=point_name,
            description=f"Processing failed for {point_name}: {error}",
            details=[type(error).__name__],
        )
