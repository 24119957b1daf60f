"""
Correction engine for restoring the cumulative invariant of a point.

Works per axis over an immutable snapshot of the sorted periods: the
changes for every segment are planned first and applied in a second pass,
then the point is re-validated.
"""

from dataclasses import dataclass, replace
from typing import Iterable

from geofix.core.models import (
    AdjustmentKind,
    AdjustmentRecord,
    Axis,
    CorrectionOptions,
    CorrectionStatistics,
    CorrectionStatus,
    MonitoringPoint,
    PeriodData,
    PointCorrectionResult,
    ValidationResult,
)
from geofix.core.rules.rule_engine import DATA_MISSING, PROCESSING_ERROR, ValidationEngine
from geofix.core.validators import ValidationError
from geofix.observability.logger import get_logger
from geofix.utils.numeric import (
    NonFiniteValueError,
    format_number,
    is_greater_than,
    require_finite,
    safe_abs_diff,
    safe_add,
    safe_subtract,
    safe_sum,
)

from .distributor import distribute_error
from .random_source import RandomSource, RandomSourceFactory, seeded_factory
from .segments import Segment, find_segments

logger = get_logger(__name__)

CUMULATIVE_INVARIANT = "cumulative_invariant"
ABSOLUTE_LIMIT = "absolute_limit"

# Changes smaller than this leave the stored value untouched
CHANGE_EPSILON = 1e-12


@dataclass(frozen=True)
class PlannedChange:
    """New values computed for one period and axis, applied in the second pass."""

    index: int
    axis: Axis
    current_period: float
    cumulative: float
    kind: AdjustmentKind
    reason: str


class CorrectionEngine:
    """
    Corrects invariant violations inside adjustable segments.

    A period is mutable when its can_adjust flag is set and it carries no
    absolute-limit violation. On each axis, a period whose violation was left
    for manual review is also held fixed and bounds the segments around it:
    a segment ending at such a period is treated as open on the right, so its
    relation is reported, not repaired. Anchors, limit-violating periods and
    manual-review periods are never modified.

    Examples:
        >>> engine = CorrectionEngine(CorrectionOptions(cumulative_tolerance=0.1))
        >>> results = engine.validation_engine.validate(point)  # doctest: +SKIP
        >>> outcome = engine.correct(point, results)  # doctest: +SKIP
    """

    def __init__(
        self,
        options: CorrectionOptions | None = None,
        validation_engine: ValidationEngine | None = None,
        random_factory: RandomSourceFactory | None = None,
    ):
        """
        Initialize the correction engine.

        Args:
            options: Correction knobs (defaults to CorrectionOptions())
            validation_engine: Engine used to re-validate corrected points
            random_factory: Builds the random source of each (point, axis);
                defaults to generators seeded from options.random_seed
        """
        self.options = options or CorrectionOptions()
        self.validation_engine = validation_engine or ValidationEngine(self.options)
        self.random_factory = random_factory or seeded_factory(self.options.random_seed)

    def correct(
        self,
        point: MonitoringPoint,
        validation_results: list[ValidationResult],
    ) -> PointCorrectionResult:
        """
        Correct one point.

        Args:
            point: The point to correct (mutated in place)
            validation_results: Results of validating the point

        Returns:
            PointCorrectionResult with status Success, Error or Skipped
        """
        validation_status = ValidationEngine.summarize_status(validation_results)
        skipped = [
            r.model_copy(update={
                "correction_status": CorrectionStatus.SKIPPED,
                "details": [*r.details, "skipped: absolute-limit violations are not corrected"],
            })
            for r in validation_results
            if r.validation_type == ABSOLUTE_LIMIT
        ]
        base = {
            "point_name": point.point_name,
            "validation_status": validation_status,
            "validation_results": validation_results,
            "skipped_results": skipped,
        }

        if any(r.validation_type == PROCESSING_ERROR for r in validation_results):
            return PointCorrectionResult(
                status=CorrectionStatus.ERROR,
                message=validation_results[0].description,
                residual_results=validation_results,
                **base,
            )

        if any(r.validation_type == DATA_MISSING for r in validation_results):
            return PointCorrectionResult(
                status=CorrectionStatus.SKIPPED,
                message="No periods to correct",
                residual_results=validation_results,
                **base,
            )

        invariant_violations = [
            r for r in validation_results if r.validation_type == CUMULATIVE_INVARIANT and r.is_violation
        ]
        if not invariant_violations and not skipped:
            return PointCorrectionResult(
                status=CorrectionStatus.SUCCESS,
                message="No violations",
                residual_results=validation_results,
                **base,
            )

        if not any(r.can_adjust for r in invariant_violations):
            reason = "absolute-limit violations only" if not invariant_violations else "no violation is eligible"
            return PointCorrectionResult(
                status=CorrectionStatus.SKIPPED,
                message=f"Not auto-correctable: {reason}",
                residual_results=validation_results,
                **base,
            )

        try:
            changes = self._plan(point, validation_results)
            records = self._apply(point, changes)
            residual = self.validation_engine.validate_corrected_data(point, validation_results)
        except (NonFiniteValueError, ValidationError, ArithmeticError) as e:
            logger.warning(
                "Correction failed for point",
                extra={"point_name": point.point_name, "error": str(e)},
            )
            error_result = ValidationEngine.processing_error(point.point_name, e)
            return PointCorrectionResult(
                status=CorrectionStatus.ERROR,
                message=error_result.description,
                residual_results=[error_result],
                **base,
            )

        corrected_periods = len({c.index for c in changes})
        corrected_values = sum(2 if c.kind == AdjustmentKind.BOTH else 1 for c in changes)
        remaining = [
            r for r in residual if r.validation_type == CUMULATIVE_INVARIANT and r.is_violation
        ]
        # Violations left for manual review keep can_adjust=False through re-validation
        unresolved = [r for r in remaining if r.can_adjust]
        manual_review = [r for r in remaining if not r.can_adjust]

        if unresolved:
            status = CorrectionStatus.ERROR
            message = f"{len(unresolved)} invariant violation(s) remain after correction"
        elif not records:
            status = CorrectionStatus.SKIPPED
            message = "No adjustable segment could be corrected"
        else:
            status = CorrectionStatus.SUCCESS
            message = f"Corrected {corrected_values} value(s) in {corrected_periods} period(s)"
            if manual_review:
                message += f"; {len(manual_review)} violation(s) left for manual review"

        logger.debug(
            "Point corrected",
            extra={
                "point_name": point.point_name,
                "status": status.value,
                "adjustments": len(records),
                "residual_violations": len(unresolved),
            },
        )

        return PointCorrectionResult(
            status=status,
            message=message,
            residual_results=residual,
            adjustments=records,
            corrected_periods=corrected_periods,
            corrected_values=corrected_values,
            **base,
        )

    def get_statistics(self, records: Iterable[AdjustmentRecord]) -> CorrectionStatistics:
        return CorrectionStatistics.from_records(records)

    def _plan(self, point: MonitoringPoint, results: list[ValidationResult]) -> list[PlannedChange]:
        """First pass: compute every change without touching the periods."""
        periods = point.snapshot()
        frozen = self._limit_indices(periods, results)

        changes: list[PlannedChange] = []
        for axis in Axis:
            eligible = self._eligible_indices(periods, results, axis)
            if not eligible:
                continue
            # Periods left for manual review keep their values and bound the segments around them
            manual = self._manual_review_indices(periods, results, axis)
            mutable = [p.can_adjust and i not in frozen and i not in manual for i, p in enumerate(periods)]
            segments = [
                replace(s, right=None) if s.right in manual else s
                for s in find_segments(mutable)
            ]
            current = [require_finite(p.current_period(axis), "correction") for p in periods]
            cumulative = [require_finite(p.cumulative(axis), "correction") for p in periods]
            rng = self.random_factory(point.point_name, axis)

            for segment in segments:
                if not self._needs_correction(segment, current, cumulative, eligible):
                    continue
                if segment.bounded:
                    changes.extend(self._redistribute(periods, segment, axis, current, cumulative, rng))
                else:
                    changes.extend(self._rewrite_cumulatives(periods, segment, axis, current, cumulative))

        changes.sort(key=lambda c: (c.index, list(Axis).index(c.axis)))
        return changes

    def _needs_correction(
        self,
        segment: Segment,
        current: list[float],
        cumulative: list[float],
        eligible: set[int],
    ) -> bool:
        violated = [
            i for i in segment.relations
            if is_greater_than(
                safe_abs_diff(cumulative[i], safe_add(cumulative[i - 1], current[i])),
                self.options.cumulative_tolerance,
            )
        ]
        return any(i in eligible for i in violated)

    def _redistribute(
        self,
        periods: tuple[PeriodData, ...],
        segment: Segment,
        axis: Axis,
        current: list[float],
        cumulative: list[float],
        rng: RandomSource,
    ) -> list[PlannedChange]:
        """Spread the segment error over its current values and rebuild cumulatives from A."""
        anchor_a, anchor_b = segment.left, segment.right
        target = safe_subtract(cumulative[anchor_b], current[anchor_b])
        segment_sum = safe_sum(current[k] for k in segment.indices)
        error = safe_subtract(target, safe_add(cumulative[anchor_a], segment_sum))

        gaps = [
            (periods[k].timestamp - periods[k - 1].timestamp).total_seconds()
            for k in segment.indices
        ]
        distribution = distribute_error(error, [current[k] for k in segment.indices], gaps, rng, self.options)

        reason = (
            f"Redistributed {format_number(error)} between {periods[anchor_a].formatted_time} "
            f"and {periods[anchor_b].formatted_time}"
        )
        if distribution.exceeded_range:
            reason += " (error exceeds adjustment range)"

        changes = []
        running = cumulative[anchor_a]
        for k, share in zip(segment.indices, distribution.shares):
            new_current = safe_add(current[k], share) if abs(share) > CHANGE_EPSILON else current[k]
            running = safe_add(running, new_current)
            change = self._change(k, axis, current[k], cumulative[k], new_current, running, reason)
            if change is not None:
                changes.append(change)
        return changes

    def _rewrite_cumulatives(
        self,
        periods: tuple[PeriodData, ...],
        segment: Segment,
        axis: Axis,
        current: list[float],
        cumulative: list[float],
    ) -> list[PlannedChange]:
        """Keep current values and rewrite only the cumulatives that break the invariant."""
        changes = []
        previous = cumulative[segment.left]
        for k in segment.indices:
            expected = safe_add(previous, current[k])
            new_cumulative = cumulative[k]
            if is_greater_than(safe_abs_diff(cumulative[k], expected), self.options.cumulative_tolerance):
                new_cumulative = expected
            change = self._change(
                k, axis, current[k], cumulative[k], current[k], new_cumulative,
                "Cumulative rewritten to previous cumulative + current period",
            )
            if change is not None:
                changes.append(change)
            previous = new_cumulative
        return changes

    @staticmethod
    def _change(
        index: int,
        axis: Axis,
        old_current: float,
        old_cumulative: float,
        new_current: float,
        new_cumulative: float,
        reason: str,
    ) -> PlannedChange | None:
        current_changed = abs(new_current - old_current) > CHANGE_EPSILON
        cumulative_changed = abs(new_cumulative - old_cumulative) > CHANGE_EPSILON
        if current_changed and cumulative_changed:
            kind = AdjustmentKind.BOTH
        elif current_changed:
            kind = AdjustmentKind.CURRENT_PERIOD
        elif cumulative_changed:
            kind = AdjustmentKind.CUMULATIVE
        else:
            return None

        return PlannedChange(
            index=index,
            axis=axis,
            current_period=new_current if current_changed else old_current,
            cumulative=new_cumulative if cumulative_changed else old_cumulative,
            kind=kind,
            reason=reason,
        )

    @staticmethod
    def _apply(point: MonitoringPoint, changes: list[PlannedChange]) -> list[AdjustmentRecord]:
        """Second pass: write the planned values and record the audit trail."""
        periods = point.snapshot()
        records = []
        for change in changes:
            period = periods[change.index]
            record = AdjustmentRecord(
                point_name=point.point_name,
                axis=change.axis,
                timestamp=period.timestamp,
                row_number=period.row_number,
                kind=change.kind,
                original_value=period.current_period(change.axis),
                corrected_value=change.current_period,
                original_cumulative=period.cumulative(change.axis),
                corrected_cumulative=change.cumulative,
                reason=change.reason,
            )
            period.set_current_period(change.axis, change.current_period)
            period.set_cumulative(change.axis, change.cumulative)
            period.add_adjustment(record)
            point.add_adjustment(record)
            records.append(record)
        return records

    @staticmethod
    def _limit_indices(periods: tuple[PeriodData, ...], results: list[ValidationResult]) -> set[int]:
        keys = {(r.timestamp, r.row_number) for r in results if r.validation_type == ABSOLUTE_LIMIT}
        return {i for i, p in enumerate(periods) if (p.timestamp, p.row_number) in keys}

    @staticmethod
    def _eligible_indices(
        periods: tuple[PeriodData, ...],
        results: list[ValidationResult],
        axis: Axis,
    ) -> set[int]:
        keys = {
            (r.timestamp, r.row_number)
            for r in results
            if r.validation_type == CUMULATIVE_INVARIANT and r.axis == axis and r.can_adjust
        }
        return {i for i, p in enumerate(periods) if i > 0 and (p.timestamp, p.row_number) in keys}


    @staticmethod
    def _manual_review_indices(
        periods: tuple[PeriodData, ...],
        results: list[ValidationResult],
        axis: Axis,
    ) -> set[int]:
        keys = {
            (timestamp, row_number)
            for timestamp, row_number, result_axis in ValidationEngine.manual_review_keys(results)
            if result_axis == axis
        }
        return {i for i, p in enumerate(periods) if (p.timestamp, p.row_number) in keys}
