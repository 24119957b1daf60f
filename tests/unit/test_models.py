"""
Unit tests for Pydantic data models.
"""

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from geofix.core.models import (
    AdjustmentKind,
    AdjustmentRecord,
    Axis,
    CorrectionOptions,
    CorrectionResult,
    CorrectionStatistics,
    CorrectionStatus,
    MonitoringPoint,
    PeriodData,
    PointCorrectionResult,
    ValidationOptions,
    ValidationResult,
    ValidationSeverity,
    ValidationStatistics,
    ValidationStatus,
)


@pytest.mark.unit
class TestPeriodData:
    """Tests for PeriodData model"""

    def test_valid_period(self, make_period):
        """Test creating a valid period"""
        period = make_period(0, 0.5, 0.5)

        assert period.point_name == "P1"
        assert period.can_adjust is True
        assert period.validation_status == ValidationStatus.NOT_VALIDATED
        assert period.adjustments == []

    def test_empty_point_name_rejected(self):
        """Test point_name must not be empty"""
        with pytest.raises(ValidationError):
            PeriodData(point_name="", timestamp=datetime(2025, 3, 1))

    def test_formatted_time_truncates_to_hour(self):
        """Test formatted_time uses hour resolution"""
        period = PeriodData(point_name="P1", timestamp=datetime(2025, 3, 1, 8, 47, 12))
        assert period.formatted_time == "2025-03-01 08:00"

    def test_axis_accessors(self, make_period):
        """Test per-axis getters and setters"""
        period = make_period(0, 0.1, 0.2, current_period_y=0.3, cumulative_z=0.4, daily_x=0.05)

        assert period.current_period(Axis.X) == 0.1
        assert period.cumulative(Axis.X) == 0.2
        assert period.current_period(Axis.Y) == 0.3
        assert period.cumulative(Axis.Z) == 0.4
        assert period.daily(Axis.X) == 0.05

        period.set_current_period(Axis.Z, -1.5)
        period.set_cumulative(Axis.Y, 2.5)
        assert period.current_period_z == -1.5
        assert period.cumulative_y == 2.5

    def test_adjustment_trail(self, make_period):
        """Test adjustments are recorded in order"""
        period = make_period(1, 0.3, 1.0)
        record = AdjustmentRecord(
            point_name="P1",
            axis=Axis.X,
            timestamp=period.timestamp,
            kind=AdjustmentKind.CUMULATIVE,
            original_value=0.3,
            corrected_value=0.3,
            original_cumulative=1.0,
            corrected_cumulative=0.8,
            reason="test",
        )
        period.add_adjustment(record)

        assert period.has_been_adjusted
        assert period.adjustments == [record]


@pytest.mark.unit
class TestMonitoringPoint:
    """Tests for MonitoringPoint model"""

    def test_periods_sorted_on_creation(self, make_period):
        """Test periods are sorted by timestamp"""
        periods = [make_period(2), make_period(0), make_period(1)]
        point = MonitoringPoint(point_name="P1", periods=periods)

        assert [p.sequence_number for p in point.periods] == [0, 1, 2]
        assert point.period_count == 3
        assert point.earliest_time < point.latest_time

    def test_sorting_is_stable_on_ties(self, make_period):
        """Test periods with equal timestamps keep insertion order"""
        first = make_period(0)
        second = make_period(0)
        second.row_number = 99
        point = MonitoringPoint(point_name="P1", periods=[first, second])

        point.add_period(make_period(0))
        assert [p.row_number for p in point.periods] == [1, 99, 1]
        assert point.periods[0] is first

    def test_add_period_keeps_order(self, make_period):
        """Test add_period inserts at the right position"""
        point = MonitoringPoint(point_name="P1", periods=[make_period(0), make_period(2)])
        point.add_period(make_period(1))

        assert [p.sequence_number for p in point.periods] == [0, 1, 2]

    def test_add_period_name_is_case_insensitive(self, make_period):
        """Test 'p1' periods belong to point 'P1'"""
        point = MonitoringPoint(point_name="P1")
        point.add_period(make_period(0, point_name="p1"))
        assert point.period_count == 1

    def test_add_period_rejects_other_point(self, make_period):
        """Test a period of another point is rejected"""
        point = MonitoringPoint(point_name="P1")
        with pytest.raises(ValueError):
            point.add_period(make_period(0, point_name="P2"))

    def test_constructor_rejects_other_point(self, make_period):
        """Test construction with a foreign period fails"""
        with pytest.raises(ValidationError):
            MonitoringPoint(point_name="P1", periods=[make_period(0, point_name="P2")])

    def test_constructor_rejects_reference_of_other_point(self, make_period):
        """Test construction with another point's reference record fails"""
        with pytest.raises(ValidationError):
            MonitoringPoint(point_name="P1", reference_data=make_period(1, point_name="P2"))

    def test_set_reference_data(self, make_period):
        """Test the reference record must name the same point, case-insensitively"""
        point = MonitoringPoint(point_name="P1")
        point.set_reference_data(make_period(1, point_name="p1"))
        assert point.reference_data.point_name == "p1"

        with pytest.raises(ValueError):
            point.set_reference_data(make_period(1, point_name="P2"))
        assert point.reference_data.point_name == "p1"

        point.set_reference_data(None)
        assert point.reference_data is None

    def test_period_lookup(self, make_period):
        """Test lookup by time and previous period"""
        periods = [make_period(0), make_period(1), make_period(2)]
        point = MonitoringPoint(point_name="P1", periods=periods)

        assert point.get_period_by_time(periods[1].timestamp) is periods[1]
        assert point.get_period_by_time(datetime(1999, 1, 1)) is None
        assert point.previous_period(periods[2].timestamp) is periods[1]
        assert point.previous_period(periods[0].timestamp) is None
        assert point.previous_period(periods[2].timestamp + timedelta(hours=1)) is periods[2]

    def test_snapshot_is_tuple_of_same_periods(self, make_period):
        """Test snapshot is immutable but shares the period objects"""
        point = MonitoringPoint(point_name="P1", periods=[make_period(0)])
        snapshot = point.snapshot()

        assert isinstance(snapshot, tuple)
        assert snapshot[0] is point.periods[0]

    def test_empty_point(self):
        """Test a point without periods"""
        point = MonitoringPoint(point_name="P9")
        assert point.period_count == 0
        assert point.earliest_time is None


@pytest.mark.unit
class TestValidationResult:
    """Tests for ValidationResult model"""

    def test_result_is_immutable(self):
        """Test results cannot be modified after creation"""
        result = ValidationResult(
            status=ValidationStatus.INVALID,
            severity=ValidationSeverity.WARNING,
            validation_type="cumulative_invariant",
            point_name="P1",
            axis=Axis.X,
        )
        with pytest.raises(ValidationError):
            result.can_adjust = True

    def test_model_copy_derives_new_result(self):
        """Test derived results are built with model_copy"""
        result = ValidationResult(
            status=ValidationStatus.INVALID,
            severity=ValidationSeverity.ERROR,
            validation_type="absolute_limit",
            point_name="P1",
        )
        derived = result.model_copy(update={"details": ["skipped"]})

        assert derived.details == ["skipped"]
        assert result.details == []
        assert derived.is_violation

    def test_severity_rank(self):
        """Test severity ranks are ordered"""
        ranks = [s.rank for s in (ValidationSeverity.INFO, ValidationSeverity.WARNING,
                                  ValidationSeverity.ERROR, ValidationSeverity.CRITICAL)]
        assert ranks == sorted(ranks)


@pytest.mark.unit
class TestAdjustmentRecord:
    """Tests for AdjustmentRecord model"""

    def test_delta_of_current_change(self):
        """Test delta follows the current value for Both adjustments"""
        record = AdjustmentRecord(
            point_name="P1", axis=Axis.X, timestamp=datetime(2025, 3, 2, 8),
            kind=AdjustmentKind.BOTH, original_value=0.3, corrected_value=0.25,
            original_cumulative=1.0, corrected_cumulative=0.95, reason="redistributed",
        )
        assert record.delta == pytest.approx(-0.05)
        assert record.cumulative_delta == pytest.approx(-0.05)

    def test_delta_of_cumulative_change(self):
        """Test delta follows the cumulative value for Cumulative adjustments"""
        record = AdjustmentRecord(
            point_name="P1", axis=Axis.Y, timestamp=datetime(2025, 3, 2, 8),
            kind=AdjustmentKind.CUMULATIVE, original_value=0.3, corrected_value=0.3,
            original_cumulative=1.0, corrected_cumulative=0.8, reason="rewritten",
        )
        assert record.delta == pytest.approx(-0.2)


@pytest.mark.unit
class TestOptions:
    """Tests for ValidationOptions and CorrectionOptions"""

    def test_defaults(self):
        """Test default knob values"""
        options = CorrectionOptions()

        assert options.cumulative_tolerance == 2.0
        assert options.error_threshold == 3.0
        assert options.critical_threshold == 5.0
        assert options.batch_size == 50
        assert options.max_processing_time_minutes == 30
        assert options.memory_cleanup_frequency == 200
        assert options.random_seed == 42
        assert options.adjustment_range == 0.05
        assert options.minimum_adjustment == 0.001

    def test_correction_options_extend_validation_options(self):
        """Test CorrectionOptions can be used where ValidationOptions is expected"""
        assert isinstance(CorrectionOptions(), ValidationOptions)

    def test_thresholds_must_be_ordered(self):
        """Test error_threshold may not exceed critical_threshold"""
        with pytest.raises(ValidationError) as exc_info:
            ValidationOptions(error_threshold=6.0, critical_threshold=5.0)

        assert "critical_threshold" in str(exc_info.value)

    def test_invalid_batch_size(self):
        """Test batch_size must be positive"""
        with pytest.raises(ValidationError):
            ValidationOptions(batch_size=0)

    def test_effective_parallelism(self):
        """Test 0 resolves to at least one worker"""
        assert ValidationOptions(max_degree_of_parallelism=3).effective_parallelism == 3
        assert ValidationOptions(max_degree_of_parallelism=0).effective_parallelism >= 1

    def test_processing_seconds(self):
        """Test minutes are converted to seconds"""
        assert ValidationOptions(max_processing_time_minutes=1.5).max_processing_seconds == 90.0


@pytest.mark.unit
class TestResultsAndStatistics:
    """Tests for CorrectionResult roll-ups and statistics"""

    def _result(self, name, status, validation_status, adjustments=0, skipped=0):
        record = AdjustmentRecord(
            point_name=name, axis=Axis.X, timestamp=datetime(2025, 3, 2, 8),
            kind=AdjustmentKind.CUMULATIVE, original_value=0.3, corrected_value=0.3,
            original_cumulative=1.0, corrected_cumulative=0.8, reason="rewritten",
        )
        limit = ValidationResult(
            status=ValidationStatus.INVALID, severity=ValidationSeverity.ERROR,
            validation_type="absolute_limit", point_name=name, source_file="a.xls",
        )
        return PointCorrectionResult(
            point_name=name,
            status=status,
            validation_status=validation_status,
            adjustments=[record] * adjustments,
            skipped_results=[limit] * skipped,
        )

    def test_roll_up_counts(self):
        """Test counts are derived from point results"""
        result = CorrectionResult(point_results=[
            self._result("P1", CorrectionStatus.SUCCESS, ValidationStatus.VALID),
            self._result("P2", CorrectionStatus.SUCCESS, ValidationStatus.NEEDS_ADJUSTMENT, adjustments=2),
            self._result("P3", CorrectionStatus.SKIPPED, ValidationStatus.INVALID, skipped=3),
            self._result("P4", CorrectionStatus.ERROR, ValidationStatus.INVALID),
        ])

        assert result.total_points == 4
        assert result.valid_points == 1
        assert result.invalid_points == 3
        assert result.corrected_points == 1
        assert result.success_count == 2
        assert result.skipped_points == 1
        assert result.error_points == 1
        assert result.limit_violation_count == 3
        assert result.limit_skipped_points == 1
        assert result.get_point_result("P3").has_skipped_limits
        assert not result.get_point_result("P4").has_skipped_limits
        assert result.get_point_result("P3").status == CorrectionStatus.SKIPPED
        assert "2 success" in result.get_summary()
        assert "Absolute-limit violations: 3 in 1 point(s)" in result.get_summary()

    def test_limit_skipped_points_counted_apart_from_status(self):
        """Test points with skipped limits are counted whatever their correction status"""
        result = CorrectionResult(point_results=[
            self._result("P1", CorrectionStatus.SUCCESS, ValidationStatus.NEEDS_ADJUSTMENT, adjustments=1, skipped=1),
            self._result("P2", CorrectionStatus.SKIPPED, ValidationStatus.INVALID),
            self._result("P3", CorrectionStatus.SKIPPED, ValidationStatus.INVALID, skipped=2),
        ])

        assert result.skipped_points == 2
        assert result.limit_skipped_points == 2
        assert result.limit_violation_count == 3
        assert "Absolute-limit violations: 3 in 2 point(s)" in result.get_summary()

    def test_summary_flags_partial_run(self):
        """Test the summary mentions an exceeded budget"""
        result = CorrectionResult(completed=False, unprocessed_points=["P5"])
        assert "time budget exceeded" in result.get_summary()

    def test_validation_statistics(self):
        """Test counting by status, severity, type, point and file"""
        results = [
            ValidationResult(status=ValidationStatus.VALID, severity=ValidationSeverity.INFO,
                             validation_type="point_valid", point_name="P1"),
            ValidationResult(status=ValidationStatus.INVALID, severity=ValidationSeverity.WARNING,
                             validation_type="cumulative_invariant", point_name="P2",
                             source_file="b.xls", can_adjust=True),
            ValidationResult(status=ValidationStatus.INVALID, severity=ValidationSeverity.ERROR,
                             validation_type="absolute_limit", point_name="P2", source_file="b.xls"),
        ]
        stats = ValidationStatistics.from_results(results)

        assert stats.total_results == 3
        assert stats.valid_count == 1
        assert stats.invalid_count == 2
        assert stats.by_severity == {"info": 1, "warning": 1, "error": 1}
        assert stats.by_type == {"cumulative_invariant": 1, "absolute_limit": 1}
        assert stats.by_point == {"P2": 2}
        assert stats.by_file == {"b.xls": 2}
        assert stats.adjustable_count == 1
        assert "P2: 2" in stats.get_detailed_info()

    def test_correction_statistics(self):
        """Test counting adjustments by kind, axis and point"""
        records = self._result("P1", CorrectionStatus.SUCCESS, ValidationStatus.NEEDS_ADJUSTMENT,
                               adjustments=2).adjustments
        stats = CorrectionStatistics.from_records(records)

        assert stats.total_adjustments == 2
        assert stats.by_kind == {"cumulative": 2}
        assert stats.by_axis == {"X": 2}
        assert stats.max_abs_delta == pytest.approx(0.2)
        assert "Adjustments: 2" in stats.get_summary()
