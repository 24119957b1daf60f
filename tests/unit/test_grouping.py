"""
Unit tests for point grouping, the reference index and the result accumulator.
"""

from datetime import datetime

import pytest

from geofix.batch import ReferenceIndex, ResultAccumulator, group_by_point
from geofix.core.models import CorrectionStatus, PeriodData, PointCorrectionResult, ValidationStatus


def _result(name, status=CorrectionStatus.SUCCESS):
    return PointCorrectionResult(point_name=name, status=status, validation_status=ValidationStatus.VALID)


@pytest.mark.unit
class TestGroupByPoint:
    """Tests for group_by_point"""

    def test_groups_and_sorts_periods(self, make_period):
        """Test periods are grouped per point and sorted by time"""
        periods = [
            make_period(2, point_name="P1"),
            make_period(0, point_name="P2"),
            make_period(0, point_name="P1"),
            make_period(1, point_name="P1"),
        ]
        points = group_by_point(periods)

        assert [p.point_name for p in points] == ["P1", "P2"]
        assert [p.row_number for p in points[0].periods] == [1, 2, 3]
        assert points[1].period_count == 1

    def test_names_are_case_insensitive(self, make_period):
        """Test differently cased names end up in the first-seen point"""
        points = group_by_point([make_period(0, point_name="Ks-1"), make_period(1, point_name="KS-1")])

        assert len(points) == 1
        assert points[0].point_name == "Ks-1"
        assert points[0].period_count == 2

    def test_empty_input(self):
        """Test no periods give no points"""
        assert group_by_point([]) == []


@pytest.mark.unit
class TestReferenceIndex:
    """Tests for ReferenceIndex"""

    def test_lookup_by_point_and_hour(self):
        """Test lookups match the formatted hour and ignore case"""
        reference = PeriodData(point_name="P1", timestamp=datetime(2025, 3, 1, 8, 20))
        index = ReferenceIndex.from_periods([reference])

        assert index.has_reference("p1", "2025-03-01 08:00")
        assert ("P1", "2025-03-01 08:00") in index
        assert not index.has_reference("P1", "2025-03-01 09:00")
        assert index.get("P1", "2025-03-01 08:00") is reference

    def test_first_record_wins(self):
        """Test duplicate keys keep the first reference record"""
        first = PeriodData(point_name="P1", timestamp=datetime(2025, 3, 1, 8, 0), source_file="a.xls")
        second = PeriodData(point_name="P1", timestamp=datetime(2025, 3, 1, 8, 0), source_file="b.xls")
        index = ReferenceIndex.from_periods([first, second])

        assert len(index) == 1
        assert list(index) == [first]

    def test_empty_index(self):
        """Test None builds an empty index"""
        index = ReferenceIndex.from_periods(None)
        assert len(index) == 0
        assert not index.has_reference("P1", "2025-03-01 08:00")


@pytest.mark.unit
class TestResultAccumulator:
    """Tests for ResultAccumulator"""

    def test_results_are_ordered_by_input_position(self):
        """Test completion order does not change the merged order"""
        accumulator = ResultAccumulator()
        assert accumulator.add(2, _result("C")) == 1
        assert accumulator.add(0, _result("A")) == 2
        assert accumulator.add(1, _result("B")) == 3

        result = accumulator.build(completed=True, unprocessed_points=[], elapsed_seconds=0.5)

        assert [r.point_name for r in result.point_results] == ["A", "B", "C"]
        assert result.total_points == 3
        assert accumulator.processed == 3

    def test_duplicate_index_rejected(self):
        """Test a point cannot be recorded twice"""
        accumulator = ResultAccumulator()
        accumulator.add(0, _result("A"))

        with pytest.raises(ValueError):
            accumulator.add(0, _result("A"))

    def test_partial_run(self):
        """Test unprocessed points are carried into the result"""
        accumulator = ResultAccumulator()
        accumulator.add(0, _result("A", CorrectionStatus.ERROR))

        result = accumulator.build(completed=False, unprocessed_points=["B"], elapsed_seconds=2.0)

        assert not result.completed
        assert result.unprocessed_points == ["B"]
        assert result.error_points == 1
        assert "time budget exceeded" in result.get_summary()
