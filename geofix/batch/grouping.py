"""
Grouping of normalized period records into monitoring points, and the
pre-indexed reference lookup used for eligibility decisions.
"""

from typing import Iterable, Iterator

from geofix.core.models import MonitoringPoint, PeriodData
from geofix.observability.logger import get_logger

logger = get_logger(__name__)


def group_by_point(periods: Iterable[PeriodData]) -> list[MonitoringPoint]:
    """
    Group flat period records into time-sorted monitoring points.

    Point names are matched case-insensitively; the first spelling seen
    names the point. Points are returned in order of first appearance.

    Args:
        periods: Normalized period records in any order

    Returns:
        One MonitoringPoint per distinct point name
    """
    points: dict[str, MonitoringPoint] = {}
    for period in periods:
        key = period.point_name.casefold()
        point = points.get(key)
        if point is None:
            point = MonitoringPoint(point_name=period.point_name)
            points[key] = point
        point.add_period(period)

    logger.debug(
        "Grouped periods into points",
        extra={"point_count": len(points)},
    )
    return list(points.values())


class ReferenceIndex:
    """
    Reference records keyed by (point name, formatted time).

    Built once per run so each eligibility lookup is a single dictionary
    access. Point names are compared case-insensitively.

    Examples:
        >>> index = ReferenceIndex.from_periods(reference_periods)  # doctest: +SKIP
        >>> index.has_reference("P1", "2025-03-02 08:00")  # doctest: +SKIP
        True
    """

    def __init__(self):
        self._index: dict[tuple[str, str], PeriodData] = {}

    @classmethod
    def from_periods(cls, periods: Iterable[PeriodData] | None) -> "ReferenceIndex":
        index = cls()
        for period in periods or []:
            index.add(period)
        return index

    @staticmethod
    def make_key(point_name: str, formatted_time: str) -> tuple[str, str]:
        return (point_name.casefold(), formatted_time)

    def add(self, period: PeriodData) -> None:
        """Index a reference record; the first record for a key wins."""
        key = self.make_key(period.point_name, period.formatted_time)
        if key in self._index:
            logger.debug(
                "Duplicate reference record ignored",
                extra={"point_name": period.point_name, "period_key": period.formatted_time},
            )
            return
        self._index[key] = period

    def get(self, point_name: str, formatted_time: str) -> PeriodData | None:
        return self._index.get(self.make_key(point_name, formatted_time))

    def has_reference(self, point_name: str, formatted_time: str) -> bool:
        return self.make_key(point_name, formatted_time) in self._index

    def __contains__(self, key: tuple[str, str]) -> bool:
        return self.has_reference(*key)

    def __len__(self) -> int:
        return len(self._index)

    def __iter__(self) -> Iterator[PeriodData]:
        return iter(self._index.values())
