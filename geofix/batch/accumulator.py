"""
Thread-safe collector for per-point results of a batch run.
"""

import threading

from geofix.core.models import CorrectionResult, PointCorrectionResult


class ResultAccumulator:
    """
    Collects point results from worker threads.

    Each worker hands over its finished result once; results are keyed by
    input position so the merged output does not depend on completion order.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._results: dict[int, PointCorrectionResult] = {}
        self._processed = 0

    def add(self, index: int, result: PointCorrectionResult) -> int:
        """
        Store the result for the point at input position index.

        Returns:
            Number of points processed so far
        """
        with self._lock:
            if index in self._results:
                raise ValueError(f"Result for point #{index} was already recorded")
            self._results[index] = result
            self._processed += 1
            return self._processed

    @property
    def processed(self) -> int:
        with self._lock:
            return self._processed

    def ordered_results(self) -> list[PointCorrectionResult]:
        with self._lock:
            return [self._results[i] for i in sorted(self._results)]

    def build(
        self,
        completed: bool,
        unprocessed_points: list[str],
        elapsed_seconds: float,
    ) -> CorrectionResult:
        """
        Merge collected results into the run's CorrectionResult.

        Adjustment records are flattened in input point order, then period order.
        """
        point_results = self.ordered_results()
        records = [record for result in point_results for record in result.adjustments]
        return CorrectionResult(
            point_results=point_results,
            adjustment_records=records,
            completed=completed,
            unprocessed_points=unprocessed_points,
            elapsed_seconds=elapsed_seconds,
        )
