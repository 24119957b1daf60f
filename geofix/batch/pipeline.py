"""
Batch orchestration of validation and correction.

Coordinates the flow: index references → partition into batches →
validate + correct each point in a worker pool → aggregate
"""

import gc
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable

from geofix.batch.accumulator import ResultAccumulator
from geofix.batch.grouping import ReferenceIndex
from geofix.core.correction import CorrectionEngine
from geofix.core.models import (
    CorrectionOptions,
    CorrectionResult,
    CorrectionStatus,
    MonitoringPoint,
    PeriodData,
    PointCorrectionResult,
    ValidationStatus,
)
from geofix.core.rules import ValidationEngine
from geofix.observability import metrics
from geofix.observability.logger import get_logger, log_operation

logger = get_logger(__name__)


class BatchOrchestrator:
    """
    Runs validation and correction over a whole point set.

    Flow:
    1. Build the reference index once for the run
    2. Split points into batches of options.batch_size
    3. Process each batch in a thread pool; wait for the whole batch
    4. Check the time budget before starting the next batch
    5. Collect garbage every options.memory_cleanup_frequency points
    6. Merge per-point results in input order

    A point is either fully validated and corrected or not started: the
    budget is only checked between batches.
    """

    def __init__(
        self,
        options: CorrectionOptions | None = None,
        validation_engine: ValidationEngine | None = None,
        correction_engine: CorrectionEngine | None = None,
        clock: Callable[[], float] = time.monotonic,
        collect_garbage: Callable[[], int] = gc.collect,
    ):
        """
        Initialize the orchestrator.

        Args:
            options: Run options (defaults to CorrectionOptions())
            validation_engine: Engine for the initial validation
            correction_engine: Engine for correction and re-validation
            clock: Monotonic seconds source for the time budget
            collect_garbage: Reclamation hook run on the cleanup cadence
        """
        self.options = options or CorrectionOptions()
        self.validation_engine = validation_engine or ValidationEngine(self.options)
        self.correction_engine = correction_engine or CorrectionEngine(
            self.options, validation_engine=self.validation_engine
        )
        self.clock = clock
        self.collect_garbage = collect_garbage

    def run_batch(
        self,
        points: Iterable[MonitoringPoint],
        reference_data: Iterable[PeriodData] | ReferenceIndex | None = None,
    ) -> CorrectionResult:
        """
        Validate and correct every point, within the time budget.

        Args:
            points: Points to process; each is mutated in place by correction
            reference_data: Reference records (or a prebuilt ReferenceIndex)
                used to decide which violations may be corrected automatically

        Returns:
            CorrectionResult; completed=False and unprocessed_points set when
            the run stopped on its time budget
        """
        points = list(points)
        if isinstance(reference_data, ReferenceIndex):
            reference_index = reference_data
        else:
            reference_index = ReferenceIndex.from_periods(reference_data)

        batch_size = self.options.batch_size
        budget = self.options.max_processing_seconds
        accumulator = ResultAccumulator()
        completed = True
        unprocessed: list[str] = []
        cleanups = 0

        start = self.clock()
        with log_operation(
            "Correction run",
            logger=logger,
            total_points=len(points),
            batch_size=batch_size,
            reference_records=len(reference_index),
        ):
            for batch_index, offset in enumerate(range(0, len(points), batch_size)):
                if batch_index > 0:
                    elapsed = self.clock() - start
                    if elapsed > budget:
                        completed = False
                        unprocessed = [p.point_name for p in points[offset:]]
                        logger.warning(
                            "Processing time budget exceeded, stopping run",
                            extra={
                                "elapsed_seconds": round(elapsed, 3),
                                "budget_seconds": budget,
                                "processed_points": accumulator.processed,
                                "unprocessed_points": len(unprocessed),
                            },
                        )
                        break

                batch = points[offset:offset + batch_size]
                self._process_batch(batch_index, offset, batch, reference_index, accumulator)

                cleanups = self._maybe_cleanup(accumulator.processed, cleanups)

            elapsed = self.clock() - start

        result = accumulator.build(
            completed=completed,
            unprocessed_points=unprocessed,
            elapsed_seconds=elapsed,
        )
        metrics.record_run_completion(completed, len(unprocessed))
        logger.info(
            "Correction run summary",
            extra={
                "total_points": result.total_points,
                "success": result.success_count,
                "corrected": result.corrected_points,
                "skipped": result.skipped_points,
                "limit_skipped": result.limit_skipped_points,
                "errors": result.error_points,
                "adjustments": len(result.adjustment_records),
                "completed": completed,
            },
        )
        return result

    def process_point(
        self,
        point: MonitoringPoint,
        reference_index: ReferenceIndex | None = None,
    ) -> PointCorrectionResult:
        """
        Validate one point, then correct its adjustable violations.

        Args:
            point: The point to process
            reference_index: Reference lookup for eligibility

        Returns:
            The point's correction result
        """
        results = self.validation_engine.validate(point, reference_index)
        metrics.record_validation_results(results)

        outcome = self.correction_engine.correct(point, results)
        metrics.record_adjustments(outcome.adjustments)
        return outcome

    def _process_batch(
        self,
        batch_index: int,
        offset: int,
        batch: list[MonitoringPoint],
        reference_index: ReferenceIndex,
        accumulator: ResultAccumulator,
    ) -> None:
        """Run one batch in a worker pool and wait for all of it."""
        workers = max(1, min(self.options.effective_parallelism, len(batch)))
        batch_start = time.perf_counter()

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="geofix-worker") as executor:
            futures = {
                executor.submit(self._worker, offset + i, point, reference_index, accumulator): point
                for i, point in enumerate(batch)
            }
            for future in as_completed(futures):
                # Workers never raise for point failures; anything here is a bug
                future.result()

        duration = time.perf_counter() - batch_start
        metrics.record_batch(duration)
        logger.info(
            "Batch processed",
            extra={
                "batch_index": batch_index,
                "batch_points": len(batch),
                "workers": workers,
                "processed_points": accumulator.processed,
                "duration_seconds": round(duration, 3),
            },
        )

    def _worker(
        self,
        index: int,
        point: MonitoringPoint,
        reference_index: ReferenceIndex,
        accumulator: ResultAccumulator,
    ) -> int:
        started = time.perf_counter()
        try:
            result = self.process_point(point, reference_index)
        except Exception as e:
            logger.error(
                "Point processing failed",
                extra={"point_name": point.point_name, "error_type": type(e).__name__, "error": str(e)},
                exc_info=True,
            )
            result = self._error_result(point, e)

        metrics.record_point_result(result, time.perf_counter() - started)
        return accumulator.add(index, result)

    def _maybe_cleanup(self, processed: int, cleanups: int) -> int:
        """Collect garbage once per memory_cleanup_frequency processed points."""
        if not self.options.enable_memory_cleanup:
            return cleanups

        due = processed // self.options.memory_cleanup_frequency
        if due > cleanups:
            collected = self.collect_garbage()
            metrics.record_memory_cleanup()
            logger.debug(
                "Memory cleanup",
                extra={"processed_points": processed, "collected_objects": collected},
            )
            return due
        return cleanups

    @staticmethod
    def _error_result(point: MonitoringPoint, error: Exception) -> PointCorrectionResult:
        error_result = ValidationEngine.processing_error(point.point_name, error)
        return PointCorrectionResult(
            point_name=point.point_name,
            status=CorrectionStatus.ERROR,
            validation_status=ValidationStatus.INVALID,
            message=error_result.description,
            residual_results=[error_result],
        )
