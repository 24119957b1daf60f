"""
Batch processing of monitoring points.
"""

from .accumulator import ResultAccumulator
from .grouping import ReferenceIndex, group_by_point
from .pipeline import BatchOrchestrator

__all__ = [
    "BatchOrchestrator",
    "ResultAccumulator",
    "ReferenceIndex",
    "group_by_point",
]
