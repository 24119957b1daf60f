"""
Core data models for the monitoring validation and correction engine.

All models use Pydantic for runtime validation and type safety.
"""

from .adjustment_record import AdjustmentRecord
from .correction_result import CorrectionResult, PointCorrectionResult
from .enums import AdjustmentKind, Axis, CorrectionStatus, ValidationSeverity, ValidationStatus
from .monitoring_point import MonitoringPoint
from .options import CorrectionOptions, ValidationOptions
from .period_data import PeriodData
from .statistics import CorrectionStatistics, ValidationStatistics
from .validation_result import ValidationResult

__all__ = [
    "Axis",
    "ValidationStatus",
    "ValidationSeverity",
    "AdjustmentKind",
    "CorrectionStatus",
    "PeriodData",
    "MonitoringPoint",
    "ValidationResult",
    "AdjustmentRecord",
    "PointCorrectionResult",
    "CorrectionResult",
    "ValidationOptions",
    "CorrectionOptions",
    "ValidationStatistics",
    "CorrectionStatistics",
]
