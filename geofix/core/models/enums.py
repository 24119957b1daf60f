"""
Enumerations shared by the monitoring data models.
"""

from enum import Enum


class Axis(str, Enum):
    """Spatial axis of a monitoring reading."""

    X = "X"
    Y = "Y"
    Z = "Z"


class ValidationStatus(str, Enum):
    NOT_VALIDATED = "not_validated"
    VALID = "valid"
    INVALID = "invalid"
    NEEDS_ADJUSTMENT = "needs_adjustment"


class ValidationSeverity(str, Enum):
    """Severity of a validation outcome, ordered from least to most severe."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    ValidationSeverity.INFO: 0,
    ValidationSeverity.WARNING: 1,
    ValidationSeverity.ERROR: 2,
    ValidationSeverity.CRITICAL: 3,
}


class AdjustmentKind(str, Enum):
    """Which value(s) of a period an adjustment touched."""

    CURRENT_PERIOD = "current_period"
    CUMULATIVE = "cumulative"
    BOTH = "both"


class CorrectionStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"
