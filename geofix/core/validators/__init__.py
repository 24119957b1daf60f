"""
Validation check implementations.

Provides the cumulative-invariant check and the absolute-limit check
used by the validation engine.
"""

from .base_validator import BaseValidator, EligibilityCheck, ValidationError
from .cumulative_validator import CumulativeInvariantValidator, classify_severity
from .limit_validator import AbsoluteLimitValidator

__all__ = [
    "BaseValidator",
    "EligibilityCheck",
    "ValidationError",
    "CumulativeInvariantValidator",
    "AbsoluteLimitValidator",
    "classify_severity",
]
