"""
Numeric utilities for the cumulative-consistency engines.

Provides tolerant floating-point comparison and safe arithmetic that
refuses NaN/Infinity instead of letting them leak into corrected values.
Arithmetic goes through Decimal so that sums like 0.1 + 0.2 compare the
way monitoring data is written in the source spreadsheets.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

DEFAULT_TOLERANCE = 1e-10
ENGINEERING_TOLERANCE = 1e-6


class NonFiniteValueError(ValueError):
    """Raised when a NaN or infinite value reaches safe arithmetic."""

    def __init__(self, value: float, operation: str = "arithmetic"):
        self.value = value
        self.operation = operation
        super().__init__(f"Non-finite value {value!r} in {operation}")


def is_finite(value: float) -> bool:
    """
    Check that a value is a real, finite number.

    Examples:
        >>> is_finite(1.5)
        True
        >>> is_finite(float("nan"))
        False
    """
    return isinstance(value, int | float) and math.isfinite(value)


def to_decimal(value: float, operation: str = "arithmetic") -> Decimal:
    """
    Convert a float to Decimal, rejecting non-finite values.

    Args:
        value: The float to convert
        operation: Name of the calling operation (for error messages)

    Returns:
        Decimal built from the shortest repr of the float

    Raises:
        NonFiniteValueError: If value is NaN or infinite
    """
    if not is_finite(value):
        raise NonFiniteValueError(value, operation)
    return Decimal(repr(float(value)))


def require_finite(value: float, operation: str = "arithmetic") -> float:
    """
    Return value unchanged, rejecting NaN and infinities.

    Raises:
        NonFiniteValueError: If value is NaN or infinite
    """
    if not is_finite(value):
        raise NonFiniteValueError(value, operation)
    return value


def safe_add(a: float, b: float) -> float:
    """
    Add two floats through Decimal.

    Examples:
        >>> safe_add(0.1, 0.2)
        0.3
        >>> safe_add(float("inf"), 1.0)  # doctest: +SKIP
        NonFiniteValueError: Non-finite value inf in add
    """
    return float(to_decimal(a, "add") + to_decimal(b, "add"))


def safe_subtract(a: float, b: float) -> float:
    """Subtract b from a through Decimal."""
    return float(to_decimal(a, "subtract") - to_decimal(b, "subtract"))


def safe_abs_diff(a: float, b: float) -> float:
    """
    Absolute difference |a - b| through Decimal.

    Examples:
        >>> safe_abs_diff(1.0, 0.8)
        0.2
    """
    return abs(safe_subtract(a, b))


def safe_sum(values: Iterable[float]) -> float:
    """
    Sum values through Decimal.

    Examples:
        >>> safe_sum([0.1, 0.1, 0.1])
        0.3
        >>> safe_sum([])
        0.0
    """
    total = Decimal(0)
    for value in values:
        total += to_decimal(value, "sum")
    return float(total)


def safe_average(values: Iterable[float]) -> float:
    """
    Arithmetic mean, 0.0 for an empty sequence.

    Examples:
        >>> safe_average([1.0, 2.0, 3.0])
        2.0
        >>> safe_average([])
        0.0
    """
    items = list(values)
    if not items:
        return 0.0
    return safe_sum(items) / len(items)


def safe_std(values: Iterable[float]) -> float:
    """Sample standard deviation ignoring non-finite values, 0.0 below two samples."""
    items = [v for v in values if is_finite(v)]
    if len(items) < 2:
        return 0.0
    mean = safe_average(items)
    squared = math.fsum((v - mean) ** 2 for v in items)
    return math.sqrt(squared / (len(items) - 1))


def safe_round(value: float, digits: int = 0) -> float:
    """
    Round half away from zero, returning non-finite values unchanged.

    Examples:
        >>> safe_round(2.675, 2)
        2.68
        >>> safe_round(-0.5)
        -1.0
    """
    if not is_finite(value):
        return value
    quantum = Decimal(1).scaleb(-digits)
    return float(to_decimal(value, "round").quantize(quantum, rounding=ROUND_HALF_UP))


def safe_sign(value: float) -> float:
    """Sign of value as -1.0, 0.0 or 1.0 (0.0 for NaN)."""
    if math.isnan(value):
        return 0.0
    if value > 0:
        return 1.0
    if value < 0:
        return -1.0
    return 0.0


def clamp(value: float, minimum: float, maximum: float) -> float:
    """
    Limit value to [minimum, maximum].

    Infinite values snap to the matching bound; NaN is rejected.

    Examples:
        >>> clamp(5.0, -1.0, 1.0)
        1.0
        >>> clamp(float("-inf"), -1.0, 1.0)
        -1.0
    """
    if minimum > maximum:
        raise ValueError(f"clamp bounds are inverted: {minimum} > {maximum}")
    if math.isnan(value):
        raise NonFiniteValueError(value, "clamp")
    return max(minimum, min(value, maximum))


def are_equal(a: float, b: float, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    """
    Compare two floats with a combined absolute/relative tolerance.

    Values that are both smaller than the tolerance are compared by absolute
    difference; otherwise the relative error is used.

    Examples:
        >>> are_equal(0.1 + 0.2, 0.3)
        True
        >>> are_equal(1.0, 1.1, 0.01)
        False
    """
    if math.isnan(a) or math.isnan(b):
        return False
    if math.isinf(a) or math.isinf(b):
        return a == b

    diff = abs(a - b)
    abs_a, abs_b = abs(a), abs(b)
    if abs_a < tolerance and abs_b < tolerance:
        return diff < tolerance
    return diff / max(abs_a, abs_b) < tolerance


def is_greater_than(a: float, b: float, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    """True when a > b and the two are not equal within tolerance."""
    return a > b and not are_equal(a, b, tolerance)


def is_less_than(a: float, b: float, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    """True when a < b and the two are not equal within tolerance."""
    return a < b and not are_equal(a, b, tolerance)


def is_less_than_or_equal(a: float, b: float, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    return a < b or are_equal(a, b, tolerance)


def is_greater_than_or_equal(a: float, b: float, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    return a > b or are_equal(a, b, tolerance)


def is_zero(value: float, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    return abs(value) < tolerance


def format_number(value: float, digits: int = 6) -> str:
    """
    Fixed-point formatting without scientific notation.

    Examples:
        >>> format_number(0.2)
        '0.200000'
        >>> format_number(1e-7, 3)
        '0.000'
    """
    if not is_finite(value):
        return str(value)
    return f"{safe_round(value, digits):.{digits}f}"
