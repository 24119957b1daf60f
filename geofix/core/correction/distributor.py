"""
Redistribution of a segment's total error over its current-period values.
"""

import math
from dataclasses import dataclass, field
from typing import Sequence

from geofix.core.models import CorrectionOptions
from geofix.utils.numeric import safe_average, safe_sign

from .random_source import RandomSource

# Below this the error is considered fully distributed
RESIDUE_EPSILON = 1e-12


@dataclass
class Distribution:
    """
    Per-period shares of a segment error.

    Attributes:
        shares: Amount added to each current-period value; sums to the error
        caps: Per-period adjustment caps
        weights: Normalized redistribution weights
        exceeded_range: True when the caps could not absorb the whole error
    """

    shares: list[float]
    caps: list[float] = field(default_factory=list)
    weights: list[float] = field(default_factory=list)
    exceeded_range: bool = False


def redistribution_weights(
    gaps: Sequence[float],
    rng: RandomSource,
    time_factor_weight: float,
) -> list[float]:
    """
    Seeded weights, larger for periods that follow longer time gaps.

    Draws exactly one random number per period, in period order.

    Args:
        gaps: Seconds between each period and its predecessor
        rng: Random source for the point and axis
        time_factor_weight: Influence of the relative time gap

    Returns:
        Weights summing to 1.0
    """
    mean_gap = safe_average(gaps) if gaps else 0.0
    raw = []
    for gap in gaps:
        time_factor = 1.0
        if mean_gap > 0:
            time_factor += time_factor_weight * gap / mean_gap
        raw.append((0.5 + rng.random()) * time_factor)

    total = math.fsum(raw)
    return [w / total for w in raw]


def distribute_error(
    error: float,
    originals: Sequence[float],
    gaps: Sequence[float],
    rng: RandomSource,
    options: CorrectionOptions,
) -> Distribution:
    """
    Split error over the periods by weight, capping each share.

    Each share is capped at max(minimum_adjustment, adjustment_range * |original|).
    Whatever a capped period cannot take is water-filled to the periods still
    below their cap. If every period saturates, the remainder is spread by
    weight on top of the caps so the shares always add up to error.

    Args:
        error: Total amount to add to the segment's current-period values
        originals: Current-period values of the segment
        gaps: Seconds between each period and its predecessor
        rng: Random source for the point and axis
        options: Adjustment range, minimum adjustment and time factor weight

    Returns:
        Distribution with one share per period

    Examples:
        >>> dist = distribute_error(0.0, [1.0, 1.0], [3600.0, 3600.0], rng, options)  # doctest: +SKIP
        >>> dist.shares  # doctest: +SKIP
        [0.0, 0.0]
    """
    n = len(originals)
    weights = redistribution_weights(gaps, rng, options.time_factor_weight)
    caps = [max(options.minimum_adjustment, options.adjustment_range * abs(v)) for v in originals]
    shares = [0.0] * n

    if n == 0 or abs(error) <= RESIDUE_EPSILON:
        return Distribution(shares=shares, caps=caps, weights=weights)

    sign = safe_sign(error)
    remaining = error
    free = list(range(n))

    while free and abs(remaining) > RESIDUE_EPSILON:
        free_weight = math.fsum(weights[k] for k in free)
        tentative = {k: remaining * weights[k] / free_weight for k in free}
        over = [k for k in free if abs(tentative[k]) > caps[k]]

        if not over:
            for k in free:
                shares[k] += tentative[k]
            remaining = 0.0
            break

        for k in over:
            shares[k] = sign * caps[k]
            remaining -= shares[k]
            free.remove(k)

    exceeded = False
    if abs(remaining) > RESIDUE_EPSILON:
        # Caps saturated: close the invariant anyway
        exceeded = True
        for k in range(n):
            shares[k] += remaining * weights[k]

    return Distribution(shares=shares, caps=caps, weights=weights, exceeded_range=exceeded)
