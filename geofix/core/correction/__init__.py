"""
Anchor-bounded correction of cumulative invariant violations.
"""

from .correction_engine import CorrectionEngine, PlannedChange
from .distributor import Distribution, distribute_error, redistribution_weights
from .random_source import RandomSource, RandomSourceFactory, SeededRandomSource, derive_seed, seeded_factory
from .segments import Segment, find_segments

__all__ = [
    "CorrectionEngine",
    "PlannedChange",
    "Distribution",
    "distribute_error",
    "redistribution_weights",
    "RandomSource",
    "RandomSourceFactory",
    "SeededRandomSource",
    "derive_seed",
    "seeded_factory",
    "Segment",
    "find_segments",
]
