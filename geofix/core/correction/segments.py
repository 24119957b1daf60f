"""
Adjustable segment detection over an immutable snapshot of periods.
"""

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class Segment:
    """
    A maximal run of mutable periods between two bounds.

    Attributes:
        start: Index of the first mutable period
        end: Index of the last mutable period (inclusive)
        left: Index of the left bound A (anchor or implicit base)
        right: Index of the right anchor B, None at the end of the sequence
    """

    start: int
    end: int
    left: int
    right: int | None

    @property
    def indices(self) -> range:
        return range(self.start, self.end + 1)

    @property
    def relations(self) -> range:
        """
        Indices i whose relation cumulative[i] vs cumulative[i-1] + current[i]
        depends on the segment, including the relation into B.
        """
        last = self.right if self.right is not None else self.end
        return range(self.start, last + 1)

    @property
    def bounded(self) -> bool:
        return self.right is not None

    def __len__(self) -> int:
        return self.end - self.start + 1


def find_segments(mutable: Sequence[bool]) -> list[Segment]:
    """
    Split a period sequence into adjustable segments.

    A run that starts at index 0 uses its first period as the implicit base:
    that period has no predecessor relation and is left unchanged.

    Args:
        mutable: Per-period flag, True when the period may be changed

    Returns:
        Non-empty segments in sequence order

    Examples:
        >>> find_segments([False, True, True, False, True])
        [Segment(start=1, end=2, left=0, right=3), Segment(start=4, end=4, left=3, right=None)]
        >>> find_segments([True, True, False])
        [Segment(start=1, end=1, left=0, right=2)]
    """
    segments = []
    n = len(mutable)
    i = 0
    while i < n:
        if not mutable[i]:
            i += 1
            continue

        j = i
        while j + 1 < n and mutable[j + 1]:
            j += 1

        if i == 0:
            start, left = 1, 0
        else:
            start, left = i, i - 1
        right = j + 1 if j + 1 < n else None

        if start <= j:
            segments.append(Segment(start=start, end=j, left=left, right=right))
        i = j + 1

    return segments
