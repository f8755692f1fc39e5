from __future__ import annotations
from typing import List, Sequence, TypeVar

__all__ = ["diff_set"]

T = TypeVar("T")


def diff_set(reference: Sequence[T], candidate: Sequence[T]) -> List[T]:
    """Return the elements of *candidate* not structurally equal to any in *reference*.

    Order follows *candidate*; duplicates inside *candidate* are kept. The same
    function drives both edits:
      - add:    diff_set(stored, requested)   -> genuinely new entries
      - remove: diff_set(requested, stored)   -> surviving entries
    Pairwise comparison; the sets are a handful of entries at config-edit time.
    """
    return [c for c in candidate if not any(c == r for r in reference)]
