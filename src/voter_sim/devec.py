# src/voter_sim/devec.py
from __future__ import annotations

from typing import Generic, Iterable, Iterator, List, Optional, Tuple, TypeVar

T = TypeVar("T")

POSITIVE = "positive"
NEGATIVE = "negative"


class BidirectionalArray(Generic[T]):
    """
    Growable array addressed by signed integer positions.

    Storage is split in two lists: ``positive`` holds positions 0, 1, 2, ...
    and ``negative`` holds positions -1, -2, -3, ... (so negative[k] is
    position -(k + 1)). Appending to either side never moves an existing
    element to a different position.
    """

    def __init__(
        self,
        positive: Optional[Iterable[T]] = None,
        negative: Optional[Iterable[T]] = None,
    ) -> None:
        # note that positive includes 0
        self._positive: List[T] = list(positive) if positive is not None else []
        self._negative: List[T] = list(negative) if negative is not None else []

    @classmethod
    def from_values(cls, values: Iterable[T]) -> "BidirectionalArray[T]":
        """Create an array holding ``values`` at positions 0..len-1."""
        return cls(positive=values)

    # ------------------------------------------------------------------ access
    def get(self, position: int) -> Optional[T]:
        """Return the value at ``position`` or None when it is out of range."""
        if position < 0:
            idx = -position - 1
            if idx < len(self._negative):
                return self._negative[idx]
            return None
        if position < len(self._positive):
            return self._positive[position]
        return None

    def get_mut(self, position: int) -> Optional[T]:
        """
        Same lookup as ``get``, used by callers that mutate the returned
        element in place. Subclasses that freeze their contents override it.
        """
        return self.get(position)

    def extend(self, values: Iterable[T], side: str = POSITIVE) -> None:
        """Append ``values`` in order on the given side of zero."""
        if side == POSITIVE:
            self._positive.extend(values)
        elif side == NEGATIVE:
            self._negative.extend(values)
        else:
            raise ValueError(f"Unknown side {side!r}; expected 'positive' or 'negative'")

    def range(self) -> range:
        """Half-open interval [-len(negative), len(positive)) of valid positions."""
        return range(-len(self._negative), len(self._positive))

    # --------------------------------------------------------------- protocol
    def __len__(self) -> int:
        return len(self._negative) + len(self._positive)

    def __contains__(self, position: object) -> bool:
        if not isinstance(position, int):
            return False
        return -len(self._negative) <= position < len(self._positive)

    def __iter__(self) -> Iterator[T]:
        yield from reversed(self._negative)
        yield from self._positive

    def items(self) -> Iterator[Tuple[int, T]]:
        """Yield (position, value) pairs in ascending position order."""
        return zip(self.range(), iter(self))

    def __repr__(self) -> str:
        r = self.range()
        return f"{type(self).__name__}(range=[{r.start}, {r.stop}))"


__all__ = ["BidirectionalArray", "POSITIVE", "NEGATIVE"]
