"""Basic types shared by the Cartesian numbering code."""

from __future__ import annotations

from enum import IntEnum

Idx3 = tuple[int, int, int]


class MeshSide(IntEnum):
    """Side (previous or next) along a given direction."""

    PREVIOUS = 0
    NEXT = 1
    MAX = 2
    INVALID = -1

    def opposite(self) -> MeshSide:
        """Return the other valid side; raise ValueError for MAX or INVALID."""
        if self is MeshSide.PREVIOUS:
            return MeshSide.NEXT
        if self is MeshSide.NEXT:
            return MeshSide.PREVIOUS
        raise ValueError(f"{self.name} has no opposite side")