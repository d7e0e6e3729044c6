"""Cartesian numbering of a grid of items of dimension at most 3."""

from __future__ import annotations

from collections.abc import Sequence
from math import prod

from meshsync.types import Idx3


class CartesianNumbering:
    """Maps triplets (i, j, k) to ids and back on a grid of dimension <= 3.

    Ids run from ``first_id`` to ``first_id + nb_item``, numbered along i,
    then j, then k.
    """

    __slots__ = ("_dimension", "_nitems_dir", "_nitems", "_first_item_id", "_coef")

    def __init__(self, nitems_dir: Sequence[int], dimension: int, first_item_id: int = 0):
        if not 0 <= dimension <= 3:
            raise ValueError(f"dimension must be between 0 and 3, got {dimension}")
        if len(nitems_dir) < dimension:
            raise ValueError(
                f"nitems_dir needs at least {dimension} values, got {len(nitems_dir)}"
            )
        self._dimension = dimension
        self._first_item_id = first_item_id
        sizes = [int(n) for n in nitems_dir[:dimension]] + [1] * (3 - dimension)
        self._nitems_dir: Idx3 = tuple(sizes)  # type: ignore[assignment]
        self._nitems = prod(sizes[:dimension])
        coef = [1, 1, 1]
        for d in range(1, dimension):
            coef[d] = coef[d - 1] * sizes[d - 1]
        self._coef: Idx3 = tuple(coef)  # type: ignore[assignment]

    @property
    def dimension(self) -> int:
        """Dimension of the underlying grid."""
        return self._dimension

    @property
    def nb_item3(self) -> Idx3:
        """Number of items in each direction."""
        return self._nitems_dir

    @property
    def nb_item(self) -> int:
        """Total number of items of the grid."""
        return self._nitems

    @property
    def first_id(self) -> int:
        """Smallest id of the numbering."""
        return self._first_item_id

    @property
    def delta3(self) -> Idx3:
        """Id offsets to step to the next item in each direction."""
        return self._coef

    def nb_item_dir(self, direction: int) -> int:
        """Number of items along ``direction``."""
        return self._nitems_dir[direction]

    def delta_dir(self, direction: int) -> int:
        """Id offset to step to the next item along ``direction``."""
        return self._coef[direction]

    def id(self, i: int, j: int, k: int = 0) -> int:
        """Id of the item at (i, j, k)."""
        item_id = self._first_item_id + i + j * self._coef[1]
        if self._dimension >= 3:
            item_id += k * self._coef[2]
        return item_id

    def id_of(self, ijk: Sequence[int]) -> int:
        """Id of the item whose triplet is ``ijk``."""
        i, j, k = ijk
        return self.id(i, j, k)

    def ijk(self, item_id: int) -> Idx3:
        """Triplet (i, j, k) of the item ``item_id``."""
        local = item_id - self._first_item_id
        if self._dimension < 3:
            return (local % self._coef[1], local // self._coef[1], 0)
        k, rest = divmod(local, self._coef[2])
        j, i = divmod(rest, self._coef[1])
        return (i, j, k)

    def idx_dir0(self, item_id: int) -> int:
        """Index i of ``item_id``."""
        return (item_id - self._first_item_id) % self._coef[1]

    def idx_dir1(self, item_id: int) -> int:
        """Index j of ``item_id``."""
        local = item_id - self._first_item_id
        if self._dimension == 3:
            return local % self._coef[2] // self._coef[1]
        return local // self._coef[1]

    def idx_dir2(self, item_id: int) -> int:
        """Index k of ``item_id``."""
        return (item_id - self._first_item_id) // self._coef[2]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CartesianNumbering):
            return NotImplemented
        return (
            self._dimension == other._dimension
            and self._nitems_dir == other._nitems_dir
            and self._first_item_id == other._first_item_id
        )

    def __hash__(self) -> int:
        return hash((self._dimension, self._nitems_dir, self._first_item_id))

    def __repr__(self) -> str:
        return (
            f"CartesianNumbering(nitems_dir={self._nitems_dir!r}, "
            f"dimension={self._dimension}, first_item_id={self._first_item_id})"
        )