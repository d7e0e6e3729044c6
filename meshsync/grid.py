"""Cartesian grid with cell, node and face numberings."""

from __future__ import annotations

from collections.abc import Sequence

from meshsync.numbering import CartesianNumbering
from meshsync.types import Idx3


class CartesianGrid:
    """Cartesian grid of dimension at most 3 with its numberings.

    Faces are numbered by normal direction: first the faces normal to X,
    then those normal to Y, then Z, each block following the previous one.
    """

    def __init__(self, ncells_dir: Sequence[int], dimension: int):
        if not 0 <= dimension <= 3:
            raise ValueError(f"dimension must be between 0 and 3, got {dimension}")
        if len(ncells_dir) < dimension:
            raise ValueError(
                f"ncells_dir needs at least {dimension} values, got {len(ncells_dir)}"
            )
        self._dimension = dimension
        ncells = [int(n) for n in ncells_dir[:dimension]] + [1] * (3 - dimension)
        nnodes = [n + 1 for n in ncells[:dimension]] + [1] * (3 - dimension)
        self._ncells_dir: Idx3 = tuple(ncells)  # type: ignore[assignment]
        self._nnodes_dir: Idx3 = tuple(nnodes)  # type: ignore[assignment]

        self._cart_num_cell = CartesianNumbering(ncells, dimension)
        self._cart_num_node = CartesianNumbering(nnodes, dimension)

        faces: list[CartesianNumbering] = []
        nfaces_norm_dir: list[Idx3] = []
        first = 0
        for dnorm in range(dimension):
            sizes = list(ncells)
            sizes[dnorm] += 1
            numbering = CartesianNumbering(sizes, dimension, first)
            faces.append(numbering)
            nfaces_norm_dir.append(tuple(sizes))  # type: ignore[arg-type]
            first += numbering.nb_item
        nfaces_norm_dir.extend([(1, 1, 1)] * (3 - dimension))
        self._cart_num_face = tuple(faces)
        self._nfaces_norm_dir = tuple(nfaces_norm_dir)

    @property
    def dimension(self) -> int:
        """Dimension of the grid."""
        return self._dimension

    @property
    def ncells_dir(self) -> Idx3:
        """Number of cells in each direction."""
        return self._ncells_dir

    @property
    def nnodes_dir(self) -> Idx3:
        """Number of nodes in each direction."""
        return self._nnodes_dir

    @property
    def nfaces_norm_dir(self) -> tuple[Idx3, ...]:
        """Size of the grid of faces normal to each direction."""
        return self._nfaces_norm_dir

    @property
    def cart_num_cell(self) -> CartesianNumbering:
        """Cartesian numbering of the cells."""
        return self._cart_num_cell

    @property
    def cart_num_node(self) -> CartesianNumbering:
        """Cartesian numbering of the nodes."""
        return self._cart_num_node

    def cart_num_face(self, direction: int) -> CartesianNumbering:
        """Numbering of the faces normal to ``direction``."""
        if not 0 <= direction < self._dimension:
            raise ValueError(
                f"direction must be below the dimension {self._dimension}, got {direction}"
            )
        return self._cart_num_face[direction]

    @property
    def cart_num_face3(self) -> tuple[CartesianNumbering, ...]:
        """Face numberings for every direction of the grid."""
        return self._cart_num_face