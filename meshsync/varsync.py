"""Mesh variables to synchronize and the list that groups them."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, MutableSequence, Sequence
from dataclasses import dataclass
from typing import Any

from meshsync.options import ItemSync
from meshsync.transfer import (
    RunQueue,
    async_pack_var2buf,
    async_pack_varmenv2buf,
    async_unpack_buf2var,
    async_unpack_buf2varmenv,
)
from meshsync.views import DataType, estimated_max_buf_sz


def _read(source: Any, name: str) -> Any:
    """Read an accessor that may be exposed as a property or a method."""
    value = getattr(source, name)
    return value() if callable(value) else value


@dataclass(frozen=True)
class SizeInfos:
    """Alignment and sizes of the values of a variable."""

    align_of: int
    size_of: int
    size_of_item: int


class MeshVarSync(ABC):
    """A mesh variable whose ghost values are to be synchronized."""

    @abstractmethod
    def size_infos(self) -> SizeInfos:
        """Alignment, value size and per-item size of the variable."""

    @abstractmethod
    def material_variable(self) -> Any:
        """The multi-environment values, or None for a global variable."""

    @abstractmethod
    def variable(self) -> Any:
        """The global values, or None for a multi-environment variable."""

    @abstractmethod
    def estimated_max_buf_sz(self) -> int:
        """Upper bound in bytes of the buffers to pack and unpack the values."""

    @abstractmethod
    def size_in_bytes(self, item_sync: ItemSync, inei: int) -> int:
        """Bytes needed for the values of ``item_sync`` items of neighbour ``inei``."""

    @abstractmethod
    def pack_owned_into_buf(self, inei: int, buf: Any, queue: RunQueue) -> None:
        """Queue packing of the items shared with neighbour ``inei`` into ``buf``."""

    @abstractmethod
    def unpack_ghost_from_buf(self, inei: int, buf: Any, queue: RunQueue) -> None:
        """Queue unpacking of the ghost items of neighbour ``inei`` from ``buf``."""


class GlobVarSync(MeshVarSync):
    """A global mesh variable (one value, or one row of values, per item).

    ``sync_items`` provides ``nb_owned_item_idx_pn``, ``nb_ghost_item_idx_pn``,
    ``owned_item_idx_pn`` and ``ghost_item_idx_pn``. A ``degree`` of None
    means one value per item; an integer means a row of that many values.
    """

    def __init__(
        self,
        values: MutableSequence[Any],
        sync_items: Any,
        data_type: DataType,
        degree: int | None = None,
    ) -> None:
        if degree is not None and degree <= 0:
            raise ValueError(f"degree must be positive, got {degree}")
        self._values = values
        self._sync_items = sync_items
        self._data_type = data_type
        self._array_degree = degree
        self._degree = 1 if degree is None else degree

    @property
    def degree(self) -> int:
        """Number of values per item."""
        return self._degree

    def size_infos(self) -> SizeInfos:
        dt = self._data_type
        return SizeInfos(dt.align, dt.size, dt.size * self._degree)

    def material_variable(self) -> Any:
        return None

    def variable(self) -> Any:
        return self._values

    def estimated_max_buf_sz(self) -> int:
        owned = _read(self._sync_items, "nb_owned_item_idx_pn")
        ghost = _read(self._sync_items, "nb_ghost_item_idx_pn")
        return estimated_max_buf_sz(
            owned, self._data_type, self._degree
        ) + estimated_max_buf_sz(ghost, self._data_type, self._degree)

    def size_in_bytes(self, item_sync: ItemSync, inei: int) -> int:
        name = (
            "nb_owned_item_idx_pn"
            if item_sync == ItemSync.OWNED
            else "nb_ghost_item_idx_pn"
        )
        item_sizes = _read(self._sync_items, name)
        return item_sizes[inei] * self.size_infos().size_of_item

    def pack_owned_into_buf(self, inei: int, buf: Any, queue: RunQueue) -> None:
        item_idx = _read(self._sync_items, "owned_item_idx_pn")[inei]
        async_pack_var2buf(
            item_idx, self._values, buf, self._data_type, self._array_degree, queue
        )

    def unpack_ghost_from_buf(self, inei: int, buf: Any, queue: RunQueue) -> None:
        item_idx = _read(self._sync_items, "ghost_item_idx_pn")[inei]
        async_unpack_buf2var(
            item_idx, buf, self._values, self._data_type, self._array_degree, queue
        )


class CellMatVarScalSync(MeshVarSync):
    """A scalar multi-environment cell variable.

    Values are addressed by (array index, value index) pairs. ``sync_evi``
    provides ``nb_owned_evi_pn``, ``nb_ghost_evi_pn``, ``owned_evi_pn`` and
    ``ghost_evi_pn``.
    """

    def __init__(
        self,
        menv_values: Sequence[MutableSequence[Any]],
        sync_evi: Any,
        data_type: DataType,
    ) -> None:
        self._menv_values = menv_values
        self._sync_evi = sync_evi
        self._data_type = data_type

    def size_infos(self) -> SizeInfos:
        dt = self._data_type
        return SizeInfos(dt.align, dt.size, dt.size)

    def material_variable(self) -> Any:
        return self._menv_values

    def variable(self) -> Any:
        return None

    def estimated_max_buf_sz(self) -> int:
        owned = _read(self._sync_evi, "nb_owned_evi_pn")
        ghost = _read(self._sync_evi, "nb_ghost_evi_pn")
        return estimated_max_buf_sz(owned, self._data_type, 1) + estimated_max_buf_sz(
            ghost, self._data_type, 1
        )

    def size_in_bytes(self, item_sync: ItemSync, inei: int) -> int:
        name = "nb_owned_evi_pn" if item_sync == ItemSync.OWNED else "nb_ghost_evi_pn"
        item_sizes = _read(self._sync_evi, name)
        return item_sizes[inei] * self._data_type.size

    def pack_owned_into_buf(self, inei: int, buf: Any, queue: RunQueue) -> None:
        levis = _read(self._sync_evi, "owned_evi_pn")[inei]
        async_pack_varmenv2buf(levis, self._menv_values, buf, self._data_type, queue)

    def unpack_ghost_from_buf(self, inei: int, buf: Any, queue: RunQueue) -> None:
        levis = _read(self._sync_evi, "ghost_evi_pn")[inei]
        async_unpack_buf2varmenv(levis, buf, self._menv_values, self._data_type, queue)


class MeshVariableSynchronizerList:
    """Ordered list of mesh variables to synchronize together."""

    def __init__(self) -> None:
        self._vars: list[MeshVarSync] = []

    def add(self, var_sync: MeshVarSync) -> None:
        """Append a variable to synchronize."""
        if not isinstance(var_sync, MeshVarSync):
            raise TypeError(
                f"expected a MeshVarSync, got {type(var_sync).__name__}"
            )
        self._vars.append(var_sync)

    def vars_list(self) -> tuple[MeshVarSync, ...]:
        """The variables, in the order they were added."""
        return tuple(self._vars)

    def __len__(self) -> int:
        return len(self._vars)

    def __iter__(self) -> Iterator[MeshVarSync]:
        return iter(self._vars)