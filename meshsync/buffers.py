"""Host and device byte buffers carved into per-neighbour, per-variable views."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any

from meshsync.options import ItemSync
from meshsync.varsync import MeshVarSync, SizeInfos
from meshsync.views import DataType, MultiBufView, MultiBufView2, estimated_max_buf_sz

_NB_MEMORIES = 2


class _BufMem:
    """One growable byte buffer and the first position still free in it."""

    __slots__ = ("buf", "first_av_pos")

    def __init__(self) -> None:
        self.buf: bytearray | None = None
        self.first_av_pos = 0

    def realloc_if_needed(self, wanted_size: int) -> None:
        if self.buf is None:
            self.buf = bytearray(wanted_size)
            return
        if len(self.buf) != wanted_size:
            # A fresh buffer keeps views handed out earlier valid.
            new_buf = bytearray(wanted_size)
            keep = min(len(self.buf), wanted_size)
            new_buf[:keep] = self.buf[:keep]
            self.buf = new_buf


def _align(cur: int, available: int, alignment: int, size: int) -> tuple[int, int] | None:
    """Align ``cur`` on ``alignment`` if ``size`` bytes still fit afterwards."""
    padding = -cur % alignment
    if padding + size > available:
        return None
    return cur + padding, available - padding


class SyncBuffers:
    """Communication buffers on the host (0) and on the device (1).

    Views are handed out one after another from the first free position of
    each buffer; :meth:`reset_buf` makes the whole buffers free again.
    """

    def __init__(self, is_acc_avl: bool) -> None:
        self._is_accelerator_available = bool(is_acc_avl)
        self._buf_estim_sz = 0
        self._buf_mem = [_BufMem() for _ in range(_NB_MEMORIES)]

    def _mem(self, imem: int) -> _BufMem:
        if not 0 <= imem < _NB_MEMORIES:
            raise ValueError(f"memory index must be 0 (host) or 1 (device), got {imem}")
        return self._buf_mem[imem]

    def _allocated(self, imem: int) -> tuple[_BufMem, bytearray]:
        mem = self._mem(imem)
        if mem.buf is None:
            raise RuntimeError(f"buffer {imem} has not been allocated")
        return mem, mem.buf

    def reset_buf(self) -> None:
        """Forget the estimated size and make every buffer free again."""
        self._buf_estim_sz = 0
        for mem in self._buf_mem:
            mem.first_av_pos = 0

    def add_estimated_max_sz(
        self, item_sizes: Sequence[int], data_type: DataType, degree: int = 1
    ) -> None:
        """Add the upper bound needed for ``item_sizes`` items per neighbour."""
        self._buf_estim_sz += estimated_max_buf_sz(item_sizes, data_type, degree)

    def alloc_if_needed(self, buf_estim_sz: int | None = None) -> None:
        """Size both buffers to ``buf_estim_sz`` (default: the accumulated estimate)."""
        if buf_estim_sz is None:
            buf_estim_sz = self._buf_estim_sz
        if buf_estim_sz < 0:
            raise ValueError(f"buffer size must not be negative, got {buf_estim_sz}")
        self._buf_estim_sz = buf_estim_sz
        # Without an accelerator the "device" buffer lives in host memory too.
        for mem in self._buf_mem:
            mem.realloc_if_needed(buf_estim_sz)

    def buffer_size(self, imem: int) -> int:
        """Size in bytes of buffer ``imem``, 0 if not yet allocated."""
        mem = self._mem(imem)
        return 0 if mem.buf is None else len(mem.buf)

    @staticmethod
    def _advance(mem: _BufMem, bounds: tuple[int, int] | None) -> None:
        if bounds is not None:
            mem.first_av_pos = bounds[1]

    def multi_buf_view(
        self, item_sizes: Sequence[int], data_type: DataType, degree: int, imem: int
    ) -> MultiBufView:
        """One view per neighbour, each aligned for ``data_type``.

        Returns an empty view when the free space may be too small.
        """
        mem, buf = self._allocated(imem)
        sizes = [int(n) for n in item_sizes]
        cur = mem.first_av_pos
        available = len(buf) - cur
        if estimated_max_buf_sz(sizes, data_type, degree) > available:
            return MultiBufView()

        sizeof_item = data_type.size * degree
        offsets: list[int] = []
        nbytes: list[int] = []
        for n in sizes:
            if available <= 0:
                break
            aligned = _align(cur, available, data_type.align, data_type.size)
            if aligned is None:
                break
            cur, available = aligned
            size = n * sizeof_item
            if size > available:
                break
            offsets.append(cur)
            nbytes.append(size)
            cur += size
            available -= size
        else:
            view = MultiBufView(buf, offsets, nbytes)
            self._advance(mem, view.range_bounds)
            return view
        return MultiBufView()

    def _vars_view(
        self,
        vars_list: Iterable[MeshVarSync],
        nb_nei: int,
        size_of: Callable[[MeshVarSync, SizeInfos, int], int],
        imem: int,
    ) -> MultiBufView2:
        mem, buf = self._allocated(imem)
        variables = tuple(vars_list)
        cur = mem.first_av_pos
        available = len(buf) - cur
        offsets: list[int] = []
        nbytes: list[int] = []
        for inei in range(nb_nei):
            for var in variables:
                infos = var.size_infos()
                aligned = _align(cur, available, infos.align_of, infos.size_of)
                if aligned is None:
                    raise RuntimeError(
                        "not enough space in the buffer to align the data"
                    )
                cur, available = aligned
                size = int(size_of(var, infos, inei))
                if size > available:
                    raise RuntimeError(
                        "not enough space in the buffer for the data of "
                        f"neighbour {inei}: {size} bytes needed, {available} left"
                    )
                offsets.append(cur)
                nbytes.append(size)
                cur += size
                available -= size
        view = MultiBufView2(buf, offsets, nbytes, nb_nei, len(variables))
        self._advance(mem, view.range_bounds)
        return view

    def multi_buf_view_vars(
        self,
        vars_list: Iterable[MeshVarSync],
        nb_nei: int,
        item_sync: ItemSync,
        imem: int,
    ) -> MultiBufView2:
        """Views per neighbour and per variable, sized by each variable."""
        item_sync = ItemSync(item_sync)
        return self._vars_view(
            vars_list,
            nb_nei,
            lambda var, _infos, inei: var.size_in_bytes(item_sync, inei),
            imem,
        )

    def multi_buf_view_vars_sizes(
        self, vars_list: Iterable[MeshVarSync], item_sizes: Sequence[int], imem: int
    ) -> MultiBufView2:
        """Views per neighbour and per variable for ``item_sizes`` items per neighbour."""
        sizes = [int(n) for n in item_sizes]
        return self._vars_view(
            vars_list,
            len(sizes),
            lambda _var, infos, inei: sizes[inei] * infos.size_of_item,
            imem,
        )