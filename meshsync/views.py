"""Typed views over the byte buffers used for ghost-item communications."""

from __future__ import annotations

import struct
from collections.abc import Iterator, Sequence
from enum import Enum
from typing import Any


class DataType(Enum):
    """Elementary value types exchanged between sub-domains."""

    INTEGER = ("<i", 4, 1)
    REAL = ("<d", 8, 1)
    REAL3 = ("<3d", 8, 3)
    REAL3X3 = ("<9d", 8, 9)

    def __init__(self, fmt: str, alignment: int, arity: int) -> None:
        self._struct = struct.Struct(fmt)
        self._alignment = alignment
        self._arity = arity

    @property
    def align(self) -> int:
        """Alignment in bytes of one value."""
        return self._alignment

    @property
    def size(self) -> int:
        """Size in bytes of one value."""
        return self._struct.size

    def _flatten(self, value: Any) -> tuple:
        if self._arity == 1:
            return (value,)
        components = tuple(value)
        if len(components) != self._arity:
            raise ValueError(
                f"{self.name} needs {self._arity} components, got {len(components)}"
            )
        return components

    def _convert(self, components: tuple) -> Any:
        return components[0] if self._arity == 1 else components

    def pack(self, value: Any) -> bytes:
        """Encode one value into its byte representation."""
        try:
            return self._struct.pack(*self._flatten(value))
        except struct.error as exc:
            raise ValueError(f"cannot encode {value!r} as {self.name}: {exc}") from exc

    def unpack(self, raw: bytes) -> Any:
        """Decode one value from exactly ``size`` bytes."""
        if len(raw) != self.size:
            raise ValueError(f"{self.name} needs {self.size} bytes, got {len(raw)}")
        return self._convert(self._struct.unpack(raw))

    def _pack_into(self, mem: memoryview, offset: int, value: Any) -> None:
        try:
            self._struct.pack_into(mem, offset, *self._flatten(value))
        except struct.error as exc:
            raise ValueError(f"cannot encode {value!r} as {self.name}: {exc}") from exc

    def _unpack_from(self, mem: memoryview, offset: int) -> Any:
        return self._convert(self._struct.unpack_from(mem, offset))


def _bytes_view(buffer: Any) -> memoryview:
    mem = memoryview(buffer)
    if mem.format != "B" or mem.ndim != 1:
        mem = mem.cast("B")
    return mem


def estimated_max_buf_sz(
    item_sizes: Sequence[int], data_type: DataType, degree: int = 1
) -> int:
    """Upper bound in bytes of a buffer holding ``item_sizes`` items per neighbour.

    Each neighbour may lose at most ``align - 1`` bytes to alignment.
    """
    sizeof_item = data_type.size * degree
    return sum(n * sizeof_item + data_type.align - 1 for n in item_sizes)


class _ValueView:
    """Read/write view of a byte buffer as a sequence of typed values."""

    __slots__ = ("_mem", "_dtype", "_len")

    def __init__(self, mem: memoryview, data_type: DataType) -> None:
        self._mem = mem
        self._dtype = data_type
        self._len = len(mem) // data_type.size

    def __len__(self) -> int:
        return self._len

    def _offset(self, i: int) -> int:
        if i < 0:
            i += self._len
        if not 0 <= i < self._len:
            raise IndexError(f"index {i} out of range for {self._len} values")
        return i * self._dtype.size

    def __getitem__(self, i: int) -> Any:
        return self._dtype._unpack_from(self._mem, self._offset(i))

    def __setitem__(self, i: int, value: Any) -> None:
        self._dtype._pack_into(self._mem, self._offset(i), value)

    def __iter__(self) -> Iterator[Any]:
        for i in range(self._len):
            yield self[i]

    def __repr__(self) -> str:
        return f"_ValueView({self._dtype.name}, {list(self)!r})"


class _ValueView2:
    """Read/write view of a byte buffer as rows of ``dim2`` typed values."""

    __slots__ = ("_mem", "_dtype", "_dim2", "_rows")

    def __init__(self, mem: memoryview, data_type: DataType, dim2: int) -> None:
        self._mem = mem
        self._dtype = data_type
        self._dim2 = dim2
        self._rows = len(mem) // (dim2 * data_type.size)

    @property
    def shape(self) -> tuple[int, int]:
        """Number of rows and number of values per row."""
        return (self._rows, self._dim2)

    def __len__(self) -> int:
        return self._rows

    def __getitem__(self, i: int) -> _ValueView:
        if i < 0:
            i += self._rows
        if not 0 <= i < self._rows:
            raise IndexError(f"row {i} out of range for {self._rows} rows")
        row_bytes = self._dim2 * self._dtype.size
        return _ValueView(self._mem[i * row_bytes:(i + 1) * row_bytes], self._dtype)

    def __setitem__(self, i: int, values: Sequence[Any]) -> None:
        row = self[i]
        values = list(values)
        if len(values) != self._dim2:
            raise ValueError(f"row needs {self._dim2} values, got {len(values)}")
        for j, value in enumerate(values):
            row[j] = value

    def __iter__(self) -> Iterator[_ValueView]:
        for i in range(self._rows):
            yield self[i]


def val_buf(buf: Any, data_type: DataType) -> _ValueView:
    """View a byte buffer as a sequence of ``data_type`` values."""
    mem = _bytes_view(buf)
    if len(mem) % data_type.size:
        raise ValueError(
            f"buffer size {len(mem)} is not a multiple of {data_type.size}"
        )
    return _ValueView(mem, data_type)


def val_buf2(buf: Any, data_type: DataType, dim2_size: int) -> _ValueView2:
    """View a byte buffer as rows of ``dim2_size`` values of ``data_type``."""
    if dim2_size <= 0:
        raise ValueError(f"dim2_size must be positive, got {dim2_size}")
    mem = _bytes_view(buf)
    row_bytes = dim2_size * data_type.size
    if len(mem) % row_bytes:
        raise ValueError(f"buffer size {len(mem)} is not a multiple of {row_bytes}")
    return _ValueView2(mem, data_type, dim2_size)


def _check_ranges(total: int, offsets: tuple[int, ...], sizes: tuple[int, ...]) -> None:
    if len(offsets) != len(sizes):
        raise ValueError(f"{len(offsets)} offsets but {len(sizes)} sizes")
    for off, size in zip(offsets, sizes):
        if off < 0 or size < 0 or off + size > total:
            raise ValueError(
                f"range [{off}, {off + size}) does not fit in a buffer of {total} bytes"
            )


class MultiBufView:
    """Several byte sub-buffers laid out inside one shared buffer."""

    __slots__ = ("_buffer", "_offsets", "_sizes")

    def __init__(
        self,
        buffer: Any = None,
        offsets: Sequence[int] = (),
        sizes: Sequence[int] = (),
    ) -> None:
        self._buffer = bytearray() if buffer is None else buffer
        self._offsets = tuple(int(o) for o in offsets)
        self._sizes = tuple(int(s) for s in sizes)
        _check_ranges(len(_bytes_view(self._buffer)), self._offsets, self._sizes)

    @property
    def buffer(self) -> Any:
        """The buffer holding every sub-buffer."""
        return self._buffer

    @property
    def offsets(self) -> tuple[int, ...]:
        """Start offset of each sub-buffer."""
        return self._offsets

    @property
    def sizes(self) -> tuple[int, ...]:
        """Size in bytes of each sub-buffer."""
        return self._sizes

    def __len__(self) -> int:
        return len(self._offsets)

    def byte_buf(self, i: int) -> memoryview:
        """Writable view on the ``i``-th sub-buffer."""
        off, size = self._offsets[i], self._sizes[i]
        return _bytes_view(self._buffer)[off:off + size]

    @property
    def range_bounds(self) -> tuple[int, int] | None:
        """Offsets [begin, end) covering every sub-buffer, or None if empty."""
        if not self._offsets:
            return None
        return (self._offsets[0], self._offsets[-1] + self._sizes[-1])

    def range_span(self) -> memoryview:
        """View covering all sub-buffers, gaps between them included."""
        bounds = self.range_bounds
        if bounds is None:
            return memoryview(bytearray())
        return _bytes_view(self._buffer)[bounds[0]:bounds[1]]

    def range_view(self) -> memoryview:
        """Same as :meth:`range_span`."""
        return self.range_span()


class MultiBufView2:
    """Sub-buffers indexed in two dimensions (neighbour, variable)."""

    __slots__ = ("_buffer", "_offsets", "_sizes", "_dim1", "_dim2")

    def __init__(
        self,
        buffer: Any = None,
        offsets: Sequence[int] = (),
        sizes: Sequence[int] = (),
        dim1_sz: int = 0,
        dim2_sz: int = 0,
    ) -> None:
        self._buffer = bytearray() if buffer is None else buffer
        self._offsets = tuple(int(o) for o in offsets)
        self._sizes = tuple(int(s) for s in sizes)
        self._dim1 = dim1_sz
        self._dim2 = dim2_sz
        _check_ranges(len(_bytes_view(self._buffer)), self._offsets, self._sizes)
        if len(self._offsets) != dim1_sz * dim2_sz:
            raise ValueError(
                f"{len(self._offsets)} sub-buffers but dimensions {dim1_sz}x{dim2_sz}"
            )

    @property
    def buffer(self) -> Any:
        """The buffer holding every sub-buffer."""
        return self._buffer

    @property
    def shape(self) -> tuple[int, int]:
        """The two dimensions of the view."""
        return (self._dim1, self._dim2)

    def multi_view(self, i1: int) -> MultiBufView:
        """Sub-buffers for index ``i1`` of the first dimension."""
        if not 0 <= i1 < self._dim1:
            raise IndexError(f"Invalid dim1 index value={i1} (size {self._dim1})")
        start = i1 * self._dim2
        stop = start + self._dim2
        return MultiBufView(self._buffer, self._offsets[start:stop], self._sizes[start:stop])

    @property
    def range_bounds(self) -> tuple[int, int] | None:
        """Offsets [begin, end) covering every sub-buffer, or None if empty."""
        if not self._offsets:
            return None
        return (self._offsets[0], self._offsets[-1] + self._sizes[-1])

    def range_span(self) -> memoryview:
        """View covering all sub-buffers, gaps between them included."""
        bounds = self.range_bounds
        if bounds is None:
            return memoryview(bytearray())
        return _bytes_view(self._buffer)[bounds[0]:bounds[1]]