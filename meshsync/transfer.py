"""Run queues with events, and packing of variable values into byte buffers."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, MutableSequence, Sequence
from typing import Any

from meshsync.views import DataType, MultiBufView, val_buf, val_buf2


class RunQueueEvent:
    """Marker recorded on a queue; done once the queue has reached it."""

    def __init__(self) -> None:
        self._recorded = 0
        self._outstanding: dict[int, RunQueue] = {}

    def _record(self, queue: RunQueue) -> int:
        self._recorded += 1
        self._outstanding[self._recorded] = queue
        return self._recorded

    def _complete(self, generation: int) -> None:
        self._outstanding.pop(generation, None)

    def _wait_for(self, generation: int) -> None:
        while generation in self._outstanding:
            if not self._outstanding[generation]._run_next():
                raise RuntimeError("event can never complete: its queue is empty")

    def wait(self) -> None:
        """Block until the latest recording of this event has been reached."""
        self._wait_for(self._recorded)

    def is_done(self) -> bool:
        """True if the latest recording has been reached (or none was made)."""
        return self._recorded not in self._outstanding


class RunQueue:
    """In-order queue of deferred operations."""

    def __init__(self) -> None:
        self._ops: deque[Callable[[], Any]] = deque()

    def submit(self, operation: Callable[[], Any]) -> None:
        """Append ``operation``; it runs when the queue is driven."""
        self._ops.append(operation)

    def record_event(self, event: RunQueueEvent) -> None:
        """Mark ``event`` done once every operation submitted so far has run."""
        generation = event._record(self)
        self._ops.append(lambda: event._complete(generation))

    def wait_event(self, event: RunQueueEvent) -> None:
        """Make later operations of this queue wait for ``event``."""
        generation = event._recorded
        self._ops.append(lambda: event._wait_for(generation))

    def barrier(self) -> None:
        """Run every pending operation."""
        while self._run_next():
            pass

    def pending(self) -> int:
        """Number of operations not yet run."""
        return len(self._ops)

    def _run_next(self) -> bool:
        if not self._ops:
            return False
        operation = self._ops.popleft()
        operation()
        return True


def async_transfer(dst_buf: Any, src_buf: Any, queue: RunQueue) -> None:
    """Queue a copy of ``src_buf`` into ``dst_buf``; both must have the same size."""
    dst = memoryview(dst_buf).cast("B")
    src = memoryview(src_buf).cast("B")
    if len(dst) != len(src):
        raise ValueError(
            f"source and destination sizes differ: {len(src)} != {len(dst)}"
        )

    def copy() -> None:
        dst[:] = src

    queue.submit(copy)


def async_transfer_multi(
    out_buf: MultiBufView, in_buf: MultiBufView, queue: RunQueue
) -> None:
    """Queue a copy of the whole range of ``in_buf`` onto that of ``out_buf``."""
    dst = out_buf.range_span()
    src = in_buf.range_span()
    if len(dst) < len(src):
        raise ValueError(
            f"destination range of {len(dst)} bytes cannot hold {len(src)} bytes"
        )
    size = len(src)

    def copy() -> None:
        dst[:size] = src

    queue.submit(copy)


def _check_room(needed: int, available: int) -> None:
    if needed > available:
        raise ValueError(f"buffer holds {available} values, {needed} needed")


def async_pack_var2buf(
    item_idx: Sequence[int],
    values: Sequence[Any],
    buf: Any,
    data_type: DataType,
    degree: int | None,
    queue: RunQueue,
) -> None:
    """Queue packing of ``values[item_idx[i]]`` into slot ``i`` of ``buf``.

    With ``degree`` None each item holds one value; otherwise each item
    holds a row of ``degree`` values.
    """
    indexes = list(item_idx)
    if degree is None:
        buf_vals = val_buf(buf, data_type)
        _check_room(len(indexes), len(buf_vals))

        def pack() -> None:
            for i, lid in enumerate(indexes):
                buf_vals[i] = values[lid]

    else:
        rows = val_buf2(buf, data_type, degree)
        _check_room(len(indexes), len(rows))

        def pack() -> None:
            for i, lid in enumerate(indexes):
                src = values[lid]
                rows[i] = [src[j] for j in range(degree)]

    queue.submit(pack)


def async_unpack_buf2var(
    item_idx: Sequence[int],
    buf: Any,
    values: MutableSequence[Any],
    data_type: DataType,
    degree: int | None,
    queue: RunQueue,
) -> None:
    """Queue unpacking of slot ``i`` of ``buf`` into ``values[item_idx[i]]``."""
    indexes = list(item_idx)
    if degree is None:
        buf_vals = val_buf(buf, data_type)
        _check_room(len(indexes), len(buf_vals))

        def unpack() -> None:
            for i, lid in enumerate(indexes):
                values[lid] = buf_vals[i]

    else:
        rows = val_buf2(buf, data_type, degree)
        _check_room(len(indexes), len(rows))

        def unpack() -> None:
            for i, lid in enumerate(indexes):
                target = values[lid]
                for j, value in enumerate(rows[i]):
                    target[j] = value

    queue.submit(unpack)


def async_pack_varmenv2buf(
    levis: Sequence[tuple[int, int]],
    menv_values: Sequence[Sequence[Any]],
    buf: Any,
    data_type: DataType,
    queue: RunQueue,
) -> None:
    """Queue packing of multi-environment values addressed by (array, value) indexes."""
    indexes = [tuple(evi) for evi in levis]
    buf_vals = val_buf(buf, data_type)
    _check_room(len(indexes), len(buf_vals))

    def pack() -> None:
        for i, (array_index, value_index) in enumerate(indexes):
            buf_vals[i] = menv_values[array_index][value_index]

    queue.submit(pack)


def async_unpack_buf2varmenv(
    levis: Sequence[tuple[int, int]],
    buf: Any,
    menv_values: Sequence[MutableSequence[Any]],
    data_type: DataType,
    queue: RunQueue,
) -> None:
    """Queue unpacking of ``buf`` into multi-environment values."""
    indexes = [tuple(evi) for evi in levis]
    buf_vals = val_buf(buf, data_type)
    _check_room(len(indexes), len(buf_vals))

    def unpack() -> None:
        for i, (array_index, value_index) in enumerate(indexes):
            menv_values[array_index][value_index] = buf_vals[i]

    queue.submit(unpack)