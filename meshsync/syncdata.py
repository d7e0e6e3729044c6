"""Synchronization data that packs and unpacks values through run queues."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from meshsync.algo import Algo1SyncData, SyncError
from meshsync.buffers import SyncBuffers
from meshsync.options import ItemSync
from meshsync.transfer import RunQueue, RunQueueEvent, async_transfer_multi
from meshsync.varsync import MeshVarSync
from meshsync.views import MultiBufView2

_HOST = 0
_DEVICE = 1


class PersistentInfoDH:
    """Per-neighbour events, a data queue and buffers kept across synchronizations."""

    def __init__(self, nb_nei: int, sync_buffers: SyncBuffers) -> None:
        if nb_nei < 0:
            raise ValueError(f"number of neighbours must not be negative, got {nb_nei}")
        self.sync_buffers = sync_buffers
        self.nb_nei = nb_nei
        self.pack_events = [RunQueueEvent() for _ in range(nb_nei)]
        self.transfer_events = [RunQueueEvent() for _ in range(nb_nei)]
        # High-priority queue dedicated to host/device data transfers.
        self.queue_data = RunQueue()


class PersistentInfoD:
    """Per-neighbour packing events and buffers kept across synchronizations."""

    def __init__(self, is_device_aware: bool, nb_nei: int, sync_buffers: SyncBuffers) -> None:
        if nb_nei < 0:
            raise ValueError(f"number of neighbours must not be negative, got {nb_nei}")
        self.sync_buffers = sync_buffers
        self.nb_nei = nb_nei
        self.is_device_aware = bool(is_device_aware)
        self.pack_events = [RunQueueEvent() for _ in range(nb_nei)]


def _estimated_size(variables: tuple[MeshVarSync, ...]) -> int:
    return sum(var.estimated_max_buf_sz() for var in variables)


def _require(view: MultiBufView2 | None) -> MultiBufView2:
    if view is None:
        raise RuntimeError("init_comm() must be called before using the buffers")
    return view


class Algo1SyncDataDH(Algo1SyncData):
    """Packing and unpacking on the device, communications from host buffers."""

    def __init__(self, vars_list: Iterable[MeshVarSync], queue: RunQueue, pi: PersistentInfoDH) -> None:
        self._vars = vars_list
        self._queue = queue
        self._pi = pi
        self._buf_snd_h: MultiBufView2 | None = None
        self._buf_rcv_h: MultiBufView2 | None = None
        self._buf_snd_d: MultiBufView2 | None = None
        self._buf_rcv_d: MultiBufView2 | None = None

    def _variables(self) -> tuple[MeshVarSync, ...]:
        return tuple(self._vars)

    def is_empty(self) -> bool:
        return len(self._variables()) == 0

    def init_comm(self) -> None:
        variables = self._variables()
        buffers = self._pi.sync_buffers
        buffers.reset_buf()
        buffers.alloc_if_needed(_estimated_size(variables))
        nb_nei = self._pi.nb_nei
        self._buf_snd_h = buffers.multi_buf_view_vars(variables, nb_nei, ItemSync.OWNED, _HOST)
        self._buf_rcv_h = buffers.multi_buf_view_vars(variables, nb_nei, ItemSync.GHOST, _HOST)
        self._buf_snd_d = buffers.multi_buf_view_vars(variables, nb_nei, ItemSync.OWNED, _DEVICE)
        self._buf_rcv_d = buffers.multi_buf_view_vars(variables, nb_nei, ItemSync.GHOST, _DEVICE)

    def recv_buf(self, inei: int) -> Any:
        return _require(self._buf_rcv_h).multi_view(inei).range_view()

    def send_buf(self, inei: int) -> Any:
        return _require(self._buf_snd_h).multi_view(inei).range_view()

    def init_sendings(self) -> None:
        variables = self._variables()
        snd_d_all = _require(self._buf_snd_d)
        snd_h_all = _require(self._buf_snd_h)
        queue_data = self._pi.queue_data
        for inei in range(self._pi.nb_nei):
            snd_d = snd_d_all.multi_view(inei)
            snd_h = snd_h_all.multi_view(inei)
            for ivar, var in enumerate(variables):
                var.pack_owned_into_buf(inei, snd_d.byte_buf(ivar), self._queue)
            pack_event = self._pi.pack_events[inei]
            self._queue.record_event(pack_event)
            # The transfer cannot start before packing is over.
            queue_data.wait_event(pack_event)
            async_transfer_multi(snd_h, snd_d, queue_data)
            queue_data.record_event(self._pi.transfer_events[inei])

    def finalize_pack_before_send(self, inei: int) -> None:
        self._pi.transfer_events[inei].wait()

    def finalize_sendings(self) -> None:
        self._queue.barrier()
        self._pi.queue_data.barrier()

    def unpack_after_recv(self, inei: int) -> None:
        variables = self._variables()
        rcv_h = _require(self._buf_rcv_h).multi_view(inei)
        rcv_d = _require(self._buf_rcv_d).multi_view(inei)
        queue_data = self._pi.queue_data
        transfer_event = self._pi.transfer_events[inei]
        async_transfer_multi(rcv_d, rcv_h, queue_data)
        queue_data.record_event(transfer_event)
        self._queue.wait_event(transfer_event)
        for ivar, var in enumerate(variables):
            var.unpack_ghost_from_buf(inei, rcv_d.byte_buf(ivar), self._queue)

    def finalize_receipts(self) -> None:
        self._pi.queue_data.barrier()
        self._queue.barrier()

    def finalize_wo_comm(self) -> None:
        self._queue.barrier()


class Algo1SyncDataD(Algo1SyncData):
    """Packing, unpacking and communications all on device buffers."""

    def __init__(self, vars_list: Iterable[MeshVarSync], queue: RunQueue, pi: PersistentInfoD) -> None:
        if not pi.is_device_aware:
            raise SyncError("communications cannot use device addresses")
        self._vars = vars_list
        self._queue = queue
        self._pi = pi
        self._buf_snd_d: MultiBufView2 | None = None
        self._buf_rcv_d: MultiBufView2 | None = None

    def _variables(self) -> tuple[MeshVarSync, ...]:
        return tuple(self._vars)

    def is_empty(self) -> bool:
        return len(self._variables()) == 0

    def init_comm(self) -> None:
        variables = self._variables()
        buffers = self._pi.sync_buffers
        buffers.reset_buf()
        buffers.alloc_if_needed(_estimated_size(variables))
        nb_nei = self._pi.nb_nei
        self._buf_snd_d = buffers.multi_buf_view_vars(variables, nb_nei, ItemSync.OWNED, _DEVICE)
        self._buf_rcv_d = buffers.multi_buf_view_vars(variables, nb_nei, ItemSync.GHOST, _DEVICE)

    def recv_buf(self, inei: int) -> Any:
        return _require(self._buf_rcv_d).multi_view(inei).range_view()

    def send_buf(self, inei: int) -> Any:
        return _require(self._buf_snd_d).multi_view(inei).range_view()

    def init_sendings(self) -> None:
        variables = self._variables()
        snd_d_all = _require(self._buf_snd_d)
        for inei in range(self._pi.nb_nei):
            snd_d = snd_d_all.multi_view(inei)
            for ivar, var in enumerate(variables):
                var.pack_owned_into_buf(inei, snd_d.byte_buf(ivar), self._queue)
            self._queue.record_event(self._pi.pack_events[inei])

    def finalize_pack_before_send(self, inei: int) -> None:
        self._pi.pack_events[inei].wait()

    def finalize_sendings(self) -> None:
        self._queue.barrier()

    def unpack_after_recv(self, inei: int) -> None:
        variables = self._variables()
        rcv_d = _require(self._buf_rcv_d).multi_view(inei)
        for ivar, var in enumerate(variables):
            var.unpack_ghost_from_buf(inei, rcv_d.byte_buf(ivar), self._queue)

    def finalize_receipts(self) -> None:
        self._queue.barrier()

    def finalize_wo_comm(self) -> None:
        self._queue.barrier()