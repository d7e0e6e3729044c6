from types import SimpleNamespace

import pytest

from meshsync.algo import SyncError, VarSyncAlgo1
from meshsync.buffers import SyncBuffers
from meshsync.syncdata import (
    Algo1SyncDataD,
    Algo1SyncDataDH,
    PersistentInfoD,
    PersistentInfoDH,
)
from meshsync.syncitems import SyncItems
from meshsync.transfer import RunQueue
from meshsync.varsync import CellMatVarScalSync, GlobVarSync, MeshVariableSynchronizerList
from meshsync.views import DataType

REAL = DataType.REAL


def _glob_setup():
    items = SyncItems(
        all_items=[0, 1, 2, 3, 4],
        own_items=[0, 1, 2],
        shared_per_nei=[[2]],
        ghost_per_nei=[[3, 4]],
    )
    values = [10.0, 11.0, 12.0, 0.0, 0.0]
    lst = MeshVariableSynchronizerList()
    lst.add(GlobVarSync(values, items, REAL))
    return values, lst


class _LoopbackPm:
    def __init__(self, incoming):
        self.incoming = incoming
        self.sent = {}
        self.waited_all = []

    def recv(self, buf, rank, blocking=False):
        return ("recv", buf, rank)

    def send(self, buf, rank, blocking=False):
        self.sent[rank] = bytes(buf)
        return ("send", rank)

    def wait_some_requests(self, requests):
        kind, *rest = requests[0]
        if kind == "recv":
            buf, rank = rest
            buf[:] = self.incoming[rank]
        return [0]

    def wait_all_requests(self, requests):
        self.waited_all.extend(requests)


def test_persistent_info_dh_has_one_event_per_neighbour():
    pi = PersistentInfoDH(3, SyncBuffers(False))
    assert len(pi.pack_events) == 3
    assert len(pi.transfer_events) == 3
    assert len({id(e) for e in pi.pack_events + pi.transfer_events}) == 6


def test_persistent_info_d_keeps_device_awareness():
    pi = PersistentInfoD(True, 2, SyncBuffers(False))
    assert pi.is_device_aware is True
    assert len(pi.pack_events) == 2


def test_d_requires_device_aware_communications():
    pi = PersistentInfoD(False, 1, SyncBuffers(False))
    with pytest.raises(SyncError):
        Algo1SyncDataD(MeshVariableSynchronizerList(), RunQueue(), pi)


def test_buffers_used_before_init_comm_raise():
    pi = PersistentInfoDH(1, SyncBuffers(False))
    _, lst = _glob_setup()
    sd = Algo1SyncDataDH(lst, RunQueue(), pi)
    with pytest.raises(RuntimeError):
        sd.recv_buf(0)


def test_dh_packing_is_deferred_until_transfer_done():
    values, lst = _glob_setup()
    buffers = SyncBuffers(False)
    queue = RunQueue()
    sd = Algo1SyncDataDH(lst, queue, PersistentInfoDH(1, buffers))
    sd.init_comm()
    assert buffers.buffer_size(0) == buffers.buffer_size(1)
    assert buffers.buffer_size(0) > 0
    sd.init_sendings()
    assert bytes(sd.send_buf(0)) == bytes(len(sd.send_buf(0)))
    assert queue.pending() > 0
    sd.finalize_pack_before_send(0)
    assert bytes(sd.send_buf(0)) == REAL.pack(12.0)


def test_dh_unpack_after_recv_writes_ghosts():
    values, lst = _glob_setup()
    queue = RunQueue()
    sd = Algo1SyncDataDH(lst, queue, PersistentInfoDH(1, SyncBuffers(False)))
    sd.init_comm()
    sd.init_sendings()
    sd.finalize_pack_before_send(0)
    sd.finalize_sendings()
    rb = sd.recv_buf(0)
    payload = REAL.pack(7.0) + REAL.pack(8.0)
    assert len(rb) == len(payload)
    rb[:] = payload
    sd.unpack_after_recv(0)
    sd.finalize_receipts()
    assert values == [10.0, 11.0, 12.0, 7.0, 8.0]
    assert queue.pending() == 0


def test_dh_full_synchronization_with_algorithm():
    values, lst = _glob_setup()
    pm = _LoopbackPm({5: REAL.pack(7.0) + REAL.pack(8.0)})
    sd = Algo1SyncDataDH(lst, RunQueue(), PersistentInfoDH(1, SyncBuffers(True)))
    VarSyncAlgo1(pm, [5]).synchronize(sd)
    assert values[3:] == [7.0, 8.0]
    assert pm.sent[5] == REAL.pack(12.0)


def test_d_full_synchronization_with_algorithm():
    values, lst = _glob_setup()
    pm = _LoopbackPm({2: REAL.pack(1.5) + REAL.pack(2.5)})
    sd = Algo1SyncDataD(lst, RunQueue(), PersistentInfoD(True, 1, SyncBuffers(False)))
    VarSyncAlgo1(pm, [2]).synchronize(sd)
    assert values == [10.0, 11.0, 12.0, 1.5, 2.5]
    assert pm.sent[2] == REAL.pack(12.0)


def test_d_multi_environment_variable_round_trip():
    menv = [[1.0, 2.0], [3.0, 4.0]]
    sync_evi = SimpleNamespace(
        nb_owned_evi_pn=(1,),
        nb_ghost_evi_pn=(1,),
        owned_evi_pn=(((0, 1),),),
        ghost_evi_pn=(((1, 0),),),
    )
    lst = MeshVariableSynchronizerList()
    lst.add(CellMatVarScalSync(menv, sync_evi, REAL))
    sd = Algo1SyncDataD(lst, RunQueue(), PersistentInfoD(True, 1, SyncBuffers(False)))
    sd.init_comm()
    sd.init_sendings()
    sd.finalize_pack_before_send(0)
    assert bytes(sd.send_buf(0)) == REAL.pack(2.0)
    sd.recv_buf(0)[:] = REAL.pack(9.0)
    sd.unpack_after_recv(0)
    sd.finalize_receipts()
    assert menv == [[1.0, 2.0], [9.0, 4.0]]


def test_empty_list_finishes_without_communication():
    queue = RunQueue()
    pm = _LoopbackPm({})
    sd = Algo1SyncDataDH(MeshVariableSynchronizerList(), queue, PersistentInfoDH(1, SyncBuffers(False)))
    assert sd.is_empty()
    VarSyncAlgo1(pm, [1]).synchronize(sd)
    assert pm.sent == {}
    assert queue.pending() == 0


def test_two_neighbours_each_get_their_own_values():
    items = SyncItems(
        all_items=[0, 1, 2, 3],
        own_items=[0, 1],
        shared_per_nei=[[0], [1]],
        ghost_per_nei=[[2], [3]],
    )
    values = [5.0, 6.0, 0.0, 0.0]
    lst = MeshVariableSynchronizerList()
    lst.add(GlobVarSync(values, items, REAL))
    pm = _LoopbackPm({10: REAL.pack(-1.0), 20: REAL.pack(-2.0)})
    sd = Algo1SyncDataDH(lst, RunQueue(), PersistentInfoDH(2, SyncBuffers(False)))
    VarSyncAlgo1(pm, [10, 20]).synchronize(sd)
    assert pm.sent[10] == REAL.pack(5.0)
    assert pm.sent[20] == REAL.pack(6.0)
    assert values[2:] == [-1.0, -2.0]