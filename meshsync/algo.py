"""Algorithm exchanging ghost values with every neighbour."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, Protocol


class SyncError(RuntimeError):
    """Raised when the exchange of messages is in an inconsistent state."""


class ParallelManager(Protocol):
    """Non-blocking point-to-point messaging used by :class:`VarSyncAlgo1`."""

    def recv(self, buf: Any, rank: int, blocking: bool = False) -> Any: ...

    def send(self, buf: Any, rank: int, blocking: bool = False) -> Any: ...

    def wait_some_requests(self, requests: Sequence[Any]) -> Sequence[int]: ...

    def wait_all_requests(self, requests: Sequence[Any]) -> None: ...


class Algo1SyncData(ABC):
    """Data and steps that :meth:`VarSyncAlgo1.synchronize` drives."""

    @abstractmethod
    def is_empty(self) -> bool:
        """True if there is no data to synchronize."""

    @abstractmethod
    def init_comm(self) -> None:
        """Prepare before the first communications."""

    @abstractmethod
    def recv_buf(self, inei: int) -> Any:
        """Receive buffer for neighbour ``inei``."""

    @abstractmethod
    def send_buf(self, inei: int) -> Any:
        """Send buffer for neighbour ``inei``."""

    @abstractmethod
    def init_sendings(self) -> None:
        """Prepare the sendings for every neighbour."""

    @abstractmethod
    def finalize_pack_before_send(self, inei: int) -> None:
        """Finish preparing the sending for neighbour ``inei``."""

    @abstractmethod
    def finalize_sendings(self) -> None:
        """Finish the sendings for every neighbour."""

    @abstractmethod
    def unpack_after_recv(self, inei: int) -> None:
        """Process the data received from neighbour ``inei``."""

    @abstractmethod
    def finalize_receipts(self) -> None:
        """Finish the receipts for every neighbour."""

    @abstractmethod
    def finalize_wo_comm(self) -> None:
        """Finish when no communication is needed."""


class VarSyncAlgo1:
    """Exchange ghost values with neighbours, unpacking as messages arrive."""

    def __init__(self, pm: ParallelManager, neigh_ranks: Sequence[int]) -> None:
        self._pm = pm
        self._neigh_ranks = tuple(int(rank) for rank in neigh_ranks)

    @property
    def neigh_ranks(self) -> tuple[int, ...]:
        """Ranks of the neighbours."""
        return self._neigh_ranks

    def synchronize(self, sync_data: Algo1SyncData) -> None:
        """Synchronize the variables held by ``sync_data``."""
        nb_nei = len(self._neigh_ranks)
        if nb_nei == 0 or sync_data.is_empty():
            sync_data.finalize_wo_comm()
            return

        sync_data.init_comm()

        # Each pending request carries its type: >0 receive, <0 send.
        pending: list[tuple[Any, int]] = []
        for inei, rank in enumerate(self._neigh_ranks):
            request = self._pm.recv(sync_data.recv_buf(inei), rank, blocking=False)
            pending.append((request, inei + 1))

        sync_data.init_sendings()

        for inei, rank in enumerate(self._neigh_ranks):
            sync_data.finalize_pack_before_send(inei)
            request = self._pm.send(sync_data.send_buf(inei), rank, blocking=False)
            pending.append((request, -inei - 1))

        sync_data.finalize_sendings()

        if len(pending) != 2 * nb_nei:
            raise SyncError("the number of requests is not twice the number of neighbours")

        nb_pending_rcv = nb_nei
        while nb_pending_rcv > 0:
            done = list(
                dict.fromkeys(
                    int(i) for i in self._pm.wait_some_requests([r for r, _ in pending])
                )
            )
            if not done:
                raise SyncError("no request completed while receipts are pending")
            for idone in done:
                if not 0 <= idone < len(pending):
                    raise SyncError(f"completed request index {idone} is out of range")
                msg_type = pending[idone][1]
                if msg_type > 0:
                    nb_pending_rcv -= 1
                    inei = msg_type - 1
                    if not 0 <= inei < nb_nei:
                        raise SyncError("wrong neighbour index")
                    sync_data.unpack_after_recv(inei)
            done_set = set(done)
            pending = [p for i, p in enumerate(pending) if i not in done_set]

        if pending:
            if len(pending) > nb_nei:
                raise SyncError(
                    "more send requests remain than there are neighbours"
                )
            if any(msg_type >= 0 for _, msg_type in pending):
                raise SyncError("a remaining request is not a send request")
            self._pm.wait_all_requests([r for r, _ in pending])

        sync_data.finalize_receipts()