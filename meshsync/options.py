"""Synchronization options and item categories."""

from __future__ import annotations

from enum import IntEnum


class VarSyncVersion(IntEnum):
    """Implementations available to synchronize a variable."""

    AUTO = -1
    NOSYNC = 0
    BULKSYNC_STD = 1
    BULKSYNC_EVQUEUE = 2
    BULKSYNC_EVQUEUE_D = 3
    OVERLAP_EVQUEUE = 4
    OVERLAP_EVQUEUE_D = 5
    OVERLAP_IQUEUE = 6

    def resolve(self, accelerator_available: bool) -> VarSyncVersion:
        """Replace AUTO by the default for the given hardware; keep others."""
        if self is not VarSyncVersion.AUTO:
            return self
        if accelerator_available:
            return VarSyncVersion.OVERLAP_EVQUEUE
        return VarSyncVersion.BULKSYNC_STD


class ItemSync(IntEnum):
    """Kind of items for a synchronization: owned (shared) or ghost."""

    OWNED = 0
    GHOST = 1


class GroupCategory(IntEnum):
    """Category of an item group: own items or all items."""

    OWN = 0
    ALL = 1