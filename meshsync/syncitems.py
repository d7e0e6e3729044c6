"""Lists of items to send and receive for one kind of mesh item."""

from __future__ import annotations

from collections.abc import Sequence

from meshsync.options import GroupCategory

_IdxPerNei = tuple[tuple[int, ...], ...]


class SyncItems:
    """Items to send ("shared") and receive ("ghost") for each neighbour.

    ``all_items`` is the group of every item (local ids, ghosts included) and
    ``own_items`` the group of the items owned by this sub-domain.
    ``shared_per_nei[inei]`` and ``ghost_per_nei[inei]`` hold the local ids
    shared with, and received from, the ``inei``-th neighbour.

    Per-neighbour lists are stored as indexes in ``all_items``. The groups
    satisfy own = private + shared and all = private + shared + ghost.
    """

    def __init__(
        self,
        all_items: Sequence[int],
        own_items: Sequence[int],
        shared_per_nei: Sequence[Sequence[int]],
        ghost_per_nei: Sequence[Sequence[int]],
    ) -> None:
        if len(shared_per_nei) != len(ghost_per_nei):
            raise ValueError(
                f"{len(shared_per_nei)} shared lists but {len(ghost_per_nei)} ghost lists"
            )
        all_lids = tuple(int(lid) for lid in all_items)
        own_lids = tuple(int(lid) for lid in own_items)
        lid_to_index = {lid: index for index, lid in enumerate(all_lids)}
        if len(lid_to_index) != len(all_lids):
            raise ValueError("all_items holds duplicate local ids")

        def to_indexes(lids: Sequence[int]) -> tuple[int, ...]:
            indexes = []
            for lid in lids:
                try:
                    indexes.append(lid_to_index[int(lid)])
                except KeyError:
                    raise ValueError(f"local id {lid} is not in all_items") from None
            return tuple(indexes)

        shared_lists = [tuple(int(lid) for lid in lids) for lids in shared_per_nei]
        ghost_lists = [tuple(int(lid) for lid in lids) for lids in ghost_per_nei]

        self._owned_item_idx: _IdxPerNei = tuple(to_indexes(l) for l in shared_lists)
        self._ghost_item_idx: _IdxPerNei = tuple(to_indexes(l) for l in ghost_lists)

        # Each item is classified once, by the first list it appears in.
        seen: set[int] = set()
        shared: list[int] = []
        ghost: list[int] = []
        shared_ghost: list[int] = []
        for shared_lids, ghost_lids in zip(shared_lists, ghost_lists):
            for lid in shared_lids:
                if lid not in seen:
                    seen.add(lid)
                    shared.append(lid)
                    shared_ghost.append(lid)
            for lid in ghost_lids:
                if lid not in seen:
                    seen.add(lid)
                    ghost.append(lid)
                    shared_ghost.append(lid)

        private = [lid for lid in own_lids if lid not in seen]

        self._private_items = tuple(private)
        self._shared_items = tuple(shared)
        self._ghost_items = tuple(ghost)
        self._shared_ghost_items = tuple(shared_ghost)

        if len(own_lids) != len(private) + len(shared):
            raise ValueError("own != private+shared")
        if len(all_lids) - len(own_lids) != len(ghost):
            raise ValueError("(all-own) != ghost")
        if len(all_lids) != len(private) + len(shared_ghost):
            raise ValueError("all != private+shared+ghost")

    @property
    def nb_owned_item_idx_pn(self) -> tuple[int, ...]:
        """Number of items sent to each neighbour."""
        return tuple(len(idx) for idx in self._owned_item_idx)

    @property
    def nb_ghost_item_idx_pn(self) -> tuple[int, ...]:
        """Number of items received from each neighbour."""
        return tuple(len(idx) for idx in self._ghost_item_idx)

    @property
    def owned_item_idx_pn(self) -> _IdxPerNei:
        """Indexes in all_items of the items sent to each neighbour."""
        return self._owned_item_idx

    @property
    def ghost_item_idx_pn(self) -> _IdxPerNei:
        """Indexes in all_items of the items received from each neighbour."""
        return self._ghost_item_idx

    @property
    def private_items(self) -> tuple[int, ...]:
        """Owned items that take part in no communication."""
        return self._private_items

    @property
    def shared_items(self) -> tuple[int, ...]:
        """Owned items whose values are sent."""
        return self._shared_items

    @property
    def ghost_items(self) -> tuple[int, ...]:
        """Ghost items whose values are received."""
        return self._ghost_items

    @property
    def shared_ghost_items(self) -> tuple[int, ...]:
        """Shared items followed by ghost items, in discovery order."""
        return self._shared_ghost_items

    def boundary_items(self, group_category: GroupCategory) -> tuple[int, ...]:
        """Items involved in communications for a group category."""
        if GroupCategory(group_category) is GroupCategory.OWN:
            return self._shared_items
        return self._shared_ghost_items