"""
Global id allocation for GPU picking.

Every registered object (structure or volume) owns one contiguous gid
range. A structure's range covers its atoms followed by its bonds; a
volume's covers its samples. Gids start at 1 (0 means "nothing") and
must fit the 24 bits of an RGB picking colour.
"""

import logging
from typing import Any, List, NamedTuple, Optional, Tuple

from colmol.core.constants import MAX_GID
from colmol.core.structures import Structure
from colmol.picking.volume import Volume

logger = logging.getLogger(__name__)


class GidPoolOverflowError(RuntimeError):
    """Raised when an allocation would exceed the pool's ``max_gid``."""


class PickedEntity(NamedTuple):
    """Result of a reverse gid lookup."""

    object: Any
    offset: int
    kind: str  # "atom", "bond" or "volume"
    entity: Any


class GidPool:
    """
    Allocator mapping (object, local offset) pairs to global ids and back.

    Ranges are disjoint and increase in registration order. Removing an
    object does not compact the others; ``next_gid`` returns to 1 only
    when the pool becomes empty.

    Args:
        max_gid: Exclusive ceiling for ``next_gid`` (default 2**24)
    """

    def __init__(self, max_gid: int = MAX_GID):
        self.max_gid = max_gid
        self.next_gid = 1
        self.object_list: List[Any] = []
        self.range_list: List[List[int]] = []

    def _index_of(self, obj) -> int:
        for i, other in enumerate(self.object_list):
            if other is obj:
                return i
        return -1

    def get_gid_count(self, obj) -> int:
        if isinstance(obj, Structure):
            return obj.atom_store.count + obj.bond_store.count
        if isinstance(obj, Volume):
            return len(obj.data)
        logger.warning("GidPool.get_gid_count: unknown object type %s", type(obj).__name__)
        return 0

    def _check_capacity(self, next_gid: int):
        if next_gid > self.max_gid:
            raise GidPoolOverflowError(
                f"gid pool overflow: {next_gid} exceeds maximum {self.max_gid}"
            )

    def allocate_gid_range(self, obj) -> List[int]:
        first = self.next_gid
        last = first + self.get_gid_count(obj)
        self._check_capacity(last)
        self.next_gid = last
        return [first, last]

    def add_object(self, obj) -> "GidPool":
        gid_range = self.allocate_gid_range(obj)
        self.object_list.append(obj)
        self.range_list.append(gid_range)
        return self

    def remove_object(self, obj) -> "GidPool":
        idx = self._index_of(obj)
        if idx != -1:
            del self.object_list[idx]
            del self.range_list[idx]
            if not self.object_list:
                self.next_gid = 1
        return self

    def update_object(self, obj, silent: bool = False) -> "GidPool":
        """
        Resize an object's range after its element count changed.

        The tail range is resized in place; any other range is abandoned
        and a fresh one is allocated at the end.
        """
        idx = self._index_of(obj)
        if idx == -1:
            if not silent:
                logger.warning("GidPool.update_object: object not found")
            return self

        gid_range = self.range_list[idx]
        if gid_range[1] == self.next_gid:
            last = gid_range[0] + self.get_gid_count(obj)
            self._check_capacity(last)
            self.next_gid = last
            gid_range[1] = last
        else:
            self.range_list[idx] = self.allocate_gid_range(obj)
        return self

    def get_next_gid(self) -> int:
        """Hand out a single gid not owned by any object."""
        self._check_capacity(self.next_gid + 1)
        gid = self.next_gid
        self.next_gid += 1
        return gid

    def get_range(self, obj) -> Optional[Tuple[int, int]]:
        idx = self._index_of(obj)
        return tuple(self.range_list[idx]) if idx != -1 else None

    def get_gid(self, obj, offset: int = 0) -> int:
        """Gid of the element at ``offset`` of ``obj``, or 0 if unregistered."""
        idx = self._index_of(obj)
        if idx == -1:
            logger.warning("GidPool.get_gid: object not found")
            return 0
        return self.range_list[idx][0] + offset

    def get_by_gid(self, gid: int) -> Optional[PickedEntity]:
        """
        Reverse lookup of a gid.

        Returns:
            PickedEntity with an atom proxy, bond proxy or VolumeSample,
            or None if no live range contains ``gid``
        """
        for obj, (first, last) in zip(self.object_list, self.range_list):
            if not first <= gid < last:
                continue
            offset = gid - first

            if isinstance(obj, Structure):
                atom_count = obj.atom_store.count
                if offset < atom_count:
                    return PickedEntity(obj, offset, "atom", obj.get_atom_proxy(offset))
                if offset < atom_count + obj.bond_store.count:
                    bond = obj.get_bond_proxy(offset - atom_count)
                    return PickedEntity(obj, offset, "bond", bond)
                logger.warning("GidPool.get_by_gid: invalid structure gid %d", gid)
                return None

            if isinstance(obj, Volume):
                return PickedEntity(obj, offset, "volume", obj.get_sample(offset))

            logger.warning("GidPool.get_by_gid: unknown object type %s", type(obj).__name__)
            return None

        return None

    def __len__(self) -> int:
        return len(self.object_list)

    def __repr__(self) -> str:
        return f"GidPool(objects={len(self.object_list)}, next_gid={self.next_gid})"
