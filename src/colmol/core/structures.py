"""
Structure and StructureView.

A Structure owns the five columnar stores plus the shared atom/residue
type maps. All reads and writes go through proxies; visitors
(``each_atom``, ``each_residue``, ...) hand out proxies borrowed from the
structure's ProxyPool and iterate in ascending index order, optionally
filtered by a selection.
"""

import logging
import time
from typing import Callable, Dict, Optional, Tuple, Union

import numpy as np

from colmol.core.bitset import BitSet
from colmol.core.constants import DEFAULT_GROWTH_FACTOR
from colmol.core.geometry import bounding_box, calc_distance_matrix
from colmol.core.proxy import (
    AtomProxy,
    BondProxy,
    ChainProxy,
    ModelProxy,
    ProxyPool,
    ResidueProxy,
)
from colmol.core.residue_type import AtomMap, ResidueMap
from colmol.core.store import AtomStore, BondStore, ChainStore, ModelStore, ResidueStore
from colmol.schemes.radius import RadiusFactory
from colmol.selection.predicates import Selection

logger = logging.getLogger(__name__)

SelectionLike = Union[Selection, object, str, None]


def _as_selection(selection: SelectionLike):
    """Strings become Selection objects; predicates pass through."""
    if isinstance(selection, str):
        return Selection(selection)
    return selection


def _has_selection(selection) -> bool:
    return selection is not None and hasattr(selection, "test")


class Structure:
    """
    Columnar molecular structure: models > chains > residues > atoms,
    plus bonds.

    Atoms of a residue, residues of a chain and chains of a model are
    contiguous index ranges; ``StructureBuilder`` keeps it that way.

    Args:
        name: Structure name
        path: Source path, if any
        debug: Bounds-check every proxy index assignment
        growth_factor: Capacity multiplier used by every store when full
    """

    def __init__(
        self,
        name: str = "",
        path: str = "",
        debug: bool = False,
        growth_factor: float = DEFAULT_GROWTH_FACTOR,
    ):
        self.name = name
        self.path = path
        self.debug = debug
        self.growth_factor = growth_factor

        self.atom_map = AtomMap()
        self.residue_map = ResidueMap(self.atom_map)

        self.atom_store = AtomStore(0, growth_factor)
        self.bond_store = BondStore(0, growth_factor)
        self.residue_store = ResidueStore(0, growth_factor)
        self.chain_store = ChainStore(0, growth_factor)
        self.model_store = ModelStore(0, growth_factor)

        self.proxy_pool = ProxyPool(self)

        self._atom_set: Optional[BitSet] = None
        self._bond_set: Optional[BitSet] = None

    # Counts and default sets

    @property
    def atom_count(self) -> int:
        return self.atom_store.count

    @property
    def bond_count(self) -> int:
        return self.bond_store.count

    @property
    def residue_count(self) -> int:
        return self.residue_store.count

    @property
    def chain_count(self) -> int:
        return self.chain_store.count

    @property
    def model_count(self) -> int:
        return self.model_store.count

    @property
    def atom_set(self) -> BitSet:
        """Atoms belonging to this structure (all of them)."""
        if self._atom_set is None or self._atom_set.length != self.atom_store.count:
            self._atom_set = BitSet(self.atom_store.count, set_all=True)
        return self._atom_set

    @property
    def bond_set(self) -> BitSet:
        """Bonds belonging to this structure (all of them)."""
        if self._bond_set is None or self._bond_set.length != self.bond_store.count:
            self._bond_set = BitSet(self.bond_store.count, set_all=True)
        return self._bond_set

    def is_full(self) -> bool:
        return True

    # Proxies

    def get_atom_proxy(self, index: int = 0) -> AtomProxy:
        return AtomProxy(self, index)

    def get_bond_proxy(self, index: int = 0) -> BondProxy:
        return BondProxy(self, index)

    def get_residue_proxy(self, index: int = 0) -> ResidueProxy:
        return ResidueProxy(self, index)

    def get_chain_proxy(self, index: int = 0) -> ChainProxy:
        return ChainProxy(self, index)

    def get_model_proxy(self, index: int = 0) -> ModelProxy:
        return ModelProxy(self, index)

    # Bitsets

    def get_atom_set(self, selection: SelectionLike = None) -> BitSet:
        """
        Atoms matching ``selection`` within this structure.

        Models rejected by the selection's ``model_only_test`` are skipped
        as a whole; ``model_only`` selections never test single atoms.
        """
        selection = _as_selection(selection)
        if not _has_selection(selection):
            return self.atom_set.clone()

        start = time.perf_counter()
        store = self.atom_store
        mask = np.zeros(store.count, dtype=bool)
        model_only_test = getattr(selection, "model_only_test", None)
        model_only = getattr(selection, "model_only", False)
        test = selection.test

        with self.proxy_pool.borrow("model") as mp, self.proxy_pool.borrow("atom") as ap:
            for m in range(self.model_store.count):
                mp.index = m
                if model_only_test is not None and not model_only_test(mp):
                    continue
                offset, count = mp.atom_offset, mp.atom_count
                if model_only:
                    mask[offset : offset + count] = True
                    continue
                for i in range(offset, offset + count):
                    ap.index = i
                    if test(ap):
                        mask[i] = True

        bs = BitSet.from_mask(mask).intersection(self.atom_set)
        logger.debug(
            "atom set: %d/%d atoms in %.3fs",
            bs.cardinality(), store.count, time.perf_counter() - start,
        )
        return bs

    def get_bond_set(self, selection: SelectionLike = None, atom_set: Optional[BitSet] = None) -> BitSet:
        """
        Bonds whose two atoms are both selected.

        Either pass a selection or an already computed atom set.
        """
        selection = _as_selection(selection)
        if atom_set is None:
            if not _has_selection(selection):
                return self.bond_set.clone()
            atom_set = self.get_atom_set(selection)

        store = self.bond_store
        n = store.count
        atom_mask = atom_set.to_mask()
        mask = atom_mask[store.atom_index1[:n]] & atom_mask[store.atom_index2[:n]]
        return BitSet.from_mask(mask).intersection(self.bond_set)

    def get_residue_set(self, selection: SelectionLike = None) -> BitSet:
        """Residues with at least one selected atom."""
        atom_mask = self.get_atom_set(selection).to_mask()
        rs = self.residue_store
        n = rs.count
        offsets = rs.atom_offset[:n].astype(np.int64)
        counts = rs.atom_count[:n].astype(np.int64)

        # selected atoms per residue from a prefix sum over the atom mask
        cumsum = np.concatenate([[0], np.cumsum(atom_mask, dtype=np.int64)])
        selected = cumsum[offsets + counts] - cumsum[offsets]
        return BitSet.from_mask(selected > 0)

    def get_chain_set(self, selection: SelectionLike = None) -> BitSet:
        """Chains with at least one selected residue."""
        residue_mask = self.get_residue_set(selection).to_mask()
        cs = self.chain_store
        mask = np.zeros(cs.count, dtype=bool)
        for c in range(cs.count):
            offset = int(cs.residue_offset[c])
            mask[c] = residue_mask[offset : offset + int(cs.residue_count[c])].any()
        return BitSet.from_mask(mask)

    # Visitors

    def each_atom(self, callback: Callable[[AtomProxy], None], selection: SelectionLike = None):
        selection = _as_selection(selection)
        atom_set = self.get_atom_set(selection) if _has_selection(selection) else self.atom_set

        with self.proxy_pool.borrow("atom") as ap:
            if atom_set.is_all_set():
                for i in range(self.atom_store.count):
                    ap.index = i
                    callback(ap)
            else:
                for i in atom_set:
                    ap.index = i
                    callback(ap)

    def each_bond(self, callback: Callable[[BondProxy], None], selection: SelectionLike = None):
        selection = _as_selection(selection)
        bond_set = self.get_bond_set(selection) if _has_selection(selection) else self.bond_set

        with self.proxy_pool.borrow("bond") as bp:
            for i in bond_set:
                bp.index = i
                callback(bp)

    def each_residue(self, callback: Callable[[ResidueProxy], None], selection: SelectionLike = None):
        selection = _as_selection(selection)
        if not _has_selection(selection) and self.is_full():
            with self.proxy_pool.borrow("residue") as rp:
                for i in range(self.residue_store.count):
                    rp.index = i
                    callback(rp)
            return

        residue_set = self.get_residue_set(selection)
        with self.proxy_pool.borrow("residue") as rp:
            for i in residue_set:
                rp.index = i
                callback(rp)

    def each_residue_n(self, n: int, callback: Callable):
        """
        Call ``callback(rp_0, ..., rp_{n-1})`` for every window of ``n``
        consecutive residues.
        """
        count = self.residue_store.count
        if count < n:
            return
        proxies = [self.get_residue_proxy(i) for i in range(n)]
        callback(*proxies)
        for _ in range(n, count):
            for rp in proxies:
                rp.index += 1
            callback(*proxies)

    def each_chain(self, callback: Callable[[ChainProxy], None], selection: SelectionLike = None):
        selection = _as_selection(selection)
        if not _has_selection(selection) and self.is_full():
            with self.proxy_pool.borrow("chain") as cp:
                for i in range(self.chain_store.count):
                    cp.index = i
                    callback(cp)
            return

        chain_set = self.get_chain_set(selection)
        with self.proxy_pool.borrow("chain") as cp:
            for i in chain_set:
                cp.index = i
                callback(cp)

    def each_model(self, callback: Callable[[ModelProxy], None], selection: SelectionLike = None):
        selection = _as_selection(selection)
        model_only_test = getattr(selection, "model_only_test", None)

        with self.proxy_pool.borrow("model") as mp:
            for i in range(self.model_store.count):
                mp.index = i
                if model_only_test is not None and not model_only_test(mp):
                    continue
                callback(mp)

    def each_polymer(self, callback: Callable, selection: SelectionLike = None):
        """Call ``callback(polymer)`` for every polymer of every chain."""
        selection = _as_selection(selection)
        residue_set = None
        if _has_selection(selection) or not self.is_full():
            residue_set = self.get_residue_set(selection)

        self.each_chain(lambda cp: cp.each_polymer(callback, residue_set), selection)

    # Dense exporters

    def atom_index(self, selection: SelectionLike = None) -> np.ndarray:
        """Indices of the selected atoms, ascending."""
        return self.get_atom_set(selection).to_array().astype(np.uint32)

    def atom_position(self, selection: SelectionLike = None) -> np.ndarray:
        """Flat float32 array of x, y, z for every selected atom."""
        idx = self.get_atom_set(selection).to_array()
        store = self.atom_store
        out = np.empty((len(idx), 3), dtype=np.float32)
        out[:, 0] = store.x[idx]
        out[:, 1] = store.y[idx]
        out[:, 2] = store.z[idx]
        return out.reshape(-1)

    def atom_color(self, color_maker, selection: SelectionLike = None) -> np.ndarray:
        """Flat float32 array of r, g, b in [0, 1] for every selected atom."""
        atom_set = self.get_atom_set(selection)
        color = np.zeros(atom_set.cardinality() * 3, dtype=np.float32)
        offset = [0]

        def fill(ap):
            color_maker.atom_color_to_array(ap, color, offset[0])
            offset[0] += 3

        self.each_atom(fill, selection)
        return color

    def atom_radius(self, radius_type="vdw", scale: float = 1.0, selection: SelectionLike = None) -> np.ndarray:
        """float32 radius per selected atom (see RadiusFactory)."""
        factory = RadiusFactory(radius_type, scale)
        radius = np.zeros(self.get_atom_set(selection).cardinality(), dtype=np.float32)
        offset = [0]

        def fill(ap):
            radius[offset[0]] = factory.atom_radius(ap)
            offset[0] += 1

        self.each_atom(fill, selection)
        return radius

    def bond_position(self, from_to: bool = True, selection: SelectionLike = None) -> np.ndarray:
        """Flat float32 positions of the first (``from_to``) or second bond atoms."""
        idx = self.get_bond_set(selection).to_array()
        column = self.bond_store.atom_index1 if from_to else self.bond_store.atom_index2
        atoms = column[idx].astype(np.int64)
        store = self.atom_store
        out = np.empty((len(atoms), 3), dtype=np.float32)
        out[:, 0] = store.x[atoms]
        out[:, 1] = store.y[atoms]
        out[:, 2] = store.z[atoms]
        return out.reshape(-1)

    def bond_color(self, color_maker, from_to: bool = True, selection: SelectionLike = None) -> np.ndarray:
        bond_set = self.get_bond_set(selection)
        color = np.zeros(bond_set.cardinality() * 3, dtype=np.float32)
        offset = [0]

        def fill(bp):
            color_maker.bond_color_to_array(bp, from_to, color, offset[0])
            offset[0] += 3

        self.each_bond(fill, selection)
        return color

    def bond_picking_color(self, picking_color_maker, from_to: bool = True,
                           selection: SelectionLike = None) -> np.ndarray:
        return self.bond_color(picking_color_maker, from_to, selection)

    def bond_radius(self, from_to: bool = True, radius_type="vdw", scale: float = 1.0,
                    selection: SelectionLike = None) -> np.ndarray:
        factory = RadiusFactory(radius_type, scale)
        bond_set = self.get_bond_set(selection)
        radius = np.zeros(bond_set.cardinality(), dtype=np.float32)
        offset = [0]

        def fill(bp):
            ap = bp.atom1 if from_to else bp.atom2
            radius[offset[0]] = factory.atom_radius(ap)
            offset[0] += 1

        self.each_bond(fill, selection)
        return radius

    # Whole-structure operations

    def get_bounding_box(self, selection: SelectionLike = None) -> Tuple[np.ndarray, np.ndarray]:
        return bounding_box(self.atom_position(selection).reshape(-1, 3))

    def atom_distance_matrix(self, selection1: SelectionLike = None,
                             selection2: SelectionLike = None) -> np.ndarray:
        """
        Distances between every atom of ``selection1`` (rows) and every
        atom of ``selection2`` (columns), in ascending atom index order.
        """
        coords1 = self.atom_position(selection1).reshape(-1, 3)
        return calc_distance_matrix(coords1, self.atom_position(selection2).reshape(-1, 3))

    def atom_center(self, selection: SelectionLike = None) -> np.ndarray:
        """Center of the bounding box of the selected atoms."""
        bb_min, bb_max = self.get_bounding_box(selection)
        if not np.all(np.isfinite(bb_min)):
            return np.zeros(3)
        return (bb_min + bb_max) / 2.0

    def get_sequence(self, selection: SelectionLike = None) -> str:
        """One-letter codes of the selected polymer residues."""
        letters = []

        def add(rp):
            if rp.is_polymer():
                letters.append(rp.one_letter)

        self.each_residue(add, selection)
        return "".join(letters)

    def update_position(self, position: np.ndarray):
        """Overwrite all atom coordinates from a flat or (N, 3) array."""
        position = np.asarray(position, dtype=np.float32).reshape(-1, 3)
        n = self.atom_store.count
        assert len(position) == n, f"expected {n} positions, got {len(position)}"
        self.atom_store.x[:n] = position[:, 0]
        self.atom_store.y[:n] = position[:, 1]
        self.atom_store.z[:n] = position[:, 2]

    def get_view(self, selection: SelectionLike) -> "StructureView":
        return StructureView(self, selection)

    def dispose(self):
        for store in (self.atom_store, self.bond_store, self.residue_store,
                      self.chain_store, self.model_store):
            store.dispose()
        self._atom_set = None
        self._bond_set = None

    # Serialization

    def to_json(self) -> Dict:
        return {
            "metadata": {"type": "Structure", "name": self.name, "path": self.path},
            "growth_factor": self.growth_factor,
            "atom_map": self.atom_map.to_json(),
            "residue_map": self.residue_map.to_json(),
            "atom_store": self.atom_store.to_json(),
            "bond_store": self.bond_store.to_json(),
            "residue_store": self.residue_store.to_json(),
            "chain_store": self.chain_store.to_json(),
            "model_store": self.model_store.to_json(),
        }

    def from_json(self, data: Dict) -> "Structure":
        self.name = data["metadata"].get("name", "")
        self.path = data["metadata"].get("path", "")
        self.growth_factor = data.get("growth_factor", self.growth_factor)

        self.atom_map.from_json(data["atom_map"])
        self.residue_map.from_json(data["residue_map"])

        self.atom_store.from_json(data["atom_store"])
        self.bond_store.from_json(data["bond_store"])
        self.residue_store.from_json(data["residue_store"])
        self.chain_store.from_json(data["chain_store"])
        self.model_store.from_json(data["model_store"])

        self._atom_set = None
        self._bond_set = None
        return self

    def __repr__(self) -> str:
        return (
            f"Structure({self.name!r}, models={self.model_count}, chains={self.chain_count}, "
            f"residues={self.residue_count}, atoms={self.atom_count}, bonds={self.bond_count})"
        )


class StructureView(Structure):
    """
    A structure restricted to a selection.

    Stores, type maps and proxies are the parent's; only the atom and
    bond sets differ. The sets are recomputed lazily on access whenever
    the selection's version or the parent's atom/bond counts changed
    since the last computation, or after ``invalidate()``.
    """

    def __init__(self, structure: Structure, selection: SelectionLike = None):
        if isinstance(structure, StructureView):
            raise TypeError("cannot get a view from a StructureView")

        self.structure = structure
        selection = _as_selection(selection)
        if selection is None:
            selection = Selection()
        elif not isinstance(selection, Selection):
            selection = Selection(selection)
        self.selection = selection

        self._atom_set = None
        self._bond_set = None
        self._snapshot = None

    # Delegation to the parent

    @property
    def name(self) -> str:
        return self.structure.name

    @property
    def path(self) -> str:
        return self.structure.path

    @property
    def debug(self) -> bool:
        return self.structure.debug

    @property
    def growth_factor(self) -> float:
        return self.structure.growth_factor

    @property
    def atom_map(self):
        return self.structure.atom_map

    @property
    def residue_map(self):
        return self.structure.residue_map

    @property
    def atom_store(self):
        return self.structure.atom_store

    @property
    def bond_store(self):
        return self.structure.bond_store

    @property
    def residue_store(self):
        return self.structure.residue_store

    @property
    def chain_store(self):
        return self.structure.chain_store

    @property
    def model_store(self):
        return self.structure.model_store

    @property
    def proxy_pool(self):
        return self.structure.proxy_pool

    def get_atom_proxy(self, index: int = 0) -> AtomProxy:
        return self.structure.get_atom_proxy(index)

    def get_bond_proxy(self, index: int = 0) -> BondProxy:
        return self.structure.get_bond_proxy(index)

    def get_residue_proxy(self, index: int = 0) -> ResidueProxy:
        return self.structure.get_residue_proxy(index)

    def get_chain_proxy(self, index: int = 0) -> ChainProxy:
        return self.structure.get_chain_proxy(index)

    def get_model_proxy(self, index: int = 0) -> ModelProxy:
        return self.structure.get_model_proxy(index)

    # Lazily computed selection state

    def _state_key(self):
        return (
            self.selection.version,
            self.structure.atom_store.count,
            self.structure.bond_store.count,
        )

    def invalidate(self):
        """Force recomputation of the view's sets on next access."""
        self._snapshot = None

    def _refresh(self):
        key = self._state_key()
        if key == self._snapshot:
            return
        start = time.perf_counter()
        self._atom_set = self.structure.get_atom_set(self.selection)
        self._bond_set = self.structure.get_bond_set(atom_set=self._atom_set)
        self._snapshot = key
        logger.debug(
            "view %r: %d atoms, %d bonds in %.3fs",
            self.selection.string, self._atom_set.cardinality(),
            self._bond_set.cardinality(), time.perf_counter() - start,
        )

    @property
    def atom_set(self) -> BitSet:
        self._refresh()
        return self._atom_set

    @property
    def bond_set(self) -> BitSet:
        self._refresh()
        return self._bond_set

    @property
    def atom_count(self) -> int:
        return self.atom_set.cardinality()

    @property
    def bond_count(self) -> int:
        return self.bond_set.cardinality()

    def is_full(self) -> bool:
        return False

    def get_view(self, selection: SelectionLike):
        raise TypeError("cannot get a view from a StructureView")

    def dispose(self):
        self.structure = None
        self._atom_set = None
        self._bond_set = None
        self._snapshot = None

    def to_json(self) -> Dict:
        return {
            "metadata": {"type": "StructureView"},
            "structure": self.structure.to_json(),
            "selection": self.selection.string,
            "atom_set": self.atom_set.to_json(),
            "bond_set": self.bond_set.to_json(),
            "atom_count": self.atom_count,
            "bond_count": self.bond_count,
        }

    def from_json(self, data: Dict) -> "StructureView":
        self.structure = Structure().from_json(data["structure"])
        self.selection = Selection(data["selection"] or None)
        self._atom_set = BitSet().from_json(data["atom_set"])
        self._bond_set = BitSet().from_json(data["bond_set"])
        self._snapshot = self._state_key()
        return self

    @classmethod
    def load_json(cls, data: Dict) -> "StructureView":
        view = cls.__new__(cls)
        view.structure = None
        view.selection = Selection()
        return view.from_json(data)

    def __repr__(self) -> str:
        return f"StructureView({self.structure.name!r}, {self.selection.string!r})"
