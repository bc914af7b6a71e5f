"""
Flyweight proxies over the columnar stores.

A proxy is a cursor: a structure reference plus a mutable ``index``.
Every accessor reads or writes ``store.column[index]``; nothing is
copied. Proxies never own their store.

Index assignment is unchecked unless the structure was created with
``debug=True``, in which case an out-of-range index raises IndexError.
"""

from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional

import numpy as np

from colmol.core.constants import (
    CG_NUCLEIC_LINK_DIST,
    CG_PROTEIN_LINK_DIST,
    HELIX_CODES,
    NUCLEIC_BACKBONE_ATOMS,
    NUCLEIC_LINK_DIST,
    PROTEIN_BACKBONE_ATOMS,
    PROTEIN_LINK_DIST,
    SHEET_CODES,
    TURN_CODES,
)
from colmol.core.geometry import calc_distance


def _char(code: int) -> str:
    return chr(code) if code else ""


def _code(value: str) -> int:
    return ord(value[0]) if value else 0


class Proxy:
    """Base cursor; subclasses name the store they index via ``_count``."""

    kind = ""

    def __init__(self, structure, index: int = 0):
        self.structure = structure
        self._index = 0
        if index:
            self.index = index

    def _count(self) -> int:
        raise NotImplementedError

    @property
    def index(self) -> int:
        return self._index

    @index.setter
    def index(self, value: int):
        if self.structure.debug and not 0 <= value < self._count():
            raise IndexError(
                f"{type(self).__name__} index {value} out of range [0, {self._count()})"
            )
        self._index = int(value)

    def clone(self):
        return type(self)(self.structure, self._index)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(index={self._index})"


class AtomProxy(Proxy):
    """Cursor over the AtomStore."""

    kind = "atom"

    def _count(self) -> int:
        return self.structure.atom_store.count

    # Stored fields

    @property
    def x(self) -> float:
        return float(self.structure.atom_store.x[self._index])

    @x.setter
    def x(self, value: float):
        self.structure.atom_store.x[self._index] = value

    @property
    def y(self) -> float:
        return float(self.structure.atom_store.y[self._index])

    @y.setter
    def y(self, value: float):
        self.structure.atom_store.y[self._index] = value

    @property
    def z(self) -> float:
        return float(self.structure.atom_store.z[self._index])

    @z.setter
    def z(self, value: float):
        self.structure.atom_store.z[self._index] = value

    @property
    def serial(self) -> int:
        return int(self.structure.atom_store.serial[self._index])

    @serial.setter
    def serial(self, value: int):
        self.structure.atom_store.serial[self._index] = value

    @property
    def bfactor(self) -> float:
        return float(self.structure.atom_store.bfactor[self._index])

    @bfactor.setter
    def bfactor(self, value: float):
        self.structure.atom_store.bfactor[self._index] = value

    @property
    def occupancy(self) -> float:
        return float(self.structure.atom_store.occupancy[self._index])

    @occupancy.setter
    def occupancy(self, value: float):
        self.structure.atom_store.occupancy[self._index] = value

    @property
    def altloc(self) -> str:
        return _char(self.structure.atom_store.altloc[self._index])

    @altloc.setter
    def altloc(self, value: str):
        self.structure.atom_store.altloc[self._index] = _code(value)

    @property
    def residue_index(self) -> int:
        return int(self.structure.atom_store.residue_index[self._index])

    @residue_index.setter
    def residue_index(self, value: int):
        self.structure.atom_store.residue_index[self._index] = value

    @property
    def atom_type_id(self) -> int:
        return int(self.structure.atom_store.atom_type_id[self._index])

    # Derived from the atom type

    @property
    def atom_type(self):
        return self.structure.atom_map.get(self.atom_type_id)

    @property
    def atomname(self) -> str:
        return self.atom_type.atomname

    @property
    def element(self) -> str:
        return self.atom_type.element

    # Derived from the residue

    @property
    def residue(self) -> "ResidueProxy":
        return ResidueProxy(self.structure, self.residue_index)

    @property
    def residue_type(self):
        rs = self.structure.residue_store
        return self.structure.residue_map.get(int(rs.residue_type_id[self.residue_index]))

    @property
    def resname(self) -> str:
        return self.residue_type.resname

    @property
    def hetero(self) -> bool:
        return self.residue_type.hetero

    @property
    def resno(self) -> int:
        return int(self.structure.residue_store.resno[self.residue_index])

    @property
    def sstruc(self) -> str:
        return _char(self.structure.residue_store.sstruc[self.residue_index])

    @property
    def inscode(self) -> str:
        return _char(self.structure.residue_store.inscode[self.residue_index])

    @property
    def chain_index(self) -> int:
        return int(self.structure.residue_store.chain_index[self.residue_index])

    @property
    def chainname(self) -> str:
        return self.structure.chain_store.get_chainname(self.chain_index)

    @property
    def model_index(self) -> int:
        return int(self.structure.chain_store.model_index[self.chain_index])

    @property
    def residue_atom_offset(self) -> int:
        return int(self.structure.residue_store.atom_offset[self.residue_index])

    # Classification

    def is_backbone(self) -> bool:
        rt = self.residue_type
        if rt.is_protein():
            return self.atomname in PROTEIN_BACKBONE_ATOMS
        if rt.is_nucleic():
            return self.atomname in NUCLEIC_BACKBONE_ATOMS
        return False

    def is_sidechain(self) -> bool:
        return self.is_polymer() and not self.is_backbone()

    def is_trace(self) -> bool:
        local = self.residue_type.trace_atom_index
        return local >= 0 and self._index - self.residue_atom_offset == local

    def is_polymer(self) -> bool:
        return self.residue_type.is_polymer()

    def is_protein(self) -> bool:
        return self.residue_type.is_protein()

    def is_nucleic(self) -> bool:
        return self.residue_type.is_nucleic()

    def is_rna(self) -> bool:
        return self.residue_type.is_rna()

    def is_dna(self) -> bool:
        return self.residue_type.is_dna()

    def is_water(self) -> bool:
        return self.residue_type.is_water()

    def is_ion(self) -> bool:
        return self.residue_type.is_ion()

    def is_hetero(self) -> bool:
        return self.residue_type.hetero

    def is_cg(self) -> bool:
        return self.residue_type.is_cg()

    def is_helix(self) -> bool:
        return bool(self.sstruc) and self.sstruc in HELIX_CODES

    def is_sheet(self) -> bool:
        return bool(self.sstruc) and self.sstruc in SHEET_CODES

    # Geometry

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def position_to_array(self, array: Optional[np.ndarray] = None, offset: int = 0) -> np.ndarray:
        """Write x, y, z into ``array[offset:offset + 3]``."""
        if array is None:
            array = np.zeros(3, dtype=np.float32)
        store = self.structure.atom_store
        i = self._index
        array[offset] = store.x[i]
        array[offset + 1] = store.y[i]
        array[offset + 2] = store.z[i]
        return array

    def position_from_array(self, array: np.ndarray, offset: int = 0):
        self.x = array[offset]
        self.y = array[offset + 1]
        self.z = array[offset + 2]

    def distance_to(self, other: "AtomProxy") -> float:
        return calc_distance(self.position, other.position)

    def qualified_name(self) -> str:
        name = f"[{self.resname}]{self.resno}"
        if self.inscode:
            name += f"^{self.inscode}"
        if self.chainname:
            name += f":{self.chainname}"
        name += f".{self.atomname}"
        if self.altloc:
            name += f"%{self.altloc}"
        return name + f"/{self.model_index}"


class BondProxy(Proxy):
    """Cursor over a BondStore (the structure's, unless one is given)."""

    kind = "bond"

    def __init__(self, structure, index: int = 0, bond_store=None):
        self.bond_store = bond_store if bond_store is not None else structure.bond_store
        super().__init__(structure, index)

    def _count(self) -> int:
        return self.bond_store.count

    def clone(self):
        return BondProxy(self.structure, self._index, self.bond_store)

    @property
    def atom_index1(self) -> int:
        return int(self.bond_store.atom_index1[self._index])

    @atom_index1.setter
    def atom_index1(self, value: int):
        self.bond_store.atom_index1[self._index] = value

    @property
    def atom_index2(self) -> int:
        return int(self.bond_store.atom_index2[self._index])

    @atom_index2.setter
    def atom_index2(self, value: int):
        self.bond_store.atom_index2[self._index] = value

    @property
    def bond_order(self) -> int:
        return int(self.bond_store.bond_order[self._index])

    @bond_order.setter
    def bond_order(self, value: int):
        self.bond_store.bond_order[self._index] = value

    @property
    def atom1(self) -> AtomProxy:
        return AtomProxy(self.structure, self.atom_index1)

    @property
    def atom2(self) -> AtomProxy:
        return AtomProxy(self.structure, self.atom_index2)

    def qualified_name(self) -> str:
        return f"{self.atom_index1}={self.atom_index2}"


class ResidueProxy(Proxy):
    """Cursor over the ResidueStore."""

    kind = "residue"

    def _count(self) -> int:
        return self.structure.residue_store.count

    @property
    def residue_type(self):
        return self.structure.residue_map.get(
            int(self.structure.residue_store.residue_type_id[self._index])
        )

    @property
    def atom_offset(self) -> int:
        return int(self.structure.residue_store.atom_offset[self._index])

    @property
    def atom_count(self) -> int:
        return int(self.structure.residue_store.atom_count[self._index])

    @property
    def atom_end(self) -> int:
        return self.atom_offset + self.atom_count - 1

    @property
    def chain_index(self) -> int:
        return int(self.structure.residue_store.chain_index[self._index])

    @property
    def model_index(self) -> int:
        return int(self.structure.chain_store.model_index[self.chain_index])

    @property
    def chainname(self) -> str:
        return self.structure.chain_store.get_chainname(self.chain_index)

    @property
    def resname(self) -> str:
        return self.residue_type.resname

    @property
    def hetero(self) -> bool:
        return self.residue_type.hetero

    @property
    def resno(self) -> int:
        return int(self.structure.residue_store.resno[self._index])

    @resno.setter
    def resno(self, value: int):
        self.structure.residue_store.resno[self._index] = value

    @property
    def sstruc(self) -> str:
        return _char(self.structure.residue_store.sstruc[self._index])

    @sstruc.setter
    def sstruc(self, value: str):
        self.structure.residue_store.sstruc[self._index] = _code(value)

    @property
    def inscode(self) -> str:
        return _char(self.structure.residue_store.inscode[self._index])

    @property
    def one_letter(self) -> str:
        return self.residue_type.one_letter

    def _absolute(self, local: int) -> int:
        return self.atom_offset + local if local >= 0 else -1

    @property
    def trace_atom_index(self) -> int:
        return self._absolute(self.residue_type.trace_atom_index)

    @property
    def direction1_atom_index(self) -> int:
        return self._absolute(self.residue_type.direction1_atom_index)

    @property
    def direction2_atom_index(self) -> int:
        return self._absolute(self.residue_type.direction2_atom_index)

    @property
    def backbone_start_atom_index(self) -> int:
        return self._absolute(self.residue_type.backbone_start_atom_index)

    @property
    def backbone_end_atom_index(self) -> int:
        return self._absolute(self.residue_type.backbone_end_atom_index)

    def get_atom_index_by_name(self, atomname: str) -> int:
        return self._absolute(self.residue_type.get_atom_index_by_name(atomname))

    def is_protein(self) -> bool:
        return self.residue_type.is_protein()

    def is_nucleic(self) -> bool:
        return self.residue_type.is_nucleic()

    def is_rna(self) -> bool:
        return self.residue_type.is_rna()

    def is_dna(self) -> bool:
        return self.residue_type.is_dna()

    def is_cg(self) -> bool:
        return self.residue_type.is_cg()

    def is_polymer(self) -> bool:
        return self.residue_type.is_polymer()

    def is_water(self) -> bool:
        return self.residue_type.is_water()

    def is_helix(self) -> bool:
        return bool(self.sstruc) and self.sstruc in HELIX_CODES

    def is_sheet(self) -> bool:
        return bool(self.sstruc) and self.sstruc in SHEET_CODES

    def is_turn(self) -> bool:
        return bool(self.sstruc) and self.sstruc in TURN_CODES

    def each_atom(self, callback: Callable[[AtomProxy], None]):
        with self.structure.proxy_pool.borrow("atom") as ap:
            for i in range(self.atom_offset, self.atom_offset + self.atom_count):
                ap.index = i
                callback(ap)

    def connected_to(self, other: "ResidueProxy") -> bool:
        """
        Whether ``other`` directly follows this residue along the backbone.

        Full backbones link end atom (C, O3') to start atom (N, P) of the
        next residue; coarse grained ones link consecutive trace atoms.
        """
        rt1 = self.residue_type
        rt2 = other.residue_type
        if not (rt1.is_polymer() and rt2.is_polymer()):
            return False
        if rt1.backbone_type != rt2.backbone_type:
            return False

        i1 = self.backbone_end_atom_index
        i2 = other.backbone_start_atom_index
        if i1 < 0 or i2 < 0:
            return False

        if rt1.is_cg():
            limit = CG_PROTEIN_LINK_DIST if rt1.is_protein() else CG_NUCLEIC_LINK_DIST
        else:
            limit = PROTEIN_LINK_DIST if rt1.is_protein() else NUCLEIC_LINK_DIST

        store = self.structure.atom_store
        d2 = (
            (store.x[i1] - store.x[i2]) ** 2
            + (store.y[i1] - store.y[i2]) ** 2
            + (store.z[i1] - store.z[i2]) ** 2
        )
        return float(d2) <= limit * limit

    def get_previous_connected_residue(self) -> Optional["ResidueProxy"]:
        """Previous residue in the same chain if connected, else None."""
        offset = int(self.structure.chain_store.residue_offset[self.chain_index])
        if self._index > offset:
            prev = ResidueProxy(self.structure, self._index - 1)
            if prev.connected_to(self):
                return prev
        return None

    def get_next_connected_residue(self) -> Optional["ResidueProxy"]:
        """Next residue in the same chain if connected, else None."""
        cs = self.structure.chain_store
        end = int(cs.residue_offset[self.chain_index]) + int(cs.residue_count[self.chain_index])
        if self._index + 1 < end:
            nxt = ResidueProxy(self.structure, self._index + 1)
            if self.connected_to(nxt):
                return nxt
        return None

    def qualified_name(self) -> str:
        name = f"[{self.resname}]{self.resno}"
        if self.inscode:
            name += f"^{self.inscode}"
        if self.chainname:
            name += f":{self.chainname}"
        return name + f"/{self.model_index}"


class ChainProxy(Proxy):
    """Cursor over the ChainStore."""

    kind = "chain"

    def _count(self) -> int:
        return self.structure.chain_store.count

    @property
    def model_index(self) -> int:
        return int(self.structure.chain_store.model_index[self._index])

    @property
    def chainname(self) -> str:
        return self.structure.chain_store.get_chainname(self._index)

    @chainname.setter
    def chainname(self, value: str):
        self.structure.chain_store.set_chainname(self._index, value)

    @property
    def residue_offset(self) -> int:
        return int(self.structure.chain_store.residue_offset[self._index])

    @property
    def residue_count(self) -> int:
        return int(self.structure.chain_store.residue_count[self._index])

    @property
    def residue_end(self) -> int:
        return self.residue_offset + self.residue_count - 1

    @property
    def atom_offset(self) -> int:
        if self.residue_count == 0:
            return 0
        return int(self.structure.residue_store.atom_offset[self.residue_offset])

    @property
    def atom_count(self) -> int:
        if self.residue_count == 0:
            return 0
        rs = self.structure.residue_store
        last = self.residue_end
        return int(rs.atom_offset[last]) + int(rs.atom_count[last]) - self.atom_offset

    def each_residue(self, callback: Callable[[ResidueProxy], None]):
        with self.structure.proxy_pool.borrow("residue") as rp:
            for i in range(self.residue_offset, self.residue_offset + self.residue_count):
                rp.index = i
                callback(rp)

    def each_atom(self, callback: Callable[[AtomProxy], None]):
        with self.structure.proxy_pool.borrow("atom") as ap:
            for i in range(self.atom_offset, self.atom_offset + self.atom_count):
                ap.index = i
                callback(ap)

    def each_polymer(self, callback: Callable, residue_set=None):
        """
        Call ``callback(polymer)`` for every maximal run of at least two
        connected polymer residues.

        A residue missing from ``residue_set`` (when given) breaks the run.
        """
        from colmol.core.polymer import Polymer

        count = self.residue_count
        if count < 2:
            return

        rp = ResidueProxy(self.structure, self.residue_offset)
        rp_next = ResidueProxy(self.structure, self.residue_offset)
        start = None
        end = self.residue_offset + count

        for i in range(self.residue_offset, end):
            rp.index = i
            if (residue_set is not None and not residue_set.has(i)) or not rp.is_polymer():
                start = None
                continue

            if start is None:
                start = i

            linked = False
            if i + 1 < end and (residue_set is None or residue_set.has(i + 1)):
                rp_next.index = i + 1
                linked = rp.connected_to(rp_next)

            if not linked:
                if i > start:
                    callback(Polymer(self.structure, start, i))
                start = None

    def qualified_name(self) -> str:
        return f":{self.chainname}/{self.model_index}"


class ModelProxy(Proxy):
    """Cursor over the ModelStore."""

    kind = "model"

    def _count(self) -> int:
        return self.structure.model_store.count

    @property
    def chain_offset(self) -> int:
        return int(self.structure.model_store.chain_offset[self._index])

    @property
    def chain_count(self) -> int:
        return int(self.structure.model_store.chain_count[self._index])

    @property
    def chain_end(self) -> int:
        return self.chain_offset + self.chain_count - 1

    @property
    def residue_offset(self) -> int:
        if self.chain_count == 0:
            return 0
        return int(self.structure.chain_store.residue_offset[self.chain_offset])

    @property
    def residue_count(self) -> int:
        if self.chain_count == 0:
            return 0
        cs = self.structure.chain_store
        last = self.chain_end
        return int(cs.residue_offset[last]) + int(cs.residue_count[last]) - self.residue_offset

    @property
    def atom_offset(self) -> int:
        if self.residue_count == 0:
            return 0
        return int(self.structure.residue_store.atom_offset[self.residue_offset])

    @property
    def atom_count(self) -> int:
        if self.residue_count == 0:
            return 0
        rs = self.structure.residue_store
        last = self.residue_offset + self.residue_count - 1
        return int(rs.atom_offset[last]) + int(rs.atom_count[last]) - self.atom_offset

    def each_chain(self, callback: Callable[[ChainProxy], None]):
        with self.structure.proxy_pool.borrow("chain") as cp:
            for i in range(self.chain_offset, self.chain_offset + self.chain_count):
                cp.index = i
                callback(cp)

    def each_residue(self, callback: Callable[[ResidueProxy], None]):
        with self.structure.proxy_pool.borrow("residue") as rp:
            for i in range(self.residue_offset, self.residue_offset + self.residue_count):
                rp.index = i
                callback(rp)

    def each_atom(self, callback: Callable[[AtomProxy], None]):
        with self.structure.proxy_pool.borrow("atom") as ap:
            for i in range(self.atom_offset, self.atom_offset + self.atom_count):
                ap.index = i
                callback(ap)

    def each_polymer(self, callback: Callable, residue_set=None):
        self.each_chain(lambda cp: cp.each_polymer(callback, residue_set))

    def qualified_name(self) -> str:
        return f"/{self._index}"


PROXY_CLASSES = {
    "atom": AtomProxy,
    "bond": BondProxy,
    "residue": ResidueProxy,
    "chain": ChainProxy,
    "model": ModelProxy,
}


class ProxyPool:
    """
    Per-structure pool of reusable proxies.

    ``borrow`` hands out a proxy that nobody else holds; a visitor nested
    inside another visitor therefore always gets a distinct instance, so
    reassigning its index cannot move the outer loop's cursor.
    """

    def __init__(self, structure):
        self.structure = structure
        self._free: Dict[str, List[Proxy]] = {kind: [] for kind in PROXY_CLASSES}
        self.depth: Dict[str, int] = {kind: 0 for kind in PROXY_CLASSES}

    @contextmanager
    def borrow(self, kind: str) -> Iterator[Proxy]:
        free = self._free[kind]
        proxy = free.pop() if free else PROXY_CLASSES[kind](self.structure)
        self.depth[kind] += 1
        try:
            yield proxy
        finally:
            self.depth[kind] -= 1
            free.append(proxy)
