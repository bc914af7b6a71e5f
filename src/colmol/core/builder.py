"""
Incremental population of a Structure.

Atoms must arrive grouped by model, chain and residue (file order);
the builder opens a new model/chain/residue whenever the corresponding
key changes, which keeps every level a contiguous index range.
"""

import logging
from typing import List, Optional

import numpy as np

from colmol.core.constants import COVALENT_RADII
from colmol.core.residue_type import guess_element
from colmol.core.structures import Structure

logger = logging.getLogger(__name__)

# Added to the sum of covalent radii when bonding by distance
BOND_TOLERANCE = 0.45
MIN_BOND_DIST = 0.4


class StructureBuilder:
    """
    Build a Structure atom by atom.

    Example:
        >>> builder = StructureBuilder(name="ala2")
        >>> builder.add_atom(0.0, 0.0, 0.0, "N", "ALA", 1)
        >>> builder.add_atom(1.5, 0.0, 0.0, "CA", "ALA", 1)
        >>> structure = builder.finalize()
    """

    def __init__(self, structure: Optional[Structure] = None, name: str = "", **kwargs):
        self.structure = structure if structure is not None else Structure(name, **kwargs)

        self._model_key = None
        self._chain_key = None
        self._residue_key = None

        self._resname = ""
        self._hetero = False
        self._residue_atom_types: List[int] = []

    def _close_residue(self):
        if self._residue_key is None:
            return
        rs = self.structure.residue_store
        ri = rs.count - 1
        rs.residue_type_id[ri] = self.structure.residue_map.add(
            self._resname, self._residue_atom_types, self._hetero
        )
        self._residue_key = None
        self._residue_atom_types = []

    def _open_model(self):
        s = self.structure
        ms = s.model_store
        ms.grow_if_full()
        mi = ms.count
        ms.chain_offset[mi] = s.chain_store.count
        ms.chain_count[mi] = 0
        ms.count += 1

    def _open_chain(self, chainname: str):
        s = self.structure
        cs = s.chain_store
        cs.grow_if_full()
        ci = cs.count
        cs.model_index[ci] = s.model_store.count - 1
        cs.residue_offset[ci] = s.residue_store.count
        cs.residue_count[ci] = 0
        cs.set_chainname(ci, chainname)
        cs.count += 1
        s.model_store.chain_count[s.model_store.count - 1] += 1

    def _open_residue(self, resname: str, resno: int, inscode: str, sstruc: str, hetero: bool):
        s = self.structure
        rs = s.residue_store
        rs.grow_if_full()
        ri = rs.count
        rs.chain_index[ri] = s.chain_store.count - 1
        rs.atom_offset[ri] = s.atom_store.count
        rs.atom_count[ri] = 0
        rs.resno[ri] = resno
        rs.inscode[ri] = ord(inscode[0]) if inscode else 0
        rs.sstruc[ri] = ord(sstruc[0]) if sstruc else 0
        rs.count += 1
        s.chain_store.residue_count[s.chain_store.count - 1] += 1

        self._resname = resname
        self._hetero = hetero
        self._residue_atom_types = []

    def add_atom(
        self,
        x: float,
        y: float,
        z: float,
        atomname: str,
        resname: str,
        resno: int,
        chainname: str = "A",
        model: int = 0,
        element: Optional[str] = None,
        serial: Optional[int] = None,
        bfactor: float = 0.0,
        occupancy: float = 1.0,
        altloc: str = "",
        inscode: str = "",
        hetero: bool = False,
        sstruc: str = "",
    ) -> int:
        """
        Append one atom, opening a new model/chain/residue as needed.

        Returns:
            Index of the new atom
        """
        s = self.structure
        atomname = atomname.strip()
        resname = resname.strip()

        new_model = model != self._model_key
        new_chain = new_model or chainname != self._chain_key
        new_residue = new_chain or (resname, resno, inscode) != self._residue_key

        if new_residue:
            self._close_residue()
        if new_model:
            self._open_model()
            self._model_key = model
        if new_chain:
            self._open_chain(chainname)
            self._chain_key = chainname
        if new_residue:
            self._open_residue(resname, resno, inscode, sstruc, hetero)
            self._residue_key = (resname, resno, inscode)

        if element is None or not element.strip():
            element = guess_element(atomname, hetero)
        atom_type_id = s.atom_map.add(atomname, element)
        self._residue_atom_types.append(atom_type_id)

        store = s.atom_store
        store.grow_if_full()
        ai = store.count
        store.residue_index[ai] = s.residue_store.count - 1
        store.atom_type_id[ai] = atom_type_id
        store.x[ai] = x
        store.y[ai] = y
        store.z[ai] = z
        store.serial[ai] = ai + 1 if serial is None else serial
        store.bfactor[ai] = bfactor
        store.occupancy[ai] = occupancy
        store.altloc[ai] = ord(altloc[0]) if altloc else 0
        store.count += 1

        s.residue_store.atom_count[s.residue_store.count - 1] += 1
        return ai

    def add_bond(self, atom_index1: int, atom_index2: int, bond_order: int = 1):
        self.structure.bond_store.add_bond(atom_index1, atom_index2, bond_order)

    def set_sstruc(self, residue_index: int, sstruc: str):
        self.structure.residue_store.sstruc[residue_index] = ord(sstruc[0]) if sstruc else 0

    def finalize(self, calculate_bonds: bool = False) -> Structure:
        """Close the open residue and optionally add distance-based bonds."""
        self._close_residue()
        if calculate_bonds:
            calculate_bonds_by_distance(self.structure)
        s = self.structure
        logger.debug(
            "built %s: %d models, %d chains, %d residues, %d atoms, %d bonds",
            s.name, s.model_count, s.chain_count, s.residue_count, s.atom_count, s.bond_count,
        )
        return s


def calculate_bonds_by_distance(structure: Structure, tolerance: float = BOND_TOLERANCE) -> int:
    """
    Add single bonds between atoms of the same model closer than the sum
    of their covalent radii plus ``tolerance``.

    Returns:
        Number of bonds added
    """
    from colmol.spatial.kdtree import Kdtree

    positions = structure.atom_store.positions().astype(np.float64)
    n = len(positions)
    if n == 0:
        return 0

    radii = np.array(
        [COVALENT_RADII.get(structure.atom_map.get(int(t)).element, COVALENT_RADII[""])
         for t in structure.atom_store.atom_type_id[:n]]
    )
    max_radius = float(radii.max())

    tree = Kdtree(positions)
    added = 0
    ap = structure.get_atom_proxy()

    for i in range(n):
        ap.index = i
        model_index = ap.model_index
        limit = radii[i] + max_radius + tolerance
        for j, dist in tree.within(positions[i], limit):
            if j <= i or dist < MIN_BOND_DIST:
                continue
            if dist > radii[i] + radii[j] + tolerance:
                continue
            if structure.get_atom_proxy(j).model_index != model_index:
                continue
            structure.bond_store.add_bond(i, j, 1)
            added += 1

    logger.debug("added %d bonds by distance", added)
    return added
