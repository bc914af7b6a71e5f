"""
Contact detection between two atom subsets.

``Contact.within`` pairs every probe atom with all target atoms inside a
distance bound (different residues only). ``polar_contacts`` and
``polar_backbone_contacts`` add a hydrogen-bond angle policy on top: a
pair failing the angle test stays in the bond store but its bit in
``bond_set`` is cleared, so callers can still inspect it.
"""

import logging
import time
from typing import Dict, List, Optional, Tuple

import numpy as np

from colmol.core.bitset import BitSet
from colmol.core.constants import CONTACT_MAX_ANGLE, CONTACT_MAX_DIST
from colmol.core.geometry import angle_degrees
from colmol.core.store import BondStore
from colmol.selection.predicates import AtomTest, Or
from colmol.spatial.kdtree import Kdtree

logger = logging.getLogger(__name__)

# Side-chain hydrogen-bond donors and acceptors by residue name
DONOR_ATOMS = {
    "ARG": ("NE", "NH1", "NH2"),
    "ASN": ("ND2",),
    "GLN": ("NE2",),
    "HIS": ("ND1", "NE2"),
    "LYS": ("NZ",),
    "SER": ("OG",),
    "THR": ("OG1",),
    "TRP": ("NE1",),
    "TYR": ("OH",),
}

ACCEPTOR_ATOMS = {
    "ASN": ("OD1",),
    "ASP": ("OD1", "OD2"),
    "GLN": ("OE1",),
    "GLU": ("OE1", "OE2"),
    "HIS": ("ND1", "NE2"),
    "SER": ("OG",),
    "THR": ("OG1",),
    "TYR": ("OH",),
}


def _polar_predicate(table: Dict[str, Tuple[str, ...]], backbone_atom: str):
    tests = [AtomTest(resname=resname, atomname=names) for resname, names in table.items()]
    tests.append(AtomTest(atomname=backbone_atom, flags=("protein",)))
    return Or(*tests)


DONOR_SELECTION = _polar_predicate(DONOR_ATOMS, "N")
ACCEPTOR_SELECTION = _polar_predicate(ACCEPTOR_ATOMS, "O")
BACKBONE_DONOR_SELECTION = AtomTest(atomname="N", flags=("protein",))
BACKBONE_ACCEPTOR_SELECTION = AtomTest(atomname="O", flags=("protein",))


class ContactResult:
    """
    Pairs found by a contact search.

    Attributes:
        atom_set: Atoms taking part in at least one pair (structure domain)
        bond_set: Accepted pairs (domain: ``bond_store.count``)
        bond_store: Every pair found, as (probe atom, target atom)
    """

    def __init__(self, atom_set: BitSet, bond_set: BitSet, bond_store: BondStore):
        self.atom_set = atom_set
        self.bond_set = bond_set
        self.bond_store = bond_store

    @property
    def count(self) -> int:
        return self.bond_store.count

    def pairs(self) -> List[Tuple[int, int]]:
        return self.bond_store.pairs()

    def accepted_pairs(self) -> List[Tuple[int, int]]:
        pairs = self.bond_store.pairs()
        return [pairs[i] for i in self.bond_set]

    def to_json(self) -> Dict:
        return {
            "atom_set": self.atom_set.to_json(),
            "bond_set": self.bond_set.to_json(),
            "bond_store": self.bond_store.to_json(),
        }

    @classmethod
    def from_json(cls, data: Dict) -> "ContactResult":
        return cls(
            BitSet().from_json(data["atom_set"]),
            BitSet().from_json(data["bond_set"]),
            BondStore().from_json(data["bond_store"]),
        )

    def __repr__(self) -> str:
        return f"ContactResult(pairs={self.count}, accepted={self.bond_set.cardinality()})"


class Contact:
    """
    Contacts between the atoms of ``view1`` (probes) and ``view2``
    (targets); both may be Structures or StructureViews of one structure.
    """

    def __init__(self, view1, view2):
        self.view1 = view1
        self.view2 = view2
        self.kdtree2 = Kdtree.from_structure(view2)

    def within(self, max_distance: float = CONTACT_MAX_DIST,
               min_distance: Optional[float] = None) -> ContactResult:
        """
        Pair every probe atom with all targets within ``max_distance``.

        Pairs within one residue are skipped, as are pairs no farther
        apart than ``min_distance`` when it is given. An unordered pair
        is recorded only once.
        """
        start = time.perf_counter()

        structure = self.view1
        residue_index = structure.atom_store.residue_index
        atom_mask = np.zeros(structure.atom_store.count, dtype=bool)
        bond_store = BondStore()
        seen = set()
        tree = self.kdtree2

        def probe(ap1):
            i = ap1.index
            found = False
            for j, dist in tree.within(ap1.position, max_distance):
                if residue_index[i] == residue_index[j]:
                    continue
                if min_distance is not None and dist <= min_distance:
                    continue
                found = True
                atom_mask[j] = True
                key = (i, j) if i < j else (j, i)
                if key in seen:
                    continue
                seen.add(key)
                bond_store.add_bond(i, j, 1)
            if found:
                atom_mask[i] = True

        self.view1.each_atom(probe)

        bond_set = BitSet(bond_store.count, set_all=True)
        result = ContactResult(BitSet.from_mask(atom_mask), bond_set, bond_store)
        logger.debug("contact search: %d pairs in %.3fs",
                     bond_store.count, time.perf_counter() - start)
        return result


def _backbone_n_angle_ok(structure, atom_n, atom_x, max_angle: float) -> bool:
    """
    Angle between the N-H direction (bisector of C(prev)->N and CA->N)
    and N->X must not exceed ``max_angle``. Missing reference atoms
    leave the pair accepted.
    """
    rp = atom_n.residue
    ca_index = rp.get_atom_index_by_name("CA")
    if ca_index < 0:
        return True
    prev = rp.get_previous_connected_residue()
    if prev is None:
        return True
    c_index = prev.get_atom_index_by_name("C")
    if c_index < 0:
        return True

    n = atom_n.position
    c = structure.get_atom_proxy(c_index).position
    ca = structure.get_atom_proxy(ca_index).position

    v1 = ((n - c) + (n - ca)) * 0.5
    v2 = atom_x.position - n
    return angle_degrees(v1, v2) <= max_angle


def _ring_angle_ok(structure, atom1, atom2, o_name: str, c_name: str, max_angle: float) -> bool:
    """Angle at C between C->O and C->partner must stay below ``max_angle``."""
    if atom1.atomname == o_name:
        atom_o, atom_n = atom1, atom2
    else:
        atom_o, atom_n = atom2, atom1

    c_index = atom_o.residue.get_atom_index_by_name(c_name)
    if c_index < 0:
        return True
    c = structure.get_atom_proxy(c_index).position

    v1 = c - atom_o.position
    v2 = c - atom_n.position
    return angle_degrees(v1, v2) < max_angle


def polar_contacts(structure, max_distance: float = CONTACT_MAX_DIST,
                   max_angle: float = CONTACT_MAX_ANGLE) -> ContactResult:
    """
    Hydrogen-bond-like contacts between polar donors and acceptors.

    Backbone N/O pairs are excluded (see ``polar_backbone_contacts``);
    pairs involving a backbone N or a tyrosine OH must also pass an
    angle test.

    Args:
        structure: Structure to search
        max_distance: Donor-acceptor distance bound
        max_angle: Maximum deviation from the ideal direction (degrees)

    Returns:
        ContactResult with rejected pairs cleared from ``bond_set``
    """
    donor_view = structure.get_view(DONOR_SELECTION)
    acceptor_view = structure.get_view(ACCEPTOR_SELECTION)

    data = Contact(donor_view, acceptor_view).within(max_distance)
    store = data.bond_store

    ap1 = structure.get_atom_proxy()
    ap2 = structure.get_atom_proxy()

    for i in range(store.count):
        ap1.index = int(store.atom_index1[i])
        ap2.index = int(store.atom_index2[i])
        name1, name2 = ap1.atomname, ap2.atomname

        if (name1 == "O" and name2 == "N") or (name1 == "N" and name2 == "O"):
            # backbone to backbone
            data.bond_set.flip(i)
        elif name1 == "N" or name2 == "N":
            atom_n, atom_x = (ap1, ap2) if name1 == "N" else (ap2, ap1)
            if not _backbone_n_angle_ok(structure, atom_n, atom_x, max_angle):
                data.bond_set.flip(i)
        elif (name1 == "OH" and ap1.resname == "TYR") or (name2 == "OH" and ap2.resname == "TYR"):
            if not _ring_angle_ok(structure, ap1, ap2, "OH", "CZ", max_angle):
                data.bond_set.flip(i)

    logger.debug("polar contacts: %d/%d accepted", data.bond_set.cardinality(), store.count)
    return data


def polar_backbone_contacts(structure, max_distance: float = CONTACT_MAX_DIST,
                            max_angle: float = CONTACT_MAX_ANGLE) -> ContactResult:
    """Backbone N-H...O contacts with the N-H direction angle test."""
    donor_view = structure.get_view(BACKBONE_DONOR_SELECTION)
    acceptor_view = structure.get_view(BACKBONE_ACCEPTOR_SELECTION)

    data = Contact(donor_view, acceptor_view).within(max_distance)
    store = data.bond_store

    ap1 = structure.get_atom_proxy()
    ap2 = structure.get_atom_proxy()

    for i in range(store.count):
        ap1.index = int(store.atom_index1[i])
        ap2.index = int(store.atom_index2[i])
        atom_n, atom_o = (ap1, ap2) if ap1.atomname == "N" else (ap2, ap1)
        if not _backbone_n_angle_ok(structure, atom_n, atom_o, max_angle):
            data.bond_set.flip(i)

    return data
