"""
Shared residue and atom type tables.

Residues store only a ``residue_type_id`` and atoms an ``atom_type_id``;
names, elements and everything derived from them (molecule type, trace
and direction atoms, backbone link atoms) live once per distinct type.
"""

from typing import Dict, List, Optional, Tuple

from colmol.core.constants import (
    AA_NAMES,
    CG_DNA_BACKBONE_TYPE,
    CG_NUCLEIC_TRACE_ATOMS,
    CG_PROTEIN_BACKBONE_TYPE,
    CG_PROTEIN_TRACE_ATOMS,
    CG_RNA_BACKBONE_TYPE,
    DNA_BACKBONE_TYPE,
    DNA_NAMES,
    DNA_TYPE,
    ION_NAMES,
    ION_TYPE,
    MODIFIED_RESIDUES,
    NUCLEIC_BACKBONE_END_ATOMS,
    NUCLEIC_BACKBONE_START_ATOMS,
    NUCLEIC_DIRECTION1_ATOMS,
    NUCLEIC_DIRECTION2_ATOMS,
    NUCLEIC_TRACE_ATOMS,
    PROTEIN_BACKBONE_END_ATOMS,
    PROTEIN_BACKBONE_START_ATOMS,
    PROTEIN_BACKBONE_TYPE,
    PROTEIN_DIRECTION1_ATOMS,
    PROTEIN_DIRECTION2_ATOMS,
    PROTEIN_TRACE_ATOMS,
    PROTEIN_TYPE,
    RNA_BACKBONE_TYPE,
    RNA_NAMES,
    RNA_TYPE,
    UNKNOWN_BACKBONE_TYPE,
    UNKNOWN_TYPE,
    VDW_RADII,
    WATER_NAMES,
    WATER_TYPE,
    get_one_letter,
)

# Elements with two-letter symbols that are only trusted for hetero atoms
_TWO_LETTER_ELEMENTS = {e for e in VDW_RADII if len(e) == 2}


def guess_element(atomname: str, hetero: bool = False) -> str:
    """
    Guess the element symbol from a PDB-style atom name.

    "CA" in a protein is carbon; "CA" in a hetero residue is calcium.
    """
    letters = "".join(c for c in atomname if c.isalpha()).upper()
    if not letters:
        return ""
    if hetero and len(letters) == 2 and letters in _TWO_LETTER_ELEMENTS:
        return letters
    return letters[0]


class AtomType:
    """Name and element of an atom, shared by all atoms of that type."""

    __slots__ = ("atomname", "element")

    def __init__(self, atomname: str, element: str):
        self.atomname = atomname
        self.element = element

    def __repr__(self) -> str:
        return f"AtomType({self.atomname!r}, {self.element!r})"


class AtomMap:
    """Interning table of (atomname, element) pairs."""

    def __init__(self):
        self.types: List[AtomType] = []
        self._index: Dict[Tuple[str, str], int] = {}

    def add(self, atomname: str, element: Optional[str] = None) -> int:
        atomname = atomname.strip()
        if element is None or not element.strip():
            element = guess_element(atomname)
        key = (atomname, element.strip().upper())
        if key not in self._index:
            self._index[key] = len(self.types)
            self.types.append(AtomType(*key))
        return self._index[key]

    def get(self, atom_type_id: int) -> AtomType:
        return self.types[atom_type_id]

    def __len__(self) -> int:
        return len(self.types)

    def to_json(self) -> List[List[str]]:
        return [[t.atomname, t.element] for t in self.types]

    def from_json(self, data: List[List[str]]) -> "AtomMap":
        self.__init__()
        for atomname, element in data:
            self.add(atomname, element)
        return self


def _first_index(names: List[str], candidates: List[str]) -> int:
    for candidate in candidates:
        if candidate in names:
            return names.index(candidate)
    return -1


class ResidueType:
    """
    A residue name plus its ordered atom list.

    All residue-level classification is computed once here: molecule
    type, backbone type, and the local (within-residue) index of the
    trace, direction and backbone start/end atoms (-1 if missing).
    """

    def __init__(self, atom_map: AtomMap, resname: str, atom_type_ids: List[int], hetero: bool):
        self.atom_map = atom_map
        self.resname = resname
        self.atom_type_ids = list(atom_type_ids)
        self.hetero = hetero
        self.atom_count = len(self.atom_type_ids)
        self.atomnames = [atom_map.get(i).atomname for i in self.atom_type_ids]

        self.molecule_type = self._molecule_type()
        self.backbone_type = self._backbone_type()

        self.trace_atom_index = self._trace_atom_index()
        if self.backbone_type == PROTEIN_BACKBONE_TYPE:
            self.direction1_atom_index = _first_index(self.atomnames, PROTEIN_DIRECTION1_ATOMS)
            self.direction2_atom_index = _first_index(self.atomnames, PROTEIN_DIRECTION2_ATOMS)
            self.backbone_start_atom_index = _first_index(self.atomnames, PROTEIN_BACKBONE_START_ATOMS)
            self.backbone_end_atom_index = _first_index(self.atomnames, PROTEIN_BACKBONE_END_ATOMS)
        elif self.backbone_type in (RNA_BACKBONE_TYPE, DNA_BACKBONE_TYPE):
            self.direction1_atom_index = _first_index(self.atomnames, NUCLEIC_DIRECTION1_ATOMS)
            self.direction2_atom_index = _first_index(self.atomnames, NUCLEIC_DIRECTION2_ATOMS)
            self.backbone_start_atom_index = _first_index(self.atomnames, NUCLEIC_BACKBONE_START_ATOMS)
            self.backbone_end_atom_index = _first_index(self.atomnames, NUCLEIC_BACKBONE_END_ATOMS)
        else:
            # coarse grained: consecutive trace atoms define the link
            self.direction1_atom_index = -1
            self.direction2_atom_index = -1
            self.backbone_start_atom_index = self.trace_atom_index
            self.backbone_end_atom_index = self.trace_atom_index

        self.one_letter = get_one_letter(resname)

    def _has(self, *names: str) -> bool:
        return all(name in self.atomnames for name in names)

    def _has_any(self, names: List[str]) -> bool:
        return any(name in self.atomnames for name in names)

    def _molecule_type(self) -> int:
        name = self.resname.upper()
        if name in WATER_NAMES:
            return WATER_TYPE
        if name in ION_NAMES and self.atom_count == 1:
            return ION_TYPE
        if name in AA_NAMES or name in MODIFIED_RESIDUES or self._has("CA", "N", "C"):
            return PROTEIN_TYPE
        if name in DNA_NAMES:
            return DNA_TYPE
        if name in RNA_NAMES:
            return RNA_TYPE
        if self._has_any(NUCLEIC_TRACE_ATOMS) and self._has_any(NUCLEIC_BACKBONE_END_ATOMS):
            return DNA_TYPE if not self._has_any(["O2'", "O2*"]) else RNA_TYPE
        return UNKNOWN_TYPE

    def _backbone_type(self) -> int:
        if self.molecule_type == PROTEIN_TYPE:
            if self._has("CA", "N", "C"):
                return PROTEIN_BACKBONE_TYPE
            if self._has_any(CG_PROTEIN_TRACE_ATOMS):
                return CG_PROTEIN_BACKBONE_TYPE
        elif self.molecule_type in (RNA_TYPE, DNA_TYPE):
            full = self._has_any(NUCLEIC_TRACE_ATOMS) and self._has_any(NUCLEIC_BACKBONE_END_ATOMS)
            if full:
                return RNA_BACKBONE_TYPE if self.molecule_type == RNA_TYPE else DNA_BACKBONE_TYPE
            if self._has_any(CG_NUCLEIC_TRACE_ATOMS):
                return CG_RNA_BACKBONE_TYPE if self.molecule_type == RNA_TYPE else CG_DNA_BACKBONE_TYPE
        return UNKNOWN_BACKBONE_TYPE

    def _trace_atom_index(self) -> int:
        bb = self.backbone_type
        if bb == PROTEIN_BACKBONE_TYPE:
            return _first_index(self.atomnames, PROTEIN_TRACE_ATOMS)
        if bb == CG_PROTEIN_BACKBONE_TYPE:
            return _first_index(self.atomnames, CG_PROTEIN_TRACE_ATOMS)
        if bb in (RNA_BACKBONE_TYPE, DNA_BACKBONE_TYPE):
            return _first_index(self.atomnames, NUCLEIC_TRACE_ATOMS)
        if bb in (CG_RNA_BACKBONE_TYPE, CG_DNA_BACKBONE_TYPE):
            return _first_index(self.atomnames, CG_NUCLEIC_TRACE_ATOMS)
        return -1

    def get_atom_index_by_name(self, atomname: str) -> int:
        """Local index of the first atom with this name, or -1."""
        try:
            return self.atomnames.index(atomname)
        except ValueError:
            return -1

    def is_protein(self) -> bool:
        return self.molecule_type == PROTEIN_TYPE

    def is_nucleic(self) -> bool:
        return self.molecule_type in (RNA_TYPE, DNA_TYPE)

    def is_rna(self) -> bool:
        return self.molecule_type == RNA_TYPE

    def is_dna(self) -> bool:
        return self.molecule_type == DNA_TYPE

    def is_water(self) -> bool:
        return self.molecule_type == WATER_TYPE

    def is_ion(self) -> bool:
        return self.molecule_type == ION_TYPE

    def is_cg(self) -> bool:
        return self.backbone_type in (
            CG_PROTEIN_BACKBONE_TYPE,
            CG_RNA_BACKBONE_TYPE,
            CG_DNA_BACKBONE_TYPE,
        )

    def is_polymer(self) -> bool:
        return self.backbone_type != UNKNOWN_BACKBONE_TYPE and self.trace_atom_index >= 0

    def __repr__(self) -> str:
        return f"ResidueType({self.resname!r}, atoms={self.atom_count})"


class ResidueMap:
    """Interning table of residue types keyed by (resname, atom list, hetero)."""

    def __init__(self, atom_map: AtomMap):
        self.atom_map = atom_map
        self.types: List[ResidueType] = []
        self._index: Dict[Tuple, int] = {}

    def add(self, resname: str, atom_type_ids: List[int], hetero: bool = False) -> int:
        key = (resname, tuple(atom_type_ids), bool(hetero))
        if key not in self._index:
            self._index[key] = len(self.types)
            self.types.append(ResidueType(self.atom_map, resname, atom_type_ids, hetero))
        return self._index[key]

    def get(self, residue_type_id: int) -> ResidueType:
        return self.types[residue_type_id]

    def __len__(self) -> int:
        return len(self.types)

    def to_json(self) -> List:
        return [[t.resname, t.atom_type_ids, t.hetero] for t in self.types]

    def from_json(self, data: List) -> "ResidueMap":
        self.types = []
        self._index = {}
        for resname, atom_type_ids, hetero in data:
            self.add(resname, atom_type_ids, hetero)
        return self
