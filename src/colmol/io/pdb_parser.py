"""
Structure file reading using BioPython.

Bio.PDB does the parsing; this module only walks the parsed hierarchy
and feeds it to a StructureBuilder in file order.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np

from Bio.PDB import MMCIFParser, PDBParser
from Bio.PDB.Structure import Structure as BioStructure

from colmol.core.builder import StructureBuilder
from colmol.core.constants import get_three_letter
from colmol.core.structures import Structure

logger = logging.getLogger(__name__)

CIF_SUFFIXES = (".cif", ".mmcif")


def read_structure(
    filename: Union[str, Path],
    name: Optional[str] = None,
    calculate_bonds: bool = True,
    first_model_only: bool = False,
    **kwargs,
) -> Structure:
    """
    Read a PDB or mmCIF file into a Structure.

    The format is chosen by file suffix (.cif/.mmcif are mmCIF,
    anything else PDB).

    Args:
        filename: Path to the structure file
        name: Structure name, defaults to the file stem
        calculate_bonds: Add covalent bonds by distance
        first_model_only: Skip all models after the first
        **kwargs: Passed on to Structure (debug, growth_factor)

    Returns:
        Structure holding every model, chain, residue and atom
    """
    path = Path(filename)
    if name is None:
        name = path.stem

    if path.suffix.lower() in CIF_SUFFIXES:
        parser = MMCIFParser(QUIET=True)
    else:
        parser = PDBParser(QUIET=True)

    bio_structure = parser.get_structure(name, str(path))
    structure = convert_biopython_structure(
        bio_structure, name=name, calculate_bonds=calculate_bonds,
        first_model_only=first_model_only, **kwargs,
    )
    structure.path = str(path)
    return structure


def _pick_altloc(bio_atom):
    """First conformer ("A") of a disordered atom, else the selected one."""
    if bio_atom.is_disordered():
        if bio_atom.disordered_has_id("A"):
            return bio_atom.disordered_get("A")
        return bio_atom.selected_child
    return bio_atom


def convert_biopython_structure(
    bio_structure: BioStructure,
    name: str = "",
    calculate_bonds: bool = True,
    first_model_only: bool = False,
    **kwargs,
) -> Structure:
    """
    Convert a Bio.PDB Structure to a colmol Structure.

    Hetero residues (ligands, waters) are kept and flagged hetero.
    Disordered atoms contribute their "A" conformer only.
    """
    builder = StructureBuilder(name=name or str(bio_structure.id), **kwargs)

    for model_index, model in enumerate(bio_structure.get_models()):
        if first_model_only and model_index > 0:
            break

        for chain in model:
            chainname = chain.get_id()

            for bio_residue in chain:
                hetfield, resno, inscode = bio_residue.get_id()
                resname = bio_residue.get_resname().strip()
                hetero = hetfield.strip() != ""
                inscode = inscode.strip()

                for bio_atom in bio_residue:
                    atom = _pick_altloc(bio_atom)
                    x, y, z = atom.get_coord()
                    altloc = atom.get_altloc().strip()

                    builder.add_atom(
                        float(x), float(y), float(z),
                        atom.get_name(),
                        resname,
                        int(resno),
                        chainname=chainname,
                        model=model_index,
                        element=getattr(atom, "element", None),
                        serial=atom.get_serial_number(),
                        bfactor=float(atom.get_bfactor()),
                        occupancy=float(atom.get_occupancy() or 0.0),
                        altloc=altloc,
                        inscode=inscode,
                        hetero=hetero,
                    )

    structure = builder.finalize(calculate_bonds=calculate_bonds)
    logger.info(
        "Read %s: %d atoms, %d residues, %d chains",
        structure.name, structure.atom_count, structure.residue_count, structure.chain_count,
    )
    return structure


def read_coords_from_array(
    ca_coords: np.ndarray,
    sequence: Optional[str] = None,
    chain_id: str = "A",
    name: str = "from_coords",
    sstruc: Optional[str] = None,
    **kwargs,
) -> Structure:
    """
    Create a C-alpha trace Structure from raw coordinates.

    Args:
        ca_coords: Array of CA coordinates, shape (N, 3)
        sequence: Amino acid sequence (1-letter codes), poly-ALA if omitted
        chain_id: Chain identifier
        name: Structure name
        sstruc: Optional per-residue secondary structure codes
            ("h", "e", ... or " " for none)
        **kwargs: Passed on to Structure (debug, growth_factor)

    Returns:
        Coarse-grained protein Structure with one CA per residue
    """
    ca_coords = np.asarray(ca_coords, dtype=np.float64).reshape(-1, 3)
    if sequence is None:
        sequence = "A" * len(ca_coords)
    if len(sequence) != len(ca_coords):
        raise ValueError(f"{len(ca_coords)} coordinates but sequence of length {len(sequence)}")
    if sstruc is not None and len(sstruc) != len(ca_coords):
        raise ValueError(f"{len(ca_coords)} coordinates but sstruc of length {len(sstruc)}")

    builder = StructureBuilder(name=name, **kwargs)
    for i, (coord, aa) in enumerate(zip(ca_coords, sequence)):
        builder.add_atom(
            coord[0], coord[1], coord[2], "CA", get_three_letter(aa), i + 1,
            chainname=chain_id, element="C",
            sstruc=sstruc[i].strip() if sstruc else "",
        )
    return builder.finalize()
