"""Pytest configuration and fixtures for colmol tests."""

import logging

import numpy as np
import pytest

from colmol.core.builder import StructureBuilder
from colmol.io.pdb_parser import read_coords_from_array


# Alanine dipeptide with full backbone: (atomname, resno, x, y, z)
DIPEPTIDE_ATOMS = [
    ("N", 1, 0.0, 0.0, 0.0),
    ("CA", 1, 1.5, 0.0, 0.0),
    ("C", 1, 2.0, 1.4, 0.0),
    ("O", 1, 1.3, 2.4, 0.0),
    ("CB", 1, 2.0, -1.0, 0.5),
    ("N", 2, 3.3, 1.4, 0.0),
    ("CA", 2, 4.0, 2.7, 0.0),
    ("C", 2, 5.5, 2.7, 0.0),
    ("O", 2, 6.2, 1.7, 0.0),
    ("CB", 2, 3.5, 3.5, 1.2),
]


@pytest.fixture(autouse=True)
def reset_colmol_logger():
    """Undo setup_logging() calls made by CLI tests."""
    yield
    logger = logging.getLogger("colmol")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def helix_ca_coords():
    """Ideal helix CA coordinates: 100 degrees per residue, radius 1.5, rise 1.5."""
    coords = []
    for i in range(10):
        x = 1.5 * np.cos(i * 100 * np.pi / 180)
        y = 1.5 * np.sin(i * 100 * np.pi / 180)
        z = 1.5 * i
        coords.append([x, y, z])
    return np.array(coords)


@pytest.fixture
def helix_structure(helix_ca_coords):
    """C-alpha trace of the ideal helix, all residues flagged helical."""
    return read_coords_from_array(helix_ca_coords, sstruc="h" * 10, name="helix")


@pytest.fixture
def straight_structure():
    """Four CA atoms on the x axis, 3.8 apart."""
    coords = [[3.8 * i, 0.0, 0.0] for i in range(4)]
    return read_coords_from_array(coords, name="straight")


@pytest.fixture
def ring_structure():
    """Six CA atoms on a hexagon whose last residue links back to the first."""
    angles = np.arange(6) * np.pi / 3
    coords = np.stack([3.8 * np.cos(angles), 3.8 * np.sin(angles), np.zeros(6)], axis=1)
    return read_coords_from_array(coords, name="ring")


def _build_dipeptide(builder):
    for atomname, resno, x, y, z in DIPEPTIDE_ATOMS:
        builder.add_atom(x, y, z, atomname, "ALA", resno)


@pytest.fixture
def alanine_dipeptide():
    """Alanine dipeptide with full backbone and distance bonds."""
    builder = StructureBuilder(name="ala2")
    _build_dipeptide(builder)
    return builder.finalize(calculate_bonds=True)


@pytest.fixture
def hbond_structure():
    """
    The dipeptide plus a chain B residue whose O sits on the N-H line of
    the second alanine (one ideal backbone hydrogen bond).
    """
    builder = StructureBuilder(name="hbond")
    _build_dipeptide(builder)
    builder.add_atom(9.0, -3.0, 0.0, "N", "ALA", 1, chainname="B")
    builder.add_atom(8.0, -2.0, 0.0, "CA", "ALA", 1, chainname="B")
    builder.add_atom(5.8, -1.9, 0.0, "C", "ALA", 1, chainname="B")
    builder.add_atom(4.5, -1.2, 0.0, "O", "ALA", 1, chainname="B")
    return builder.finalize()


def _pdb_line(record, serial, atomname, resname, chain, resno, x, y, z,
              element, altloc="", occupancy=1.0, bfactor=0.0):
    name = atomname if len(atomname) == 4 else f" {atomname:<3s}"
    return (
        f"{record:<6s}{serial:5d} {name}{altloc:1s}{resname:>3s} {chain:1s}{resno:4d}    "
        f"{x:8.3f}{y:8.3f}{z:8.3f}{occupancy:6.2f}{bfactor:6.2f}          {element:>2s}"
    )


@pytest.fixture
def dipeptide_pdb(tmp_path):
    """PDB file of the dipeptide plus a water; CB of residue 2 has two conformers."""
    lines = []
    serial = 1
    for atomname, resno, x, y, z in DIPEPTIDE_ATOMS:
        if atomname == "CB" and resno == 2:
            lines.append(_pdb_line("ATOM", serial, "CB", "ALA", "A", resno, x, y, z, "C",
                                   altloc="A", occupancy=0.6, bfactor=12.5))
            serial += 1
            lines.append(_pdb_line("ATOM", serial, "CB", "ALA", "A", resno, x + 0.3, y, z, "C",
                                   altloc="B", occupancy=0.4, bfactor=12.5))
        else:
            lines.append(_pdb_line("ATOM", serial, atomname, "ALA", "A", resno, x, y, z,
                                   atomname[0], bfactor=10.0))
        serial += 1
    lines.append(_pdb_line("HETATM", serial, "O", "HOH", "A", 100, 20.0, 20.0, 20.0, "O"))
    lines.append("END")

    path = tmp_path / "dipeptide.pdb"
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def helix_pdb(tmp_path, helix_ca_coords):
    """PDB file of the ideal helix C-alpha trace."""
    lines = [
        _pdb_line("ATOM", i + 1, "CA", "ALA", "A", i + 1, x, y, z, "C")
        for i, (x, y, z) in enumerate(helix_ca_coords)
    ]
    lines.append("END")

    path = tmp_path / "helix.pdb"
    path.write_text("\n".join(lines) + "\n")
    return path
