"""Tests for structure file reading, JSON serialization and logging setup."""

import json
import logging

import numpy as np
import pytest

from colmol.core.bitset import BitSet
from colmol.core.structures import StructureView
from colmol.io import (
    dump_structure,
    load_structure,
    read_coords_from_array,
    read_structure,
    structure_from_json,
    to_jsonable,
)
from colmol.logging_config import setup_logging


class TestReadCoordsFromArray:
    """Test building C-alpha traces from raw coordinates."""

    def test_basic(self, helix_ca_coords):
        structure = read_coords_from_array(helix_ca_coords, sequence="ACDEFGHIKL")
        assert structure.atom_count == 10
        assert structure.residue_count == 10
        assert structure.get_sequence() == "ACDEFGHIKL"
        assert structure.get_atom_proxy(0).atomname == "CA"
        assert structure.get_atom_proxy(0).resno == 1

    def test_poly_alanine_default(self, straight_structure):
        assert straight_structure.get_sequence() == "AAAA"

    def test_chain_and_sstruc(self):
        structure = read_coords_from_array([[0, 0, 0], [3.8, 0, 0]], chain_id="X", sstruc="h ")
        assert structure.get_atom_proxy(0).chainname == "X"
        assert structure.get_atom_proxy(0).sstruc == "h"
        assert structure.get_atom_proxy(1).sstruc == ""

    def test_sequence_length_mismatch(self, helix_ca_coords):
        with pytest.raises(ValueError):
            read_coords_from_array(helix_ca_coords, sequence="AAA")

    def test_sstruc_length_mismatch(self, helix_ca_coords):
        with pytest.raises(ValueError):
            read_coords_from_array(helix_ca_coords, sstruc="hh")


class TestReadStructure:
    """Test reading PDB and mmCIF files through Bio.PDB."""

    def test_counts(self, dipeptide_pdb):
        structure = read_structure(dipeptide_pdb)
        assert structure.name == "dipeptide"
        assert structure.path == str(dipeptide_pdb)
        assert structure.atom_count == 11
        assert structure.residue_count == 3
        assert structure.chain_count == 1
        assert structure.bond_count == 9
        assert structure.get_sequence() == "AA"

    def test_without_bonds(self, dipeptide_pdb):
        assert read_structure(dipeptide_pdb, calculate_bonds=False).bond_count == 0

    def test_first_altloc_only(self, dipeptide_pdb):
        ap = read_structure(dipeptide_pdb).get_atom_proxy(9)
        assert ap.atomname == "CB"
        assert ap.altloc == "A"
        assert ap.x == pytest.approx(3.5, abs=1e-3)
        assert ap.occupancy == pytest.approx(0.6)
        assert ap.bfactor == pytest.approx(12.5)
        assert ap.qualified_name() == "[ALA]2:A.CB%A/0"

    def test_atom_fields(self, dipeptide_pdb):
        ap = read_structure(dipeptide_pdb).get_atom_proxy(0)
        assert ap.atomname == "N"
        assert ap.element == "N"
        assert ap.serial == 1
        assert ap.bfactor == pytest.approx(10.0)
        assert ap.is_backbone()

    def test_water_is_hetero(self, dipeptide_pdb):
        ap = read_structure(dipeptide_pdb).get_atom_proxy(10)
        assert ap.resname == "HOH"
        assert ap.resno == 100
        assert ap.is_water()
        assert ap.is_hetero()

    def test_mmcif(self, dipeptide_pdb, tmp_path):
        from Bio.PDB import MMCIFIO, PDBParser

        bio_structure = PDBParser(QUIET=True).get_structure("dipeptide", str(dipeptide_pdb))
        cif_path = tmp_path / "dipeptide.cif"
        io = MMCIFIO()
        io.set_structure(bio_structure)
        io.save(str(cif_path))

        structure = read_structure(cif_path)
        assert structure.name == "dipeptide"
        assert structure.atom_count == 11
        assert structure.residue_count == 3
        assert structure.get_sequence() == "AA"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_structure(tmp_path / "missing.pdb")


class TestSerialization:
    """Test JSON snapshots of structures and views."""

    def test_structure_round_trip(self, alanine_dipeptide, tmp_path):
        path = dump_structure(alanine_dipeptide, tmp_path / "ala2.json")
        copy = load_structure(path)

        assert copy.name == "ala2"
        assert copy.atom_count == 10
        assert copy.bond_count == 9
        assert np.allclose(copy.atom_position(), alanine_dipeptide.atom_position())
        assert [copy.get_atom_proxy(i).atomname for i in range(10)] == [
            alanine_dipeptide.get_atom_proxy(i).atomname for i in range(10)
        ]
        assert copy.get_sequence() == "AA"

    def test_view_round_trip(self, alanine_dipeptide, tmp_path):
        path = dump_structure(alanine_dipeptide.get_view("2"), tmp_path / "view.json")
        copy = load_structure(path)

        assert isinstance(copy, StructureView)
        assert copy.atom_count == 5
        assert list(copy.atom_set) == [5, 6, 7, 8, 9]
        assert copy.structure.atom_count == 10

    def test_file_is_plain_json(self, alanine_dipeptide, tmp_path):
        path = dump_structure(alanine_dipeptide, tmp_path / "ala2.json")
        data = json.loads(path.read_text())
        assert data["metadata"]["type"] == "Structure"
        assert data["metadata"]["name"] == "ala2"

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            structure_from_json({"metadata": {"type": "Volume"}})


class TestToJsonable:
    """Test conversion of analysis output into JSON-ready values."""

    def test_numpy_values(self):
        data = to_jsonable({"a": np.float32(1.5), "b": np.arange(3), "c": (np.int64(2), "x")})
        assert data == {"a": 1.5, "b": [0, 1, 2], "c": [2, "x"]}
        assert type(data["a"]) is float
        assert json.loads(json.dumps(data)) == data

    def test_objects_with_to_json(self):
        bs = BitSet(10)
        bs.add(3)
        data = to_jsonable([bs])
        assert data == [{"length": 10, "words": [8]}]

    def test_plain_values_pass_through(self):
        assert to_jsonable("text") == "text"
        assert to_jsonable(None) is None
        assert to_jsonable(3) == 3


class TestSetupLogging:
    """Test the package logger configuration."""

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "colmol.log"
        logger = setup_logging(logging.INFO, str(log_file))
        assert logger.name == "colmol"
        assert not logger.propagate

        logging.getLogger("colmol.test").info("hello")
        for handler in logger.handlers:
            handler.flush()

        text = log_file.read_text()
        assert "| INFO | colmol.test | hello" in text

    def test_repeated_setup_replaces_handlers(self, tmp_path):
        setup_logging(logging.INFO, str(tmp_path / "a.log"))
        logger = setup_logging(logging.INFO, str(tmp_path / "b.log"))
        assert len(logger.handlers) == 2

    def test_level(self):
        logger = setup_logging(logging.WARNING)
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
