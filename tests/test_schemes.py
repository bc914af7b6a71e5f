"""Tests for colour makers and the radius factory."""

import logging

import numpy as np
import pytest

from colmol.core.constants import ELEMENT_COLORS, STRUCTURE_COLORS
from colmol.schemes import (
    ColorMaker,
    ColorMakerRegistry,
    ElementColorMaker,
    PickingColorMaker,
    RadiusFactory,
    SstrucColorMaker,
    UniformColorMaker,
)
from colmol.schemes.colormaker import array_to_color, color_to_array


class TestColorConversion:
    """Test 0xRRGGBB <-> float triplets."""

    def test_color_to_array(self):
        assert np.allclose(color_to_array(0xFF8000), [1.0, 128 / 255, 0.0])

    def test_offset(self):
        out = np.zeros(6, dtype=np.float32)
        color_to_array(0x0000FF, out, 3)
        assert np.allclose(out, [0, 0, 0, 0, 0, 1])

    def test_round_trip(self):
        for color in (0x000000, 0x123456, 0xFFFFFF, 42):
            assert array_to_color(color_to_array(color)) == color


class TestColorMakers:
    """Test the built-in colour policies."""

    def test_base_is_white(self, alanine_dipeptide):
        assert ColorMaker().atom_color(alanine_dipeptide.get_atom_proxy(0)) == 0xFFFFFF

    def test_uniform(self, alanine_dipeptide):
        maker = UniformColorMaker(value=0x336699)
        assert maker.atom_color(alanine_dipeptide.get_atom_proxy(3)) == 0x336699
        assert maker.volume_color(0) == 0x336699

    def test_element(self, alanine_dipeptide):
        maker = ElementColorMaker()
        assert maker.atom_color(alanine_dipeptide.get_atom_proxy(0)) == ELEMENT_COLORS["N"]
        assert maker.atom_color(alanine_dipeptide.get_atom_proxy(1)) == ELEMENT_COLORS["C"]

    def test_element_carbon_override(self, alanine_dipeptide):
        maker = ElementColorMaker(value=0x00FF00)
        assert maker.atom_color(alanine_dipeptide.get_atom_proxy(1)) == 0x00FF00
        assert maker.atom_color(alanine_dipeptide.get_atom_proxy(3)) == ELEMENT_COLORS["O"]

    def test_bond_color_uses_end_atom(self, alanine_dipeptide):
        maker = ElementColorMaker()
        bp = alanine_dipeptide.get_bond_proxy(0)
        assert maker.bond_color(bp, True) == ELEMENT_COLORS["N"]
        assert maker.bond_color(bp, False) == ELEMENT_COLORS["C"]

    def test_sstruc(self, helix_structure, straight_structure):
        maker = SstrucColorMaker()
        assert maker.atom_color(helix_structure.get_atom_proxy(0)) == STRUCTURE_COLORS["alphaHelix"]
        assert maker.atom_color(straight_structure.get_atom_proxy(0)) == STRUCTURE_COLORS["coil"]

    def test_picking(self, alanine_dipeptide):
        from colmol.picking import GidPool

        pool = GidPool()
        pool.add_object(alanine_dipeptide)
        maker = PickingColorMaker(alanine_dipeptide, gid_pool=pool)
        assert maker.atom_color(alanine_dipeptide.get_atom_proxy(4)) == 5
        assert maker.bond_color(alanine_dipeptide.get_bond_proxy(2)) == 13


class TestColorMakerRegistry:
    """Test scheme lookup and user schemes."""

    def test_builtin_schemes(self):
        registry = ColorMakerRegistry()
        assert isinstance(registry.get_scheme("element"), ElementColorMaker)
        assert isinstance(registry.get_picking_scheme(), PickingColorMaker)
        assert set(registry.get_types()) == {"uniform", "element", "sstruc", "picking"}

    def test_unknown_scheme_falls_back(self, caplog):
        registry = ColorMakerRegistry()
        with caplog.at_level(logging.WARNING, logger="colmol"):
            maker = registry.get_scheme("rainbow-unicorn")
        assert type(maker) is ColorMaker
        assert "unknown scheme" in caplog.text

    def test_function_scheme(self, alanine_dipeptide):
        registry = ColorMakerRegistry()
        scheme_id = registry.add_scheme(lambda ap: 0x111111 * (ap.resno), "by resno")
        assert scheme_id.endswith("|by resno")
        assert registry.get_types()[scheme_id] == "by resno"

        maker = registry.get_scheme(scheme_id, structure=alanine_dipeptide)
        assert maker.atom_color(alanine_dipeptide.get_atom_proxy(7)) == 0x222222

        registry.remove_scheme(scheme_id)
        assert scheme_id not in registry.get_types()

    def test_class_scheme(self, alanine_dipeptide):
        class Red(ColorMaker):
            def atom_color(self, ap):
                return 0xFF0000

        registry = ColorMakerRegistry()
        scheme_id = registry.add_scheme(Red, "red")
        assert isinstance(registry.get_scheme(scheme_id), Red)

    def test_selection_scheme(self, alanine_dipeptide):
        registry = ColorMakerRegistry()
        scheme_id = registry.add_selection_scheme([(0xFF0000, ".CA"), (0x0000FF, "1")], "sele")
        maker = registry.get_scheme(scheme_id)
        assert maker.atom_color(alanine_dipeptide.get_atom_proxy(6)) == 0xFF0000
        assert maker.atom_color(alanine_dipeptide.get_atom_proxy(0)) == 0x0000FF
        assert maker.atom_color(alanine_dipeptide.get_atom_proxy(9)) == 0xFFFFFF


class TestRadiusFactory:
    """Test per-atom radius policies."""

    def test_vdw(self, alanine_dipeptide):
        assert RadiusFactory("vdw").atom_radius(alanine_dipeptide.get_atom_proxy(0)) == pytest.approx(1.55)

    def test_scale(self, alanine_dipeptide):
        radius = RadiusFactory("covalent", 0.5).atom_radius(alanine_dipeptide.get_atom_proxy(3))
        assert radius == pytest.approx(0.33)

    def test_sstruc(self, helix_structure, straight_structure):
        assert RadiusFactory("sstruc").atom_radius(helix_structure.get_atom_proxy(0)) == pytest.approx(0.25)
        assert RadiusFactory("sstruc").atom_radius(straight_structure.get_atom_proxy(0)) == pytest.approx(0.1)

    def test_bfactor(self, alanine_dipeptide):
        ap = alanine_dipeptide.get_atom_proxy(0)
        assert RadiusFactory("bfactor").atom_radius(ap) == pytest.approx(1.0)
        ap.bfactor = 3.5
        assert RadiusFactory("bfactor").atom_radius(ap) == pytest.approx(3.5)

    def test_fixed_size_and_cap(self, alanine_dipeptide):
        ap = alanine_dipeptide.get_atom_proxy(0)
        assert RadiusFactory(2.5).atom_radius(ap) == pytest.approx(2.5)
        assert RadiusFactory(50).atom_radius(ap) == pytest.approx(10.0)

    def test_unknown_type(self, alanine_dipeptide):
        with pytest.raises(ValueError):
            RadiusFactory("banana").atom_radius(alanine_dipeptide.get_atom_proxy(0))
