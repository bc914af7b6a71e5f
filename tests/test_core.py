"""Tests for core module."""

import numpy as np
import pytest

from colmol.core.builder import StructureBuilder
from colmol.core.constants import get_one_letter, get_residue_type, get_three_letter
from colmol.core.geometry import (
    angle_between,
    angle_between_rows,
    bounding_box,
    calc_angle,
    calc_distance,
    calc_distance_matrix,
    is_point_on_segment,
    normalize,
    normalize_rows,
    point_vector_intersection,
)
from colmol.core.residue_type import AtomMap, guess_element
from colmol.core.store import AtomStore, BondStore, ChainStore, decode_chars, encode_chars
from colmol.core.structures import Structure, StructureView
from colmol.io.pdb_parser import read_coords_from_array
from colmol.picking.gidpool import GidPool
from colmol.schemes.colormaker import ElementColorMaker, PickingColorMaker, UniformColorMaker, color_to_array


class TestConstants:
    """Test constants module."""

    def test_get_residue_type(self):
        assert get_residue_type("ALA") == 1
        assert get_residue_type("GLY") == 0
        assert get_residue_type("XYZ") == 20

    def test_modified_residue_mapping(self):
        assert get_residue_type("MSE") == get_residue_type("MET")

    def test_one_letter(self):
        assert get_one_letter("ALA") == "A"
        assert get_one_letter("DA") == "A"
        assert get_one_letter("U") == "U"
        assert get_one_letter("HOH") == "X"

    def test_three_letter(self):
        assert get_three_letter("w") == "TRP"
        assert get_three_letter("?") == "UNK"


class TestGeometry:
    """Test geometry functions."""

    def test_calc_distance(self):
        assert calc_distance(np.array([0, 0, 0]), np.array([3, 4, 0])) == pytest.approx(5.0)

    def test_normalize(self):
        v = normalize(np.array([3.0, 4.0, 0.0]))
        assert np.linalg.norm(v) == pytest.approx(1.0)

    def test_normalize_zero_vector(self):
        assert np.allclose(normalize(np.zeros(3)), 0.0)

    def test_normalize_rows_keeps_zero_rows(self):
        rows = normalize_rows(np.array([[2.0, 0.0, 0.0], [0.0, 0.0, 0.0]]))
        assert np.allclose(rows, [[1, 0, 0], [0, 0, 0]])

    def test_angle_between(self):
        assert angle_between(np.array([1, 0, 0]), np.array([0, 1, 0])) == pytest.approx(np.pi / 2)
        assert angle_between(np.array([1, 0, 0]), np.array([-2, 0, 0])) == pytest.approx(np.pi)

    def test_angle_between_degenerate(self):
        assert angle_between(np.zeros(3), np.array([1, 0, 0])) == 0.0
        rows = angle_between_rows(np.zeros((2, 3)), np.ones((2, 3)))
        assert not np.isnan(rows).any()

    def test_calc_angle(self):
        angle = calc_angle(np.array([1, 0, 0]), np.array([0, 0, 0]), np.array([0, 1, 0]))
        assert angle == pytest.approx(np.pi / 2)

    def test_point_vector_intersection(self):
        foot = point_vector_intersection(np.array([2.0, 3.0, 0.0]), np.zeros(3), np.array([5.0, 0.0, 0.0]))
        assert np.allclose(foot, [2, 0, 0])

    def test_is_point_on_segment(self):
        a, b = np.zeros(3), np.array([4.0, 0.0, 0.0])
        assert is_point_on_segment(np.array([1.0, 0.0, 0.0]), a, b)
        assert not is_point_on_segment(np.array([5.0, 0.0, 0.0]), a, b)

    def test_bounding_box_empty(self):
        bb_min, bb_max = bounding_box(np.zeros((0, 3)))
        assert np.all(bb_min > bb_max)

    def test_calc_distance_matrix(self):
        coords = np.array([[0.0, 0.0, 0.0], [3.0, 4.0, 0.0]])
        d = calc_distance_matrix(coords)
        assert d.shape == (2, 2)
        assert d[0, 1] == pytest.approx(5.0)
        d = calc_distance_matrix(coords, np.array([[0.0, 0.0, 1.0]]))
        assert d.shape == (2, 1)
        assert d[0, 0] == pytest.approx(1.0)


class TestStore:
    """Test columnar stores."""

    def test_grow_if_full(self):
        store = AtomStore()
        assert store.length == 0
        store.grow_if_full()
        assert store.length == 16
        store.count = 16
        store.grow_if_full()
        assert store.length == 32

    def test_invalid_growth_factor(self):
        with pytest.raises(ValueError):
            AtomStore(0, growth_factor=1.0)

    def test_resize_keeps_values(self):
        store = AtomStore(4)
        store.count = 4
        store.x[:4] = [1, 2, 3, 4]
        store.resize(10)
        assert np.allclose(store.x[:4], [1, 2, 3, 4])
        assert np.all(store.x[4:] == 0)

    def test_resize_shrink_truncates_count(self):
        store = AtomStore(8)
        store.count = 8
        store.resize(3)
        assert store.count == 3
        assert store.length == 3

    def test_resized_rows_are_zeroed(self):
        store = AtomStore()
        store.resize(5)
        store.count = 5
        assert np.all(store.positions() == 0)
        assert np.all(store.serial[:5] == 0)

    def test_clear(self):
        store = AtomStore(8)
        store.count = 5
        store.clear()
        assert store.count == 0
        assert store.length == 8

    def test_copy_within_and_from(self):
        store = AtomStore(4)
        store.count = 4
        store.x[:4] = [1, 2, 3, 4]
        store.copy_within(2, 0, 2)
        assert np.allclose(store.x[:4], [1, 2, 1, 2])

        other = AtomStore(4)
        other.copy_from(store, 0, 1, 3)
        assert np.allclose(other.x[:3], [2, 1, 2])

    def test_add_bond(self):
        store = BondStore()
        store.add_bond(0, 1)
        store.add_bond(1, 2, 2)
        assert store.count == 2
        assert store.pairs() == [(0, 1), (1, 2)]
        assert store.bond_order[1] == 2

    def test_chainname(self):
        store = ChainStore(2)
        store.set_chainname(0, "AB")
        store.set_chainname(1, "LONGER")
        assert store.get_chainname(0) == "AB"
        assert store.get_chainname(1) == "LONG"

    def test_encode_chars(self):
        assert decode_chars(encode_chars("CA", 4)) == "CA"
        assert decode_chars(encode_chars("", 4)) == ""

    def test_json_round_trip_preserves_columns(self, alanine_dipeptide):
        store = alanine_dipeptide.atom_store
        copy = AtomStore().from_json(store.to_json())
        assert copy.count == store.count
        for name, _, _ in store.fields:
            assert np.array_equal(getattr(copy, name)[: copy.count], getattr(store, name)[: store.count])


class TestResidueTypes:
    """Test atom and residue type tables."""

    def test_guess_element(self):
        assert guess_element("CA") == "C"
        assert guess_element("CA", hetero=True) == "CA"
        assert guess_element("1HB") == "H"
        assert guess_element("") == ""

    def test_atom_map_interning(self):
        atom_map = AtomMap()
        first = atom_map.add("CA", "C")
        assert atom_map.add("CA", "C") == first
        assert atom_map.add("CA", "CA") != first
        assert len(atom_map) == 2

    def test_residue_types_are_shared(self, alanine_dipeptide):
        rs = alanine_dipeptide.residue_store
        assert rs.residue_type_id[0] == rs.residue_type_id[1]
        assert len(alanine_dipeptide.residue_map) == 1

    def test_protein_residue_type(self, alanine_dipeptide):
        rt = alanine_dipeptide.get_residue_proxy(0).residue_type
        assert rt.is_protein()
        assert not rt.is_cg()
        assert rt.atomnames[rt.trace_atom_index] == "CA"
        assert rt.atomnames[rt.direction1_atom_index] == "C"
        assert rt.atomnames[rt.direction2_atom_index] == "O"

    def test_coarse_grained_types(self, straight_structure):
        rt = straight_structure.get_residue_proxy(0).residue_type
        assert rt.is_protein()
        assert rt.is_cg()
        assert rt.direction1_atom_index == -1

    def test_nucleic_and_water(self):
        builder = StructureBuilder()
        builder.add_atom(0, 0, 0, "P", "A", 1)
        builder.add_atom(10, 0, 0, "O", "HOH", 2, hetero=True)
        builder.add_atom(20, 0, 0, "ZN", "ZN", 3, hetero=True)
        s = builder.finalize()

        assert s.get_residue_proxy(0).is_nucleic()
        assert s.get_residue_proxy(0).is_cg()
        assert s.get_residue_proxy(0).is_rna()
        assert s.get_residue_proxy(1).is_water()
        assert s.get_atom_proxy(2).is_ion()
        assert s.get_atom_proxy(2).element == "ZN"


class TestStructureBuilder:
    """Test hierarchy-respecting population."""

    def test_counts(self, alanine_dipeptide):
        s = alanine_dipeptide
        assert s.model_count == 1
        assert s.chain_count == 1
        assert s.residue_count == 2
        assert s.atom_count == 10

    def test_distance_bonds(self, alanine_dipeptide):
        pairs = set(alanine_dipeptide.bond_store.pairs())
        assert pairs == {
            (0, 1), (1, 2), (2, 3), (1, 4), (2, 5),
            (5, 6), (6, 7), (7, 8), (6, 9),
        }

    def test_models_and_chains(self):
        builder = StructureBuilder()
        for model in range(2):
            for chain in "AB":
                for resno in (1, 2):
                    builder.add_atom(resno * 3.8, 0, 0, "CA", "GLY", resno, chainname=chain, model=model)
        s = builder.finalize()

        assert s.model_count == 2
        assert s.chain_count == 4
        assert s.residue_count == 8
        mp = s.get_model_proxy(1)
        assert mp.chain_offset == 2
        assert mp.chain_count == 2
        assert mp.residue_offset == 4
        assert mp.atom_offset == 4
        assert mp.atom_count == 4
        assert s.get_chain_proxy(3).chainname == "B"
        assert s.get_atom_proxy(7).model_index == 1

    def test_residue_atom_ranges_are_contiguous(self, alanine_dipeptide):
        rs = alanine_dipeptide.residue_store
        assert list(rs.atom_offset[:2]) == [0, 5]
        assert list(rs.atom_count[:2]) == [5, 5]
        assert list(alanine_dipeptide.atom_store.residue_index[:10]) == [0] * 5 + [1] * 5

    def test_insertion_code_opens_residue(self):
        builder = StructureBuilder()
        builder.add_atom(0, 0, 0, "CA", "GLY", 10)
        builder.add_atom(3.8, 0, 0, "CA", "GLY", 10, inscode="A")
        s = builder.finalize()
        assert s.residue_count == 2
        assert s.get_residue_proxy(1).inscode == "A"

    def test_add_atom_returns_index(self):
        builder = StructureBuilder()
        assert builder.add_atom(0, 0, 0, "N", "ALA", 1) == 0
        assert builder.add_atom(1, 0, 0, "CA", "ALA", 1) == 1

    def test_set_sstruc(self, straight_structure):
        builder = StructureBuilder(straight_structure)
        builder.set_sstruc(2, "e")
        assert straight_structure.get_residue_proxy(2).sstruc == "e"
        assert straight_structure.get_residue_proxy(2).is_sheet()


class TestProxies:
    """Test flyweight proxies."""

    def test_atom_proxy_fields(self, alanine_dipeptide):
        ap = alanine_dipeptide.get_atom_proxy(1)
        assert ap.atomname == "CA"
        assert ap.element == "C"
        assert ap.resname == "ALA"
        assert ap.resno == 1
        assert ap.chainname == "A"
        assert ap.model_index == 0
        assert np.allclose(ap.position, [1.5, 0.0, 0.0])

    def test_atom_classification(self, alanine_dipeptide):
        ca = alanine_dipeptide.get_atom_proxy(1)
        cb = alanine_dipeptide.get_atom_proxy(4)
        assert ca.is_backbone() and ca.is_trace() and ca.is_protein()
        assert cb.is_sidechain() and not cb.is_backbone() and not cb.is_trace()

    def test_proxy_is_a_cursor(self, alanine_dipeptide):
        ap = alanine_dipeptide.get_atom_proxy()
        ap.index = 6
        assert ap.resno == 2
        ap.x = 9.0
        assert alanine_dipeptide.atom_store.x[6] == pytest.approx(9.0)

    def test_position_to_array(self, alanine_dipeptide):
        ap = alanine_dipeptide.get_atom_proxy(3)
        out = np.zeros(6, dtype=np.float32)
        ap.position_to_array(out, 3)
        assert np.allclose(out, [0, 0, 0, 1.3, 2.4, 0.0])

    def test_qualified_name(self, alanine_dipeptide):
        assert alanine_dipeptide.get_atom_proxy(1).qualified_name() == "[ALA]1:A.CA/0"
        assert alanine_dipeptide.get_residue_proxy(1).qualified_name() == "[ALA]2:A/0"

    def test_distance_to(self, alanine_dipeptide):
        n = alanine_dipeptide.get_atom_proxy(0)
        ca = alanine_dipeptide.get_atom_proxy(1)
        assert n.distance_to(ca) == pytest.approx(1.5)

    def test_debug_bounds_check(self):
        builder = StructureBuilder(name="checked", debug=True)
        builder.add_atom(0, 0, 0, "CA", "GLY", 1)
        s = builder.finalize()
        with pytest.raises(IndexError):
            s.get_atom_proxy(5)
        ap = s.get_atom_proxy()
        with pytest.raises(IndexError):
            ap.index = -1

    def test_unchecked_by_default(self, alanine_dipeptide):
        ap = alanine_dipeptide.get_atom_proxy(12)
        assert ap.index == 12

    def test_residue_proxy(self, alanine_dipeptide):
        rp = alanine_dipeptide.get_residue_proxy(0)
        assert rp.trace_atom_index == 1
        assert rp.direction1_atom_index == 2
        assert rp.direction2_atom_index == 3
        assert rp.backbone_start_atom_index == 0
        assert rp.backbone_end_atom_index == 2
        assert rp.one_letter == "A"
        assert rp.get_atom_index_by_name("CB") == 4
        assert rp.get_atom_index_by_name("OXT") == -1

    def test_residue_connectivity(self, alanine_dipeptide):
        rp1 = alanine_dipeptide.get_residue_proxy(0)
        rp2 = alanine_dipeptide.get_residue_proxy(1)
        assert rp1.connected_to(rp2)
        assert rp1.get_next_connected_residue().index == 1
        assert rp2.get_previous_connected_residue().index == 0
        assert rp1.get_previous_connected_residue() is None
        assert rp2.get_next_connected_residue() is None

    def test_chain_and_model_proxy(self, alanine_dipeptide):
        cp = alanine_dipeptide.get_chain_proxy(0)
        assert cp.residue_count == 2
        assert cp.atom_count == 10
        assert cp.qualified_name() == ":A/0"
        assert alanine_dipeptide.get_model_proxy(0).atom_count == 10

    def test_bond_proxy(self, alanine_dipeptide):
        bp = alanine_dipeptide.get_bond_proxy(0)
        assert bp.atom1.atomname == "N"
        assert bp.atom2.atomname == "CA"
        assert bp.bond_order == 1

    def test_nested_visitors_get_distinct_proxies(self, alanine_dipeptide):
        seen = []

        def outer(ap):
            before = ap.index
            alanine_dipeptide.each_atom(lambda inner: None)
            seen.append((before, ap.index))

        alanine_dipeptide.each_atom(outer)
        assert len(seen) == 10
        assert all(before == after for before, after in seen)
        assert alanine_dipeptide.proxy_pool.depth["atom"] == 0


class TestStructure:
    """Test Structure visitors and exporters."""

    def test_each_atom_with_selection(self, alanine_dipeptide):
        names = []
        alanine_dipeptide.each_atom(lambda ap: names.append((ap.index, ap.atomname)), ".CA")
        assert names == [(1, "CA"), (6, "CA")]

    def test_each_bond_with_selection(self, alanine_dipeptide):
        bonds = []
        alanine_dipeptide.each_bond(lambda bp: bonds.append(bp.index), "1")
        assert len(bonds) == 4

    def test_each_residue_and_chain(self, alanine_dipeptide):
        residues = []
        alanine_dipeptide.each_residue(lambda rp: residues.append(rp.resno))
        assert residues == [1, 2]
        residues = []
        alanine_dipeptide.each_residue(lambda rp: residues.append(rp.resno), ".CB and 2")
        assert residues == [2]
        chains = []
        alanine_dipeptide.each_chain(lambda cp: chains.append(cp.chainname))
        assert chains == ["A"]

    def test_each_residue_n(self, helix_structure):
        windows = []
        helix_structure.each_residue_n(3, lambda a, b, c: windows.append((a.index, b.index, c.index)))
        assert len(windows) == 8
        assert windows[0] == (0, 1, 2)
        assert windows[-1] == (7, 8, 9)

    def test_residue_and_chain_sets(self, hbond_structure):
        assert hbond_structure.get_residue_set(":B").to_array().tolist() == [2]
        assert hbond_structure.get_chain_set(".CB").to_array().tolist() == [0]

    def test_atom_position(self, alanine_dipeptide):
        pos = alanine_dipeptide.atom_position(".CA")
        assert pos.dtype == np.float32
        assert np.allclose(pos, [1.5, 0, 0, 4.0, 2.7, 0])
        assert len(alanine_dipeptide.atom_position()) == 30

    def test_atom_index(self, alanine_dipeptide):
        assert alanine_dipeptide.atom_index(".C").tolist() == [2, 7]

    def test_atom_radius(self, alanine_dipeptide):
        radius = alanine_dipeptide.atom_radius(selection="_O")
        assert np.allclose(radius, [1.52, 1.52])
        radius = alanine_dipeptide.atom_radius("covalent", 2.0, ".N")
        assert np.allclose(radius, [1.42, 1.42])

    def test_atom_color(self, alanine_dipeptide):
        color = alanine_dipeptide.atom_color(ElementColorMaker(alanine_dipeptide), ".O")
        assert color.shape == (6,)
        assert np.allclose(color[:3], color_to_array(0xFF0D0D))

    def test_bond_position(self, alanine_dipeptide):
        assert len(alanine_dipeptide.bond_position()) == 27
        pos = alanine_dipeptide.bond_position(from_to=False, selection=".CA or .CB")
        assert np.allclose(pos, [2.0, -1.0, 0.5, 3.5, 3.5, 1.2])

    def test_bond_color_and_radius(self, alanine_dipeptide):
        color = alanine_dipeptide.bond_color(UniformColorMaker(value=0x00FF00))
        assert np.allclose(color.reshape(-1, 3), [0, 1, 0])
        radius = alanine_dipeptide.bond_radius(radius_type="covalent")
        assert radius[0] == pytest.approx(0.71)

    def test_bond_picking_color(self, alanine_dipeptide):
        pool = GidPool()
        pool.add_object(alanine_dipeptide)
        maker = PickingColorMaker(alanine_dipeptide, gid_pool=pool)
        color = alanine_dipeptide.bond_picking_color(maker)
        # bonds follow the 10 atoms in the gid range starting at 1
        assert np.allclose(color[:3], color_to_array(11))

    def test_bounding_box_and_center(self, alanine_dipeptide):
        bb_min, bb_max = alanine_dipeptide.get_bounding_box()
        assert np.allclose(bb_min, [0.0, -1.0, 0.0])
        assert np.allclose(bb_max, [6.2, 3.5, 1.2])
        assert np.allclose(alanine_dipeptide.atom_center(), [3.1, 1.25, 0.6])

    def test_atom_distance_matrix(self, alanine_dipeptide):
        d = alanine_dipeptide.atom_distance_matrix()
        assert d.shape == (10, 10)
        assert np.allclose(np.diag(d), 0.0)
        assert np.allclose(d, d.T)
        d = alanine_dipeptide.atom_distance_matrix(".CA", ".N")
        assert d.shape == (2, 2)
        assert d[0, 0] == pytest.approx(1.5, abs=1e-5)

    def test_get_sequence(self, alanine_dipeptide, helix_structure):
        assert alanine_dipeptide.get_sequence() == "AA"
        assert helix_structure.get_sequence() == "A" * 10

    def test_update_position(self, alanine_dipeptide):
        alanine_dipeptide.update_position(np.ones((10, 3)))
        assert np.allclose(alanine_dipeptide.atom_position(), 1.0)
        with pytest.raises(AssertionError):
            alanine_dipeptide.update_position(np.ones((3, 3)))

    def test_dispose(self, alanine_dipeptide):
        alanine_dipeptide.dispose()
        assert alanine_dipeptide.atom_count == 0
        assert alanine_dipeptide.bond_count == 0

    def test_json_round_trip(self, alanine_dipeptide):
        copy = Structure().from_json(alanine_dipeptide.to_json())
        assert copy.name == "ala2"
        assert copy.atom_count == 10
        assert copy.bond_store.pairs() == alanine_dipeptide.bond_store.pairs()
        assert np.array_equal(copy.atom_position(), alanine_dipeptide.atom_position())
        assert copy.get_atom_proxy(4).qualified_name() == "[ALA]1:A.CB/0"


class TestStructureView:
    """Test selection-restricted views."""

    def test_counts(self, alanine_dipeptide):
        view = alanine_dipeptide.get_view("backbone")
        assert isinstance(view, StructureView)
        assert view.atom_count == 8
        assert view.bond_count == 7
        assert not view.is_full()

    def test_shares_parent_stores(self, alanine_dipeptide):
        view = alanine_dipeptide.get_view(".CA")
        assert view.atom_store is alanine_dipeptide.atom_store
        assert view.get_atom_proxy(1).structure is alanine_dipeptide

    def test_exporters_follow_selection(self, alanine_dipeptide):
        view = alanine_dipeptide.get_view("2")
        assert len(view.atom_position()) == 15
        assert view.atom_index().tolist() == [5, 6, 7, 8, 9]
        assert view.get_sequence() == "A"

    def test_recomputes_on_selection_change(self, alanine_dipeptide):
        view = alanine_dipeptide.get_view(".CA")
        assert view.atom_count == 2
        view.selection.set(".CA or .CB")
        assert view.atom_count == 4

    def test_recomputes_on_parent_growth(self, straight_structure):
        view = straight_structure.get_view("protein")
        assert view.atom_count == 4
        builder = StructureBuilder(straight_structure)
        builder.add_atom(0, 10, 0, "CA", "GLY", 5, chainname="B")
        builder.finalize()
        assert view.atom_count == 5

    def test_invalidate(self, alanine_dipeptide):
        view = alanine_dipeptide.get_view(".CA")
        assert view.atom_count == 2
        # retype N of residue 1 as CA; counts and selection are unchanged
        store = alanine_dipeptide.atom_store
        store.atom_type_id[0] = store.atom_type_id[1]
        assert view.atom_count == 2
        view.invalidate()
        assert view.atom_count == 3

    def test_no_nested_views(self, alanine_dipeptide):
        view = alanine_dipeptide.get_view(".CA")
        with pytest.raises(TypeError):
            view.get_view(".N")
        with pytest.raises(TypeError):
            StructureView(view, ".N")

    def test_json_round_trip(self, alanine_dipeptide):
        view = alanine_dipeptide.get_view("1")
        copy = StructureView.load_json(view.to_json())
        assert copy.atom_count == 5
        assert copy.bond_count == 4
        assert copy.selection.string == "1"


class TestPolymer:
    """Test polymer extraction."""

    def _polymers(self, structure, selection=None):
        polymers = []
        structure.each_polymer(polymers.append, selection)
        return polymers

    def test_single_polymer(self, helix_structure):
        polymers = self._polymers(helix_structure)
        assert len(polymers) == 1
        assert polymers[0].residue_count == 10
        assert not polymers[0].is_cyclic
        assert polymers[0].is_cg()

    def test_full_backbone_polymer(self, alanine_dipeptide):
        (polymer,) = self._polymers(alanine_dipeptide)
        assert polymer.residue_count == 2
        assert polymer.is_protein() and not polymer.is_cg()
        assert polymer.get_sequence() == "AA"
        assert polymer.qualified_name() == "[ALA]1:A/0 - [ALA]2:A/0"
        assert polymer.get_atom_index_by_type(0, "direction1") == 2
        assert polymer.get_atom_index_by_type(1, "O") == 8

    def test_chain_break_splits_polymers(self):
        coords = [[3.8 * i, 0.0, 0.0] for i in range(4)] + [[30.0 + 3.8 * i, 0.0, 0.0] for i in range(3)]
        s = read_coords_from_array(coords)
        polymers = self._polymers(s)
        assert [p.residue_count for p in polymers] == [4, 3]

    def test_single_residue_is_not_a_polymer(self):
        s = read_coords_from_array([[0.0, 0.0, 0.0], [20.0, 0.0, 0.0]])
        assert self._polymers(s) == []

    def test_selection_restricts_polymer(self, helix_structure):
        (polymer,) = self._polymers(helix_structure, "3-7")
        assert polymer.residue_index_start == 2
        assert polymer.residue_count == 5
        assert polymer.is_prev_connected
        assert polymer.is_next_connected

    def test_padding_clamps_at_termini(self, straight_structure):
        (polymer,) = self._polymers(straight_structure)
        assert polymer.get_atom_index_by_type(-1, "trace") == 0
        assert polymer.get_atom_index_by_type(4, "trace") == 3

    def test_padding_wraps_when_cyclic(self, ring_structure):
        (polymer,) = self._polymers(ring_structure)
        assert polymer.is_cyclic
        assert polymer.get_atom_index_by_type(-1, "trace") == 5
        assert polymer.get_atom_index_by_type(6, "trace") == 0

    def test_trace_positions(self, straight_structure):
        (polymer,) = self._polymers(straight_structure)
        assert np.allclose(polymer.trace_positions()[:, 0], [0.0, 3.8, 7.6, 11.4])
