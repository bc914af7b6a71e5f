"""Tests for the BitSet selection container."""

import numpy as np
import pytest

from colmol.core.bitset import BitSet, compute_bitset


class TestBitSet:
    """Test single-bit and whole-set operations."""

    def test_empty(self):
        bs = BitSet(40)
        assert bs.cardinality() == 0
        assert bs.is_all_clear()
        assert not bs.is_all_set()

    def test_set_all_masks_tail(self):
        bs = BitSet(40, set_all=True)
        assert bs.cardinality() == 40
        assert bs.is_all_set()
        assert bs.to_array().tolist() == list(range(40))

    def test_add_remove_has(self):
        bs = BitSet(70)
        bs.add(0).add(33).add(69)
        assert bs.has(33)
        assert 69 in bs
        assert not bs.has(1)
        bs.remove(33)
        assert not bs.has(33)
        assert bs.cardinality() == 2

    def test_has_out_of_domain(self):
        bs = BitSet(10, set_all=True)
        assert not bs.has(-1)
        assert not bs.has(10)

    def test_add_range(self):
        bs = BitSet(100).add_range(30, 40)
        assert bs.to_array().tolist() == list(range(30, 40))

    def test_flip(self):
        bs = BitSet(8)
        bs.flip(3)
        assert bs.has(3)
        bs.flip(3)
        assert not bs.has(3)

    def test_flip_all(self):
        bs = BitSet(35).add(0)
        bs.flip_all()
        assert bs.cardinality() == 34
        assert not bs.has(0)
        assert bs.has(34)

    def test_clear_all(self):
        bs = BitSet(12, set_all=True).clear_all()
        assert bs.is_all_clear()

    def test_iteration_order(self):
        bs = BitSet.from_indices(64, [40, 2, 17])
        assert list(bs) == [2, 17, 40]
        seen = []
        bs.for_each(seen.append)
        assert seen == [2, 17, 40]
        assert len(bs) == 3

    def test_mask_round_trip(self):
        mask = np.zeros(45, dtype=bool)
        mask[[0, 31, 32, 44]] = True
        bs = BitSet.from_mask(mask)
        assert np.array_equal(bs.to_mask(), mask)


class TestBitSetAlgebra:
    """Test set algebra between equal-domain sets."""

    def _pair(self):
        a = BitSet.from_indices(50, [1, 2, 3, 40])
        b = BitSet.from_indices(50, [3, 4, 40])
        return a, b

    def test_intersection_in_place(self):
        a, b = self._pair()
        result = a.intersection(b)
        assert result is a
        assert list(a) == [3, 40]

    def test_union(self):
        a, b = self._pair()
        assert list(a.union(b)) == [1, 2, 3, 4, 40]

    def test_difference(self):
        a, b = self._pair()
        assert list(a.difference(b)) == [1, 2]

    def test_new_variants_leave_operands(self):
        a, b = self._pair()
        c = a.new_intersection(b)
        d = a.new_union(b)
        e = a.new_difference(b)
        assert list(a) == [1, 2, 3, 40]
        assert list(b) == [3, 4, 40]
        assert list(c) == [3, 40]
        assert list(d) == [1, 2, 3, 4, 40]
        assert list(e) == [1, 2]

    def test_intersects(self):
        a, b = self._pair()
        assert a.intersects(b)
        assert not a.intersects(BitSet.from_indices(50, [0, 49]))

    def test_domain_mismatch(self):
        with pytest.raises(AssertionError):
            BitSet(10).union(BitSet(11))

    def test_equality_and_clone(self):
        a, _ = self._pair()
        c = a.clone()
        assert c == a
        c.add(0)
        assert c != a

    def test_json_round_trip(self):
        a, _ = self._pair()
        assert BitSet().from_json(a.to_json()) == a


class TestComputeBitset:
    """Test building a bitset by testing every proxy."""

    def test_compute_bitset(self, alanine_dipeptide):
        bs = compute_bitset(alanine_dipeptide.get_atom_proxy(), lambda ap: ap.element == "C", 10)
        assert list(bs) == [1, 2, 4, 6, 7, 9]
