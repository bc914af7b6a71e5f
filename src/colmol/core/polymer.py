"""
Polymer: an ordered run of connected residues inside one chain.

Spline and helix routines consume polymers; they address residues by
local position ``0..residue_count - 1`` and may ask for the padding
positions ``-1`` and ``residue_count`` (see ``get_atom_index_by_type``).
"""

from typing import Callable

import numpy as np

from colmol.core.proxy import AtomProxy, ResidueProxy


class Polymer:
    """
    Residues ``residue_index_start .. residue_index_end`` (inclusive) of
    a structure.
    """

    def __init__(self, structure, residue_index_start: int, residue_index_end: int):
        self.structure = structure
        self.residue_index_start = int(residue_index_start)
        self.residue_index_end = int(residue_index_end)
        self.residue_count = self.residue_index_end - self.residue_index_start + 1

        rp_start = structure.get_residue_proxy(self.residue_index_start)
        rp_end = structure.get_residue_proxy(self.residue_index_end)

        self.is_prev_connected = rp_start.get_previous_connected_residue() is not None
        self.is_next_connected = rp_end.get_next_connected_residue() is not None
        self.is_cyclic = self.residue_count > 2 and rp_end.connected_to(rp_start)

        self._rp = ResidueProxy(structure, self.residue_index_start)

    def _first(self) -> ResidueProxy:
        return self.structure.get_residue_proxy(self.residue_index_start)

    def is_protein(self) -> bool:
        return self._first().is_protein()

    def is_nucleic(self) -> bool:
        return self._first().is_nucleic()

    def is_cg(self) -> bool:
        return self._first().is_cg()

    @property
    def chain_index(self) -> int:
        return self._first().chain_index

    @property
    def model_index(self) -> int:
        return self._first().model_index

    @property
    def atom_offset(self) -> int:
        return self._first().atom_offset

    @property
    def atom_count(self) -> int:
        last = self.structure.get_residue_proxy(self.residue_index_end)
        return last.atom_offset + last.atom_count - self.atom_offset

    def get_atom_index_by_type(self, index: int, atom_type: str) -> int:
        """
        Absolute atom index of ``atom_type`` in the residue at local
        position ``index``.

        ``atom_type`` is "trace", "direction1", "direction2" or an atom
        name. Positions -1 and ``residue_count`` wrap around for cyclic
        polymers, reach into the connected neighbour residue when there is
        one, and are clamped to the first/last residue otherwise. Returns
        -1 if the residue has no such atom.
        """
        n = self.residue_count

        if self.is_cyclic:
            index = index % n
        else:
            if index < 0 and not self.is_prev_connected:
                index = 0
            if index >= n and not self.is_next_connected:
                index = n - 1

        rp = self._rp
        rp.index = self.residue_index_start + index

        if atom_type == "trace":
            return rp.trace_atom_index
        if atom_type == "direction1":
            return rp.direction1_atom_index
        if atom_type == "direction2":
            return rp.direction2_atom_index
        return rp.get_atom_index_by_name(atom_type)

    def get_atom_indices_by_type(self, start: int, stop: int, atom_type: str) -> np.ndarray:
        """``get_atom_index_by_type`` for local positions ``start..stop-1``."""
        return np.array(
            [self.get_atom_index_by_type(i, atom_type) for i in range(start, stop)],
            dtype=np.int64,
        )

    def get_positions(self, atom_indices: np.ndarray) -> np.ndarray:
        """(N, 3) float64 coordinates of the given atoms."""
        store = self.structure.atom_store
        idx = np.asarray(atom_indices, dtype=np.int64)
        return np.stack([store.x[idx], store.y[idx], store.z[idx]], axis=1).astype(np.float64)

    def trace_positions(self) -> np.ndarray:
        return self.get_positions(self.get_atom_indices_by_type(0, self.residue_count, "trace"))

    def each_residue(self, callback: Callable[[ResidueProxy], None]):
        with self.structure.proxy_pool.borrow("residue") as rp:
            for i in range(self.residue_index_start, self.residue_index_end + 1):
                rp.index = i
                callback(rp)

    def each_atom(self, callback: Callable[[AtomProxy], None]):
        with self.structure.proxy_pool.borrow("atom") as ap:
            for i in range(self.atom_offset, self.atom_offset + self.atom_count):
                ap.index = i
                callback(ap)

    def get_sequence(self) -> str:
        letters = []
        self.each_residue(lambda rp: letters.append(rp.one_letter))
        return "".join(letters)

    def qualified_name(self) -> str:
        rp_start = self.structure.get_residue_proxy(self.residue_index_start)
        rp_end = self.structure.get_residue_proxy(self.residue_index_end)
        return f"{rp_start.qualified_name()} - {rp_end.qualified_name()}"

    def __repr__(self) -> str:
        return (
            f"Polymer({self.residue_index_start}..{self.residue_index_end}, "
            f"cyclic={self.is_cyclic})"
        )
