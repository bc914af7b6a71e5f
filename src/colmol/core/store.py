"""
Columnar stores for atoms, bonds, residues, chains and models.

Each store keeps one numpy array per field ("column"); entity ``i`` is
the ``i``-th row of every column. ``count`` is the number of valid rows,
``length`` the allocated capacity. Rows ``count..length`` hold zeros.
"""

import math
from typing import Dict, List, Tuple

import numpy as np

from colmol.core.constants import DEFAULT_GROWTH_FACTOR, MIN_STORE_CAPACITY


def encode_chars(value: str, size: int) -> np.ndarray:
    """Encode a short string as a fixed-width, zero padded uint8 row."""
    raw = value.encode("ascii", errors="replace")[:size]
    row = np.zeros(size, dtype=np.uint8)
    row[: len(raw)] = np.frombuffer(raw, dtype=np.uint8)
    return row


def decode_chars(row: np.ndarray) -> str:
    """Decode a zero padded uint8 row back to a string."""
    raw = bytes(np.asarray(row, dtype=np.uint8))
    return raw.split(b"\x00", 1)[0].decode("ascii")


class Store:
    """
    Base class for fixed-schema columnar storage.

    Subclasses declare ``fields`` as ``(name, item_size, dtype)`` tuples.
    A column with ``item_size > 1`` has shape ``(length, item_size)``.

    Growth follows an explicit policy: when full, capacity is multiplied
    by ``growth_factor`` (amortized O(1) append).
    """

    fields: Tuple[Tuple[str, int, str], ...] = ()

    def __init__(self, size: int = 0, growth_factor: float = DEFAULT_GROWTH_FACTOR):
        if growth_factor <= 1.0:
            raise ValueError(f"growth_factor must be > 1, got {growth_factor}")

        self.growth_factor = growth_factor
        self.length = 0
        self.count = 0

        self._init_columns(int(size))

    def _column_shape(self, size: int, item_size: int) -> tuple:
        return (size,) if item_size == 1 else (size, item_size)

    def _init_columns(self, size: int):
        for name, item_size, dtype in self.fields:
            setattr(self, name, np.zeros(self._column_shape(size, item_size), dtype=dtype))
        self.length = size

    def resize(self, size: int):
        """
        Reallocate every column to ``size`` rows, keeping existing values.

        Shrinking below ``count`` truncates ``count``.
        """
        size = int(size)
        keep = min(size, self.length)

        for name, item_size, dtype in self.fields:
            old = getattr(self, name)
            new = np.zeros(self._column_shape(size, item_size), dtype=dtype)
            new[:keep] = old[:keep]
            setattr(self, name, new)

        self.length = size
        self.count = min(self.count, size)

    def grow_if_full(self):
        """Make room for at least one more row."""
        if self.count >= self.length:
            size = max(
                int(math.ceil(self.length * self.growth_factor)),
                self.count + 1,
                MIN_STORE_CAPACITY,
            )
            self.resize(size)

    def copy_from(self, other: "Store", this_offset: int, other_offset: int, length: int):
        """Copy ``length`` rows of a store of the same kind into this one."""
        for name, _, _ in self.fields:
            this_column = getattr(self, name)
            other_column = getattr(other, name)
            this_column[this_offset : this_offset + length] = other_column[
                other_offset : other_offset + length
            ]

    def copy_within(self, offset_target: int, offset_source: int, length: int):
        """Copy ``length`` rows inside this store."""
        for name, _, _ in self.fields:
            column = getattr(self, name)
            column[offset_target : offset_target + length] = column[
                offset_source : offset_source + length
            ].copy()

    def clear(self):
        """Forget all rows without releasing memory."""
        self.count = 0

    def dispose(self):
        """Release all columns."""
        self._init_columns(0)
        self.count = 0

    def to_json(self) -> Dict:
        """
        Serialize the valid rows of every column.

        Float32 values survive the trip through Python floats exactly, so
        ``from_json(to_json())`` reproduces the column bytes.
        """
        return {
            "metadata": {"type": type(self).__name__},
            "length": self.length,
            "count": self.count,
            "columns": {
                name: getattr(self, name)[: self.count].tolist()
                for name, _, _ in self.fields
            },
        }

    def from_json(self, data: Dict) -> "Store":
        count = int(data["count"])
        self._init_columns(max(int(data.get("length", count)), count))

        columns = data["columns"]
        for name, item_size, dtype in self.fields:
            values = np.asarray(columns[name], dtype=dtype)
            if count:
                getattr(self, name)[:count] = values.reshape(
                    self._column_shape(count, item_size)
                )

        self.count = count
        return self

    def __len__(self) -> int:
        return self.count

    def __repr__(self) -> str:
        return f"{type(self).__name__}(count={self.count}, length={self.length})"


class AtomStore(Store):
    """Per-atom columns; ``residue_index`` points into the ResidueStore."""

    fields = (
        ("residue_index", 1, "uint32"),
        ("atom_type_id", 1, "uint16"),
        ("x", 1, "float32"),
        ("y", 1, "float32"),
        ("z", 1, "float32"),
        ("serial", 1, "int32"),
        ("bfactor", 1, "float32"),
        ("altloc", 1, "uint8"),
        ("occupancy", 1, "float32"),
    )

    def positions(self) -> np.ndarray:
        """(count, 3) float32 copy of all valid coordinates."""
        n = self.count
        return np.stack([self.x[:n], self.y[:n], self.z[:n]], axis=1)


class BondStore(Store):
    """Pairs of atom indices with a bond order."""

    fields = (
        ("atom_index1", 1, "uint32"),
        ("atom_index2", 1, "uint32"),
        ("bond_order", 1, "int8"),
    )

    def add_bond(self, atom1, atom2, bond_order: int = 1):
        """
        Append a bond between two atoms.

        ``atom1``/``atom2`` may be atom proxies or plain atom indices.
        """
        self.grow_if_full()

        i = self.count
        self.atom_index1[i] = getattr(atom1, "index", atom1)
        self.atom_index2[i] = getattr(atom2, "index", atom2)
        self.bond_order[i] = bond_order

        self.count += 1

    def pairs(self) -> List[Tuple[int, int]]:
        n = self.count
        return list(zip(self.atom_index1[:n].tolist(), self.atom_index2[:n].tolist()))


class ResidueStore(Store):
    """Per-residue columns; atoms of residue ``i`` are
    ``atom_offset[i] .. atom_offset[i] + atom_count[i]``."""

    fields = (
        ("chain_index", 1, "uint32"),
        ("atom_offset", 1, "uint32"),
        ("atom_count", 1, "uint32"),
        ("residue_type_id", 1, "uint16"),
        ("resno", 1, "int32"),
        ("sstruc", 1, "uint8"),
        ("inscode", 1, "uint8"),
    )


class ChainStore(Store):
    """Per-chain columns; chain names are up to 4 ASCII characters."""

    fields = (
        ("model_index", 1, "uint32"),
        ("residue_offset", 1, "uint32"),
        ("residue_count", 1, "uint32"),
        ("chainname", 4, "uint8"),
    )

    def set_chainname(self, i: int, name: str):
        self.chainname[i] = encode_chars(name, 4)

    def get_chainname(self, i: int) -> str:
        return decode_chars(self.chainname[i])


class ModelStore(Store):
    """Per-model columns; chains of model ``i`` are contiguous."""

    fields = (
        ("chain_offset", 1, "uint32"),
        ("chain_count", 1, "uint32"),
    )
