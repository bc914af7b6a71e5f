"""
Fixed-domain bit vector used for atom, bond and residue selections.

Bits live in a ``uint32`` word array; bits past ``length`` are always
zero. Set algebra is eager and requires equal domain sizes.
"""

import logging
import time
from typing import Callable, Dict, Iterable, Iterator

import numpy as np

logger = logging.getLogger(__name__)


class BitSet:
    """
    A bit per entity index in ``[0, length)``.

    ``intersection``/``union``/``difference`` modify the set in place and
    return it; the ``new_*`` variants leave both operands untouched.
    """

    def __init__(self, length: int = 0, set_all: bool = False):
        self.length = int(length)
        self.words = np.zeros((self.length + 31) // 32, dtype=np.uint32)
        if set_all:
            self.set_all()

    @classmethod
    def from_mask(cls, mask: np.ndarray) -> "BitSet":
        """Build from a boolean array of the domain length."""
        mask = np.asarray(mask, dtype=bool)
        bs = cls(len(mask))
        if len(mask):
            packed = np.packbits(mask, bitorder="little")
            padded = np.zeros(len(bs.words) * 4, dtype=np.uint8)
            padded[: len(packed)] = packed
            bs.words[:] = padded.view("<u4")
        return bs

    @classmethod
    def from_indices(cls, length: int, indices: Iterable[int]) -> "BitSet":
        mask = np.zeros(int(length), dtype=bool)
        mask[np.fromiter(indices, dtype=np.intp)] = True
        return cls.from_mask(mask)

    def _mask_tail(self):
        tail = self.length % 32
        if tail and len(self.words):
            self.words[-1] &= np.uint32((1 << tail) - 1)

    def _check_domain(self, other: "BitSet"):
        assert self.length == other.length, (
            f"BitSet domain mismatch: {self.length} != {other.length}"
        )

    # Single bits

    def add(self, index: int) -> "BitSet":
        self.words[index >> 5] |= np.uint32(1 << (index & 31))
        return self

    def add_range(self, start: int, end: int) -> "BitSet":
        """Set every bit in ``[start, end)``."""
        mask = self.to_mask()
        mask[start:end] = True
        self.words[:] = BitSet.from_mask(mask).words
        return self

    def remove(self, index: int) -> "BitSet":
        self.words[index >> 5] &= np.uint32(~(1 << (index & 31)) & 0xFFFFFFFF)
        return self

    def has(self, index: int) -> bool:
        if index < 0 or index >= self.length:
            return False
        return bool((int(self.words[index >> 5]) >> (index & 31)) & 1)

    def flip(self, index: int) -> "BitSet":
        self.words[index >> 5] ^= np.uint32(1 << (index & 31))
        return self

    # Whole set

    def set_all(self) -> "BitSet":
        self.words.fill(0xFFFFFFFF)
        self._mask_tail()
        return self

    def clear_all(self) -> "BitSet":
        self.words.fill(0)
        return self

    def flip_all(self) -> "BitSet":
        np.invert(self.words, out=self.words)
        self._mask_tail()
        return self

    def is_all_set(self) -> bool:
        return self.cardinality() == self.length

    def is_all_clear(self) -> bool:
        return not self.words.any()

    def cardinality(self) -> int:
        """Number of set bits."""
        return int(np.unpackbits(self.words.view(np.uint8)).sum())

    def size(self) -> int:
        return self.cardinality()

    # Set algebra

    def intersection(self, other: "BitSet") -> "BitSet":
        self._check_domain(other)
        self.words &= other.words
        return self

    def union(self, other: "BitSet") -> "BitSet":
        self._check_domain(other)
        self.words |= other.words
        return self

    def difference(self, other: "BitSet") -> "BitSet":
        self._check_domain(other)
        self.words &= ~other.words
        return self

    def new_intersection(self, other: "BitSet") -> "BitSet":
        return self.clone().intersection(other)

    def new_union(self, other: "BitSet") -> "BitSet":
        return self.clone().union(other)

    def new_difference(self, other: "BitSet") -> "BitSet":
        return self.clone().difference(other)

    def intersects(self, other: "BitSet") -> bool:
        self._check_domain(other)
        return bool((self.words & other.words).any())

    # Iteration and conversion

    def to_mask(self) -> np.ndarray:
        """Boolean array of the domain length."""
        bits = np.unpackbits(self.words.astype("<u4").view(np.uint8), bitorder="little")
        return bits[: self.length].astype(bool)

    def to_array(self) -> np.ndarray:
        """Indices of the set bits in ascending order."""
        return np.flatnonzero(self.to_mask())

    def for_each(self, callback: Callable[[int], None]):
        for index in self.to_array():
            callback(int(index))

    def __iter__(self) -> Iterator[int]:
        return (int(i) for i in self.to_array())

    def __len__(self) -> int:
        return self.cardinality()

    def __contains__(self, index: int) -> bool:
        return self.has(index)

    def __eq__(self, other) -> bool:
        if not isinstance(other, BitSet):
            return NotImplemented
        return self.length == other.length and np.array_equal(self.words, other.words)

    def clone(self) -> "BitSet":
        bs = BitSet(self.length)
        bs.words[:] = self.words
        return bs

    def to_json(self) -> Dict:
        return {"length": self.length, "words": self.words.tolist()}

    def from_json(self, data: Dict) -> "BitSet":
        self.length = int(data["length"])
        self.words = np.asarray(data["words"], dtype=np.uint32).copy()
        return self

    def __repr__(self) -> str:
        return f"BitSet(length={self.length}, cardinality={self.cardinality()})"


def compute_bitset(proxy, test: Callable, count: int) -> BitSet:
    """
    Evaluate ``test(proxy)`` for every index in ``[0, count)`` through one
    reused proxy and collect the matches.
    """
    start = time.perf_counter()

    mask = np.zeros(count, dtype=bool)
    for i in range(count):
        proxy.index = i
        if test(proxy):
            mask[i] = True

    bs = BitSet.from_mask(mask)
    logger.debug(
        "computed %s bitset: %d/%d in %.3fs",
        proxy.kind, bs.cardinality(), count, time.perf_counter() - start,
    )
    return bs
