"""Core data model: columnar stores, proxies, bitsets and structures."""

from colmol.core.bitset import BitSet, compute_bitset
from colmol.core.builder import StructureBuilder, calculate_bonds_by_distance
from colmol.core.polymer import Polymer
from colmol.core.proxy import (
    AtomProxy,
    BondProxy,
    ChainProxy,
    ModelProxy,
    ProxyPool,
    ResidueProxy,
)
from colmol.core.store import AtomStore, BondStore, ChainStore, ModelStore, ResidueStore, Store
from colmol.core.structures import Structure, StructureView

__all__ = [
    "BitSet",
    "compute_bitset",
    "StructureBuilder",
    "calculate_bonds_by_distance",
    "Polymer",
    "AtomProxy",
    "BondProxy",
    "ChainProxy",
    "ModelProxy",
    "ProxyPool",
    "ResidueProxy",
    "Store",
    "AtomStore",
    "BondStore",
    "ChainStore",
    "ModelStore",
    "ResidueStore",
    "Structure",
    "StructureView",
]
