"""
colmol - columnar molecular structures

An in-memory structure model (columnar stores, proxies, bitset
selections) with picking gids, a k-d tree contact search and backbone
spline and helix geometry.
"""

__version__ = "0.3.0"

from colmol.colmol import Session, SessionConfig
from colmol.core.bitset import BitSet
from colmol.core.builder import StructureBuilder
from colmol.core.structures import Structure, StructureView
from colmol.picking.gidpool import GidPool
from colmol.selection.predicates import Selection

__all__ = [
    "Session",
    "SessionConfig",
    "BitSet",
    "StructureBuilder",
    "Structure",
    "StructureView",
    "GidPool",
    "Selection",
    "__version__",
]
