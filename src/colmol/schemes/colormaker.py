"""
Colour policies.

A colour maker maps an atom (or bond, or volume sample) to a 0xRRGGBB
integer; the ``*_to_array`` methods write it as three floats in [0, 1].
The picking maker encodes gids instead of colours.
"""

import logging
import uuid
from typing import Dict, List, Optional, Sequence, Tuple, Type

import numpy as np

from colmol.core.constants import ELEMENT_COLORS, STRUCTURE_COLORS

logger = logging.getLogger(__name__)


def color_to_array(color: int, array: Optional[np.ndarray] = None, offset: int = 0) -> np.ndarray:
    """Write 0xRRGGBB as r, g, b floats in [0, 1] at ``offset``."""
    if array is None:
        array = np.zeros(3, dtype=np.float32)
    color = int(color)
    array[offset] = ((color >> 16) & 255) / 255.0
    array[offset + 1] = ((color >> 8) & 255) / 255.0
    array[offset + 2] = (color & 255) / 255.0
    return array


def array_to_color(array: np.ndarray, offset: int = 0) -> int:
    """Inverse of :func:`color_to_array` (rounded to the nearest byte)."""
    r, g, b = (int(round(float(array[offset + i]) * 255.0)) for i in range(3))
    return (r << 16) | (g << 8) | b


class ColorMaker:
    """Base colour maker: everything is white."""

    scheme = ""

    def __init__(self, structure=None, value: int = 0xFFFFFF, volume=None, gid_pool=None, **params):
        self.structure = structure
        self.value = value
        self.volume = volume
        self.gid_pool = gid_pool
        self.params = params

    def atom_color(self, ap) -> int:
        return 0xFFFFFF

    def atom_color_to_array(self, ap, array=None, offset: int = 0):
        return color_to_array(self.atom_color(ap), array, offset)

    def bond_color(self, bp, from_to: bool = True) -> int:
        return self.atom_color(bp.atom1 if from_to else bp.atom2)

    def bond_color_to_array(self, bp, from_to: bool, array=None, offset: int = 0):
        return color_to_array(self.bond_color(bp, from_to), array, offset)

    def volume_color(self, index: int) -> int:
        return 0xFFFFFF

    def volume_color_to_array(self, index: int, array=None, offset: int = 0):
        return color_to_array(self.volume_color(index), array, offset)


class UniformColorMaker(ColorMaker):
    scheme = "uniform"

    def atom_color(self, ap) -> int:
        return self.value

    def bond_color(self, bp, from_to: bool = True) -> int:
        return self.value

    def volume_color(self, index: int) -> int:
        return self.value


class ElementColorMaker(ColorMaker):
    """CPK-style colours; carbon takes ``value`` when one is given."""

    scheme = "element"

    def __init__(self, structure=None, value: Optional[int] = None, **params):
        super().__init__(structure, ELEMENT_COLORS["C"] if value is None else value, **params)

    def atom_color(self, ap) -> int:
        element = ap.element
        if element == "C":
            return self.value
        return ELEMENT_COLORS.get(element, ELEMENT_COLORS[""])


class SstrucColorMaker(ColorMaker):
    """Colours by secondary structure code of the atom's residue."""

    scheme = "sstruc"

    def atom_color(self, ap) -> int:
        sstruc = ap.sstruc
        if sstruc == "h":
            return STRUCTURE_COLORS["alphaHelix"]
        if sstruc == "g":
            return STRUCTURE_COLORS["3_10Helix"]
        if sstruc == "i":
            return STRUCTURE_COLORS["piHelix"]
        if sstruc in ("e", "b"):
            return STRUCTURE_COLORS["betaStrand"]
        if ap.is_nucleic():
            return STRUCTURE_COLORS["rna"] if ap.is_rna() else STRUCTURE_COLORS["dna"]
        if ap.is_protein() or sstruc in ("s", "t", "l"):
            return STRUCTURE_COLORS["coil"]
        return STRUCTURE_COLORS[""]


class PickingColorMaker(ColorMaker):
    """
    Encodes gids as colours.

    Atoms use their own index as the offset into the structure's range;
    bonds follow the atoms, at ``atom_count + bond index``.
    """

    scheme = "picking"

    def atom_color(self, ap) -> int:
        return self.gid_pool.get_gid(self.structure, ap.index)

    def bond_color(self, bp, from_to: bool = True) -> int:
        index = self.structure.atom_store.count + bp.index
        return self.gid_pool.get_gid(self.structure, index)

    def volume_color(self, index: int) -> int:
        return self.gid_pool.get_gid(self.volume, index)


class ColorMakerRegistry:
    """
    Lookup of colour makers by scheme id.

    Unknown ids log a warning and fall back to the base ColorMaker.
    User schemes are registered under ``"<uuid>|<label>"`` ids.
    """

    def __init__(self):
        self.types: Dict[str, Type[ColorMaker]] = {
            cls.scheme: cls
            for cls in (UniformColorMaker, ElementColorMaker, SstrucColorMaker, PickingColorMaker)
        }
        self.user_schemes: Dict[str, Type[ColorMaker]] = {}

    def get_scheme(self, scheme: str = "", **params) -> ColorMaker:
        if scheme in self.types:
            cls = self.types[scheme]
        elif scheme in self.user_schemes:
            cls = self.user_schemes[scheme]
        else:
            if scheme:
                logger.warning("ColorMakerRegistry.get_scheme: unknown scheme %r", scheme)
            cls = ColorMaker
        return cls(**params)

    def get_picking_scheme(self, **params) -> ColorMaker:
        return self.get_scheme("picking", **params)

    def get_types(self) -> Dict[str, str]:
        types = {k: k for k in self.types}
        types.update({k: k.split("|", 1)[1] for k in self.user_schemes})
        return types

    def add_scheme(self, scheme, label: str = "") -> str:
        """
        Register a ColorMaker subclass, or a plain ``atom_color(ap)``
        function, and return its new id.
        """
        if not (isinstance(scheme, type) and issubclass(scheme, ColorMaker)):
            atom_color = scheme
            scheme = type(
                "UserColorMaker",
                (ColorMaker,),
                {"atom_color": lambda self, ap: atom_color(ap)},
            )
        scheme_id = f"{uuid.uuid4()}|{label}"
        self.user_schemes[scheme_id] = scheme
        return scheme_id

    def remove_scheme(self, scheme_id: str):
        self.user_schemes.pop(scheme_id, None)

    def add_selection_scheme(self, pairs: Sequence[Tuple[int, object]], label: str = "") -> str:
        """
        Colour by the first matching selection of ``(color, selection)``
        pairs; atoms matching none are white.
        """
        from colmol.selection.predicates import Selection

        compiled: List[Tuple[int, Selection]] = [
            (color, sel if isinstance(sel, Selection) else Selection(sel)) for color, sel in pairs
        ]

        def atom_color(ap) -> int:
            for color, selection in compiled:
                if selection.test(ap):
                    return color
            return 0xFFFFFF

        return self.add_scheme(atom_color, label)
