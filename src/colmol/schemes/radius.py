"""
Per-atom radius policy used by the dense exporters and spline sizes.
"""

from typing import Union

from colmol.core.constants import COVALENT_RADII, RADIUS_MAX, VDW_RADII

NUCLEIC_SSTRUC_ATOMS = ("C3'", "C3*", "C4'", "C4*", "P")

RADIUS_TYPES = {
    "": "",
    "vdw": "by vdW radius",
    "covalent": "by covalent radius",
    "sstruc": "by secondary structure",
    "bfactor": "by bfactor",
    "size": "size",
}


class RadiusFactory:
    """
    Args:
        radius_type: "vdw", "covalent", "bfactor", "sstruc", or a number
            used as a fixed size
        scale: Multiplier applied to every radius

    Radii are capped at ``max`` (10) after scaling.
    """

    def __init__(self, radius_type: Union[str, float] = "vdw", scale: float = 1.0):
        self.type = radius_type
        self.scale = scale or 1.0
        self.max = RADIUS_MAX

    def atom_radius(self, ap) -> float:
        radius_type = self.type

        if radius_type == "vdw":
            r = VDW_RADII.get(ap.element, VDW_RADII[""])
        elif radius_type == "covalent":
            r = COVALENT_RADII.get(ap.element, COVALENT_RADII[""])
        elif radius_type == "bfactor":
            r = ap.bfactor or 1.0
        elif radius_type == "sstruc":
            sstruc = ap.sstruc
            if sstruc and sstruc in "hgieb":
                r = 0.25
            elif ap.atomname in NUCLEIC_SSTRUC_ATOMS:
                r = 0.4
            else:
                r = 0.1
        else:
            try:
                r = float(radius_type) if radius_type not in (None, "") else 1.0
            except (TypeError, ValueError):
                raise ValueError(f"unknown radius type {radius_type!r}") from None
            r = r or 1.0

        return min(r * self.scale, self.max)
