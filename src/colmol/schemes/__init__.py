"""Colour and radius policies."""

from colmol.schemes.colormaker import (
    ColorMaker,
    ColorMakerRegistry,
    ElementColorMaker,
    PickingColorMaker,
    SstrucColorMaker,
    UniformColorMaker,
)
from colmol.schemes.radius import RadiusFactory

__all__ = [
    "ColorMaker",
    "ColorMakerRegistry",
    "ElementColorMaker",
    "PickingColorMaker",
    "SstrucColorMaker",
    "UniformColorMaker",
    "RadiusFactory",
]
