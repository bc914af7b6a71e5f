"""Global id allocation for picking."""

from colmol.picking.gidpool import GidPool, GidPoolOverflowError, PickedEntity
from colmol.picking.volume import Volume, VolumeSample

__all__ = ["GidPool", "GidPoolOverflowError", "PickedEntity", "Volume", "VolumeSample"]
