"""Backbone curves and helix geometry."""

from colmol.backbone.helix import Crossing, Helix, HelixCrossing
from colmol.backbone.helixbundle import Helixbundle
from colmol.backbone.helixorient import Helixorient
from colmol.backbone.spline import Spline

__all__ = ["Crossing", "Helix", "HelixCrossing", "Helixbundle", "Helixorient", "Spline"]
