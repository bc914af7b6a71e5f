"""
Local helix geometry along a polymer.

Every window of four consecutive trace atoms defines a local helix axis
(cross product of the two second differences of the trace), radius,
rise and twist; the per-window values are then averaged onto residues.
Follows the method of GROMACS ``gmx helixorient``.
"""

import logging
from typing import Dict, Optional

import numpy as np

from colmol.core.constants import RADDEG
from colmol.core.geometry import angle_between_rows, normalize, normalize_rows, point_vector_intersection
from colmol.schemes.colormaker import ColorMaker
from colmol.schemes.radius import RadiusFactory

logger = logging.getLogger(__name__)


class Helixorient:
    """
    Args:
        polymer: Polymer with at least 4 residues
    """

    def __init__(self, polymer):
        self.polymer = polymer
        self.size = polymer.residue_count

    def _trace_atom_indices(self) -> np.ndarray:
        return self.polymer.get_atom_indices_by_type(0, self.size, "trace")

    def get_color(self, color_maker: Optional[ColorMaker] = None,
                  picking_color_maker: Optional[ColorMaker] = None) -> Dict[str, np.ndarray]:
        """Colour of every residue's trace atom, as (n, 3) float32 arrays."""
        structure = self.polymer.structure
        if color_maker is None:
            color_maker = ColorMaker(structure)

        n = self.size
        col = np.zeros(n * 3, dtype=np.float32)
        pcol = np.zeros(n * 3, dtype=np.float32)

        ap = structure.get_atom_proxy()
        for i, index in enumerate(self._trace_atom_indices()):
            ap.index = int(index)
            color_maker.atom_color_to_array(ap, col, i * 3)
            if picking_color_maker is not None:
                picking_color_maker.atom_color_to_array(ap, pcol, i * 3)

        return {"color": col.reshape(-1, 3), "picking_color": pcol.reshape(-1, 3)}

    def get_size(self, radius_type=None, scale: float = 1.0) -> Dict[str, np.ndarray]:
        """Radius of every residue's trace atom."""
        structure = self.polymer.structure
        radius_factory = RadiusFactory(radius_type, scale)

        size = np.zeros(self.size, dtype=np.float32)
        ap = structure.get_atom_proxy()
        for i, index in enumerate(self._trace_atom_indices()):
            ap.index = int(index)
            size[i] = radius_factory.atom_radius(ap)

        return {"size": size}

    def get_position(self) -> Dict[str, np.ndarray]:
        """
        Per-residue helix descriptors.

        Returns:
            dict with float32 arrays
                center: (n, 3) points on the local helix axis
                axis: (n, 3) unit axis directions
                resdir: (n, 3) trace atom minus center
                radius, rise, twist, bending: (n,) values; angles in
                degrees, zero where no window covers the residue
        """
        n = self.size
        result = {
            "center": np.zeros((n, 3), dtype=np.float32),
            "axis": np.zeros((n, 3), dtype=np.float32),
            "resdir": np.zeros((n, 3), dtype=np.float32),
            "radius": np.zeros(n, dtype=np.float32),
            "rise": np.zeros(n, dtype=np.float32),
            "twist": np.zeros(n, dtype=np.float32),
            "bending": np.zeros(n, dtype=np.float32),
        }
        if n < 4:
            logger.warning("Helixorient.get_position: need at least 4 residues, got %d", n)
            return result

        trace = self.polymer.get_positions(self._trace_atom_indices())

        # one window per i = 0 .. n - 4 over trace atoms i .. i + 3
        a1, a2, a3, a4 = trace[:-3], trace[1:-2], trace[2:-1], trace[3:]

        r12 = a2 - a1
        r23 = a3 - a2
        r34 = a4 - a3

        diff13 = r12 - r23
        diff24 = r23 - r34

        axis = normalize_rows(np.cross(diff13, diff24))

        angle = angle_between_rows(diff13, diff24)
        cos_angle = np.cos(angle)
        twist = angle * RADDEG

        diff13_length = np.linalg.norm(diff13, axis=1)
        diff24_length = np.linalg.norm(diff24, axis=1)

        # clamped denominator, unstable for angles near 0 otherwise
        radius = np.sqrt(diff24_length * diff13_length) / np.maximum(2.0, 2.0 * (1.0 - cos_angle))

        rise = np.abs(np.einsum("ij,ij->i", r23, axis))

        scale13 = np.divide(radius, diff13_length, out=np.zeros_like(radius), where=diff13_length > 0)
        scale24 = np.divide(radius, diff24_length, out=np.zeros_like(radius), where=diff24_length > 0)
        v1 = a2 - diff13 * scale13[:, None]
        v2 = a3 - diff24 * scale24[:, None]

        center = np.zeros((n, 3))
        center[1:n - 2] = v1
        center[n - 2] = v2[-1]

        # the ends have no window: project the end trace atoms onto the
        # line through their two neighbouring centers
        end_axis = normalize(center[1] - center[2])
        center[0] = point_vector_intersection(trace[0], center[1], end_axis)
        end_axis = normalize(center[n - 2] - center[n - 3])
        center[n - 1] = point_vector_intersection(trace[n - 1], center[n - 2], end_axis)

        resdir = trace - center

        res_radius = np.zeros(n)
        res_twist = np.zeros(n)
        res_rise = np.zeros(n)
        res_bending = np.zeros(n)
        res_axis = np.zeros((n, 3))

        res_radius[1] = radius[0]
        res_twist[1] = twist[0]
        res_rise[1] = rise[0]

        if n > 4:
            res_radius[2:n - 2] = 0.5 * (radius[:-1] + radius[1:])
            res_twist[2:n - 2] = 0.5 * (twist[:-1] + twist[1:])
            res_rise[2:n - 2] = 0.5 * (rise[:-1] + rise[1:])
            res_bending[2:n - 2] = angle_between_rows(axis[:-1], axis[1:]) * RADDEG
            res_axis[2:n - 2] = normalize_rows(0.5 * (axis[:-1] + axis[1:]))

        res_radius[n - 2] = radius[n - 4]
        res_twist[n - 2] = twist[n - 4]
        res_rise[n - 2] = rise[n - 4]

        res_axis[0] = axis[0]
        res_axis[1] = axis[0]
        res_axis[n - 2] = axis[n - 4]
        res_axis[n - 1] = axis[n - 4]

        result["center"][:] = center
        result["axis"][:] = res_axis
        result["resdir"][:] = resdir
        result["radius"][:] = res_radius
        result["rise"][:] = res_rise
        result["twist"][:] = res_twist
        result["bending"][:] = res_bending
        return result

    def __repr__(self) -> str:
        return f"Helixorient({self.polymer!r})"
