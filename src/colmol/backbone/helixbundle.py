"""
Split a polymer into straight helix segments.
"""

import logging
from typing import Dict, List, Optional

import numpy as np

from colmol.backbone.helix import Helix
from colmol.backbone.helixorient import Helixorient
from colmol.core.constants import HELIX_CENTER_DIST, HELIX_LOCAL_ANGLE, HELIX_MIN_RESIDUES
from colmol.core.geometry import calc_distance, calculate_mean_vector, normalize, point_vector_intersection
from colmol.schemes.colormaker import ColorMaker
from colmol.schemes.radius import RadiusFactory

logger = logging.getLogger(__name__)


class Helixbundle:
    """
    Args:
        polymer: Polymer to segment; local geometry comes from
            :class:`Helixorient`
    """

    def __init__(self, polymer):
        self.polymer = polymer
        self.helixorient = Helixorient(polymer)
        self.position = self.helixorient.get_position()

    def get_axis(self, local_angle: float = HELIX_LOCAL_ANGLE, center_dist: float = HELIX_CENTER_DIST,
                 ss_border: bool = False, color_maker: Optional[ColorMaker] = None,
                 picking_color_maker: Optional[ColorMaker] = None,
                 radius_type=None, scale: float = 1.0) -> Dict:
        """
        Walk the residues and cut a new segment wherever the helix breaks.

        A segment ends at the last residue, at a change of secondary
        structure (with ``ss_border``), where consecutive local centers are
        more than ``center_dist`` apart, or where the local bending exceeds
        ``local_angle`` degrees. Segments spanning fewer than 4 residue
        steps are dropped and the next segment starts where they ended.

        Args:
            local_angle: Bending threshold in degrees
            center_dist: Center distance threshold
            ss_border: Also split at secondary structure changes
            color_maker: Colours the segments by their last trace atom
            picking_color_maker: Picking colours, zeros when omitted
            radius_type: Radius type for the segment size (1.0 by default)
            scale: Radius scale

        Returns:
            dict with (k, 3) float32 ``axis`` (end - begin), ``center``,
            ``begin``, ``end``, ``color``, ``picking_color``, (k,) float32
            ``size`` and the per-segment ``residue_offset`` /
            ``residue_count`` lists
        """
        polymer = self.polymer
        structure = polymer.structure
        n = polymer.residue_count
        residue_index_start = polymer.residue_index_start
        pos = self.position

        if color_maker is None:
            color_maker = ColorMaker(structure)
        radius_factory = RadiusFactory(radius_type, scale)

        axis: List[np.ndarray] = []
        center: List[np.ndarray] = []
        beg: List[np.ndarray] = []
        end: List[np.ndarray] = []
        col: List[np.ndarray] = []
        pcol: List[np.ndarray] = []
        size: List[float] = []
        residue_offset: List[int] = []
        residue_count: List[int] = []

        rp1 = structure.get_residue_proxy()
        rp2 = structure.get_residue_proxy()
        ap = structure.get_atom_proxy()

        j = 0
        for i in range(n):
            rp1.index = residue_index_start + i
            c1 = pos["center"][i]

            if i == n - 1:
                split = True
            else:
                rp2.index = residue_index_start + i + 1
                c2 = pos["center"][i + 1]

                if ss_border and rp1.sstruc != rp2.sstruc:
                    split = True
                elif calc_distance(c1, c2) > center_dist:
                    split = True
                else:
                    split = pos["bending"][i] > local_angle

            if not split:
                continue

            if i - j < HELIX_MIN_RESIDUES:
                j = i
                continue

            ap.index = rp1.trace_atom_index

            # first and last axis are end artifacts
            seg_axis = normalize(calculate_mean_vector(pos["axis"][j + 1:i]))
            seg_centers = pos["center"][j:i + 1]
            seg_center = calculate_mean_vector(seg_centers)

            seg_beg = point_vector_intersection(seg_centers[0], seg_center, seg_axis)
            seg_end = point_vector_intersection(seg_centers[-1], seg_center, seg_axis)

            axis.append(seg_end - seg_beg)
            center.append(seg_center)
            beg.append(seg_beg)
            end.append(seg_end)

            col.append(color_maker.atom_color_to_array(ap))
            if picking_color_maker is not None:
                pcol.append(picking_color_maker.atom_color_to_array(ap))
            else:
                pcol.append(np.zeros(3, dtype=np.float32))

            size.append(radius_factory.atom_radius(ap))

            residue_offset.append(residue_index_start + j)
            residue_count.append(i + 1 - j)

            j = i

        logger.debug("Helixbundle.get_axis: %d segments in %d residues", len(axis), n)

        def as_rows(values):
            return np.array(values, dtype=np.float32).reshape(-1, 3)

        return {
            "axis": as_rows(axis),
            "center": as_rows(center),
            "begin": as_rows(beg),
            "end": as_rows(end),
            "color": as_rows(col),
            "picking_color": as_rows(pcol),
            "size": np.array(size, dtype=np.float32),
            "residue_offset": residue_offset,
            "residue_count": residue_count,
        }

    def get_helices(self, **params) -> List[Helix]:
        """``get_axis`` segments as :class:`Helix` objects."""
        axis = self.get_axis(**params)
        return [Helix.from_helixbundle_axis(axis, i) for i in range(len(axis["residue_count"]))]
