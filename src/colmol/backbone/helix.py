"""
Straight helix segments and their pairwise crossings.

A Helix is a finite line segment (begin, end) with the axis vector
``end - begin``. Crossing analysis finds the closest approach of two
such segments and how much they overlap along each other's axis.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from colmol.core.constants import EPSILON, HELIX_CROSSING_DIST, RADDEG
from colmol.core.geometry import calc_distance, is_point_on_segment, point_vector_intersection


@dataclass
class Crossing:
    """Result of :meth:`Helix.crossing`."""

    angle: float
    on_segment: List[bool]
    overlap: List[float]
    max_overlap: float
    line_contact: bool
    distance: float = float("inf")
    contact: bool = False
    p1: Optional[np.ndarray] = None
    p2: Optional[np.ndarray] = None


@dataclass
class Helix:
    begin: np.ndarray = field(default_factory=lambda: np.zeros(3))
    end: np.ndarray = field(default_factory=lambda: np.zeros(3))
    axis: np.ndarray = field(default_factory=lambda: np.zeros(3))
    center: np.ndarray = field(default_factory=lambda: np.zeros(3))
    residue_offset: int = 0
    residue_count: int = 0

    @property
    def length(self) -> float:
        return calc_distance(self.begin, self.end)

    @classmethod
    def from_helixbundle_axis(cls, axis: Dict, i: int) -> "Helix":
        """Helix ``i`` of a :meth:`Helixbundle.get_axis` result."""
        return cls(
            begin=np.asarray(axis["begin"][i], dtype=np.float64),
            end=np.asarray(axis["end"][i], dtype=np.float64),
            axis=np.asarray(axis["axis"][i], dtype=np.float64),
            center=np.asarray(axis["center"][i], dtype=np.float64),
            residue_offset=int(axis["residue_offset"][i]),
            residue_count=int(axis["residue_count"][i]),
        )

    def angle_to(self, helix: "Helix") -> float:
        """
        Angle between the two axes in radians, negated when they point
        in opposite directions.
        """
        s = np.linalg.norm(np.cross(self.axis, helix.axis))
        c = float(np.dot(self.axis, helix.axis))
        angle = float(np.arctan2(s, c))
        return -angle if c < 0 else angle

    def crossing_points(self, helix: "Helix") -> Tuple[np.ndarray, np.ndarray]:
        """
        Closest points of the two infinite axis lines.

        With U, V the axes, A1, B1 the begin points and W = U x V:
            X = A1 + dot(cross(B1 - A1, V), W) / dot(W, W) * U
            Y = B1 + dot(cross(B1 - A1, U), W) / dot(W, W) * V

        Parallel axes have no unique pair; ``self.begin`` and its
        projection onto the other line are returned instead.
        """
        w = np.cross(self.axis, helix.axis)
        v = helix.begin - self.begin
        dot_ww = float(np.dot(w, w))

        if dot_ww < EPSILON:
            x = np.array(self.begin, dtype=np.float64)
            return x, point_vector_intersection(x, helix.begin, helix.axis)

        dot_a = float(np.dot(np.cross(v, helix.axis), w))
        dot_b = float(np.dot(np.cross(v, self.axis), w))

        x = self.axis * (dot_a / dot_ww) + self.begin
        y = helix.axis * (dot_b / dot_ww) + helix.begin
        return x, y

    def distance_to(self, helix: "Helix") -> float:
        x, y = self.crossing_points(helix)
        return calc_distance(x, y)

    def crossing(self, helix: "Helix") -> Crossing:
        """
        Classify the contact between two helix segments.

        When the closest points of the axis lines lie on both segments the
        helices are in line contact at that distance. Otherwise the
        nearest of the candidate contacts is taken: each end point against
        its projection on the other axis (if that projection lies on the
        other segment) and, for roughly (anti)parallel overlapping
        helices, the end point pairs.
        """
        angle = self.angle_to(helix) * RADDEG
        cp = self.crossing_points(helix)

        line_contact = (
            is_point_on_segment(cp[0], self.begin, self.end)
            and is_point_on_segment(cp[1], helix.begin, helix.end)
        )

        i1 = point_vector_intersection(self.begin, helix.begin, helix.axis)
        i2 = point_vector_intersection(self.end, helix.begin, helix.axis)
        i3 = point_vector_intersection(helix.begin, self.begin, self.axis)
        i4 = point_vector_intersection(helix.end, self.begin, self.axis)

        c1 = is_point_on_segment(i1, helix.begin, helix.end)
        c2 = is_point_on_segment(i2, helix.begin, helix.end)
        c3 = is_point_on_segment(i3, self.begin, self.end)
        c4 = is_point_on_segment(i4, self.begin, self.end)

        overlap = [0.0, 0.0, 0.0, 0.0]

        if c1 and c2:
            overlap[0] = calc_distance(i1, i2)
        if c3 and c4:
            overlap[1] = calc_distance(i3, i4)
        if c1 and not c2:
            if calc_distance(i2, helix.begin) < calc_distance(i2, helix.end):
                overlap[2] = calc_distance(i1, helix.begin)
            else:
                overlap[2] = calc_distance(i1, helix.end)
        if not c1 and c2:
            if calc_distance(i1, helix.begin) < calc_distance(i1, helix.end):
                overlap[2] = calc_distance(i2, helix.begin)
            else:
                overlap[2] = calc_distance(i2, helix.end)
        if c3 and not c4:
            if calc_distance(i4, self.begin) < calc_distance(i4, self.end):
                overlap[3] = calc_distance(i3, self.begin)
            else:
                overlap[3] = calc_distance(i3, self.end)
        if not c3 and c4:
            if calc_distance(i3, self.begin) < calc_distance(i3, self.end):
                overlap[3] = calc_distance(i4, self.begin)
            else:
                overlap[3] = calc_distance(i4, self.end)

        max_overlap = max(overlap)

        result = Crossing(
            angle=angle,
            on_segment=[c1, c2, c3, c4],
            overlap=overlap,
            max_overlap=max_overlap,
            line_contact=line_contact,
        )

        if line_contact:
            result.distance = calc_distance(cp[0], cp[1])
            result.contact = True
            result.p1, result.p2 = cp
            return result

        candidates = []
        if angle > 120 or angle < 60:
            candidates += [
                (self.begin, i1, c1),
                (self.end, i2, c2),
                (helix.begin, i3, c3),
                (helix.end, i4, c4),
            ]
            if max_overlap > 0:
                candidates += [
                    (self.begin, helix.begin, True),
                    (self.begin, helix.end, True),
                    (self.end, helix.begin, True),
                    (self.end, helix.end, True),
                ]

        for p1, p2, contact in candidates:
            distance = calc_distance(p1, p2)
            if contact and distance < result.distance:
                result.distance = distance
                result.contact = True
                result.p1 = np.array(p1, dtype=np.float64)
                result.p2 = np.array(p2, dtype=np.float64)

        return result


class HelixCrossing:
    """
    Pairwise crossings of a list of helices.

    Args:
        helices: Helix segments, labelled H1, H2, ... in list order
    """

    def __init__(self, helices: List[Helix]):
        self.helices = helices

    def get_crossing(self, min_distance: float = HELIX_CROSSING_DIST) -> Dict:
        """
        Contacts between every unordered pair of helices closer than
        ``min_distance``.

        Returns:
            dict with
                helix_label: ["H1", "H2", ...]
                helix_center: (n, 3) float32 helix centers
                begin, end: (k, 3) float32 contact points on either helix
                info: list of dicts (helix1, helix2, angle, distance,
                    overlap) with 1-based helix numbers
        """
        helices = self.helices
        labels = []
        centers = []
        begin = []
        end = []
        info = []

        for i, h1 in enumerate(helices):
            labels.append(f"H{i + 1}")
            centers.append(h1.center)

            for j in range(i + 1, len(helices)):
                c = h1.crossing(helices[j])
                if c.contact and c.distance < min_distance:
                    info.append({
                        "helix1": i + 1,
                        "helix2": j + 1,
                        "angle": c.angle,
                        "distance": c.distance,
                        "overlap": c.max_overlap,
                    })
                    begin.append(c.p1)
                    end.append(c.p2)

        return {
            "helix_label": labels,
            "helix_center": np.array(centers, dtype=np.float32).reshape(-1, 3),
            "begin": np.array(begin, dtype=np.float32).reshape(-1, 3),
            "end": np.array(end, dtype=np.float32).reshape(-1, 3),
            "info": info,
        }
