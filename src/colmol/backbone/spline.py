"""
Backbone spline through the trace atoms of a polymer.

Every residue interval is sampled ``m`` times with a tensioned
Catmull-Rom curve over the window of four neighbouring trace atoms; one
closing sample sits on the last trace atom (on the first one for cyclic
polymers, which get an extra interval wrapping around). All outputs are
(N, 3) or (N,) float32 arrays with ``N = (n - 1) * m + 1`` samples, or
``n * m + 1`` when cyclic.
"""

import math
from typing import Dict, Optional

import numpy as np

from colmol.core.constants import (
    ARROW_CODES,
    ARROW_SCALE,
    NUCLEIC_SPLINE_TENSION,
    SPLINE_DELTA,
    SPLINE_TENSION,
)
from colmol.core.geometry import normalize, normalize_rows
from colmol.schemes.colormaker import ColorMaker
from colmol.schemes.radius import RadiusFactory


class Spline:
    """
    Args:
        polymer: Polymer to interpolate
        arrows: Widen the last residue of each helix/strand into an arrow
            head in ``get_subdivided_size``
    """

    def __init__(self, polymer, arrows: bool = False):
        self.polymer = polymer
        self.size = polymer.residue_count
        self.arrows = arrows
        self.tension = NUCLEIC_SPLINE_TENSION if polymer.is_nucleic() else SPLINE_TENSION

    @staticmethod
    def interpolate(p0, p1, p2, p3, t, tension: float):
        """
        Tensioned Catmull-Rom interpolation between ``p1`` and ``p2``.

        Works on scalars and broadcasts over numpy arrays.
        """
        v0 = (p2 - p0) * tension
        v1 = (p3 - p1) * tension
        t2 = t * t
        t3 = t * t2
        return (
            (2 * p1 - 2 * p2 + v0 + v1) * t3
            + (-3 * p1 + 3 * p2 - 2 * v0 - v1) * t2
            + v0 * t
            + p1
        )

    @property
    def window_count(self) -> int:
        """Number of sampled residue intervals."""
        n1 = self.size - 1
        return n1 + 1 if self.polymer.is_cyclic else n1

    def sample_count(self, m: int) -> int:
        return self.window_count * m + 1

    def _check_subdiv(self, m: int):
        if m < 1:
            raise ValueError(f"subdivision factor must be positive, got {m}")

    def _tension(self, tension: Optional[float]) -> float:
        if tension is None or (isinstance(tension, float) and math.isnan(tension)):
            return self.tension
        return tension

    def _control_indices(self, atom_type: str) -> np.ndarray:
        """
        Atom indices for local positions ``-1 .. window_count + 1``.

        Window ``i`` uses entries ``i .. i + 3``. Missing atoms fall back to
        the residue's trace atom.
        """
        polymer = self.polymer
        indices = []
        for i in range(-1, self.window_count + 2):
            index = polymer.get_atom_index_by_type(i, atom_type)
            if index < 0:
                index = polymer.get_atom_index_by_type(i, "trace")
            indices.append(index)
        return np.array(indices, dtype=np.int64)

    def _control_points(self, atom_type: str) -> np.ndarray:
        return self.polymer.get_positions(self._control_indices(atom_type))

    def _evaluate(self, points: np.ndarray, t: np.ndarray, tension: float) -> np.ndarray:
        """
        Evaluate every window of ``points`` at the parameters ``t``.

        Returns:
            (window_count * len(t), 3) array, window-major
        """
        nw = self.window_count
        p0, p1, p2, p3 = (points[k:k + nw][:, None, :] for k in range(4))
        return self.interpolate(p0, p1, p2, p3, t[None, :, None], tension).reshape(-1, 3)

    def get_position(self, m: int, tension: Optional[float] = None,
                     atom_type: str = "trace") -> np.ndarray:
        """
        Sampled curve positions.

        Args:
            m: Samples per residue interval
            tension: Curve tension, defaults to the polymer's
            atom_type: "trace" or an atom name to interpolate instead

        Returns:
            (N, 3) float32 positions
        """
        self._check_subdiv(m)
        tension = self._tension(tension)
        points = self._control_points(atom_type)

        t = np.arange(m, dtype=np.float64) / m
        pos = np.empty((self.sample_count(m), 3), dtype=np.float32)
        pos[:-1] = self._evaluate(points, t, tension)
        pos[-1] = points[self.window_count + 1]
        return pos

    def get_tangent(self, m: int, tension: Optional[float] = None,
                    atom_type: str = "trace") -> np.ndarray:
        """
        Unit tangents by central differences at ``t -/+ 1e-4``, clamped to
        the interval. The closing sample repeats the last tangent.
        """
        self._check_subdiv(m)
        tension = self._tension(tension)
        points = self._control_points(atom_type)

        t = np.arange(m, dtype=np.float64) / m
        t1 = np.clip(t - SPLINE_DELTA, 0.0, 1.0)
        t2 = np.clip(t + SPLINE_DELTA, 0.0, 1.0)

        tan = np.empty((self.sample_count(m), 3), dtype=np.float32)
        tan[:-1] = normalize_rows(self._evaluate(points, t2, tension) - self._evaluate(points, t1, tension))
        tan[-1] = tan[-2]
        return tan

    def _direction_points(self):
        """
        Direction atom positions with orientation made continuous.

        The difference ``direction2 - direction1`` of each residue is
        flipped whenever it points against the previous (already
        corrected) one.
        """
        d1 = self._control_points("direction1")
        d2 = self._control_points("direction2")

        sub = d2 - d1
        for k in range(1, len(sub)):
            if np.dot(sub[k - 1], sub[k]) < 0:
                sub[k] = -sub[k]

        return d1, d1 + sub

    def get_normals(self, m: int, tension: Optional[float] = None,
                    tan: Optional[np.ndarray] = None) -> Dict[str, np.ndarray]:
        """
        Normal and binormal frames along the curve.

        Frames follow the interpolated direction atoms. Coarse-grained
        polymers have none and propagate the previous normal instead,
        starting from the z axis. Full protein frames are shifted by half
        a residue interval; the first ``ceil(m / 2)`` samples then repeat
        the first shifted frame since the shift would need one more
        preceding residue.

        Returns:
            dict with "normal" and "binormal" (N, 3) float32 arrays
        """
        self._check_subdiv(m)
        tension = self._tension(tension)
        if tan is None:
            tan = self.get_tangent(m, tension)
        tan = np.asarray(tan, dtype=np.float64).reshape(-1, 3)

        polymer = self.polymer
        n_samples = self.sample_count(m)
        n_inner = n_samples - 1
        m2 = int(math.ceil(m / 2))

        norm = np.zeros((n_samples, 3), dtype=np.float32)
        binorm = np.zeros((n_samples, 3), dtype=np.float32)

        if polymer.is_cg():
            v_norm = np.array([0.0, 0.0, 1.0])
            v_bin = np.zeros(3)
            for s in range(n_inner):
                v_bin = normalize(np.cross(v_norm, tan[s]))
                v_norm = normalize(np.cross(tan[s], v_bin))
                binorm[s] = v_bin
                norm[s] = v_norm
            binorm[n_inner] = v_bin
            norm[n_inner] = v_norm
            return {"normal": norm, "binormal": binorm}

        d1, d2 = self._direction_points()
        t = np.arange(m, dtype=np.float64) / m
        v_dir = normalize_rows(self._evaluate(d2, t, tension) - self._evaluate(d1, t, tension))

        shift = m2 if polymer.is_protein() else 0
        target = np.arange(n_inner) + shift
        keep = target < n_samples
        target = target[keep]
        v_dir = v_dir[keep]

        v_tan = tan[target]
        v_bin = normalize_rows(np.cross(v_dir, v_tan))
        v_norm = normalize_rows(np.cross(v_tan, v_bin))
        binorm[target] = v_bin
        norm[target] = v_norm

        if shift:
            binorm[:m2] = binorm[m2]
            norm[:m2] = norm[m2]
        else:
            binorm[n_inner] = binorm[n_inner - 1]
            norm[n_inner] = norm[n_inner - 1]

        return {"normal": norm, "binormal": binorm}

    def get_subdivided_position(self, m: int, tension: Optional[float] = None) -> Dict[str, np.ndarray]:
        return {"position": self.get_position(m, tension)}

    def get_subdivided_orientation(self, m: int, tension: Optional[float] = None) -> Dict[str, np.ndarray]:
        tan = self.get_tangent(m, tension)
        normals = self.get_normals(m, tension, tan)
        return {
            "tangent": tan,
            "normal": normals["normal"],
            "binormal": normals["binormal"],
        }

    def _interval_trace_atoms(self):
        """(first, second) trace atom index of every sampled interval."""
        polymer = self.polymer
        n = self.size
        trace = [polymer.get_atom_index_by_type(i, "trace") for i in range(n)]
        pairs = [(trace[i], trace[i + 1]) for i in range(n - 1)]
        if polymer.is_cyclic:
            pairs.append((trace[n - 1], trace[0]))
        return pairs

    def get_subdivided_color(self, m: int, color_maker: Optional[ColorMaker] = None,
                             picking_color_maker: Optional[ColorMaker] = None,
                             interpolate: bool = False) -> Dict[str, np.ndarray]:
        """
        Per-sample colours.

        The first ``ceil(m / 2)`` samples of an interval take the colour of
        its first residue, the rest that of the second; the closing sample
        repeats the previous one.

        Args:
            m: Samples per residue interval
            color_maker: Display colour policy (white by default)
            picking_color_maker: Picking colour policy; zeros when omitted
            interpolate: Blend the display colour linearly across each
                interval instead of switching halfway

        Returns:
            dict with "color" and "picking_color" (N, 3) float32 arrays
        """
        self._check_subdiv(m)
        structure = self.polymer.structure
        if color_maker is None:
            color_maker = ColorMaker(structure)

        n_samples = self.sample_count(m)
        col = np.zeros(n_samples * 3, dtype=np.float32)
        pcol = np.zeros(n_samples * 3, dtype=np.float32)
        mh = int(math.ceil(m / 2))

        ap1 = structure.get_atom_proxy()
        ap2 = structure.get_atom_proxy()
        c1 = np.zeros(3, dtype=np.float32)
        c2 = np.zeros(3, dtype=np.float32)

        k = 0
        for index1, index2 in self._interval_trace_atoms():
            ap1.index = index1
            ap2.index = index2

            if interpolate:
                color_maker.atom_color_to_array(ap1, c1)
                color_maker.atom_color_to_array(ap2, c2)
                for j in range(m):
                    t = j / m
                    col[(k + j) * 3:(k + j) * 3 + 3] = (1 - t) * c1 + t * c2
            else:
                for j in range(m):
                    color_maker.atom_color_to_array(ap1 if j < mh else ap2, col, (k + j) * 3)

            if picking_color_maker is not None:
                for j in range(m):
                    picking_color_maker.atom_color_to_array(ap1 if j < mh else ap2, pcol, (k + j) * 3)

            k += m

        col[k * 3:k * 3 + 3] = col[(k - 1) * 3:k * 3]
        pcol[k * 3:k * 3 + 3] = pcol[(k - 1) * 3:k * 3]

        return {"color": col.reshape(-1, 3), "picking_color": pcol.reshape(-1, 3)}

    def get_subdivided_size(self, m: int, radius_type="sstruc", scale: float = 1.0) -> Dict[str, np.ndarray]:
        """
        Per-sample sizes, linearly interpolated across each interval.

        With ``arrows`` on, an interval leaving a helix or strand starts at
        1.7 times the first residue's size and reaches the second residue's
        size after ``ceil(m / 2)`` samples.

        Returns:
            dict with "size", an (N,) float32 array
        """
        self._check_subdiv(m)
        structure = self.polymer.structure
        radius_factory = RadiusFactory(radius_type, scale)

        size = np.zeros(self.sample_count(m), dtype=np.float32)
        m2 = int(math.ceil(m / 2))

        ap1 = structure.get_atom_proxy()
        ap2 = structure.get_atom_proxy()

        k = 0
        for index1, index2 in self._interval_trace_atoms():
            ap1.index = index1
            ap2.index = index2

            s1 = radius_factory.atom_radius(ap1)
            s2 = radius_factory.atom_radius(ap2)
            sstruc1 = ap1.sstruc

            if self.arrows and sstruc1 and sstruc1 in ARROW_CODES and ap2.sstruc != sstruc1:
                s1 *= ARROW_SCALE
                for j in range(m2):
                    t = j / m2
                    size[k + j] = (1 - t) * s1 + t * s2
                size[k + m2:k + m] = s2
            else:
                for j in range(m):
                    t = j / m
                    size[k + j] = (1 - t) * s1 + t * s2

            k += m

        size[k] = size[k - 1]
        return {"size": size}

    def __repr__(self) -> str:
        return f"Spline({self.polymer!r}, tension={self.tension})"
