"""
Geometric utility functions shared by the contact, spline and helix code.

All functions accept 3-element numpy arrays (or (N, 3) arrays where noted)
and degrade gracefully on zero-length input instead of producing NaN.
"""

import numpy as np
from typing import Optional, Tuple

from colmol.core.constants import EPSILON, RADDEG


def calc_distance(p1: np.ndarray, p2: np.ndarray) -> float:
    """
    Calculate Euclidean distance between two points.

    Args:
        p1: First point [x, y, z]
        p2: Second point [x, y, z]

    Returns:
        Distance between points
    """
    diff = np.asarray(p1, dtype=np.float64) - np.asarray(p2, dtype=np.float64)
    dist_sq = np.dot(diff, diff)
    if dist_sq > 0:
        return float(np.sqrt(dist_sq))
    return 0.0


def normalize(v: np.ndarray) -> np.ndarray:
    """
    Normalize a vector to unit length.

    Zero-length vectors are returned unchanged (as a copy).

    Args:
        v: Input vector

    Returns:
        Normalized vector (unit length)
    """
    v = np.asarray(v, dtype=np.float64)
    d = np.linalg.norm(v)
    if d > 0:
        return v / d
    return v.copy()


def normalize_rows(v: np.ndarray) -> np.ndarray:
    """
    Normalize every row of an (N, 3) array; zero rows stay zero.
    """
    v = np.asarray(v, dtype=np.float64)
    lengths = np.linalg.norm(v, axis=-1, keepdims=True)
    safe = np.where(lengths > 0, lengths, 1.0)
    return v / safe


def angle_between(v1: np.ndarray, v2: np.ndarray) -> float:
    """
    Angle between two vectors in radians.

    The cosine is clamped to [-1, 1] before ``arccos``; if either vector
    has zero length the angle is 0.
    """
    n1 = np.linalg.norm(v1)
    n2 = np.linalg.norm(v2)

    if n1 < EPSILON or n2 < EPSILON:
        return 0.0

    cos_angle = np.dot(v1, v2) / (n1 * n2)
    cos_angle = np.clip(cos_angle, -1.0, 1.0)

    return float(np.arccos(cos_angle))


def angle_between_rows(v1: np.ndarray, v2: np.ndarray) -> np.ndarray:
    """Row-wise version of :func:`angle_between` for (N, 3) arrays."""
    n1 = np.linalg.norm(v1, axis=1)
    n2 = np.linalg.norm(v2, axis=1)
    denom = n1 * n2
    valid = denom > EPSILON * EPSILON
    cos_angle = np.einsum("ij,ij->i", v1, v2) / np.where(valid, denom, 1.0)
    cos_angle = np.clip(cos_angle, -1.0, 1.0)
    return np.where(valid, np.arccos(cos_angle), 0.0)


def calc_angle(p1: np.ndarray, p2: np.ndarray, p3: np.ndarray) -> float:
    """
    Calculate angle at p2 formed by p1-p2-p3.

    Args:
        p1, p2, p3: Three points

    Returns:
        Angle in radians
    """
    return angle_between(np.asarray(p1) - np.asarray(p2), np.asarray(p3) - np.asarray(p2))


def angle_degrees(v1: np.ndarray, v2: np.ndarray) -> float:
    """Angle between two vectors in degrees."""
    return angle_between(v1, v2) * RADDEG


def point_vector_intersection(
    point: np.ndarray, origin: np.ndarray, vector: np.ndarray
) -> np.ndarray:
    """
    Project a point onto the line through ``origin`` along ``vector``.

    Args:
        point: Point to project
        origin: A point on the line
        vector: Direction of the line (need not be normalized)

    Returns:
        The foot of the perpendicular from ``point`` to the line
    """
    direction = normalize(vector)
    origin = np.asarray(origin, dtype=np.float64)
    return origin + direction * np.dot(np.asarray(point) - origin, direction)


def is_point_on_segment(p: np.ndarray, l1: np.ndarray, l2: np.ndarray) -> bool:
    """
    Whether a point lying on the line through l1 and l2 is inside the segment.
    """
    length = calc_distance(l1, l2)
    return calc_distance(p, l1) <= length and calc_distance(p, l2) <= length


def calculate_mean_vector(vectors: np.ndarray) -> np.ndarray:
    """Mean of a flat or (N, 3) array of 3-vectors."""
    vectors = np.asarray(vectors, dtype=np.float64).reshape(-1, 3)
    if len(vectors) == 0:
        return np.zeros(3)
    return vectors.mean(axis=0)


def bounding_box(coords: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Axis-aligned bounding box of an (N, 3) coordinate array.

    Returns:
        (min, max) corners; an empty input yields an inverted box
        (+inf, -inf) so that any point expands it.
    """
    coords = np.asarray(coords, dtype=np.float64).reshape(-1, 3)
    if len(coords) == 0:
        return np.full(3, np.inf), np.full(3, -np.inf)
    return coords.min(axis=0), coords.max(axis=0)


def calc_distance_matrix(coords: np.ndarray, other: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Calculate pairwise distance matrix.

    Args:
        coords: (N, 3) coordinates
        other: (M, 3) coordinates, ``coords`` itself when omitted

    Returns:
        (N, M) distance matrix
    """
    from scipy.spatial.distance import cdist

    coords = np.asarray(coords, dtype=np.float64).reshape(-1, 3)
    other = coords if other is None else np.asarray(other, dtype=np.float64).reshape(-1, 3)
    return cdist(coords, other)
