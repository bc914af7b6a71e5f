"""
Balanced k-d tree over 3D points.

Built once from a coordinate array (each point carries an integer
payload, by default its row index) and rebuilt whenever the source
coordinates change; there is no incremental insertion or deletion.
"""

import heapq
import logging
import math
import time
from typing import List, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

# Points per leaf bucket; leaves are scanned with numpy
LEAF_SIZE = 16


class Kdtree:
    """
    k-d tree with median splits, cycling through x, y, z by depth.

    Nodes live in flat lists (implicit layout): node ``k`` covers the
    permuted point range ``start[k]:end[k]``; inner nodes split on
    ``axis[k]`` at ``split[k]`` into ``left[k]`` / ``right[k]``.

    Args:
        points: (N, 3) coordinates
        payload: N integers returned with each hit (default: row index)
        use_squared_dist: Report and bound distances in squared units

    Example:
        >>> tree = Kdtree(coords)
        >>> tree.nearest(q, 1)          # closest point
        >>> tree.within(q, 3.5)         # all points within 3.5
    """

    def __init__(
        self,
        points: np.ndarray,
        payload: Optional[np.ndarray] = None,
        use_squared_dist: bool = False,
    ):
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        n = len(points)
        if payload is None:
            payload = np.arange(n, dtype=np.int64)
        payload = np.asarray(payload, dtype=np.int64)
        if len(payload) != n:
            raise ValueError(f"payload length {len(payload)} != point count {n}")

        self.use_squared_dist = use_squared_dist

        self._start: List[int] = []
        self._end: List[int] = []
        self._axis: List[int] = []
        self._split: List[float] = []
        self._left: List[int] = []
        self._right: List[int] = []

        start_time = time.perf_counter()
        self._order = np.arange(n, dtype=np.int64)
        self._raw_points = points
        if n:
            self._build(0, n, 0)

        self.points = points[self._order]
        self.payload = payload[self._order]
        logger.debug("kdtree: %d points, %d nodes in %.3fs",
                     n, len(self._start), time.perf_counter() - start_time)

    @classmethod
    def from_structure(cls, structure, selection=None, use_squared_dist: bool = False) -> "Kdtree":
        """Tree over the selected atoms of a structure; payload is the atom index."""
        atom_index = structure.atom_index(selection).astype(np.int64)
        positions = structure.atom_position(selection).reshape(-1, 3)
        return cls(positions, atom_index, use_squared_dist)

    def __len__(self) -> int:
        return len(self.points)

    def _new_node(self, start: int, end: int) -> int:
        self._start.append(start)
        self._end.append(end)
        self._axis.append(-1)
        self._split.append(0.0)
        self._left.append(-1)
        self._right.append(-1)
        return len(self._start) - 1

    def _build(self, start: int, end: int, depth: int) -> int:
        node = self._new_node(start, end)
        count = end - start
        if count <= LEAF_SIZE:
            return node

        axis = depth % 3
        segment = self._order[start:end]
        values = self._raw_points[segment, axis]
        median = count // 2
        part = np.argpartition(values, median)
        self._order[start:end] = segment[part]

        mid = start + median
        self._axis[node] = axis
        self._split[node] = float(self._raw_points[self._order[mid], axis])
        self._left[node] = self._build(start, mid, depth + 1)
        self._right[node] = self._build(mid, end, depth + 1)
        return node

    def nearest(
        self,
        point,
        max_nodes: float = 1,
        max_distance: float = math.inf,
    ) -> List[Tuple[int, float]]:
        """
        Up to ``max_nodes`` closest points within ``max_distance``.

        Args:
            point: Query coordinates [x, y, z]
            max_nodes: Maximum number of results (``math.inf`` for all)
            max_distance: Inclusive distance bound (squared when the tree
                uses squared distances)

        Returns:
            (payload, distance) tuples ordered by distance ascending
        """
        if len(self.points) == 0 or max_nodes <= 0:
            return []

        q = np.asarray(point, dtype=np.float64).reshape(3)
        squared = self.use_squared_dist
        # internal comparisons are always in squared units
        bound_sq = max_distance if squared else max_distance * max_distance
        if max_distance == math.inf:
            bound_sq = math.inf

        limited = max_nodes != math.inf
        heap: List[Tuple[float, int]] = []  # (-dist_sq, row) when limited

        def current_bound() -> float:
            if limited and len(heap) >= max_nodes:
                return min(bound_sq, -heap[0][0])
            return bound_sq

        def visit(node: int):
            left = self._left[node]
            if left < 0:
                start, end = self._start[node], self._end[node]
                diff = self.points[start:end] - q
                dist_sq = np.einsum("ij,ij->i", diff, diff)
                limit = current_bound()
                for offset in np.flatnonzero(dist_sq <= limit):
                    d = float(dist_sq[offset])
                    row = start + int(offset)
                    if limited:
                        if len(heap) < max_nodes:
                            heapq.heappush(heap, (-d, row))
                        elif d < -heap[0][0]:
                            heapq.heapreplace(heap, (-d, row))
                    else:
                        heap.append((d, row))
                return

            delta = q[self._axis[node]] - self._split[node]
            near, far = (left, self._right[node]) if delta < 0 else (self._right[node], left)
            visit(near)
            if delta * delta <= current_bound():
                visit(far)

        visit(0)

        if limited:
            hits = sorted((-d, row) for d, row in heap)
        else:
            hits = sorted(heap)

        if squared:
            return [(int(self.payload[row]), d) for d, row in hits]
        return [(int(self.payload[row]), math.sqrt(d)) for d, row in hits]

    def within(self, point, radius: float) -> List[Tuple[int, float]]:
        """All points within ``radius`` (squared radius for squared trees)."""
        return self.nearest(point, math.inf, radius)
