"""Split board points into candidate sets for the a1, a8 and h1 corners."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

CANDIDATE_MARGIN = 0.05


@dataclass(frozen=True)
class CornerCandidates:
    """Indices into the board point array, one array per reference corner."""

    a1: np.ndarray
    a8: np.ndarray
    h1: np.ndarray

    @property
    def sizes(self) -> tuple[int, int, int]:
        return len(self.a1), len(self.a8), len(self.h1)

    @property
    def empty(self) -> bool:
        return min(self.sizes) == 0

    @property
    def combinations(self) -> int:
        a, b, c = self.sizes
        return a * b * c


def _indices(selector: np.ndarray) -> np.ndarray:
    return np.flatnonzero(selector).astype(np.intp)


def select_corner_candidates(points: np.ndarray, margin: float = CANDIDATE_MARGIN) -> CornerCandidates:
    """Bucket points by their offset from the centroid (x right, y down).

    a1 is lower-left, a8 upper-left and h1 lower-right. Points in the
    upper-right quadrant or within ``margin`` of the centroid on either
    axis belong to no set.
    """

    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if len(points) == 0:
        none = np.empty(0, dtype=np.intp)
        return CornerCandidates(none, none.copy(), none.copy())

    cx, cy = points[:, :2].mean(axis=0)
    x = points[:, 0]
    y = points[:, 1]
    left = x < cx - margin
    right = x > cx + margin
    down = y > cy + margin
    up = y < cy - margin

    return CornerCandidates(
        a1=_indices(left & down),
        a8=_indices(left & up),
        h1=_indices(right & down),
    )
