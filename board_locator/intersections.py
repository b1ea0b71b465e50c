"""Line intersections lifted into 3D board points."""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

import numpy as np

from .cloud import PointLookup
from .features import LineSegment, split_lines

logger = logging.getLogger(__name__)

DEDUP_THRESHOLD = 0.03


def find_intersection(
    a: LineSegment,
    b: LineSegment,
    image_size: tuple[int, int],
) -> Optional[tuple[int, int]]:
    """Pixel where the infinite lines through ``a`` and ``b`` cross.

    ``image_size`` is (width, height). Returns ``None`` for lines with an
    undefined slope, for parallel lines and for points outside the image.
    """

    if a.dx == 0 or b.dx == 0:
        return None
    ma = a.dy / a.dx
    mb = b.dy / b.dx
    if ma == mb:
        return None
    ba = a.y1 - ma * a.x1
    bb = b.y1 - mb * b.x1

    x = (bb - ba) / (ma - mb)
    y = ma * x + ba

    width, height = image_size
    if 0 <= x < width and 0 <= y < height:
        return int(x), int(y)
    return None


class Deduplicator(Protocol):
    """Near-duplicate insertion: keeps the first point of each cluster."""

    def insert(self, point: np.ndarray) -> bool: ...

    def __len__(self) -> int: ...

    @property
    def points(self) -> np.ndarray: ...


class LinearScanDeduplicator:
    """Rejects a point whose L1 distance to a kept point is <= ``threshold``."""

    def __init__(self, threshold: float = DEDUP_THRESHOLD):
        if threshold < 0:
            raise ValueError("threshold must be >= 0")
        self.threshold = float(threshold)
        self._points: list[np.ndarray] = []

    def insert(self, point: np.ndarray) -> bool:
        point = np.asarray(point, dtype=np.float64).reshape(3)
        for kept in self._points:
            if np.abs(kept - point).sum() <= self.threshold:
                return False
        self._points.append(point)
        return True

    def __len__(self) -> int:
        return len(self._points)

    @property
    def points(self) -> np.ndarray:
        if not self._points:
            return np.empty((0, 3), dtype=np.float64)
        return np.vstack(self._points)


def locate_board_points(
    lines: Sequence[LineSegment],
    cloud: PointLookup,
    *,
    threshold: float = DEDUP_THRESHOLD,
    deduplicator: Deduplicator | None = None,
) -> np.ndarray:
    """Deduplicated 3D points at every horizontal/vertical line crossing."""

    height, width = cloud.shape
    dedup = deduplicator if deduplicator is not None else LinearScanDeduplicator(threshold)
    horizontal, vertical = split_lines(lines)

    crossings = 0
    for hl in horizontal:
        for vl in vertical:
            pixel = find_intersection(hl, vl, (width, height))
            if pixel is None:
                continue
            point = cloud.lookup(*pixel)
            if point is None:
                continue
            crossings += 1
            dedup.insert(point)

    logger.debug("Created data cloud of size %d from %d valid intersections", len(dedup), crossings)
    return dedup.points
