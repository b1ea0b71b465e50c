"""Organized point clouds co-registered with the color image."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

import cv2
import numpy as np


class PointLookup(Protocol):
    """Anything that maps a pixel (column ``u``, row ``v``) to a 3D point."""

    @property
    def shape(self) -> tuple[int, int]: ...

    def lookup(self, u: int, v: int) -> Optional[np.ndarray]: ...


@dataclass
class OrganizedCloud:
    """Per-pixel XYZ coordinates, shape (H, W, 3).

    Entries with a non-finite coordinate are invalid. ``valid`` optionally
    masks out further entries.
    """

    points: np.ndarray
    valid: np.ndarray | None = None

    def __post_init__(self) -> None:
        self.points = np.asarray(self.points, dtype=np.float64)
        if self.points.ndim != 3 or self.points.shape[2] != 3:
            raise ValueError(f"Organized cloud must have shape (H, W, 3), got {self.points.shape}")
        mask = np.isfinite(self.points).all(axis=2)
        if self.valid is not None:
            valid = np.asarray(self.valid, dtype=bool)
            if valid.shape != mask.shape:
                raise ValueError("Validity mask must match the cloud resolution")
            mask &= valid
        self.valid = mask

    @property
    def shape(self) -> tuple[int, int]:
        return int(self.points.shape[0]), int(self.points.shape[1])

    def lookup(self, u: int, v: int) -> Optional[np.ndarray]:
        h, w = self.shape
        if not (0 <= u < w and 0 <= v < h):
            return None
        if not self.valid[v, u]:
            return None
        return self.points[v, u].copy()

    @classmethod
    def from_depth(
        cls,
        depth: np.ndarray,
        camera_matrix: np.ndarray,
        dist_coeffs: np.ndarray | None = None,
        *,
        depth_scale: float = 1.0,
        min_depth: float | None = None,
        max_depth: float | None = None,
    ) -> "OrganizedCloud":
        """Back-project a depth image registered to the color camera."""

        if depth.ndim != 2:
            raise ValueError("Depth input must be a 2-D array")

        scaled = depth.astype(np.float64) * float(depth_scale)
        mask = np.isfinite(scaled) & (scaled > 0)
        if min_depth is not None:
            mask &= scaled >= float(min_depth)
        if max_depth is not None:
            mask &= scaled <= float(max_depth)

        h, w = depth.shape
        points = np.full((h, w, 3), np.nan, dtype=np.float64)
        ys, xs = np.nonzero(mask)
        if len(xs) == 0:
            return cls(points)

        K = np.asarray(camera_matrix, dtype=np.float64).reshape(3, 3)
        dist = np.zeros((5, 1)) if dist_coeffs is None else np.asarray(dist_coeffs, dtype=np.float64).reshape(-1, 1)
        pixels = np.column_stack((xs, ys)).astype(np.float64).reshape(-1, 1, 2)
        normalized = cv2.undistortPoints(pixels, K, dist).reshape(-1, 2)

        z = scaled[ys, xs]
        points[ys, xs, 0] = normalized[:, 0] * z
        points[ys, xs, 1] = normalized[:, 1] * z
        points[ys, xs, 2] = z
        return cls(points)


def load_cloud(path: str | Path) -> OrganizedCloud:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Point cloud not found: {path}")
    if path.suffix == ".npz":
        with np.load(path) as data:
            key = "points" if "points" in data else data.files[0]
            points = data[key]
        return OrganizedCloud(points)
    return OrganizedCloud(np.load(path))


def save_points(path: str | Path, points: np.ndarray) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    np.savez_compressed(path, points=np.asarray(points, dtype=np.float64))
