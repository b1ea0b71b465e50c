"""Exhaustive search over corner triples for the best rigid board fit."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import reduce
from itertools import product
from typing import Iterable, Iterator, Optional

import numpy as np

from .board import DEFAULT_BOARD, BoardModel
from .candidates import CornerCandidates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoseFit:
    """Rigid transform taking camera-frame points into the board frame."""

    transform: np.ndarray
    score: float
    triple: tuple[int, int, int]


def estimate_rigid_transform(source: np.ndarray, target: np.ndarray) -> np.ndarray:
    """Least-squares rotation and translation with ``target ~ R @ source + t``.

    Returns a 4x4 homogeneous matrix. Reflections are corrected so ``R`` is
    always a proper rotation.
    """

    source = np.asarray(source, dtype=np.float64)
    target = np.asarray(target, dtype=np.float64)
    if source.shape != target.shape or source.ndim != 2 or source.shape[1] != 3:
        raise ValueError("source and target must both have shape (N, 3)")
    if source.shape[0] < 3:
        raise ValueError("At least three correspondences are required")

    src_c = source.mean(axis=0)
    dst_c = target.mean(axis=0)
    H = (source - src_c).T @ (target - dst_c)
    U, _, Vt = np.linalg.svd(H)
    D = np.eye(3)
    if np.linalg.det(Vt.T @ U.T) < 0:
        D[2, 2] = -1.0
    R = Vt.T @ D @ U.T
    t = dst_c - R @ src_c

    T = np.eye(4)
    T[:3, :3] = R
    T[:3, 3] = t
    return T


def transform_points(transform: np.ndarray, points: np.ndarray) -> np.ndarray:
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    T = np.asarray(transform, dtype=np.float64)
    return points @ T[:3, :3].T + T[:3, 3]


def fit_score(points: np.ndarray, transform: np.ndarray, board: BoardModel = DEFAULT_BOARD) -> float:
    """Sum of squared distances from each transformed point to its nearest grid point."""

    moved = transform_points(transform, points)
    if len(moved) == 0:
        return 0.0
    grid = board.grid_points()
    d2 = ((moved[:, None, :] - grid[None, :, :]) ** 2).sum(axis=2)
    return float(d2.min(axis=1).sum())


def iter_triples(candidates: CornerCandidates) -> Iterator[tuple[int, int, int]]:
    """Every (a1, a8, h1) index triple, a1 outermost."""
    for i, j, k in product(candidates.a1, candidates.a8, candidates.h1):
        yield int(i), int(j), int(k)


def evaluate_triple(
    points: np.ndarray,
    triple: tuple[int, int, int],
    board: BoardModel = DEFAULT_BOARD,
) -> PoseFit:
    corners = points[list(triple)]
    transform = estimate_rigid_transform(corners, board.reference_corners())
    return PoseFit(transform=transform, score=fit_score(points, transform, board), triple=triple)


def _keep_better(best: Optional[PoseFit], fit: PoseFit) -> PoseFit:
    if best is None or fit.score < best.score:
        return fit
    return best


def select_best(fits: Iterable[PoseFit]) -> Optional[PoseFit]:
    """Lowest-scoring fit; on equal scores the earlier one is kept."""
    return reduce(_keep_better, fits, None)


def search_pose(
    points: np.ndarray,
    candidates: CornerCandidates,
    board: BoardModel = DEFAULT_BOARD,
) -> Optional[PoseFit]:
    """Best fit over all candidate triples, or ``None`` if a set is empty."""

    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if candidates.empty:
        logger.debug("No candidates for at least one corner: sizes %s", candidates.sizes)
        return None

    logger.debug("Evaluating %d candidates", candidates.combinations)
    best = select_best(evaluate_triple(points, triple, board) for triple in iter_triples(candidates))
    if best is not None:
        logger.debug("final score %f", best.score)
    return best
