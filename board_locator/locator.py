"""Per-frame checkerboard localisation.

Detection proceeds as follows:

1. A single color channel is thresholded, opened, and run through Canny.
2. A probabilistic Hough transform finds straight segments, which are
   split into horizontal and vertical groups.
3. Each horizontal/vertical crossing is looked up in the organized cloud
   and near-duplicate 3D points are merged.
4. Points are bucketed around their centroid into a1, a8 and h1 candidates.
5. Every candidate triple is fitted to the ideal board and scored against
   the interior grid; the lowest score wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Sequence

import cv2
import numpy as np

from .board import DEFAULT_BOARD, BoardModel
from .candidates import CornerCandidates, select_corner_candidates
from .config import LocatorConfig
from .features import LineSegment, build_feature_mask, extract_lines
from .intersections import locate_board_points
from .pose import BoardPose, FramePair, make_board_pose
from .search import PoseFit, search_pose

logger = logging.getLogger(__name__)


class NoSolutionError(RuntimeError):
    """Raised when a pose is required but the frame produced none."""


@dataclass
class LocatorResult:
    """Working data and outcome of one frame."""

    frame_id: str
    stamp: float
    mask: Optional[np.ndarray] = None
    lines: list[LineSegment] = field(default_factory=list)
    board_points: np.ndarray = field(default_factory=lambda: np.empty((0, 3)))
    candidates: Optional[CornerCandidates] = None
    fit: Optional[PoseFit] = None
    pose: Optional[BoardPose] = None
    error: Optional[str] = None

    @property
    def solved(self) -> bool:
        return self.pose is not None

    def require_pose(self) -> BoardPose:
        if self.pose is None:
            reason = self.error or "insufficient corner candidates"
            raise NoSolutionError(f"No board pose for frame {self.frame_id} @ {self.stamp}: {reason}")
        return self.pose


class ChessBoardLocator:
    """Locates the board in aligned image/cloud pairs."""

    def __init__(self, config: LocatorConfig | None = None, board: BoardModel | None = None):
        self.config = config or LocatorConfig()
        self.board = board or DEFAULT_BOARD
        logger.info(
            "Hough rho: %s, threshold: %d, min length: %d",
            self.config.hough_rho,
            self.config.hough_threshold,
            self.config.hough_min_length,
        )

    def locate(self, frame: FramePair) -> LocatorResult:
        mask = build_feature_mask(frame.image, self.config)
        lines = extract_lines(mask, self.config)
        result = self.solve(lines, frame)
        result.mask = mask
        return result

    def solve(self, lines: Sequence[LineSegment], frame: FramePair) -> LocatorResult:
        """Run the pipeline from already extracted line segments."""

        points = locate_board_points(lines, frame.cloud, threshold=self.config.dedup_threshold)
        candidates = select_corner_candidates(points, self.config.candidate_margin)
        result = LocatorResult(
            frame_id=frame.frame_id,
            stamp=frame.stamp,
            lines=list(lines),
            board_points=points,
            candidates=candidates,
        )

        fit = search_pose(points, candidates, self.board)
        if fit is None:
            logger.warning(
                "No solution for frame %s: %d lines, %d board points, candidates a1/a8/h1 = %s",
                frame.frame_id,
                len(lines),
                len(points),
                candidates.sizes,
            )
            return result

        result.fit = fit
        result.pose = make_board_pose(fit, frame, points, include_points=self.config.include_points)
        logger.debug("Board pose for frame %s, score %.6f", frame.frame_id, fit.score)
        return result

    def locate_many(self, frames: Iterable[FramePair]) -> Iterator[LocatorResult]:
        """Process frames one at a time; a failing frame does not stop the rest."""
        for frame in frames:
            try:
                result = self.locate(frame)
            except (ValueError, cv2.error) as exc:
                logger.error("Skipping frame %s: %s", frame.frame_id, exc)
                result = LocatorResult(frame_id=frame.frame_id, stamp=frame.stamp, error=str(exc))
            yield result
