"""Checkerboard pose estimation from aligned color images and organized clouds."""

from .board import DEFAULT_BOARD, BoardModel
from .candidates import CornerCandidates, select_corner_candidates
from .cloud import OrganizedCloud, PointLookup, load_cloud, save_points
from .config import LocatorConfig, load_config
from .features import LineSegment, build_feature_mask, extract_lines, split_lines
from .intersections import (
    Deduplicator,
    LinearScanDeduplicator,
    find_intersection,
    locate_board_points,
)
from .locator import ChessBoardLocator, LocatorResult, NoSolutionError
from .pose import BoardPose, FramePair, make_board_pose
from .search import (
    PoseFit,
    estimate_rigid_transform,
    fit_score,
    iter_triples,
    search_pose,
    select_best,
    transform_points,
)

__all__ = [
    "DEFAULT_BOARD",
    "BoardModel",
    "BoardPose",
    "ChessBoardLocator",
    "CornerCandidates",
    "Deduplicator",
    "FramePair",
    "LineSegment",
    "LinearScanDeduplicator",
    "LocatorConfig",
    "LocatorResult",
    "NoSolutionError",
    "OrganizedCloud",
    "PointLookup",
    "PoseFit",
    "build_feature_mask",
    "estimate_rigid_transform",
    "extract_lines",
    "find_intersection",
    "fit_score",
    "iter_triples",
    "load_cloud",
    "load_config",
    "locate_board_points",
    "make_board_pose",
    "save_points",
    "search_pose",
    "select_best",
    "select_corner_candidates",
    "split_lines",
    "transform_points",
]
