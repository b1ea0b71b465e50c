"""Edge mask construction and straight line extraction."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import cv2
import numpy as np

from .config import HOUGH_MAX_GAP, HOUGH_THETA, LocatorConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineSegment:
    """A detected segment between two pixel endpoints."""

    x1: int
    y1: int
    x2: int
    y2: int

    @property
    def dx(self) -> int:
        return self.x2 - self.x1

    @property
    def dy(self) -> int:
        return self.y2 - self.y1

    @property
    def horizontal(self) -> bool:
        # Equal extents count as vertical.
        return abs(self.dx) > abs(self.dy)


def _select_channel(image: np.ndarray, channel: int) -> np.ndarray:
    if image.ndim == 2:
        gray = image
    elif image.ndim == 3 and image.shape[2] >= 3:
        gray = image[:, :, channel]
    else:
        raise ValueError(f"Expected a (H, W) or (H, W, 3) image, got shape {image.shape}")
    return np.ascontiguousarray(gray, dtype=np.uint8)


def build_feature_mask(image: np.ndarray, config: LocatorConfig | None = None) -> np.ndarray:
    """Binary edge mask of the board grid lines, same resolution as ``image``."""

    config = config or LocatorConfig()
    image = np.asarray(image)
    src = _select_channel(image, config.channel)
    if src.size == 0:
        return np.zeros(src.shape, dtype=np.uint8)

    _, binary = cv2.threshold(src, config.binary_threshold, 255, cv2.THRESH_BINARY)
    binary = cv2.erode(binary, None)
    binary = cv2.dilate(binary, None)
    edges = cv2.Canny(binary, config.canny_low, config.canny_high, apertureSize=config.canny_aperture)
    return cv2.dilate(edges, None)


def extract_lines(mask: np.ndarray, config: LocatorConfig | None = None) -> list[LineSegment]:
    """Probabilistic Hough segments of ``mask`` in detector order."""

    config = config or LocatorConfig()
    mask = np.asarray(mask, dtype=np.uint8)
    if mask.size == 0 or not mask.any():
        return []

    raw = cv2.HoughLinesP(
        mask,
        config.hough_rho,
        HOUGH_THETA,
        config.hough_threshold,
        minLineLength=config.hough_min_length,
        maxLineGap=HOUGH_MAX_GAP,
    )
    if raw is None:
        return []
    lines = [LineSegment(*(int(v) for v in seg)) for seg in raw.reshape(-1, 4)]
    logger.debug("Found %d lines", len(lines))
    return lines


def split_lines(lines: Sequence[LineSegment]) -> tuple[list[LineSegment], list[LineSegment]]:
    """Partition ``lines`` into (horizontal, vertical), keeping their order."""
    horizontal = [line for line in lines if line.horizontal]
    vertical = [line for line in lines if not line.horizontal]
    logger.debug("horizontal lines: %d, vertical lines: %d", len(horizontal), len(vertical))
    return horizontal, vertical
