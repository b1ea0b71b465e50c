"""Static configuration for the board locator pipeline."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path

import numpy as np

# Fixed Hough parameters, not part of the user configuration.
HOUGH_THETA = np.pi / 180.0
HOUGH_MAX_GAP = 10


@dataclass(frozen=True)
class LocatorConfig:
    """Parameters controlling mask construction, line detection and matching."""

    hough_rho: float = 1.0
    hough_threshold: int = 50
    hough_min_length: int = 100
    channel: int = 0
    binary_threshold: int = 100
    canny_low: int = 30
    canny_high: int = 200
    canny_aperture: int = 3
    dedup_threshold: float = 0.03
    candidate_margin: float = 0.05
    include_points: bool = False

    def __post_init__(self) -> None:
        if self.hough_rho <= 0:
            raise ValueError("hough_rho must be > 0")
        if self.hough_threshold < 1:
            raise ValueError("hough_threshold must be >= 1")
        if self.hough_min_length < 0:
            raise ValueError("hough_min_length must be >= 0")
        if self.channel not in (0, 1, 2):
            raise ValueError("channel must be 0, 1 or 2")
        if not 0 <= self.binary_threshold <= 255:
            raise ValueError("binary_threshold must lie in [0, 255]")
        if self.canny_aperture not in (3, 5, 7):
            raise ValueError("canny_aperture must be 3, 5 or 7")
        if self.dedup_threshold < 0:
            raise ValueError("dedup_threshold must be >= 0")
        if self.candidate_margin < 0:
            raise ValueError("candidate_margin must be >= 0")

    def to_dict(self) -> dict:
        return asdict(self)

    def save_json(self, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)


def config_from_dict(data: dict) -> LocatorConfig:
    known = {f.name for f in fields(LocatorConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
    return LocatorConfig(**data)


def load_config(path: str | Path) -> LocatorConfig:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("Configuration JSON must contain an object")
    return config_from_dict(data)
