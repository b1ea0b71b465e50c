"""Frame input and pose output records."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import cv2
import numpy as np
from scipy.spatial.transform import Rotation

from .cloud import OrganizedCloud, save_points
from .search import PoseFit, transform_points

BOARD_FRAME_ID = "chess_board"


@dataclass
class FramePair:
    """One color image with its co-registered organized cloud."""

    image: np.ndarray
    cloud: OrganizedCloud
    frame_id: str = "camera"
    stamp: float = 0.0

    def __post_init__(self) -> None:
        self.image = np.asarray(self.image)
        if self.image.ndim not in (2, 3):
            raise ValueError(f"Image must be 2-D or 3-D, got shape {self.image.shape}")
        if tuple(self.image.shape[:2]) != self.cloud.shape:
            raise ValueError(
                f"Image resolution {self.image.shape[:2]} does not match cloud resolution {self.cloud.shape}"
            )


@dataclass
class BoardPose:
    """Pose of the board in the camera frame.

    ``transform`` maps board-frame coordinates into ``frame_id`` coordinates.
    """

    transform: np.ndarray
    frame_id: str
    stamp: float
    source_stamp: float
    score: float
    child_frame_id: str = BOARD_FRAME_ID
    points: Optional[np.ndarray] = None

    @property
    def rotation(self) -> np.ndarray:
        return self.transform[:3, :3]

    @property
    def translation(self) -> np.ndarray:
        return self.transform[:3, 3]

    @property
    def quaternion(self) -> np.ndarray:
        return Rotation.from_matrix(self.rotation).as_quat()

    @property
    def rvec(self) -> np.ndarray:
        rvec, _ = cv2.Rodrigues(np.ascontiguousarray(self.rotation))
        return rvec.reshape(3)

    def to_dict(self) -> dict:
        return {
            "frame_id": self.frame_id,
            "child_frame_id": self.child_frame_id,
            "stamp": float(self.stamp),
            "source_stamp": float(self.source_stamp),
            "score": float(self.score),
            "transform": self.transform.tolist(),
            "translation": self.translation.tolist(),
            "quaternion_xyzw": self.quaternion.tolist(),
        }

    def save_json(self, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    def save_points(self, path: str | Path) -> None:
        if self.points is None:
            raise ValueError("Pose was created without transformed board points")
        save_points(path, self.points)


def make_board_pose(
    fit: PoseFit,
    frame: FramePair,
    points: np.ndarray | None = None,
    *,
    include_points: bool = False,
) -> BoardPose:
    """Invert the winning fit into the board pose and tag it with the frame."""

    transformed = None
    if include_points and points is not None:
        transformed = transform_points(fit.transform, points)
    return BoardPose(
        transform=np.linalg.inv(fit.transform),
        frame_id=frame.frame_id,
        stamp=time.time(),
        source_stamp=frame.stamp,
        score=fit.score,
        points=transformed,
    )
