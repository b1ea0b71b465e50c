from __future__ import annotations

import numpy as np
import pytest

from board_locator import DEFAULT_BOARD


def _rot_x(deg: float) -> np.ndarray:
    a = np.deg2rad(deg)
    c, s = np.cos(a), np.sin(a)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def _rot_y(deg: float) -> np.ndarray:
    a = np.deg2rad(deg)
    c, s = np.cos(a), np.sin(a)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])


def _rot_z(deg: float) -> np.ndarray:
    a = np.deg2rad(deg)
    c, s = np.cos(a), np.sin(a)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


@pytest.fixture
def board_to_camera() -> np.ndarray:
    """Board facing the camera (board y up = camera y down), slightly tilted."""
    T = np.eye(4)
    T[:3, :3] = _rot_z(5.0) @ _rot_y(10.0) @ _rot_x(180.0)
    T[:3, 3] = [-0.2, 0.2, 1.2]
    return T


@pytest.fixture
def camera_grid(board_to_camera: np.ndarray) -> np.ndarray:
    """The 7x7 interior intersections seen by the camera, shape (49, 3)."""
    grid = DEFAULT_BOARD.grid_points()
    return grid @ board_to_camera[:3, :3].T + board_to_camera[:3, 3]
