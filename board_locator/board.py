"""Ideal geometry of the calibration board in its own frame."""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property

import numpy as np


@dataclass(frozen=True)
class BoardModel:
    """An ``squares`` x ``squares`` board with square edge ``square_size`` (metres).

    The board frame has its origin at the outer a1 corner, x along the first
    rank towards h1, y along the a-file towards a8 and z out of the board.
    """

    squares: int = 8
    square_size: float = 0.05715

    def __post_init__(self) -> None:
        if self.squares < 2:
            raise ValueError("A board needs at least 2 squares per side")
        if self.square_size <= 0:
            raise ValueError("square_size must be > 0")

    @property
    def inner(self) -> int:
        """Number of interior grid lines per axis."""
        return self.squares - 1

    def reference_corners(self) -> np.ndarray:
        """The a1, a8 and h1 reference points, in that order, shape (3, 3)."""
        s = float(self.square_size)
        far = s * self.inner
        return np.array(
            [
                [s, s, 0.0],  # a1
                [s, far, 0.0],  # a8
                [far, s, 0.0],  # h1
            ],
            dtype=np.float64,
        )

    @cached_property
    def _grid(self) -> np.ndarray:
        ticks = np.arange(1, self.squares, dtype=np.float64) * float(self.square_size)
        xs, ys = np.meshgrid(ticks, ticks, indexing="ij")
        grid = np.zeros((xs.size, 3), dtype=np.float64)
        grid[:, 0] = xs.ravel()
        grid[:, 1] = ys.ravel()
        grid.setflags(write=False)
        return grid

    def grid_points(self) -> np.ndarray:
        """Interior grid intersections used for scoring, shape (inner**2, 3)."""
        return self._grid


DEFAULT_BOARD = BoardModel()
