import numpy as np
import pytest

from board_locator import (
    DEFAULT_BOARD,
    ChessBoardLocator,
    FramePair,
    LineSegment,
    LocatorConfig,
    NoSolutionError,
    OrganizedCloud,
    find_intersection,
)

WIDTH, HEIGHT = 640, 480


def _grid_lines() -> tuple[list[LineSegment], list[LineSegment]]:
    horizontal = [LineSegment(20, 100 + 40 * j, 620, 100 + 40 * j) for j in range(7)]
    # one pixel of slant keeps the slope defined
    vertical = [LineSegment(100 + 60 * i, 0, 101 + 60 * i, HEIGHT - 1) for i in range(7)]
    return horizontal, vertical


def _grid_frame(camera_grid: np.ndarray) -> tuple[FramePair, list[LineSegment]]:
    horizontal, vertical = _grid_lines()
    cloud = np.full((HEIGHT, WIDTH, 3), np.nan)
    for i, vl in enumerate(vertical):
        for j, hl in enumerate(horizontal):
            u, v = find_intersection(hl, vl, (WIDTH, HEIGHT))
            # column i is board x = i + 1, image row j is board y = 7 - j
            cloud[v, u] = camera_grid[i * 7 + (6 - j)]
    image = np.zeros((HEIGHT, WIDTH, 3), dtype=np.uint8)
    frame = FramePair(image=image, cloud=OrganizedCloud(cloud), frame_id="camera", stamp=3.0)
    return frame, horizontal + vertical


def test_blank_frame_has_no_solution():
    frame = FramePair(
        image=np.zeros((HEIGHT, WIDTH, 3), dtype=np.uint8),
        cloud=OrganizedCloud(np.full((HEIGHT, WIDTH, 3), np.nan)),
        frame_id="camera",
        stamp=1.0,
    )
    result = ChessBoardLocator().locate(frame)
    assert not result.mask.any()
    assert result.lines == []
    assert result.board_points.shape == (0, 3)
    assert result.candidates.sizes == (0, 0, 0)
    assert result.pose is None
    assert not result.solved
    with pytest.raises(NoSolutionError):
        result.require_pose()


def test_solve_recovers_pose_from_grid_lines(board_to_camera, camera_grid):
    frame, lines = _grid_frame(camera_grid)
    result = ChessBoardLocator(LocatorConfig(include_points=True)).solve(lines, frame)
    assert len(result.board_points) == 49
    pose = result.require_pose()
    assert np.allclose(pose.transform, board_to_camera, atol=1e-9)
    assert pose.score == pytest.approx(0.0, abs=1e-20)
    assert pose.frame_id == "camera"
    assert pose.source_stamp == 3.0
    assert pose.points.shape == (49, 3)
    assert np.allclose(pose.points[:, 2], 0.0, atol=1e-9)


def test_near_coincident_intersections_collapse():
    horizontal = LineSegment(0, 100, 600, 100)
    verticals = [LineSegment(200, 0, 201, 400), LineSegment(300, 0, 301, 400)]
    cloud = np.full((HEIGHT, WIDTH, 3), np.nan)
    cloud[100, 200] = [0.1, 0.1, 1.0]
    cloud[100, 300] = [0.1, 0.1, 1.02]
    frame = FramePair(
        image=np.zeros((HEIGHT, WIDTH, 3), dtype=np.uint8),
        cloud=OrganizedCloud(cloud),
    )
    lines = [horizontal, *verticals]

    merged = ChessBoardLocator(LocatorConfig(dedup_threshold=0.03)).solve(lines, frame)
    separate = ChessBoardLocator(LocatorConfig(dedup_threshold=0.0)).solve(lines, frame)
    assert len(merged.board_points) == 1
    assert len(separate.board_points) == 2
    assert np.allclose(merged.board_points[0], [0.1, 0.1, 1.0])
    assert not merged.solved


def test_locate_many_continues_after_a_bad_frame():
    good = FramePair(
        image=np.zeros((HEIGHT, WIDTH, 3), dtype=np.uint8),
        cloud=OrganizedCloud(np.full((HEIGHT, WIDTH, 3), np.nan)),
        frame_id="good",
    )
    bad = FramePair(
        image=np.zeros((HEIGHT, WIDTH, 2), dtype=np.uint8),
        cloud=OrganizedCloud(np.full((HEIGHT, WIDTH, 3), np.nan)),
        frame_id="bad",
    )
    results = list(ChessBoardLocator().locate_many([bad, good]))
    assert [r.frame_id for r in results] == ["bad", "good"]
    assert results[0].error is not None
    assert results[1].error is None
    with pytest.raises(NoSolutionError, match="bad"):
        results[0].require_pose()


def _render_board(board_to_camera: np.ndarray, K: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Blue/black checkerboard image and the organized cloud of its plane."""
    R = board_to_camera[:3, :3]
    t = board_to_camera[:3, 3]
    u, v = np.meshgrid(np.arange(WIDTH), np.arange(HEIGHT))
    rays = np.stack([(u - K[0, 2]) / K[0, 0], (v - K[1, 2]) / K[1, 1], np.ones(u.shape)], axis=-1)
    normal = R[:, 2]
    depth = (normal @ t) / (rays @ normal)
    points = rays * depth[..., None]

    local = (points - t) @ R
    s = DEFAULT_BOARD.square_size
    col = np.floor(local[..., 0] / s).astype(int)
    row = np.floor(local[..., 1] / s).astype(int)
    on_board = (col >= 0) & (col < 8) & (row >= 0) & (row < 8)

    image = np.full((HEIGHT, WIDTH, 3), 40, dtype=np.uint8)
    image[on_board] = 0
    image[on_board & ((col + row) % 2 == 0)] = (255, 0, 0)
    return image, points


def test_locate_recovers_pose_from_rendered_board(board_to_camera):
    K = np.array([[525.0, 0.0, 320.0], [0.0, 525.0, 240.0], [0.0, 0.0, 1.0]])
    image, points = _render_board(board_to_camera, K)
    frame = FramePair(image=image, cloud=OrganizedCloud(points), frame_id="camera", stamp=5.0)

    result = ChessBoardLocator().locate(frame)
    assert result.mask.any()
    assert result.lines
    assert not result.candidates.empty
    pose = result.require_pose()

    assert np.linalg.norm(pose.translation - board_to_camera[:3, 3]) < 0.01
    R_err = pose.rotation.T @ board_to_camera[:3, :3]
    angle = np.arccos(np.clip((np.trace(R_err) - 1.0) / 2.0, -1.0, 1.0))
    assert angle < np.deg2rad(2.0)
