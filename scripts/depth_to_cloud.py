#!/usr/bin/env python3
"""Back-project a registered depth image into an organized cloud for locate_board.py."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import numpy as np

from board_locator import OrganizedCloud


def load_depth(path: Path) -> np.ndarray:
    if not path.exists():
        raise SystemExit(f"Depth file not found: {path}")
    if path.suffix == ".npy":
        depth = np.load(path)
    else:
        depth = np.genfromtxt(path, delimiter=",", skip_header=1)
    if depth.ndim != 2:
        raise SystemExit("Depth input must describe a 2-D image")
    return depth.astype(np.float32)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("depth", type=Path, help="Depth image registered to the color camera (.npy or CSV)")
    parser.add_argument("intrinsics", type=Path, help="JSON with 'camera_matrix' and 'distortion_coefficients'")
    parser.add_argument("output", type=Path, help="Output .npy file, shape (H, W, 3)")
    parser.add_argument("--depth-scale", type=float, default=0.001, help="Factor converting depth values to metres")
    parser.add_argument("--min-depth", type=float, default=None, help="Minimum depth in metres after scaling")
    parser.add_argument("--max-depth", type=float, default=None, help="Maximum depth in metres after scaling")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    depth = load_depth(args.depth)
    with args.intrinsics.open("r", encoding="utf-8") as f:
        data = json.load(f)
    K = np.asarray(data["camera_matrix"], dtype=np.float64)
    dist = data.get("distortion_coefficients") or data.get("dist_coeffs")
    dist = None if dist is None else np.asarray(dist, dtype=np.float64)

    cloud = OrganizedCloud.from_depth(
        depth,
        K,
        dist,
        depth_scale=args.depth_scale,
        min_depth=args.min_depth,
        max_depth=args.max_depth,
    )
    args.output.parent.mkdir(parents=True, exist_ok=True)
    np.save(args.output, cloud.points)
    h, w = cloud.shape
    print(f"Saved {int(cloud.valid.sum())}/{h * w} valid points to {args.output}")


if __name__ == "__main__":
    main()
