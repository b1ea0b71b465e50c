#!/usr/bin/env python3
"""Locate the checkerboard in aligned color image / organized cloud pairs."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import cv2

from board_locator import (
    ChessBoardLocator,
    FramePair,
    LocatorConfig,
    NoSolutionError,
    load_cloud,
    load_config,
)

IMG_EXTS = (".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff")


def _read_frame(image_path: Path, cloud_path: Path, frame_id: str) -> FramePair:
    image = cv2.imread(str(image_path), cv2.IMREAD_COLOR)
    if image is None:
        raise FileNotFoundError(f"Failed to read image: {image_path}")
    cloud = load_cloud(cloud_path)
    return FramePair(image=image, cloud=cloud, frame_id=frame_id, stamp=image_path.stat().st_mtime)


def _iter_pairs(directory: Path) -> list[tuple[Path, Path]]:
    pairs: list[tuple[Path, Path]] = []
    for path in sorted(directory.iterdir()):
        if path.suffix.lower() not in IMG_EXTS:
            continue
        for suffix in (".npy", ".npz"):
            cloud_path = directory / f"{path.stem}_cloud{suffix}"
            if cloud_path.exists():
                pairs.append((path, cloud_path))
                break
    return pairs


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("image", type=Path, nargs="?", help="Color image (BGR)")
    parser.add_argument("cloud", type=Path, nargs="?", help="Organized cloud (.npy (H,W,3) or .npz with 'points')")
    parser.add_argument("--pairs", type=Path, default=None, help="Directory of <base>.png + <base>_cloud.npy pairs")
    parser.add_argument("--output", type=Path, default=Path("poses"), help="Directory for pose JSON files")
    parser.add_argument("--config", type=Path, default=None, help="Optional locator configuration JSON")
    parser.add_argument("--rho", type=float, default=None, help="Hough distance resolution in pixels")
    parser.add_argument("--threshold", type=int, default=None, help="Hough accumulator threshold")
    parser.add_argument("--min-length", type=int, default=None, help="Minimum Hough segment length in pixels")
    parser.add_argument("--frame-id", default="camera", help="Frame id of the camera the cloud is expressed in")
    parser.add_argument("--points", action="store_true", help="Also save board points transformed into the board frame")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def _build_config(args: argparse.Namespace) -> LocatorConfig:
    data = load_config(args.config).to_dict() if args.config else LocatorConfig().to_dict()
    if args.rho is not None:
        data["hough_rho"] = args.rho
    if args.threshold is not None:
        data["hough_threshold"] = args.threshold
    if args.min_length is not None:
        data["hough_min_length"] = args.min_length
    if args.points:
        data["include_points"] = True
    return LocatorConfig(**data)


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.pairs is not None:
        pairs = _iter_pairs(args.pairs)
        if not pairs:
            raise SystemExit(f"No image/cloud pairs found in {args.pairs}")
    elif args.image is not None and args.cloud is not None:
        pairs = [(args.image, args.cloud)]
    else:
        raise SystemExit("Provide an image and a cloud, or --pairs DIR")

    try:
        config = _build_config(args)
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}")
    locator = ChessBoardLocator(config)
    solved = 0
    for image_path, cloud_path in pairs:
        base = image_path.stem
        try:
            frame = _read_frame(image_path, cloud_path, args.frame_id)
        except (FileNotFoundError, ValueError) as exc:
            print(f"{base}: skipped ({exc})")
            continue
        result = next(locator.locate_many([frame]))
        try:
            pose = result.require_pose()
        except NoSolutionError as exc:
            print(f"{base}: {exc}")
            continue
        pose.save_json(args.output / f"{base}_pose.json")
        if pose.points is not None:
            pose.save_points(args.output / f"{base}_points.npz")
        solved += 1
        t = pose.translation
        print(f"{base}: t = ({t[0]:.4f}, {t[1]:.4f}, {t[2]:.4f}) m, score = {pose.score:.6f}")

    print(f"Located the board in {solved}/{len(pairs)} frames. Poses written to {args.output}")


if __name__ == "__main__":
    main()
