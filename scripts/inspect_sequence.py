#!/usr/bin/env python3
"""
Inspect a tracked ultrasound sequence and match a pointer pose against it.

Usage:
    python scripts/inspect_sequence.py --sequence data/recording.mha

    # Rank frames against a pointer given as a flat 3x4 transform:
    python scripts/inspect_sequence.py --sequence data/recording.mha \\
        --pointer 1 0 0 10 0 1 0 -5 0 0 1 120

    # ... or as 6DOF parameters (rx ry rz tx ty tz, radians/mm):
    python scripts/inspect_sequence.py --sequence data/recording.mha \\
        --pointer_params 0 0 0.3 10 -5 120 --top 10
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from usnav import NavigationSession, SequenceLoadError
from usnav.config import get_default_config
from usnav.constants import FLAT_TRANSFORM_SIZE, INVALID_DISTANCE
from usnav.transforms import from_flat_transform, matrix_to_params, params_to_matrix


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Inspect a tracked ultrasound sequence metafile",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--sequence",
        type=str,
        required=True,
        help="Path to the sequence metafile (.mha)",
    )
    parser.add_argument(
        "--calib_path",
        type=str,
        default="",
        help="Image-to-probe calibration CSV (empty for the built-in calibration)",
    )
    parser.add_argument(
        "--frame",
        type=int,
        default=0,
        help="Frame to report the status of",
    )

    pointer = parser.add_mutually_exclusive_group()
    pointer.add_argument(
        "--pointer",
        type=float,
        nargs=FLAT_TRANSFORM_SIZE,
        metavar="V",
        help="Pointer pose as 12 row-major values of a 3x4 transform",
    )
    pointer.add_argument(
        "--pointer_params",
        type=float,
        nargs=6,
        metavar="P",
        help="Pointer pose as rx ry rz tx ty tz (requires pytorch3d)",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=5,
        help="Number of best matching frames to print",
    )
    parser.add_argument(
        "--print_params",
        action="store_true",
        help="Print the pose of the best valid match as 6DOF parameters (requires pytorch3d)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args()


def main() -> int:
    """Main inspection function."""
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = get_default_config()
    config["calibration_path"] = args.calib_path

    try:
        session = NavigationSession(config=config)
    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        return 1

    try:
        result = session.load_sequence(args.sequence)
    except SequenceLoadError as e:
        print(f"ERROR: {e}")
        return 1

    width, height = session.get_image_dimensions()
    library = session.library
    num_valid = int(library.validity().sum())

    print(f"Sequence: {args.sequence}")
    print(f"Load status: {result.status} ({result.frames_parsed} frames parsed)")
    print(f"Image dimensions: {width}x{height}")
    print(f"Frames: {session.get_frame_count()} ({num_valid} valid)")
    print(f"Available transforms: {', '.join(sorted(session.get_available_transform_tags()))}")

    session.go_to_frame(args.frame)
    print(
        f"Frame {session.get_current_frame()}/{session.get_frame_count()}: "
        f"{session.get_current_frame_status()}"
    )

    if args.pointer is not None:
        pointer_pose = from_flat_transform(args.pointer)
    elif args.pointer_params is not None:
        pointer_pose = params_to_matrix(args.pointer_params).numpy()
    else:
        return 0

    match = session.match_pointer_pose(pointer_pose)
    if match.best is None:
        print("WARNING: No frames to match against")
        return 0

    print(f"\nBest {min(args.top, len(match.ranking))} matches:")
    for rank, score in enumerate(match.ranking[:args.top], start=1):
        frame = library.frame_at(score.frame_index)
        if score.distance == INVALID_DISTANCE:
            summary = "INVALID"
        else:
            _, orientation = match.scores_of(score.frame_index)
            summary = f"{score.distance:.3f} mm, orientation {orientation:.4f}"
        print(f"  [{rank}] frame {score.frame_index}: {summary}  {Path(frame.image_path).name}")

    best = library.frame_at(match.best.frame_index)
    if not best.valid:
        return 0

    tip = session.calibration.world_to_image(best.pose) @ pointer_pose[:, 3]
    print(f"\nPointer tip in frame {best.index}: ({tip[0]:.1f}, {tip[1]:.1f}) px")
    if args.print_params:
        params = matrix_to_params(best.pose).tolist()
        print("Frame pose (rx ry rz tx ty tz): " + " ".join(f"{p:.4f}" for p in params))

    return 0


if __name__ == "__main__":
    sys.exit(main())
