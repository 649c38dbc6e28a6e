#!/usr/bin/env python3
"""
Track features across an image sequence.

Detects, describes and matches keypoints frame by frame over an ordered
directory of images and prints a per-frame summary.

Usage:
    uv run python track_sequence.py --images ../data/images/KITTI/2011_09_26/image_00/data --detector FAST --descriptor BRIEF
    uv run python track_sequence.py --images ../data/images --detector SHITOMASI --descriptor BRISK --matcher MAT_FLANN --selector SEL_KNN --max-keypoints 50
    uv run python track_sequence.py --images ../data/images --detector AKAZE --descriptor AKAZE --region 535 180 180 150 --visualize file --output ../reports/tracking
"""
from __future__ import annotations

import argparse
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import cv2
from rich.console import Console
from rich.table import Table

from feature_tracking.config import ConfigurationError, RegionConfig, get_settings
from feature_tracking.core.exceptions import ServiceError
from feature_tracking.logging import setup_logging
from feature_tracking.services.tracking import create_tracker
from feature_tracking.services.visualization import create_visualizer
from feature_tracking.types import DescriptorType, DetectorType, MatcherType, SelectorType

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray

console = Console()

IMAGE_PATTERNS = ("*.png", "*.jpg", "*.jpeg")


@dataclass
class FrameSummary:
    """Per-frame tracking outcome."""

    name: str
    keypoints: int
    matches: int
    elapsed_ms: float


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Track features across an image sequence")
    parser.add_argument(
        "--images",
        type=Path,
        required=True,
        help="Directory of images, processed in file name order",
    )
    parser.add_argument(
        "--detector",
        choices=[t.value for t in DetectorType],
        required=True,
        help="Keypoint detector",
    )
    parser.add_argument(
        "--descriptor",
        choices=[t.value for t in DescriptorType],
        required=True,
        help="Descriptor extractor",
    )
    parser.add_argument(
        "--matcher",
        choices=[t.value for t in MatcherType],
        default=MatcherType.MAT_BF.value,
        help="Descriptor matcher (default: MAT_BF)",
    )
    parser.add_argument(
        "--selector",
        choices=[t.value for t in SelectorType],
        default=SelectorType.SEL_NN.value,
        help="Match selection (default: SEL_NN)",
    )
    parser.add_argument(
        "--max-keypoints",
        type=int,
        default=None,
        help="Keep only the strongest keypoints per frame",
    )
    parser.add_argument(
        "--region",
        type=int,
        nargs=4,
        metavar=("X", "Y", "WIDTH", "HEIGHT"),
        default=None,
        help="Keep only keypoints inside this rectangle",
    )
    parser.add_argument(
        "--max-frames",
        type=int,
        default=None,
        help="Stop after this many frames",
    )
    parser.add_argument(
        "--visualize",
        choices=["none", "window", "file"],
        default=None,
        help="Override the configured visualization mode",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Directory for --visualize file (default: configured output_dir)",
    )
    return parser.parse_args(argv)


def discover_images(images_dir: Path) -> list[Path]:
    """List supported images in a directory, sorted by file name."""
    paths: set[Path] = set()
    for pattern in IMAGE_PATTERNS:
        paths.update(images_dir.glob(pattern))
    return sorted(paths, key=lambda p: p.name)


def load_grayscale(path: Path) -> NDArray[np.uint8]:
    """Read an image from disk as grayscale."""
    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise ValueError(f"Cannot read image: {path}")
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def run(args: argparse.Namespace) -> list[FrameSummary]:
    """Track all frames and return their summaries."""
    settings = get_settings()
    setup_logging(settings.server.log_level, settings.service.name)

    overrides: dict[str, object] = {}
    if args.max_keypoints is not None:
        overrides["max_keypoints"] = args.max_keypoints
    if args.region is not None:
        x, y, width, height = args.region
        overrides["region"] = RegionConfig(x=x, y=y, width=width, height=height)
    if overrides:
        tracking = settings.tracking.model_copy(update=overrides)
        settings = settings.model_copy(update={"tracking": tracking})

    visualization = settings.visualization
    if args.visualize is not None:
        visualization = visualization.model_copy(update={"mode": args.visualize})
    if args.output is not None:
        visualization = visualization.model_copy(update={"output_dir": str(args.output)})
    visualizer = create_visualizer(visualization)

    tracker = create_tracker(
        args.detector,
        args.descriptor,
        args.matcher,
        args.selector,
        settings,
        visualizer=visualizer,
    )

    paths = discover_images(args.images)
    if args.max_frames is not None:
        paths = paths[: args.max_frames]

    summaries: list[FrameSummary] = []
    for path in paths:
        start_time = time.perf_counter()
        frame = tracker.process(load_grayscale(path))
        summaries.append(
            FrameSummary(
                name=path.name,
                keypoints=len(frame.keypoints),
                matches=len(frame.matches),
                elapsed_ms=(time.perf_counter() - start_time) * 1000,
            )
        )
    return summaries


def print_summary(summaries: list[FrameSummary], args: argparse.Namespace) -> None:
    """Print per-frame results as a table."""
    table = Table(
        title=f"{args.detector} / {args.descriptor} / {args.matcher} / {args.selector}",
    )
    table.add_column("Frame")
    table.add_column("Keypoints", justify="right")
    table.add_column("Matches", justify="right")
    table.add_column("Time (ms)", justify="right")

    for index, summary in enumerate(summaries):
        table.add_row(
            summary.name,
            str(summary.keypoints),
            str(summary.matches) if index > 0 else "-",
            f"{summary.elapsed_ms:.1f}",
        )

    console.print(table)


def main(argv: list[str] | None = None) -> int:
    """Entry point."""
    args = parse_args(argv)

    if not args.images.is_dir():
        console.print(f"[red]Error: not a directory: {args.images}[/red]")
        return 1

    try:
        summaries = run(args)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red]\n{e}")
        return 1
    except ServiceError as e:
        console.print(f"[red]Error ({e.error}):[/red] {e.message}")
        return 1
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    if not summaries:
        console.print(f"[yellow]No images found in {args.images}[/yellow]")
        return 1

    print_summary(summaries, args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
