"""
Debug visualization of keypoints and matches.

Detectors and the tracking pipeline hand rendered images to a visualizer.
Where the image ends up depends on the visualizer: an OpenCV window, a PNG
file on disk, or an in-memory list returned by the HTTP service.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import cv2
import numpy as np

from feature_tracking.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

    from feature_tracking.config import VisualizationConfig

logger = get_logger("visualization")


class Visualizer(Protocol):
    """Receives rendered debug images."""

    def show(self, title: str, image: NDArray[np.uint8]) -> None:
        """Present a rendered image under a title."""
        ...


def draw_keypoints(
    image: NDArray[np.uint8],
    keypoints: Sequence[cv2.KeyPoint],
) -> NDArray[np.uint8]:
    """
    Draw keypoints with size and orientation onto a copy of the image.

    Args:
        image: Grayscale or BGR image
        keypoints: Keypoints to draw

    Returns:
        BGR image with rich keypoint markers in random colours
    """
    return cv2.drawKeypoints(
        image,
        list(keypoints),
        None,
        color=(-1, -1, -1, -1),
        flags=cv2.DRAW_MATCHES_FLAGS_DRAW_RICH_KEYPOINTS,
    )


def draw_matches(
    image_source: NDArray[np.uint8],
    kpts_source: Sequence[cv2.KeyPoint],
    image_ref: NDArray[np.uint8],
    kpts_ref: Sequence[cv2.KeyPoint],
    matches: Sequence[cv2.DMatch],
) -> NDArray[np.uint8]:
    """Draw matches side by side, source on the left, reference on the right."""
    return cv2.drawMatches(
        image_source,
        list(kpts_source),
        image_ref,
        list(kpts_ref),
        list(matches),
        None,
        matchColor=(-1, -1, -1, -1),
        singlePointColor=(-1, -1, -1, -1),
        flags=cv2.DRAW_MATCHES_FLAGS_DRAW_RICH_KEYPOINTS,
    )


class WindowVisualizer:
    """Show each image in an OpenCV window and block until a key is pressed."""

    def __init__(self, wait_ms: int = 0) -> None:
        self.wait_ms = wait_ms

    def show(self, title: str, image: NDArray[np.uint8]) -> None:
        cv2.namedWindow(title, cv2.WINDOW_NORMAL | cv2.WINDOW_KEEPRATIO)
        cv2.imshow(title, image)
        cv2.waitKey(self.wait_ms)


class FileVisualizer:
    """Write each image as a numbered PNG into a directory."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir
        self.count = 0

    def show(self, title: str, image: NDArray[np.uint8]) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        slug = re.sub(r"[^a-z0-9]+", "_", title.lower()).strip("_")
        path = self.output_dir / f"{self.count:04d}_{slug}.png"
        if not cv2.imwrite(str(path), image):
            raise OSError(f"Failed to write visualization to {path}")
        self.count += 1
        logger.debug("Visualization written", extra={"path": str(path)})


@dataclass
class CaptureVisualizer:
    """Keep rendered images in memory, in the order they were shown."""

    frames: list[tuple[str, NDArray[np.uint8]]] = field(default_factory=list)

    def show(self, title: str, image: NDArray[np.uint8]) -> None:
        self.frames.append((title, image.copy()))


def create_visualizer(config: VisualizationConfig) -> Visualizer | None:
    """
    Build the visualizer selected in configuration.

    Returns:
        None when visualization is disabled
    """
    if config.mode == "window":
        return WindowVisualizer()
    if config.mode == "file":
        return FileVisualizer(Path(config.output_dir))
    return None
