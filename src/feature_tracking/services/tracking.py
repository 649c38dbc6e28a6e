"""
Frame-to-frame feature tracking over an image sequence.

Each new frame is detected, optionally reduced to a region and a keypoint
budget, described, and matched against the previous frame held in a small
ring buffer.
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from feature_tracking.logging import get_logger
from feature_tracking.services.descriptors import create_extractor
from feature_tracking.services.detectors import create_detector
from feature_tracking.services.filters import filter_by_region, retain_best
from feature_tracking.services.matcher import create_matcher
from feature_tracking.services.visualization import draw_matches
from feature_tracking.types import descriptor_category

if TYPE_CHECKING:
    from collections.abc import Iterator

    import cv2
    import numpy as np
    from numpy.typing import NDArray

    from feature_tracking.config import RegionConfig, Settings
    from feature_tracking.services.descriptors import DescriptorExtractor
    from feature_tracking.services.detectors import KeypointDetector
    from feature_tracking.services.matcher import DescriptorMatcher
    from feature_tracking.services.visualization import Visualizer
    from feature_tracking.types import DescriptorType, DetectorType, MatcherType, SelectorType

logger = get_logger("tracking")


@dataclass
class DataFrame:
    """Everything known about one frame of the sequence."""

    image: NDArray[np.uint8]
    keypoints: list[cv2.KeyPoint] = field(default_factory=list)
    descriptors: NDArray[np.generic] | None = None
    matches: list[cv2.DMatch] = field(default_factory=list)


class FrameBuffer:
    """Ring buffer holding the most recent frames, oldest first."""

    def __init__(self, size: int) -> None:
        if size < 1:
            raise ValueError(f"Frame buffer size must be at least 1, got {size}")
        self.size = size
        self._frames: deque[DataFrame] = deque(maxlen=size)

    def push(self, frame: DataFrame) -> None:
        """Append a frame, dropping the oldest one when full."""
        self._frames.append(frame)

    @property
    def current(self) -> DataFrame | None:
        return self._frames[-1] if self._frames else None

    @property
    def previous(self) -> DataFrame | None:
        return self._frames[-2] if len(self._frames) >= 2 else None

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[DataFrame]:
        return iter(self._frames)


class FeatureTracker:
    """Detect, describe and match consecutive frames."""

    def __init__(
        self,
        detector: KeypointDetector,
        extractor: DescriptorExtractor,
        matcher: DescriptorMatcher,
        buffer_size: int = 2,
        region: RegionConfig | None = None,
        max_keypoints: int | None = None,
        visualizer: Visualizer | None = None,
    ) -> None:
        """
        Initialize feature tracker.

        Args:
            detector: Keypoint detector
            extractor: Descriptor extractor
            matcher: Matcher, whose category must fit the extractor
            buffer_size: Number of frames held in memory
            region: Keep only keypoints inside this rectangle
            max_keypoints: Keep only this many strongest keypoints
            visualizer: Receives detection and match renderings
        """
        self.detector = detector
        self.extractor = extractor
        self.matcher = matcher
        self.buffer = FrameBuffer(buffer_size)
        self.region = region
        self.max_keypoints = max_keypoints
        self.visualizer = visualizer

    def process(self, image: NDArray[np.uint8]) -> DataFrame:
        """
        Track one new frame.

        Returns:
            The new frame, with matches against the previous frame (empty for
            the first frame)
        """
        start_time = time.perf_counter()
        frame = DataFrame(image=image)

        keypoints = self.detector.detect(image, self.visualizer)
        if self.region is not None:
            keypoints = filter_by_region(keypoints, self.region)
        if self.max_keypoints is not None:
            keypoints = retain_best(keypoints, self.max_keypoints)

        frame.keypoints, frame.descriptors = self.extractor.compute(image, keypoints)
        self.buffer.push(frame)

        previous = self.buffer.previous
        if previous is not None:
            frame.matches = self.matcher.match(
                previous.keypoints,
                frame.keypoints,
                previous.descriptors,
                frame.descriptors,
            )
            if self.visualizer is not None:
                self.visualizer.show(
                    "Matching keypoints between two camera images",
                    draw_matches(
                        previous.image,
                        previous.keypoints,
                        frame.image,
                        frame.keypoints,
                        frame.matches,
                    ),
                )

        logger.info(
            "Frame processed",
            extra={
                "detector": self.detector.name,
                "descriptor": self.extractor.descriptor_type.value,
                "num_keypoints": len(frame.keypoints),
                "num_matches": len(frame.matches),
                "processing_time_ms": round((time.perf_counter() - start_time) * 1000, 2),
            },
        )
        return frame


def create_tracker(
    detector_type: DetectorType | str,
    descriptor_type: DescriptorType | str,
    matcher_type: MatcherType | str,
    selector_type: SelectorType | str,
    settings: Settings,
    visualizer: Visualizer | None = None,
) -> FeatureTracker:
    """Assemble a tracker from algorithm names and configuration."""
    return FeatureTracker(
        detector=create_detector(detector_type, settings),
        extractor=create_extractor(descriptor_type, settings),
        matcher=create_matcher(
            descriptor_category(descriptor_type),
            matcher_type,
            selector_type,
            settings,
        ),
        buffer_size=settings.tracking.buffer_size,
        region=settings.tracking.region,
        max_keypoints=settings.tracking.max_keypoints,
        visualizer=visualizer,
    )
