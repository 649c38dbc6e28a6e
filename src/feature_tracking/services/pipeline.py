"""
Single-image detection and description steps shared by the HTTP endpoints.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from feature_tracking.services.descriptors import create_extractor
from feature_tracking.services.detectors import create_detector
from feature_tracking.services.filters import filter_by_region, retain_best

if TYPE_CHECKING:
    import cv2
    import numpy as np
    from numpy.typing import NDArray

    from feature_tracking.config import RegionConfig, Settings
    from feature_tracking.schemas import RegionData
    from feature_tracking.services.visualization import Visualizer
    from feature_tracking.types import DescriptorType, DetectorType


def detect_keypoints(
    image: NDArray[np.uint8],
    detector_type: DetectorType,
    settings: Settings,
    region: RegionConfig | RegionData | None = None,
    max_keypoints: int | None = None,
    visualizer: Visualizer | None = None,
) -> list[cv2.KeyPoint]:
    """Detect keypoints, then restrict them to a region and a keypoint budget."""
    keypoints = create_detector(detector_type, settings).detect(image, visualizer)
    if region is not None:
        keypoints = filter_by_region(keypoints, region)
    if max_keypoints is not None:
        keypoints = retain_best(keypoints, max_keypoints)
    return keypoints


def extract_features(
    image: NDArray[np.uint8],
    detector_type: DetectorType,
    descriptor_type: DescriptorType,
    settings: Settings,
    region: RegionConfig | RegionData | None = None,
    max_keypoints: int | None = None,
    visualizer: Visualizer | None = None,
) -> tuple[list[cv2.KeyPoint], NDArray[np.generic] | None]:
    """Detect and describe keypoints in one image."""
    keypoints = detect_keypoints(
        image,
        detector_type,
        settings,
        region=region,
        max_keypoints=max_keypoints,
        visualizer=visualizer,
    )
    return create_extractor(descriptor_type, settings).compute(image, keypoints)
