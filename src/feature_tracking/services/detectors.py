"""
Keypoint detection with classical OpenCV detectors.

Shi-Tomasi and Harris are configured explicitly; the binary and
scale-space detectors (FAST, BRISK, ORB, AKAZE, SIFT) run with the
OpenCV defaults.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Protocol

import cv2
import numpy as np

from feature_tracking.core.exceptions import ServiceError
from feature_tracking.logging import get_logger
from feature_tracking.services.visualization import draw_keypoints
from feature_tracking.types import DetectorType
from feature_tracking.utils.image import to_grayscale

if TYPE_CHECKING:
    from collections.abc import Callable

    from numpy.typing import NDArray

    from feature_tracking.config import Settings
    from feature_tracking.services.visualization import Visualizer

logger = get_logger("detectors")


class KeypointDetector(Protocol):
    """Anything that turns an image into keypoints."""

    name: str

    def detect(
        self,
        image: NDArray[np.uint8],
        visualizer: Visualizer | None = None,
    ) -> list[cv2.KeyPoint]: ...


def _log_detection(name: str, keypoints: list[cv2.KeyPoint], start_time: float) -> None:
    elapsed_ms = (time.perf_counter() - start_time) * 1000
    logger.info(
        "Keypoints detected",
        extra={
            "detector": name,
            "num_keypoints": len(keypoints),
            "processing_time_ms": round(elapsed_ms, 2),
        },
    )


class ShiTomasiDetector:
    """Good-features-to-track corners with the minimum eigenvalue score."""

    name = DetectorType.SHITOMASI.value

    def __init__(
        self,
        block_size: int,
        max_overlap: float,
        quality_level: float,
        k: float,
    ) -> None:
        """
        Initialize Shi-Tomasi detector.

        Args:
            block_size: Neighbourhood size for the derivative covariation matrix
            max_overlap: Maximum permissible overlap between two corners (0..1)
            quality_level: Minimal accepted corner quality relative to the best corner
            k: Free Harris parameter, unused while Harris scoring is disabled
        """
        self.block_size = block_size
        self.max_overlap = max_overlap
        self.quality_level = quality_level
        self.k = k

    @property
    def min_distance(self) -> float:
        """Minimum distance between two returned corners."""
        return (1.0 - self.max_overlap) * self.block_size

    def max_corners(self, image: NDArray[np.uint8]) -> int:
        """Upper bound on the number of corners for an image of this size."""
        rows, cols = image.shape[:2]
        return int(rows * cols / max(1.0, self.min_distance))

    def detect(
        self,
        image: NDArray[np.uint8],
        visualizer: Visualizer | None = None,
    ) -> list[cv2.KeyPoint]:
        start_time = time.perf_counter()
        gray = to_grayscale(image)

        corners = cv2.goodFeaturesToTrack(
            gray,
            maxCorners=self.max_corners(gray),
            qualityLevel=self.quality_level,
            minDistance=self.min_distance,
            mask=None,
            blockSize=self.block_size,
            useHarrisDetector=False,
            k=self.k,
        )

        keypoints: list[cv2.KeyPoint] = []
        if corners is not None:
            for x, y in corners.reshape(-1, 2):
                keypoints.append(cv2.KeyPoint(float(x), float(y), float(self.block_size)))

        _log_detection(self.name, keypoints, start_time)

        if visualizer is not None:
            visualizer.show("Shi-Tomasi Corner Detector Results", draw_keypoints(gray, keypoints))

        return keypoints


def suppress_overlapping(
    candidates: list[cv2.KeyPoint],
    max_overlap: float,
) -> list[cv2.KeyPoint]:
    """
    Non-maximum suppression over keypoints, in candidate order.

    Each candidate is compared against the keypoints kept so far. The first
    overlapping keypoint with a weaker response is replaced by the candidate.
    A candidate that overlaps any kept keypoint is never added on its own;
    one that overlaps none is appended.

    Args:
        candidates: Keypoints in visiting order
        max_overlap: Overlap ratio above which two keypoints compete

    Returns:
        Surviving keypoints
    """
    kept: list[cv2.KeyPoint] = []
    for candidate in candidates:
        found_overlap = False
        for index, existing in enumerate(kept):
            if cv2.KeyPoint_overlap(candidate, existing) > max_overlap:
                found_overlap = True
                if candidate.response > existing.response:
                    kept[index] = candidate
                    break
        if not found_overlap:
            kept.append(candidate)
    return kept


class HarrisDetector:
    """Harris corners thresholded on the normalized response, with suppression."""

    name = DetectorType.HARRIS.value

    def __init__(
        self,
        block_size: int,
        aperture_size: int,
        min_response: int,
        k: float,
        max_overlap: float,
    ) -> None:
        """
        Initialize Harris detector.

        Args:
            block_size: Neighbourhood size considered for every pixel
            aperture_size: Sobel aperture (odd)
            min_response: Minimum corner value in the 0..255 normalized response
            k: Harris detector free parameter
            max_overlap: Overlap ratio used by non-maximum suppression
        """
        self.block_size = block_size
        self.aperture_size = aperture_size
        self.min_response = min_response
        self.k = k
        self.max_overlap = max_overlap

    def response(self, image: NDArray[np.uint8]) -> tuple[NDArray[np.float32], NDArray[np.uint8]]:
        """
        Compute the Harris response normalized to 0..255.

        Returns:
            Tuple of (float32 normalized response, 8-bit scaled response)
        """
        gray = to_grayscale(image)
        dst = cv2.cornerHarris(
            gray,
            self.block_size,
            self.aperture_size,
            self.k,
            borderType=cv2.BORDER_DEFAULT,
        )
        dst_norm = cv2.normalize(dst, None, 0, 255, cv2.NORM_MINMAX, cv2.CV_32FC1)
        dst_norm_scaled = cv2.convertScaleAbs(dst_norm)
        return dst_norm, dst_norm_scaled

    def candidates(self, dst_norm: NDArray[np.float32]) -> list[cv2.KeyPoint]:
        """Keypoints for every pixel above the response threshold, row by row."""
        responses = dst_norm.astype(np.int32)
        size = float(2 * self.aperture_size)
        return [
            cv2.KeyPoint(float(col), float(row), size, -1, float(responses[row, col]))
            for row, col in np.argwhere(responses > self.min_response)
        ]

    def detect(
        self,
        image: NDArray[np.uint8],
        visualizer: Visualizer | None = None,
    ) -> list[cv2.KeyPoint]:
        start_time = time.perf_counter()
        dst_norm, dst_norm_scaled = self.response(image)

        if visualizer is not None:
            visualizer.show("Harris Corner Detector Response Matrix", dst_norm_scaled)

        keypoints = suppress_overlapping(self.candidates(dst_norm), self.max_overlap)

        _log_detection(self.name, keypoints, start_time)

        if visualizer is not None:
            visualizer.show(
                "Harris corner detection results",
                draw_keypoints(dst_norm_scaled, keypoints),
            )

        return keypoints


_FEATURE2D_FACTORIES: dict[DetectorType, Callable[[], cv2.Feature2D]] = {
    DetectorType.FAST: cv2.FastFeatureDetector_create,
    DetectorType.BRISK: cv2.BRISK_create,
    DetectorType.ORB: cv2.ORB_create,
    DetectorType.AKAZE: cv2.AKAZE_create,
    DetectorType.SIFT: cv2.SIFT_create,
}


class ModernDetector:
    """FAST, BRISK, ORB, AKAZE or SIFT detector with OpenCV defaults."""

    def __init__(self, detector_type: DetectorType | str) -> None:
        try:
            self.detector_type = DetectorType(detector_type)
            factory = _FEATURE2D_FACTORIES[self.detector_type]
        except (ValueError, KeyError) as e:
            raise ServiceError(
                error="invalid_detector_type",
                message=f"Invalid detector type: {detector_type}",
                status_code=400,
                details={"supported": [t.value for t in _FEATURE2D_FACTORIES]},
            ) from e
        self.name = self.detector_type.value
        self.detector = factory()

    def detect(
        self,
        image: NDArray[np.uint8],
        visualizer: Visualizer | None = None,
    ) -> list[cv2.KeyPoint]:
        start_time = time.perf_counter()
        gray = to_grayscale(image)

        keypoints = list(self.detector.detect(gray, None))

        _log_detection(self.name, keypoints, start_time)

        if visualizer is not None:
            visualizer.show(f"{self.name} keypoint detection results", draw_keypoints(gray, keypoints))

        return keypoints


def create_detector(detector_type: DetectorType | str, settings: Settings) -> KeypointDetector:
    """
    Build a detector by name.

    Args:
        detector_type: One of the DetectorType names
        settings: Source of the Shi-Tomasi and Harris parameters

    Raises:
        ServiceError: If the detector type is unknown
    """
    if detector_type == DetectorType.SHITOMASI:
        return ShiTomasiDetector(
            block_size=settings.shi_tomasi.block_size,
            max_overlap=settings.shi_tomasi.max_overlap,
            quality_level=settings.shi_tomasi.quality_level,
            k=settings.shi_tomasi.k,
        )
    if detector_type == DetectorType.HARRIS:
        return HarrisDetector(
            block_size=settings.harris.block_size,
            aperture_size=settings.harris.aperture_size,
            min_response=settings.harris.min_response,
            k=settings.harris.k,
            max_overlap=settings.harris.max_overlap,
        )
    return ModernDetector(detector_type)
