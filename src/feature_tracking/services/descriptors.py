"""
Keypoint description with OpenCV descriptor extractors.

BRIEF and FREAK live in the contrib ``xfeatures2d`` module.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import cv2
import numpy as np

from feature_tracking.core.exceptions import ServiceError
from feature_tracking.logging import get_logger
from feature_tracking.types import DescriptorCategory, DescriptorType, descriptor_category
from feature_tracking.utils.image import to_grayscale

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

    from feature_tracking.config import Settings

logger = get_logger("descriptors")


class DescriptorExtractor:
    """Compute descriptors for given keypoints."""

    def __init__(
        self,
        descriptor_type: DescriptorType | str,
        brisk_threshold: int = 30,
        brisk_octaves: int = 3,
        brisk_pattern_scale: float = 1.0,
    ) -> None:
        """
        Initialize descriptor extractor.

        Args:
            descriptor_type: One of BRISK, BRIEF, ORB, FREAK, AKAZE, SIFT
            brisk_threshold: BRISK FAST/AGAST detection threshold score
            brisk_octaves: BRISK detection octaves (0 for single scale)
            brisk_pattern_scale: Scale applied to the BRISK sampling pattern

        Raises:
            ServiceError: If the descriptor type is unknown
        """
        try:
            self.descriptor_type = DescriptorType(descriptor_type)
        except ValueError as e:
            raise ServiceError(
                error="invalid_descriptor_type",
                message=f"Invalid descriptor type: {descriptor_type}",
                status_code=400,
                details={"supported": [t.value for t in DescriptorType]},
            ) from e

        if self.descriptor_type == DescriptorType.BRISK:
            self.extractor = cv2.BRISK_create(brisk_threshold, brisk_octaves, brisk_pattern_scale)
        elif self.descriptor_type == DescriptorType.BRIEF:
            self.extractor = cv2.xfeatures2d.BriefDescriptorExtractor_create()
        elif self.descriptor_type == DescriptorType.ORB:
            self.extractor = cv2.ORB_create()
        elif self.descriptor_type == DescriptorType.FREAK:
            self.extractor = cv2.xfeatures2d.FREAK_create()
        elif self.descriptor_type == DescriptorType.AKAZE:
            self.extractor = cv2.AKAZE_create()
        else:
            self.extractor = cv2.SIFT_create()

    @property
    def category(self) -> DescriptorCategory:
        """Binary or gradient-histogram family of the produced descriptors."""
        return descriptor_category(self.descriptor_type)

    def compute(
        self,
        image: NDArray[np.uint8],
        keypoints: Sequence[cv2.KeyPoint],
    ) -> tuple[list[cv2.KeyPoint], NDArray[np.generic] | None]:
        """
        Describe keypoints.

        OpenCV drops keypoints it cannot describe (e.g. too close to the
        border), so the surviving keypoints are returned with the matrix.

        Args:
            image: Grayscale or BGR image the keypoints were detected on
            keypoints: Keypoints to describe

        Returns:
            Tuple of:
            - keypoints: Keypoints that received a descriptor
            - descriptors: (N, width) array, uint8 for binary descriptors and
              float32 for SIFT, or None if there is nothing to describe

        Raises:
            ServiceError: If OpenCV rejects the keypoints for this descriptor
        """
        if len(keypoints) == 0:
            return [], None

        start_time = time.perf_counter()
        gray = to_grayscale(image)

        try:
            described, descriptors = self.extractor.compute(gray, list(keypoints))
        except cv2.error as e:
            raise ServiceError(
                error="description_failed",
                message=f"{self.descriptor_type.value} descriptor extraction failed: {e}",
                status_code=422,
                details={
                    "descriptor_type": self.descriptor_type.value,
                    "num_keypoints": len(keypoints),
                },
            ) from e

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Descriptors extracted",
            extra={
                "descriptor": self.descriptor_type.value,
                "num_keypoints": len(described),
                "dropped_keypoints": len(keypoints) - len(described),
                "processing_time_ms": round(elapsed_ms, 2),
            },
        )

        return list(described), descriptors


def create_extractor(descriptor_type: DescriptorType | str, settings: Settings) -> DescriptorExtractor:
    """Build a descriptor extractor by name, taking BRISK parameters from settings."""
    return DescriptorExtractor(
        descriptor_type,
        brisk_threshold=settings.brisk.threshold,
        brisk_octaves=settings.brisk.octaves,
        brisk_pattern_scale=settings.brisk.pattern_scale,
    )
