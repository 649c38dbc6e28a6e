"""
Descriptor matching with brute-force or FLANN matchers.

Selection is either plain nearest neighbour or two nearest neighbours
filtered with the distance-ratio test.
"""

from __future__ import annotations

import time
from enum import StrEnum
from typing import TYPE_CHECKING, TypeVar

import cv2
import numpy as np

from feature_tracking.core.exceptions import ServiceError
from feature_tracking.logging import get_logger
from feature_tracking.types import DescriptorCategory, MatcherType, SelectorType

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

    from feature_tracking.config import Settings

logger = get_logger("matcher")

FLANN_INDEX_LSH = 6

EnumT = TypeVar("EnumT", bound=StrEnum)


def _parse(enum_type: type[EnumT], value: object, error: str) -> EnumT:
    try:
        return enum_type(value)
    except ValueError as e:
        raise ServiceError(
            error=error,
            message=f"Invalid value: {value}",
            status_code=400,
            details={"supported": [item.value for item in enum_type]},
        ) from e


def ratio_test(
    knn_matches: Sequence[Sequence[cv2.DMatch]],
    ratio_threshold: float,
) -> list[cv2.DMatch]:
    """
    Keep the best neighbour when it is clearly closer than the second one.

    Pairs with fewer than two neighbours are discarded.

    Args:
        knn_matches: k-NN results, best neighbour first
        ratio_threshold: Maximum ratio best / second distance

    Returns:
        List of good matches after ratio test filtering.
    """
    good_matches: list[cv2.DMatch] = []
    for match_pair in knn_matches:
        if len(match_pair) < 2:
            continue
        best, second = match_pair[0], match_pair[1]
        if best.distance < ratio_threshold * second.distance:
            good_matches.append(best)
    return good_matches


class DescriptorMatcher:
    """Match source descriptors against reference descriptors."""

    def __init__(
        self,
        descriptor_category: DescriptorCategory | str,
        matcher_type: MatcherType | str,
        selector_type: SelectorType | str,
        ratio_threshold: float = 0.8,
        lsh_table_number: int = 12,
        lsh_key_size: int = 20,
        lsh_multi_probe_level: int = 2,
    ) -> None:
        """
        Initialize descriptor matcher.

        Args:
            descriptor_category: DES_BINARY (Hamming) or DES_HOG (L2)
            matcher_type: MAT_BF or MAT_FLANN
            selector_type: SEL_NN or SEL_KNN
            ratio_threshold: Distance ratio for SEL_KNN
            lsh_table_number: FLANN LSH hash tables, binary descriptors only
            lsh_key_size: FLANN LSH key bits, binary descriptors only
            lsh_multi_probe_level: FLANN LSH neighbouring buckets probed

        Raises:
            ServiceError: If any of the three type names is unknown
        """
        self.descriptor_category = _parse(
            DescriptorCategory, descriptor_category, "invalid_descriptor_category"
        )
        self.matcher_type = _parse(MatcherType, matcher_type, "invalid_matcher_type")
        self.selector_type = _parse(SelectorType, selector_type, "invalid_selector_type")
        self.ratio_threshold = ratio_threshold
        cross_check = False

        if self.matcher_type == MatcherType.MAT_BF:
            if self.descriptor_category == DescriptorCategory.DES_BINARY:
                norm_type = cv2.NORM_HAMMING
            else:
                norm_type = cv2.NORM_L2
            self.matcher = cv2.BFMatcher(norm_type, crossCheck=cross_check)
        elif self.descriptor_category == DescriptorCategory.DES_HOG:
            self.matcher = cv2.FlannBasedMatcher()
        else:
            index_params = {
                "algorithm": FLANN_INDEX_LSH,
                "table_number": lsh_table_number,
                "key_size": lsh_key_size,
                "multi_probe_level": lsh_multi_probe_level,
            }
            self.matcher = cv2.FlannBasedMatcher(index_params, {})

    def _prepare(self, descriptors: NDArray[np.generic]) -> NDArray[np.generic]:
        # FLANN KD-trees only index float32 data
        if (
            self.matcher_type == MatcherType.MAT_FLANN
            and self.descriptor_category == DescriptorCategory.DES_HOG
        ):
            return np.asarray(descriptors, dtype=np.float32)
        return descriptors

    def match(
        self,
        kpts_source: Sequence[cv2.KeyPoint],
        kpts_ref: Sequence[cv2.KeyPoint],
        desc_source: NDArray[np.generic] | None,
        desc_ref: NDArray[np.generic] | None,
    ) -> list[cv2.DMatch]:
        """
        Find the best reference match for each source descriptor.

        Args:
            kpts_source: Keypoints of the source image (queryIdx side)
            kpts_ref: Keypoints of the reference image (trainIdx side)
            desc_source: Source descriptors, one row per source keypoint
            desc_ref: Reference descriptors, one row per reference keypoint

        Returns:
            Matches with queryIdx into the source and trainIdx into the reference
        """
        if desc_source is None or desc_ref is None:
            return []

        if len(desc_source) == 0 or len(desc_ref) == 0:
            return []

        start_time = time.perf_counter()
        query = self._prepare(desc_source)
        train = self._prepare(desc_ref)

        try:
            if self.selector_type == SelectorType.SEL_NN:
                matches = list(self.matcher.match(query, train))
            elif len(train) < 2:
                # No second neighbour to test against
                matches = []
            else:
                knn_matches = self.matcher.knnMatch(query, train, k=2)
                matches = ratio_test(knn_matches, self.ratio_threshold)
        except cv2.error as e:
            raise ServiceError(
                error="matching_failed",
                message=f"Descriptor matching failed: {e}",
                status_code=422,
                details={
                    "descriptor_category": self.descriptor_category.value,
                    "matcher_type": self.matcher_type.value,
                    "source_dtype": str(query.dtype),
                    "reference_dtype": str(train.dtype),
                },
            ) from e

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Descriptors matched",
            extra={
                "matcher": self.matcher_type.value,
                "selector": self.selector_type.value,
                "source_keypoints": len(kpts_source),
                "reference_keypoints": len(kpts_ref),
                "num_matches": len(matches),
                "processing_time_ms": round(elapsed_ms, 2),
            },
        )

        return matches


def create_matcher(
    descriptor_category: DescriptorCategory | str,
    matcher_type: MatcherType | str,
    selector_type: SelectorType | str,
    settings: Settings,
) -> DescriptorMatcher:
    """Build a matcher, taking the ratio and LSH parameters from settings."""
    return DescriptorMatcher(
        descriptor_category,
        matcher_type,
        selector_type,
        ratio_threshold=settings.matching.ratio_threshold,
        lsh_table_number=settings.matching.lsh_table_number,
        lsh_key_size=settings.matching.lsh_key_size,
        lsh_multi_probe_level=settings.matching.lsh_multi_probe_level,
    )
