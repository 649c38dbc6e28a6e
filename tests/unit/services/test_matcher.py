"""Unit tests for descriptor matching."""

from __future__ import annotations

import cv2
import numpy as np
import pytest

from feature_tracking.config import Settings
from feature_tracking.core.exceptions import ServiceError
from feature_tracking.services.matcher import DescriptorMatcher, create_matcher, ratio_test
from tests.factories import create_binary_descriptors, create_float_descriptors, create_settings_dict


def keypoints_for(descriptors: np.ndarray) -> list[cv2.KeyPoint]:
    """One placeholder keypoint per descriptor row."""
    return [cv2.KeyPoint(float(i), 0.0, 7.0) for i in range(len(descriptors))]


def match_identical(matcher: DescriptorMatcher, descriptors: np.ndarray) -> list[cv2.DMatch]:
    """Match a descriptor set against itself."""
    kps = keypoints_for(descriptors)
    return matcher.match(kps, kps, descriptors, descriptors.copy())


@pytest.mark.unit
class TestRatioTest:
    """Tests for the distance-ratio test."""

    def test_distinct_best_match_is_kept(self) -> None:
        """Best neighbour clearly closer than the second one passes."""
        best = cv2.DMatch(0, 3, 10.0)
        second = cv2.DMatch(0, 5, 50.0)

        assert ratio_test([[best, second]], 0.8) == [best]

    def test_ambiguous_match_is_dropped(self) -> None:
        """Best neighbour at exactly the ratio boundary is dropped."""
        pair = [cv2.DMatch(0, 3, 8.0), cv2.DMatch(0, 5, 10.0)]

        assert ratio_test([pair], 0.8) == []

    def test_single_neighbour_is_dropped(self) -> None:
        """Pairs with fewer than two neighbours cannot be tested."""
        assert ratio_test([[cv2.DMatch(0, 3, 1.0)], []], 0.8) == []

    def test_order_is_preserved(self) -> None:
        """Good matches keep the query order."""
        pairs = [
            [cv2.DMatch(0, 1, 1.0), cv2.DMatch(0, 2, 10.0)],
            [cv2.DMatch(1, 4, 9.5), cv2.DMatch(1, 2, 10.0)],
            [cv2.DMatch(2, 7, 2.0), cv2.DMatch(2, 8, 10.0)],
        ]

        result = ratio_test(pairs, 0.8)

        assert [(m.queryIdx, m.trainIdx) for m in result] == [(0, 1), (2, 7)]


@pytest.mark.unit
class TestDescriptorMatcher:
    """Tests for DescriptorMatcher."""

    def test_bf_nn_binary(self) -> None:
        """Brute-force Hamming matching finds each identical descriptor."""
        descriptors = create_binary_descriptors()
        matcher = DescriptorMatcher("DES_BINARY", "MAT_BF", "SEL_NN")

        matches = match_identical(matcher, descriptors)

        assert len(matches) == 50
        assert all(m.queryIdx == m.trainIdx for m in matches)
        assert all(m.distance == 0 for m in matches)

    def test_bf_knn_binary(self) -> None:
        """Identical descriptors pass the ratio test."""
        descriptors = create_binary_descriptors()
        matcher = DescriptorMatcher("DES_BINARY", "MAT_BF", "SEL_KNN")

        matches = match_identical(matcher, descriptors)

        assert len(matches) == 50

    def test_bf_nn_float(self) -> None:
        """Brute-force L2 matching works on float descriptors."""
        descriptors = create_float_descriptors()
        matcher = DescriptorMatcher("DES_HOG", "MAT_BF", "SEL_NN")

        matches = match_identical(matcher, descriptors)

        assert len(matches) == 50
        assert all(m.queryIdx == m.trainIdx for m in matches)

    def test_flann_hog(self) -> None:
        """FLANN KD-tree matching finds each identical descriptor."""
        descriptors = create_float_descriptors()
        matcher = DescriptorMatcher("DES_HOG", "MAT_FLANN", "SEL_NN")

        matches = match_identical(matcher, descriptors)

        assert len(matches) == 50

    def test_flann_hog_converts_to_float32(self) -> None:
        """Non-float32 descriptors are converted for the KD-tree."""
        descriptors = create_float_descriptors().astype(np.float64)
        matcher = DescriptorMatcher("DES_HOG", "MAT_FLANN", "SEL_NN")

        matches = match_identical(matcher, descriptors)

        assert len(matches) == 50

    def test_flann_lsh_binary(self) -> None:
        """FLANN LSH matching recovers identical binary descriptors."""
        descriptors = create_binary_descriptors()
        matcher = DescriptorMatcher("DES_BINARY", "MAT_FLANN", "SEL_KNN")

        matches = match_identical(matcher, descriptors)

        assert len(matches) > 0
        assert all(m.distance == 0 for m in matches)

    def test_bf_binary_uses_hamming_distance(self) -> None:
        """Binary brute-force matching uses Hamming distances."""
        query = np.zeros((1, 32), dtype=np.uint8)
        train = np.zeros((2, 32), dtype=np.uint8)
        train[0, 0] = 0b00000111
        train[1, 0] = 0b00000001
        matcher = DescriptorMatcher("DES_BINARY", "MAT_BF", "SEL_NN")

        matches = matcher.match(keypoints_for(query), keypoints_for(train), query, train)

        assert len(matches) == 1
        assert matches[0].trainIdx == 1
        assert matches[0].distance == 1

    @pytest.mark.parametrize(
        ("source", "reference"),
        [
            (None, create_binary_descriptors()),
            (create_binary_descriptors(), None),
            (np.empty((0, 32), dtype=np.uint8), create_binary_descriptors()),
        ],
    )
    def test_missing_descriptors(
        self,
        source: np.ndarray | None,
        reference: np.ndarray | None,
    ) -> None:
        """Missing or empty descriptors on either side yield no matches."""
        matcher = DescriptorMatcher("DES_BINARY", "MAT_BF", "SEL_NN")

        assert matcher.match([], [], source, reference) == []

    @pytest.mark.parametrize("matcher_type", ["MAT_BF", "MAT_FLANN"])
    @pytest.mark.parametrize(
        ("category", "descriptors"),
        [
            ("DES_BINARY", create_binary_descriptors(count=5)),
            ("DES_HOG", create_float_descriptors(count=5)),
        ],
    )
    def test_knn_single_reference_descriptor(
        self,
        matcher_type: str,
        category: str,
        descriptors: np.ndarray,
    ) -> None:
        """Without a second neighbour the ratio test keeps nothing."""
        matcher = DescriptorMatcher(category, matcher_type, "SEL_KNN")
        reference = descriptors[:1].copy()

        matches = matcher.match(
            keypoints_for(descriptors),
            keypoints_for(reference),
            descriptors,
            reference,
        )

        assert matches == []

    def test_mismatched_widths_raise(self) -> None:
        """OpenCV errors surface as matching_failed."""
        matcher = DescriptorMatcher("DES_BINARY", "MAT_BF", "SEL_NN")
        source = create_binary_descriptors(width=32)
        reference = create_binary_descriptors(width=64)

        with pytest.raises(ServiceError) as exc_info:
            matcher.match(keypoints_for(source), keypoints_for(reference), source, reference)

        assert exc_info.value.error == "matching_failed"
        assert exc_info.value.status_code == 422

    @pytest.mark.parametrize(
        ("args", "error"),
        [
            (("DES_FOO", "MAT_BF", "SEL_NN"), "invalid_descriptor_category"),
            (("DES_BINARY", "MAT_FOO", "SEL_NN"), "invalid_matcher_type"),
            (("DES_BINARY", "MAT_BF", "SEL_FOO"), "invalid_selector_type"),
        ],
    )
    def test_invalid_names_raise(self, args: tuple[str, str, str], error: str) -> None:
        """Unknown names are rejected at construction."""
        with pytest.raises(ServiceError) as exc_info:
            DescriptorMatcher(*args)

        assert exc_info.value.error == error
        assert exc_info.value.status_code == 400


@pytest.mark.unit
class TestCreateMatcher:
    """Tests for create_matcher."""

    def test_ratio_from_settings(self) -> None:
        """Ratio threshold comes from configuration."""
        settings_dict = create_settings_dict()
        settings_dict["matching"]["ratio_threshold"] = 0.6
        settings = Settings(**settings_dict)

        matcher = create_matcher("DES_BINARY", "MAT_BF", "SEL_KNN", settings)

        assert matcher.ratio_threshold == 0.6
        assert matcher.selector_type == "SEL_KNN"
