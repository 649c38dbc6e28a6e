"""Integration tests for all endpoints."""

from __future__ import annotations

import pytest

from feature_tracking.core.state import get_app_state
from tests.factories import (
    create_checkerboard_base64,
    create_noise_array,
    create_noise_image_base64,
    create_non_image_base64,
    shift_array,
    to_base64,
)

DETECTORS = ["SHITOMASI", "HARRIS", "FAST", "BRISK", "ORB", "AKAZE", "SIFT"]


@pytest.mark.integration
class TestHealthEndpoint:
    """Integration tests for /health."""

    def test_health_returns_healthy(self, client) -> None:
        """Health endpoint returns healthy status."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


@pytest.mark.integration
class TestInfoEndpoint:
    """Integration tests for /info."""

    def test_info_returns_algorithm_config(self, client) -> None:
        """Info endpoint reports the configured parameters from config.yaml."""
        response = client.get("/info")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "feature_tracking"
        assert data["algorithm"]["harris"]["min_response"] == 100
        assert data["algorithm"]["ratio_threshold"] == 0.8


@pytest.mark.integration
class TestDetectEndpoint:
    """Integration tests for /detect."""

    @pytest.mark.parametrize("detector_type", DETECTORS)
    def test_every_detector(self, client, detector_type: str) -> None:
        """Every detector finds keypoints on a textured image."""
        image = (
            create_checkerboard_base64()
            if detector_type == "HARRIS"
            else create_noise_image_base64()
        )
        response = client.post("/detect", json={"image": image, "detector_type": detector_type})
        assert response.status_code == 200
        assert response.json()["num_keypoints"] > 0

    def test_detect_invalid_image(self, client) -> None:
        """Detect returns error for invalid image."""
        response = client.post(
            "/detect",
            json={"image": create_non_image_base64(), "detector_type": "FAST"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_image"


@pytest.mark.integration
class TestExtractEndpoint:
    """Integration tests for /extract."""

    @pytest.mark.parametrize(
        ("descriptor_type", "width"),
        [("BRISK", 64), ("BRIEF", 32), ("ORB", 32), ("FREAK", 64), ("SIFT", 128)],
    )
    def test_descriptors_on_fast_keypoints(self, client, descriptor_type: str, width: int) -> None:
        """Each descriptor describes FAST keypoints."""
        response = client.post(
            "/extract",
            json={
                "image": create_noise_image_base64(),
                "detector_type": "FAST",
                "descriptor_type": descriptor_type,
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["num_keypoints"] > 0
        assert data["descriptor_width"] == width

    def test_akaze_on_akaze_keypoints(self, client) -> None:
        """AKAZE describes its own keypoints."""
        response = client.post(
            "/extract",
            json={
                "image": create_noise_image_base64(),
                "detector_type": "AKAZE",
                "descriptor_type": "AKAZE",
            },
        )
        assert response.status_code == 200
        assert response.json()["descriptor_width"] == 61


@pytest.mark.integration
class TestMatchEndpoint:
    """Integration tests for /match."""

    @pytest.mark.parametrize("matcher_type", ["MAT_BF", "MAT_FLANN"])
    @pytest.mark.parametrize("selector_type", ["SEL_NN", "SEL_KNN"])
    def test_binary_matching(self, client, matcher_type: str, selector_type: str) -> None:
        """Shifted images match with every matcher and selector."""
        image = create_noise_array()
        response = client.post(
            "/match",
            json={
                "query_image": to_base64(image),
                "reference_image": to_base64(shift_array(image, 8, 8)),
                "detector_type": "ORB",
                "descriptor_type": "ORB",
                "matcher_type": matcher_type,
                "selector_type": selector_type,
            },
        )
        assert response.status_code == 200
        assert response.json()["num_matches"] > 0

    def test_match_against_extracted_features(self, client) -> None:
        """Features from /extract can be sent back as the reference."""
        reference = create_noise_image_base64()
        extracted = client.post(
            "/extract",
            json={"image": reference, "detector_type": "SIFT", "descriptor_type": "SIFT"},
        ).json()

        response = client.post(
            "/match",
            json={
                "query_image": reference,
                "reference_features": {
                    "keypoints": extracted["keypoints"],
                    "descriptors": extracted["descriptors"],
                    "descriptor_dtype": extracted["descriptor_dtype"],
                },
                "detector_type": "SIFT",
                "descriptor_type": "SIFT",
                "selector_type": "SEL_KNN",
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["reference_features"] == extracted["num_keypoints"]
        assert data["num_matches"] > 0


@pytest.mark.integration
class TestOperationCounters:
    """Integration tests for request bookkeeping."""

    def test_operations_are_counted(self, client) -> None:
        """Completed requests are counted per operation."""
        before = get_app_state().operations["detect"]
        client.post(
            "/detect",
            json={"image": create_noise_image_base64(), "detector_type": "ORB"},
        )
        assert get_app_state().operations["detect"] == before + 1
