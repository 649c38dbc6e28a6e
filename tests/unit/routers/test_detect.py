"""Unit tests for detect endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tests.factories import (
    create_checkerboard_base64,
    create_invalid_base64,
    create_noise_image_base64,
    create_non_image_base64,
)

if TYPE_CHECKING:
    from fastapi.testclient import TestClient


@pytest.mark.unit
class TestDetectEndpoint:
    """Tests for POST /detect."""

    def test_detect_returns_keypoints(self, client: TestClient) -> None:
        """Detected keypoints are returned with the image size."""
        response = client.post(
            "/detect",
            json={"image": create_noise_image_base64(), "detector_type": "FAST", "image_id": "f1"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["image_id"] == "f1"
        assert data["detector_type"] == "FAST"
        assert data["num_keypoints"] == len(data["keypoints"]) > 0
        assert data["image_size"] == {"width": 200, "height": 200}
        assert data["visualizations"] == []
        assert data["processing_time_ms"] >= 0

    def test_keypoint_fields(self, client: TestClient) -> None:
        """Each keypoint carries all OpenCV attributes."""
        data = client.post(
            "/detect",
            json={"image": create_checkerboard_base64(), "detector_type": "HARRIS"},
        ).json()

        keypoint = data["keypoints"][0]
        assert set(keypoint) == {"x", "y", "size", "angle", "response", "octave", "class_id"}
        assert keypoint["size"] == 6.0
        assert keypoint["response"] > 100

    def test_max_keypoints(self, client: TestClient) -> None:
        """Keypoint budget limits the result."""
        data = client.post(
            "/detect",
            json={
                "image": create_noise_image_base64(),
                "detector_type": "FAST",
                "max_keypoints": 10,
            },
        ).json()

        assert data["num_keypoints"] == 10

    def test_region(self, client: TestClient) -> None:
        """Only keypoints inside the region are returned."""
        data = client.post(
            "/detect",
            json={
                "image": create_noise_image_base64(),
                "detector_type": "SHITOMASI",
                "region": {"x": 0, "y": 0, "width": 100, "height": 50},
            },
        ).json()

        assert data["num_keypoints"] > 0
        assert all(kp["x"] < 100 and kp["y"] < 50 for kp in data["keypoints"])

    def test_visualize_returns_images(self, client: TestClient) -> None:
        """Harris returns its response matrix and result renderings."""
        data = client.post(
            "/detect",
            json={
                "image": create_checkerboard_base64(),
                "detector_type": "HARRIS",
                "visualize": True,
            },
        ).json()

        titles = [v["title"] for v in data["visualizations"]]
        assert titles == ["Harris Corner Detector Response Matrix", "Harris corner detection results"]
        assert all(v["image"] for v in data["visualizations"])

    def test_unknown_detector_returns_422(self, client: TestClient) -> None:
        """Unknown detector names fail request validation."""
        response = client.post(
            "/detect",
            json={"image": create_noise_image_base64(), "detector_type": "SURF"},
        )

        assert response.status_code == 422

    def test_invalid_base64_returns_400(self, client: TestClient) -> None:
        """Malformed base64 returns decode_error."""
        response = client.post(
            "/detect",
            json={"image": create_invalid_base64(), "detector_type": "FAST"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "decode_error"

    def test_non_image_returns_400(self, client: TestClient) -> None:
        """Bytes that are not an image return invalid_image."""
        response = client.post(
            "/detect",
            json={"image": create_non_image_base64(), "detector_type": "FAST"},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "invalid_image"
        assert set(data) == {"error", "message", "details"}
