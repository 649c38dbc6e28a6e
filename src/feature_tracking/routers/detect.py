"""
Keypoint detection endpoint.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from fastapi import APIRouter

from feature_tracking.config import get_settings
from feature_tracking.core.state import record_operation
from feature_tracking.logging import get_logger
from feature_tracking.schemas import (
    DetectRequest,
    DetectResponse,
    ImageSize,
    KeypointData,
    VisualizationData,
)
from feature_tracking.services.pipeline import detect_keypoints
from feature_tracking.services.visualization import CaptureVisualizer
from feature_tracking.utils.image import decode_base64_image, decode_image, encode_png_base64
from feature_tracking.utils.keypoints import keypoint_to_dict

if TYPE_CHECKING:
    from collections.abc import Sequence

    import cv2

router = APIRouter()


def to_visualizations(capture: CaptureVisualizer | None) -> list[VisualizationData]:
    """Encode captured renderings as base64 PNG."""
    if capture is None:
        return []
    return [
        VisualizationData(title=title, image=encode_png_base64(image))
        for title, image in capture.frames
    ]


def to_keypoint_data(keypoints: Sequence[cv2.KeyPoint]) -> list[KeypointData]:
    """Convert OpenCV keypoints to response models."""
    return [KeypointData(**keypoint_to_dict(kp)) for kp in keypoints]


@router.post("/detect", response_model=DetectResponse)
async def detect(request: DetectRequest) -> DetectResponse:
    """Detect keypoints in an image."""
    logger = get_logger("routers.detect")
    start_time = time.perf_counter()

    settings = get_settings()

    image = decode_image(decode_base64_image(request.image))
    height, width = image.shape[:2]

    capture = CaptureVisualizer() if request.visualize else None
    keypoints = detect_keypoints(
        image,
        request.detector_type,
        settings,
        region=request.region,
        max_keypoints=request.max_keypoints,
        visualizer=capture,
    )

    processing_time_ms = (time.perf_counter() - start_time) * 1000
    record_operation("detect")

    logger.info(
        "Keypoints detected",
        extra={
            "image_id": request.image_id,
            "detector": request.detector_type.value,
            "num_keypoints": len(keypoints),
            "processing_time_ms": round(processing_time_ms, 2),
        },
    )

    return DetectResponse(
        image_id=request.image_id,
        detector_type=request.detector_type,
        num_keypoints=len(keypoints),
        keypoints=to_keypoint_data(keypoints),
        image_size=ImageSize(width=width, height=height),
        visualizations=to_visualizations(capture),
        processing_time_ms=round(processing_time_ms, 2),
    )
