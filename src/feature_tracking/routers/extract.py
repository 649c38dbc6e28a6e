"""
Feature extraction endpoint.
"""

from __future__ import annotations

import time

from fastapi import APIRouter

from feature_tracking.config import get_settings
from feature_tracking.core.state import record_operation
from feature_tracking.logging import get_logger
from feature_tracking.routers.detect import to_keypoint_data, to_visualizations
from feature_tracking.schemas import ExtractRequest, ExtractResponse, ImageSize
from feature_tracking.services.pipeline import extract_features
from feature_tracking.services.visualization import CaptureVisualizer
from feature_tracking.types import descriptor_category
from feature_tracking.utils.image import decode_base64_image, decode_image, encode_descriptors

router = APIRouter()


@router.post("/extract", response_model=ExtractResponse)
async def extract(request: ExtractRequest) -> ExtractResponse:
    """Detect keypoints and compute their descriptors."""
    logger = get_logger("routers.extract")
    start_time = time.perf_counter()

    settings = get_settings()

    image = decode_image(decode_base64_image(request.image))
    height, width = image.shape[:2]

    capture = CaptureVisualizer() if request.visualize else None
    keypoints, descriptors = extract_features(
        image,
        request.detector_type,
        request.descriptor_type,
        settings,
        region=request.region,
        max_keypoints=request.max_keypoints,
        visualizer=capture,
    )

    if descriptors is not None:
        descriptor_dtype = str(descriptors.dtype)
        descriptor_width = int(descriptors.shape[1])
    else:
        descriptor_dtype = None
        descriptor_width = 0

    processing_time_ms = (time.perf_counter() - start_time) * 1000
    record_operation("extract")

    logger.info(
        "Features extracted",
        extra={
            "image_id": request.image_id,
            "detector": request.detector_type.value,
            "descriptor": request.descriptor_type.value,
            "num_features": len(keypoints),
            "processing_time_ms": round(processing_time_ms, 2),
        },
    )

    return ExtractResponse(
        image_id=request.image_id,
        detector_type=request.detector_type,
        num_keypoints=len(keypoints),
        keypoints=to_keypoint_data(keypoints),
        image_size=ImageSize(width=width, height=height),
        visualizations=to_visualizations(capture),
        processing_time_ms=round(processing_time_ms, 2),
        descriptor_type=request.descriptor_type,
        descriptor_category=descriptor_category(request.descriptor_type),
        descriptors=encode_descriptors(descriptors),
        descriptor_dtype=descriptor_dtype,
        descriptor_width=descriptor_width,
    )
