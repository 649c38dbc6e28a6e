"""
Descriptor matching endpoint.
"""

from __future__ import annotations

import time

from fastapi import APIRouter

from feature_tracking.config import get_settings
from feature_tracking.core.exceptions import ServiceError
from feature_tracking.core.state import record_operation
from feature_tracking.logging import get_logger
from feature_tracking.routers.detect import to_visualizations
from feature_tracking.schemas import MatchData, MatchRequest, MatchResponse
from feature_tracking.services.matcher import create_matcher
from feature_tracking.services.pipeline import extract_features
from feature_tracking.services.visualization import CaptureVisualizer, draw_matches
from feature_tracking.types import descriptor_category
from feature_tracking.utils.image import decode_base64_image, decode_descriptors, decode_image
from feature_tracking.utils.keypoints import keypoints_to_cv

router = APIRouter()


@router.post("/match", response_model=MatchResponse)
async def match_images(request: MatchRequest) -> MatchResponse:
    """Match the features of a query image against a reference."""
    logger = get_logger("routers.match")
    start_time = time.perf_counter()

    settings = get_settings()
    category = descriptor_category(request.descriptor_type)

    # Validate the reference before doing any work on the query
    if request.reference_image is None and request.reference_features is None:
        raise ServiceError(
            error="validation_error",
            message="Either reference_image or reference_features must be provided",
            status_code=400,
            details=None,
        )

    capture = CaptureVisualizer() if request.visualize else None

    query_image = decode_image(decode_base64_image(request.query_image))
    query_kp, query_desc = extract_features(
        query_image,
        request.detector_type,
        request.descriptor_type,
        settings,
        region=request.region,
        max_keypoints=request.max_keypoints,
        visualizer=capture,
    )

    ref_image = None
    if request.reference_image is not None:
        ref_image = decode_image(decode_base64_image(request.reference_image))
        ref_kp, ref_desc = extract_features(
            ref_image,
            request.detector_type,
            request.descriptor_type,
            settings,
            region=request.region,
            max_keypoints=request.max_keypoints,
            visualizer=capture,
        )
    else:
        features = request.reference_features
        ref_kp = keypoints_to_cv(kp.model_dump() for kp in features.keypoints)
        ref_desc = decode_descriptors(
            features.descriptors,
            len(features.keypoints),
            features.descriptor_dtype,
        )

    matcher = create_matcher(category, request.matcher_type, request.selector_type, settings)
    matches = matcher.match(query_kp, ref_kp, query_desc, ref_desc)

    if capture is not None and ref_image is not None:
        capture.show(
            "Matching keypoints between two camera images",
            draw_matches(query_image, query_kp, ref_image, ref_kp, matches),
        )

    processing_time_ms = (time.perf_counter() - start_time) * 1000
    record_operation("match")

    logger.info(
        "Match completed",
        extra={
            "query_id": request.query_id,
            "reference_id": request.reference_id,
            "detector": request.detector_type.value,
            "descriptor": request.descriptor_type.value,
            "matcher": request.matcher_type.value,
            "selector": request.selector_type.value,
            "num_matches": len(matches),
            "processing_time_ms": round(processing_time_ms, 2),
        },
    )

    return MatchResponse(
        num_matches=len(matches),
        matches=[
            MatchData(query_idx=m.queryIdx, train_idx=m.trainIdx, distance=float(m.distance))
            for m in matches
        ],
        query_features=len(query_kp),
        reference_features=len(ref_kp),
        descriptor_category=category,
        matcher_type=request.matcher_type,
        selector_type=request.selector_type,
        query_id=request.query_id,
        reference_id=request.reference_id,
        visualizations=to_visualizations(capture),
        processing_time_ms=round(processing_time_ms, 2),
    )
