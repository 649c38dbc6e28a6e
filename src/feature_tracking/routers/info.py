"""
Service information endpoint.
"""

from __future__ import annotations

import cv2
from fastapi import APIRouter

from feature_tracking.config import get_settings
from feature_tracking.schemas import AlgorithmInfo, InfoResponse
from feature_tracking.types import DescriptorType, DetectorType, MatcherType, SelectorType

router = APIRouter()


@router.get("/info", response_model=InfoResponse)
async def get_info() -> InfoResponse:
    """Get supported algorithms and their configuration."""
    settings = get_settings()

    algorithm = AlgorithmInfo(
        detectors=[t.value for t in DetectorType],
        descriptors=[t.value for t in DescriptorType],
        matchers=[t.value for t in MatcherType],
        selectors=[t.value for t in SelectorType],
        shi_tomasi={
            "block_size": settings.shi_tomasi.block_size,
            "max_overlap": settings.shi_tomasi.max_overlap,
            "quality_level": settings.shi_tomasi.quality_level,
            "k": settings.shi_tomasi.k,
        },
        harris={
            "block_size": settings.harris.block_size,
            "aperture_size": settings.harris.aperture_size,
            "min_response": settings.harris.min_response,
            "k": settings.harris.k,
            "max_overlap": settings.harris.max_overlap,
        },
        brisk={
            "threshold": settings.brisk.threshold,
            "octaves": settings.brisk.octaves,
            "pattern_scale": settings.brisk.pattern_scale,
        },
        ratio_threshold=settings.matching.ratio_threshold,
        lsh_index={
            "table_number": settings.matching.lsh_table_number,
            "key_size": settings.matching.lsh_key_size,
            "multi_probe_level": settings.matching.lsh_multi_probe_level,
        },
    )

    return InfoResponse(
        service=settings.service.name,
        version=settings.service.version,
        opencv_version=cv2.__version__,
        algorithm=algorithm,
    )
