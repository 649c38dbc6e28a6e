"""Service layer components."""

from feature_tracking.services.descriptors import DescriptorExtractor, create_extractor
from feature_tracking.services.detectors import (
    HarrisDetector,
    ModernDetector,
    ShiTomasiDetector,
    create_detector,
)
from feature_tracking.services.matcher import DescriptorMatcher, create_matcher
from feature_tracking.services.tracking import FeatureTracker, FrameBuffer, create_tracker

__all__ = [
    "DescriptorExtractor",
    "DescriptorMatcher",
    "FeatureTracker",
    "FrameBuffer",
    "HarrisDetector",
    "ModernDetector",
    "ShiTomasiDetector",
    "create_detector",
    "create_extractor",
    "create_matcher",
    "create_tracker",
]
