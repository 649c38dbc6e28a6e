"""Utility functions for the feature tracking service."""

from feature_tracking.utils.image import (
    decode_base64_image,
    decode_descriptors,
    decode_image,
    encode_descriptors,
    encode_png_base64,
    to_grayscale,
)
from feature_tracking.utils.keypoints import keypoint_to_dict, keypoints_to_cv

__all__ = [
    "decode_base64_image",
    "decode_descriptors",
    "decode_image",
    "encode_descriptors",
    "encode_png_base64",
    "keypoint_to_dict",
    "keypoints_to_cv",
    "to_grayscale",
]
