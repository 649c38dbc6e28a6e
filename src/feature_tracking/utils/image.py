"""Image and descriptor encoding utilities."""

from __future__ import annotations

import base64
import binascii
from typing import TYPE_CHECKING

import cv2
import numpy as np

from feature_tracking.core.exceptions import ServiceError

if TYPE_CHECKING:
    from numpy.typing import NDArray

# Descriptor dtypes accepted over the wire
DESCRIPTOR_DTYPES: dict[str, type[np.generic]] = {
    "uint8": np.uint8,
    "float32": np.float32,
}


def decode_base64_image(base64_string: str) -> bytes:
    """
    Decode base64 string to bytes.

    Accepts plain base64 as well as data URLs ("data:image/png;base64,...").

    Raises:
        ServiceError: If base64 decoding fails
    """
    if "," in base64_string:
        base64_string = base64_string.split(",", 1)[1]

    try:
        return base64.b64decode(base64_string, validate=True)
    except binascii.Error as e:
        raise ServiceError(
            error="decode_error",
            message=f"Invalid Base64 encoding: {e}",
            status_code=400,
            details=None,
        ) from e


def decode_image(image_bytes: bytes) -> NDArray[np.uint8]:
    """
    Decode encoded image bytes (JPEG, PNG, WebP) into a grayscale array.

    Raises:
        ServiceError: If the bytes are not a decodable image
    """
    nparr = np.frombuffer(image_bytes, np.uint8)
    image = cv2.imdecode(nparr, cv2.IMREAD_COLOR) if nparr.size else None

    if image is None:
        raise ServiceError(
            error="invalid_image",
            message="Failed to decode image data",
            status_code=400,
            details=None,
        )

    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def to_grayscale(image: NDArray[np.uint8]) -> NDArray[np.uint8]:
    """Convert a BGR or BGRA image to grayscale; grayscale passes through."""
    if image.ndim == 2:
        return image
    if image.ndim == 3 and image.shape[2] == 1:
        return image[:, :, 0]
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    raise ValueError(f"Unsupported image shape {image.shape}")


def encode_png_base64(image: NDArray[np.uint8]) -> str:
    """Encode an image array as base64 PNG."""
    ok, buffer = cv2.imencode(".png", image)
    if not ok:
        raise ServiceError(
            error="encode_error",
            message="Failed to encode visualization as PNG",
            status_code=500,
            details=None,
        )
    return base64.b64encode(buffer.tobytes()).decode("ascii")


def encode_descriptors(descriptors: NDArray[np.generic] | None) -> str:
    """Encode a descriptor matrix as base64 of its raw row-major bytes."""
    if descriptors is None:
        return ""
    return base64.b64encode(np.ascontiguousarray(descriptors).tobytes()).decode("ascii")


def decode_descriptors(
    descriptors_b64: str,
    num_features: int,
    dtype: str,
) -> NDArray[np.generic]:
    """
    Decode base64 descriptors to a (num_features, width) array.

    Args:
        descriptors_b64: Base64-encoded descriptor data
        num_features: Number of features (rows)
        dtype: Element type, "uint8" for binary or "float32" for SIFT

    Raises:
        ServiceError: If decoding fails or the size does not fit the row count
    """
    try:
        desc_bytes = base64.b64decode(descriptors_b64, validate=True)
        array = np.frombuffer(desc_bytes, dtype=DESCRIPTOR_DTYPES[dtype])
        if num_features == 0 and array.size == 0:
            return array.reshape(0, 0)
        if array.size == 0:
            raise ValueError(f"no descriptor data for {num_features} features")
        return array.reshape(num_features, -1)
    except (binascii.Error, KeyError, ValueError) as e:
        raise ServiceError(
            error="invalid_features",
            message=f"Failed to decode descriptors: {e}",
            status_code=400,
            details={"num_features": num_features, "dtype": dtype},
        ) from e
