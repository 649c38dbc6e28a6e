"""Conversion between OpenCV keypoints and plain dictionaries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import cv2

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


def keypoint_to_dict(kp: cv2.KeyPoint) -> dict[str, Any]:
    """Serialize an OpenCV keypoint."""
    return {
        "x": float(kp.pt[0]),
        "y": float(kp.pt[1]),
        "size": float(kp.size),
        "angle": float(kp.angle),
        "response": float(kp.response),
        "octave": int(kp.octave),
        "class_id": int(kp.class_id),
    }


def keypoints_to_cv(keypoints: Iterable[Mapping[str, Any]]) -> list[cv2.KeyPoint]:
    """
    Convert serialized keypoints back to OpenCV KeyPoint objects.

    Missing optional fields take the OpenCV defaults.
    """
    return [
        cv2.KeyPoint(
            float(kp["x"]),
            float(kp["y"]),
            float(kp["size"]),
            float(kp.get("angle", -1.0)),
            float(kp.get("response", 0.0)),
            int(kp.get("octave", 0)),
            int(kp.get("class_id", -1)),
        )
        for kp in keypoints
    ]
