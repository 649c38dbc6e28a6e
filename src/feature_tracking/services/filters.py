"""Keypoint selection by region of interest and response strength."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    import cv2

    from feature_tracking.config import RegionConfig
    from feature_tracking.schemas import RegionData


def filter_by_region(
    keypoints: Sequence[cv2.KeyPoint],
    region: RegionConfig | RegionData,
) -> list[cv2.KeyPoint]:
    """
    Keep keypoints inside a rectangle.

    The top-left edge belongs to the rectangle, the bottom-right edge does not.
    """
    x_max = region.x + region.width
    y_max = region.y + region.height
    return [
        kp
        for kp in keypoints
        if region.x <= kp.pt[0] < x_max and region.y <= kp.pt[1] < y_max
    ]


def retain_best(keypoints: Sequence[cv2.KeyPoint], max_keypoints: int) -> list[cv2.KeyPoint]:
    """
    Keep the strongest keypoints.

    Ties keep their detection order, so detectors that report no response
    (Shi-Tomasi) are simply truncated.
    """
    if max_keypoints <= 0:
        return []
    if len(keypoints) <= max_keypoints:
        return list(keypoints)
    return sorted(keypoints, key=lambda kp: kp.response, reverse=True)[:max_keypoints]
