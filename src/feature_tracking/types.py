"""
Names of the supported detector, descriptor and matcher variants.
"""

from __future__ import annotations

from enum import StrEnum


class DetectorType(StrEnum):
    """Keypoint detector variants."""

    SHITOMASI = "SHITOMASI"
    HARRIS = "HARRIS"
    FAST = "FAST"
    BRISK = "BRISK"
    ORB = "ORB"
    AKAZE = "AKAZE"
    SIFT = "SIFT"


class DescriptorType(StrEnum):
    """Descriptor extractor variants."""

    BRISK = "BRISK"
    BRIEF = "BRIEF"
    ORB = "ORB"
    FREAK = "FREAK"
    AKAZE = "AKAZE"
    SIFT = "SIFT"


class DescriptorCategory(StrEnum):
    """Descriptor families, which decide the distance norm used for matching."""

    DES_BINARY = "DES_BINARY"
    DES_HOG = "DES_HOG"


class MatcherType(StrEnum):
    """Descriptor matcher backends."""

    MAT_BF = "MAT_BF"
    MAT_FLANN = "MAT_FLANN"


class SelectorType(StrEnum):
    """Match selection strategies."""

    SEL_NN = "SEL_NN"
    SEL_KNN = "SEL_KNN"


def descriptor_category(descriptor_type: DescriptorType | str) -> DescriptorCategory:
    """
    Return the descriptor family for a descriptor type.

    SIFT produces gradient histograms; every other supported descriptor
    is a binary string.
    """
    if DescriptorType(descriptor_type) == DescriptorType.SIFT:
        return DescriptorCategory.DES_HOG
    return DescriptorCategory.DES_BINARY
