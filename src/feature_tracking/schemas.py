"""
Pydantic request/response models for the feature tracking API.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from feature_tracking.types import (
    DescriptorCategory,
    DescriptorType,
    DetectorType,
    MatcherType,
    SelectorType,
)

# === Helper Models ===


class KeypointData(BaseModel):
    """Serialized keypoint."""

    model_config = ConfigDict(extra="forbid")

    x: float
    """X coordinate of the keypoint."""

    y: float
    """Y coordinate of the keypoint."""

    size: float
    """Diameter of the keypoint neighborhood."""

    angle: float = -1.0
    """Orientation in degrees, -1 if not computed."""

    response: float = 0.0
    """Detector response strength."""

    octave: int = 0
    """Pyramid octave the keypoint was detected in."""

    class_id: int = -1
    """Object class, used by AKAZE to carry descriptor size information."""


class ImageSize(BaseModel):
    """Image dimensions."""

    model_config = ConfigDict(extra="forbid")

    width: int
    """Image width in pixels."""

    height: int
    """Image height in pixels."""


class RegionData(BaseModel):
    """Rectangular region of interest."""

    model_config = ConfigDict(extra="forbid")

    x: int
    y: int
    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)


class VisualizationData(BaseModel):
    """Rendered debug image."""

    title: str
    """Title of the rendering, e.g. "FAST keypoint detection results"."""

    image: str
    """Base64-encoded PNG image."""


class MatchData(BaseModel):
    """Single descriptor match."""

    query_idx: int
    """Index into the query keypoints."""

    train_idx: int
    """Index into the reference keypoints."""

    distance: float
    """Descriptor distance (Hamming or L2)."""


# === Request Models ===


class DetectRequest(BaseModel):
    """Request model for POST /detect endpoint."""

    model_config = ConfigDict(extra="forbid")

    image: str = Field(..., min_length=1)
    """Base64-encoded image data (JPEG, PNG, or WebP)."""

    detector_type: DetectorType
    """Keypoint detector to run."""

    image_id: str | None = None
    """Optional identifier for logging/tracing."""

    max_keypoints: int | None = Field(default=None, ge=0)
    """Keep only the strongest keypoints."""

    region: RegionData | None = None
    """Keep only keypoints inside this region."""

    visualize: bool = False
    """Return debug renderings with the response."""


class ExtractRequest(DetectRequest):
    """Request model for POST /extract endpoint."""

    descriptor_type: DescriptorType
    """Descriptor extractor to run on the detected keypoints."""


class ReferenceFeatures(BaseModel):
    """Pre-extracted features for the reference image."""

    model_config = ConfigDict(extra="forbid")

    keypoints: list[KeypointData]
    """List of keypoint data."""

    descriptors: str
    """Base64-encoded descriptors array."""

    descriptor_dtype: Literal["uint8", "float32"]
    """Element type of the descriptors array."""


class MatchRequest(BaseModel):
    """Request model for POST /match endpoint."""

    model_config = ConfigDict(extra="forbid")

    query_image: str = Field(..., min_length=1)
    """Base64-encoded query image data."""

    reference_image: str | None = None
    """Base64-encoded reference image data."""

    reference_features: ReferenceFeatures | None = None
    """Pre-extracted features for the reference image."""

    detector_type: DetectorType
    """Keypoint detector to run."""

    descriptor_type: DescriptorType
    """Descriptor extractor to run."""

    matcher_type: MatcherType = MatcherType.MAT_BF
    """Brute-force or FLANN matcher."""

    selector_type: SelectorType = SelectorType.SEL_NN
    """Nearest neighbour or k-NN with ratio test."""

    max_keypoints: int | None = Field(default=None, ge=0)
    """Keep only the strongest keypoints in each image."""

    region: RegionData | None = None
    """Keep only keypoints inside this region in each image."""

    query_id: str | None = None
    """Optional identifier for query image."""

    reference_id: str | None = None
    """Optional identifier for reference image."""

    visualize: bool = False
    """Return a rendering of the matches with the response."""


# === Response Models ===


class HealthResponse(BaseModel):
    """Response model for GET /health endpoint."""

    status: Literal["healthy", "degraded", "unhealthy"]
    """Service health status."""

    uptime_seconds: float
    """Uptime in seconds since service start."""

    uptime: str
    """Human-readable uptime (e.g., "2d 3h 15m 42s")."""

    system_time: str
    """Current system time in yyyy-mm-dd hh:mm format (UTC)."""


class AlgorithmInfo(BaseModel):
    """Algorithm configuration for /info endpoint."""

    detectors: list[str]
    descriptors: list[str]
    matchers: list[str]
    selectors: list[str]
    shi_tomasi: dict[str, float]
    harris: dict[str, float]
    brisk: dict[str, float]
    ratio_threshold: float
    lsh_index: dict[str, int]


class InfoResponse(BaseModel):
    """Response model for GET /info endpoint."""

    service: str
    """Service name."""

    version: str
    """Service version (semver)."""

    opencv_version: str
    """Version of the OpenCV library doing the work."""

    algorithm: AlgorithmInfo
    """Algorithm configuration."""


class DetectResponse(BaseModel):
    """Response model for POST /detect endpoint."""

    image_id: str | None
    """Echo of input image_id."""

    detector_type: DetectorType
    """Detector that produced the keypoints."""

    num_keypoints: int
    """Number of keypoints returned."""

    keypoints: list[KeypointData]
    """Detected keypoints."""

    image_size: ImageSize
    """Original image dimensions."""

    visualizations: list[VisualizationData] = Field(default_factory=list)
    """Debug renderings, only when requested."""

    processing_time_ms: float
    """Server-side processing time in milliseconds."""


class ExtractResponse(DetectResponse):
    """Response model for POST /extract endpoint."""

    descriptor_type: DescriptorType
    """Extractor that produced the descriptors."""

    descriptor_category: DescriptorCategory
    """DES_BINARY or DES_HOG."""

    descriptors: str
    """Base64-encoded descriptors array, row-major."""

    descriptor_dtype: Literal["uint8", "float32"] | None
    """Element type of the descriptors array, None when empty."""

    descriptor_width: int
    """Elements per descriptor row."""


class MatchResponse(BaseModel):
    """Response model for POST /match endpoint."""

    num_matches: int
    """Number of matches kept."""

    matches: list[MatchData]
    """Matches from query to reference keypoints."""

    query_features: int
    """Number of described keypoints in the query image."""

    reference_features: int
    """Number of described keypoints in the reference image."""

    descriptor_category: DescriptorCategory
    """Descriptor family, deciding the distance norm."""

    matcher_type: MatcherType
    """Matcher that was used."""

    selector_type: SelectorType
    """Selection strategy that was used."""

    query_id: str | None = None
    """Echo of input query_id."""

    reference_id: str | None = None
    """Echo of input reference_id."""

    visualizations: list[VisualizationData] = Field(default_factory=list)
    """Debug renderings, only when requested."""

    processing_time_ms: float
    """Server-side processing time in milliseconds."""


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    """Machine-readable error code."""

    message: str
    """Human-readable error description."""

    details: dict[str, Any]
    """Additional error context."""
