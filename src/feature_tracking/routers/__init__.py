"""API routers for the feature tracking service."""

from feature_tracking.routers import detect, extract, health, info, match

__all__ = ["detect", "extract", "health", "info", "match"]
