"""Core infrastructure components."""

from feature_tracking.core.exceptions import ServiceError
from feature_tracking.core.state import AppState, get_app_state, init_app_state

__all__ = ["AppState", "ServiceError", "get_app_state", "init_app_state"]
