"""Pytest fixtures for router unit tests."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from tests.factories import create_settings

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def _clear_module_cache() -> None:
    """Clear cached feature_tracking modules before each test.

    This ensures that mocking works correctly when importing modules
    inside the test's patch context.
    """
    modules_to_remove = [key for key in sys.modules if key.startswith("feature_tracking")]
    for module in modules_to_remove:
        del sys.modules[module]


@pytest.fixture
def mock_app_state() -> MagicMock:
    """App state with a fixed uptime."""
    state = MagicMock()
    state.uptime_seconds = 123.45
    state.uptime_formatted = "2m 3s"
    return state


@pytest.fixture
def client(mock_app_state: MagicMock) -> Iterator[TestClient]:
    """Test client with patched settings and no lifespan."""
    with (
        patch("feature_tracking.config.get_settings") as mock_settings,
        patch("feature_tracking.app.lifespan"),
        patch("feature_tracking.routers.health.get_app_state") as mock_get_state,
    ):
        mock_settings.return_value = create_settings()
        mock_get_state.return_value = mock_app_state

        from feature_tracking.app import create_app  # noqa: PLC0415

        app = create_app()
        yield TestClient(app, raise_server_exceptions=False)
