"""Pytest configuration for source adapter tests."""
import sys
from pathlib import Path
from typing import Any

import httpx
import pytest

workspace_root = Path(__file__).parent.parent.parent
if str(workspace_root) not in sys.path:
    sys.path.insert(0, str(workspace_root))

from sources.config import SourceSettings  # noqa: E402


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "integration: mark test as an integration test (hits real upstream services)",
    )


@pytest.fixture
def source_settings() -> SourceSettings:
    return SourceSettings(
        MET_API_URL="https://police.test/api/crimes-street/all-crime/",
        REPORTS_API_BASE_URL="https://reports.test/api",
        OPENCAGE_URL="https://geocode.test/v1/json",
        OPENCAGE_API_KEY="test-key",
        EMERGENCY_API_URL="https://emergency.test/api/country",
        SOURCE_REQUEST_TIMEOUT_SECONDS=3.5,
    )


@pytest.fixture
def make_response():
    def _make(status_code: int = 200, payload: Any = None, *, url: str = "https://upstream.test", text: str | None = None):
        request = httpx.Request("GET", url)
        if text is not None:
            return httpx.Response(status_code, text=text, request=request)
        return httpx.Response(status_code, json=payload, request=request)

    return _make
