"""Pytest configuration for api tests.

1. Adds the workspace root to sys.path so tests can import ``api`` and
   ``sources`` without an install.
2. Registers custom pytest marks.
3. Provides record factories, a throwaway key-value store and a mock outbound
   HTTP client that routes by URL.
"""
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List
from unittest.mock import AsyncMock

import httpx
import pytest

workspace_root = Path(__file__).parent.parent.parent
if str(workspace_root) not in sys.path:
    sys.path.insert(0, str(workspace_root))

from sources.config import SourceSettings  # noqa: E402
from sources.store import KeyValueStore  # noqa: E402

MET_URL = "https://police.test/api/crimes-street/all-crime"
REPORTS_URL = "https://reports.test/api"


def pytest_configure(config):
    """Register custom pytest marks."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as an integration test (hits real upstream services)",
    )


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: List[tuple] = []

    def notify(self, title: str, body: str) -> None:
        self.sent.append((title, body))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def kv_store(tmp_path) -> KeyValueStore:
    return KeyValueStore(f"sqlite:///{tmp_path / 'state.db'}")


@pytest.fixture
def source_settings() -> SourceSettings:
    return SourceSettings(
        MET_API_URL=MET_URL,
        REPORTS_API_BASE_URL=REPORTS_URL,
        SOURCE_REQUEST_TIMEOUT_SECONDS=2.0,
    )


@pytest.fixture
def met_record() -> Callable[..., Dict[str, Any]]:
    def _make(i: int = 0, category: str = "burglary", **overrides: Any) -> Dict[str, Any]:
        record = {
            "category": category,
            "id": 100000 + i,
            "month": "2026-08",
            "location": {
                "latitude": "51.507400",
                "longitude": "-0.127800",
                "street": {"id": 964, "name": "On or near Whitehall"},
            },
        }
        record.update(overrides)
        return record

    return _make


@pytest.fixture
def report_record() -> Callable[..., Dict[str, Any]]:
    def _make(i: int = 0, crime_type: str = "drugs", **overrides: Any) -> Dict[str, Any]:
        record = {
            "crime_type": crime_type,
            "latitude": 51.5071,
            "longitude": -0.1275,
            "description": f"report {i}",
        }
        record.update(overrides)
        return record

    return _make


def _json_response(url: str, payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=payload, request=httpx.Request("GET", url))


@pytest.fixture
def json_response() -> Callable[..., httpx.Response]:
    return _json_response


@pytest.fixture
def mock_client() -> Callable[..., AsyncMock]:
    """Build an AsyncMock client whose ``get`` answers per URL.

    ``routes`` maps a URL to a payload list, an ``httpx.Response`` or an
    exception instance to raise.
    """

    def _make(routes: Dict[str, Any]) -> AsyncMock:
        async def _get(url, params=None, timeout=None):
            answer = routes[url]
            if isinstance(answer, Exception):
                raise answer
            if isinstance(answer, httpx.Response):
                return answer
            return _json_response(url, answer)

        client = AsyncMock()
        client.get.side_effect = _get
        return client

    return _make
