"""Shared FastAPI dependencies."""

from __future__ import annotations

from typing import AsyncIterator

import httpx

from sources.config import settings as source_settings
from sources.notifier import LogNotifier, Notifier
from sources.store import KeyValueStore, get_store


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """One outbound client per request; both source queries share it."""
    async with httpx.AsyncClient(timeout=source_settings.request_timeout_seconds) as client:
        yield client


def get_kv_store() -> KeyValueStore:
    return get_store()


def get_notifier() -> Notifier:
    return LogNotifier()
