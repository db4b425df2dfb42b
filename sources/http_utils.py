"""Fail-open JSON fetching shared by the crime source adapters."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from sources.logging_utils import log_event
from sources.models import CrimeSource, FetchResult, tag_records

LOGGER = logging.getLogger(__name__)


async def fetch_tagged_array(
    client: httpx.AsyncClient,
    url: str,
    params: Mapping[str, Any],
    source: CrimeSource,
    *,
    timeout_seconds: float,
) -> FetchResult:
    """GET ``url`` and return its JSON array tagged with ``source``.

    Never raises for upstream trouble: transport errors, non-2xx statuses and
    undecodable bodies come back as a failed ``FetchResult`` with no records.
    """
    event = f"{source.value}.fetch"
    log_event(LOGGER, event, "Requesting crime records", url=url)
    try:
        response = await client.get(url, params=dict(params), timeout=timeout_seconds)
    except httpx.HTTPError as exc:
        log_event(LOGGER, event, "Request failed", level="error", url=url, error=str(exc))
        return FetchResult.failure(source, f"request failed: {exc}", url=url)

    if not response.is_success:
        log_event(
            LOGGER,
            event,
            "Upstream returned an error status",
            level="error",
            url=str(response.url),
            status_code=response.status_code,
        )
        return FetchResult.failure(
            source,
            f"{source.value} API error {response.status_code}",
            status_code=response.status_code,
            url=str(response.url),
        )

    try:
        data = response.json()
    except ValueError as exc:
        log_event(LOGGER, event, "Response body is not JSON", level="error", url=url, error=str(exc))
        return FetchResult.failure(
            source,
            "response body is not JSON",
            status_code=response.status_code,
            url=url,
        )

    if not isinstance(data, list):
        log_event(
            LOGGER,
            event,
            "Expected a JSON array; treating as no data",
            level="warning",
            url=url,
            payload_type=type(data).__name__,
        )
        return FetchResult(source=source)

    records = tag_records(data, source)
    log_event(LOGGER, event, "Fetched crime records", url=url, count=len(records))
    return FetchResult(source=source, records=records)
