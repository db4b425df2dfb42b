"""Client for the user-report backend: nearby reports and report submission."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, Field, field_validator

from api.core.geo import Coordinate
from api.risk.categories import CRIME_CATEGORIES
from sources.config import SourceSettings, settings as default_settings
from sources.http_utils import fetch_tagged_array
from sources.logging_utils import log_event
from sources.models import CrimeSource, FetchResult

LOGGER = logging.getLogger(__name__)


@dataclass
class ReportSubmissionError(Exception):
    """Raised when the report backend rejects or cannot receive a report."""

    message: str
    status_code: Optional[int] = None
    url: Optional[str] = None

    def __str__(self) -> str:
        parts = [self.message]
        if self.status_code is not None:
            parts.append(f"(status={self.status_code})")
        if self.url:
            parts.append(f"url={self.url}")
        return " ".join(parts)


class CrimeReport(BaseModel):
    """A user-submitted crime report."""

    crime_type: str = Field(default="anti-social-behaviour")
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    description: str = ""
    date_time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("crime_type")
    @classmethod
    def _known_crime_type(cls, value: str) -> str:
        if value not in CRIME_CATEGORIES:
            raise ValueError(f"Unknown crime type '{value}'")
        return value

    @field_validator("description", mode="before")
    @classmethod
    def _trim_description(cls, value: object) -> str:
        if value is None:
            return ""
        return str(value).strip()

    def to_query_params(self) -> Dict[str, str]:
        return {
            "crime_type": self.crime_type,
            "latitude": str(self.latitude),
            "longitude": str(self.longitude),
            "description": self.description,
            "date_time": self.date_time.isoformat(),
        }


async def fetch_reported_crimes(
    client: httpx.AsyncClient,
    center: Coordinate,
    size_meters: float,
    *,
    settings: Optional[SourceSettings] = None,
) -> FetchResult:
    """Fetch user reports within ``size_meters`` of ``center``.

    Records are flat: ``{"crime_type", "latitude", "longitude", "description"}``.
    """
    config = settings or default_settings
    params: Dict[str, Any] = {
        "lat": center.latitude,
        "lng": center.longitude,
        "size": size_meters,
    }
    return await fetch_tagged_array(
        client,
        config.reports_nearby_url,
        params,
        CrimeSource.REPORT,
        timeout_seconds=config.request_timeout_seconds,
    )


async def submit_report(
    client: httpx.AsyncClient,
    report: CrimeReport,
    *,
    settings: Optional[SourceSettings] = None,
) -> None:
    """Send ``report`` to the backend; any 2xx is success.

    Raises ``ReportSubmissionError`` otherwise. There is no retry.
    """
    config = settings or default_settings
    url = config.reports_submit_url
    try:
        response = await client.get(
            url,
            params=report.to_query_params(),
            timeout=config.request_timeout_seconds,
        )
    except httpx.HTTPError as exc:
        log_event(LOGGER, "reports.submit", "Could not reach report backend", level="error", url=url, error=str(exc))
        raise ReportSubmissionError(message="Could not submit report", url=url) from exc

    if not response.is_success:
        log_event(
            LOGGER,
            "reports.submit",
            "Report backend rejected report",
            level="error",
            url=str(response.url),
            status_code=response.status_code,
        )
        raise ReportSubmissionError(
            message="Failed to submit report",
            status_code=response.status_code,
            url=str(response.url),
        )

    log_event(LOGGER, "reports.submit", "Report submitted", crime_type=report.crime_type)
