"""Client for police.uk street-level crimes inside a polygon (source ``met``)."""

from __future__ import annotations

from datetime import date
from typing import Dict, Optional

import httpx

from api.core.geo import BoundingSquare
from sources.config import SourceSettings, settings as default_settings
from sources.http_utils import fetch_tagged_array
from sources.models import CrimeSource, FetchResult


def trailing_month(today: date, lag_months: int = 2) -> str:
    """Return ``YYYY-MM`` for the month ``lag_months`` before ``today``'s month."""
    month_index = today.year * 12 + (today.month - 1) - lag_months
    year, month0 = divmod(month_index, 12)
    return f"{year:04d}-{month0 + 1:02d}"


def build_met_params(square: BoundingSquare, month: str) -> Dict[str, str]:
    return {"poly": square.to_poly_param(), "date": month}


async def fetch_met_crimes(
    client: httpx.AsyncClient,
    square: BoundingSquare,
    *,
    today: Optional[date] = None,
    settings: Optional[SourceSettings] = None,
) -> FetchResult:
    """Fetch police.uk crimes for ``square``.

    Each record is shaped ``{"category", "location": {"latitude", "longitude",
    "street": {"name"}}, "id", ...}`` with coordinates as strings.
    """
    config = settings or default_settings
    month = trailing_month(today or date.today(), config.met_month_lag)
    return await fetch_tagged_array(
        client,
        config.met_api_url,
        build_met_params(square, month),
        CrimeSource.MET,
        timeout_seconds=config.request_timeout_seconds,
    )
