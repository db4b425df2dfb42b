"""Risk assessment endpoint: crimes around a location and the resulting risk level."""

from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Query

from api.config import settings
from api.core.geo import Coordinate
from api.deps import get_http_client, get_kv_store, get_notifier
from api.risk.assessor import UserSettings, run_assessment
from api.risk.categories import ALL_CRIME
from sources.models import CrimeSourceSelection
from sources.notifier import Notifier
from sources.store import KeyValueStore

risk_router = APIRouter(prefix="/risk", tags=["risk"])


@risk_router.get("")
async def get_risk(
    lat: float = Query(..., ge=-90.0, le=90.0, description="Latitude of the user"),
    lon: float = Query(..., ge=-180.0, le=180.0, description="Longitude of the user"),
    size_meters: Optional[float] = Query(
        None, gt=0.0, le=20000.0, description="Side of the query square (default from config)"
    ),
    crime_source: CrimeSourceSelection = Query(CrimeSourceSelection.BOTH, description="Sources to query"),
    notifications: bool = Query(True, description="Whether the user has high-risk alerts enabled"),
    category: str = Query(ALL_CRIME, description="Only list records of this category"),
    client: httpx.AsyncClient = Depends(get_http_client),
    store: KeyValueStore = Depends(get_kv_store),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Assess crime risk in a square around (lat, lon).

    - Queries police.uk and user reports concurrently; a failing source
      contributes no records and is reported under `sources`.
    - `risk_level` uses every valid record (>250 High, >100 Medium, else Low);
      `category` only narrows the returned `records`.
    - When the level is High and notifications are on, a high-risk alert fires
      at most once per cooldown.
    """
    assessment = await run_assessment(
        Coordinate.validated(lat, lon),
        UserSettings(crime_source=crime_source, notifications_enabled=notifications),
        client=client,
        store=store,
        notifier=notifier,
        side_meters=size_meters or settings.square_size_meters,
        cooldown_ms=settings.notification_cooldown_ms,
        category=category,
    )
    return assessment.to_dict()
