"""One risk-assessment round: square -> source queries -> merge -> risk -> alert.

``build_assessment`` is pure: a function of the location, the user's settings
snapshot, the fetched results, the clock reading and the persisted rate-limit
value. ``run_assessment`` adds the IO around it, and ``RiskAssessor`` adds
sequencing for a stream of location updates so a slow, superseded round can
never overwrite a fresher one.

Known race: the rate-limit value is read and later written without a lock, so
two rounds that both pass the cooldown before either writes will both alert.
A duplicate alert is accepted here.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx
from pydantic import BaseModel

from api.core.geo import BoundingSquare, Coordinate, compute_bounding_square
from api.risk.aggregate import AggregationSummary, CrimeRecord, normalize_records
from api.risk.categories import (
    ALL_CRIME,
    category_label,
    filter_by_category,
    marker_description,
    pin_colour,
)
from api.risk.classify import RiskLevel, classify_risk
from api.risk.notify import (
    DEFAULT_COOLDOWN_MS,
    HIGH_RISK_BODY,
    HIGH_RISK_TITLE,
    LAST_HIGH_RISK_NOTIFICATION_KEY,
    NotificationDecision,
    maybe_notify_high_risk,
)
from sources.config import SourceSettings
from sources.logging_utils import log_event
from sources.models import CrimeSource, CrimeSourceSelection, FetchResult
from sources.notifier import Notifier
from sources.police_client import fetch_met_crimes
from sources.reports_client import fetch_reported_crimes
from sources.store import KeyValueStore

LOGGER = logging.getLogger(__name__)

DEFAULT_SQUARE_SIZE_METERS = 1500.0


def now_millis() -> int:
    return int(time.time() * 1000)


class UserSettings(BaseModel):
    """The slice of user preferences a round depends on."""

    crime_source: CrimeSourceSelection = CrimeSourceSelection.BOTH
    notifications_enabled: bool = True


@dataclass
class Assessment:
    sequence: int
    center: Coordinate
    square: BoundingSquare
    user_settings: UserSettings
    category: str
    records: List[CrimeRecord]
    shown_records: List[CrimeRecord]
    risk_level: RiskLevel
    summary: AggregationSummary
    sources: Dict[CrimeSource, FetchResult]
    notification: NotificationDecision
    notified: bool = False

    @property
    def failed_sources(self) -> List[CrimeSource]:
        return [source for source, result in self.sources.items() if result.failed]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence": self.sequence,
            "center": {"latitude": self.center.latitude, "longitude": self.center.longitude},
            "square": _square_payload(self.square),
            "settings": self.user_settings.model_dump(mode="json"),
            "category": self.category,
            "record_count": len(self.records),
            "shown_count": len(self.shown_records),
            "risk_level": self.risk_level.value,
            "sources": {source.value: result.status() for source, result in self.sources.items()},
            "summary": self.summary.to_dict(),
            "notification": {
                "should_notify": self.notification.should_notify,
                "notified": self.notified,
            },
            "records": [_record_payload(record) for record in self.shown_records],
        }


def _square_payload(square: BoundingSquare) -> Dict[str, Any]:
    def corner(c: Coordinate) -> Dict[str, float]:
        return {"latitude": c.latitude, "longitude": c.longitude}

    return {
        "side_meters": square.side_meters,
        "degenerate": square.degenerate,
        "top_left": corner(square.top_left),
        "top_right": corner(square.top_right),
        "bottom_right": corner(square.bottom_right),
        "bottom_left": corner(square.bottom_left),
    }


def _record_payload(record: CrimeRecord) -> Dict[str, Any]:
    payload = record.to_dict()
    payload["label"] = category_label(record.category)
    payload["pin_colour"] = pin_colour(record.category)
    payload["marker_description"] = marker_description(record)
    return payload


def build_assessment(
    center: Coordinate,
    square: BoundingSquare,
    user_settings: UserSettings,
    results: Sequence[FetchResult],
    *,
    now_ms: int,
    last_notified: str | int | None,
    cooldown_ms: int = DEFAULT_COOLDOWN_MS,
    category: str = ALL_CRIME,
    sequence: int = 0,
) -> Assessment:
    """Merge ``results`` (in the given order) and decide risk and alerting."""
    records, summary = normalize_records([result.records for result in results])
    risk_level = classify_risk(len(records))
    decision = maybe_notify_high_risk(
        risk_level,
        user_settings.notifications_enabled,
        now_ms,
        last_notified,
        cooldown_ms,
    )
    return Assessment(
        sequence=sequence,
        center=center,
        square=square,
        user_settings=user_settings,
        category=category,
        records=records,
        shown_records=filter_by_category(records, category),
        risk_level=risk_level,
        summary=summary,
        sources={result.source: result for result in results},
        notification=decision,
    )


async def fetch_sources(
    client: httpx.AsyncClient,
    square: BoundingSquare,
    selection: CrimeSourceSelection,
    *,
    today: Optional[date] = None,
    source_settings: Optional[SourceSettings] = None,
) -> List[FetchResult]:
    """Query the selected sources concurrently; met always precedes report."""
    pending = []
    if selection.includes(CrimeSource.MET):
        pending.append(fetch_met_crimes(client, square, today=today, settings=source_settings))
    if selection.includes(CrimeSource.REPORT):
        pending.append(
            fetch_reported_crimes(client, square.center, square.side_meters, settings=source_settings)
        )
    return list(await asyncio.gather(*pending))


def apply_notification(
    assessment: Assessment,
    store: KeyValueStore,
    notifier: Notifier,
) -> bool:
    """Persist the new timestamp and fire the alert the decision asks for."""
    decision = assessment.notification
    if not decision.should_notify or decision.new_persisted_value is None:
        return False

    store.set(LAST_HIGH_RISK_NOTIFICATION_KEY, str(decision.new_persisted_value))
    try:
        notifier.notify(HIGH_RISK_TITLE, HIGH_RISK_BODY)
    except Exception:
        LOGGER.exception("High risk notification failed for sequence=%s", assessment.sequence)
        return False
    return True


async def run_assessment(
    center: Coordinate,
    user_settings: UserSettings,
    *,
    client: httpx.AsyncClient,
    store: KeyValueStore,
    notifier: Notifier,
    side_meters: float = DEFAULT_SQUARE_SIZE_METERS,
    cooldown_ms: int = DEFAULT_COOLDOWN_MS,
    category: str = ALL_CRIME,
    today: Optional[date] = None,
    clock: Callable[[], int] = now_millis,
    source_settings: Optional[SourceSettings] = None,
    sequence: int = 0,
    is_current: Optional[Callable[[], bool]] = None,
) -> Optional[Assessment]:
    """Run one full round.

    Returns ``None`` without touching the store or notifier when ``is_current``
    reports, after the fetches resolve, that this round has been superseded.
    """
    square = compute_bounding_square(center, side_meters)
    results = await fetch_sources(
        client,
        square,
        user_settings.crime_source,
        today=today,
        source_settings=source_settings,
    )

    if is_current is not None and not is_current():
        log_event(LOGGER, "assessor.round", "Discarding superseded round", sequence=sequence)
        return None

    assessment = build_assessment(
        center,
        square,
        user_settings,
        results,
        now_ms=clock(),
        last_notified=store.get(LAST_HIGH_RISK_NOTIFICATION_KEY),
        cooldown_ms=cooldown_ms,
        category=category,
        sequence=sequence,
    )
    assessment.notified = apply_notification(assessment, store, notifier)

    log_event(
        LOGGER,
        "assessor.round",
        "Assessment complete",
        sequence=sequence,
        risk_level=assessment.risk_level.value,
        record_count=len(assessment.records),
        failed_sources=[s.value for s in assessment.failed_sources] or None,
        notified=assessment.notified,
    )
    return assessment


class RiskAssessor:
    """Runs rounds for successive location updates, keeping only the latest.

    Every call to ``assess`` takes the next sequence number. When a round's
    fetches resolve after a newer round has started, its results are dropped.
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        store: KeyValueStore,
        notifier: Notifier,
        side_meters: float = DEFAULT_SQUARE_SIZE_METERS,
        cooldown_ms: int = DEFAULT_COOLDOWN_MS,
        clock: Callable[[], int] = now_millis,
        source_settings: Optional[SourceSettings] = None,
    ) -> None:
        self._client = client
        self._store = store
        self._notifier = notifier
        self._side_meters = side_meters
        self._cooldown_ms = cooldown_ms
        self._clock = clock
        self._source_settings = source_settings
        self._latest_sequence = 0

    @property
    def latest_sequence(self) -> int:
        return self._latest_sequence

    def is_latest(self, sequence: int) -> bool:
        return sequence == self._latest_sequence

    async def assess(
        self,
        center: Coordinate,
        user_settings: UserSettings,
        *,
        category: str = ALL_CRIME,
        today: Optional[date] = None,
    ) -> Optional[Assessment]:
        self._latest_sequence += 1
        sequence = self._latest_sequence
        return await run_assessment(
            center,
            user_settings,
            client=self._client,
            store=self._store,
            notifier=self._notifier,
            side_meters=self._side_meters,
            cooldown_ms=self._cooldown_ms,
            category=category,
            today=today,
            clock=self._clock,
            source_settings=self._source_settings,
            sequence=sequence,
            is_current=lambda: self.is_latest(sequence),
        )
