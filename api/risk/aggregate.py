"""Normalize, merge and filter raw crime records from every source.

The two upstream shapes differ:

- police.uk: ``{"category", "id", "location": {"latitude", "longitude", "street": {"name"}}}``
  with coordinates as strings;
- user reports: ``{"crime_type", "latitude", "longitude", "description"}``.

Lookup order is ``category`` then ``crime_type`` and ``location.latitude`` then
``latitude`` (likewise for longitude); the fallback is only used when the first
field is absent or null. Records are concatenated in argument order and never
de-duplicated or re-sorted.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from api.core.geo import VALID_LAT_RANGE, VALID_LON_RANGE
from sources.logging_utils import log_event, record_ref
from sources.models import CrimeSource

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CrimeRecord:
    """Normalized crime ready for classification and display."""

    category: str
    latitude: float
    longitude: float
    source: CrimeSource
    id: Optional[str] = None
    description: Optional[str] = None
    street_name: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "description": self.description,
            "street_name": self.street_name,
            "source": self.source.value,
        }


@dataclass
class AggregationSummary:
    """Counts of what normalization kept and why it dropped the rest."""

    total: int = 0
    kept: int = 0
    not_an_object: int = 0
    missing_category: int = 0
    missing_coordinates: int = 0
    invalid_coordinates: int = 0
    per_source: Counter[str] = field(default_factory=Counter)

    @property
    def dropped(self) -> int:
        return self.total - self.kept

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "kept": self.kept,
            "dropped": self.dropped,
            "not_an_object": self.not_an_object,
            "missing_category": self.missing_category,
            "missing_coordinates": self.missing_coordinates,
            "invalid_coordinates": self.invalid_coordinates,
            "per_source": dict(self.per_source),
        }


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _parse_coordinate(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _resolve_source(raw: Mapping[str, Any], location: Optional[Mapping[str, Any]]) -> CrimeSource:
    tag = raw.get("source")
    try:
        return CrimeSource(tag)
    except ValueError:
        # Untagged record: infer from shape.
        return CrimeSource.MET if location is not None else CrimeSource.REPORT


def _drop(summary: AggregationSummary, reason: str, message: str, raw: Any, **fields: Any) -> None:
    setattr(summary, reason, getattr(summary, reason) + 1)
    log_event(
        LOGGER,
        "aggregate.validation",
        message,
        level="warning",
        reason=reason,
        record=record_ref(raw),
        **fields,
    )


def normalize_record(raw: Any, summary: AggregationSummary) -> Optional[CrimeRecord]:
    """Normalize one raw record, or count and log why it was dropped."""
    if not isinstance(raw, Mapping):
        _drop(summary, "not_an_object", "Skipping non-object record", raw)
        return None

    category = _first_present(raw.get("category"), raw.get("crime_type"))
    if not isinstance(category, str) or not category.strip():
        _drop(summary, "missing_category", "Skipping record without category", raw)
        return None

    location = raw.get("location")
    if not isinstance(location, Mapping):
        location = None
    nested = location or {}
    lat_raw = _first_present(nested.get("latitude"), raw.get("latitude"))
    lon_raw = _first_present(nested.get("longitude"), raw.get("longitude"))
    if lat_raw is None and lon_raw is None:
        _drop(summary, "missing_coordinates", "Skipping record without coordinates", raw)
        return None

    lat = _parse_coordinate(lat_raw)
    lon = _parse_coordinate(lon_raw)
    if lat is None or lon is None:
        _drop(
            summary,
            "invalid_coordinates",
            "Skipping record with non-numeric coordinates",
            raw,
            latitude=lat_raw,
            longitude=lon_raw,
        )
        return None
    if not (VALID_LAT_RANGE[0] <= lat <= VALID_LAT_RANGE[1]) or not (
        VALID_LON_RANGE[0] <= lon <= VALID_LON_RANGE[1]
    ):
        _drop(
            summary,
            "invalid_coordinates",
            "Skipping record with out-of-range coordinates",
            raw,
            latitude=lat,
            longitude=lon,
        )
        return None

    street = nested.get("street")
    street_name = _optional_text(street.get("name")) if isinstance(street, Mapping) else None

    return CrimeRecord(
        category=category,
        latitude=lat,
        longitude=lon,
        source=_resolve_source(raw, location),
        id=_optional_text(_first_present(raw.get("id"), raw.get("persistent_id"))),
        description=_optional_text(raw.get("description")),
        street_name=street_name,
    )


def normalize_records(
    raw_record_lists: Sequence[Iterable[Any]],
) -> Tuple[List[CrimeRecord], AggregationSummary]:
    """Concatenate ``raw_record_lists`` in order and normalize every record."""
    records: List[CrimeRecord] = []
    summary = AggregationSummary()

    for raw_records in raw_record_lists:
        for raw in raw_records:
            summary.total += 1
            record = normalize_record(raw, summary)
            if record is None:
                continue
            records.append(record)
            summary.per_source[record.source.value] += 1

    summary.kept = len(records)
    if summary.dropped:
        LOGGER.info("Aggregated %s records, dropped %s", summary.kept, summary.dropped)
    return records, summary


def aggregate(raw_record_lists: Sequence[Iterable[Any]]) -> List[CrimeRecord]:
    """Merge raw records from all sources into normalized ``CrimeRecord``s."""
    records, _ = normalize_records(raw_record_lists)
    return records
