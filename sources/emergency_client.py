"""Emergency phone numbers for the country the user is standing in.

Two lookups: OpenCage reverse geocoding for the ISO country code, then
emergencynumberapi.com for that country's numbers. Both fail open.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import httpx

from api.core.geo import Coordinate
from sources.config import SourceSettings, settings as default_settings
from sources.logging_utils import log_event

LOGGER = logging.getLogger(__name__)

SERVICES = ("ambulance", "fire", "police", "dispatch")


@dataclass
class EmergencyContacts:
    country_code: Optional[str] = None
    ambulance: List[str] = field(default_factory=list)
    fire: List[str] = field(default_factory=list)
    police: List[str] = field(default_factory=list)
    dispatch: List[str] = field(default_factory=list)

    @property
    def available_services(self) -> List[str]:
        return [service for service in SERVICES if getattr(self, service)]

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"country_code": self.country_code}
        for service in SERVICES:
            numbers = getattr(self, service)
            payload[service] = {"numbers": numbers, "dial": first_dialable(numbers)}
        return payload


def first_dialable(numbers: Iterable[Optional[str]]) -> Optional[str]:
    """First non-blank number in ``numbers``."""
    for number in numbers:
        if number and number.strip():
            return number.strip()
    return None


def _clean_numbers(block: Any) -> List[str]:
    if not isinstance(block, dict):
        return []
    return [str(n).strip() for n in block.get("all") or [] if n and str(n).strip()]


async def lookup_country_code(
    client: httpx.AsyncClient,
    center: Coordinate,
    *,
    settings: Optional[SourceSettings] = None,
) -> Optional[str]:
    """ISO 3166-1 alpha-2 code for ``center``, or ``None`` when unknown."""
    config = settings or default_settings
    if not config.opencage_api_key:
        log_event(LOGGER, "emergency.geocode", "OPENCAGE_API_KEY not set; skipping lookup", level="warning")
        return None

    params = {
        "q": f"{center.latitude},{center.longitude}",
        "key": config.opencage_api_key,
        "no_annotations": 1,
    }
    try:
        response = await client.get(config.opencage_url, params=params, timeout=config.request_timeout_seconds)
        response.raise_for_status()
        results = response.json().get("results") or []
        code = results[0]["components"]["ISO_3166-1_alpha-2"]
    except (httpx.HTTPError, ValueError, AttributeError, LookupError, TypeError) as exc:
        log_event(LOGGER, "emergency.geocode", "Reverse geocoding failed", level="error", error=str(exc))
        return None
    return str(code).upper()


async def fetch_emergency_numbers(
    client: httpx.AsyncClient,
    country_code: str,
    *,
    settings: Optional[SourceSettings] = None,
) -> EmergencyContacts:
    """Numbers per service for ``country_code``; empty lists on any failure."""
    config = settings or default_settings
    contacts = EmergencyContacts(country_code=country_code)
    url = f"{config.emergency_api_url}/{country_code}"
    try:
        response = await client.get(url, timeout=config.request_timeout_seconds)
        response.raise_for_status()
        data = response.json()["data"]
    except (httpx.HTTPError, ValueError, LookupError, TypeError) as exc:
        log_event(
            LOGGER,
            "emergency.numbers",
            "Emergency number lookup failed",
            level="error",
            country_code=country_code,
            error=str(exc),
        )
        return contacts

    if not isinstance(data, dict):
        return contacts
    for service in SERVICES:
        setattr(contacts, service, _clean_numbers(data.get(service)))
    return contacts


async def get_emergency_contacts(
    client: httpx.AsyncClient,
    center: Coordinate,
    *,
    settings: Optional[SourceSettings] = None,
) -> EmergencyContacts:
    country_code = await lookup_country_code(client, center, settings=settings)
    if country_code is None:
        return EmergencyContacts()
    return await fetch_emergency_numbers(client, country_code, settings=settings)
