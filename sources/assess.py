"""CLI entrypoint: assess crime risk around a location.

Usage::

    # One round around central London
    python -m sources.assess --lat 51.5074 --lon -0.1278

    # Follow a stream of "lat,lon[,accuracy]" lines (e.g. piped from a GPS logger)
    gps-feed | python -m sources.assess --follow --source met
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional, TextIO

import httpx

from api.config import settings as app_settings
from api.core.geo import Coordinate
from api.risk.assessor import Assessment, RiskAssessor, UserSettings
from api.risk.categories import ALL_CRIME, CRIME_CATEGORIES
from sources.config import settings as source_settings
from sources.models import CrimeSourceSelection
from sources.notifier import LogNotifier
from sources.store import KeyValueStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
LOGGER = logging.getLogger("assess")


def parse_location_line(line: str) -> Optional[Coordinate]:
    """Parse ``lat,lon[,accuracy]``; blank lines and ``#`` comments give ``None``."""
    cleaned = line.strip()
    if not cleaned or cleaned.startswith("#"):
        return None
    parts = [p.strip() for p in cleaned.split(",")]
    if len(parts) not in (2, 3):
        raise ValueError(f"Expected 'lat,lon[,accuracy]', got {cleaned!r}")
    return Coordinate.validated(float(parts[0]), float(parts[1]))


def _emit(assessment: Optional[Assessment], summary_only: bool, out: TextIO) -> None:
    if assessment is None:
        return
    payload = assessment.to_dict()
    if summary_only:
        payload.pop("records", None)
    out.write(json.dumps(payload, indent=2) + "\n")
    out.flush()


async def _follow(
    assessor: RiskAssessor,
    user_settings: UserSettings,
    category: str,
    summary_only: bool,
    stream: TextIO,
    out: TextIO,
) -> int:
    loop = asyncio.get_running_loop()
    rounds: List[asyncio.Task] = []

    async def _round(center: Coordinate) -> None:
        _emit(await assessor.assess(center, user_settings, category=category), summary_only, out)

    while True:
        line = await loop.run_in_executor(None, stream.readline)
        if not line:
            break
        try:
            center = parse_location_line(line)
        except ValueError as exc:
            LOGGER.warning("Ignoring location update: %s", exc)
            continue
        if center is None:
            continue
        rounds.append(asyncio.create_task(_round(center)))

    failed = 0
    for outcome in await asyncio.gather(*rounds, return_exceptions=True):
        if isinstance(outcome, Exception):
            LOGGER.error("Assessment round failed: %s", outcome)
            failed += 1
    return 1 if failed else 0


async def run_assess(args: argparse.Namespace, stream: TextIO = sys.stdin, out: TextIO = sys.stdout) -> int:
    """Run one round, or follow location updates until EOF."""
    user_settings = UserSettings(
        crime_source=CrimeSourceSelection(args.source),
        notifications_enabled=not args.no_notifications,
    )
    store = KeyValueStore(args.store_url or app_settings.store_url)

    async with httpx.AsyncClient(timeout=source_settings.request_timeout_seconds) as client:
        assessor = RiskAssessor(
            client=client,
            store=store,
            notifier=LogNotifier(),
            side_meters=args.size if args.size is not None else app_settings.square_size_meters,
            cooldown_ms=app_settings.notification_cooldown_ms,
        )
        if args.follow:
            return await _follow(assessor, user_settings, args.category, args.summary_only, stream, out)

        center = Coordinate.validated(args.lat, args.lon)
        _emit(await assessor.assess(center, user_settings, category=args.category), args.summary_only, out)
        return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Assess crime risk around a location.")
    parser.add_argument("--lat", type=float, default=None, help="Latitude of the center.")
    parser.add_argument("--lon", type=float, default=None, help="Longitude of the center.")
    parser.add_argument(
        "--size",
        type=float,
        default=None,
        help="Square side in meters (defaults to RISK_SQUARE_SIZE_METERS).",
    )
    parser.add_argument(
        "--source",
        choices=[s.value for s in CrimeSourceSelection],
        default=CrimeSourceSelection.BOTH.value,
        help="Which crime sources to query.",
    )
    parser.add_argument(
        "--category",
        choices=[ALL_CRIME, *CRIME_CATEGORIES],
        default=ALL_CRIME,
        help="Only list records of this category (risk still uses all records).",
    )
    parser.add_argument("--no-notifications", action="store_true", help="Never fire the high-risk alert.")
    parser.add_argument("--follow", action="store_true", help="Read 'lat,lon' updates from stdin until EOF.")
    parser.add_argument("--summary-only", action="store_true", help="Omit the record list from output.")
    parser.add_argument("--store-url", type=str, default=None, help="Override STORE_URL.")
    args = parser.parse_args(argv)
    if not args.follow and (args.lat is None or args.lon is None):
        parser.error("--lat and --lon are required unless --follow is given")
    return args


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    try:
        exit_code = asyncio.run(run_assess(args))
    except ValueError as exc:
        LOGGER.error("Invalid input: %s", exc)
        exit_code = 1
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main(sys.argv[1:])
