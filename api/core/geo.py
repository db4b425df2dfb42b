"""Coordinates and the query square drawn around a user's position.

Conventions
- **CRS**: WGS84 latitude/longitude in decimal degrees.
- **Square**: an equirectangular approximation on a sphere of radius
  ``EARTH_RADIUS_M``. It is only meaningful for small sides (tens of meters to a
  few kilometers) and away from the poles.
- **Corners**: ``top`` is north, ``left`` is west. Latitudes are clamped to
  ``[-90, 90]`` and longitudes wrapped into ``[-180, 180]``, so a square that
  crosses the antimeridian has ``top_left.longitude > top_right.longitude``.
- **Polygon order** for the police API: top-left, top-right, bottom-right,
  bottom-left.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Tuple

LOGGER = logging.getLogger(__name__)

EARTH_RADIUS_M = 6_378_137.0
VALID_LAT_RANGE = (-90.0, 90.0)
VALID_LON_RANGE = (-180.0, 180.0)
# Longitude half-width cap; beyond this the square wraps the whole parallel.
MAX_LON_DELTA_DEG = 180.0


class InvalidInputError(ValueError):
    """A caller-supplied coordinate or size is out of range."""


@dataclass(frozen=True, slots=True)
class Coordinate:
    latitude: float
    longitude: float

    @classmethod
    def validated(cls, latitude: float, longitude: float) -> "Coordinate":
        """Build a coordinate, raising ``InvalidInputError`` when it is out of range."""
        lat = float(latitude)
        lon = float(longitude)
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise InvalidInputError(f"Coordinate must be finite, got ({latitude}, {longitude})")
        if not VALID_LAT_RANGE[0] <= lat <= VALID_LAT_RANGE[1]:
            raise InvalidInputError(f"Latitude {lat} outside [-90, 90]")
        if not VALID_LON_RANGE[0] <= lon <= VALID_LON_RANGE[1]:
            raise InvalidInputError(f"Longitude {lon} outside [-180, 180]")
        return cls(latitude=lat, longitude=lon)


@dataclass(frozen=True, slots=True)
class BoundingSquare:
    center: Coordinate
    side_meters: float
    top_left: Coordinate
    top_right: Coordinate
    bottom_left: Coordinate
    bottom_right: Coordinate
    # True when the longitude span was capped near a pole.
    degenerate: bool = False

    def polygon(self) -> Tuple[Coordinate, Coordinate, Coordinate, Coordinate]:
        """Corners in the winding order the police API expects."""
        return (self.top_left, self.top_right, self.bottom_right, self.bottom_left)

    def to_poly_param(self) -> str:
        """Render the ``poly`` query value: ``lat,lon:lat,lon:lat,lon:lat,lon``."""
        return ":".join(f"{c.latitude},{c.longitude}" for c in self.polygon())

    def bounds(self) -> Tuple[float, float, float, float]:
        """Return (min_lon, min_lat, max_lon, max_lat), ignoring antimeridian wrap."""
        return (
            self.bottom_left.longitude,
            self.bottom_left.latitude,
            self.top_right.longitude,
            self.top_right.latitude,
        )


def _clamp_lat(value: float) -> float:
    return max(VALID_LAT_RANGE[0], min(VALID_LAT_RANGE[1], value))


def _wrap_lon(value: float) -> float:
    if VALID_LON_RANGE[0] <= value <= VALID_LON_RANGE[1]:
        return value
    return ((value + 180.0) % 360.0) - 180.0


def compute_bounding_square(center: Coordinate, side_meters: float) -> BoundingSquare:
    """Compute the square of side ``side_meters`` centred on ``center``.

    ``dLat = (side / 2) / R`` and ``dLon = (side / 2) / (R * cos(lat))`` (radians),
    converted to degrees and applied to the center. As ``|lat| -> 90`` the
    longitude delta diverges; it is capped at ``MAX_LON_DELTA_DEG`` and the
    result is flagged ``degenerate``.
    """
    side = float(side_meters)
    if not math.isfinite(side) or side <= 0:
        raise InvalidInputError(f"side_meters must be a positive finite number, got {side_meters}")
    # Re-validate: callers may construct Coordinate directly.
    center = Coordinate.validated(center.latitude, center.longitude)

    half = side / 2.0
    d_lat_deg = math.degrees(half / EARTH_RADIUS_M)

    cos_lat = math.cos(math.radians(center.latitude))
    degenerate = False
    if cos_lat <= 1e-12:
        d_lon_deg = MAX_LON_DELTA_DEG
        degenerate = True
    else:
        d_lon_deg = math.degrees(half / (EARTH_RADIUS_M * cos_lat))
        if d_lon_deg > MAX_LON_DELTA_DEG:
            d_lon_deg = MAX_LON_DELTA_DEG
            degenerate = True

    if degenerate:
        LOGGER.warning(
            "Bounding square near pole is degenerate: lat=%.6f side=%.1fm",
            center.latitude,
            side,
        )

    north = _clamp_lat(center.latitude + d_lat_deg)
    south = _clamp_lat(center.latitude - d_lat_deg)
    west = _wrap_lon(center.longitude - d_lon_deg)
    east = _wrap_lon(center.longitude + d_lon_deg)

    return BoundingSquare(
        center=center,
        side_meters=side,
        top_left=Coordinate(north, west),
        top_right=Coordinate(north, east),
        bottom_left=Coordinate(south, west),
        bottom_right=Coordinate(south, east),
        degenerate=degenerate,
    )
