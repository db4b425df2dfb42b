"""Core shared helpers for coordinates and query geometry."""

from .geo import (
    EARTH_RADIUS_M,
    BoundingSquare,
    Coordinate,
    InvalidInputError,
    compute_bounding_square,
)

__all__ = [
    "EARTH_RADIUS_M",
    "BoundingSquare",
    "Coordinate",
    "InvalidInputError",
    "compute_bounding_square",
]
