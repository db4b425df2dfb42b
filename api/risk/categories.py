"""Crime categories and display-time helpers for the map view."""

from __future__ import annotations

from typing import Iterable, List

ALL_CRIME = "all-crime"
DEFAULT_PIN_COLOUR = "grey"
NO_DESCRIPTION = "No description"

# police.uk category slugs (also the values users may report) -> map pin colour
CRIME_CATEGORIES = {
    "anti-social-behaviour": "darkred",
    "bicycle-theft": "crimson",
    "burglary": "red",
    "criminal-damage-arson": "orange",
    "drugs": "goldenrod",
    "other-theft": "limegreen",
    "possession-of-weapons": "green",
    "public-order": "mediumturquoise",
    "robbery": "blue",
    "shoplifting": "darkblue",
    "theft-from-the-person": "purple",
    "vehicle-crime": "darkorchid",
    "violent-crime": "grey",
    "other-crime": "black",
}


def filter_by_category(records: Iterable, selected: str) -> List:
    """Keep records whose ``category`` equals ``selected``; ``all-crime`` keeps everything."""
    if selected == ALL_CRIME:
        return list(records)
    return [record for record in records if record.category == selected]


def pin_colour(category: str) -> str:
    return CRIME_CATEGORIES.get(category, DEFAULT_PIN_COLOUR)


def category_label(category: str) -> str:
    return category.replace("-", " ")


def marker_description(record) -> str:
    """Street name for police records, free text for user reports."""
    return record.street_name or record.description or NO_DESCRIPTION
