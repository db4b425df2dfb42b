from api.risk.aggregate import CrimeRecord
from api.risk.categories import (
    ALL_CRIME,
    CRIME_CATEGORIES,
    category_label,
    filter_by_category,
    marker_description,
    pin_colour,
)
from sources.models import CrimeSource


def _record(category: str, **kwargs) -> CrimeRecord:
    return CrimeRecord(category=category, latitude=51.5, longitude=-0.1, source=CrimeSource.MET, **kwargs)


RECORDS = [_record("burglary", id="1"), _record("drugs", id="2"), _record("burglary", id="3")]


def test_all_crime_is_identity():
    assert filter_by_category(RECORDS, ALL_CRIME) == RECORDS


def test_exact_category_match_keeps_order():
    assert [r.id for r in filter_by_category(RECORDS, "burglary")] == ["1", "3"]
    assert filter_by_category(RECORDS, "Burglary") == []
    assert filter_by_category([], "burglary") == []


def test_category_palette_covers_police_categories():
    assert len(CRIME_CATEGORIES) == 14
    assert pin_colour("burglary") == "red"
    assert pin_colour("something-new") == "grey"


def test_display_helpers():
    assert category_label("theft-from-the-person") == "theft from the person"
    assert marker_description(_record("drugs", street_name="On or near Mall", description="x")) == "On or near Mall"
    assert marker_description(_record("drugs", description="seen at night")) == "seen at night"
    assert marker_description(_record("drugs")) == "No description"
