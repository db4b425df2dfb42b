"""Crime aggregation, risk classification and alert gating."""

from .aggregate import AggregationSummary, CrimeRecord, aggregate, normalize_records
from .categories import ALL_CRIME, CRIME_CATEGORIES, filter_by_category
from .classify import RiskLevel, classify_risk
from .notify import NotificationDecision, maybe_notify_high_risk

__all__ = [
    "ALL_CRIME",
    "CRIME_CATEGORIES",
    "AggregationSummary",
    "CrimeRecord",
    "NotificationDecision",
    "RiskLevel",
    "aggregate",
    "classify_risk",
    "filter_by_category",
    "maybe_notify_high_risk",
    "normalize_records",
]
