"""Risk level from the number of crimes found around the user."""

from __future__ import annotations

from enum import Enum

HIGH_RISK_MIN_EXCLUSIVE = 250
MEDIUM_RISK_MIN_EXCLUSIVE = 100


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


def classify_risk(record_count: int) -> RiskLevel:
    """Classify a crime count into a risk level.

    Args:
        record_count: Number of normalized records after filtering (>= 0)

    Returns:
        ``HIGH`` above 250, ``MEDIUM`` above 100, otherwise ``LOW``.
    """
    if record_count < 0:
        raise ValueError(f"record_count must be non-negative, got {record_count}")
    if record_count > HIGH_RISK_MIN_EXCLUSIVE:
        return RiskLevel.HIGH
    elif record_count > MEDIUM_RISK_MIN_EXCLUSIVE:
        return RiskLevel.MEDIUM
    else:
        return RiskLevel.LOW
