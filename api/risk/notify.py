"""Cooldown gate for the high-risk alert.

The gate only decides. Writing the new timestamp and firing the alert are the
caller's job, which keeps this module free of IO.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Union

from api.risk.classify import RiskLevel
from sources.logging_utils import log_event

LOGGER = logging.getLogger(__name__)

LAST_HIGH_RISK_NOTIFICATION_KEY = "lastHighRiskNotification"
DEFAULT_COOLDOWN_MS = 5 * 60 * 1000
_LEADING_INT = re.compile(r"\s*[-+]?\d+")

HIGH_RISK_TITLE = "High-Risk Area Detected"
HIGH_RISK_BODY = "You are currently in a high-risk area based on recent crimes."


@dataclass(frozen=True, slots=True)
class NotificationDecision:
    should_notify: bool
    new_persisted_value: Optional[int] = None


def parse_last_notified(value: Union[str, int, None]) -> int:
    """Epoch milliseconds from the persisted value; 0 when absent or unparseable.

    Strings are read by their leading integer, so ``"1700000000000.0"`` and
    ``"1700000000000ms"`` both give ``1700000000000``.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value))
    if match is None:
        log_event(LOGGER, "notify.gate", "Ignoring unparseable last-notified value", level="warning", value=value)
        return 0
    return int(match.group(0))


def maybe_notify_high_risk(
    risk_level: RiskLevel,
    notifications_enabled: bool,
    now_ms: int,
    persisted_last_notified_at: Union[str, int, None],
    cooldown_ms: int = DEFAULT_COOLDOWN_MS,
) -> NotificationDecision:
    """Decide whether a high-risk alert should fire now.

    Only ``HIGH`` with notifications enabled is considered. The alert fires when
    strictly more than ``cooldown_ms`` has passed since the last one, and the
    decision then carries ``now_ms`` as the value to persist.
    """
    if risk_level is not RiskLevel.HIGH or not notifications_enabled:
        return NotificationDecision(should_notify=False)

    last_notified = parse_last_notified(persisted_last_notified_at)
    if now_ms - last_notified > cooldown_ms:
        return NotificationDecision(should_notify=True, new_persisted_value=now_ms)

    log_event(
        LOGGER,
        "notify.gate",
        "High risk alert suppressed by cooldown",
        level="debug",
        elapsed_ms=now_ms - last_notified,
        cooldown_ms=cooldown_ms,
    )
    return NotificationDecision(should_notify=False)
