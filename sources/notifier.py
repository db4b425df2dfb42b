"""Local notification trigger."""

from __future__ import annotations

import logging
from typing import Protocol

from sources.logging_utils import log_event

LOGGER = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, title: str, body: str) -> None:
        """Fire an alert immediately."""


class LogNotifier:
    """Delivers alerts to the log; stands in for a device push channel."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or LOGGER

    def notify(self, title: str, body: str) -> None:
        log_event(self._logger, "notify.alert", title, level="warning", body=body)
