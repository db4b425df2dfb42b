"""Event-tagged logging shared by the source adapters and the risk pipeline."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

# Keys worth echoing when a raw record is dropped or rejected.
_RECORD_REF_KEYS = ("id", "persistent_id", "category", "crime_type", "latitude", "longitude")


def _encode_context(context: Mapping[str, Any]) -> str:
    try:
        return json.dumps(context, default=str, sort_keys=True)
    except TypeError:
        return json.dumps({k: repr(v) for k, v in context.items()}, sort_keys=True)


def log_event(
    logger: logging.Logger,
    event: str,
    message: str,
    *,
    level: str = "info",
    **fields: Any,
) -> None:
    """Log ``message`` tagged with ``event`` and a JSON tail of non-null fields.

    The same fields are passed through ``extra`` so handlers with a structured
    formatter can pick them up without parsing the message.

    Example:
        log_event(LOGGER, "met.fetch", "Upstream returned an error", level="warning", status=503)
    """
    context = {k: v for k, v in fields.items() if v is not None}
    text = f"[{event}] {message}"
    if context:
        text = f"{text} | {_encode_context(context)}"

    emit = getattr(logger, level, logger.info)
    emit(text, extra={"event": event, **context})


def record_ref(record: Any) -> dict[str, Any] | str:
    """Small reference to a raw record so logs never carry whole payloads."""
    if not isinstance(record, Mapping):
        return type(record).__name__
    ref = {key: record.get(key) for key in _RECORD_REF_KEYS if record.get(key) is not None}
    location = record.get("location")
    if isinstance(location, Mapping):
        ref["location"] = {
            "latitude": location.get("latitude"),
            "longitude": location.get("longitude"),
        }
    return ref
