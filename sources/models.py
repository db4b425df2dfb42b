"""Common data structures for the upstream crime sources."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

RawRecord = Mapping[str, Any]


class CrimeSource(str, Enum):
    """Upstream provider a record came from."""

    MET = "met"  # police.uk street-level crimes
    REPORT = "report"  # user-submitted reports


class CrimeSourceSelection(str, Enum):
    """Which sources a user wants queried."""

    BOTH = "both"
    MET = "met"
    REPORT = "report"

    def includes(self, source: CrimeSource) -> bool:
        return self is CrimeSourceSelection.BOTH or self.value == source.value


@dataclass(frozen=True, slots=True)
class FetchError:
    source: CrimeSource
    message: str
    status_code: Optional[int] = None
    url: Optional[str] = None

    def __str__(self) -> str:
        parts = [f"{self.source.value}: {self.message}"]
        if self.status_code is not None:
            parts.append(f"(status={self.status_code})")
        if self.url:
            parts.append(f"url={self.url}")
        return " ".join(parts)


@dataclass(slots=True)
class FetchResult:
    """Outcome of one source query.

    ``records`` is empty both when the source had no data and when it failed;
    ``error`` tells the two apart.
    """

    source: CrimeSource
    records: List[Any] = field(default_factory=list)
    error: Optional[FetchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @classmethod
    def failure(
        cls,
        source: CrimeSource,
        message: str,
        *,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
    ) -> "FetchResult":
        return cls(
            source=source,
            error=FetchError(source=source, message=message, status_code=status_code, url=url),
        )

    def status(self) -> Dict[str, Any]:
        """Compact per-source status for responses and CLI output."""
        payload: Dict[str, Any] = {
            "status": "ok" if self.ok else "failed",
            "count": len(self.records),
        }
        if self.error is not None:
            payload["error"] = self.error.message
            if self.error.status_code is not None:
                payload["status_code"] = self.error.status_code
        return payload


def tag_records(data: Any, source: CrimeSource) -> List[Any]:
    """Copy each upstream object and tag it with its source.

    Non-object entries are passed through untouched so the aggregation step
    can count and drop them.
    """
    tagged: List[Any] = []
    for item in data:
        if isinstance(item, Mapping):
            tagged.append({**item, "source": source.value})
        else:
            tagged.append(item)
    return tagged
