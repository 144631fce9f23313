"""Data model for a single poll result."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

# Emitted instead of a count when the query fails.
FAILURE_SENTINEL = -1


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Sample:
    """One row count, or the failure sentinel, captured by a poll cycle."""

    value: int
    ok: bool = True
    captured_at: datetime = field(default_factory=_utc_now)

    @classmethod
    def failed(cls) -> "Sample":
        return cls(value=FAILURE_SENTINEL, ok=False)
