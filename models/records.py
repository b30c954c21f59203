"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple


@dataclass(frozen=True, slots=True)
class ObservationRecord:
    """A single sensor reading projected from an observation graph.

    ``timestamp`` and ``value`` keep the lexical form found in the graph so
    that output reproduces the source data exactly. ``unit`` is the unit IRI
    and is never interpreted.
    """

    timestamp: str
    value: str
    unit: Optional[str] = None

    def sort_key(self) -> Tuple[str, str, str]:
        return (self.timestamp, self.value, self.unit or "")

    def instant(self) -> datetime:
        return parse_instant(self.timestamp)


def parse_instant(value: str) -> datetime:
    """Parse an ISO-8601 instant into an aware UTC datetime."""
    candidate = value.strip()
    if not candidate:
        raise ValueError("Timestamp is empty.")

    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValueError("Invalid timestamp format") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)
