"""Interval and value filtering for observation records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List

from models.query import QuerySpec
from models.records import ObservationRecord

logger = logging.getLogger(__name__)


@dataclass
class FilterOutcome:
    """Records left after filtering.

    ``original_value_count`` is the number of records that passed the
    structural and interval filters, before the value filter ran.
    """

    records: List[ObservationRecord] = field(default_factory=list)
    original_value_count: int = 0


class FilterPipeline:
    """Pure filtering component; it keeps the input order of records."""

    def apply(
        self,
        records: Iterable[ObservationRecord],
        query: QuerySpec,
        now: datetime,
    ) -> FilterOutcome:
        kept = self._apply_intervals(list(records), query, now)
        outcome = FilterOutcome(original_value_count=len(kept))

        if query.value is not None:
            constraint = query.value
            kept = [record for record in kept if constraint.accepts(record.value)]

        outcome.records = kept
        return outcome

    @staticmethod
    def _apply_intervals(
        records: List[ObservationRecord], query: QuerySpec, now: datetime
    ) -> List[ObservationRecord]:
        if not query.has_interval:
            return records

        upper_bounds = query.upper_bounds(now)
        lower_bounds = query.lower_bounds(now)
        kept: List[ObservationRecord] = []
        for record in records:
            try:
                instant = record.instant()
            except ValueError:
                logger.warning(
                    "Dropping observation with unreadable timestamp",
                    extra={"reason": repr(record.timestamp)},
                )
                continue
            if all(instant <= bound for bound in upper_bounds) and all(
                instant >= bound for bound in lower_bounds
            ):
                kept.append(record)
        return kept
