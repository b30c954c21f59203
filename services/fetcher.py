"""Concurrent retrieval of temporal container members."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from models.query import QuerySpec
from models.records import ObservationRecord
from services.extractor import ObservationExtractor
from services.graph import parse_graph
from storage.resource_store import Conditions, RepresentationPreferences, ResourceStore

logger = logging.getLogger(__name__)


class MemberFetcher:
    """Fetches, parses and extracts every member, then merges the records.

    All members are requested at once and awaited together. When any member
    fails, the remaining ones still run to completion so their streams are
    released, and then the first failure (in member order) is raised.
    """

    def __init__(self, store: ResourceStore, extractor: ObservationExtractor) -> None:
        self.store = store
        self.extractor = extractor

    async def fetch_records(
        self,
        members: Sequence[str],
        query: QuerySpec,
        preferences: RepresentationPreferences,
        conditions: Optional[Conditions] = None,
    ) -> List[ObservationRecord]:
        results = await asyncio.gather(
            *(self._fetch_member(member, query, preferences, conditions) for member in members),
            return_exceptions=True,
        )

        records: List[ObservationRecord] = []
        failures: List[BaseException] = []
        for member, result in zip(members, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Member retrieval failed",
                    extra={"member": member, "reason": str(result)},
                )
                failures.append(result)
                continue
            records.extend(result)

        if failures:
            raise failures[0]
        return records

    async def _fetch_member(
        self,
        member: str,
        query: QuerySpec,
        preferences: RepresentationPreferences,
        conditions: Optional[Conditions],
    ) -> List[ObservationRecord]:
        representation = await self.store.get_representation(member, preferences, conditions)
        try:
            graph = parse_graph(representation.data, representation.content_type, member)
        finally:
            representation.release()
        return self.extractor.extract(graph, query)
