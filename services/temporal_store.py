"""Temporal query evaluation layered over a resource store."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable, Iterable, List, Optional, Tuple
from urllib.parse import parse_qsl, urlsplit, urlunsplit

from models.query import QuerySpec
from services.extractor import ObservationExtractor
from services.fetcher import MemberFetcher
from services.filters import FilterPipeline
from services.formatter import format_boolean, format_csv
from services.membership import MembershipResolver
from services.modal import evaluate_operator
from settings import DEFAULT_MEMBER_LIMIT, get_settings
from storage.index_store import IndexRepresentationStore
from storage.resource_store import (
    Conditions,
    PassthroughStore,
    Representation,
    RepresentationPreferences,
    ResourceStore,
    build_default_store,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def split_identifier(identifier: str) -> Tuple[str, List[Tuple[str, str]]]:
    """Separate the query string from an identifier and decode its parameters."""
    parts = urlsplit(identifier)
    params = parse_qsl(parts.query, keep_blank_values=True)
    target = urlunsplit((parts.scheme, parts.netloc, parts.path, "", parts.fragment))
    return target, params


class TemporalStore(PassthroughStore):
    """Answers temporal queries on containers typed ``tc:TemporalContainer``.

    Requests without query parameters, and requests for anything that is not
    a temporal container, are passed to the source store unchanged.
    """

    def __init__(
        self,
        source: ResourceStore,
        member_limit: int = DEFAULT_MEMBER_LIMIT,
        extractor: Optional[ObservationExtractor] = None,
        pipeline: Optional[FilterPipeline] = None,
        clock: Optional[Callable[[], datetime]] = None,
        ignored_members: Iterable[str] = (),
    ) -> None:
        super().__init__(source)
        self.resolver = MembershipResolver(
            source, member_limit=member_limit, ignored_names=ignored_members
        )
        self.fetcher = MemberFetcher(source, extractor or ObservationExtractor())
        self.pipeline = pipeline or FilterPipeline()
        self._clock = clock or _utcnow

    async def get_representation(
        self,
        identifier: str,
        preferences: RepresentationPreferences,
        conditions: Optional[Conditions] = None,
    ) -> Representation:
        now = self._clock()
        target, params = split_identifier(identifier)
        if not params:
            return await self.source.get_representation(target, preferences, conditions)

        query = QuerySpec.from_params(params)
        members = await self.resolver.resolve(target, preferences, conditions)
        if members is None:
            logger.debug("Not a temporal container", extra={"identifier": target})
            return await self.source.get_representation(target, preferences, conditions)

        start_time = time.perf_counter()
        records = await self.fetcher.fetch_records(members, query, preferences, conditions)
        outcome = self.pipeline.apply(records, query, now)
        verdict = evaluate_operator(query.operator, outcome)

        logger.info(
            "Evaluated temporal query",
            extra={
                "identifier": target,
                "member_count": len(members),
                "record_count": len(outcome.records),
                "original_value_count": outcome.original_value_count,
                "operator": query.operator.value if query.operator else None,
                "elapsed_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )

        if verdict is None:
            return format_csv(target, outcome.records)
        return format_boolean(target, verdict)


@lru_cache
def build_default_temporal_store() -> IndexRepresentationStore:
    """Factory that wires the index layer over the temporal layer and file store.

    Queries carry a query string, so the index layer passes them through to the
    temporal layer. Index documents are not treated as observations.
    """
    settings = get_settings()
    temporal_store = TemporalStore(
        build_default_store(),
        member_limit=settings.member_limit,
        ignored_members=(settings.index_name,),
    )
    return IndexRepresentationStore(
        temporal_store,
        index_name=settings.index_name,
        media_range=settings.index_media_range,
    )
