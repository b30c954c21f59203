"""Serve a designated index resource in place of a container listing."""

from __future__ import annotations

import logging
import re
from typing import Dict, Optional

from storage.resource_store import (
    Conditions,
    PassthroughStore,
    Representation,
    RepresentationPreferences,
    ResourceNotFound,
    ResourceStore,
    is_container,
)

logger = logging.getLogger(__name__)

_INDEX_NAME_PATTERN = re.compile(r"^[\w.-]+$")


def matches_media_type(media_a: str, media_b: str) -> bool:
    """Whether two media ranges overlap, honouring ``*`` wildcards on either side."""
    if media_a == media_b:
        return True
    type_a, _, subtype_a = media_a.partition("/")
    type_b, _, subtype_b = media_b.partition("/")
    if "*" in (type_a, type_b):
        return True
    if type_a != type_b:
        return False
    if "*" in (subtype_a, subtype_b):
        return True
    return subtype_a == subtype_b


class IndexRepresentationStore(PassthroughStore):
    """Return ``<container><index_name>`` for containers when the client prefers it.

    The index is used when the target is a container, the index resource
    exists, and the highest weighted preference matches ``media_range``.
    Use ``*/*`` to always serve an existing index. Identifiers carrying a
    query string are passed through untouched.
    """

    def __init__(
        self,
        source: ResourceStore,
        index_name: str = "index.html",
        media_range: str = "text/html",
    ) -> None:
        super().__init__(source)
        if not _INDEX_NAME_PATTERN.match(index_name):
            raise ValueError(f"Invalid index name {index_name!r}.")
        self.index_name = index_name
        self.media_range = media_range

    async def get_representation(
        self,
        identifier: str,
        preferences: RepresentationPreferences,
        conditions: Optional[Conditions] = None,
    ) -> Representation:
        if "?" not in identifier and is_container(identifier) and self.matches_preferences(preferences):
            index_identifier = f"{identifier}{self.index_name}"
            try:
                return await self.source.get_representation(
                    index_identifier, preferences, conditions
                )
            except ResourceNotFound:
                logger.debug(
                    "No index resource, serving container",
                    extra={"identifier": identifier},
                )

        return await self.source.get_representation(identifier, preferences, conditions)

    def matches_preferences(self, preferences: RepresentationPreferences) -> bool:
        cleaned: Dict[str, float] = dict(preferences.type) or {"*/*": 1.0}
        highest = max(cleaned.values())
        return any(
            matches_media_type(media_range, self.media_range) and weight == highest
            for media_range, weight in cleaned.items()
        )
