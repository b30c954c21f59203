from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from models.vocabulary import LDP, RDF, TEMPORAL_CONTAINER
from settings import DEFAULT_MEMBER_LIMIT
from storage.resource_store import Conditions, RepresentationPreferences, ResourceStore

logger = logging.getLogger(__name__)


class MembershipResolver:
    """Decides whether a resource is a temporal container and lists its members."""

    def __init__(
        self,
        store: ResourceStore,
        member_limit: int = DEFAULT_MEMBER_LIMIT,
        ignored_names: Iterable[str] = (),
    ) -> None:
        self.store = store
        self.member_limit = member_limit if member_limit > 0 else DEFAULT_MEMBER_LIMIT
        self.ignored_names = frozenset(ignored_names)

    async def resolve(
        self,
        identifier: str,
        preferences: RepresentationPreferences,
        conditions: Optional[Conditions] = None,
    ) -> Optional[List[str]]:
        """Return the bounded member list, or None when not a temporal container."""
        representation = await self.store.get_representation(identifier, preferences, conditions)
        try:
            metadata = representation.metadata
            if not metadata.has(RDF.type, TEMPORAL_CONTAINER):
                return None
            contained = [
                str(term)
                for term in metadata.get_all(LDP.contains)
                if str(term).rsplit("/", 1)[-1] not in self.ignored_names
            ]
        finally:
            # Only metadata is needed; the body holds the store's read handle.
            representation.release()

        members = contained[: self.member_limit]
        if len(contained) > len(members):
            logger.info(
                "Temporal container membership truncated",
                extra={
                    "identifier": identifier,
                    "member_count": len(contained),
                    "reason": f"limit {self.member_limit}",
                },
            )
        for member in members:
            logger.debug("Contained resource", extra={"identifier": identifier, "member": member})
        return members
