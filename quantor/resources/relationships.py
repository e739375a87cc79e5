"""
Relationships: the clients, suppliers and other counterparties of the business.

No summary aggregates relationships, so a write only refreshes the
relationship list itself.
"""

from typing import Optional

from quantor.models import (
    Relationship,
    RelationshipCreate,
    RelationshipStatus,
    RelationshipType,
    RelationshipUpdate,
)
from quantor.resources.base import CollectionService
from quantor.resources.keys import RELATIONSHIPS


class RelationshipService(CollectionService[Relationship]):
    """Relationships of the signed-in user."""

    collection_key = RELATIONSHIPS
    noun = "relationship"
    plural = "relationships"
    record_model = Relationship
    create_model = RelationshipCreate
    update_model = RelationshipUpdate
    related_keys = ()

    async def of_type(
        self,
        kind: RelationshipType,
        status: Optional[RelationshipStatus] = None,
    ) -> list[Relationship]:
        """Relationships of one type, optionally narrowed to one status."""
        return [
            r
            for r in await self.list_all()
            if r.relationship_type == kind and (status is None or r.status == status)
        ]
