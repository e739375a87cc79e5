"""
Collection Service Base

Budgets, transactions, categories and relationships share the same lifecycle: list the
collection, create, update or delete one record, then invalidate the
collection and every summary that aggregates it. This base class holds
that lifecycle; subclasses only name the keys, models and wording.

CRITICAL: Payloads are validated locally before anything is sent. A
payload that fails local validation produces a field-level notification
and never reaches the network.
"""

from typing import Any, ClassVar, Generic, Optional, TypeVar, Union

from pydantic import ValidationError

from quantor.data import DataAccessLayer
from quantor.models import ApiModel, Notification
from quantor.resources.keys import DASHBOARD, item_key


RecordT = TypeVar("RecordT", bound=ApiModel)

Payload = Union[ApiModel, dict[str, Any]]


def field_errors_from(error: ValidationError) -> dict[str, str]:
    """Flatten a pydantic ValidationError into {field: message}."""
    errors: dict[str, str] = {}
    for issue in error.errors():
        field = ".".join(str(part) for part in issue.get("loc", ())) or "_"
        errors.setdefault(field, issue.get("msg", "Invalid value"))
    return errors


class CollectionService(Generic[RecordT]):
    """
    CRUD over one resource collection.

    Subclasses set:
        collection_key: Path of the collection (also its cache key)
        noun / plural: Wording for notifications
        record_model: Model each row is parsed into
        create_model / update_model: Payload models
        related_keys: Summaries that must be refreshed after a write
    """

    collection_key: ClassVar[str]
    noun: ClassVar[str]
    plural: ClassVar[str]
    record_model: ClassVar[type[ApiModel]]
    create_model: ClassVar[type[ApiModel]]
    update_model: ClassVar[type[ApiModel]]
    related_keys: ClassVar[tuple[str, ...]] = (DASHBOARD,)

    def __init__(self, dal: DataAccessLayer):
        self._dal = dal

    @property
    def invalidation_keys(self) -> tuple[str, ...]:
        return (self.collection_key, *self.related_keys)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def list_all(self) -> list[RecordT]:
        """All records of the signed-in user (cached)."""
        message = f"Error loading {self.plural}. Try again."
        rows = await self._dal.fetch(self.collection_key, failure_message=message)
        return self._dal.parse_response(
            self.collection_key,
            rows,
            lambda data: [self.record_model.model_validate(row) for row in data or []],
            failure_message=message,
        )

    async def get(self, item_id: int) -> Optional[RecordT]:
        """One record, looked up in the cached collection."""
        for record in await self.list_all():
            if getattr(record, "id", None) == item_id:
                return record
        return None

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create(self, payload: Payload) -> Optional[RecordT]:
        body = self._validated(payload, self.create_model, "creating").to_payload()
        data = await self._dal.mutate(
            "POST",
            self.collection_key,
            body,
            invalidates=self.invalidation_keys,
            success_message=f"{self.noun.capitalize()} created successfully!",
            failure_message=f"Error creating {self.noun}. Try again.",
        )
        return self._parse("POST", self.collection_key, data)

    async def update(self, item_id: int, payload: Payload) -> Optional[RecordT]:
        body = self._validated(payload, self.update_model, "updating").to_payload(partial=True)
        data = await self._dal.mutate(
            "PUT",
            item_key(self.collection_key, item_id),
            body,
            invalidates=self.invalidation_keys,
            success_message=f"{self.noun.capitalize()} updated successfully!",
            failure_message=f"Error updating {self.noun}. Try again.",
        )
        return self._parse("PUT", item_key(self.collection_key, item_id), data)

    async def delete(self, item_id: int) -> None:
        await self._dal.mutate(
            "DELETE",
            item_key(self.collection_key, item_id),
            invalidates=self.invalidation_keys,
            success_message=f"{self.noun.capitalize()} deleted successfully!",
            failure_message=f"Error deleting {self.noun}. Try again.",
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _validated(self, payload: Payload, model: type[ApiModel], action: str) -> ApiModel:
        """Validate a payload locally; notify and re-raise if it is invalid."""
        if isinstance(payload, model):
            return payload
        data = payload.model_dump(exclude_unset=True) if isinstance(payload, ApiModel) else payload
        try:
            return model.model_validate(data)
        except ValidationError as e:
            self._dal.notify(
                Notification.validation(
                    f"Error {action} {self.noun}. Check the highlighted fields.",
                    field_errors_from(e),
                    self.collection_key,
                )
            )
            raise

    def _parse(self, method: str, resource_key: str, data: Any) -> Optional[RecordT]:
        """
        The record echoed by a successful write, if it can be read.

        The write already succeeded and the collection was invalidated, so
        an echo that does not parse is only logged; the next list read
        returns the record.
        """
        # DELETE answers 204 and some writes answer {"success": true}
        if not isinstance(data, dict) or "id" not in data:
            return None
        try:
            return self.record_model.model_validate(data)
        except ValidationError as e:
            self._dal.logger.unexpected_body(method, resource_key, str(e))
            return None
