"""
Notification Models

Every outcome the user must hear about (a saved budget, an expired
session, a failed request) is described by one Notification. How it is
shown is up to the presentation layer; the Data-Access Layer only
decides WHAT to say.

DESIGN DECISION: Notifications are built through named constructors so
the wording for each failure class lives in one place.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class NotificationVariant(str, Enum):
    """Visual weight of a notification."""
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class NotificationKind(str, Enum):
    """Why the notification was raised."""
    SUCCESS = "success"
    UNAUTHENTICATED = "unauthenticated"
    FAILURE = "failure"
    VALIDATION = "validation"


class Notification(BaseModel):
    """A single user-visible message."""

    title: str
    description: str
    kind: NotificationKind
    variant: NotificationVariant = NotificationVariant.DEFAULT
    resource_key: Optional[str] = None
    field_errors: dict[str, str] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_error(self) -> bool:
        return self.variant == NotificationVariant.DESTRUCTIVE

    @classmethod
    def success(cls, description: str, resource_key: Optional[str] = None) -> "Notification":
        return cls(
            title="Success",
            description=description,
            kind=NotificationKind.SUCCESS,
            resource_key=resource_key,
        )

    @classmethod
    def unauthenticated(cls, resource_key: Optional[str] = None) -> "Notification":
        return cls(
            title="Unauthorized",
            description="You have been signed out. Redirecting...",
            kind=NotificationKind.UNAUTHENTICATED,
            variant=NotificationVariant.DESTRUCTIVE,
            resource_key=resource_key,
        )

    @classmethod
    def failure(cls, description: str, resource_key: Optional[str] = None) -> "Notification":
        return cls(
            title="Error",
            description=description,
            kind=NotificationKind.FAILURE,
            variant=NotificationVariant.DESTRUCTIVE,
            resource_key=resource_key,
        )

    @classmethod
    def validation(
        cls,
        description: str,
        field_errors: dict[str, str],
        resource_key: Optional[str] = None,
    ) -> "Notification":
        """
        Failure caused by a rejected payload.

        The field messages are appended to the description so a
        presentation layer that ignores field_errors still shows them.
        """
        if field_errors:
            details = "; ".join(f"{field}: {msg}" for field, msg in field_errors.items())
            description = f"{description} ({details})"
        return cls(
            title="Invalid data",
            description=description,
            kind=NotificationKind.VALIDATION,
            variant=NotificationVariant.DESTRUCTIVE,
            resource_key=resource_key,
            field_errors=field_errors,
        )
