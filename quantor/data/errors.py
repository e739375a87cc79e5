"""
API Errors and Failure Classification

DESIGN DECISION: Classification is a PURE function of the HTTP status.
The side effects that follow a failure (notification, redirect) live in
the Data-Access Layer, so the rules here can be tested without any
presentation or network environment.

Taxonomy:
1. UNAUTHENTICATED (401) - session is gone; recover by sending the user
   to the login page. Never retried.
2. VALIDATION (400, 422) - the server rejected the payload; surface the
   field-level messages it returned.
3. GENERIC - anything else, including network-level failures.
"""

from enum import Enum
from typing import Any, Optional


class FailureKind(str, Enum):
    """How a failed call is handled."""
    UNAUTHENTICATED = "unauthenticated"
    VALIDATION = "validation"
    GENERIC = "generic"


VALIDATION_STATUSES = frozenset({400, 422})


def is_success(status: Optional[int]) -> bool:
    return status is not None and 200 <= status < 300


def classify_status(status: Optional[int]) -> FailureKind:
    """
    Classify a non-success outcome.

    Args:
        status: HTTP status code, or None when no response arrived

    Returns:
        The FailureKind that decides notification and redirect behaviour
    """
    if status == 401:
        return FailureKind.UNAUTHENTICATED
    if status in VALIDATION_STATUSES:
        return FailureKind.VALIDATION
    return FailureKind.GENERIC


def extract_field_errors(body: Any) -> dict[str, str]:
    """
    Pull field-level messages out of an error body.

    Understands the two shapes the API produces:
    - {"error": [{"path": ["amount"], "message": "..."}]}  (schema errors)
    - {"errors": {"amount": "..."}}
    """
    if not isinstance(body, dict):
        return {}

    field_errors: dict[str, str] = {}

    issues = body.get("error")
    if isinstance(issues, list):
        for issue in issues:
            if not isinstance(issue, dict):
                continue
            path = issue.get("path") or []
            field = ".".join(str(p) for p in path) if isinstance(path, list) else str(path)
            message = issue.get("message")
            if message:
                field_errors[field or "_"] = str(message)

    errors = body.get("errors")
    if isinstance(errors, dict):
        for field, message in errors.items():
            if isinstance(message, list):
                message = "; ".join(str(m) for m in message)
            field_errors[str(field)] = str(message)

    return field_errors


def error_message_from_body(body: Any) -> Optional[str]:
    """Server-provided summary, when the body carries a plain one."""
    if isinstance(body, dict):
        for key in ("error", "message"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return None


# =============================================================================
# EXCEPTIONS
# =============================================================================

class ApiError(Exception):
    """Base exception for failed API calls."""

    kind: FailureKind = FailureKind.GENERIC

    def __init__(
        self,
        message: str,
        *,
        method: str = "GET",
        resource_key: str = "",
        status: Optional[int] = None,
        body: Any = None,
    ):
        self.method = method
        self.resource_key = resource_key
        self.status = status
        self.body = body
        super().__init__(message)

    @property
    def is_read(self) -> bool:
        return self.method == "GET"


class UnauthenticatedError(ApiError):
    """Session is not valid (401)."""

    kind = FailureKind.UNAUTHENTICATED


class ValidationFailedError(ApiError):
    """Payload rejected by the server (400/422)."""

    kind = FailureKind.VALIDATION

    def __init__(self, message: str, *, field_errors: Optional[dict[str, str]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field_errors = field_errors or {}


class RequestFailedError(ApiError):
    """Any other non-success status."""
    pass


class ResponseFormatError(ApiError):
    """A 2xx body that does not have the expected shape."""
    pass


class NetworkError(ApiError):
    """No response arrived (connection refused, timeout, DNS...)."""
    pass


def error_for_status(
    status: int,
    body: Any,
    *,
    method: str,
    resource_key: str,
) -> ApiError:
    """Build the exception matching a non-success response."""
    kind = classify_status(status)
    summary = error_message_from_body(body)
    message = f"{method} {resource_key} failed: {status}"
    if summary:
        message = f"{message} ({summary})"

    if kind == FailureKind.UNAUTHENTICATED:
        return UnauthenticatedError(
            message, method=method, resource_key=resource_key, status=status, body=body
        )
    if kind == FailureKind.VALIDATION:
        return ValidationFailedError(
            message,
            field_errors=extract_field_errors(body),
            method=method,
            resource_key=resource_key,
            status=status,
            body=body,
        )
    return RequestFailedError(
        message, method=method, resource_key=resource_key, status=status, body=body
    )


def is_retryable(error: BaseException) -> bool:
    """Reads may be retried for every failure except an expired session."""
    return isinstance(error, ApiError) and error.kind != FailureKind.UNAUTHENTICATED
