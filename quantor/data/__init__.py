"""
Data-Access Layer Package

Cache, transport, failure classification and the session-expiry flow
that every resource service goes through.
"""

from quantor.data.cache import CacheEntry, EntryState, ResourceCache
from quantor.data.client import DataAccessLayer, describe_resource
from quantor.data.errors import (
    ApiError,
    FailureKind,
    NetworkError,
    ResponseFormatError,
    RequestFailedError,
    UnauthenticatedError,
    ValidationFailedError,
    classify_status,
    extract_field_errors,
)
from quantor.data.notifications import (
    LoggingNotifier,
    Navigate,
    Notifier,
    RecordingNavigator,
    RecordingNotifier,
)
from quantor.data.session import SessionExpiryHandler
from quantor.data.transport import RequestsTransport, Transport, TransportResponse

__all__ = [
    # Cache
    "CacheEntry",
    "EntryState",
    "ResourceCache",
    # Access layer
    "DataAccessLayer",
    "describe_resource",
    "SessionExpiryHandler",
    # Errors
    "ApiError",
    "FailureKind",
    "NetworkError",
    "ResponseFormatError",
    "RequestFailedError",
    "UnauthenticatedError",
    "ValidationFailedError",
    "classify_status",
    "extract_field_errors",
    # Side-effect capabilities
    "LoggingNotifier",
    "Navigate",
    "Notifier",
    "RecordingNavigator",
    "RecordingNotifier",
    # Transport
    "RequestsTransport",
    "Transport",
    "TransportResponse",
]
