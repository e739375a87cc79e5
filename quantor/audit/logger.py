"""
Client Event Logger

DESIGN DECISION: Every network decision the client makes is logged.
This provides:
1. Proof that cached reads did not hit the network
2. A trail of retries, failures and forced redirects when debugging
3. A record of every notification the user was shown

The logger never raises: a logging problem must not turn a successful
call into a failed one.
"""

from typing import Any, Optional

import structlog


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class ClientEventLogger:
    """
    Structured log of Data-Access Layer activity.

    Each method emits one event; the event names are stable so they can
    be grepped and counted.
    """

    def __init__(self, logger: Optional[Any] = None):
        self._logger = logger or structlog.get_logger("quantor.data")

    def _emit(self, level: str, event: str, **fields: Any) -> None:
        try:
            getattr(self._logger, level)(event, **fields)
        except Exception:
            # Logging must never break a request
            pass

    def cache_hit(self, resource_key: str) -> None:
        self._emit("debug", "cache_hit", resource_key=resource_key)

    def shared_read(self, resource_key: str) -> None:
        self._emit("debug", "read_shared", resource_key=resource_key)

    def read_started(self, resource_key: str, attempt: int) -> None:
        self._emit("info", "read_started", resource_key=resource_key, attempt=attempt)

    def read_succeeded(self, resource_key: str, cached: bool) -> None:
        self._emit("info", "read_succeeded", resource_key=resource_key, cached=cached)

    def read_retrying(self, resource_key: str, attempt: int, error: str) -> None:
        self._emit("warning", "read_retrying", resource_key=resource_key, attempt=attempt, error=error)

    def mutation_succeeded(self, method: str, resource_key: str, invalidated: list[str]) -> None:
        self._emit(
            "info",
            "mutation_succeeded",
            method=method,
            resource_key=resource_key,
            invalidated=invalidated,
        )

    def request_failed(
        self,
        method: str,
        resource_key: str,
        kind: str,
        status: Optional[int],
        error: str,
    ) -> None:
        self._emit(
            "error",
            "request_failed",
            method=method,
            resource_key=resource_key,
            failure_kind=kind,
            status=status,
            error=error,
        )

    def unexpected_body(self, method: str, resource_key: str, error: str) -> None:
        self._emit(
            "warning",
            "unexpected_body",
            method=method,
            resource_key=resource_key,
            error=error,
        )

    def invalidated(self, keys: list[str]) -> None:
        self._emit("debug", "cache_invalidated", keys=keys)

    def cache_cleared(self) -> None:
        self._emit("info", "cache_cleared")

    def notification(self, kind: str, title: str, description: str) -> None:
        self._emit("info", "notification_shown", kind=kind, title=title, description=description)

    def redirect_scheduled(self, target: str, delay_seconds: float) -> None:
        self._emit("warning", "redirect_scheduled", target=target, delay_seconds=delay_seconds)

    def redirected(self, target: str) -> None:
        self._emit("warning", "redirected", target=target)
