"""
Data-Access Layer

The single way the rest of the client reads and writes server-owned
resources. No view talks to the network directly.

GUARANTEES:
1. Repeated reads of a key inside the freshness window make no network call
2. At most one read per key is in flight; concurrent callers share it
3. A failed read is retried once, unless the session has expired
4. Writes are NEVER retried (a retried write could double-create a record)
5. Every failure ends in exactly one user-visible notification
6. A 401 never retries: notify, wait, go to the login page

DESIGN DECISION: Invalidation is explicit. A write names the keys it
affects; there is no dependency tracking between resources.
"""

import asyncio
import time
from typing import Any, Callable, Iterable, Optional, TypeVar

from pydantic import BaseModel, ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from quantor.audit import ClientEventLogger
from quantor.config import ApiSettings, CacheSettings, get_settings
from quantor.data.cache import EntryState, ResourceCache
from quantor.data.errors import (
    ApiError,
    FailureKind,
    ResponseFormatError,
    ValidationFailedError,
    is_retryable,
)
from quantor.data.notifications import Navigate, Notifier
from quantor.data.session import SessionExpiryHandler, Sleep
from quantor.data.transport import Transport, send
from quantor.models.notification import Notification


READ_METHOD = "GET"
WRITE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

ParsedT = TypeVar("ParsedT")


def describe_resource(resource_key: str) -> str:
    """Human name for a resource key: '/api/ai/interactions' -> 'ai interactions'."""
    parts = [p for p in resource_key.split("?")[0].split("/") if p and p != "api"]
    words = [p for p in parts if not p.isdigit()]
    return " ".join(words).replace("-", " ") or resource_key


class DataAccessLayer:
    """
    Cache-backed access to the finance API.

    Args:
        transport: Issues the HTTP calls
        notifier: Shows notifications to the user
        navigate: Sends the whole client to another page
        cache: Resource cache (a fresh one is built if omitted)
        api_settings: API location and redirect timing
        cache_settings: Freshness window and read retry policy
        sleep: Awaitable sleep used for retry waits and the redirect delay
        clock: Monotonic time source for the freshness window
        logger: Structured event logger
    """

    def __init__(
        self,
        transport: Transport,
        notifier: Notifier,
        navigate: Navigate,
        *,
        cache: Optional[ResourceCache] = None,
        api_settings: Optional[ApiSettings] = None,
        cache_settings: Optional[CacheSettings] = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[ClientEventLogger] = None,
    ):
        api_settings = api_settings or get_settings().api
        cache_settings = cache_settings or get_settings().cache

        self._transport = transport
        self._notifier = notifier
        self._logger = logger or ClientEventLogger()
        self._cache = cache or ResourceCache(cache_settings.freshness_seconds, clock)
        self._read_attempts = cache_settings.read_attempts
        self._retry_wait = cache_settings.read_retry_wait_seconds
        self._sleep = sleep
        # Last body each key failed to parse; callers sharing a read share it
        self._rejected_bodies: dict[str, Any] = {}
        self._session_expiry = SessionExpiryHandler(
            notifier=notifier,
            navigate=navigate,
            login_url=api_settings.login_path,
            delay_seconds=api_settings.redirect_delay_seconds,
            sleep=sleep,
            logger=self._logger,
        )

    @property
    def cache(self) -> ResourceCache:
        return self._cache

    @property
    def session_expiry(self) -> SessionExpiryHandler:
        return self._session_expiry

    @property
    def logger(self) -> ClientEventLogger:
        return self._logger

    def state(self, resource_key: str) -> EntryState:
        return self._cache.state(resource_key)

    # =========================================================================
    # READS
    # =========================================================================

    async def fetch(
        self,
        resource_key: str,
        *,
        retry: bool = True,
        redirect_on_unauthenticated: bool = True,
        failure_message: Optional[str] = None,
    ) -> Any:
        """
        Resolve a resource by its key.

        Args:
            resource_key: Resource path, e.g. '/api/budgets'
            retry: Retry a failed read once (never applies to a 401)
            redirect_on_unauthenticated: Run the login redirect flow on 401.
                The session check turns this off: for it a 401
                simply means "nobody is signed in".
            failure_message: Text of the failure notification

        Returns:
            The decoded JSON document

        Raises:
            ApiError: After the failure has been notified (or redirected)
        """
        while True:
            entry = self._cache.entry(resource_key)
            if self._cache.is_fresh(entry):
                self._logger.cache_hit(resource_key)
                return entry.value

            pending = entry.pending
            if pending is None or pending.done():
                break
            if not entry.superseded:
                self._logger.shared_read(resource_key)
                return await asyncio.shield(pending)
            # Invalidated while loading: let that read settle, then read again
            await asyncio.wait([pending])

        pending = asyncio.ensure_future(
            self._load(resource_key, retry, redirect_on_unauthenticated, failure_message)
        )
        self._cache.begin(resource_key, pending)
        return await asyncio.shield(pending)

    async def _load(
        self,
        resource_key: str,
        retry: bool,
        redirect_on_unauthenticated: bool,
        failure_message: Optional[str],
    ) -> Any:
        """Run one (possibly retried) read and record its outcome."""
        pending = asyncio.current_task()
        attempts = self._read_attempts if retry else 1

        try:
            value = await self._read(resource_key, attempts)
        except BaseException as error:
            self._cache.reject(resource_key, pending, error)
            if isinstance(error, ApiError):
                self._logger.request_failed(
                    READ_METHOD, resource_key, error.kind.value, error.status, str(error)
                )
                if error.kind == FailureKind.UNAUTHENTICATED:
                    if redirect_on_unauthenticated:
                        self._session_expiry.handle(resource_key)
                else:
                    self._notify_failure(
                        error,
                        failure_message
                        or f"Error loading {describe_resource(resource_key)}. Try again.",
                    )
            raise

        cached = self._cache.resolve(resource_key, pending, value)
        self._logger.read_succeeded(resource_key, cached)
        return value

    async def _read(self, resource_key: str, attempts: int) -> Any:
        def log_retry(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            self._logger.read_retrying(resource_key, retry_state.attempt_number, str(error))

        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_fixed(self._retry_wait),
            retry=retry_if_exception(is_retryable),
            sleep=self._sleep,
            before_sleep=log_retry,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                self._logger.read_started(resource_key, attempt.retry_state.attempt_number)
                return await send(self._transport, READ_METHOD, resource_key)

    # =========================================================================
    # WRITES
    # =========================================================================

    async def mutate(
        self,
        method: str,
        resource_key: str,
        payload: Any = None,
        *,
        invalidates: Iterable[str] = (),
        success_message: Optional[str] = None,
        failure_message: Optional[str] = None,
        redirect_on_unauthenticated: bool = True,
    ) -> Any:
        """
        Create, update or delete a resource. Never retried.

        Args:
            method: POST, PUT, PATCH or DELETE
            resource_key: Target path
            payload: JSON body (dict, list or pydantic model)
            invalidates: Keys whose cached values this write makes stale
            success_message: Text of the success notification (none if omitted)
            failure_message: Text of the failure notification
            redirect_on_unauthenticated: Run the login redirect flow on 401.
                Turned off for the login call itself, where 401 means
                wrong credentials.

        Returns:
            The decoded response body

        Raises:
            ValueError: If method is not a write verb
            ApiError: After the failure has been notified (or redirected)
        """
        method = method.upper()
        if method not in WRITE_METHODS:
            raise ValueError(f"Not a write method: {method}")

        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json", by_alias=True, exclude_none=True)

        message = failure_message or f"Error saving {describe_resource(resource_key)}. Try again."
        try:
            result = await send(self._transport, method, resource_key, json=payload)
        except ApiError as error:
            self._logger.request_failed(
                method, resource_key, error.kind.value, error.status, str(error)
            )
            if error.kind == FailureKind.UNAUTHENTICATED and redirect_on_unauthenticated:
                self._session_expiry.handle(resource_key)
            else:
                self._notify_failure(error, message)
            raise

        invalidated = list(invalidates)
        self.invalidate(*invalidated)
        self._logger.mutation_succeeded(method, resource_key, invalidated)
        if success_message:
            self._notifier.notify(Notification.success(success_message, resource_key))
        return result

    # =========================================================================
    # RESPONSE PARSING
    # =========================================================================

    def parse_response(
        self,
        resource_key: str,
        data: Any,
        parser: Callable[[Any], ParsedT],
        *,
        method: str = READ_METHOD,
        failure_message: Optional[str] = None,
    ) -> ParsedT:
        """
        Turn a decoded body into models.

        A body that does not validate is a failure like any other: it is
        logged, notified once and raised as ResponseFormatError. For a
        read, the cached copy is dropped so the next read goes back to
        the network instead of failing on the same body again. Callers
        that shared the read all get the error; only the first notifies.

        Raises:
            ResponseFormatError: If the parser rejects the body
        """
        try:
            return parser(data)
        except ValidationError as e:
            error = ResponseFormatError(
                f"{method} {resource_key} returned an unexpected body "
                f"({e.error_count()} invalid field(s))",
                method=method,
                resource_key=resource_key,
                body=data,
            )
            self._logger.request_failed(
                method, resource_key, error.kind.value, None, str(error)
            )
            if method == READ_METHOD:
                if self._rejected_bodies.get(resource_key) is data:
                    raise error from e
                self._rejected_bodies[resource_key] = data
                self.invalidate(resource_key)
            default = "loading" if method == READ_METHOD else "saving"
            self._notify_failure(
                error,
                failure_message
                or f"Error {default} {describe_resource(resource_key)}. Try again.",
            )
            raise error from e

    # =========================================================================
    # CACHE LIFECYCLE
    # =========================================================================

    def invalidate(self, *resource_keys: str) -> None:
        """Force the next read of each key to go to the network."""
        if not resource_keys:
            return
        self._cache.invalidate(*resource_keys)
        self._logger.invalidated(list(resource_keys))

    def clear(self) -> None:
        """Forget every cached resource (logout)."""
        self._cache.clear()
        self._rejected_bodies.clear()
        self._logger.cache_cleared()

    async def wait_for_redirect(self) -> None:
        await self._session_expiry.wait()

    async def close(self) -> None:
        await self._transport.close()

    # =========================================================================
    # HELPERS
    # =========================================================================

    def notify(self, notification: Notification) -> None:
        """Show a notification that did not come from a network call."""
        self._logger.notification(
            notification.kind.value, notification.title, notification.description
        )
        self._notifier.notify(notification)

    def _notify_failure(self, error: ApiError, message: str) -> None:
        if isinstance(error, ValidationFailedError):
            notification = Notification.validation(
                message, error.field_errors, error.resource_key
            )
        else:
            notification = Notification.failure(message, error.resource_key)
        self._notifier.notify(notification)
