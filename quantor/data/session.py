"""
Session Expiry Handling

When any call comes back 401 the user is told first, and only then,
after a short fixed delay, is the whole client sent to the login page.
The redirect is never silent and the failed call is never retried.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from quantor.audit import ClientEventLogger
from quantor.data.notifications import Navigate, Notifier
from quantor.models.notification import Notification


Sleep = Callable[[float], Awaitable[None]]


class SessionExpiryHandler:
    """
    Notify, wait, then navigate to the login entry point.

    Only one redirect is pending at a time: a burst of 401s from
    concurrent calls produces one notification per call but a single
    navigation.
    """

    def __init__(
        self,
        notifier: Notifier,
        navigate: Navigate,
        login_url: str = "/api/login",
        delay_seconds: float = 0.5,
        sleep: Sleep = asyncio.sleep,
        logger: Optional[ClientEventLogger] = None,
    ):
        self._notifier = notifier
        self._navigate = navigate
        self._login_url = login_url
        self._delay = delay_seconds
        self._sleep = sleep
        self._logger = logger or ClientEventLogger()
        self._redirect: Optional["asyncio.Task[None]"] = None

    @property
    def login_url(self) -> str:
        return self._login_url

    @property
    def redirect_pending(self) -> bool:
        return self._redirect is not None and not self._redirect.done()

    def handle(self, resource_key: Optional[str] = None) -> None:
        """Show the signed-out notice and schedule the redirect."""
        self._notifier.notify(Notification.unauthenticated(resource_key))
        if self.redirect_pending:
            return
        self._logger.redirect_scheduled(self._login_url, self._delay)
        self._redirect = asyncio.ensure_future(self._redirect_later())

    async def _redirect_later(self) -> None:
        await self._sleep(self._delay)
        self._logger.redirected(self._login_url)
        self._navigate(self._login_url)

    async def wait(self) -> None:
        """Block until a scheduled redirect (if any) has happened."""
        if self._redirect is not None:
            await self._redirect
