"""
Authentication Guard and Session Actions

DESIGN DECISION: Protected views are gated behind ONE session check
against the current-user resource, issued once at startup.

- While the check is outstanding: LOADING (render a loading indicator only)
- Check resolves to nobody:     UNAUTHENTICATED (render login, mount nothing else)
- Check resolves to a user:     AUTHENTICATED (mount protected views)

The resolved identity is exposed read-only for DISPLAY. It is never used
for authorization decisions; the server scopes every query to the session.
"""

import asyncio
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

from pydantic import ValidationError

from quantor.config import ApiSettings, get_settings
from quantor.data import ApiError, DataAccessLayer, Navigate, UnauthenticatedError
from quantor.models import LoginCredentials, User
from quantor.resources.keys import AUTH_LOGIN, AUTH_USER


ViewT = TypeVar("ViewT")


class GuardState(str, Enum):
    """What the guard allows the client to render."""
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


def _parse_user(data: Any) -> Optional[User]:
    if not isinstance(data, dict) or not data:
        return None
    # The login endpoint wraps the identity: {"success": true, "user": {...}}
    if "user" in data and isinstance(data["user"], dict):
        data = data["user"]
    return User.model_validate(data)


class AuthService:
    """Current identity, credential login and logout."""

    def __init__(
        self,
        dal: DataAccessLayer,
        navigate: Navigate,
        api_settings: Optional[ApiSettings] = None,
    ):
        self._dal = dal
        self._navigate = navigate
        self._settings = api_settings or get_settings().api

    async def current_user(self, refresh: bool = False) -> Optional[User]:
        """
        Ask the server who is signed in.

        With refresh=True any cached answer is dropped first.

        A 401 here is an answer ("nobody"), not a failure: no retry,
        no redirect, no notification. Other failures, including an
        identity body that cannot be read, are notified once.

        Raises:
            ApiError: For failures other than 401
        """
        if refresh:
            self._dal.invalidate(AUTH_USER)
        try:
            data = await self._dal.fetch(
                AUTH_USER,
                retry=False,
                redirect_on_unauthenticated=False,
                failure_message="Could not verify your session. Try again.",
            )
        except UnauthenticatedError:
            return None
        return self._dal.parse_response(
            AUTH_USER,
            data,
            _parse_user,
            failure_message="Could not verify your session. Try again.",
        )

    async def login(self, username: str, password: str) -> Optional[User]:
        """
        Sign in with local credentials.

        A 401 from this endpoint means wrong credentials, so it is
        notified as an ordinary failure instead of redirecting.
        """
        credentials = LoginCredentials(username=username, password=password)
        data = await self._dal.mutate(
            "POST",
            AUTH_LOGIN,
            credentials.to_payload(),
            invalidates=(AUTH_USER,),
            failure_message="Could not sign in. Check your username and password.",
            redirect_on_unauthenticated=False,
        )
        try:
            return _parse_user(data)
        except ValidationError as e:
            # Signed in regardless; the guard refresh reads the identity again
            self._dal.logger.unexpected_body("POST", AUTH_LOGIN, str(e))
            return None

    def login_redirect(self) -> None:
        """Send the client to the provider login page."""
        self._navigate(self._settings.login_path)

    def logout(self) -> None:
        """Forget every cached resource, then leave through the logout page."""
        self._dal.clear()
        self._navigate(self._settings.logout_path)


class AuthGuard:
    """
    Gate for the protected view tree.

    Usage:
        guard = AuthGuard(auth_service)
        await guard.start()
        page = guard.view(
            protected=lambda user: render_app(user),
            login=render_login,
            loading=render_spinner,
        )
    """

    def __init__(self, auth: AuthService):
        self._auth = auth
        self._state = GuardState.LOADING
        self._user: Optional[User] = None
        self._check: Optional["asyncio.Task[None]"] = None

    @property
    def state(self) -> GuardState:
        return self._state

    @property
    def current_user(self) -> Optional[User]:
        """The signed-in identity (frozen model; display only)."""
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._state == GuardState.AUTHENTICATED

    async def start(self) -> GuardState:
        """
        Issue the session check (once) and wait for it.

        Calling start() again, even concurrently, reuses the same check.
        """
        if self._check is None:
            self._check = asyncio.ensure_future(self._run_check(refresh=False))
        await asyncio.shield(self._check)
        return self._state

    async def refresh(self) -> GuardState:
        """Check again, e.g. after a credential login."""
        self._state = GuardState.LOADING
        self._check = asyncio.ensure_future(self._run_check(refresh=True))
        await asyncio.shield(self._check)
        return self._state

    async def _run_check(self, refresh: bool) -> None:
        try:
            user = await self._auth.current_user(refresh=refresh)
        except ApiError:
            # Already notified by the access layer (unreadable identity
            # included); treat as signed out
            user = None
        self._user = user
        self._state = GuardState.AUTHENTICATED if user else GuardState.UNAUTHENTICATED

    def view(
        self,
        protected: Callable[[User], ViewT],
        login: Callable[[], ViewT],
        loading: Callable[[], ViewT],
    ) -> ViewT:
        """Pick what to render for the current state. Exactly one factory is called."""
        if self._state == GuardState.LOADING:
            return loading()
        if self._state == GuardState.UNAUTHENTICATED or self._user is None:
            return login()
        return protected(self._user)
