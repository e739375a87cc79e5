"""
HTTP Transport

DESIGN DECISION: The Data-Access Layer talks to an abstract transport.
This allows us to:
1. Use a scripted in-memory transport in tests (with a call counter)
2. Keep the cookie/session handling of the real client in one place
3. Turn every low-level failure into the ApiError taxonomy

The real implementation uses a requests.Session so the session cookie set
by the login flow is sent automatically on every call. The blocking call
runs in a worker thread so the event loop is never blocked.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional

import requests
from pydantic import BaseModel

from quantor.config import ApiSettings, get_settings
from quantor.data.errors import NetworkError, error_for_status, is_success


class TransportResponse(BaseModel):
    """Status and decoded JSON body of one HTTP exchange."""

    status_code: int
    body: Any = None

    @property
    def ok(self) -> bool:
        return is_success(self.status_code)


class Transport(ABC):
    """
    Abstract interface for issuing HTTP calls against the finance API.

    Implementations return a TransportResponse for ANY status, and raise
    NetworkError only when no response was received.
    """

    @abstractmethod
    async def request(
        self,
        method: str,
        resource_key: str,
        json: Optional[Any] = None,
    ) -> TransportResponse:
        """
        Issue one HTTP call.

        Args:
            method: HTTP verb
            resource_key: Path beginning with '/api/'
            json: Optional JSON body

        Returns:
            The response, successful or not

        Raises:
            NetworkError: If no response arrived
        """
        pass

    async def close(self) -> None:
        """Release any held connections."""
        return None


async def send(
    transport: Transport,
    method: str,
    resource_key: str,
    json: Optional[Any] = None,
) -> Any:
    """
    Issue a call and unwrap it.

    Returns:
        The decoded body of a 2xx response (None for empty bodies)

    Raises:
        ApiError: The subclass matching the failure
    """
    response = await transport.request(method, resource_key, json=json)
    if not response.ok:
        raise error_for_status(
            response.status_code,
            response.body,
            method=method,
            resource_key=resource_key,
        )
    return response.body


class RequestsTransport(Transport):
    """Transport backed by a requests.Session (cookies included automatically)."""

    def __init__(
        self,
        settings: Optional[ApiSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        self._settings = settings or get_settings().api
        self._session = session or requests.Session()
        self._session.headers.setdefault("Accept", "application/json")

    def _decode(self, response: requests.Response) -> Any:
        """Decode a JSON body; empty or non-JSON bodies become None/text."""
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def _send(self, method: str, resource_key: str, json: Optional[Any]) -> TransportResponse:
        try:
            response = self._session.request(
                method,
                self._settings.url_for(resource_key),
                json=json,
                timeout=self._settings.timeout_seconds,
            )
        except requests.RequestException as e:
            raise NetworkError(
                f"{method} {resource_key} failed: {e}",
                method=method,
                resource_key=resource_key,
            ) from e

        return TransportResponse(
            status_code=response.status_code,
            body=self._decode(response),
        )

    async def request(
        self,
        method: str,
        resource_key: str,
        json: Optional[Any] = None,
    ) -> TransportResponse:
        return await asyncio.to_thread(self._send, method, resource_key, json)

    async def close(self) -> None:
        self._session.close()
