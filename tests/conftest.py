"""
Shared fixtures.

No real network or LLM calls: the transport is scripted, time is manual,
and navigation/notifications are recorded.
"""

import asyncio
from typing import Any, Optional

import pytest

from quantor.config import ApiSettings, CacheSettings
from quantor.data import (
    RecordingNavigator,
    RecordingNotifier,
    Transport,
    TransportResponse,
)
from quantor.orchestrator import create_app_components


class ScriptedTransport(Transport):
    """
    Transport answering from a script, with a call log.

    Each (method, key) route holds a list of outcomes consumed in order;
    the last outcome repeats. An outcome is (status, body) or an exception.
    """

    def __init__(self):
        self.calls: list[tuple[str, str, Any]] = []
        self._routes: dict[tuple[str, str], list[Any]] = {}
        self.gate: Optional[asyncio.Event] = None

    def respond(self, method: str, resource_key: str, *outcomes: Any) -> None:
        self._routes[(method, resource_key)] = list(outcomes)

    async def request(self, method: str, resource_key: str, json: Optional[Any] = None) -> TransportResponse:
        self.calls.append((method, resource_key, json))
        await asyncio.sleep(0)
        if self.gate is not None:
            await self.gate.wait()

        outcomes = self._routes.get((method, resource_key))
        if not outcomes:
            return TransportResponse(status_code=404, body={"error": "Not found"})
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        status, body = outcome
        return TransportResponse(status_code=status, body=body)

    def count(self, method: str, resource_key: str) -> int:
        return sum(1 for m, k, _ in self.calls if m == method and k == resource_key)

    def last_body(self, method: str, resource_key: str) -> Any:
        for m, k, body in reversed(self.calls):
            if m == method and k == resource_key:
                return body
        return None


class ManualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Awaitable sleep that records the requested delays and returns at once."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)


class Harness:
    """A FinanceApp wired to fakes."""

    def __init__(self):
        self.transport = ScriptedTransport()
        self.notifier = RecordingNotifier()
        self.navigator = RecordingNavigator()
        self.clock = ManualClock()
        self.sleep = RecordingSleep()
        # Number of notifications already shown at each navigation
        self.notifications_before_navigation: list[int] = []

        self.api_settings = ApiSettings(
            base_url="http://testserver/",
            redirect_delay_seconds=0.5,
        )
        self.cache_settings = CacheSettings(
            freshness_seconds=300.0,
            read_attempts=2,
            read_retry_wait_seconds=0.0,
        )
        self.app = create_app_components(
            navigate=self.navigate,
            notifier=self.notifier,
            transport=self.transport,
            api_settings=self.api_settings,
            cache_settings=self.cache_settings,
            sleep=self.sleep,
            clock=self.clock,
        )
        self.dal = self.app.dal

    def navigate(self, target: str) -> None:
        self.notifications_before_navigation.append(len(self.notifier.notifications))
        self.navigator(target)


@pytest.fixture
def harness() -> Harness:
    return Harness()


@pytest.fixture
def run():
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run


BUDGET_ROW = {
    "id": 7,
    "userId": 1,
    "categoryId": 3,
    "budgetedAmount": "500.00",
    "period": "monthly",
    "startDate": "2025-01-01",
    "endDate": "2025-01-31",
    "category": {"id": 3, "name": "Groceries", "color": "#22c55e", "type": "expense"},
}

TRANSACTION_ROWS = [
    {
        "id": 1,
        "userId": 1,
        "categoryId": 3,
        "amount": "120.50",
        "type": "expense",
        "date": "2025-01-10T00:00:00.000Z",
        "description": "Supermarket",
        "category": {"id": 3, "name": "Groceries", "color": "#22c55e", "type": "expense"},
    },
    {
        "id": 2,
        "userId": 1,
        "categoryId": 5,
        "amount": "3000.00",
        "type": "income",
        "date": "2025-01-05",
        "description": "Salary",
    },
]

DASHBOARD_DOC = {
    "totalBalance": 2879.5,
    "monthlyIncome": 3000,
    "monthlyExpenses": 620.5,
    "expensesByCategory": [
        {"category": "Groceries", "amount": 620.5, "color": "#22c55e"},
    ],
    "monthlyTrends": [
        {"month": "Jan", "income": 3000, "expenses": 620.5},
    ],
    "recentTransactions": [],
}


@pytest.fixture
def budget_row() -> dict:
    return dict(BUDGET_ROW)


@pytest.fixture
def transaction_rows() -> list:
    return [dict(row) for row in TRANSACTION_ROWS]


@pytest.fixture
def dashboard_doc() -> dict:
    return dict(DASHBOARD_DOC)
