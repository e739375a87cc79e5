"""
Application Components for the Quantor client

This module wires the Data-Access Layer, the resource services and the
authentication guard into one container.

DESIGN DECISION: Nothing here is a module-level singleton. A FinanceApp
is constructed at startup and its cache is cleared on logout; tests build
as many isolated instances as they need.
"""

import asyncio
import time
from typing import Callable, Optional

from quantor.agents import FinancialInsightsAgent
from quantor.audit import ClientEventLogger
from quantor.config import ApiSettings, CacheSettings, get_settings
from quantor.data import (
    DataAccessLayer,
    LoggingNotifier,
    Navigate,
    Notifier,
    RequestsTransport,
    Transport,
)
from quantor.data.session import Sleep
from quantor.resources import (
    AiChatService,
    AuthGuard,
    AuthService,
    BudgetService,
    CategoryService,
    DashboardService,
    RelationshipService,
    TransactionService,
)


class FinanceApp:
    """
    Every client-side component, built around one Data-Access Layer.

    Attributes:
        dal: The shared Data-Access Layer
        auth / guard: Session actions and the startup gate
        dashboard, transactions, categories, budgets,
            relationships, ai: Resource services
    """

    def __init__(self, dal: DataAccessLayer, navigate: Navigate, api_settings: Optional[ApiSettings] = None):
        self.dal = dal
        self.auth = AuthService(dal, navigate, api_settings)
        self.guard = AuthGuard(self.auth)
        self.dashboard = DashboardService(dal)
        self.transactions = TransactionService(dal)
        self.categories = CategoryService(dal)
        self.budgets = BudgetService(dal)
        self.relationships = RelationshipService(dal)
        self.ai = AiChatService(dal)
        self._insights: Optional[FinancialInsightsAgent] = None

    @property
    def insights(self) -> FinancialInsightsAgent:
        """Insights agent, built on first use (needs Gemini configuration)."""
        if self._insights is None:
            self._insights = FinancialInsightsAgent(
                dashboard=self.dashboard,
                budgets=self.budgets,
                transactions=self.transactions,
            )
        return self._insights

    def use_insights_agent(self, agent: FinancialInsightsAgent) -> None:
        self._insights = agent

    async def start(self):
        """Run the session check; returns the guard state."""
        return await self.guard.start()

    def logout(self) -> None:
        self.auth.logout()

    async def close(self) -> None:
        await self.dal.close()


def create_app_components(
    navigate: Navigate,
    notifier: Optional[Notifier] = None,
    transport: Optional[Transport] = None,
    api_settings: Optional[ApiSettings] = None,
    cache_settings: Optional[CacheSettings] = None,
    sleep: Sleep = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> FinanceApp:
    """
    Factory function to create all client components.

    Args:
        navigate: Full-page navigation capability of the host UI
        notifier: Where notifications go (log-only if omitted)
        transport: HTTP transport (requests-based if omitted)
        api_settings / cache_settings: Override environment configuration
        sleep / clock: Time capabilities (tests inject fakes)

    Returns:
        A FinanceApp ready for start()
    """
    api_settings = api_settings or get_settings().api
    cache_settings = cache_settings or get_settings().cache
    logger = ClientEventLogger()

    dal = DataAccessLayer(
        transport=transport or RequestsTransport(api_settings),
        notifier=notifier or LoggingNotifier(logger),
        navigate=navigate,
        api_settings=api_settings,
        cache_settings=cache_settings,
        sleep=sleep,
        clock=clock,
        logger=logger,
    )
    return FinanceApp(dal, navigate, api_settings)
