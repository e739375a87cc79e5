"""AI Agents package."""

from quantor.agents.advisor import (
    FinancialContext,
    FinancialInsights,
    FinancialInsightsAgent,
)

__all__ = [
    "FinancialContext",
    "FinancialInsights",
    "FinancialInsightsAgent",
]
