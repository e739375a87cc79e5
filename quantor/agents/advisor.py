"""
Financial Insights Agent

Turns the user's own aggregated data into three short pieces of advice:
spending analysis, budget recommendations and savings opportunities.

CRITICAL BOUNDARIES:
- The LLM sees ONLY the figures read through the Data-Access Layer
- The LLM is a WRITER, not a source: it never supplies numbers
- If the model fails or answers badly, deterministic texts computed
  from the same figures are returned instead

DESIGN DECISION: Context is read through the resource services, so a
dashboard that was just rendered is served from cache and generating
insights costs no extra API round trips.
"""

import asyncio
import json
from decimal import Decimal
from typing import Any, Optional

import google.generativeai as genai
import structlog
from pydantic import BaseModel, Field

from quantor.config import AppSettings, GeminiSettings, get_settings
from quantor.models import Budget, CategoryKind, DashboardData, Transaction
from quantor.resources import BudgetService, DashboardService, TransactionService


class FinancialContext(BaseModel):
    """Everything the prompt is allowed to mention."""

    dashboard: DashboardData
    budgets: list[Budget] = Field(default_factory=list)
    recent_transactions: list[Transaction] = Field(default_factory=list)


class FinancialInsights(BaseModel):
    """Structured advice shown on the reports page."""

    spending_analysis: str
    budget_recommendations: str
    savings_opportunities: str
    generated_by_model: bool = Field(
        description="False when the deterministic fallback was used"
    )


class FinancialInsightsAgent:
    """
    Generates insights from the signed-in user's data.

    Args:
        dashboard / budgets / transactions: Resource services to read from
        settings: Gemini configuration (read from env if omitted)
        app_settings: Currency symbol and context size
        model: Pre-built generative model (tests inject a fake)
    """

    def __init__(
        self,
        dashboard: DashboardService,
        budgets: BudgetService,
        transactions: TransactionService,
        settings: Optional[GeminiSettings] = None,
        app_settings: Optional[AppSettings] = None,
        model: Optional[Any] = None,
    ):
        self._dashboard = dashboard
        self._budgets = budgets
        self._transactions = transactions
        self._app_settings = app_settings or get_settings().app
        self._logger = structlog.get_logger("quantor.agents")
        if model is not None:
            self._model = model
        else:
            self._settings = settings or get_settings().gemini
            self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
                "response_mime_type": "application/json",
            }
        )

    def _money(self, value: Decimal) -> str:
        return f"{self._app_settings.currency_symbol} {value:,.2f}"

    async def gather_context(self) -> FinancialContext:
        """Read the three sources concurrently (each one cached)."""
        dashboard, budgets, recent = await asyncio.gather(
            self._dashboard.get(),
            self._budgets.list_all(),
            self._transactions.recent(self._app_settings.recent_transactions_in_context),
        )
        return FinancialContext(
            dashboard=dashboard,
            budgets=budgets,
            recent_transactions=recent,
        )

    def build_prompt(self, context: FinancialContext) -> str:
        """Compose the prompt from the user's figures only."""
        d = context.dashboard

        categories = "\n".join(
            f"- {c.category}: {self._money(c.amount)}" for c in d.expenses_by_category
        ) or "- none recorded"

        trends = "\n".join(
            f"- {t.month}: income {self._money(t.income)}, expenses {self._money(t.expenses)}"
            for t in d.monthly_trends
        ) or "- none recorded"

        budgets = "\n".join(
            f"- {b.category_name}: {self._money(b.budgeted_amount)} ({b.period.value})"
            for b in context.budgets
        ) or "- no active budgets"

        transactions = "\n".join(
            f"- {'+' if t.kind == CategoryKind.INCOME else '-'}{self._money(t.amount)} - "
            f"{t.description} ({t.category.name if t.category else 'Uncategorized'})"
            for t in context.recent_transactions
        ) or "- no recent transactions"

        return f"""You are a financial assistant for personal and small-business finances.
Analyse ONLY the data below. Do not invent figures that are not listed.

Current financial picture:
- Total balance: {self._money(d.total_balance)}
- Monthly income: {self._money(d.monthly_income)}
- Monthly expenses: {self._money(d.monthly_expenses)}
- Monthly savings: {self._money(d.monthly_savings or Decimal("0"))}

Expenses by category:
{categories}

Monthly trends:
{trends}

Active budgets:
{budgets}

Recent transactions:
{transactions}

Respond with ONLY a JSON object with exactly these keys:
{{"spendingAnalysis": "...", "budgetRecommendations": "...", "savingsOpportunities": "..."}}

Be practical and specific. Keep each value under 120 words."""

    async def generate_insights(self) -> FinancialInsights:
        """
        Produce insights for the signed-in user.

        Raises:
            ApiError: If the figures themselves could not be read
                (already notified by the access layer)
        """
        context = await self.gather_context()
        prompt = self.build_prompt(context)

        try:
            response = await self._model.generate_content_async(prompt)
            data = self._parse_json(response.text)
            if data:
                fallback = self.fallback_insights(context)
                return FinancialInsights(
                    spending_analysis=str(data.get("spendingAnalysis") or fallback.spending_analysis),
                    budget_recommendations=str(
                        data.get("budgetRecommendations") or fallback.budget_recommendations
                    ),
                    savings_opportunities=str(
                        data.get("savingsOpportunities") or fallback.savings_opportunities
                    ),
                    generated_by_model=True,
                )
        except Exception as e:
            self._logger.warning("insights_generation_failed", error=str(e))

        return self.fallback_insights(context)

    def _parse_json(self, text: str) -> Optional[dict]:
        """Find the JSON object in a model response."""
        text = (text or "").strip()
        start = text.find("{")
        end = text.rfind("}") + 1
        if start < 0 or end <= start:
            return None
        try:
            data = json.loads(text[start:end])
        except json.JSONDecodeError:
            return None
        return data if isinstance(data, dict) else None

    # =========================================================================
    # DETERMINISTIC FALLBACK
    # =========================================================================

    def fallback_insights(self, context: FinancialContext) -> FinancialInsights:
        """Rule-based texts computed from the same figures."""
        return FinancialInsights(
            spending_analysis=self._spending_analysis(context.dashboard),
            budget_recommendations=self._budget_recommendations(context),
            savings_opportunities=self._savings_opportunities(context.dashboard),
            generated_by_model=False,
        )

    def _spending_analysis(self, dashboard: DashboardData) -> str:
        if not dashboard.expenses_by_category:
            return "No categorized expenses yet. Tag your transactions to see where money goes."
        top = max(dashboard.expenses_by_category, key=lambda c: c.amount)
        if dashboard.monthly_expenses > 0:
            share = top.amount / dashboard.monthly_expenses * 100
            return (
                f"Your largest expense category is {top.category} "
                f"({self._money(top.amount)}, {share:.0f}% of monthly expenses)."
            )
        return f"Your largest expense category is {top.category} ({self._money(top.amount)})."

    def _budget_recommendations(self, context: FinancialContext) -> str:
        if not context.budgets:
            return "You have no active budgets. Start with a monthly budget for your largest category."

        spent = {c.category: c.amount for c in context.dashboard.expenses_by_category}
        over = []
        for budget in context.budgets:
            if budget.category is None:
                continue
            amount = spent.get(budget.category.name)
            if amount is not None and amount > budget.budgeted_amount:
                over.append(
                    f"{budget.category.name} ({self._money(amount)} spent of "
                    f"{self._money(budget.budgeted_amount)})"
                )
        if over:
            return "Over budget: " + ", ".join(over) + ". Review these categories first."
        return "All categorized spending is within budget."

    def _savings_opportunities(self, dashboard: DashboardData) -> str:
        savings = dashboard.monthly_savings or Decimal("0")
        if dashboard.monthly_income <= 0:
            return "No income recorded this month, so a savings rate cannot be computed."
        rate = savings / dashboard.monthly_income * 100
        if savings < 0:
            return (
                f"You are spending {self._money(-savings)} more than you earn this month. "
                "Cut back on your largest category first."
            )
        return f"You are saving {rate:.0f}% of your income ({self._money(savings)} this month)."
