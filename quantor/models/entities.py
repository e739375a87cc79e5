"""
Core Data Models for the Quantor client

These models mirror the records the finance API returns and the
payloads it accepts. They are designed to:
1. Parse the API's camelCase JSON into snake_case Python attributes
2. Normalise the legacy shapes the API still emits in places
3. Serialise write payloads back to camelCase, amounts as 2-place strings

DESIGN DECISION: There is ONE canonical User shape (id, email, name, avatar).
Older endpoints return firstName/lastName/profileImageUrl; those are folded
into the canonical fields at parse time so no caller ever branches on shape.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    model_validator,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# SHARED TYPES
# =============================================================================

Money = Annotated[
    Decimal,
    PlainSerializer(lambda value: f"{value:.2f}", return_type=str, when_used="json"),
]


def _coerce_date(value: Any) -> Any:
    """Accept full ISO timestamps where only the calendar day matters."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10 and value[4] == "-":
        return value[:10]
    return value


class ApiModel(BaseModel):
    """Base for every record exchanged with the API (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    def to_payload(self, *, partial: bool = False) -> dict[str, Any]:
        """
        JSON-ready request body.

        Partial payloads (updates) only carry the fields that were set.
        """
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude_unset=partial,
        )


# =============================================================================
# ENUMS
# =============================================================================

class CategoryKind(str, Enum):
    """Whether a category (and the transactions in it) is money in or out."""
    INCOME = "income"
    EXPENSE = "expense"


class BudgetPeriod(str, Enum):
    """Budget recurrence."""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


_LEGACY_KINDS = {"receita": CategoryKind.INCOME, "despesa": CategoryKind.EXPENSE}
_LEGACY_PERIODS = {
    "mensal": BudgetPeriod.MONTHLY,
    "trimestral": BudgetPeriod.QUARTERLY,
    "anual": BudgetPeriod.YEARLY,
}


def _normalise_kind(value: Any) -> Any:
    if isinstance(value, str):
        return _LEGACY_KINDS.get(value.strip().lower(), value.strip().lower())
    return value


def _normalise_period(value: Any) -> Any:
    if isinstance(value, str):
        return _LEGACY_PERIODS.get(value.strip().lower(), value.strip().lower())
    return value


def _stringify_id(value: Any) -> Any:
    # Serial ints and provider string ids both occur
    return str(value) if isinstance(value, int) else value


Kind = Annotated[CategoryKind, BeforeValidator(_normalise_kind)]
Period = Annotated[BudgetPeriod, BeforeValidator(_normalise_period)]
Day = Annotated[date, BeforeValidator(_coerce_date)]
OwnerId = Annotated[Optional[str], BeforeValidator(_stringify_id)]


# =============================================================================
# ENTITIES
# =============================================================================
# Records accept whatever the server stores; length and sign limits live
# on the write payloads only.

class User(ApiModel):
    """
    The signed-in identity.

    Frozen: the identity is exposed for display only and must not be
    edited client-side.
    """

    model_config = ConfigDict(frozen=True)

    id: Annotated[str, BeforeValidator(_stringify_id)]
    email: str
    name: str = ""
    avatar: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def fold_legacy_shape(cls, data: Any) -> Any:
        """Map firstName/lastName/profileImageUrl onto name/avatar."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("name"):
            parts = [data.get("firstName"), data.get("lastName")]
            full_name = " ".join(p.strip() for p in parts if p and p.strip())
            data["name"] = full_name or data.get("username") or ""
        if not data.get("avatar") and data.get("profileImageUrl"):
            data["avatar"] = data["profileImageUrl"]
        return data

    @property
    def display_name(self) -> str:
        return self.name or self.email

    @property
    def initials(self) -> str:
        words = self.display_name.replace("@", " ").split()
        return "".join(w[0] for w in words[:2]).upper()


class Category(ApiModel):
    """User-defined grouping for transactions and budgets."""

    id: int
    user_id: OwnerId = None
    name: str
    color: str = "#0ea5e9"
    kind: Kind = Field(..., validation_alias=AliasChoices("type", "kind"), serialization_alias="type")
    icon: Optional[str] = None


class Transaction(ApiModel):
    """A single income or expense entry."""

    id: int
    user_id: OwnerId = None
    category_id: Optional[int] = None
    amount: Money
    kind: Kind = Field(..., validation_alias=AliasChoices("type", "kind"), serialization_alias="type")
    occurred_on: Day = Field(..., validation_alias=AliasChoices("date", "occurredOn"), serialization_alias="date")
    description: str = ""
    notes: Optional[str] = None
    category: Optional[Category] = None

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.kind == CategoryKind.INCOME else -self.amount


class Budget(ApiModel):
    """
    Spending target for a period.

    A budget without a category is a general budget covering all expenses.
    """

    id: int
    user_id: OwnerId = None
    category_id: Optional[int] = None
    budgeted_amount: Money
    period: Period
    start_date: Day
    end_date: Day
    category: Optional[Category] = None

    @property
    def category_name(self) -> str:
        return self.category.name if self.category else "General"


class AiInteraction(ApiModel):
    """One exchange with the assistant. The log is append-only."""

    model_config = ConfigDict(frozen=True)

    id: int
    user_id: OwnerId = None
    message: str
    response: str
    context: Optional[str] = None
    created_at: Optional[datetime] = None


class ChatReply(ApiModel):
    """Reply returned by the assistant endpoint."""

    message: str = Field(..., validation_alias=AliasChoices("message", "response"))
    interaction: Optional[AiInteraction] = None


# =============================================================================
# DASHBOARD
# =============================================================================

class ExpenseByCategory(ApiModel):
    category: str
    amount: Decimal = Decimal("0")
    color: str = "#0ea5e9"


class MonthlyTrend(ApiModel):
    month: str
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")


class DashboardData(ApiModel):
    """
    Aggregated figures for the dashboard.

    The API has shipped two names for the headline totals; both are accepted.
    """

    total_balance: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("totalBalance", "balance"),
    )
    monthly_income: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("monthlyIncome", "totalIncome"),
    )
    monthly_expenses: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("monthlyExpenses", "totalExpenses"),
    )
    monthly_savings: Optional[Decimal] = None
    budget_usage: Optional[Decimal] = None
    recent_transactions: list[dict[str, Any]] = Field(default_factory=list)
    expenses_by_category: list[ExpenseByCategory] = Field(default_factory=list)
    monthly_trends: list[MonthlyTrend] = Field(default_factory=list)

    @model_validator(mode="after")
    def derive_savings(self) -> "DashboardData":
        if self.monthly_savings is None:
            self.monthly_savings = self.monthly_income - self.monthly_expenses
        return self


# =============================================================================
# WRITE PAYLOADS
# =============================================================================

class BudgetCreate(ApiModel):
    """Body for POST /api/budgets."""

    category_id: Optional[int] = None
    budgeted_amount: Money = Field(..., ge=0)
    period: Period
    start_date: Day
    end_date: Day

    @model_validator(mode="after")
    def validate_dates(self) -> "BudgetCreate":
        if self.end_date < self.start_date:
            raise ValueError("Budget end date cannot be before start date")
        return self


class BudgetUpdate(ApiModel):
    """Body for PUT /api/budgets/:id. Only set fields are sent."""

    category_id: Optional[int] = None
    budgeted_amount: Optional[Money] = Field(default=None, ge=0)
    period: Optional[Period] = None
    start_date: Optional[Day] = None
    end_date: Optional[Day] = None

    @model_validator(mode="after")
    def validate_dates(self) -> "BudgetUpdate":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("Budget end date cannot be before start date")
        return self


class TransactionCreate(ApiModel):
    """Body for POST /api/transactions."""

    category_id: Optional[int] = None
    amount: Money = Field(..., gt=0)
    kind: Kind = Field(..., validation_alias=AliasChoices("type", "kind"), serialization_alias="type")
    occurred_on: Day = Field(..., validation_alias=AliasChoices("date", "occurredOn"), serialization_alias="date")
    description: str = Field(..., min_length=1, max_length=500)
    notes: Optional[str] = None


class TransactionUpdate(ApiModel):
    """Body for PUT /api/transactions/:id. Only set fields are sent."""

    category_id: Optional[int] = None
    amount: Optional[Money] = Field(default=None, gt=0)
    kind: Optional[Kind] = Field(default=None, validation_alias=AliasChoices("type", "kind"), serialization_alias="type")
    occurred_on: Optional[Day] = Field(default=None, validation_alias=AliasChoices("date", "occurredOn"), serialization_alias="date")
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    notes: Optional[str] = None


class CategoryCreate(ApiModel):
    """Body for POST /api/categories."""

    name: str = Field(..., min_length=1, max_length=100)
    color: str = "#0ea5e9"
    kind: Kind = Field(..., validation_alias=AliasChoices("type", "kind"), serialization_alias="type")


class CategoryUpdate(ApiModel):
    """Body for PUT /api/categories/:id. Only set fields are sent."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    color: Optional[str] = None
    kind: Optional[Kind] = Field(default=None, validation_alias=AliasChoices("type", "kind"), serialization_alias="type")


class ChatMessage(ApiModel):
    """Body for POST /api/ai/chat."""

    message: str = Field(..., min_length=1, max_length=4000)


class LoginCredentials(ApiModel):
    """Body for POST /api/auth/login."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
