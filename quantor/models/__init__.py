"""
Data Models Package

Pydantic models for every record the finance API returns, every payload
it accepts, and the notifications shown to the user.
"""

from quantor.models.entities import (
    AiInteraction,
    ApiModel,
    Budget,
    BudgetCreate,
    BudgetPeriod,
    BudgetUpdate,
    Category,
    CategoryCreate,
    CategoryKind,
    CategoryUpdate,
    ChatMessage,
    ChatReply,
    DashboardData,
    ExpenseByCategory,
    LoginCredentials,
    MonthlyTrend,
    Transaction,
    TransactionCreate,
    TransactionUpdate,
    User,
)
from quantor.models.relationship import (
    ContractTerms,
    DocumentType,
    GeneratedContract,
    Relationship,
    RelationshipCreate,
    RelationshipStatus,
    RelationshipType,
    RelationshipUpdate,
    is_valid_cnpj,
    is_valid_cpf,
)
from quantor.models.notification import (
    Notification,
    NotificationKind,
    NotificationVariant,
)

__all__ = [
    # Entities
    "AiInteraction",
    "Budget",
    "Category",
    "DashboardData",
    "ExpenseByCategory",
    "MonthlyTrend",
    "Relationship",
    "Transaction",
    "User",
    # Enums
    "BudgetPeriod",
    "CategoryKind",
    "DocumentType",
    "RelationshipStatus",
    "RelationshipType",
    # Payloads
    "ApiModel",
    "BudgetCreate",
    "BudgetUpdate",
    "CategoryCreate",
    "CategoryUpdate",
    "ChatMessage",
    "ChatReply",
    "ContractTerms",
    "GeneratedContract",
    "LoginCredentials",
    "RelationshipCreate",
    "RelationshipUpdate",
    "TransactionCreate",
    "TransactionUpdate",
    # Document checks
    "is_valid_cnpj",
    "is_valid_cpf",
    # Notifications
    "Notification",
    "NotificationKind",
    "NotificationVariant",
]
