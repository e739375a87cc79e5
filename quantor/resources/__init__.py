"""
Resource Services Package

Typed wrappers over the Data-Access Layer, one per resource family.
Each service knows its cache keys, the keys its writes invalidate, and
the wording of its notifications.
"""

from quantor.resources import keys
from quantor.resources.ai import AiChatService
from quantor.resources.auth import AuthGuard, AuthService, GuardState
from quantor.resources.base import CollectionService
from quantor.resources.budgets import BudgetService
from quantor.resources.categories import CategoryService
from quantor.resources.dashboard import DashboardService
from quantor.resources.relationships import RelationshipService
from quantor.resources.transactions import TransactionService

__all__ = [
    "keys",
    "AiChatService",
    "AuthGuard",
    "AuthService",
    "BudgetService",
    "CategoryService",
    "CollectionService",
    "DashboardService",
    "GuardState",
    "RelationshipService",
    "TransactionService",
]
