"""Budget lifecycle: list, create, update and delete spending targets."""

from quantor.models import Budget, BudgetCreate, BudgetUpdate
from quantor.resources.base import CollectionService
from quantor.resources.keys import BUDGETS, DASHBOARD


class BudgetService(CollectionService[Budget]):
    """Budgets of the signed-in user. Writes refresh the dashboard too."""

    collection_key = BUDGETS
    noun = "budget"
    plural = "budgets"
    record_model = Budget
    create_model = BudgetCreate
    update_model = BudgetUpdate
    related_keys = (DASHBOARD,)
