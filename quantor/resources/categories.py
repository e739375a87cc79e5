"""Categories group transactions and scope budgets."""

from quantor.models import Category, CategoryCreate, CategoryKind, CategoryUpdate
from quantor.resources.base import CollectionService
from quantor.resources.keys import CATEGORIES, DASHBOARD, TRANSACTIONS


class CategoryService(CollectionService[Category]):
    """
    Categories of the signed-in user.

    Transactions embed their category, so renaming or recolouring a
    category also refreshes the transaction list.
    """

    collection_key = CATEGORIES
    noun = "category"
    plural = "categories"
    record_model = Category
    create_model = CategoryCreate
    update_model = CategoryUpdate
    related_keys = (TRANSACTIONS, DASHBOARD)

    async def of_kind(self, kind: CategoryKind) -> list[Category]:
        return [c for c in await self.list_all() if c.kind == kind]
