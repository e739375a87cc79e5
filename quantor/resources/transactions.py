"""Transactions: the income and expense entries behind every report."""

from decimal import Decimal

from quantor.models import CategoryKind, Transaction, TransactionCreate, TransactionUpdate
from quantor.resources.base import CollectionService
from quantor.resources.keys import DASHBOARD, TRANSACTIONS


class TransactionService(CollectionService[Transaction]):
    """Transactions of the signed-in user. Writes refresh the dashboard too."""

    collection_key = TRANSACTIONS
    noun = "transaction"
    plural = "transactions"
    record_model = Transaction
    create_model = TransactionCreate
    update_model = TransactionUpdate
    related_keys = (DASHBOARD,)

    async def recent(self, limit: int = 5) -> list[Transaction]:
        """Most recent transactions first."""
        records = sorted(
            await self.list_all(), key=lambda t: (t.occurred_on, t.id), reverse=True
        )
        return records[:limit]

    async def totals(self) -> dict[CategoryKind, Decimal]:
        """Sum of amounts per kind over the cached collection."""
        totals = {kind: Decimal("0") for kind in CategoryKind}
        for record in await self.list_all():
            totals[record.kind] += record.amount
        return totals
