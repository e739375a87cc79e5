"""
Tests for the resource services.

Each service is exercised through a real Data-Access Layer on top of the
scripted transport, so cache invalidation is observed end to end.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from quantor.data import EntryState, RequestFailedError, ResponseFormatError
from quantor.models import (
    Budget,
    BudgetPeriod,
    CategoryKind,
    ContractTerms,
    GeneratedContract,
    NotificationKind,
    Relationship,
    RelationshipStatus,
    RelationshipType,
)
from quantor.resources import keys
from quantor.resources.ai import build_contract_prompt


def _prime(harness, run, *resource_keys):
    """Read the given keys once so they are cached."""
    async def scenario():
        for key in resource_keys:
            await harness.dal.fetch(key)
    run(scenario())
    for key in resource_keys:
        assert harness.dal.state(key) == EntryState.FRESH


class TestBudgetService:
    """Tests for the budget lifecycle."""

    def test_create_budget_invalidates_and_notifies(self, harness, run, budget_row):
        """Creating a budget refreshes budgets and the dashboard."""
        harness.transport.respond("GET", keys.BUDGETS, (200, []))
        harness.transport.respond("GET", keys.DASHBOARD, (200, {}))
        harness.transport.respond("POST", keys.BUDGETS, (201, budget_row))
        _prime(harness, run, keys.BUDGETS, keys.DASHBOARD)

        created = run(harness.app.budgets.create({
            "categoryId": 3,
            "budgetedAmount": "500.00",
            "period": "mensal",
            "startDate": "2025-01-01",
            "endDate": "2025-01-31",
        }))

        assert isinstance(created, Budget)
        assert created.id == 7
        assert harness.transport.last_body("POST", keys.BUDGETS) == {
            "categoryId": 3,
            "budgetedAmount": "500.00",
            "period": "monthly",
            "startDate": "2025-01-01",
            "endDate": "2025-01-31",
        }
        assert harness.dal.state(keys.BUDGETS) == EntryState.EMPTY
        assert harness.dal.state(keys.DASHBOARD) == EntryState.EMPTY
        assert harness.notifier.last.kind == NotificationKind.SUCCESS
        assert harness.notifier.last.description == "Budget created successfully!"

    def test_list_and_get(self, harness, run, budget_row):
        harness.transport.respond("GET", keys.BUDGETS, (200, [budget_row]))

        async def scenario():
            budgets = await harness.app.budgets.list_all()
            found = await harness.app.budgets.get(7)
            missing = await harness.app.budgets.get(99)
            return budgets, found, missing

        budgets, found, missing = run(scenario())
        assert budgets[0].period == BudgetPeriod.MONTHLY
        assert found.budgeted_amount == Decimal("500.00")
        assert missing is None
        assert harness.transport.count("GET", keys.BUDGETS) == 1

    def test_update_sends_partial_payload(self, harness, run, budget_row):
        budget_row["budgetedAmount"] = "750.00"
        harness.transport.respond("PUT", "/api/budgets/7", (200, budget_row))

        updated = run(harness.app.budgets.update(7, {"budgetedAmount": "750"}))

        assert updated.budgeted_amount == Decimal("750.00")
        assert harness.transport.last_body("PUT", "/api/budgets/7") == {"budgetedAmount": "750.00"}
        assert harness.notifier.last.description == "Budget updated successfully!"

    def test_delete(self, harness, run):
        harness.transport.respond("GET", keys.BUDGETS, (200, []))
        harness.transport.respond("DELETE", "/api/budgets/7", (204, None))
        _prime(harness, run, keys.BUDGETS)

        assert run(harness.app.budgets.delete(7)) is None
        assert harness.dal.state(keys.BUDGETS) == EntryState.EMPTY
        assert harness.notifier.last.description == "Budget deleted successfully!"

    def test_invalid_payload_never_reaches_network(self, harness, run):
        with pytest.raises(ValidationError):
            run(harness.app.budgets.create({
                "budgetedAmount": "100",
                "period": "monthly",
                "startDate": "2025-02-01",
                "endDate": "2025-01-01",
            }))

        assert harness.transport.calls == []
        notification = harness.notifier.last
        assert notification.kind == NotificationKind.VALIDATION
        assert notification.description.startswith("Error creating budget. Check the highlighted fields.")

    def test_failed_create_notifies_with_wording(self, harness, run):
        harness.transport.respond("POST", keys.BUDGETS, (500, None))

        with pytest.raises(RequestFailedError):
            run(harness.app.budgets.create({
                "budgetedAmount": "100",
                "period": "yearly",
                "startDate": "2025-01-01",
                "endDate": "2025-12-31",
            }))

        assert harness.transport.count("POST", keys.BUDGETS) == 1
        assert harness.notifier.last.description == "Error creating budget. Try again."

    def test_list_failure_wording(self, harness, run):
        harness.transport.respond("GET", keys.BUDGETS, (500, None))
        with pytest.raises(RequestFailedError):
            run(harness.app.budgets.list_all())
        assert harness.notifier.last.description == "Error loading budgets. Try again."


class TestTransactionService:
    """Tests for transactions."""

    def test_create_invalidates_transactions_and_dashboard(self, harness, run, transaction_rows):
        harness.transport.respond("GET", keys.TRANSACTIONS, (200, transaction_rows))
        harness.transport.respond("GET", keys.DASHBOARD, (200, {}))
        harness.transport.respond("GET", keys.BUDGETS, (200, []))
        harness.transport.respond("POST", keys.TRANSACTIONS, (201, {"success": True}))
        _prime(harness, run, keys.TRANSACTIONS, keys.DASHBOARD, keys.BUDGETS)

        result = run(harness.app.transactions.create({
            "amount": "42",
            "type": "despesa",
            "date": "2025-01-12",
            "description": "Lunch",
            "categoryId": 3,
        }))

        assert result is None
        assert harness.transport.last_body("POST", keys.TRANSACTIONS) == {
            "categoryId": 3,
            "amount": "42.00",
            "type": "expense",
            "date": "2025-01-12",
            "description": "Lunch",
        }
        assert harness.dal.state(keys.TRANSACTIONS) == EntryState.EMPTY
        assert harness.dal.state(keys.DASHBOARD) == EntryState.EMPTY
        assert harness.dal.state(keys.BUDGETS) == EntryState.FRESH
        assert harness.notifier.last.description == "Transaction created successfully!"

    def test_recent_is_newest_first(self, harness, run, transaction_rows):
        harness.transport.respond("GET", keys.TRANSACTIONS, (200, transaction_rows))

        recent = run(harness.app.transactions.recent(limit=1))

        assert [t.id for t in recent] == [1]

    def test_recent_leaves_the_listing_order_alone(self, harness, run, transaction_rows):
        harness.transport.respond("GET", keys.TRANSACTIONS, (200, transaction_rows[::-1]))

        async def scenario():
            listing = await harness.app.transactions.list_all()
            recent = await harness.app.transactions.recent()
            return listing, recent

        listing, recent = run(scenario())
        assert [t.id for t in recent] == [1, 2]
        assert [t.id for t in listing] == [2, 1]

    def test_totals(self, harness, run, transaction_rows):
        harness.transport.respond("GET", keys.TRANSACTIONS, (200, transaction_rows))

        totals = run(harness.app.transactions.totals())

        assert totals[CategoryKind.INCOME] == Decimal("3000.00")
        assert totals[CategoryKind.EXPENSE] == Decimal("120.50")


class TestCategoryService:
    """Tests for categories."""

    def test_update_also_refreshes_transactions(self, harness, run):
        harness.transport.respond("GET", keys.TRANSACTIONS, (200, []))
        harness.transport.respond("GET", keys.CATEGORIES, (200, []))
        harness.transport.respond("GET", keys.DASHBOARD, (200, {}))
        harness.transport.respond(
            "PUT", "/api/categories/3",
            (200, {"id": 3, "name": "Food", "color": "#f00", "type": "expense"}),
        )
        _prime(harness, run, keys.TRANSACTIONS, keys.CATEGORIES, keys.DASHBOARD)

        updated = run(harness.app.categories.update(3, {"name": "Food", "color": "#f00"}))

        assert updated.name == "Food"
        assert harness.transport.last_body("PUT", "/api/categories/3") == {"name": "Food", "color": "#f00"}
        for key in (keys.TRANSACTIONS, keys.CATEGORIES, keys.DASHBOARD):
            assert harness.dal.state(key) == EntryState.EMPTY

    def test_of_kind(self, harness, run):
        harness.transport.respond("GET", keys.CATEGORIES, (200, [
            {"id": 1, "name": "Salary", "type": "income"},
            {"id": 2, "name": "Rent", "type": "despesa"},
        ]))

        expenses = run(harness.app.categories.of_kind(CategoryKind.EXPENSE))

        assert [c.name for c in expenses] == ["Rent"]

    def test_long_names_stored_by_the_server_are_read(self, harness, run):
        """Length limits apply to what the client sends, not to what it reads back."""
        long_name = "N" * 120
        category = {"id": 9, "name": long_name, "type": "expense"}
        harness.transport.respond("GET", keys.CATEGORIES, (200, [category]))
        harness.transport.respond("GET", keys.TRANSACTIONS, (200, [{
            "id": 1,
            "amount": "10.00",
            "type": "expense",
            "date": "2025-01-10",
            "category": category,
        }]))

        async def scenario():
            return await harness.app.categories.list_all(), await harness.app.transactions.list_all()

        categories, transactions = run(scenario())
        assert categories[0].name == long_name
        assert transactions[0].category.name == long_name
        assert harness.notifier.notifications == []

    def test_unreadable_rows_notify_once_and_are_read_again(self, harness, run):
        harness.transport.respond(
            "GET", keys.CATEGORIES,
            (200, [{"id": 1, "name": "Moves", "type": "transfer"}]),
            (200, [{"id": 1, "name": "Moves", "type": "expense"}]),
        )

        with pytest.raises(ResponseFormatError):
            run(harness.app.categories.list_all())

        assert harness.transport.count("GET", keys.CATEGORIES) == 1
        assert len(harness.notifier.notifications) == 1
        assert harness.notifier.last.kind == NotificationKind.FAILURE
        assert harness.notifier.last.description == "Error loading categories. Try again."
        assert harness.dal.state(keys.CATEGORIES) == EntryState.EMPTY

        categories = run(harness.app.categories.list_all())

        assert [c.kind for c in categories] == [CategoryKind.EXPENSE]
        assert harness.transport.count("GET", keys.CATEGORIES) == 2
        assert len(harness.notifier.notifications) == 1


class TestDashboardService:
    """Tests for read-only summaries."""

    def test_dashboard(self, harness, run, dashboard_doc):
        harness.transport.respond("GET", keys.DASHBOARD, (200, dashboard_doc))

        dashboard = run(harness.app.dashboard.get())

        assert dashboard.monthly_income == Decimal("3000")
        assert harness.transport.count("GET", keys.DASHBOARD) == 1

    def test_dashboard_failure_wording(self, harness, run):
        harness.transport.respond("GET", keys.DASHBOARD, (500, None))
        with pytest.raises(RequestFailedError):
            run(harness.app.dashboard.get())
        assert harness.notifier.last.description == "Error loading dashboard. Try again."

    def test_unreadable_dashboard_wording(self, harness, run):
        harness.transport.respond("GET", keys.DASHBOARD, (200, {"monthlyTrends": [{"income": 1}]}))
        with pytest.raises(ResponseFormatError):
            run(harness.app.dashboard.get())
        assert len(harness.notifier.notifications) == 1
        assert harness.notifier.last.description == "Error loading dashboard. Try again."

    def test_reports_list_is_wrapped(self, harness, run):
        harness.transport.respond("GET", keys.REPORTS, (200, [{"month": "Jan"}]))
        assert run(harness.app.dashboard.reports()) == {"items": [{"month": "Jan"}]}


class TestAiChatService:
    """Tests for the assistant conversation."""

    def test_send_message_invalidates_history(self, harness, run):
        harness.transport.respond("GET", keys.AI_INTERACTIONS, (200, [
            {"id": 2, "message": "b", "response": "B"},
            {"id": 1, "message": "a", "response": "A"},
        ]))
        harness.transport.respond("POST", keys.AI_CHAT, (200, {"message": "Spend less on food."}))

        async def scenario():
            history = await harness.app.ai.interactions()
            reply = await harness.app.ai.send_message("How am I doing?")
            return history, reply

        history, reply = run(scenario())
        assert [i.id for i in history] == [1, 2]
        assert reply.message == "Spend less on food."
        assert harness.transport.last_body("POST", keys.AI_CHAT) == {"message": "How am I doing?"}
        assert harness.dal.state(keys.AI_INTERACTIONS) == EntryState.EMPTY

    def test_empty_message_is_rejected_locally(self, harness, run):
        with pytest.raises(ValidationError):
            run(harness.app.ai.send_message(""))
        assert harness.transport.calls == []
        assert harness.notifier.last.kind == NotificationKind.VALIDATION

    def test_unreadable_reply_is_notified(self, harness, run):
        harness.transport.respond("POST", keys.AI_CHAT, (200, {"success": True}))

        with pytest.raises(ResponseFormatError):
            run(harness.app.ai.send_message("Hello"))

        assert len(harness.notifier.notifications) == 1
        assert harness.notifier.last.description == "Error sending message. Try again."


RELATIONSHIP_ROW = {
    "id": 4,
    "userId": "1",
    "type": "cliente",
    "documentType": "CPF",
    "document": "529.982.247-25",
    "socialName": "Ana Souza",
    "zipCode": "01310-100",
    "street": "Av. Paulista",
    "number": "1000",
    "neighborhood": "Bela Vista",
    "city": "Sao Paulo",
    "state": "SP",
    "status": "ativo",
}

NEW_RELATIONSHIP = {
    "type": "supplier",
    "documentType": "cnpj",
    "document": "11.222.333/0001-81",
    "socialName": "Acme Ltda",
    "zipCode": "01310100",
    "street": "Rua A",
    "number": "10",
    "neighborhood": "Centro",
    "city": "Campinas",
    "state": "SP",
}


class TestRelationshipService:
    """Tests for clients, suppliers and other counterparties."""

    def test_create_only_refreshes_relationships(self, harness, run):
        """No summary aggregates relationships, so budgets and the dashboard stay cached."""
        harness.transport.respond("GET", keys.RELATIONSHIPS, (200, []))
        harness.transport.respond("GET", keys.BUDGETS, (200, []))
        harness.transport.respond("GET", keys.DASHBOARD, (200, {}))
        harness.transport.respond("POST", keys.RELATIONSHIPS, (201, dict(RELATIONSHIP_ROW, id=5)))
        _prime(harness, run, keys.RELATIONSHIPS, keys.BUDGETS, keys.DASHBOARD)

        created = run(harness.app.relationships.create(NEW_RELATIONSHIP))

        assert isinstance(created, Relationship)
        assert created.id == 5
        body = harness.transport.last_body("POST", keys.RELATIONSHIPS)
        assert body["type"] == "fornecedor"
        assert body["documentType"] == "CNPJ"
        assert body["status"] == "ativo"
        assert harness.dal.state(keys.RELATIONSHIPS) == EntryState.EMPTY
        assert harness.dal.state(keys.BUDGETS) == EntryState.FRESH
        assert harness.dal.state(keys.DASHBOARD) == EntryState.FRESH
        assert harness.notifier.last.description == "Relationship created successfully!"

    def test_failed_create_wording(self, harness, run):
        harness.transport.respond("POST", keys.RELATIONSHIPS, (500, None))

        with pytest.raises(RequestFailedError):
            run(harness.app.relationships.create(NEW_RELATIONSHIP))

        assert harness.transport.count("POST", keys.RELATIONSHIPS) == 1
        assert harness.notifier.last.kind == NotificationKind.FAILURE
        assert harness.notifier.last.description == "Error creating relationship. Try again."

    def test_invalid_document_never_reaches_network(self, harness, run):
        with pytest.raises(ValidationError):
            run(harness.app.relationships.create(dict(NEW_RELATIONSHIP, document="11.222.333/0001-82")))

        assert harness.transport.calls == []
        assert harness.notifier.last.kind == NotificationKind.VALIDATION
        assert harness.notifier.last.description.startswith(
            "Error creating relationship. Check the highlighted fields."
        )

    def test_update_and_delete_refresh_relationships(self, harness, run):
        harness.transport.respond("GET", keys.RELATIONSHIPS, (200, [RELATIONSHIP_ROW]))
        harness.transport.respond(
            "PUT", "/api/relationships/4", (200, dict(RELATIONSHIP_ROW, status="inativo"))
        )
        harness.transport.respond("DELETE", "/api/relationships/4", (204, None))
        _prime(harness, run, keys.RELATIONSHIPS)

        updated = run(harness.app.relationships.update(4, {"status": "inactive"}))

        assert updated.status == RelationshipStatus.INACTIVE
        assert harness.transport.last_body("PUT", "/api/relationships/4") == {"status": "inativo"}
        assert harness.dal.state(keys.RELATIONSHIPS) == EntryState.EMPTY

        run(harness.app.relationships.delete(4))
        assert harness.notifier.last.description == "Relationship deleted successfully!"

    def test_of_type(self, harness, run):
        harness.transport.respond("GET", keys.RELATIONSHIPS, (200, [
            RELATIONSHIP_ROW,
            dict(RELATIONSHIP_ROW, id=6, type="fornecedor"),
            dict(RELATIONSHIP_ROW, id=7, status="inativo"),
        ]))

        async def scenario():
            clients = await harness.app.relationships.of_type(RelationshipType.CLIENT)
            active = await harness.app.relationships.of_type(
                RelationshipType.CLIENT, RelationshipStatus.ACTIVE
            )
            return clients, active

        clients, active = run(scenario())
        assert [r.id for r in clients] == [4, 7]
        assert [r.id for r in active] == [4]
        assert harness.transport.count("GET", keys.RELATIONSHIPS) == 1


CONTRACT_TERMS = {
    "segment": "Software",
    "startDate": "2025-03-01",
    "validityPeriod": "12 months",
    "paymentMethods": ["PIX", "Boleto"],
    "hasAdhesion": True,
    "monthlyValue": "1500.00",
}


class TestContractGeneration:
    """Tests for contract drafting through the assistant."""

    def test_posts_prompt_and_terms(self, harness, run):
        harness.transport.respond(
            "POST", keys.AI_CONTRACT, (200, {"contract": "<html>ok</html>", "success": True})
        )
        terms = dict(CONTRACT_TERMS, relationshipData=RELATIONSHIP_ROW)

        contract = run(harness.app.ai.generate_contract(terms))

        assert isinstance(contract, GeneratedContract)
        assert contract.contract == "<html>ok</html>"
        body = harness.transport.last_body("POST", keys.AI_CONTRACT)
        assert set(body) == {"prompt", "contractData"}
        assert body["contractData"]["monthlyValue"] == 1500.0
        assert body["contractData"]["paymentMethods"] == ["PIX", "Boleto"]
        assert body["contractData"]["relationshipData"]["socialName"] == "Ana Souza"
        assert "Segment: Software" in body["prompt"]
        assert "PIX, Boleto" in body["prompt"]
        assert "Ana Souza" in body["prompt"]
        assert harness.notifier.notifications == []

    def test_nothing_is_invalidated(self, harness, run):
        harness.transport.respond("GET", keys.RELATIONSHIPS, (200, []))
        harness.transport.respond("POST", keys.AI_CONTRACT, (200, {"contract": "<p>x</p>"}))
        _prime(harness, run, keys.RELATIONSHIPS)

        run(harness.app.ai.generate_contract(CONTRACT_TERMS))

        assert harness.dal.state(keys.RELATIONSHIPS) == EntryState.FRESH

    def test_server_failure_wording(self, harness, run):
        harness.transport.respond("POST", keys.AI_CONTRACT, (500, {"error": "boom"}))

        with pytest.raises(RequestFailedError):
            run(harness.app.ai.generate_contract(CONTRACT_TERMS))

        assert harness.transport.count("POST", keys.AI_CONTRACT) == 1
        assert len(harness.notifier.notifications) == 1
        assert harness.notifier.last.description == "Error generating contract. Try again."

    def test_empty_contract_is_a_failure(self, harness, run):
        harness.transport.respond("POST", keys.AI_CONTRACT, (200, {"contract": "", "success": True}))

        with pytest.raises(ResponseFormatError):
            run(harness.app.ai.generate_contract(CONTRACT_TERMS))

        assert len(harness.notifier.notifications) == 1
        assert harness.notifier.last.kind == NotificationKind.FAILURE
        assert harness.notifier.last.description == "Error generating contract. Try again."

    def test_incomplete_terms_never_reach_network(self, harness, run):
        with pytest.raises(ValidationError):
            run(harness.app.ai.generate_contract(dict(CONTRACT_TERMS, paymentMethods=[])))

        assert harness.transport.calls == []
        assert harness.notifier.last.kind == NotificationKind.VALIDATION

    def test_custom_template_replaces_instructions(self):
        terms = ContractTerms.model_validate(
            dict(CONTRACT_TERMS, customTemplate="CONTRACT FOR {segment}")
        )

        prompt = build_contract_prompt(terms)

        assert prompt.startswith("CONTRACT FOR {segment}\n\nAdapt this template using the data: ")
        assert '"segment": "Software"' in prompt
        assert "Brazilian law" not in prompt
