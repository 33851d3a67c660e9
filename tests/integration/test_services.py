"""Integration tests for the finance services over an in-memory store"""

from datetime import date

import pytest
from conftest import (
    ACCOUNTS_DB,
    DEBTS_DB,
    GOALS_DB,
    NOW,
    SPENDING_DB,
    TODAY,
    account_page,
    debt_page,
    goal_page,
    spending_page,
)

from notion_finance.config import settings
from notion_finance.domain.exceptions import (
    ConflictError,
    InputValidationError,
    MalformedRecordError,
    NotFoundError,
)
from notion_finance.domain.models import (
    BudgetHealth,
    CategoryTrend,
    SpendingCategory,
    SpendingStatus,
    UrgencyLevel,
)
from notion_finance.domain.properties import PropertyKind, record_property, record_text
from notion_finance.services.finance import FinanceService
from notion_finance.services.financial import FinancialDataService


def seed_healthy_month(store):
    """$900 approved across three categories this month, no urgent requests"""
    store.add(
        spending_page("rent", 300.0, category="Bills", status="Approved", request_date=date(2024, 6, 2)),
        spending_page("food", 300.0, category="Food", status="Approved", request_date=date(2024, 6, 9)),
        spending_page("shoes", 300.0, category="Shopping", status="Approved", request_date=date(2024, 6, 16)),
    )


# Spending requests


async def test_pending_requests_sorted_and_filtered(finance_service, store):
    store.add(
        spending_page("small", 20.0),
        spending_page("old", 500.0, request_date=date(2024, 6, 1)),
        spending_page("big", 300.0),
        spending_page("medium", 80.0),
        spending_page("done", 900.0, status="Approved"),
    )

    pending = await finance_service.spending.get_pending_requests()

    assert [r.id for r in pending] == ["big", "medium", "old"]


async def test_pending_requests_explicit_min_amount(finance_service, store):
    store.add(spending_page("small", 20.0), spending_page("tiny", 5.0))

    pending = await finance_service.spending.get_pending_requests(min_amount=10)

    assert [r.id for r in pending] == ["small"]


async def test_pending_requests_rejects_negative_minimum(finance_service):
    with pytest.raises(InputValidationError):
        await finance_service.spending.get_pending_requests(min_amount=-1)


async def test_recent_spending_window(finance_service, store):
    store.add(
        spending_page("inside", 50.0, request_date=date(2024, 6, 10)),
        spending_page("outside", 50.0, request_date=date(2024, 5, 1)),
    )

    recent = await finance_service.spending.get_recent_spending(days=30)

    assert [r.id for r in recent] == ["inside"]
    with pytest.raises(InputValidationError):
        await finance_service.spending.get_recent_spending(days=0)


async def test_update_decision_writes_single_update(finance_service, store):
    store.add(spending_page("req-1", 120.0))

    await finance_service.spending.update_decision("req-1", "approved", "  Planned purchase within budget  ")

    updates = store.updates()
    assert len(updates) == 1
    _, page_id, properties = updates[0]
    assert page_id == "req-1"
    assert properties["Status"] == {"select": {"name": "Approved"}}
    assert properties["Reasoning"]["rich_text"][0]["text"]["content"] == "Planned purchase within budget"
    assert properties["Decision Date"] == {"date": {"start": NOW.isoformat()}}

    stored = store.databases[SPENDING_DB]["req-1"]
    assert record_property(stored, "Status", PropertyKind.SELECT) == "Approved"
    assert record_text(stored, "Reasoning") == "Planned purchase within budget"


async def test_update_decision_refuses_decided_request(finance_service, store):
    store.add(spending_page("req-1", 120.0, status="Approved"))

    with pytest.raises(ConflictError) as exc_info:
        await finance_service.spending.update_decision("req-1", "denied", "Changed my mind about it")

    assert exc_info.value.details == {"request_id": "req-1", "current_status": "Approved"}
    assert store.updates() == []


async def test_update_decision_reads_fresh_status(finance_service, store):
    store.add(spending_page("req-1", 120.0))
    await finance_service.spending.get_request("req-1")  # warms the cache with Pending
    await finance_service.spending.update_decision("req-1", SpendingStatus.APPROVED, "Approved by household")

    with pytest.raises(ConflictError):
        await finance_service.spending.update_decision("req-1", SpendingStatus.DENIED, "Second reviewer disagrees")

    assert len(store.updates()) == 1


@pytest.mark.parametrize(
    "decision, reasoning",
    [
        ("pending", "Valid reasoning text"),
        ("maybe", "Valid reasoning text"),
        ("approved", "too short"),
        ("approved", "x" * 501),
        ("approved", "         "),
    ],
)
async def test_update_decision_validates_input(finance_service, store, decision, reasoning):
    store.add(spending_page("req-1", 120.0))

    with pytest.raises(InputValidationError):
        await finance_service.spending.update_decision("req-1", decision, reasoning)

    assert store.updates() == []


async def test_get_request_errors(finance_service, store):
    broken = spending_page("broken", 10.0)
    del broken["properties"]["Amount"]
    store.add(broken)

    with pytest.raises(NotFoundError):
        await finance_service.spending.get_request("missing")
    with pytest.raises(MalformedRecordError):
        await finance_service.spending.get_request("broken")


async def test_create_request(finance_service, store):
    created = await finance_service.spending.create_request(
        "Concert tickets", 150.0, SpendingCategory.ENTERTAINMENT, UrgencyLevel.LOW, tags=["music"]
    )

    assert created.status is SpendingStatus.PENDING
    assert created.request_date == TODAY
    assert created.tags == ["music"]
    assert created.id in store.databases[SPENDING_DB]


async def test_create_request_rejects_invalid(finance_service, store):
    with pytest.raises(InputValidationError) as exc_info:
        await finance_service.spending.create_request("", 0, SpendingCategory.FOOD, UrgencyLevel.LOW)

    assert "Title is required and cannot be empty" in exc_info.value.details["errors"]
    assert not [c for c in store.calls if c[0] == "create_page"]


async def test_spending_context_and_trends(finance_service, store):
    seed_healthy_month(store)
    store.add(spending_page("may", 400.0, status="Approved", request_date=date(2024, 5, 15)))

    context = await finance_service.spending.build_spending_context(days=7)
    trends = await finance_service.spending.calculate_spending_trends(months=2)

    assert context.monthly_total == 900
    assert context.weekly_total == 0
    assert [r.id for r in context.recent_spending] == ["shoes"]
    assert [t.period for t in trends] == ["2024-06", "2024-05"]
    assert trends[1].total_spending == 400


# Financial data


async def test_monthly_budget_status(finance_service, store):
    seed_healthy_month(store)
    store.add(spending_page("waiting", 500.0, request_date=date(2024, 6, 18)))

    status = await finance_service.financial.get_monthly_budget_status(monthly_budget=3000)

    # Only approved requests consume budget
    assert status.current_spending == 900
    assert status.remaining_budget == 2100
    assert status.budget_health is BudgetHealth.EXCELLENT
    assert status.on_track


async def test_monthly_budget_status_for_past_month(finance_service, store):
    store.add(spending_page("may", 2900.0, status="Approved", request_date=date(2024, 5, 15)))

    status = await finance_service.financial.get_monthly_budget_status(month="2024-05")

    assert status.days_into_month == 31
    assert status.days_remaining_in_month == 0
    assert status.budget_health is BudgetHealth.CRITICAL


@pytest.mark.parametrize("kwargs", [{"monthly_budget": 0}, {"month": "2024-13"}, {"month": "June"}])
async def test_monthly_budget_status_validation(finance_service, kwargs):
    with pytest.raises(InputValidationError):
        await finance_service.financial.get_monthly_budget_status(**kwargs)


async def test_financial_snapshot(finance_service, store):
    store.add(
        goal_page("goal-1", target=5000, current=1000),
        goal_page("goal-done", target=100, current=100, status="completed"),
        debt_page("card", remaining=1200, minimum_payment=60),
        debt_page("paid", remaining=0, minimum_payment=0, status="paid_off"),
        account_page("checking", "checking", 4000),
        account_page("savings", "savings", 10000),
        account_page("visa", "credit_card", 1200),
    )

    snapshot = await finance_service.financial.build_financial_snapshot()

    assert [g.id for g in snapshot.goals] == ["goal-1"]
    assert [d.id for d in snapshot.debts] == ["card"]
    assert snapshot.total_assets == 14000
    assert snapshot.total_liabilities == 1200
    assert snapshot.net_worth == 12800
    assert snapshot.total_debt == 1200
    assert snapshot.monthly_debt_payments == 60
    # 14000 liquid minus three months of the 3000 default budget
    assert snapshot.available_funds == 5000


async def test_available_funds_keep_emergency_reserve(finance_service, store):
    store.add(
        account_page("checking", "checking", 4000, available=3500),
        account_page("savings", "savings", 12000),
        account_page("brokerage", "investment", 50000),
        account_page("visa", "credit_card", 800),
        account_page("old", "savings", 9000, status="closed"),
    )

    funds = await finance_service.financial.calculate_available_funds()

    # 15500 liquid minus three months of the 3000 default budget
    assert funds == 6500


async def test_available_funds_never_negative(finance_service, store):
    store.add(account_page("checking", "checking", 1000))

    assert await finance_service.financial.calculate_available_funds() == 0


def test_explicit_empty_settings_override_environment(record_client, monkeypatch):
    monkeypatch.setattr(settings, "goals_database_id", "env-goals")
    monkeypatch.setattr(settings, "debts_database_id", "env-debts")
    spending = FinanceService(client=record_client, spending_database_id=SPENDING_DB).spending

    service = FinancialDataService(record_client, spending, goals_database_id="", default_monthly_budget=0)

    assert service.goals_database_id == ""
    assert service.debts_database_id == "env-debts"
    assert service.default_monthly_budget == 0


async def test_disabled_goals_collection_is_not_queried(record_client, store, monkeypatch):
    monkeypatch.setattr(settings, "goals_database_id", GOALS_DB)
    service = FinanceService(
        client=record_client, spending_database_id=SPENDING_DB, goals_database_id="", now=lambda: NOW
    )

    assert await service.financial.get_active_goals() == []
    assert not [c for c in store.calls if c[1] == GOALS_DB]


async def test_snapshot_degrades_when_a_collection_is_missing(finance_service, store):
    del store.databases[DEBTS_DB]
    store.add(account_page("checking", "checking", 4000))

    snapshot = await finance_service.financial.build_financial_snapshot()

    assert snapshot.debts == []
    assert len(snapshot.accounts) == 1


async def test_unconfigured_collections_are_empty(record_client):
    service = FinanceService(client=record_client, spending_database_id=SPENDING_DB, now=lambda: NOW)
    service.financial.goals_database_id = None
    service.financial.debts_database_id = None
    service.financial.accounts_database_id = None

    assert await service.financial.get_active_goals() == []
    assert await service.financial.get_all_debts() == []
    assert await service.financial.get_account_balances() == []


# Decision context


async def test_decision_context_for_healthy_household(finance_service, store):
    seed_healthy_month(store)
    store.add(
        goal_page("goal-1", target=12000, current=2000),
        spending_page("lunch", 60.0, category="Food", urgency="Low"),
    )

    context = await finance_service.decisions.build_decision_context("lunch")

    assert context.financial_health.score == 100
    assert len(context.financial_health.factors) == 5
    assert context.budget_context.remaining_budget == 2100
    assert context.recommendation.should_approve is True
    assert context.recommendation.confidence == 90
    assert [r.id for r in context.spending_patterns.recent_similar] == ["food"]


async def test_decision_context_denies_over_budget(finance_service, store):
    store.add(
        spending_page("rent", 2000.0, category="Bills", status="Approved", request_date=date(2024, 6, 1)),
        spending_page("food", 850.0, category="Food", status="Approved", request_date=date(2024, 6, 5)),
        spending_page("movie", 200.0, category="Entertainment", urgency="High"),
    )

    context = await finance_service.decisions.build_decision_context("movie")

    assert context.budget_context.remaining_budget == 150
    assert context.recommendation.should_approve is False
    assert context.recommendation.confidence == 90
    assert context.recommendation.alternatives


async def test_decision_context_trend_windows_are_equal_length(finance_service, store):
    store.add(
        spending_page("april", 60.0, status="Approved", request_date=date(2024, 4, 20)),
        spending_page("may-20", 100.0, status="Approved", request_date=date(2024, 5, 20)),
        spending_page("may-21", 100.0, status="Approved", request_date=date(2024, 5, 21)),
        spending_page("lunch", 60.0),
    )

    context = await finance_service.decisions.build_decision_context("lunch", include_comparisons=False)

    # 160 in May 21 to June 20 against 160 in April 20 to May 20
    assert context.spending_patterns.category_trend is CategoryTrend.STABLE


async def test_decision_context_survives_missing_goals_collection(record_client, store):
    store.add(spending_page("req-1", 75.0))
    service = FinanceService(
        client=record_client,
        spending_database_id=SPENDING_DB,
        goals_database_id="missing-goals",
        debts_database_id=DEBTS_DB,
        accounts_database_id=ACCOUNTS_DB,
        now=lambda: NOW,
    )

    context = await service.decisions.build_decision_context("req-1", include_comparisons=False)

    assert context.financial_goals.active_goals == []
    goal_queries = [c for c in store.calls if c[0] == "query_database" and c[1] == "missing-goals"]
    assert len(goal_queries) == 1
    assert "No active financial goals set" in context.financial_health.concerns


async def test_decision_context_requires_existing_request(finance_service):
    with pytest.raises(NotFoundError):
        await finance_service.decisions.build_decision_context("nope")


async def test_decision_context_validates_max_comparisons(finance_service):
    with pytest.raises(InputValidationError):
        await finance_service.decisions.build_decision_context("req-1", max_comparisons=21)


async def test_relevant_comparisons(finance_service, store):
    request_page = spending_page("req", 100.0)
    store.add(
        request_page,
        spending_page("similar", 110.0, status="Approved", request_date=date(2024, 6, 10)),
        spending_page("other-category", 100.0, category="Bills", status="Approved"),
        spending_page("too-old", 100.0, status="Denied", request_date=date(2024, 1, 1)),
    )
    request = await finance_service.spending.get_request("req")

    comparisons = await finance_service.decisions.get_relevant_comparisons(request)

    assert [r.id for r in comparisons] == ["similar"]


# Facade


async def test_initialize_checks_collections(finance_service, store):
    await finance_service.initialize()

    checked = {c[1] for c in store.calls if c[0] == "retrieve_database"}
    assert checked == {SPENDING_DB, GOALS_DB, DEBTS_DB, ACCOUNTS_DB}
    await finance_service.aclose()


async def test_initialize_tolerates_missing_optional_collection(finance_service, store):
    del store.databases[GOALS_DB]

    await finance_service.initialize()
    await finance_service.aclose()


async def test_initialize_requires_spending_collection(finance_service, store):
    del store.databases[SPENDING_DB]

    with pytest.raises(NotFoundError):
        await finance_service.initialize()
    await finance_service.aclose()


async def test_health_check_degrades_with_failures(finance_service, store):
    assert (await finance_service.health_check())["status"] == "healthy"

    for _ in range(3):
        with pytest.raises(NotFoundError):
            await finance_service.spending.get_request("missing")

    health = await finance_service.health_check()
    assert health["status"] == "unhealthy"
    assert health["record_store"]["errors_by_code"] == {"NOT_FOUND": 3}
