"""Pytest fixtures for testing"""

from datetime import date, datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

import pytest
from fastapi.testclient import TestClient

from notion_finance.api.main import create_app
from notion_finance.domain.exceptions import NotFoundError
from notion_finance.domain.properties import PropertyKind, decode, encode
from notion_finance.infrastructure.clients.record_store import RecordStoreClient
from notion_finance.infrastructure.resilience.cache import TTLCache
from notion_finance.infrastructure.resilience.retry import RetryExecutor, RetryPolicy
from notion_finance.infrastructure.resilience.ring import MetricsRing
from notion_finance.infrastructure.resilience.throttle import Throttle
from notion_finance.services.finance import FinanceService

# Thursday; June 2024 has 30 days and its ISO week starts Monday the 17th
NOW = datetime(2024, 6, 20, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()

SPENDING_DB = "spending-db"
GOALS_DB = "goals-db"
DEBTS_DB = "debts-db"
ACCOUNTS_DB = "accounts-db"


def prop(value: Any, kind: PropertyKind) -> Dict[str, Any]:
    """Wire property as the store returns it, including its type tag"""
    return {"type": kind.value, **encode(value, kind)}


def page(page_id: str, database_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "object": "page",
        "id": page_id,
        "created_time": "2024-06-01T09:00:00.000Z",
        "last_edited_time": "2024-06-01T09:00:00.000Z",
        "parent": {"type": "database_id", "database_id": database_id},
        "properties": properties,
    }


def spending_page(
    page_id: str,
    amount: float,
    category: str = "Food",
    status: str = "Pending",
    urgency: str = "Medium",
    request_date: date = TODAY,
    title: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> Dict[str, Any]:
    return page(
        page_id,
        SPENDING_DB,
        {
            "Title": prop(title or f"Request {page_id}", PropertyKind.TITLE),
            "Amount": prop(amount, PropertyKind.NUMBER),
            "Category": prop(category, PropertyKind.SELECT),
            "Status": prop(status, PropertyKind.SELECT),
            "Urgency": prop(urgency, PropertyKind.SELECT),
            "Request Date": prop(request_date, PropertyKind.DATE),
            "Tags": prop(tags or [], PropertyKind.MULTI_SELECT),
        },
    )


def goal_page(
    page_id: str, target: float, current: float = 0.0, category: str = "emergency_fund", status: str = "active"
) -> Dict[str, Any]:
    return page(
        page_id,
        GOALS_DB,
        {
            "Title": prop(f"Goal {page_id}", PropertyKind.TITLE),
            "Target Amount": prop(target, PropertyKind.NUMBER),
            "Current Amount": prop(current, PropertyKind.NUMBER),
            "Priority": prop("high", PropertyKind.SELECT),
            "Category": prop(category, PropertyKind.SELECT),
            "Status": prop(status, PropertyKind.SELECT),
        },
    )


def debt_page(
    page_id: str,
    remaining: float,
    minimum_payment: float,
    priority: str = "medium",
    status: str = "active",
    total: Optional[float] = None,
) -> Dict[str, Any]:
    return page(
        page_id,
        DEBTS_DB,
        {
            "Creditor": prop(f"Creditor {page_id}", PropertyKind.TITLE),
            "Total Amount": prop(total or remaining * 2, PropertyKind.NUMBER),
            "Remaining Amount": prop(remaining, PropertyKind.NUMBER),
            "Minimum Payment": prop(minimum_payment, PropertyKind.NUMBER),
            "Interest Rate": prop(19.9, PropertyKind.NUMBER),
            "Due Date": prop(date(2024, 7, 1), PropertyKind.DATE),
            "Priority": prop(priority, PropertyKind.SELECT),
            "Debt Type": prop("credit_card", PropertyKind.SELECT),
            "Status": prop(status, PropertyKind.SELECT),
        },
    )


def account_page(
    page_id: str, account_type: str, current: float, available: Optional[float] = None, status: str = "active"
) -> Dict[str, Any]:
    return page(
        page_id,
        ACCOUNTS_DB,
        {
            "Account Name": prop(f"Account {page_id}", PropertyKind.TITLE),
            "Account Type": prop(account_type, PropertyKind.SELECT),
            "Current Balance": prop(current, PropertyKind.NUMBER),
            "Available Balance": prop(current if available is None else available, PropertyKind.NUMBER),
            "Status": prop(status, PropertyKind.SELECT),
        },
    )


def _property_matches(record: Dict[str, Any], condition: Dict[str, Any]) -> bool:
    kind_name = next(key for key in condition if key != "property")
    kind = PropertyKind(kind_name)
    operator, operand = next(iter(condition[kind_name].items()))
    value = decode(record["properties"].get(condition["property"]), kind)

    if kind is PropertyKind.DATE and isinstance(operand, str):
        operand = date.fromisoformat(operand)
    if operator == "equals":
        return value == operand
    if operator == "contains":
        return operand in value
    if operator in ("is_empty", "is_not_empty"):
        return (value in (None, "", [])) == (operator == "is_empty")
    if value is None:
        return False
    if operator in ("greater_than", "after"):
        return value > operand
    if operator in ("greater_than_or_equal_to", "on_or_after"):
        return value >= operand
    if operator in ("less_than", "before"):
        return value < operand
    if operator in ("less_than_or_equal_to", "on_or_before"):
        return value <= operand
    raise AssertionError(f"fake store does not support operator {operator}")


def matches(record: Dict[str, Any], filter: Optional[Dict[str, Any]]) -> bool:
    if not filter:
        return True
    if "and" in filter:
        return all(matches(record, f) for f in filter["and"])
    if "or" in filter:
        return any(matches(record, f) for f in filter["or"])
    return _property_matches(record, filter)


class FakeNotionTransport:
    """In-memory stand-in for NotionTransport that evaluates the filter wire format"""

    def __init__(self, page_limit: int = 100):
        self.databases: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.page_limit = page_limit
        self.calls: List[tuple] = []
        self.closed = False

    def add(self, *pages: Dict[str, Any]) -> None:
        for p in pages:
            self.databases.setdefault(p["parent"]["database_id"], {})[p["id"]] = p

    def create_database(self, database_id: str) -> None:
        self.databases.setdefault(database_id, {})

    def _find(self, page_id: str) -> Dict[str, Any]:
        for pages in self.databases.values():
            if page_id in pages:
                return pages[page_id]
        raise NotFoundError(f"Could not find page with ID: {page_id}", details={"status": 404})

    def updates(self) -> List[tuple]:
        return [c for c in self.calls if c[0] == "update_page"]

    async def query_database(self, database_id, filter=None, sorts=None, start_cursor=None, page_size=100):
        self.calls.append(("query_database", database_id, filter, start_cursor))
        if database_id not in self.databases:
            raise NotFoundError(f"Could not find database with ID: {database_id}", details={"status": 404})
        rows = [p for p in self.databases[database_id].values() if matches(p, filter)]
        offset = int(start_cursor or 0)
        limit = min(page_size, self.page_limit)
        chunk = rows[offset : offset + limit]
        more = offset + limit < len(rows)
        return {
            "object": "list",
            "results": chunk,
            "has_more": more,
            "next_cursor": str(offset + limit) if more else None,
        }

    async def create_page(self, database_id, properties):
        self.calls.append(("create_page", database_id, properties))
        if database_id not in self.databases:
            raise NotFoundError(f"Could not find database with ID: {database_id}", details={"status": 404})
        created = page(f"page-{len(self.calls)}", database_id, {})
        created["properties"] = {
            name: {"type": next(iter(value)), **value} for name, value in properties.items()
        }
        self.add(created)
        return created

    async def update_page(self, page_id, properties):
        self.calls.append(("update_page", page_id, properties))
        existing = self._find(page_id)
        for name, value in properties.items():
            existing["properties"][name] = {"type": next(iter(value)), **value}
        return existing

    async def retrieve_page(self, page_id):
        self.calls.append(("retrieve_page", page_id))
        return self._find(page_id)

    async def retrieve_database(self, database_id):
        self.calls.append(("retrieve_database", database_id))
        if database_id not in self.databases:
            raise NotFoundError(f"Could not find database with ID: {database_id}", details={"status": 404})
        return {"object": "database", "id": database_id, "properties": {}}

    async def aclose(self):
        self.closed = True


async def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def store() -> FakeNotionTransport:
    fake = FakeNotionTransport()
    for database_id in (SPENDING_DB, GOALS_DB, DEBTS_DB, ACCOUNTS_DB):
        fake.create_database(database_id)
    return fake


@pytest.fixture
def record_client(store: FakeNotionTransport) -> RecordStoreClient:
    """Record-store client over the fake transport with instant retries"""
    return RecordStoreClient(
        transport=store,
        executor=RetryExecutor(RetryPolicy(max_retries=2, base_delay=0.01), timeout=5.0, sleep=no_sleep),
        throttle=Throttle(requests_per_second=1000, sleep=no_sleep),
        cache=TTLCache(ttl=300, max_size=100),
        ring=MetricsRing(capacity=100),
        cache_enabled=True,
    )


@pytest.fixture
def finance_service(record_client: RecordStoreClient) -> FinanceService:
    return FinanceService(
        client=record_client,
        spending_database_id=SPENDING_DB,
        goals_database_id=GOALS_DB,
        debts_database_id=DEBTS_DB,
        accounts_database_id=ACCOUNTS_DB,
        now=lambda: NOW,
    )


@pytest.fixture
def client(finance_service: FinanceService) -> Iterator[TestClient]:
    """FastAPI test client wired to the fake-backed finance service"""
    app = create_app(finance_service)
    with TestClient(app) as test_client:
        yield test_client
