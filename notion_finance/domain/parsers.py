"""Convert raw store records into validated domain entities

Each parser returns ``None`` when a required field is absent or out of range.
The store does not enforce its own schema, so an incomplete record is an
expected outcome: it is logged and skipped, never raised.
"""

import logging
from datetime import date
from typing import Callable, Iterable, List, Optional, Type, TypeVar

from notion_finance.domain.models import (
    AccountBalance,
    AccountStatus,
    AccountType,
    DebtInfo,
    DebtPriority,
    DebtStatus,
    DebtType,
    FinancialGoal,
    GoalCategory,
    GoalPriority,
    GoalStatus,
    SpendingCategory,
    SpendingRequest,
    SpendingStatus,
    UrgencyLevel,
)
from notion_finance.domain.properties import PropertyKind, Record, record_property, record_text

logger = logging.getLogger(__name__)

E = TypeVar("E")
T = TypeVar("T")


def _enum(enum_cls: Type[E], raw: Optional[str]) -> Optional[E]:
    if raw is None:
        return None
    try:
        return enum_cls(raw)
    except ValueError:
        return None


def _timestamp_date(record: Record, key: str) -> Optional[date]:
    raw = record.get(key)
    if not isinstance(raw, str):
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None


def _missing(record: Record, entity: str, **fields) -> bool:
    """Log and report fields whose decoded value is unusable"""
    fields["id"] = bool(record.get("id"))
    missing = sorted(name for name, ok in fields.items() if not ok)
    if missing:
        logger.warning(
            "Incomplete %s record",
            entity,
            extra={"record_id": record.get("id"), "missing_fields": missing},
        )
    return bool(missing)


def parse_spending_request(record: Record) -> Optional[SpendingRequest]:
    title = record_text(record, "Title")
    amount = record_property(record, "Amount", PropertyKind.NUMBER)
    category = _enum(SpendingCategory, record_property(record, "Category", PropertyKind.SELECT))
    status = _enum(SpendingStatus, record_property(record, "Status", PropertyKind.SELECT))
    urgency = _enum(UrgencyLevel, record_property(record, "Urgency", PropertyKind.SELECT))
    request_date = record_property(record, "Request Date", PropertyKind.DATE) or _timestamp_date(
        record, "created_time"
    )

    if _missing(
        record,
        "spending_request",
        title=bool(title),
        amount=amount is not None and amount > 0,
        category=category is not None,
        status=status is not None,
        urgency=urgency is not None,
        request_date=request_date is not None,
    ):
        return None

    return SpendingRequest(
        id=record["id"],
        title=title,
        amount=amount,
        category=category,
        status=status,
        request_date=request_date,
        urgency=urgency,
        tags=record_property(record, "Tags", PropertyKind.MULTI_SELECT),
        description=record_property(record, "Description", PropertyKind.RICH_TEXT) or None,
        decided_date=record_property(record, "Decision Date", PropertyKind.DATE),
        reasoning=record_property(record, "Reasoning", PropertyKind.RICH_TEXT) or None,
    )


def parse_financial_goal(record: Record) -> Optional[FinancialGoal]:
    title = record_text(record, "Title")
    target = record_property(record, "Target Amount", PropertyKind.NUMBER)
    current = record_property(record, "Current Amount", PropertyKind.NUMBER)
    priority = _enum(GoalPriority, record_property(record, "Priority", PropertyKind.SELECT))
    category = _enum(GoalCategory, record_property(record, "Category", PropertyKind.SELECT))
    status = _enum(GoalStatus, record_property(record, "Status", PropertyKind.SELECT))

    if _missing(
        record,
        "financial_goal",
        title=bool(title),
        target_amount=target is not None and target > 0,
        current_amount=current is None or current >= 0,
        priority=priority is not None,
        category=category is not None,
        status=status is not None,
    ):
        return None

    return FinancialGoal(
        id=record["id"],
        title=title,
        target_amount=target,
        current_amount=current or 0.0,
        priority=priority,
        category=category,
        status=status,
        deadline=record_property(record, "Deadline", PropertyKind.DATE),
        description=record_property(record, "Description", PropertyKind.RICH_TEXT) or None,
    )


def parse_debt_info(record: Record) -> Optional[DebtInfo]:
    creditor = record_text(record, "Creditor")
    total = record_property(record, "Total Amount", PropertyKind.NUMBER)
    remaining = record_property(record, "Remaining Amount", PropertyKind.NUMBER)
    minimum = record_property(record, "Minimum Payment", PropertyKind.NUMBER)
    rate = record_property(record, "Interest Rate", PropertyKind.NUMBER)
    due_date = record_property(record, "Due Date", PropertyKind.DATE)
    priority = _enum(DebtPriority, record_property(record, "Priority", PropertyKind.SELECT))
    debt_type = _enum(DebtType, record_property(record, "Debt Type", PropertyKind.SELECT))
    status = _enum(DebtStatus, record_property(record, "Status", PropertyKind.SELECT))

    if _missing(
        record,
        "debt",
        creditor=bool(creditor),
        total_amount=total is not None and total > 0,
        remaining_amount=remaining is not None and remaining >= 0,
        minimum_payment=minimum is not None and minimum > 0,
        interest_rate=rate is not None and 0 <= rate <= 100,
        due_date=due_date is not None,
        priority=priority is not None,
        debt_type=debt_type is not None,
        status=status is not None,
    ):
        return None

    return DebtInfo(
        id=record["id"],
        creditor=creditor,
        total_amount=total,
        remaining_amount=remaining,
        minimum_payment=minimum,
        interest_rate=rate,
        due_date=due_date,
        priority=priority,
        debt_type=debt_type,
        status=status,
        description=record_property(record, "Description", PropertyKind.RICH_TEXT) or None,
        last_payment_date=record_property(record, "Last Payment Date", PropertyKind.DATE),
    )


def parse_account_balance(record: Record) -> Optional[AccountBalance]:
    name = record_text(record, "Account Name")
    account_type = _enum(AccountType, record_property(record, "Account Type", PropertyKind.SELECT))
    current = record_property(record, "Current Balance", PropertyKind.NUMBER)
    available = record_property(record, "Available Balance", PropertyKind.NUMBER)
    status = _enum(AccountStatus, record_property(record, "Status", PropertyKind.SELECT))

    if _missing(
        record,
        "account",
        account_name=bool(name),
        account_type=account_type is not None,
        current_balance=current is not None,
        available_balance=available is not None,
        status=status is not None,
    ):
        return None

    return AccountBalance(
        id=record["id"],
        account_name=name,
        account_type=account_type,
        current_balance=current,
        available_balance=available,
        status=status,
        institution=record_property(record, "Institution", PropertyKind.RICH_TEXT) or None,
        credit_limit=record_property(record, "Credit Limit", PropertyKind.NUMBER),
        interest_rate=record_property(record, "Interest Rate", PropertyKind.NUMBER),
        last_updated=record_property(record, "Last Updated", PropertyKind.DATE)
        or _timestamp_date(record, "last_edited_time"),
    )


def parse_all(records: Iterable[Record], parser: Callable[[Record], Optional[T]]) -> List[T]:
    """Parse a batch, dropping records that fail to parse"""
    parsed = [parser(record) for record in records]
    return [entity for entity in parsed if entity is not None]
