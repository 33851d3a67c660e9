"""Spending request queries, aggregates and the decision transition"""

import logging
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Union

from notion_finance.config import settings
from notion_finance.domain import aggregation
from notion_finance.domain.exceptions import ConflictError, InputValidationError, MalformedRecordError
from notion_finance.domain.models import (
    CategorySpending,
    FinancialContext,
    SpendingCategory,
    SpendingRequest,
    SpendingStatus,
    SpendingTrend,
    UrgencyLevel,
)
from notion_finance.domain.parsers import parse_all, parse_spending_request
from notion_finance.domain.properties import PropertyKind, encode
from notion_finance.domain.validation import DECISION_REASONING_MAX, DECISION_REASONING_MIN, review_spending_request
from notion_finance.infrastructure.clients.record_store import RecordStoreClient
from notion_finance.services.filters import FilterBuilder, SortBuilder
from notion_finance.utils.date_utils import month_bounds, shift_months

logger = logging.getLogger(__name__)

DECIDED_STATUSES = (SpendingStatus.APPROVED, SpendingStatus.DENIED)


def local_now() -> datetime:
    return datetime.now().astimezone()


class SpendingRequestService:
    """Reads and decides spending requests stored in the spending collection"""

    def __init__(
        self,
        client: RecordStoreClient,
        database_id: Optional[str] = None,
        minimum_amount: Optional[float] = None,
        now: Callable[[], datetime] = local_now,
    ):
        self.client = client
        self.database_id = database_id or settings.spending_database_id
        self.minimum_amount = minimum_amount if minimum_amount is not None else settings.minimum_spending_amount
        self._now = now

    def today(self) -> date:
        return self._now().date()

    async def _query(self, filter: Optional[dict], sorts: Optional[list] = None) -> List[SpendingRequest]:
        records = await self.client.query_records(self.database_id, filter, sorts)
        return parse_all(records, parse_spending_request)

    async def get_pending_requests(self, min_amount: Optional[float] = None) -> List[SpendingRequest]:
        """Pending requests at or above ``min_amount``, newest and largest first"""
        threshold = self.minimum_amount if min_amount is None else min_amount
        if threshold < 0:
            raise InputValidationError("Minimum amount cannot be negative", details={"min_amount": threshold})

        requests = await self._query(
            FilterBuilder()
            .select_equals("Status", SpendingStatus.PENDING)
            .number_gte("Amount", threshold)
            .build(),
            SortBuilder().descending("Request Date").descending("Amount").build(),
        )
        requests.sort(key=lambda r: (r.request_date, r.amount), reverse=True)
        logger.info("Fetched pending requests", extra={"count": len(requests), "min_amount": threshold})
        return requests

    async def get_recent_spending(self, days: int = 30) -> List[SpendingRequest]:
        if not 1 <= days <= 365:
            raise InputValidationError("Days must be between 1 and 365", details={"days": days})
        since = self.today() - timedelta(days=days)
        requests = await self._query(
            FilterBuilder().date_on_or_after("Request Date", since).build(),
            SortBuilder().descending("Request Date").build(),
        )
        requests.sort(key=lambda r: r.request_date, reverse=True)
        return requests

    async def get_requests_between(self, start: date, end: date) -> List[SpendingRequest]:
        """Requests of every status dated within ``[start, end]``"""
        if start > end:
            raise InputValidationError(
                "Start date must not be after end date", details={"start": start.isoformat(), "end": end.isoformat()}
            )
        return await self._query(FilterBuilder().date_range("Request Date", start, end).build())

    async def get_request(self, request_id: str, use_cache: bool = True) -> SpendingRequest:
        """
        Raises:
            NotFoundError: No such record in the store
            MalformedRecordError: The record lacks required spending fields
        """
        if not request_id or not request_id.strip():
            raise InputValidationError("Request id is required")
        record = await self.client.get_record(request_id, use_cache=use_cache)
        request = parse_spending_request(record)
        if request is None:
            raise MalformedRecordError(
                f"Spending request {request_id} is missing required fields", details={"request_id": request_id}
            )
        return request

    async def update_decision(
        self, request_id: str, decision: Union[SpendingStatus, str], reasoning: str
    ) -> None:
        """
        Move a pending request to approved or denied.

        Status, reasoning and decision timestamp go to the store in a single
        update call.

        Raises:
            InputValidationError: Decision or reasoning is invalid
            ConflictError: The request has already been decided
        """
        try:
            status = SpendingStatus(decision)
        except ValueError:
            status = None
        if status not in DECIDED_STATUSES:
            raise InputValidationError(
                "Decision must be 'approved' or 'denied'", details={"decision": str(decision)}
            )

        reasoning = (reasoning or "").strip()
        if not DECISION_REASONING_MIN <= len(reasoning) <= DECISION_REASONING_MAX:
            raise InputValidationError(
                f"Reasoning must be between {DECISION_REASONING_MIN} and {DECISION_REASONING_MAX} characters",
                details={"length": len(reasoning)},
            )

        request = await self.get_request(request_id, use_cache=False)
        if not request.is_pending:
            raise ConflictError(
                f"Spending request {request_id} has already been decided",
                details={"request_id": request_id, "current_status": request.status.value},
            )

        await self.client.update_record(
            request_id,
            {
                "Status": encode(status, PropertyKind.SELECT),
                "Reasoning": encode(reasoning, PropertyKind.RICH_TEXT),
                "Decision Date": encode(self._now(), PropertyKind.DATE),
            },
        )
        logger.info(
            "Spending request decided",
            extra={"spending_request_id": request_id, "decision": status.value, "amount": request.amount},
        )

    async def get_spending_by_category(self, start: date, end: date) -> List[CategorySpending]:
        return aggregation.spending_by_category(await self.get_requests_between(start, end))

    async def build_spending_context(self, days: int = 30) -> FinancialContext:
        """Spending aggregates for the last ``days`` days plus this month and ISO week"""
        if not 1 <= days <= 365:
            raise InputValidationError("Days must be between 1 and 365", details={"days": days})
        today = self.today()
        requests = await self.get_requests_between(aggregation.spending_window_start(today, days), today)
        context = aggregation.build_spending_context(requests, today, days)
        logger.info(
            "Built spending context",
            extra={
                "days": days,
                "recent_requests": len(context.recent_spending),
                "monthly_total": context.monthly_total,
                "weekly_total": context.weekly_total,
            },
        )
        return context

    async def calculate_spending_trends(self, months: int = 6) -> List[SpendingTrend]:
        """Per-month totals for the last ``months`` calendar months, most recent first"""
        if not 1 <= months <= 24:
            raise InputValidationError("Months must be between 1 and 24", details={"months": months})
        today = self.today()
        first_month = shift_months(today, -(months - 1))
        requests = await self.get_requests_between(first_month, month_bounds(today)[1])
        return [aggregation.monthly_trend(requests, shift_months(today, -offset)) for offset in range(months)]

    async def create_request(
        self,
        title: str,
        amount: float,
        category: SpendingCategory,
        urgency: UrgencyLevel,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
        request_date: Optional[date] = None,
    ) -> SpendingRequest:
        """Store a new pending request after business-rule review"""
        review = review_spending_request(title, amount, category, urgency, description)
        if not review.is_valid:
            raise InputValidationError(
                "Spending request failed validation", details={"errors": review.errors, "warnings": review.warnings}
            )
        if review.warnings:
            logger.info("Spending request accepted with warnings", extra={"warnings": review.warnings})

        properties = {
            "Title": encode(title.strip(), PropertyKind.TITLE),
            "Amount": encode(amount, PropertyKind.NUMBER),
            "Category": encode(category, PropertyKind.SELECT),
            "Urgency": encode(urgency, PropertyKind.SELECT),
            "Status": encode(SpendingStatus.PENDING, PropertyKind.SELECT),
            "Request Date": encode(request_date or self.today(), PropertyKind.DATE),
        }
        if description:
            properties["Description"] = encode(description, PropertyKind.RICH_TEXT)
        if tags:
            properties["Tags"] = encode(tags, PropertyKind.MULTI_SELECT)

        record = await self.client.create_record(self.database_id, properties)
        created = parse_spending_request(record)
        if created is None:
            raise MalformedRecordError("Store returned an incomplete spending request", details={"id": record.get("id")})
        return created
