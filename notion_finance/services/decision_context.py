"""Assemble the decision context for one spending request"""

import asyncio
import logging
from typing import List

from notion_finance.domain import aggregation
from notion_finance.domain.exceptions import InputValidationError
from notion_finance.domain.models import DecisionContext, SpendingRequest
from notion_finance.domain.scoring import build_decision_context, rank_comparisons
from notion_finance.services.financial import FinancialDataService
from notion_finance.services.spending import SpendingRequestService
from notion_finance.utils.async_utils import with_fallback
from notion_finance.utils.date_utils import month_bounds

logger = logging.getLogger(__name__)

CONTEXT_DAYS = 30


class DecisionContextService:
    def __init__(self, spending: SpendingRequestService, financial: FinancialDataService):
        self.spending = spending
        self.financial = financial

    async def get_relevant_comparisons(
        self, request: SpendingRequest, max_results: int = 10, day_range: int = 90
    ) -> List[SpendingRequest]:
        """Most similar decided requests in the same category over the last ``day_range`` days"""
        if not 1 <= max_results <= 50:
            raise InputValidationError("max_results must be between 1 and 50", details={"max_results": max_results})
        recent = await self.spending.get_recent_spending(day_range)
        comparisons = rank_comparisons(request, recent, max_results)
        logger.info(
            "Found relevant comparisons",
            extra={"spending_request_id": request.id, "candidates": len(recent), "matches": len(comparisons)},
        )
        return comparisons

    async def build_decision_context(
        self, request_id: str, include_comparisons: bool = True, max_comparisons: int = 5
    ) -> DecisionContext:
        """
        Build the full decision context for ``request_id``.

        The request itself must load; every other source (spending history,
        goals, debts, comparisons) degrades to empty when its fetch fails.

        Raises:
            InputValidationError: max_comparisons outside 1-20
            NotFoundError: The request does not exist
        """
        if not 1 <= max_comparisons <= 20:
            raise InputValidationError(
                "max_comparisons must be between 1 and 20", details={"max_comparisons": max_comparisons}
            )

        request = await self.spending.get_request(request_id)
        today = self.spending.today()
        prior_start, prior_end = aggregation.prior_window(today, CONTEXT_DAYS)
        history_start = min(aggregation.spending_window_start(today, CONTEXT_DAYS), prior_start)

        comparisons_fetch = (
            self.get_relevant_comparisons(request, max_results=max_comparisons)
            if include_comparisons
            else asyncio.sleep(0, result=[])
        )
        history, goals, debts, comparisons = await asyncio.gather(
            with_fallback(self.spending.get_requests_between(history_start, today), [], "spending_history"),
            with_fallback(self.financial.get_active_goals(), [], "goals"),
            with_fallback(self.financial.get_all_debts(), [], "debts"),
            with_fallback(comparisons_fetch, [], "comparisons"),
        )

        spending_context = aggregation.build_spending_context(
            history, today, CONTEXT_DAYS, monthly_budget=self.financial.default_monthly_budget
        )
        budget = self.financial.budget_status_for(history)

        month_start, month_end = month_bounds(today)
        in_category = [r for r in history if r.category == request.category]
        category_this_month = aggregation.counted_total(
            r for r in in_category if month_start <= r.request_date <= month_end
        )
        prior_category = aggregation.counted_total(
            r for r in in_category if prior_start <= r.request_date <= prior_end
        )

        context = build_decision_context(
            request,
            spending_context,
            budget,
            goals,
            debts,
            comparisons,
            category_spending_this_month=category_this_month,
            prior_category_spending=prior_category,
        )
        logger.info(
            "Built decision context",
            extra={
                "spending_request_id": request.id,
                "health_score": context.financial_health.score,
                "should_approve": context.recommendation.should_approve,
                "confidence": context.recommendation.confidence,
            },
        )
        return context
