"""Spending request endpoints: listing, decisions and decision support"""

import time
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Request

from notion_finance.api.dependencies import get_finance_service, get_request_id
from notion_finance.api.v1.schemas import (
    CategorySpendingSchema,
    CreateSpendingRequest,
    DecisionContextSchema,
    DecisionRequest,
    DecisionResponse,
    FinancialContextSchema,
    SpendingRequestList,
    SpendingRequestSchema,
    SpendingTrendSchema,
)
from notion_finance.infrastructure.observability.logging import log_decision_recorded, log_recommendation
from notion_finance.infrastructure.observability.metrics import record_recommendation
from notion_finance.services.finance import FinanceService

router = APIRouter(prefix="/spending")


def _request_list(requests) -> SpendingRequestList:
    return SpendingRequestList(
        requests=[SpendingRequestSchema.model_validate(r) for r in requests], count=len(requests)
    )


@router.get("/pending", response_model=SpendingRequestList)
async def list_pending(
    min_amount: Optional[float] = Query(None, ge=0),
    service: FinanceService = Depends(get_finance_service),
):
    return _request_list(await service.spending.get_pending_requests(min_amount))


@router.get("/recent/{days}", response_model=SpendingRequestList)
async def list_recent(
    days: int = Path(..., ge=1, le=365),
    service: FinanceService = Depends(get_finance_service),
):
    return _request_list(await service.spending.get_recent_spending(days))


@router.get("/context", response_model=FinancialContextSchema)
async def spending_context(
    days: int = Query(30, ge=1, le=365),
    service: FinanceService = Depends(get_finance_service),
):
    return FinancialContextSchema.model_validate(await service.spending.build_spending_context(days))


@router.get("/trends", response_model=List[SpendingTrendSchema])
async def spending_trends(
    months: int = Query(6, ge=1, le=24),
    service: FinanceService = Depends(get_finance_service),
):
    trends = await service.spending.calculate_spending_trends(months)
    return [SpendingTrendSchema.model_validate(t) for t in trends]


@router.get("/by-category", response_model=List[CategorySpendingSchema])
async def spending_by_category(
    start: date,
    end: date,
    service: FinanceService = Depends(get_finance_service),
):
    patterns = await service.spending.get_spending_by_category(start, end)
    return [CategorySpendingSchema.model_validate(p) for p in patterns]


@router.post("", response_model=SpendingRequestSchema, status_code=201)
async def create_spending_request(
    body: CreateSpendingRequest,
    service: FinanceService = Depends(get_finance_service),
):
    created = await service.spending.create_request(
        title=body.title,
        amount=body.amount,
        category=body.category,
        urgency=body.urgency,
        description=body.description,
        tags=body.tags,
        request_date=body.request_date,
    )
    return SpendingRequestSchema.model_validate(created)


@router.post("/{request_id}/decision", response_model=DecisionResponse)
async def decide(
    request_id: str,
    body: DecisionRequest,
    request: Request,
    service: FinanceService = Depends(get_finance_service),
):
    """Approve or deny a pending request. Deciding twice returns 409."""
    start_time = time.time()
    await service.spending.update_decision(request_id, body.decision, body.reasoning)
    log_decision_recorded(get_request_id(request), request_id, body.decision, (time.time() - start_time) * 1000)
    return DecisionResponse(request_id=request_id, decision=body.decision)


@router.get("/{request_id}/decision-context", response_model=DecisionContextSchema)
async def decision_context(
    request_id: str,
    request: Request,
    include_comparisons: bool = True,
    max_comparisons: int = Query(5, ge=1, le=20),
    service: FinanceService = Depends(get_finance_service),
):
    """
    Build the decision context and recommendation for one spending request.

    Flow:
    1. Load the request (404 if absent)
    2. Fetch history, goals, debts and comparisons concurrently
    3. Score financial health and synthesize the recommendation
    """
    start_time = time.time()
    context = await service.decisions.build_decision_context(
        request_id, include_comparisons=include_comparisons, max_comparisons=max_comparisons
    )

    recommendation = context.recommendation
    record_recommendation(recommendation.should_approve, recommendation.confidence)
    log_recommendation(
        get_request_id(request),
        request_id,
        recommendation.should_approve,
        recommendation.confidence,
        (time.time() - start_time) * 1000,
    )
    return DecisionContextSchema.model_validate(context)
