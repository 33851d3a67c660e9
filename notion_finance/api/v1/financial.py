"""Goals, debts, accounts, budget and snapshot endpoints"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from notion_finance.api.dependencies import get_finance_service
from notion_finance.api.v1.schemas import (
    AccountBalanceSchema,
    BudgetStatusSchema,
    DebtSchema,
    FinancialGoalSchema,
    FinancialSnapshotSchema,
)
from notion_finance.services.finance import FinanceService

router = APIRouter(prefix="/financial")


@router.get("/goals", response_model=List[FinancialGoalSchema])
async def list_goals(service: FinanceService = Depends(get_finance_service)):
    return [FinancialGoalSchema.model_validate(g) for g in await service.financial.get_active_goals()]


@router.get("/debts", response_model=List[DebtSchema])
async def list_debts(service: FinanceService = Depends(get_finance_service)):
    return [DebtSchema.model_validate(d) for d in await service.financial.get_all_debts()]


@router.get("/accounts", response_model=List[AccountBalanceSchema])
async def list_accounts(service: FinanceService = Depends(get_finance_service)):
    return [AccountBalanceSchema.model_validate(a) for a in await service.financial.get_account_balances()]


@router.get("/budget", response_model=BudgetStatusSchema)
async def budget_status(
    budget: Optional[float] = Query(None, gt=0),
    month: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}$"),
    service: FinanceService = Depends(get_finance_service),
):
    return BudgetStatusSchema.model_validate(await service.financial.get_monthly_budget_status(budget, month))


@router.get("/snapshot", response_model=FinancialSnapshotSchema)
async def snapshot(service: FinanceService = Depends(get_finance_service)):
    return FinancialSnapshotSchema.model_validate(await service.financial.build_financial_snapshot())
