"""Goals, debts, accounts and budget status"""

import asyncio
import logging
from datetime import date
from typing import Iterable, List, Optional

from notion_finance.config import settings
from notion_finance.domain import aggregation
from notion_finance.domain.exceptions import InputValidationError
from notion_finance.domain.models import (
    AccountBalance,
    AccountStatus,
    BudgetStatus,
    DebtInfo,
    DebtStatus,
    FinancialGoal,
    FinancialSnapshot,
    GoalStatus,
    SpendingRequest,
)
from notion_finance.domain.parsers import parse_account_balance, parse_all, parse_debt_info, parse_financial_goal
from notion_finance.infrastructure.clients.record_store import RecordStoreClient
from notion_finance.services.filters import FilterBuilder, SortBuilder
from notion_finance.services.spending import SpendingRequestService
from notion_finance.utils.async_utils import with_fallback
from notion_finance.utils.date_utils import month_bounds, parse_month

logger = logging.getLogger(__name__)


class FinancialDataService:
    """Reads the optional goals, debts and accounts collections.

    An unconfigured collection always yields an empty list.
    """

    def __init__(
        self,
        client: RecordStoreClient,
        spending: SpendingRequestService,
        goals_database_id: Optional[str] = None,
        debts_database_id: Optional[str] = None,
        accounts_database_id: Optional[str] = None,
        default_monthly_budget: Optional[float] = None,
        emergency_fund_months: Optional[int] = None,
    ):
        self.client = client
        self.spending = spending
        self.goals_database_id = goals_database_id if goals_database_id is not None else settings.goals_database_id
        self.debts_database_id = debts_database_id if debts_database_id is not None else settings.debts_database_id
        self.accounts_database_id = (
            accounts_database_id if accounts_database_id is not None else settings.accounts_database_id
        )
        self.default_monthly_budget = (
            default_monthly_budget if default_monthly_budget is not None else settings.default_monthly_budget
        )
        self.emergency_fund_months = (
            emergency_fund_months if emergency_fund_months is not None else settings.emergency_fund_months
        )

    async def get_active_goals(self) -> List[FinancialGoal]:
        if not self.goals_database_id:
            return []
        records = await self.client.query_records(
            self.goals_database_id,
            FilterBuilder().select_equals("Status", GoalStatus.ACTIVE).build(),
            SortBuilder().ascending("Deadline").build(),
        )
        return [g for g in parse_all(records, parse_financial_goal) if g.status is GoalStatus.ACTIVE]

    async def get_all_debts(self) -> List[DebtInfo]:
        """Active debts with a balance still owed"""
        if not self.debts_database_id:
            return []
        records = await self.client.query_records(
            self.debts_database_id,
            FilterBuilder().select_equals("Status", DebtStatus.ACTIVE).number_gt("Remaining Amount", 0).build(),
            SortBuilder().ascending("Due Date").build(),
        )
        return [
            d for d in parse_all(records, parse_debt_info) if d.status is DebtStatus.ACTIVE and d.remaining_amount > 0
        ]

    async def get_account_balances(self) -> List[AccountBalance]:
        if not self.accounts_database_id:
            return []
        records = await self.client.query_records(
            self.accounts_database_id,
            FilterBuilder().select_equals("Status", AccountStatus.ACTIVE).build(),
        )
        return [a for a in parse_all(records, parse_account_balance) if a.status is AccountStatus.ACTIVE]

    async def calculate_available_funds(self) -> float:
        accounts = await self.get_account_balances()
        funds = aggregation.available_funds(accounts, self.default_monthly_budget, self.emergency_fund_months)
        logger.info("Calculated available funds", extra={"accounts": len(accounts), "available_funds": funds})
        return funds

    def budget_status_for(
        self,
        requests: Iterable[SpendingRequest],
        monthly_budget: Optional[float] = None,
        month: Optional[date] = None,
    ) -> BudgetStatus:
        """Budget status from already-fetched requests; spending counts approved requests in the month"""
        today = self.spending.today()
        month = month or today
        month_start, month_end = month_bounds(month)
        in_month = [r for r in requests if month_start <= r.request_date <= month_end]
        return aggregation.build_budget_status(
            monthly_budget or self.default_monthly_budget,
            aggregation.approved_total(in_month),
            month_start,
            today,
        )

    async def get_monthly_budget_status(
        self, monthly_budget: Optional[float] = None, month: Optional[str] = None
    ) -> BudgetStatus:
        """
        Budget consumption for ``month`` (``YYYY-MM``, default the current month).

        Raises:
            InputValidationError: Budget is not positive or month is malformed
        """
        if monthly_budget is not None and monthly_budget <= 0:
            raise InputValidationError("Monthly budget must be positive", details={"budget": monthly_budget})
        try:
            target = parse_month(month) if month else self.spending.today()
        except ValueError as e:
            raise InputValidationError(str(e), details={"month": month}) from e

        month_start, month_end = month_bounds(target)
        requests = await self.spending.get_requests_between(month_start, month_end)
        status = self.budget_status_for(requests, monthly_budget, month_start)
        logger.info(
            "Calculated budget status",
            extra={
                "month": month_start.strftime("%Y-%m"),
                "percentage_used": round(status.percentage_used, 2),
                "budget_health": status.budget_health.value,
                "on_track": status.on_track,
            },
        )
        return status

    async def build_financial_snapshot(self) -> FinancialSnapshot:
        """Goals, debts and accounts fetched concurrently; a failing source degrades to empty"""
        goals, debts, accounts = await asyncio.gather(
            with_fallback(self.get_active_goals(), [], "goals"),
            with_fallback(self.get_all_debts(), [], "debts"),
            with_fallback(self.get_account_balances(), [], "accounts"),
        )
        return FinancialSnapshot(
            goals=goals,
            debts=debts,
            accounts=accounts,
            net_worth=aggregation.net_worth(accounts),
            total_assets=aggregation.total_assets(accounts),
            total_liabilities=aggregation.total_liabilities(accounts),
            total_debt=aggregation.total_debt(debts),
            monthly_debt_payments=aggregation.monthly_debt_payments(debts),
            available_funds=aggregation.available_funds(
                accounts, self.default_monthly_budget, self.emergency_fund_months
            ),
        )
