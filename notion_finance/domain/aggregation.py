"""Spending aggregates, budget status and balance-sheet figures

Pure functions over parsed entities. Callers supply ``today`` so results are
deterministic for any point in time.
"""

import math
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from notion_finance.domain.models import (
    AccountBalance,
    AccountType,
    BudgetHealth,
    BudgetStatus,
    CategorySpending,
    CategoryTrend,
    DebtInfo,
    FinancialContext,
    SpendingCategory,
    SpendingRequest,
    SpendingStatus,
    SpendingTrend,
    UrgencyLevel,
)
from notion_finance.utils.date_utils import days_in_month, month_bounds, week_start

COUNTED_STATUSES = frozenset({SpendingStatus.PENDING, SpendingStatus.APPROVED})
URGENT_LEVELS = frozenset({UrgencyLevel.HIGH, UrgencyLevel.CRITICAL})

ON_TRACK_TOLERANCE = 1.05
TREND_BAND = 0.1


def _counted(requests: Iterable[SpendingRequest]) -> List[SpendingRequest]:
    return [r for r in requests if r.status in COUNTED_STATUSES]


def _between(requests: Iterable[SpendingRequest], start: date, end: date) -> List[SpendingRequest]:
    return [r for r in requests if start <= r.request_date <= end]


def category_breakdown(requests: Iterable[SpendingRequest]) -> Dict[SpendingCategory, float]:
    """Pending plus approved spend per category, every category present"""
    breakdown = {category: 0.0 for category in SpendingCategory}
    for request in _counted(requests):
        breakdown[request.category] += request.amount
    return breakdown


def counted_total(requests: Iterable[SpendingRequest]) -> float:
    return sum(r.amount for r in _counted(requests))


def approved_total(requests: Iterable[SpendingRequest]) -> float:
    return sum(r.amount for r in requests if r.status is SpendingStatus.APPROVED)


def spending_window_start(today: date, days: int) -> date:
    """Earliest date a spending context for ``days`` needs: lookback, month and ISO week"""
    return min(today - timedelta(days=days), month_bounds(today)[0], week_start(today))


def prior_window(today: date, days: int) -> Tuple[date, date]:
    """Inclusive window of the same length as ``[today - days, today]``, ending the day before it"""
    end = today - timedelta(days=days + 1)
    return end - timedelta(days=days), end


def build_spending_context(
    requests: Sequence[SpendingRequest],
    today: date,
    days: int,
    available_funds: Optional[float] = None,
    monthly_budget: Optional[float] = None,
) -> FinancialContext:
    """
    Summarise spending around ``today``.

    The lookback window ``[today - days, today]`` drives the recent list,
    averages, urgent count and category breakdown. Monthly and weekly totals
    and the monthly breakdown always cover the whole calendar month and ISO
    week containing ``today``, so ``requests`` must reach back to
    ``spending_window_start``.
    """
    recent = sorted(
        _between(requests, today - timedelta(days=days), today),
        key=lambda r: (r.request_date, r.amount),
        reverse=True,
    )
    month_start, month_end = month_bounds(today)
    current_week = week_start(today)
    this_month = _between(requests, month_start, month_end)

    return FinancialContext(
        recent_spending=recent,
        monthly_total=counted_total(this_month),
        weekly_total=counted_total(_between(requests, current_week, current_week + timedelta(days=6))),
        average_request_amount=sum(r.amount for r in recent) / len(recent) if recent else 0.0,
        category_breakdown=category_breakdown(recent),
        urgent_requests_count=sum(1 for r in recent if r.urgency in URGENT_LEVELS),
        available_funds=available_funds,
        monthly_budget=monthly_budget,
        monthly_breakdown=category_breakdown(this_month),
    )


def classify_budget_health(percentage_used: float) -> BudgetHealth:
    if percentage_used < 50:
        return BudgetHealth.EXCELLENT
    if percentage_used < 75:
        return BudgetHealth.GOOD
    if percentage_used < 90:
        return BudgetHealth.WARNING
    return BudgetHealth.CRITICAL


_HEALTH_RECOMMENDATIONS = {
    BudgetHealth.EXCELLENT: "Budget is well under control",
    BudgetHealth.GOOD: "Budget tracking is healthy",
    BudgetHealth.WARNING: "Monitor spending closely for rest of month",
    BudgetHealth.CRITICAL: "Budget limit nearly reached - restrict non-essential spending",
}


def build_budget_status(monthly_budget: float, current_spending: float, month: date, today: date) -> BudgetStatus:
    """
    Budget consumption for the month containing ``month`` as seen on ``today``.

    Days elapsed counts today, so the first of the month is day 1. For a
    month that has not started the rate is zero and the projection equals
    the spending so far; a past month counts every day as elapsed.
    """
    month_start, month_end = month_bounds(month)
    total_days = days_in_month(month_start)
    if today < month_start:
        elapsed = 0
    elif today > month_end:
        elapsed = total_days
    else:
        elapsed = today.day

    if monthly_budget > 0:
        percentage_used = current_spending / monthly_budget * 100
    else:
        percentage_used = 100.0 if current_spending > 0 else 0.0

    daily_average = current_spending / elapsed if elapsed else 0.0
    projected = daily_average * total_days if elapsed else current_spending
    on_track = projected <= monthly_budget * ON_TRACK_TOLERANCE
    health = classify_budget_health(percentage_used)

    recommendations = [_HEALTH_RECOMMENDATIONS[health]]
    if not on_track:
        recommendations.append("Projected spending exceeds monthly budget - slow discretionary spending")

    return BudgetStatus(
        monthly_budget=monthly_budget,
        current_spending=current_spending,
        remaining_budget=monthly_budget - current_spending,
        percentage_used=percentage_used,
        days_into_month=elapsed,
        days_remaining_in_month=total_days - elapsed,
        daily_average_spent=daily_average,
        projected_monthly_spending=projected,
        on_track=on_track,
        budget_health=health,
        recommendations=recommendations,
    )


def spending_by_category(requests: Iterable[SpendingRequest]) -> List[CategorySpending]:
    """Per-category totals for every category with activity, largest first"""
    grouped: Dict[SpendingCategory, List[SpendingRequest]] = {}
    for request in requests:
        grouped.setdefault(request.category, []).append(request)

    patterns = []
    for category, items in grouped.items():
        total = sum(r.amount for r in items)
        approved = sum(1 for r in items if r.status is SpendingStatus.APPROVED)
        patterns.append(
            CategorySpending(
                category=category,
                total_amount=total,
                request_count=len(items),
                average_amount=total / len(items),
                approval_rate=approved / len(items) * 100,
            )
        )
    return sorted(patterns, key=lambda p: p.total_amount, reverse=True)


def monthly_trend(requests: Iterable[SpendingRequest], month: date) -> SpendingTrend:
    """Totals and top three categories for the calendar month containing ``month``"""
    month_start, month_end = month_bounds(month)
    patterns = spending_by_category(_between(requests, month_start, month_end))
    total = sum(p.total_amount for p in patterns)
    count = sum(p.request_count for p in patterns)
    return SpendingTrend(
        period=month_start.strftime("%Y-%m"),
        total_spending=total,
        request_count=count,
        average_amount=total / count if count else 0.0,
        top_categories=patterns[:3],
    )


def detect_category_trend(current: float, prior: float) -> CategoryTrend:
    """Compare two period totals with a +/-10% dead band"""
    if current > prior * (1 + TREND_BAND):
        return CategoryTrend.INCREASING
    if current < prior * (1 - TREND_BAND):
        return CategoryTrend.DECREASING
    return CategoryTrend.STABLE


# Balance sheet


def net_worth(accounts: Iterable[AccountBalance]) -> float:
    return sum(-a.current_balance if a.is_liability else a.current_balance for a in accounts)


def total_assets(accounts: Iterable[AccountBalance]) -> float:
    return sum(a.current_balance for a in accounts if not a.is_liability)


def total_liabilities(accounts: Iterable[AccountBalance]) -> float:
    return sum(a.current_balance for a in accounts if a.is_liability)


def available_funds(accounts: Iterable[AccountBalance], monthly_budget: float, emergency_fund_months: int) -> float:
    """Liquid available balances minus the emergency reserve, never negative"""
    liquid = sum(a.available_balance for a in accounts if a.is_liquid)
    return max(liquid - emergency_fund_months * monthly_budget, 0.0)


def credit_utilization(account: AccountBalance) -> float:
    """Percent of a credit card's limit in use, capped at 100"""
    if account.account_type is not AccountType.CREDIT_CARD or not account.credit_limit:
        return 0.0
    return min(account.current_balance / account.credit_limit * 100, 100.0)


# Debt


def total_debt(debts: Iterable[DebtInfo]) -> float:
    return sum(d.remaining_amount for d in debts)


def monthly_debt_payments(debts: Iterable[DebtInfo]) -> float:
    return sum(d.minimum_payment for d in debts)


def debt_progress(debt: DebtInfo) -> float:
    """Percent of the original balance repaid"""
    if debt.total_amount <= 0:
        return 100.0
    return max(0.0, min((debt.total_amount - debt.remaining_amount) / debt.total_amount * 100, 100.0))


def months_to_pay_off(remaining: float, monthly_payment: float, annual_rate: float) -> Optional[int]:
    """
    Months of fixed payments needed to clear ``remaining``.

    Returns None when the payment never covers the monthly interest.
    """
    if remaining <= 0 or monthly_payment <= 0:
        return 0
    monthly_rate = annual_rate / 100 / 12
    if monthly_rate == 0:
        return math.ceil(remaining / monthly_payment)
    if remaining * monthly_rate >= monthly_payment:
        return None
    months = -math.log(1 - remaining * monthly_rate / monthly_payment) / math.log(1 + monthly_rate)
    return math.ceil(months)


def total_interest(remaining: float, monthly_payment: float, annual_rate: float) -> Optional[float]:
    months = months_to_pay_off(remaining, monthly_payment, annual_rate)
    if months is None:
        return None
    return max(monthly_payment * months - remaining, 0.0)
