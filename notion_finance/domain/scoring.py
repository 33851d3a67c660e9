"""Decision scoring engine - core business logic for spending recommendations"""

from typing import Iterable, List, Sequence

from notion_finance.domain.aggregation import detect_category_trend, monthly_debt_payments, total_debt
from notion_finance.domain.models import (
    BudgetStatus,
    DebtInfo,
    DebtSituation,
    DecisionContext,
    FinancialContext,
    FinancialGoal,
    FinancialHealth,
    GoalCategory,
    GoalsImpact,
    GoalStatus,
    Recommendation,
    SpendingCategory,
    SpendingPatterns,
    SpendingRequest,
    UrgencyLevel,
)

SIMILARITY_THRESHOLD = 0.3
RECENCY_HORIZON_DAYS = 90

BASE_CONFIDENCE = 80
BUDGET_BREACH_CONFIDENCE = 90

_HIGH_URGENCY = (UrgencyLevel.HIGH, UrgencyLevel.CRITICAL)
_ESSENTIAL_CATEGORIES = (SpendingCategory.EMERGENCY, SpendingCategory.BILLS)


def _clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def similarity(a: SpendingRequest, b: SpendingRequest) -> float:
    """
    Similarity of two spending requests in [0, 1].

    Weights:
    - 40%: same category (a category mismatch scores 0 outright)
    - 30%: amount closeness, 1 - |diff| / mean amount
    - 20%: urgency closeness on the 4-point scale, 1 - distance / 3
    - 10%: recency, 1 - days apart / 90
    """
    if a.category != b.category:
        return 0.0

    mean_amount = (a.amount + b.amount) / 2
    amount_score = max(0.0, 1 - abs(a.amount - b.amount) / mean_amount) if mean_amount > 0 else 0.0
    urgency_score = max(0.0, 1 - abs(a.urgency.rank - b.urgency.rank) / 3)
    days_apart = abs((a.request_date - b.request_date).days)
    recency_score = max(0.0, 1 - days_apart / RECENCY_HORIZON_DAYS)

    score = 0.4 + 0.3 * amount_score + 0.2 * urgency_score + 0.1 * recency_score
    return min(score, 1.0)


def rank_comparisons(
    request: SpendingRequest, candidates: Iterable[SpendingRequest], max_results: int
) -> List[SpendingRequest]:
    """Decided requests in the same category, most similar first, below-threshold dropped"""
    scored = [
        (similarity(request, other), other)
        for other in candidates
        if other.id != request.id and other.category == request.category and not other.is_pending
    ]
    kept = [(score, other) for score, other in scored if score >= SIMILARITY_THRESHOLD]
    kept.sort(key=lambda item: item[0], reverse=True)
    return [other for _, other in kept[:max_results]]


def conflicts_with_goal(request: SpendingRequest, goal: FinancialGoal) -> bool:
    """Discretionary spend that works directly against a savings or payoff goal"""
    if goal.category is GoalCategory.EMERGENCY_FUND:
        return request.category is SpendingCategory.ENTERTAINMENT and request.amount > 100
    if goal.category is GoalCategory.DEBT_PAYOFF:
        return (
            request.category in (SpendingCategory.ENTERTAINMENT, SpendingCategory.SHOPPING)
            and request.amount > 200
        )
    return False


def impacts_goal(request: SpendingRequest, goal: FinancialGoal, budget: BudgetStatus) -> bool:
    """Approval would leave less budget than one month's share of the goal"""
    return budget.remaining_budget - request.amount < goal.target_amount / 12


def assess_financial_health(
    context: FinancialContext,
    budget: BudgetStatus,
    goals: Sequence[FinancialGoal],
    debts: Sequence[DebtInfo],
) -> FinancialHealth:
    """
    Score overall financial health from 100 down with additive penalties.

    Every adjustment leaves an entry in ``factors`` (positive) or
    ``concerns`` (negative) so the score can be explained line by line.
    """
    score = 100
    factors: List[str] = []
    concerns: List[str] = []

    # Budget utilization
    if budget.percentage_used > 90:
        score -= 20
        concerns.append("Monthly budget is nearly exhausted")
    elif budget.percentage_used > 75:
        score -= 10
        concerns.append("High budget utilization")
    else:
        factors.append("Budget utilization under control")

    if not budget.on_track:
        score -= 15
        concerns.append("Projected spending exceeds monthly budget")

    # Spending patterns, shares of this calendar month
    emergency = context.monthly_breakdown.get(SpendingCategory.EMERGENCY, 0.0)
    if emergency > context.monthly_total * 0.3:
        score -= 15
        concerns.append("High emergency spending indicates financial stress")

    if context.urgent_requests_count > 5:
        score -= 10
        concerns.append("Frequent urgent requests may indicate poor planning")
    elif context.urgent_requests_count == 0:
        factors.append("No urgent requests indicates good financial planning")

    largest_category = max(context.monthly_breakdown.values(), default=0.0)
    if largest_category > context.monthly_total * 0.6:
        score -= 10
        concerns.append("Spending heavily concentrated in one category")
    else:
        factors.append("Spending well distributed across categories")

    # Debt
    if total_debt(debts) == 0:
        factors.append("Debt-free financial position")
    elif monthly_debt_payments(debts) > budget.monthly_budget * 0.3:
        score -= 20
        concerns.append("High debt-to-budget ratio")

    # Goals
    active = sum(1 for g in goals if g.status is GoalStatus.ACTIVE)
    if active:
        factors.append(f"Actively working on {active} financial goals")
    else:
        score -= 10
        concerns.append("No active financial goals set")

    return FinancialHealth(score=int(_clamp(score)), factors=factors, concerns=concerns)


def recommend(
    request: SpendingRequest,
    budget: BudgetStatus,
    health: FinancialHealth,
    conflicting_goals: Sequence[FinancialGoal],
    high_priority_debts: Sequence[DebtInfo],
) -> Recommendation:
    """
    Synthesize an approve/deny recommendation with a bounded confidence.

    Rules, applied in order starting from approve at 80:
    - Amount above remaining budget: deny, confidence pinned at 90
    - Amount above half the remaining budget: -15, monitor condition
    - High/critical urgency: +10 for emergencies, -10 otherwise
    - Health score below 50: -20; above 80: +10
    - Conflicting active goals: -15, reconsider condition
    - High-priority debts outside emergency/bills: -10
    - Entertainment over $200: -10, justification condition

    Once a budget breach pins the outcome, later rules still add their
    reasoning and conditions but leave confidence and the denial untouched.
    """
    reasoning: List[str] = []
    conditions: List[str] = []
    alternatives: List[str] = []
    should_approve = True
    confidence = BASE_CONFIDENCE
    pinned = False

    def adjust(delta: int) -> None:
        nonlocal confidence
        if not pinned:
            confidence += delta

    # Budget impact
    if request.amount > budget.remaining_budget:
        should_approve = False
        confidence = BUDGET_BREACH_CONFIDENCE
        pinned = True
        reasoning.append(
            f"Request amount (${request.amount:,.2f}) exceeds remaining budget (${budget.remaining_budget:,.2f})"
        )
        alternatives.append("Consider deferring to next month or reducing amount")
    elif request.amount > budget.remaining_budget * 0.5:
        adjust(-15)
        reasoning.append("Request uses a significant portion of remaining budget")
        conditions.append("Monitor remaining budget carefully after approval")

    # Urgency and category congruence
    if request.urgency in _HIGH_URGENCY:
        if request.category is SpendingCategory.EMERGENCY:
            adjust(10)
            reasoning.append("High urgency emergency request has priority")
        else:
            adjust(-10)
            reasoning.append(f"High urgency for {request.category.value} category - verify necessity")

    # Financial health
    if health.score < 50:
        adjust(-20)
        reasoning.append("Current financial health score is concerning")
    elif health.score > 80:
        adjust(10)
        reasoning.append("Strong financial health supports discretionary spending")

    # Goals
    if conflicting_goals:
        adjust(-15)
        reasoning.append(f"Request may conflict with {len(conflicting_goals)} active financial goals")
        conditions.append("Consider impact on financial goals before approval")

    # Debt
    if high_priority_debts and request.category not in _ESSENTIAL_CATEGORIES:
        adjust(-10)
        reasoning.append("High priority debts exist - prioritize debt payments")

    # Category-specific
    if request.category is SpendingCategory.ENTERTAINMENT and request.amount > 200:
        adjust(-10)
        reasoning.append("Large entertainment expense requires justification")
        conditions.append("Ensure this is a planned expense, not an impulse purchase")

    if not reasoning:
        reasoning.append("Request fits within budget with no risk signals")

    return Recommendation(
        should_approve=should_approve,
        confidence=int(_clamp(confidence)),
        reasoning=reasoning,
        conditions=conditions,
        alternatives=alternatives,
    )


def build_decision_context(
    request: SpendingRequest,
    spending: FinancialContext,
    budget: BudgetStatus,
    goals: Sequence[FinancialGoal],
    debts: Sequence[DebtInfo],
    comparisons: Sequence[SpendingRequest],
    category_spending_this_month: float,
    prior_category_spending: float,
) -> DecisionContext:
    """
    Main entry point: combine every signal for one request into a DecisionContext.

    The category trend compares the lookback-window spend in the request's
    category against the equivalent prior window.
    """
    same_category = [r for r in spending.recent_spending if r.category == request.category]
    average_category_amount = sum(r.amount for r in same_category) / len(same_category) if same_category else 0.0

    active_goals = [g for g in goals if g.status is GoalStatus.ACTIVE]
    conflicting = [g for g in active_goals if conflicts_with_goal(request, g)]
    impacted = [g for g in active_goals if impacts_goal(request, g, budget)]
    high_priority = [d for d in debts if d.is_high_priority]

    health = assess_financial_health(spending, budget, active_goals, debts)

    return DecisionContext(
        request=request,
        financial_health=health,
        budget_context=budget,
        spending_patterns=SpendingPatterns(
            recent_similar=list(comparisons),
            category_trend=detect_category_trend(
                spending.category_breakdown.get(request.category, 0.0), prior_category_spending
            ),
            category_spending_this_month=category_spending_this_month,
            average_category_amount=average_category_amount,
        ),
        financial_goals=GoalsImpact(
            active_goals=active_goals,
            conflicting_goals=conflicting,
            impacted_goals=impacted,
        ),
        debt_situation=DebtSituation(
            total_debt=total_debt(debts),
            monthly_debt_payments=monthly_debt_payments(debts),
            high_priority_debts=high_priority,
        ),
        recommendation=recommend(request, budget, health, conflicting, high_priority),
    )
