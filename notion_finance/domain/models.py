"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional


def _normalize(value: str) -> str:
    return value.strip().lower().replace("-", "_").replace(" ", "_")


class LenientEnum(str, Enum):
    """String enum that also accepts case/spacing variants of its values.

    The store does not enforce select option spelling, so "money market",
    "Money_Market" and "money_market" all resolve to the same member.
    """

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, str):
            return None
        wanted = _normalize(value)
        for member in cls:
            if _normalize(member.value) == wanted or member.name.lower() == wanted:
                return member
        alias = _ALIASES.get((cls.__name__, wanted))
        if alias is not None:
            return cls(alias)
        return None


class SpendingCategory(LenientEnum):
    FOOD = "Food"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    BILLS = "Bills"
    EMERGENCY = "Emergency"
    OTHER = "Other"


class SpendingStatus(LenientEnum):
    PENDING = "Pending"
    APPROVED = "Approved"
    DENIED = "Denied"


class UrgencyLevel(LenientEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @property
    def rank(self) -> int:
        """Ordinal position on the 1-4 urgency scale"""
        return _URGENCY_RANK[self]


class GoalPriority(LenientEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class GoalCategory(LenientEnum):
    EMERGENCY_FUND = "emergency_fund"
    RETIREMENT = "retirement"
    VACATION = "vacation"
    HOME_PURCHASE = "home_purchase"
    DEBT_PAYOFF = "debt_payoff"
    EDUCATION = "education"
    INVESTMENT = "investment"
    MAJOR_PURCHASE = "major_purchase"
    OTHER = "other"


class GoalStatus(LenientEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class DebtPriority(LenientEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class DebtType(LenientEnum):
    CREDIT_CARD = "credit_card"
    STUDENT_LOAN = "student_loan"
    MORTGAGE = "mortgage"
    PERSONAL_LOAN = "personal_loan"
    AUTO_LOAN = "auto_loan"
    MEDICAL_DEBT = "medical_debt"
    OTHER = "other"


class DebtStatus(LenientEnum):
    ACTIVE = "active"
    PAID_OFF = "paid_off"
    IN_COLLECTIONS = "in_collections"
    DEFERRED = "deferred"


class AccountType(LenientEnum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT_CARD = "credit_card"
    INVESTMENT = "investment"
    RETIREMENT = "retirement"
    MONEY_MARKET = "money_market"
    CD = "cd"
    LOAN = "loan"
    OTHER = "other"


class AccountStatus(LenientEnum):
    ACTIVE = "active"
    CLOSED = "closed"
    FROZEN = "frozen"
    PENDING = "pending"


class BudgetHealth(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


class CategoryTrend(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


_URGENCY_RANK = {
    UrgencyLevel.LOW: 1,
    UrgencyLevel.MEDIUM: 2,
    UrgencyLevel.HIGH: 3,
    UrgencyLevel.CRITICAL: 4,
}

# (enum class name, normalized spelling) -> canonical value
_ALIASES = {
    ("UrgencyLevel", "urgent"): "Critical",
    ("DebtPriority", "critical"): "urgent",
    ("GoalPriority", "urgent"): "critical",
}

LIQUID_ACCOUNT_TYPES = frozenset({AccountType.CHECKING, AccountType.SAVINGS, AccountType.MONEY_MARKET})
LIABILITY_ACCOUNT_TYPES = frozenset({AccountType.CREDIT_CARD, AccountType.LOAN})


@dataclass(frozen=True)
class SpendingRequest:
    """Discretionary spending request awaiting or holding a decision"""

    id: str
    title: str
    amount: float
    category: SpendingCategory
    status: SpendingStatus
    request_date: date
    urgency: UrgencyLevel
    tags: List[str] = field(default_factory=list)
    description: Optional[str] = None
    decided_date: Optional[date] = None
    reasoning: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status is SpendingStatus.PENDING


@dataclass(frozen=True)
class FinancialGoal:
    """Savings or payoff target tracked in the goals collection"""

    id: str
    title: str
    target_amount: float
    current_amount: float
    priority: GoalPriority
    category: GoalCategory
    status: GoalStatus
    deadline: Optional[date] = None
    description: Optional[str] = None

    @property
    def progress(self) -> float:
        """Fraction of the target reached, clamped to [0, 1]"""
        if self.target_amount <= 0:
            return 0.0
        return max(0.0, min(self.current_amount / self.target_amount, 1.0))

    @property
    def remaining_amount(self) -> float:
        return max(self.target_amount - self.current_amount, 0.0)


@dataclass(frozen=True)
class DebtInfo:
    """Outstanding debt with its repayment terms"""

    id: str
    creditor: str
    total_amount: float
    remaining_amount: float
    minimum_payment: float
    interest_rate: float  # annual percentage, 0-100
    due_date: date
    priority: DebtPriority
    debt_type: DebtType
    status: DebtStatus
    description: Optional[str] = None
    last_payment_date: Optional[date] = None

    @property
    def is_high_priority(self) -> bool:
        return self.priority in (DebtPriority.HIGH, DebtPriority.URGENT)


@dataclass(frozen=True)
class AccountBalance:
    """Bank, credit or investment account balance"""

    id: str
    account_name: str
    account_type: AccountType
    current_balance: float
    available_balance: float
    status: AccountStatus
    institution: Optional[str] = None
    credit_limit: Optional[float] = None
    interest_rate: Optional[float] = None
    last_updated: Optional[date] = None

    @property
    def is_liquid(self) -> bool:
        return self.account_type in LIQUID_ACCOUNT_TYPES

    @property
    def is_liability(self) -> bool:
        return self.account_type in LIABILITY_ACCOUNT_TYPES


@dataclass(frozen=True)
class FinancialContext:
    """Rolling-window spending aggregates"""

    recent_spending: List[SpendingRequest]
    monthly_total: float
    weekly_total: float
    average_request_amount: float
    category_breakdown: Dict[SpendingCategory, float]
    urgent_requests_count: int
    available_funds: Optional[float] = None
    monthly_budget: Optional[float] = None
    # Same categories over the calendar month behind monthly_total
    monthly_breakdown: Dict[SpendingCategory, float] = field(default_factory=dict)


@dataclass(frozen=True)
class BudgetStatus:
    """Month-to-date budget consumption and projection"""

    monthly_budget: float
    current_spending: float
    remaining_budget: float
    percentage_used: float
    days_into_month: int
    days_remaining_in_month: int
    daily_average_spent: float
    projected_monthly_spending: float
    on_track: bool
    budget_health: BudgetHealth
    recommendations: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CategorySpending:
    """Spending totals for one category over a date range"""

    category: SpendingCategory
    total_amount: float
    request_count: int
    average_amount: float
    approval_rate: float  # percent of requests approved


@dataclass(frozen=True)
class SpendingTrend:
    """Spending totals for one calendar month"""

    period: str  # YYYY-MM
    total_spending: float
    request_count: int
    average_amount: float
    top_categories: List[CategorySpending]


@dataclass(frozen=True)
class FinancialHealth:
    score: int
    factors: List[str]
    concerns: List[str]


@dataclass(frozen=True)
class SpendingPatterns:
    recent_similar: List[SpendingRequest]
    category_trend: CategoryTrend
    category_spending_this_month: float
    average_category_amount: float


@dataclass(frozen=True)
class GoalsImpact:
    active_goals: List[FinancialGoal]
    conflicting_goals: List[FinancialGoal]
    impacted_goals: List[FinancialGoal]


@dataclass(frozen=True)
class DebtSituation:
    total_debt: float
    monthly_debt_payments: float
    high_priority_debts: List[DebtInfo]


@dataclass(frozen=True)
class Recommendation:
    should_approve: bool
    confidence: int
    reasoning: List[str]
    conditions: List[str] = field(default_factory=list)
    alternatives: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DecisionContext:
    """Everything a reviewer needs to decide on one spending request"""

    request: SpendingRequest
    financial_health: FinancialHealth
    budget_context: BudgetStatus
    spending_patterns: SpendingPatterns
    financial_goals: GoalsImpact
    debt_situation: DebtSituation
    recommendation: Recommendation


@dataclass(frozen=True)
class FinancialSnapshot:
    """Goals, debts and accounts with their headline figures"""

    goals: List[FinancialGoal]
    debts: List[DebtInfo]
    accounts: List[AccountBalance]
    net_worth: float
    total_assets: float
    total_liabilities: float
    total_debt: float
    monthly_debt_payments: float
    available_funds: float
