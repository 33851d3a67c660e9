"""Pydantic schemas for API request/response validation"""

from datetime import date
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from notion_finance.domain.models import (
    AccountStatus,
    AccountType,
    BudgetHealth,
    CategoryTrend,
    DebtPriority,
    DebtStatus,
    DebtType,
    GoalCategory,
    GoalPriority,
    GoalStatus,
    SpendingCategory,
    SpendingStatus,
    UrgencyLevel,
)


class DomainSchema(BaseModel):
    """Response schema populated from domain dataclasses"""

    model_config = ConfigDict(from_attributes=True)


class SpendingRequestSchema(DomainSchema):
    id: str
    title: str
    amount: float
    category: SpendingCategory
    status: SpendingStatus
    request_date: date
    urgency: UrgencyLevel
    tags: List[str] = []
    description: Optional[str] = None
    decided_date: Optional[date] = None
    reasoning: Optional[str] = None


class SpendingRequestList(BaseModel):
    requests: List[SpendingRequestSchema]
    count: int


class CreateSpendingRequest(BaseModel):
    """Request body for POST /v1/spending"""

    title: str = Field(..., min_length=1, max_length=500)
    amount: float = Field(..., gt=0)
    category: SpendingCategory
    urgency: UrgencyLevel
    description: Optional[str] = None
    tags: List[str] = []
    request_date: Optional[date] = None


class DecisionRequest(BaseModel):
    """Request body for POST /v1/spending/{request_id}/decision"""

    decision: Literal["approved", "denied"]
    reasoning: str = Field(..., min_length=10, max_length=500)


class DecisionResponse(BaseModel):
    request_id: str
    decision: str
    updated: bool = True


class FinancialContextSchema(DomainSchema):
    recent_spending: List[SpendingRequestSchema]
    monthly_total: float
    weekly_total: float
    average_request_amount: float
    category_breakdown: Dict[SpendingCategory, float]
    urgent_requests_count: int
    available_funds: Optional[float] = None
    monthly_budget: Optional[float] = None
    monthly_breakdown: Dict[SpendingCategory, float] = {}


class BudgetStatusSchema(DomainSchema):
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
    recommendations: List[str]


class CategorySpendingSchema(DomainSchema):
    category: SpendingCategory
    total_amount: float
    request_count: int
    average_amount: float
    approval_rate: float


class SpendingTrendSchema(DomainSchema):
    period: str
    total_spending: float
    request_count: int
    average_amount: float
    top_categories: List[CategorySpendingSchema]


class FinancialGoalSchema(DomainSchema):
    id: str
    title: str
    target_amount: float
    current_amount: float
    priority: GoalPriority
    category: GoalCategory
    status: GoalStatus
    deadline: Optional[date] = None
    description: Optional[str] = None
    progress: float
    remaining_amount: float


class DebtSchema(DomainSchema):
    id: str
    creditor: str
    total_amount: float
    remaining_amount: float
    minimum_payment: float
    interest_rate: float
    due_date: date
    priority: DebtPriority
    debt_type: DebtType
    status: DebtStatus
    description: Optional[str] = None
    last_payment_date: Optional[date] = None


class AccountBalanceSchema(DomainSchema):
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


class FinancialSnapshotSchema(DomainSchema):
    goals: List[FinancialGoalSchema]
    debts: List[DebtSchema]
    accounts: List[AccountBalanceSchema]
    net_worth: float
    total_assets: float
    total_liabilities: float
    total_debt: float
    monthly_debt_payments: float
    available_funds: float


class FinancialHealthSchema(DomainSchema):
    score: int = Field(..., ge=0, le=100)
    factors: List[str]
    concerns: List[str]


class SpendingPatternsSchema(DomainSchema):
    recent_similar: List[SpendingRequestSchema]
    category_trend: CategoryTrend
    category_spending_this_month: float
    average_category_amount: float


class GoalsImpactSchema(DomainSchema):
    active_goals: List[FinancialGoalSchema]
    conflicting_goals: List[FinancialGoalSchema]
    impacted_goals: List[FinancialGoalSchema]


class DebtSituationSchema(DomainSchema):
    total_debt: float
    monthly_debt_payments: float
    high_priority_debts: List[DebtSchema]


class RecommendationSchema(DomainSchema):
    should_approve: bool
    confidence: int = Field(..., ge=0, le=100)
    reasoning: List[str]
    conditions: List[str] = []
    alternatives: List[str] = []


class DecisionContextSchema(DomainSchema):
    request: SpendingRequestSchema
    financial_health: FinancialHealthSchema
    budget_context: BudgetStatusSchema
    spending_patterns: SpendingPatternsSchema
    financial_goals: GoalsImpactSchema
    debt_situation: DebtSituationSchema
    recommendation: RecommendationSchema


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: Dict = {}
