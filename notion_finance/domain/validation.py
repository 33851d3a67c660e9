"""Business-rule review of draft spending requests"""

from dataclasses import dataclass, field
from typing import List, Optional

from notion_finance.domain.models import SpendingCategory, UrgencyLevel

MAX_TITLE_LENGTH = 200
DECISION_REASONING_MIN = 10
DECISION_REASONING_MAX = 500


@dataclass(frozen=True)
class ReviewResult:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def review_spending_request(
    title: Optional[str],
    amount: Optional[float],
    category: Optional[SpendingCategory],
    urgency: Optional[UrgencyLevel],
    description: Optional[str] = None,
) -> ReviewResult:
    """
    Check a draft request before it is stored.

    Errors block creation; warnings flag requests a reviewer should look at
    more closely.
    """
    errors: List[str] = []
    warnings: List[str] = []

    if not title or not title.strip():
        errors.append("Title is required and cannot be empty")
    elif len(title) > MAX_TITLE_LENGTH:
        warnings.append("Title is very long and may be truncated")

    if amount is None:
        errors.append("Amount is required")
    elif amount <= 0:
        errors.append("Amount must be greater than zero")
    else:
        if amount > 10_000:
            warnings.append("Amount is very high and may require additional approvals")
        if amount > 1_000:
            warnings.append("High amount request requires detailed justification")
        if category is SpendingCategory.ENTERTAINMENT and amount > 200:
            warnings.append("Entertainment expenses over $200 require additional review")

    if category is None:
        errors.append("Category is required")
    if urgency is None:
        errors.append("Urgency level is required")

    if urgency is UrgencyLevel.CRITICAL and not description:
        warnings.append("Critical requests should include a detailed description")
    if category is SpendingCategory.EMERGENCY and urgency not in (UrgencyLevel.HIGH, UrgencyLevel.CRITICAL):
        warnings.append("Emergency category should typically have High or Critical urgency")

    return ReviewResult(errors=errors, warnings=warnings)
