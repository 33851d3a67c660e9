"""Unit tests for spending request review rules"""

from notion_finance.domain.models import SpendingCategory, UrgencyLevel
from notion_finance.domain.validation import review_spending_request


def test_valid_request_has_no_findings():
    result = review_spending_request("Groceries", 80.0, SpendingCategory.FOOD, UrgencyLevel.LOW)
    assert result.is_valid
    assert result.errors == []
    assert result.warnings == []


def test_missing_fields_are_errors():
    result = review_spending_request("  ", None, None, None)

    assert not result.is_valid
    assert result.errors == [
        "Title is required and cannot be empty",
        "Amount is required",
        "Category is required",
        "Urgency level is required",
    ]


def test_non_positive_amount_is_error():
    result = review_spending_request("Refund", -5, SpendingCategory.OTHER, UrgencyLevel.LOW)
    assert result.errors == ["Amount must be greater than zero"]


def test_large_amounts_warn():
    result = review_spending_request("Car repair", 12_000, SpendingCategory.BILLS, UrgencyLevel.HIGH)

    assert result.is_valid
    assert "Amount is very high and may require additional approvals" in result.warnings
    assert "High amount request requires detailed justification" in result.warnings


def test_category_specific_warnings():
    concert = review_spending_request("Concert", 250, SpendingCategory.ENTERTAINMENT, UrgencyLevel.LOW)
    assert concert.warnings == ["Entertainment expenses over $200 require additional review"]

    vet = review_spending_request("Vet", 300, SpendingCategory.EMERGENCY, UrgencyLevel.LOW)
    assert vet.warnings == ["Emergency category should typically have High or Critical urgency"]


def test_critical_without_description_warns():
    result = review_spending_request("Boiler", 400, SpendingCategory.EMERGENCY, UrgencyLevel.CRITICAL)
    assert result.warnings == ["Critical requests should include a detailed description"]

    described = review_spending_request(
        "Boiler", 400, SpendingCategory.EMERGENCY, UrgencyLevel.CRITICAL, description="No heating"
    )
    assert described.warnings == []


def test_long_title_warns():
    result = review_spending_request("x" * 201, 10, SpendingCategory.OTHER, UrgencyLevel.LOW)
    assert result.is_valid
    assert result.warnings == ["Title is very long and may be truncated"]
