"""Builders for the store's nested filter and sort objects"""

from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

Filter = Dict[str, Any]
Sort = Dict[str, str]


def _wire(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value


class FilterBuilder:
    """Accumulates property conditions; ``build()`` ANDs them together.

    Example:
        FilterBuilder().select_equals("Status", "Pending").number_gte("Amount", 50).build()
    """

    def __init__(self) -> None:
        self._filters: List[Filter] = []

    def _add(self, prop: str, kind: str, operator: str, value: Any = True) -> "FilterBuilder":
        self._filters.append({"property": prop, kind: {operator: _wire(value)}})
        return self

    # Text and title
    def text_equals(self, prop: str, value: str) -> "FilterBuilder":
        return self._add(prop, "rich_text", "equals", value)

    def text_contains(self, prop: str, value: str) -> "FilterBuilder":
        return self._add(prop, "rich_text", "contains", value)

    def text_starts_with(self, prop: str, value: str) -> "FilterBuilder":
        return self._add(prop, "rich_text", "starts_with", value)

    def text_is_empty(self, prop: str) -> "FilterBuilder":
        return self._add(prop, "rich_text", "is_empty")

    def text_is_not_empty(self, prop: str) -> "FilterBuilder":
        return self._add(prop, "rich_text", "is_not_empty")

    def title_equals(self, prop: str, value: str) -> "FilterBuilder":
        return self._add(prop, "title", "equals", value)

    def title_contains(self, prop: str, value: str) -> "FilterBuilder":
        return self._add(prop, "title", "contains", value)

    # Number
    def number_equals(self, prop: str, value: float) -> "FilterBuilder":
        return self._add(prop, "number", "equals", value)

    def number_gt(self, prop: str, value: float) -> "FilterBuilder":
        return self._add(prop, "number", "greater_than", value)

    def number_gte(self, prop: str, value: float) -> "FilterBuilder":
        return self._add(prop, "number", "greater_than_or_equal_to", value)

    def number_lt(self, prop: str, value: float) -> "FilterBuilder":
        return self._add(prop, "number", "less_than", value)

    def number_lte(self, prop: str, value: float) -> "FilterBuilder":
        return self._add(prop, "number", "less_than_or_equal_to", value)

    # Select and multi-select
    def select_equals(self, prop: str, value: Any) -> "FilterBuilder":
        return self._add(prop, "select", "equals", value)

    def select_is_empty(self, prop: str) -> "FilterBuilder":
        return self._add(prop, "select", "is_empty")

    def multi_select_contains(self, prop: str, value: str) -> "FilterBuilder":
        return self._add(prop, "multi_select", "contains", value)

    def multi_select_does_not_contain(self, prop: str, value: str) -> "FilterBuilder":
        return self._add(prop, "multi_select", "does_not_contain", value)

    # Date
    def date_equals(self, prop: str, value: date) -> "FilterBuilder":
        return self._add(prop, "date", "equals", value)

    def date_before(self, prop: str, value: date) -> "FilterBuilder":
        return self._add(prop, "date", "before", value)

    def date_after(self, prop: str, value: date) -> "FilterBuilder":
        return self._add(prop, "date", "after", value)

    def date_on_or_before(self, prop: str, value: date) -> "FilterBuilder":
        return self._add(prop, "date", "on_or_before", value)

    def date_on_or_after(self, prop: str, value: date) -> "FilterBuilder":
        return self._add(prop, "date", "on_or_after", value)

    def date_is_empty(self, prop: str) -> "FilterBuilder":
        return self._add(prop, "date", "is_empty")

    def date_range(self, prop: str, start: date, end: date) -> "FilterBuilder":
        """Inclusive on both ends"""
        return self.date_on_or_after(prop, start).date_on_or_before(prop, end)

    def date_relative(self, prop: str, period: str) -> "FilterBuilder":
        """Store-evaluated relative window: this_week, past_month, ..."""
        if period not in ("this_week", "this_month", "this_year", "past_week", "past_month", "past_year"):
            raise ValueError(f"Unsupported relative date period: {period}")
        return self._add(prop, "date", period, {})

    # Checkbox
    def checkbox_equals(self, prop: str, value: bool) -> "FilterBuilder":
        return self._add(prop, "checkbox", "equals", value)

    def build(self) -> Optional[Filter]:
        if not self._filters:
            return None
        if len(self._filters) == 1:
            return self._filters[0]
        return {"and": list(self._filters)}

    @staticmethod
    def and_(filters: List[Filter]) -> Filter:
        return {"and": list(filters)}

    @staticmethod
    def or_(filters: List[Filter]) -> Filter:
        return {"or": list(filters)}


class SortBuilder:
    def __init__(self) -> None:
        self._sorts: List[Sort] = []

    def ascending(self, prop: str) -> "SortBuilder":
        self._sorts.append({"property": prop, "direction": "ascending"})
        return self

    def descending(self, prop: str) -> "SortBuilder":
        self._sorts.append({"property": prop, "direction": "descending"})
        return self

    def created_time(self, direction: str = "descending") -> "SortBuilder":
        self._sorts.append({"timestamp": "created_time", "direction": direction})
        return self

    def last_edited_time(self, direction: str = "descending") -> "SortBuilder":
        self._sorts.append({"timestamp": "last_edited_time", "direction": direction})
        return self

    def build(self) -> List[Sort]:
        return list(self._sorts)
