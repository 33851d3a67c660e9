"""Helpers for concurrent fan-out fetches"""

import logging
from typing import Awaitable, TypeVar

from notion_finance.domain.exceptions import FinanceServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_fallback(awaitable: Awaitable[T], default: T, source: str) -> T:
    """Await a fetch, substituting ``default`` when the store call fails"""
    try:
        return await awaitable
    except FinanceServiceError as e:
        logger.warning(
            "Degraded fetch, using default",
            extra={"source": source, "error_code": e.code, "error_message": e.message},
        )
        return default
