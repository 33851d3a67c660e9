"""Service facade wiring the record-store client and the domain services"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from notion_finance.config import settings
from notion_finance.domain.exceptions import FinanceServiceError, InputValidationError
from notion_finance.infrastructure.clients.record_store import RecordStoreClient
from notion_finance.services.decision_context import DecisionContextService
from notion_finance.services.financial import FinancialDataService
from notion_finance.services.spending import SpendingRequestService, local_now

logger = logging.getLogger(__name__)

HEALTHY_SUCCESS_RATE = 95.0
DEGRADED_SUCCESS_RATE = 80.0


class FinanceService:
    """Single entry point the HTTP layer depends on"""

    def __init__(
        self,
        client: Optional[RecordStoreClient] = None,
        spending_database_id: Optional[str] = None,
        goals_database_id: Optional[str] = None,
        debts_database_id: Optional[str] = None,
        accounts_database_id: Optional[str] = None,
        now: Callable[[], datetime] = local_now,
    ):
        self.client = client if client is not None else RecordStoreClient()
        self.spending = SpendingRequestService(self.client, database_id=spending_database_id, now=now)
        self.financial = FinancialDataService(
            self.client,
            self.spending,
            goals_database_id=goals_database_id,
            debts_database_id=debts_database_id,
            accounts_database_id=accounts_database_id,
        )
        self.decisions = DecisionContextService(self.spending, self.financial)

    def configured_collections(self) -> Dict[str, bool]:
        return {
            "spending": bool(self.spending.database_id),
            "goals": bool(self.financial.goals_database_id),
            "debts": bool(self.financial.debts_database_id),
            "accounts": bool(self.financial.accounts_database_id),
        }

    async def initialize(self) -> None:
        """
        Start background work and verify collection access.

        Raises:
            InputValidationError: The spending collection is not configured
            FinanceServiceError: The spending collection cannot be read
        """
        if not self.spending.database_id:
            raise InputValidationError("SPENDING_DATABASE_ID is not configured")

        self.client.start()
        await self.client.get_collection_schema(self.spending.database_id)

        optional = {
            "goals": self.financial.goals_database_id,
            "debts": self.financial.debts_database_id,
            "accounts": self.financial.accounts_database_id,
        }
        for name, collection_id in optional.items():
            if not collection_id:
                continue
            try:
                await self.client.get_collection_schema(collection_id)
            except FinanceServiceError as e:
                logger.warning(
                    "Optional collection unavailable", extra={"collection": name, "error_code": e.code}
                )

        logger.info("Finance service initialized", extra={"collections": self.configured_collections()})

    def get_service_metrics(self) -> Dict[str, Any]:
        return {
            "record_store": self.client.get_metrics().to_dict(),
            "collections": self.configured_collections(),
            "minimum_spending_amount": self.spending.minimum_amount,
            "default_monthly_budget": self.financial.default_monthly_budget,
        }

    async def health_check(self) -> Dict[str, Any]:
        """Overall status from the record-store success rate"""
        snapshot = self.client.get_metrics()
        if snapshot.success_rate > HEALTHY_SUCCESS_RATE:
            status = "healthy"
        elif snapshot.success_rate > DEGRADED_SUCCESS_RATE:
            status = "degraded"
        else:
            status = "unhealthy"
        return {
            "status": status,
            "service": settings.service_name,
            "collections": self.configured_collections(),
            "record_store": snapshot.to_dict(),
        }

    def clear_caches(self) -> None:
        self.client.clear_cache()

    async def aclose(self) -> None:
        await self.client.aclose()
