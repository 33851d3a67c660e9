"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from notion_finance.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_recommendation(
    request_id: str,
    spending_request_id: str,
    should_approve: bool,
    confidence: int,
    duration_ms: float,
) -> None:
    """Log structured recommendation outcome for analysis"""
    logging.info(
        "Decision context built",
        extra={
            "request_id": request_id,
            "spending_request_id": spending_request_id,
            "step": "decision_context_complete",
            "recommendation": "approve" if should_approve else "deny",
            "confidence": confidence,
            "duration_ms": duration_ms,
        },
    )


def log_decision_recorded(request_id: str, spending_request_id: str, decision: str, duration_ms: float) -> None:
    """Log a reviewer's approve/deny transition"""
    logging.info(
        "Spending decision recorded",
        extra={
            "request_id": request_id,
            "spending_request_id": spending_request_id,
            "step": "decision_recorded",
            "decision": decision,
            "duration_ms": duration_ms,
        },
    )
