"""Structured JSON logging for production observability"""

import logging
import sys
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from fincognia_gateway.config import settings
from fincognia_gateway.domain.models import IngestionSummary


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

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_ingestion_summary(user_id: str, summary: IngestionSummary, duration_ms: float) -> None:
    """Log structured ingestion outcome for analysis"""
    logging.getLogger("fincognia_gateway.ingestion").info(
        "Ingestion completed",
        extra={
            "user_id": user_id,
            "step": "ingestion_complete",
            "duration_ms": duration_ms,
            **asdict(summary),
        },
    )
