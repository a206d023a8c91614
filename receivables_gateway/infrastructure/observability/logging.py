"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger
from receivables_gateway.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


# Client libraries that log every HTTP exchange at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str = "INFO") -> None:
    """Send every record to stdout as one JSON object per line"""
    root = logging.getLogger()
    root.setLevel(level)
    for existing in list(root.handlers):
        root.removeHandler(existing)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    root.addHandler(stdout_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_issuance(
    installment_id: int,
    provider: str,
    status: str,
    external_id: str | None,
    duration_ms: float,
    request_id: str | None = None,
) -> None:
    """Log structured issuance outcome for analysis"""
    logging.info(
        "Issuance completed",
        extra={
            "request_id": request_id,
            "installment_id": installment_id,
            "provider": provider,
            "step": "issuance_complete",
            "issuance_status": status,
            "external_id": external_id,
            "duration_ms": duration_ms,
        },
    )


def log_accrual_summary(today: str, examined: int, updated: int, failed: int, duration_ms: float) -> None:
    """Log structured accrual batch summary"""
    logging.info(
        "Accrual run completed",
        extra={
            "step": "accrual_complete",
            "accrual_date": today,
            "examined": examined,
            "updated": updated,
            "failed": failed,
            "duration_ms": duration_ms,
        },
    )
