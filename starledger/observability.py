"""
Observability Module - Logging, Metrics, and Health

Provides:
- Structured JSON logging with request IDs
- Metrics collection (append latency, rejected submissions, decode failures)
- Health check utilities

Configuration:
- STARLEDGER_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- STARLEDGER_LOG_FORMAT: json, text (default: json in production)
- STARLEDGER_PRODUCTION: Enable production mode

Usage:
    from starledger.observability import get_logger

    logger = get_logger(__name__)
    logger.info("Record appended", position=record.position, digest=record.digest)
"""

import json
import logging
import os
import sys
import time
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .core.ledger import LedgerService

# Set by the HTTP middleware, empty for in-process callers
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


# ============================================================
# CONFIGURATION
# ============================================================

def _is_production() -> bool:
    return os.environ.get("STARLEDGER_PRODUCTION", "").lower() in ("1", "true", "yes")


def _get_log_level() -> int:
    level_str = os.environ.get("STARLEDGER_LOG_LEVEL", "INFO").upper()
    levels = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return levels.get(level_str, logging.INFO)


def _use_json_logging() -> bool:
    format_str = os.environ.get("STARLEDGER_LOG_FORMAT", "").lower()
    if format_str == "json":
        return True
    if format_str == "text":
        return False
    return _is_production()


# ============================================================
# STRUCTURED LOGGING
# ============================================================

_STANDARD_RECORD_FIELDS = frozenset((
    "name", "msg", "args", "created", "levelname", "levelno",
    "pathname", "filename", "module", "lineno", "funcName",
    "exc_info", "exc_text", "stack_info", "message", "msecs",
    "relativeCreated", "thread", "threadName", "processName",
    "process", "taskName",
))


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Output format:
    {
        "timestamp": "2024-01-15T10:30:00.000000+00:00",
        "level": "INFO",
        "logger": "starledger.core.ledger",
        "message": "Record appended",
        "request_id": "abc-123",
        "position": 4,
        ...extra fields...
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _STANDARD_RECORD_FIELDS or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        return json.dumps(log_data)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    def format(self, record: logging.LogRecord) -> str:
        prefix = ""
        request_id = request_id_var.get()
        if request_id:
            prefix = f"[{request_id[:8]}] "

        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        msg = f"{timestamp} {record.levelname:8} {prefix}{record.name}: {record.getMessage()}"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter that moves keyword arguments into ``extra``.

    Usage:
        logger = get_logger(__name__)
        logger.warning("Submission rejected", reason="expired", address=address)
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.get("extra", {})

        for key in list(kwargs.keys()):
            if key not in ("exc_info", "stack_info", "stacklevel", "extra"):
                extra[key] = kwargs.pop(key)

        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    """
    Get a structured logger for the given name.

    Args:
        name: Logger name (typically __name__)
    """
    return ContextLogger(logging.getLogger(name), {})


def setup_logging() -> None:
    """
    Configure logging for the application.

    Call this once at application startup.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(_get_log_level())

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(_get_log_level())

    if _use_json_logging():
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(TextFormatter())

    root_logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ============================================================
# METRICS
# ============================================================

@dataclass
class MetricsCollector:
    """
    Simple in-memory metrics collector.

    For production, replace with Prometheus, StatsD, or similar.
    """

    # Counters
    records_appended: int = 0
    submissions_accepted: int = 0
    submissions_rejected: Dict[str, int] = field(default_factory=dict)
    decode_failures: int = 0
    validations_run: int = 0
    findings_reported: int = 0

    # Histograms (simplified as lists)
    append_latencies_ms: list = field(default_factory=list)

    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    def record_append(self, latency_ms: float) -> None:
        """Record a committed append."""
        with self._lock:
            self.records_appended += 1
            self.append_latencies_ms.append(latency_ms)
            # Keep only last 1000 samples
            if len(self.append_latencies_ms) > 1000:
                self.append_latencies_ms = self.append_latencies_ms[-1000:]

    def record_submission(self, accepted: bool, reason: Optional[str] = None) -> None:
        """Record the outcome of a submission."""
        with self._lock:
            if accepted:
                self.submissions_accepted += 1
            else:
                key = reason or "unknown"
                self.submissions_rejected[key] = self.submissions_rejected.get(key, 0) + 1

    def record_decode_failure(self) -> None:
        with self._lock:
            self.decode_failures += 1

    def record_validation(self, finding_count: int) -> None:
        with self._lock:
            self.validations_run += 1
            self.findings_reported += finding_count

    def get_summary(self) -> Dict[str, Any]:
        """Get metrics summary."""
        def percentile(data: list, p: float) -> Optional[float]:
            if not data:
                return None
            sorted_data = sorted(data)
            idx = int(len(sorted_data) * p)
            return sorted_data[min(idx, len(sorted_data) - 1)]

        with self._lock:
            return {
                "records_appended": self.records_appended,
                "submissions_accepted": self.submissions_accepted,
                "submissions_rejected": dict(self.submissions_rejected),
                "decode_failures": self.decode_failures,
                "validations_run": self.validations_run,
                "findings_reported": self.findings_reported,
                "append_latency_p50_ms": percentile(self.append_latencies_ms, 0.5),
                "append_latency_p95_ms": percentile(self.append_latencies_ms, 0.95),
                "append_latency_p99_ms": percentile(self.append_latencies_ms, 0.99),
            }


# Global metrics instance
_metrics = MetricsCollector()


def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return _metrics


# ============================================================
# HEALTH CHECKS
# ============================================================

@dataclass
class HealthStatus:
    """Health check result."""
    healthy: bool
    checks: Dict[str, Dict[str, Any]]
    duration_ms: float


def check_health(ledger: Optional["LedgerService"] = None) -> HealthStatus:
    """
    Run all health checks.

    The chain integrity check walks the whole ledger, so it only runs
    when a ledger is passed in.
    """
    start = time.perf_counter()
    checks = {}
    all_healthy = True

    checks["liveness"] = {"status": "healthy"}

    if ledger is not None:
        findings = ledger.validate()
        checks["chain_integrity"] = {
            "status": "healthy" if not findings else "unhealthy",
            "valid": not findings,
            "height": ledger.height(),
            "finding_count": len(findings),
        }
        if findings:
            all_healthy = False

    duration_ms = (time.perf_counter() - start) * 1000

    return HealthStatus(
        healthy=all_healthy,
        checks=checks,
        duration_ms=round(duration_ms, 2),
    )
