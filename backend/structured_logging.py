"""
Structured Logging Module

JSON-formatted logging with per-request context for the MomCare API.

Features:
- JSON log formatting (one object per line)
- Request context tracking (request ID, correlation ID, user ID)
- stdout and size-rotated file output
- Sensitive data masking

Usage:
    from structured_logging import get_logger, LogContext

    logger = get_logger(__name__)

    with LogContext(request_id="abc123", user_id="8c1f..."):
        logger.info("Assessment scored", extra={"risk_level": "high"})

Configuration (environment variables, see config.py):
    LOG_FORMAT: "json" or "text" (default: "json")
    LOG_OUTPUT: "stdout", "file", "all" (default: "stdout")
    LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: "INFO")
    LOG_FILE: path of the JSON log file
"""

import json
import logging
import logging.handlers
import sys
import os
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from contextvars import ContextVar
from pathlib import Path
import socket
import uuid

import config

SERVICE_NAME = "momcare-api"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Context variables for request tracking
_request_context: ContextVar[Dict[str, Any]] = ContextVar('request_context', default={})


# =============================================================================
# LOG CONTEXT MANAGEMENT
# =============================================================================

class LogContext:
    """
    Context manager for adding contextual information to logs.

    Usage:
        with LogContext(request_id="abc", user_id="u-1"):
            logger.info("Processing")  # Will include request_id and user_id
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self._token = None

    def __enter__(self):
        current = _request_context.get().copy()
        current.update(self.context)
        self._token = _request_context.set(current)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token:
            _request_context.reset(self._token)
        return False


def set_context(**kwargs):
    """Set context values for the current execution context."""
    current = _request_context.get().copy()
    current.update(kwargs)
    _request_context.set(current)


def get_context() -> Dict[str, Any]:
    """Get current logging context."""
    return _request_context.get().copy()


def clear_context():
    _request_context.set({})


# =============================================================================
# JSON LOG FORMATTER
# =============================================================================

class JSONFormatter(logging.Formatter):
    """
    Formats log records as JSON.

    Output format:
    {
        "timestamp": "2024-01-15T10:30:45.123Z",
        "level": "INFO",
        "logger": "api.risk",
        "message": "Risk assessment scored",
        "service": "momcare-api",
        "environment": "production",
        "host": "server-01",
        "request_id": "abc123",
        "user_id": "8c1f...",
        "extra": {...}
    }
    """

    CONTEXT_FIELDS = ('request_id', 'correlation_id', 'user_id')

    # Sensitive fields to mask
    SENSITIVE_FIELDS = {
        'password', 'token', 'secret', 'authorization', 'access_token', 'hashed_password'
    }

    # Attributes every LogRecord carries; anything else came in through `extra`
    _RESERVED = set(logging.LogRecord('', 0, '', 0, '', (), None).__dict__) | {'message', 'asctime'}

    def __init__(
        self,
        service_name: str = SERVICE_NAME,
        environment: str = None,
        mask_sensitive: bool = True
    ):
        super().__init__()
        self.service_name = service_name
        self.environment = environment or os.getenv("ENVIRONMENT", "development")
        self.mask_sensitive = mask_sensitive
        self.hostname = socket.gethostname()

    def format(self, record: logging.LogRecord) -> str:
        context = get_context()

        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "environment": self.environment,
            "host": self.hostname,
        }

        for key in self.CONTEXT_FIELDS:
            if key in context:
                log_entry[key] = context[key]

        # Add source location for errors
        if record.levelno >= logging.ERROR:
            log_entry["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName
            }

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "stacktrace": ''.join(traceback.format_exception(*record.exc_info))
            }

        extra = {}
        for key, value in record.__dict__.items():
            if key in self._RESERVED or key.startswith('_') or key in log_entry:
                continue
            if self.mask_sensitive and self._is_sensitive(key):
                extra[key] = "***MASKED***"
            else:
                extra[key] = self._serialize_value(value)

        for key, value in context.items():
            if key not in log_entry and key not in extra:
                extra[key] = self._serialize_value(value)

        if extra:
            log_entry["extra"] = extra

        return json.dumps(log_entry, default=str, ensure_ascii=False)

    def _is_sensitive(self, key: str) -> bool:
        key_lower = key.lower()
        return any(sensitive in key_lower for sensitive in self.SENSITIVE_FIELDS)

    def _serialize_value(self, value: Any) -> Any:
        if isinstance(value, (str, int, float, bool, type(None))):
            return value
        elif isinstance(value, datetime):
            return value.isoformat()
        elif isinstance(value, (list, tuple)):
            return [self._serialize_value(v) for v in value]
        elif isinstance(value, dict):
            return {k: self._serialize_value(v) for k, v in value.items()}
        else:
            return str(value)


# =============================================================================
# LOGGER FACTORY
# =============================================================================

_configured = False


def configure_logging(
    level: str = None,
    format: str = None,
    output: str = None,
    service_name: str = SERVICE_NAME,
    log_file: str = None
):
    """
    Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format ("json" or "text")
        output: Output destination ("stdout", "file", "all", or comma-separated)
        service_name: Service name for log entries
        log_file: Path to log file (for file output)
    """
    global _configured

    level = level or config.LOG_LEVEL
    format = format or config.LOG_FORMAT
    output = output or config.LOG_OUTPUT
    log_file = log_file or config.LOG_FILE

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    if format.lower() == "json":
        formatter = JSONFormatter(service_name=service_name)
    else:
        formatter = logging.Formatter(
            '%(asctime)s | %(levelname)s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    outputs = [out.strip() for out in output.lower().split(",")]

    for out in outputs:
        if out in ("stdout", "all"):
            stdout_handler = logging.StreamHandler(sys.stdout)
            stdout_handler.setFormatter(formatter)
            root_logger.addHandler(stdout_handler)

        if out in ("file", "all"):
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS, encoding="utf-8"
            )
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

    _configured = True

    root_logger.info(
        "Logging configured",
        extra={
            "log_level": level,
            "log_format": format,
            "log_output": output,
        }
    )


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance, configuring logging on first use.

    Args:
        name: Logger name (typically __name__)
    """
    if not _configured:
        configure_logging()

    return logging.getLogger(name or "app")


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def log_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    request_id: str = None,
    user_id: str = None,
    client_ip: str = None,
    **extra
):
    """Log an HTTP request in structured format."""
    logger = get_logger("http")

    log_data = {
        "http_method": method,
        "http_path": path,
        "http_status": status_code,
        "duration_ms": round(duration_ms, 2),
        "request_id": request_id,
        "user_id": user_id,
        "client_ip": client_ip,
        **extra
    }

    if status_code >= 500:
        logger.error("HTTP request failed", extra=log_data)
    elif status_code >= 400:
        logger.warning("HTTP request client error", extra=log_data)
    else:
        logger.info("HTTP request completed", extra=log_data)


def log_risk_assessment(
    user_id: str,
    risk_level: str,
    risk_factors: list,
    assessment_id: Optional[str] = None,
    **extra
):
    """Log a scored risk assessment. High risk is logged as a warning."""
    logger = get_logger("risk")

    log_data = {
        "user_id": user_id,
        "assessment_id": assessment_id,
        "risk_level": risk_level,
        "risk_factors": risk_factors,
        "factor_count": len(risk_factors),
        **extra
    }

    if risk_level == "high":
        logger.warning("High risk assessment recorded", extra=log_data)
    else:
        logger.info("Risk assessment recorded", extra=log_data)


def log_security_event(
    event_type: str,
    severity: str,
    user_id: str = None,
    client_ip: str = None,
    details: str = None,
    **extra
):
    """Log a security-related event."""
    logger = get_logger("security")

    log_data = {
        "security_event": event_type,
        "severity": severity,
        "user_id": user_id,
        "client_ip": client_ip,
        "details": details,
        **extra
    }

    if severity in ("critical", "high"):
        logger.error("Security event", extra=log_data)
    elif severity == "medium":
        logger.warning("Security event", extra=log_data)
    else:
        logger.info("Security event", extra=log_data)


# =============================================================================
# REQUEST ID GENERATION
# =============================================================================

def generate_request_id() -> str:
    return str(uuid.uuid4())[:12]
