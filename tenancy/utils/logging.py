"""
Logging Configuration

Structured logging setup with JSON output for production.

SECURITY: raw passwords, raw refresh tokens, invitation tokens and
license keys must never be passed to a logger. redact() masks the
known sensitive keys in dicts handed to log_security_event.
"""
import logging
import sys
from typing import Any, Dict
import json
from datetime import datetime, timezone

SENSITIVE_KEYS = {"password", "refresh_token", "token", "access_token", "license_key"}

# Extra attributes lifted into JSON records when present
_CONTEXT_FIELDS = ("tenant_id", "user_id", "request_id", "event_type", "security_event")


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Makes logs machine-readable for log aggregation systems.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for name in _CONTEXT_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = "INFO", json_format: bool = False) -> None:
    """
    Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format for structured logging

    NOTE: Call this once at application startup.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)

    root_logger.addHandler(handler)

    # Reduce noise from noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Use this instead of logging.getLogger() for consistency.
    """
    return logging.getLogger(name)


def redact(details: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: ("***" if key in SENSITIVE_KEYS else value)
        for key, value in details.items()
    }


def log_security_event(event_type: str, details: Dict[str, Any], logger: logging.Logger) -> None:
    """
    Log security-related events.

    Event types:
    - failed_login: Failed authentication attempt
    - refresh_token_rejected: Unknown, expired or already-rotated refresh token
    - refresh_token_replay: A rotated (revoked) refresh token was presented again
    - banned_rejoin: A banned member tried to join again
    - invitation_email_mismatch: Invite used by a different account
    - privilege_escalation: Attempted unauthorized action
    """
    log_data = {
        "security_event": True,
        "event_type": event_type,
        **redact(details)
    }

    logger.warning(f"SECURITY EVENT: {event_type}", extra=log_data)
