"""
Logging setup for the ChatKit auth gateway using Python's standard logging
with JSON formatting for structured logs.

Log destinations:
- Console (stderr): Human-readable format for debugging
- logs/auth.jsonl: JSON audit trail of client secret issuance and rejection
- logs/errors.jsonl: JSON format for error tracking

Client secrets and bearer tokens are redacted from every message.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import re
import sys

from pathlib import Path
from typing import Any, cast

from pythonjsonlogger import json as jsonlogger

from api.middleware.request_context import get_request_context
from core.constants import (
    LOG_BACKUP_COUNT_AUDIT,
    LOG_BACKUP_COUNT_ERRORS,
    LOG_MAX_SIZE,
    LOG_SUBJECT_PREVIEW_LENGTH,
    PROJECT_ROOT,
)

# Credential redaction patterns
REDACTION_PATTERNS = [
    (r"\bchatkit_\S+?_-?\d+_-?\d+_[0-9a-fA-F]{16}\b", "[CLIENT_SECRET]"),
    (r"\beyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*", "[JWT]"),
    (r"\b(Bearer)\s+\S+", r"\1 [REDACTED]"),
    (r"\b(password|secret|client_secret)\s*[:=]\s*\S+", r"\1=[REDACTED]"),
]


def redact(text: str) -> str:
    """Remove credentials from text before it reaches a log handler."""
    if not text:
        return text

    redacted = text
    for pattern, replacement in REDACTION_PATTERNS:
        redacted = re.sub(pattern, replacement, redacted)
    return redacted


class AuditFilter(logging.Filter):
    """Only allow records flagged as auth audit events"""

    def filter(self, record: logging.LogRecord) -> bool:
        return bool(getattr(record, "audit", False)) and record.levelno >= logging.INFO


class ErrorFilter(logging.Filter):
    """Filter to only allow ERROR and CRITICAL logs"""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


class ColoredConsoleFormatter(logging.Formatter):
    """
    Custom formatter that adds colors to log levels and standardizes format.
    Format: HH:MM:SS [LEVEL] logger_name - message
    """

    # ANSI color codes
    GREY = "\x1b[38;20m"
    GREEN = "\x1b[32;20m"
    YELLOW = "\x1b[33;20m"
    RED = "\x1b[31;20m"
    BOLD_RED = "\x1b[31;1m"
    RESET = "\x1b[0m"

    def format(self, record: logging.LogRecord) -> str:
        level_fmt = f"[{record.levelname}]"

        if record.levelno == logging.DEBUG:
            level_fmt = f"{self.GREY}{level_fmt}{self.RESET}"
        elif record.levelno == logging.INFO:
            level_fmt = f"{self.GREEN}{level_fmt}{self.RESET}"
        elif record.levelno == logging.WARNING:
            level_fmt = f"{self.YELLOW}{level_fmt}{self.RESET}"
        elif record.levelno == logging.ERROR:
            level_fmt = f"{self.RED}{level_fmt}{self.RESET}"
        elif record.levelno == logging.CRITICAL:
            level_fmt = f"{self.BOLD_RED}{level_fmt}{self.RESET}"

        record.asctime = self.formatTime(record, "%H:%M:%S")

        # uvicorn access args: (client_addr, method, full_path, http_version, status_code)
        if record.name == "uvicorn.access" and record.args and len(record.args) == 5:
            client_addr, method, full_path, http_version, status_code = record.args

            status_code_num = int(cast(Any, status_code))
            if status_code_num < 400:
                status_code_fmt = f"{self.GREEN}{status_code}{self.RESET}"
            elif status_code_num < 500:
                status_code_fmt = f"{self.YELLOW}{status_code}{self.RESET}"
            else:
                status_code_fmt = f"{self.RED}{status_code}{self.RESET}"

            method_fmt = f"\x1b[1m{method}\x1b[0m"
            message = f'{client_addr} - "{method_fmt} {redact(str(full_path))} HTTP/{http_version}" {status_code_fmt}'
            return f"{record.asctime} {level_fmt} {record.name} - {message}"

        return f"{record.asctime} {level_fmt} {record.name} - {record.getMessage()}"


def configure_uvicorn_logging() -> None:
    """
    Configure uvicorn loggers to use our standard colored formatting.
    This ensures uvicorn logs (access, error) match the application log style.
    """
    formatter = ColoredConsoleFormatter()

    main_logger = logging.getLogger("uvicorn")
    main_logger.handlers = []
    main_logger.setLevel(logging.INFO)

    for name in ("uvicorn.access", "uvicorn.error"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers = []
        uv_logger.setLevel(logging.INFO)
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        uv_logger.addHandler(handler)
        uv_logger.propagate = False


def setup_logging(
    name: str = "chatkit-gateway",
    debug: bool | None = None,
    log_dir: Path | None = None,
) -> logging.Logger:
    """
    Set up logging with console, audit and error handlers.

    Args:
        name: Logger name
        debug: Enable debug logging (overrides DEBUG env var)
        log_dir: Directory for JSON log files (overrides LOG_DIR env var)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)  # Capture all, filter at handler level

    for handler in logger.handlers:
        handler.close()
    logger.handlers = []

    if debug is None:
        debug = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")

    if log_dir is None:
        env_dir = os.getenv("LOG_DIR")
        log_dir = Path(env_dir) if env_dir else PROJECT_ROOT / "logs"

    # --- Console Handler (Human-readable) ---
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    logger.addHandler(console_handler)

    log_dir.mkdir(parents=True, exist_ok=True)

    # --- Auth Audit Handler (JSON) ---
    audit_handler = logging.handlers.RotatingFileHandler(
        log_dir / "auth.jsonl",
        maxBytes=LOG_MAX_SIZE,
        backupCount=LOG_BACKUP_COUNT_AUDIT,
        encoding="utf-8",
    )
    audit_handler.setLevel(logging.INFO)
    audit_handler.addFilter(AuditFilter())
    audit_handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(timestamp)s %(levelname)s %(message)s %(event)s %(subject)s %(reason)s %(expires_at)s %(request_id)s",
            timestamp=True,
        )
    )
    logger.addHandler(audit_handler)

    # --- Error Log Handler (JSON) ---
    error_handler = logging.handlers.RotatingFileHandler(
        log_dir / "errors.jsonl",
        maxBytes=LOG_MAX_SIZE,
        backupCount=LOG_BACKUP_COUNT_ERRORS,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.addFilter(ErrorFilter())
    error_handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(timestamp)s %(levelname)s %(name)s %(message)s",
            timestamp=True,
        )
    )
    logger.addHandler(error_handler)

    return logger


class ServiceLogger:
    """
    High-level logging interface for the gateway.
    Wraps standard Python logging with request context and redaction.
    """

    def __init__(self, name: str = "chatkit-gateway"):
        self.name = name
        self.logger = setup_logging(name)

    def configure(self, debug: bool | None = None, log_dir: Path | None = None) -> None:
        """Rebuild handlers once settings are known."""
        self.logger = setup_logging(self.name, debug=debug, log_dir=log_dir)

    def _enrich_context(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        """Enrich log arguments with the current request context."""
        if ctx := get_request_context():
            for key, value in ctx.to_log_context().items():
                kwargs.setdefault(key, value)
        return kwargs

    def debug(self, message: str, **kwargs: Any) -> None:
        self.logger.debug(redact(message), extra=self._enrich_context(kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self.logger.info(redact(message), extra=self._enrich_context(kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self.logger.warning(redact(message), extra=self._enrich_context(kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        """Error level logging with optional exception info"""
        self.logger.error(redact(message), extra=self._enrich_context(kwargs), exc_info=exc_info)

    def log_token_event(
        self,
        event: str,
        subject: str,
        *,
        reason: str | None = None,
        expires_at: str | None = None,
    ) -> None:
        """
        Record a client secret lifecycle event in the audit log.

        The client secret itself is never logged; only the subject, the
        outcome and the expiry.
        """
        preview = subject[:LOG_SUBJECT_PREVIEW_LENGTH]
        if len(subject) > LOG_SUBJECT_PREVIEW_LENGTH:
            preview += "..."

        msg_parts = [f"Client secret {event} for {preview}"]
        if reason:
            msg_parts.append(f"[{reason}]")
        if expires_at:
            msg_parts.append(f"[expires {expires_at}]")

        extra_data: dict[str, Any] = {"audit": True, "event": event, "subject": subject}
        if reason:
            extra_data["reason"] = reason
        if expires_at:
            extra_data["expires_at"] = expires_at

        extra_data = self._enrich_context(extra_data)
        level = logging.WARNING if reason else logging.INFO
        self.logger.log(level, redact(" ".join(msg_parts)), extra=extra_data)


# Global logger instance
logger = ServiceLogger()
