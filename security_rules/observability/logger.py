"""
Structured JSON logging for the security rules client

This module provides consistent structured logging across the client
using python-json-logger, so backend calls and release outcomes can be
parsed by log pipelines.
"""
import asyncio
import logging
import os
import sys
import time

from pythonjsonlogger import jsonlogger

from security_rules.core.errors import SecurityRulesError

DEFAULT_LOGGER_NAME = "security-rules"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter adding timestamp, level, logger and call site fields
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = self.formatTime(record, self.datefmt)

        if log_record.get("level"):
            log_record["level"] = log_record["level"].upper()
        else:
            log_record["level"] = record.levelname

        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: str | None = None,
    format_type: str | None = None,
) -> logging.Logger:
    """
    Setup and configure a logger

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL), LOG_LEVEL env var by default
        format_type: "json" or "text", LOG_FORMAT env var by default

    Returns:
        Configured logger instance
    """
    log_level_str = level or os.getenv("LOG_LEVEL", "INFO")
    log_level = LOG_LEVELS.get(log_level_str.upper(), logging.INFO)
    format_type = format_type or os.getenv("LOG_FORMAT", "json")

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.handlers.clear()

    # stderr keeps stdout free for CLI output
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)

    if format_type == "json":
        formatter = CustomJsonFormatter(
            fmt="%(timestamp)s %(level)s %(logger)s %(module)s %(function)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger instance

    Child loggers ("security-rules.client") inherit the handler of the
    configured parent; a bare logger is configured on first use.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    root_name = name.split(".", 1)[0]
    if root_name != name and logging.getLogger(root_name).handlers:
        return logger

    return setup_logger(name)


class log_call:
    """
    Context manager logging the outcome and duration of a backend call

    Usage:
        with log_call("get_ruleset", logger=logger, ruleset="my-ruleset"):
            ruleset = await backend.get_ruleset(path)
    """

    def __init__(self, operation: str, logger: logging.Logger | None = None, **extra_fields):
        self.operation = operation
        self.logger = logger or get_logger()
        self.extra_fields = extra_fields
        self.start_time: float | None = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.debug(
            f"Starting: {self.operation}",
            extra={"operation": self.operation, **self.extra_fields},
        )
        return self

    @property
    def duration(self) -> float:
        if self.start_time is None:
            return 0.0
        return time.perf_counter() - self.start_time

    def __exit__(self, exc_type, exc_val, exc_tb):
        fields = {
            "operation": self.operation,
            "duration_seconds": round(self.duration, 3),
            **self.extra_fields,
        }

        if exc_type is None:
            self.logger.info(f"Completed: {self.operation}", extra={"status": "success", **fields})
        elif exc_type is asyncio.CancelledError:
            self.logger.warning(f"Cancelled: {self.operation}", extra={"status": "cancelled", **fields})
        elif isinstance(exc_val, SecurityRulesError):
            self.logger.warning(
                f"Failed: {self.operation}",
                extra={
                    "status": "error",
                    "error_code": exc_val.code,
                    "error_message": exc_val.message,
                    **fields,
                },
            )
        else:
            self.logger.error(
                f"Failed: {self.operation}",
                extra={
                    "status": "error",
                    "error_type": exc_type.__name__,
                    "error_message": str(exc_val),
                    **fields,
                },
                exc_info=(exc_type, exc_val, exc_tb),
            )
        return False
