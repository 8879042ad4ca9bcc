"""
Structured logging for the clinical data cleaning pipeline

Every module logs through get_logger(__name__). Records are emitted as JSON
lines (python-json-logger) by default so run ids, stage names and counts
passed via `extra` stay machine readable; text output is available for
local runs.
"""
import logging
import os
import sys
import time

from pythonjsonlogger import jsonlogger

DEFAULT_LOGGER_NAME = "clinical-pipeline"
PACKAGE_LOGGER_PREFIX = "clinical_pipeline"

JSON_FORMAT = "%(timestamp)s %(level)s %(logger)s %(module)s %(function)s %(message)s"
TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter with a fixed set of top-level fields.

    Adds: timestamp, level, logger, module, function. Fields passed through
    `extra` (run_id, stage, records_before, ...) are merged in as-is.
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record.setdefault("timestamp", None)
        if not log_record["timestamp"]:
            log_record["timestamp"] = self.formatTime(record, self.datefmt)

        level = log_record.get("level") or record.levelname
        log_record["level"] = level.upper()
        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName


def _build_formatter(format_type: str) -> logging.Formatter:
    if format_type == "text":
        return logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    return CustomJsonFormatter(fmt=JSON_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: str | None = None,
    format_type: str | None = None,
) -> logging.Logger:
    """
    Configure a logger with a single stdout handler

    Args:
        name: Logger name
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (LOG_LEVEL env var, then INFO)
        format_type: "json" or "text" (LOG_FORMAT env var, then json)

    Returns:
        Configured logger instance
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = LOG_LEVELS.get(level_name, logging.INFO)
    format_type = format_type or os.getenv("LOG_FORMAT", "json")

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(_build_formatter(format_type))
    logger.addHandler(handler)

    logger.propagate = False
    return logger


def configure_logging(level: str | None = None, format_type: str | None = None) -> None:
    """
    Reconfigure every pipeline logger created so far.

    Module loggers are set up at import time from the environment; the CLI
    calls this once its arguments are parsed.
    """
    names = [DEFAULT_LOGGER_NAME] + [
        name for name in logging.root.manager.loggerDict
        if name.startswith(PACKAGE_LOGGER_PREFIX)
    ]
    for name in names:
        setup_logger(name, level=level, format_type=format_type)


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Logger for `name`, set up on first use."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        return setup_logger(name)
    return logger


class log_operation:
    """
    Context manager logging the start, end and duration of a pipeline step

    The elapsed time is kept on `duration` after exit so callers can feed it
    to metrics. Exceptions are logged and re-raised.

    Usage:
        with log_operation("clean", logger=logger, run_id=audit_log.run_id) as step:
            ...
        record_step_duration("clean", step.duration)
    """

    def __init__(self, operation_name: str, logger: logging.Logger | None = None, **extra_fields):
        self.operation_name = operation_name
        self.logger = logger or get_logger()
        self.extra_fields = extra_fields
        self.start_time: float | None = None
        self.duration: float | None = None

    def _extra(self, **fields) -> dict:
        return {"operation": self.operation_name, **fields, **self.extra_fields}

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.info(f"Starting: {self.operation_name}", extra=self._extra())
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.perf_counter() - self.start_time
        elapsed = round(self.duration, 3)

        if exc_type is None:
            self.logger.info(
                f"Completed: {self.operation_name} in {elapsed}s",
                extra=self._extra(duration_seconds=elapsed, status="success"),
            )
        else:
            self.logger.error(
                f"Failed: {self.operation_name} after {elapsed}s",
                extra=self._extra(
                    duration_seconds=elapsed,
                    status="error",
                    error_type=exc_type.__name__,
                    error_message=str(exc_val),
                ),
            )
        return False
