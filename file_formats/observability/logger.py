"""
Logging for the file format adapters.

All package modules log under the ``file_formats`` logger, which writes one
JSON object per line to stdout (python-json-logger) so host log collectors
can index sink, reader and format fields. ``LOG_FORMAT=text`` switches to a
plain layout, ``LOG_LEVEL`` sets the threshold.
"""
import logging
import os
import sys
import time

from pythonjsonlogger import jsonlogger

ROOT_LOGGER_NAME = "file_formats"

JSON_FIELDS = "%(timestamp)s %(level)s %(logger)s %(module)s %(function)s %(message)s"
TEXT_LAYOUT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


class PackageJsonFormatter(jsonlogger.JsonFormatter):
    """Adds source location and process/thread ids to each JSON entry."""

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)
        # required fields missing from the record arrive as None
        if log_record.get("timestamp") is None:
            log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["process_id"] = record.process
        log_record["thread_id"] = record.thread


def _resolve_level(level: str | None) -> int:
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: str | None = None,
    format_type: str | None = None,
) -> logging.Logger:
    """
    Give a logger a single stdout handler.

    Calling it again for the same name replaces the handler.

    Args:
        name: Logger name
        level: Level name, LOG_LEVEL when omitted. Unknown names mean INFO
        format_type: "json" or "text", LOG_FORMAT when omitted
    """
    log_level = _resolve_level(level)
    format_type = (format_type or os.getenv("LOG_FORMAT", "json")).lower()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    if format_type == "json":
        handler.setFormatter(PackageJsonFormatter(fmt=JSON_FIELDS, datefmt="%Y-%m-%dT%H:%M:%S"))
    else:
        handler.setFormatter(logging.Formatter(fmt=TEXT_LAYOUT, datefmt="%Y-%m-%d %H:%M:%S"))

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Logger for a package module, e.g. ``get_logger(__name__)``.

    ``file_formats.*`` loggers have no handler of their own and write
    through the package root logger, set up on first use. Any other name
    gets its own handler.
    """
    if not logging.getLogger(ROOT_LOGGER_NAME).handlers:
        setup_logger(ROOT_LOGGER_NAME)

    logger = logging.getLogger(name)
    in_package = name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + ".")
    if in_package or logger.handlers:
        return logger
    return setup_logger(name)


class log_operation:
    """
    Times a sink or reader step and logs its outcome.

    The elapsed seconds stay on ``duration`` after the block so callers can
    feed them to a histogram. Exceptions are logged and re-raised.

    Usage:
        with log_operation("prepare_run", logger=logger, reference_name="events") as op:
            ...
        metrics.observe_prepare_run("json", op.duration)
    """

    def __init__(self, operation_name: str, logger: logging.Logger | None = None, **extra_fields):
        self.operation_name = operation_name
        self.logger = logger or get_logger()
        self.extra_fields = extra_fields
        self.start_time: float | None = None
        self.duration: float | None = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.info(
            f"{self.operation_name} started",
            extra={"operation": self.operation_name, **self.extra_fields},
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.perf_counter() - self.start_time
        fields = {
            "operation": self.operation_name,
            "duration_seconds": round(self.duration, 3),
            "status": "success" if exc_type is None else "error",
            **self.extra_fields,
        }

        if exc_type is None:
            self.logger.info(f"{self.operation_name} finished", extra=fields)
        else:
            fields["error_type"] = exc_type.__name__
            fields["error_message"] = str(exc_val)
            self.logger.error(f"{self.operation_name} failed", extra=fields, exc_info=True)
        return False
