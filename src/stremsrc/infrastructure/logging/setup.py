"""structlog on top of stdlib logging.

Every record, whether emitted through structlog or by a stdlib logger
(uvicorn, httpx), ends up in one ``ProcessorFormatter`` and is rendered
as console text or JSON lines.  Output goes to stderr only, so the CLI's
``--resolve`` JSON on stdout stays machine-readable.
"""

from __future__ import annotations

import logging
import logging.config
from datetime import datetime, timezone
from typing import Any

import structlog

from stremsrc.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)

# Loggers pinned to WARNING regardless of the configured level
_QUIET_LOGGERS = ("httpx", "httpcore", "hpack")

_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _strip_uvicorn_color(_: Any, __: Any, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.pop("color_message", None)
    return event_dict


def _stamp_foreign_record(_: Any, __: Any, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Use the stdlib record's own creation time (UTC, ``Z`` suffix)."""
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord) and "timestamp" not in event_dict:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        event_dict["timestamp"] = created.isoformat().replace("+00:00", "Z")
    return event_dict


def _final_renderer(log_format: str | None) -> structlog.typing.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def build_logging_config(config: AppConfig) -> dict[str, Any]:
    """dictConfig for the whole process (also handed to uvicorn)."""
    level = config.log_level
    stderr_handler = {
        "class": "logging.StreamHandler",
        "stream": "ext://sys.stderr",
        "formatter": "structlog",
    }

    loggers: dict[str, Any] = {
        name: {"handlers": ["stderr"], "level": level, "propagate": False}
        for name in _SERVER_LOGGERS
    }
    loggers.update({name: {"level": "WARNING"} for name in _QUIET_LOGGERS})

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structlog": {
                "()": structlog.stdlib.ProcessorFormatter,
                "foreign_pre_chain": [
                    _strip_uvicorn_color,
                    structlog.contextvars.merge_contextvars,
                    _stamp_foreign_record,
                    structlog.stdlib.add_logger_name,
                    structlog.stdlib.add_log_level,
                ],
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    _final_renderer(config.log_format),
                ],
            }
        },
        "handlers": {"stderr": stderr_handler},
        "loggers": loggers,
        "root": {"handlers": ["stderr"], "level": level},
    }


def configure_logging(config: AppConfig) -> dict[str, Any]:
    """Install structlog and the stdlib handlers; return the dictConfig."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging_config = build_logging_config(config)
    logging.config.dictConfig(logging_config)

    log.info("logging_configured", format=config.log_format, level=config.log_level)
    return logging_config
