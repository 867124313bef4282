"""
Logging Configuration - Structured logging setup for the concept mapper

Part of the Concept Mapper implementation.

License: MIT
"""

import logging
import logging.config
import sys
import os
import json
from typing import Optional
from datetime import datetime

import structlog

# Attributes every LogRecord carries; anything else came in through extra=
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


def setup_logging(
    level: str = "INFO",
    format_type: str = "simple",
    log_file: Optional[str] = None,
) -> None:
    """
    Setup logging for the concept mapper.

    Environment variables LOG_LEVEL, LOG_FORMAT and LOG_FILE take precedence
    over the arguments; ENVIRONMENT=production switches to structlog JSON.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Format type ('simple', 'detailed', 'json')
        log_file: Optional log file path
    """
    log_level = os.getenv("LOG_LEVEL", level).upper()
    log_format = os.getenv("LOG_FORMAT", format_type).lower()
    log_file_path = os.getenv("LOG_FILE", log_file)

    if os.getenv("ENVIRONMENT", "development") == "production":
        setup_production_logging(log_level, log_file_path)
    else:
        setup_development_logging(log_level, log_format, log_file_path)

    configure_external_loggers()


def setup_production_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Setup production logging: every record rendered as JSON by structlog.

    Args:
        level: Logging level
        log_file: Optional log file path
    """
    shared_processors = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=[structlog.stdlib.filter_by_level]
        + shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "json",
            "stream": sys.stdout,
        }
    }
    if log_file:
        handlers["file"] = _file_handler(level, "json", log_file)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        structlog.processors.format_exc_info,
                        structlog.processors.JSONRenderer(),
                    ],
                }
            },
            "handlers": handlers,
            "root": {"level": level, "handlers": list(handlers.keys())},
        }
    )

    logger = logging.getLogger(__name__)
    logger.info(
        "Production logging configured",
        extra={"level": level, "file_logging": log_file is not None},
    )


def setup_development_logging(
    level: str = "DEBUG", format_type: str = "simple", log_file: Optional[str] = None
) -> None:
    """
    Setup development logging with readable format.

    Args:
        level: Logging level
        format_type: Format type ('simple', 'detailed', 'json')
        log_file: Optional log file path
    """
    if format_type not in ("simple", "detailed", "json"):
        format_type = "simple"

    setup_standard_logging(level, format_type, log_file)

    logger = logging.getLogger(__name__)
    logger.info(f"Development logging configured: level={level}, format={format_type}")


def setup_standard_logging(
    level: str = "INFO", format_type: str = "simple", log_file: Optional[str] = None
) -> None:
    """
    Setup standard Python logging.

    Args:
        level: Logging level
        format_type: Format type
        log_file: Optional log file path
    """
    formatters = {
        "simple": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
        "detailed": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(funcName)s - %(message)s"
        },
        "json": {"()": "concept_mapper.infrastructure.logging_config.JSONFormatter"},
    }

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": format_type,
            "stream": sys.stdout,
        }
    }
    if log_file:
        handlers["file"] = _file_handler(level, format_type, log_file)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": formatters,
            "handlers": handlers,
            "root": {"level": level, "handlers": list(handlers.keys())},
        }
    )


def _file_handler(level: str, formatter: str, log_file: str) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": formatter,
        "filename": log_file,
        "maxBytes": 10485760,  # 10MB
        "backupCount": 5,
    }


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging without structlog processors.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Fields passed through extra=
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_entry[key] = value

        return json.dumps(log_entry, default=str, ensure_ascii=False)


def configure_external_loggers() -> None:
    """
    Configure logging levels for external libraries.
    """
    external_loggers = {
        "urllib3.connectionpool": "WARNING",
        "openai": "WARNING",
        "httpx": "WARNING",
        "httpcore": "WARNING",
        "uvicorn.access": "WARNING",
    }

    for logger_name, level in external_loggers.items():
        logging.getLogger(logger_name).setLevel(getattr(logging, level))
