from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

import structlog
from structlog.typing import EventDict, Processor

from backend.app.config import AppSettings

LOGGER_NAME = "article_translator"
TELEMETRY_LOGGER_NAME = "article_translator.telemetry"
LOG_FILE_NAME = "article-translator.log"
TELEMETRY_LOG_FILE_NAME = "article-translator-telemetry.log"


def configure_application_logging(settings: AppSettings) -> Path:
    """
    Route API logs to the console and a JSON log file under `settings.log_dir`.

    Telemetry events get their own JSON file, written only when the telemetry
    sink is `log`; otherwise no telemetry file is created.
    """
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    log_file = settings.log_dir / LOG_FILE_NAME

    _configure_structlog()
    logger = _prepare_logger(LOGGER_NAME, level=logging.DEBUG)
    logger.addHandler(
        _console_handler(sys.stdout, level=_resolve_log_level(settings.log_level))
    )
    logger.addHandler(_json_file_handler(log_file, level=logging.DEBUG))

    telemetry_log_file: Path | None = None
    if settings.telemetry_enabled and settings.telemetry_sink == "log":
        telemetry_log_file = settings.log_dir / TELEMETRY_LOG_FILE_NAME
        telemetry_logger = _prepare_logger(TELEMETRY_LOGGER_NAME, level=logging.INFO)
        telemetry_logger.addHandler(_json_file_handler(telemetry_log_file, level=logging.INFO))

    logger.info(
        "logging configured console_level=%s path=%s telemetry_path=%s sarvam_configured=%s",
        settings.log_level.upper(),
        log_file,
        telemetry_log_file,
        settings.sarvam_api_key is not None,
    )
    return log_file


def configure_cli_logging(*, verbose: bool) -> None:
    """Console-only logging on stderr so command output on stdout stays clean."""
    _configure_structlog()
    logger = _prepare_logger(LOGGER_NAME, level=logging.DEBUG if verbose else logging.WARNING)
    logger.addHandler(_console_handler(sys.stderr, level=logging.DEBUG))


def _resolve_log_level(raw_level: str) -> int:
    resolved = getattr(logging, raw_level.strip().upper(), None)
    return resolved if isinstance(resolved, int) else logging.INFO


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _prepare_logger(name: str, *, level: int) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    return logger


def _console_handler(stream: TextIO, *, level: int) -> logging.Handler:
    handler = logging.StreamHandler(stream=stream)
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_shared_pre_chain(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.dev.ConsoleRenderer(colors=_stream_supports_color(stream)),
            ],
        )
    )
    return handler


def _json_file_handler(path: Path, *, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_shared_pre_chain(),
            processors=[
                _add_source_location,
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(sort_keys=True),
            ],
        )
    )
    return handler


def _shared_pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
    ]


def _add_source_location(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord):
        event_dict["module"] = record.module
        event_dict["lineno"] = record.lineno
    return event_dict


def _stream_supports_color(stream: TextIO) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False
