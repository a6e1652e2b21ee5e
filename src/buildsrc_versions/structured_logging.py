"""
Structured logging configuration for buildsrc-versions.

Emits one JSON object per event so generation runs can be traced by
machines as well as read by people.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Attributes every LogRecord carries; anything else was passed through extra=
_RESERVED_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
        }
        message = record.getMessage()
        if message:
            log_entry["message"] = message

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRIBUTES:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class GenerationLogger:
    """Structured logger for one concern of a generation run."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(f"buildsrc_versions.{name}")
        self._setup_logger()
        self.run_context: Dict[str, Any] = {}

    def _setup_logger(self) -> None:
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.propagate = False
            self.logger.setLevel(logging.WARNING)

    def set_run_context(
        self,
        run_id: Optional[str] = None,
        report_path: Optional[str] = None,
        total_dependencies: Optional[int] = None,
    ) -> None:
        self.run_context = {}
        if run_id:
            self.run_context["run_id"] = run_id
        if report_path:
            self.run_context["report_path"] = report_path
        if total_dependencies is not None:
            self.run_context["total_dependencies"] = total_dependencies

    def clear_run_context(self) -> None:
        self.run_context.clear()

    def _log(self, level: str, event_type: str, **kwargs) -> None:
        log_data = {"event_type": event_type, **self.run_context, **kwargs}
        getattr(self.logger, level)("", extra=log_data)

    def info(self, event_type: str, **kwargs) -> None:
        self._log("info", event_type, **kwargs)

    def error(self, event_type: str, **kwargs) -> None:
        self._log("error", event_type, **kwargs)

    def debug(self, event_type: str, **kwargs) -> None:
        self._log("debug", event_type, **kwargs)


_graph_logger = GenerationLogger("graph")
_naming_logger = GenerationLogger("naming")
_properties_logger = GenerationLogger("properties")
_render_logger = GenerationLogger("render")

_ALL_LOGGERS = [_graph_logger, _naming_logger, _properties_logger, _render_logger]


def get_graph_logger() -> GenerationLogger:
    return _graph_logger


def get_naming_logger() -> GenerationLogger:
    return _naming_logger


def get_properties_logger() -> GenerationLogger:
    return _properties_logger


def get_render_logger() -> GenerationLogger:
    return _render_logger


def log_generation_start(run_id: str, report_path: str, total_dependencies: int) -> None:
    """Log generation start and set the run context on every logger."""
    set_run_context(run_id, report_path, total_dependencies)
    _graph_logger.info("generation_started")


def log_generation_complete(
    run_id: str,
    duration_ms: int,
    version_symbols: int,
    library_symbols: int,
    warnings_count: int = 0,
) -> None:
    """Log generation completion and clear the run context."""
    _render_logger.info(
        "generation_completed",
        run_id=run_id,
        duration_ms=duration_ms,
        version_symbols=version_symbols,
        library_symbols=library_symbols,
        warnings=warnings_count,
    )
    clear_run_context()


def log_symbol_assignment(
    coordinate: str, mode: str, symbol_name: str, coordinate_symbol_name: str
) -> None:
    _naming_logger.debug(
        "symbol_assigned",
        coordinate=coordinate,
        mode=mode,
        symbol_name=symbol_name,
        coordinate_symbol_name=coordinate_symbol_name,
    )


def log_properties_merge(
    file_path: str, kept_lines: int, removed_lines: int, generated_lines: int
) -> None:
    _properties_logger.info(
        "properties_merged",
        file_path=file_path,
        kept_lines=kept_lines,
        removed_lines=removed_lines,
        generated_lines=generated_lines,
    )


def set_run_context(
    run_id: Optional[str] = None,
    report_path: Optional[str] = None,
    total_dependencies: Optional[int] = None,
) -> None:
    """Set the run context for all loggers."""
    for logger in _ALL_LOGGERS:
        logger.set_run_context(run_id, report_path, total_dependencies)


def clear_run_context() -> None:
    for logger in _ALL_LOGGERS:
        logger.clear_run_context()


def configure_logging(log_level: str = "WARNING") -> None:
    """Configure logging levels for the application."""
    level = getattr(logging, log_level.upper(), logging.WARNING)
    for logger in _ALL_LOGGERS:
        logger.logger.setLevel(level)
