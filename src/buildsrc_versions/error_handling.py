"""
Error handling for buildsrc-versions.

Exceptions raised by the generator, and the shared handler every module
reports its diagnostics to before raising or continuing.
"""

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple


class BuildSrcVersionsError(Exception):
    """Base class for all generator errors."""


class MalformedGraph(BuildSrcVersionsError):
    """The dependency report is unusable; nothing must be written."""


class AmbiguousConfiguration(BuildSrcVersionsError):
    """A configured override matches no dependency. Reported as a warning."""

    def __init__(self, name: str):
        super().__init__(f"useFqdnFor entry '{name}' matches no dependency")
        self.name = name


class FileUnwritable(BuildSrcVersionsError):
    """A target file could not be created, opened or written."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Cannot write {path}: {reason}")
        self.path = path
        self.reason = reason


class NamingInvariantViolation(BuildSrcVersionsError):
    """Two unrelated dependencies ended up with the same generated name."""


class ErrorLevel(Enum):
    """Severity of a diagnostic, valued as the matching logging level."""

    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


class ErrorCategory(Enum):
    """Stage of the generation run a diagnostic comes from."""

    GRAPH = "graph"
    NAMING = "naming"
    CONFIGURATION = "configuration"
    FILESYSTEM = "filesystem"


@dataclass(frozen=True)
class ErrorContext:
    """One diagnostic produced during a generation run."""

    level: ErrorLevel
    category: ErrorCategory
    message: str
    location: str  # module.function
    details: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[BaseException] = None
    suggestions: Tuple[str, ...] = ()

    def describe(self) -> str:
        parts = [f"[{self.category.value}] {self.message} ({self.location})"]
        if self.details:
            parts.append(
                ", ".join(f"{key}={value}" for key, value in sorted(self.details.items()))
            )
        if self.exception is not None:
            parts.append(f"{type(self.exception).__name__}: {self.exception}")
        return " | ".join(parts)


ErrorCallback = Callable[[ErrorContext], None]


class ErrorHandler:
    """
    Central sink for generator diagnostics.

    Each diagnostic is logged once, counted per category and level, and handed
    to the callbacks subscribed to its category. A failing callback is logged
    and never interrupts generation.
    """

    def __init__(
        self, log_level: int = logging.WARNING, logger_name: str = "buildsrc_versions"
    ):
        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(log_level)
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
            self.logger.addHandler(handler)

        self.callbacks: Dict[Optional[ErrorCategory], List[ErrorCallback]] = defaultdict(list)
        self.counts: Counter = Counter()

    def register_callback(
        self, callback: ErrorCallback, category: Optional[ErrorCategory] = None
    ) -> None:
        """Call ``callback`` for every diagnostic of ``category``, or of any category."""
        self.callbacks[category].append(callback)

    def report(
        self,
        level: ErrorLevel,
        category: ErrorCategory,
        message: str,
        location: str,
        details: Optional[Dict[str, Any]] = None,
        exception: Optional[BaseException] = None,
        suggestions: Iterable[str] = (),
    ) -> ErrorContext:
        context = ErrorContext(
            level=level,
            category=category,
            message=message,
            location=location,
            details=dict(details or {}),
            exception=exception,
            suggestions=tuple(suggestions),
        )
        self.counts[f"{category.name}_{level.name}"] += 1

        debugging = self.logger.isEnabledFor(logging.DEBUG)
        self.logger.log(
            level.value, context.describe(), exc_info=exception if debugging else None
        )
        for suggestion in context.suggestions:
            self.logger.debug("hint: %s", suggestion)

        for callback in self.callbacks.get(category, []) + self.callbacks.get(None, []):
            try:
                callback(context)
            except Exception:
                self.logger.exception("Error callback %r failed", callback)

        return context

    def warning(
        self, category: ErrorCategory, message: str, location: str, **kwargs
    ) -> ErrorContext:
        return self.report(ErrorLevel.WARNING, category, message, location, **kwargs)

    def error(
        self, category: ErrorCategory, message: str, location: str, **kwargs
    ) -> ErrorContext:
        return self.report(ErrorLevel.ERROR, category, message, location, **kwargs)

    def critical(
        self, category: ErrorCategory, message: str, location: str, **kwargs
    ) -> ErrorContext:
        return self.report(ErrorLevel.CRITICAL, category, message, location, **kwargs)

    def get_error_stats(self) -> Dict[str, int]:
        return dict(self.counts)


_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    global _error_handler
    if _error_handler is None:
        _error_handler = ErrorHandler()
    return _error_handler


def setup_error_handling(log_level: int = logging.WARNING) -> ErrorHandler:
    """Replace the shared handler with one logging at ``log_level``."""
    global _error_handler
    _error_handler = ErrorHandler(log_level)
    return _error_handler


def log_graph_error(
    message: str,
    location: str,
    section: Optional[str] = None,
    index: Optional[int] = None,
    exception: Optional[BaseException] = None,
) -> ErrorContext:
    """
    Report an unusable dependency report.

    Args:
        message: What is wrong with the report
        location: Reporting function, as ``module.function``
        section: Report section (current, outdated, ...)
        index: Position of the offending entry in its section
        exception: Decoding error, if any
    """
    details = {
        key: value
        for key, value in (("section", section), ("index", index))
        if value is not None
    }
    return get_error_handler().error(
        ErrorCategory.GRAPH,
        message,
        location,
        details=details,
        exception=exception,
        suggestions=(
            "Regenerate the report with ./gradlew dependencyUpdates",
            "Check that every dependency has a group and a name",
        ),
    )


def log_configuration_warning(message: str, location: str, name: str) -> ErrorContext:
    """Report a naming override that matches no dependency."""
    return get_error_handler().warning(
        ErrorCategory.CONFIGURATION,
        message,
        location,
        details={"name": name},
        suggestions=("Remove stale entries from naming.use_fqdn_for",),
    )


def log_filesystem_error(
    message: str, location: str, file_path: Path, exception: OSError
) -> ErrorContext:
    """Report a generated file that could not be written."""
    return get_error_handler().error(
        ErrorCategory.FILESYSTEM,
        message,
        location,
        details={"file_name": file_path.name},
        exception=exception,
        suggestions=(
            "Check that the directory exists and is writable",
            "Make sure no other generation task writes the same file",
        ),
    )
