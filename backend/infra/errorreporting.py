"""
Error reporting for background processes.

The worker sends every failed tick here; the console provider writes a
structured error line, the noop provider drops it.
"""

from typing import Protocol

from backend.config.logging import get_logger
from backend.config.settings import ErrorReportingProvider, Settings

logger = get_logger(__name__)


class ErrorReporter(Protocol):
    """Protocol for error reporting backends."""

    def capture_exception(
        self, error: BaseException, attrs: dict[str, str] | None = None
    ) -> None:
        ...


class NoopReporter:
    def capture_exception(
        self, error: BaseException, attrs: dict[str, str] | None = None
    ) -> None:
        return None


class ConsoleReporter:
    """Log captured exceptions through structlog."""

    def capture_exception(
        self, error: BaseException, attrs: dict[str, str] | None = None
    ) -> None:
        logger.error(
            "Captured exception",
            exception=error.__class__.__name__,
            error=str(error),
            exc_info=error,
            **(attrs or {}),
        )


_DISABLED = {"none", "noop", "disabled", "off"}


def build_error_reporter(settings: Settings) -> ErrorReporter:
    """Create the error reporter selected by ERROR_REPORTING_PROVIDER."""
    provider = settings.error_reporting_provider.strip().lower()
    if provider in ("", ErrorReportingProvider.CONSOLE.value):
        return ConsoleReporter()
    if provider in _DISABLED:
        return NoopReporter()
    raise ValueError(
        f"Unknown ERROR_REPORTING_PROVIDER {settings.error_reporting_provider!r} "
        "(expected console|none)"
    )
