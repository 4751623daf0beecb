"""Structured sync-run events and error categorisation.

Events are emitted through femtologging as ``[event] key=value`` lines so log
aggregators can parse them without a separate metrics pipeline.

Usage
-----
>>> event_logger = SyncEventLogger()
>>> event_logger.log_run_started(registry_url=None, max_apps=50)

"""

from __future__ import annotations

import enum
import typing as typ

from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)

from mcpindex.logging import get_logger, log_error, log_info, log_warning
from mcpindex.upstream.errors import (
    RegistryConfigError,
    RegistryResponseShapeError,
    RegistryTransportError,
)

if typ.TYPE_CHECKING:
    from mcpindex.catalog.sync import SyncResult

logger = get_logger(__name__)

_HTTP_SERVER_ERROR_THRESHOLD = 500
_HTTP_TOO_MANY_REQUESTS = 429


class SyncEventType(enum.StrEnum):
    """Structured log event types for sync runs."""

    RUN_STARTED = "sync.run.started"
    RUN_COMPLETED = "sync.run.completed"
    RUN_FAILED = "sync.run.failed"
    ITEM_FAILED = "sync.item.failed"
    PAGE_FETCHED = "sync.page.fetched"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    DATABASE_CONNECTIVITY = "database_connectivity"
    DATA_INTEGRITY = "data_integrity"
    DATABASE_ERROR = "database_error"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (RegistryResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (RegistryConfigError, ErrorCategory.CONFIGURATION),
    (OperationalError, ErrorCategory.DATABASE_CONNECTIVITY),
    (InterfaceError, ErrorCategory.DATABASE_CONNECTIVITY),
    (IntegrityError, ErrorCategory.DATA_INTEGRITY),
    (SQLAlchemyError, ErrorCategory.DATABASE_ERROR),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an exception for alert routing.

    Transport errors without a status (timeouts, refused connections), 5xx
    and 429 responses are transient; other HTTP statuses are client errors.
    """
    if isinstance(exc, RegistryTransportError):
        status = exc.status_code
        if (
            status is None
            or status >= _HTTP_SERVER_ERROR_THRESHOLD
            or status == _HTTP_TOO_MANY_REQUESTS
        ):
            return ErrorCategory.TRANSIENT
        return ErrorCategory.CLIENT_ERROR

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    return ErrorCategory.UNKNOWN


class SyncEventLogger:
    """Emit structured sync events via femtologging."""

    def log_run_started(
        self, *, registry_url: str | None, max_apps: int | None
    ) -> None:
        """Log the start of a sync run."""
        log_info(
            logger,
            "[%s] registry_url=%s max_apps=%s",
            SyncEventType.RUN_STARTED,
            registry_url or "official",
            max_apps,
        )

    def log_page_fetched(
        self, *, page: int, items: int, has_next_cursor: bool
    ) -> None:
        """Log one upstream page fetched during a sync run."""
        log_info(
            logger,
            "[%s] page=%d items=%d has_next_cursor=%s",
            SyncEventType.PAGE_FETCHED,
            page,
            items,
            has_next_cursor,
        )

    def log_item_failed(self, *, server_name: str, error: BaseException) -> None:
        """Log a recovered per-item failure."""
        log_warning(
            logger,
            "[%s] server_name=%s error_type=%s error_category=%s error_message=%s",
            SyncEventType.ITEM_FAILED,
            server_name,
            type(error).__name__,
            categorize_error(error),
            str(error),
        )

    def log_run_completed(self, result: SyncResult) -> None:
        """Log a sync run that reached the end of the feed or its cap.

        Parameters
        ----------
        result
            Final counters for the run.

        """
        log_info(
            logger,
            "[%s] synced=%d skipped=%d errors=%d duration_ms=%.3f",
            SyncEventType.RUN_COMPLETED,
            result.synced,
            result.skipped,
            result.errors,
            result.duration_ms,
        )

    def log_run_failed(self, result: SyncResult, error: BaseException) -> None:
        """Log a sync run ended early by a page-fetch failure.

        Parameters
        ----------
        result
            Partial counters accumulated before the failure.
        error
            The exception raised by the page fetch.

        """
        log_error(
            logger,
            "[%s] synced=%d skipped=%d errors=%d duration_ms=%.3f "
            "error_type=%s error_category=%s error_message=%s",
            SyncEventType.RUN_FAILED,
            result.synced,
            result.skipped,
            result.errors,
            result.duration_ms,
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )
