"""Catalog-level exceptions raised at the listing and lookup boundary."""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for catalog errors surfaced to callers."""


class ServerNotFoundError(CatalogError):
    """Raised when a server id resolves to no upstream entry.

    Attributes
    ----------
    server_id
        The ``name`` or ``name:version`` identifier that was requested.

    """

    def __init__(self, server_id: str) -> None:
        """Initialise with the identifier that could not be resolved."""
        self.server_id = server_id
        super().__init__(f"Server not found: {server_id}")


class InvalidServerIdError(CatalogError):
    """Raised when a lookup is attempted without a usable identifier."""

    def __init__(self, field: str = "id") -> None:
        """Initialise with the name of the missing input field."""
        self.field = field
        super().__init__(f"{field} must be a non-empty string")


class InvalidListRequestError(CatalogError):
    """Raised when listing input fails validation.

    Attributes
    ----------
    reason
        Human-readable description of the validation failure.
    field
        Optional name of the input field that failed validation.

    """

    def __init__(self, reason: str, *, field: str | None = None) -> None:
        """Initialise with a reason and optional field name."""
        self.reason = reason
        self.field = field
        message = f"{field}: {reason}" if field is not None else reason
        super().__init__(message)

    @classmethod
    def limit_out_of_range(cls, limit: int, maximum: int) -> InvalidListRequestError:
        """Return an error for a page size outside ``1..maximum``."""
        return cls(f"must be between 1 and {maximum}, got {limit}", field="limit")

    @classmethod
    def bad_cursor(cls, cursor: str) -> InvalidListRequestError:
        """Return an error for an allow-list cursor that is not an offset."""
        return cls(
            f"must be a non-negative integer offset, got {cursor!r}", field="cursor"
        )

    @classmethod
    def bad_where(cls, detail: str) -> InvalidListRequestError:
        """Return an error for a filter expression that is not an object."""
        return cls(detail, field="where")


class IndexUnavailableError(CatalogError):
    """Raised when an index operation is requested without a record store."""

    def __init__(self) -> None:
        """Initialise with a fixed message."""
        super().__init__("No index database is configured")
