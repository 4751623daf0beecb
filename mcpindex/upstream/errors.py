"""Upstream registry errors."""

from __future__ import annotations


class RegistryTransportError(RuntimeError):
    """Raised when the upstream registry cannot serve a request."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int, url: str) -> RegistryTransportError:
        """Return an error for non-2xx HTTP responses."""
        return cls(f"Registry HTTP {status_code} for {url}", status_code=status_code)

    @classmethod
    def timeout(cls, url: str) -> RegistryTransportError:
        """Return an error for a request that exceeded the client timeout."""
        return cls(f"Registry request timed out: {url}")

    @classmethod
    def unreachable(cls, url: str, cause: BaseException) -> RegistryTransportError:
        """Return an error for connection-level failures."""
        return cls(f"Registry unreachable at {url}: {cause}")


class RegistryResponseShapeError(RuntimeError):
    """Raised when a registry payload is missing expected fields."""

    @classmethod
    def missing(cls, field: str) -> RegistryResponseShapeError:
        """Return an error for a missing or mistyped payload field."""
        return cls(f"Registry response missing expected field: {field}")

    @classmethod
    def undecodable(cls, url: str, cause: BaseException) -> RegistryResponseShapeError:
        """Return an error for a body that could not be decoded."""
        return cls(f"Registry response from {url} could not be decoded: {cause}")


class RegistryConfigError(RuntimeError):
    """Raised when registry client configuration is invalid."""

    @classmethod
    def empty_endpoint(cls) -> RegistryConfigError:
        """Return an error when the configured endpoint is blank."""
        return cls("Registry endpoint must be non-empty")

    @classmethod
    def invalid_timeout(cls, raw: str) -> RegistryConfigError:
        """Return an error for a malformed ``MCPINDEX_HTTP_TIMEOUT_S`` value."""
        return cls(f"MCPINDEX_HTTP_TIMEOUT_S must be a positive number, got: {raw!r}")
