"""Defaults for the caller-facing listing boundary.

Usage
-----
>>> defaults = ListingDefaults()
>>> defaults.default_limit
30

Or load from environment variables:

>>> import os
>>> os.environ["MCPINDEX_DEFAULT_LIMIT"] = "50"
>>> ListingDefaults.from_env().default_limit
50

"""

from __future__ import annotations

import dataclasses as dc
import os

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})


@dc.dataclass(frozen=True, slots=True)
class ListingDefaults:
    """Validated defaults applied once per listing call.

    Attributes
    ----------
    default_limit
        Page size used when the caller omits ``limit``. Default is 30.
    max_limit
        Largest accepted page size. Default is 100.
    min_page_fetch
        Smallest upstream page requested in dynamic mode, so heavily
        filtered pages still make progress. Default is 30.
    default_version
        Version filter used when the caller omits one. Default ``latest``.
    allowlist_enabled
        Serve the default upstream from the static allow-list. Custom
        upstream URLs always use dynamic mode.

    """

    default_limit: int = 30
    max_limit: int = 100
    min_page_fetch: int = 30
    default_version: str = "latest"
    allowlist_enabled: bool = True

    def __post_init__(self) -> None:
        """Reject inconsistent limits."""
        if not 1 <= self.default_limit <= self.max_limit:
            msg = (
                f"default_limit must be between 1 and max_limit ({self.max_limit}), "
                f"got: {self.default_limit}"
            )
            raise ValueError(msg)

    @staticmethod
    def _parse_positive_int(env_var: str, default: int) -> int:
        """Read a positive integer env var, falling back to a default."""
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            msg = f"{env_var} must be an integer, got: {raw!r}"
            raise ValueError(msg) from exc
        if value < 1:
            msg = f"{env_var} must be positive, got: {value}"
            raise ValueError(msg)
        return value

    @staticmethod
    def _parse_bool(env_var: str, *, default: bool) -> bool:
        """Read a boolean env var such as ``1``/``0`` or ``true``/``false``."""
        raw = os.environ.get(env_var, "").strip().lower()
        if not raw:
            return default
        if raw in _TRUTHY:
            return True
        if raw in _FALSY:
            return False
        msg = f"{env_var} must be a boolean flag, got: {raw!r}"
        raise ValueError(msg)

    @classmethod
    def from_env(cls) -> ListingDefaults:
        """Create defaults from environment variables.

        Reads ``MCPINDEX_DEFAULT_LIMIT``, ``MCPINDEX_MAX_LIMIT`` and
        ``MCPINDEX_ALLOWLIST_ENABLED``.

        Raises
        ------
        ValueError
            If a variable is malformed or the limits are inconsistent.

        """
        return cls(
            default_limit=cls._parse_positive_int("MCPINDEX_DEFAULT_LIMIT", 30),
            max_limit=cls._parse_positive_int("MCPINDEX_MAX_LIMIT", 100),
            allowlist_enabled=cls._parse_bool(
                "MCPINDEX_ALLOWLIST_ENABLED", default=True
            ),
        )
