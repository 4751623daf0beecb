"""Exclusion rules deciding which registry entries are indexable."""

from __future__ import annotations

import dataclasses
import typing as typ

if typ.TYPE_CHECKING:
    from mcpindex.upstream.models import CatalogEntity

DEFAULT_EXCLUDED_WORDS: tuple[str, ...] = ("local", "test", "demo", "example")

# Names known to resolve upstream but unusable as hosted servers.
DEFAULT_BLACKLIST: frozenset[str] = frozenset(
    {
        "io.github.modelcontextprotocol/everything",
        "io.github.modelcontextprotocol/filesystem",
        "io.github.modelcontextprotocol/memory",
        "io.github.modelcontextprotocol/sequentialthinking",
    }
)


@dataclasses.dataclass(frozen=True, slots=True)
class ExclusionPolicy:
    """Immutable skip rules shared by the sync and listing engines.

    Attributes
    ----------
    blacklist
        Exact server names that are never indexed.
    excluded_words
        Lower-case substrings; a name containing any of them is skipped.

    """

    blacklist: frozenset[str] = DEFAULT_BLACKLIST
    excluded_words: tuple[str, ...] = DEFAULT_EXCLUDED_WORDS

    def is_blacklisted(self, name: str) -> bool:
        """Return True when ``name`` is on the blacklist."""
        return name in self.blacklist

    def has_excluded_word(self, name: str) -> bool:
        """Return True when ``name`` contains an excluded word, ignoring case."""
        lowered = name.lower()
        return any(word in lowered for word in self.excluded_words)

    def should_skip(
        self, entity: CatalogEntity, *, only_with_remotes: bool = False
    ) -> bool:
        """Return True when ``entity`` must not be indexed or served.

        Parameters
        ----------
        entity
            Upstream entity under consideration.
        only_with_remotes
            When set, entities without any remote endpoint are skipped.

        Returns
        -------
        bool
            True if any exclusion clause matches.

        """
        if self.is_blacklisted(entity.name) or self.has_excluded_word(entity.name):
            return True
        return only_with_remotes and not entity.remotes
