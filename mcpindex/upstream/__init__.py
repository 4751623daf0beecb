"""Registry HTTP client and wire models."""

from __future__ import annotations

from .client import (
    LATEST_VERSION,
    OFFICIAL_REGISTRY_URL,
    RegistryClientConfig,
    RegistryFeed,
    RegistryHTTPClient,
    RegistryPage,
    ServerQuery,
)
from .errors import (
    RegistryConfigError,
    RegistryResponseShapeError,
    RegistryTransportError,
)
from .models import (
    CatalogEntity,
    OfficialMeta,
    ServerEnvelope,
    entity_from_envelope,
    envelope_name,
)

__all__ = [
    "LATEST_VERSION",
    "OFFICIAL_REGISTRY_URL",
    "CatalogEntity",
    "OfficialMeta",
    "RegistryClientConfig",
    "RegistryConfigError",
    "RegistryFeed",
    "RegistryHTTPClient",
    "RegistryPage",
    "RegistryResponseShapeError",
    "RegistryTransportError",
    "ServerEnvelope",
    "ServerQuery",
    "entity_from_envelope",
    "envelope_name",
]
