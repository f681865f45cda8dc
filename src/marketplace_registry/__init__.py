"""Marketplace Registry - a catalog of plugin agents, commands and skills."""

from marketplace_registry.config import MarketplaceConfig
from marketplace_registry.exceptions import (
    ConfigurationError,
    ManifestError,
    ManifestErrorKind,
    MarketplaceError,
    NotFoundError,
)
from marketplace_registry.holder import CatalogHolder
from marketplace_registry.models import EntityKind, EntityRef
from marketplace_registry.registry import (
    Catalog,
    entities_for,
    list_plugins,
    load_catalog,
    load_entity_body,
    resolve_plugin,
)
from marketplace_registry.store import FileSystemStore, InMemoryStore

__version__ = "0.1.0"
__all__ = [
    "Catalog",
    "CatalogHolder",
    "ConfigurationError",
    "EntityKind",
    "EntityRef",
    "FileSystemStore",
    "InMemoryStore",
    "ManifestError",
    "ManifestErrorKind",
    "MarketplaceConfig",
    "MarketplaceError",
    "NotFoundError",
    "entities_for",
    "list_plugins",
    "load_catalog",
    "load_entity_body",
    "resolve_plugin",
    "__version__",
]
