"""Swappable reference to the active catalog."""

from __future__ import annotations

import logging
import threading

from marketplace_registry.exceptions import ConfigurationError
from marketplace_registry.registry import Catalog, ManifestSource, load_catalog
from marketplace_registry.store import EntityStore

logger = logging.getLogger(__name__)


class CatalogHolder:
    """
    Holds the catalog a host process is currently serving.

    Inject one holder into whatever needs the catalog. Readers take
    ``holder.current`` once and keep using that snapshot; a reload builds a
    new catalog and swaps the reference, so in-flight readers never see a
    half-loaded state.

    Example:
        ```python
        from marketplace_registry.holder import CatalogHolder

        holder = CatalogHolder()
        holder.reload(".claude-plugin/marketplace.json")

        catalog = holder.current
        print([p.id for p in catalog.list_plugins()])
        ```
    """

    def __init__(self, catalog: Catalog | None = None):
        self._catalog = catalog
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._catalog is not None

    @property
    def current(self) -> Catalog:
        """
        The active catalog.

        Raises:
            ConfigurationError: If no catalog has been loaded yet.
        """
        catalog = self._catalog
        if catalog is None:
            raise ConfigurationError("No catalog has been loaded")
        return catalog

    def swap(self, catalog: Catalog) -> Catalog | None:
        """
        Install a prebuilt catalog.

        Args:
            catalog: The catalog to make active.

        Returns:
            The previously active catalog, or None.
        """
        with self._lock:
            previous, self._catalog = self._catalog, catalog
        return previous

    def reload(
        self, manifest_source: ManifestSource, store: EntityStore | None = None
    ) -> Catalog:
        """
        Load a manifest and make it the active catalog.

        The new catalog is built before the lock is taken. If loading fails
        the previous catalog stays active and the error propagates.

        Args:
            manifest_source: Path to a JSON manifest, or decoded manifest data.
            store: Optional entity store, as for ``load_catalog``.

        Returns:
            The newly active catalog.
        """
        catalog = load_catalog(manifest_source, store)
        self.swap(catalog)
        logger.info(f"Activated catalog with {len(catalog)} plugin(s)")
        return catalog
