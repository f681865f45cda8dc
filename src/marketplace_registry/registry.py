"""Plugin catalog loading and lookup for Marketplace Registry."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, cast

from marketplace_registry.exceptions import ConfigurationError, ManifestError, NotFoundError
from marketplace_registry.manifest import (
    MarketplaceManifest,
    PluginEntry,
    content_root_for,
    parse_manifest,
    read_manifest,
)
from marketplace_registry.models import (
    Agent,
    Command,
    Entity,
    EntityKind,
    EntityRef,
    EntitySet,
    Plugin,
    PluginSummary,
    Skill,
)
from marketplace_registry.store import EntityStore, FileSystemStore

logger = logging.getLogger(__name__)

ManifestSource = str | Path | Mapping[str, Any]


@dataclass(frozen=True)
class Catalog:
    """
    Immutable snapshot of a marketplace.

    Metadata is always available; entity bodies are only read through
    ``load_entity_body``. Build one with ``load_catalog``.

    Example:
        ```python
        from marketplace_registry import load_catalog

        catalog = load_catalog(".claude-plugin/marketplace.json")
        for summary in catalog.list_plugins():
            print(summary.id, summary.skill_count)

        body = catalog.load_entity_body("kubernetes-operations/skills/helm-charts")
        ```
    """

    plugins: tuple[Plugin, ...]
    store: EntityStore = field(compare=False, repr=False)
    name: str = ""
    description: str = ""
    version: str | None = None
    _index: Mapping[str, Plugin] = field(
        init=False, compare=False, repr=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        index = {plugin.id: plugin for plugin in self.plugins}
        if len(index) != len(self.plugins):
            raise ValueError("Plugin identifiers must be unique")
        object.__setattr__(self, "_index", MappingProxyType(index))

    def __len__(self) -> int:
        return len(self.plugins)

    def __contains__(self, plugin_id: object) -> bool:
        return plugin_id in self._index

    def __iter__(self) -> Iterator[Plugin]:
        return iter(self.plugins)

    def list_plugins(self) -> tuple[PluginSummary, ...]:
        """List plugin summaries in manifest declaration order."""
        return tuple(plugin.summary() for plugin in self.plugins)

    def resolve_plugin(self, plugin_id: str) -> Plugin:
        """
        Look up a plugin by exact, case-sensitive identifier.

        Raises:
            NotFoundError: If no plugin has that identifier.
        """
        try:
            return self._index[plugin_id]
        except KeyError:
            raise NotFoundError("plugin", plugin_id) from None

    def entities_for(self, plugin_id: str) -> EntitySet:
        """
        Get the identifiers a plugin declares, without loading any content.

        Raises:
            NotFoundError: If no plugin has that identifier.
        """
        return self.resolve_plugin(plugin_id).entity_set()

    def resolve_entity(self, ref: EntityRef | str) -> Entity:
        """
        Look up the declared metadata for an entity.

        Args:
            ref: An ``EntityRef`` or its textual address.

        Raises:
            NotFoundError: If the address is malformed or not declared.
        """
        if isinstance(ref, str):
            try:
                ref = EntityRef.parse(ref)
            except ValueError:
                raise NotFoundError("entity", ref) from None

        plugin = self._index.get(ref.plugin_id)
        entity = plugin.find(ref.kind, ref.entity_id) if plugin else None
        if entity is None:
            raise NotFoundError(ref.kind.value, str(ref))
        return entity

    def resolve_command(self, qualified_id: str) -> Command:
        """
        Look up a command by its ``plugin:command`` identifier.

        Raises:
            NotFoundError: If the command is not declared.
        """
        try:
            ref = EntityRef.parse(qualified_id)
        except ValueError:
            raise NotFoundError("command", qualified_id) from None
        if ref.kind is not EntityKind.COMMAND:
            raise NotFoundError("command", qualified_id)
        return cast(Command, self.resolve_entity(ref))

    def load_entity_body(self, ref: EntityRef | str) -> str:
        """
        Read an entity's body from the store.

        This is the only catalog operation that touches content. Hosts call it
        when an agent is engaged, a command invoked or a skill triggered.

        Args:
            ref: An ``EntityRef`` or its textual address.

        Returns:
            The entity body.

        Raises:
            NotFoundError: If the entity is not declared or has no content.
        """
        entity = self.resolve_entity(ref)
        return self.store.read(entity.ref)

    def categories(self) -> tuple[str, ...]:
        """Distinct plugin categories in first-seen order."""
        return tuple(dict.fromkeys(plugin.category for plugin in self.plugins))

    def plugins_in_category(self, category: str) -> tuple[PluginSummary, ...]:
        return tuple(
            plugin.summary() for plugin in self.plugins if plugin.category == category
        )


def _build_plugin(entry: PluginEntry) -> Plugin:
    return Plugin(
        id=entry.id,
        name=entry.name,
        category=entry.category,
        description=entry.description,
        version=entry.version,
        author=entry.author_name,
        keywords=tuple(entry.keywords),
        agents=tuple(Agent(d.id, entry.id, d.description) for d in entry.agents),
        commands=tuple(Command(d.id, entry.id, d.description) for d in entry.commands),
        skills=tuple(Skill(d.id, entry.id, d.activation) for d in entry.skills),
        source=entry.source,
    )


def _check_references(plugins: tuple[Plugin, ...], store: EntityStore) -> None:
    for plugin in plugins:
        for kind in EntityKind:
            for entity in plugin.entities(kind):
                if not store.exists(entity.ref):
                    raise ManifestError.dangling(plugin.id, kind.category, entity.id)


def build_catalog(manifest: MarketplaceManifest, store: EntityStore) -> Catalog:
    """
    Build a catalog from an already validated manifest.

    Args:
        manifest: The parsed manifest.
        store: Where entity bodies live.

    Returns:
        The immutable catalog.

    Raises:
        ManifestError: With kind DANGLING_REFERENCE if a declared entity has
            no content in the store.
    """
    plugins = tuple(_build_plugin(entry) for entry in manifest.plugins)
    _check_references(plugins, store)
    return Catalog(
        plugins=plugins,
        store=store,
        name=manifest.name,
        description=manifest.description,
        version=manifest.version,
    )


def load_catalog(
    manifest_source: ManifestSource, store: EntityStore | None = None
) -> Catalog:
    """
    Parse and validate a manifest into a catalog.

    Loading is all-or-nothing: either a complete catalog is returned or an
    exception is raised.

    Args:
        manifest_source: Path to a JSON manifest, or decoded manifest data.
        store: Entity store. Defaults to a ``FileSystemStore`` rooted at the
            manifest's content root when ``manifest_source`` is a path.

    Returns:
        The loaded catalog.

    Raises:
        ManifestError: If the manifest is malformed or has dangling references.
        ConfigurationError: If no store is given for a non-path source.
    """
    is_path = isinstance(manifest_source, (str, Path))
    if store is None and not is_path:
        raise ConfigurationError(
            "An entity store is required when the manifest is not a file"
        )

    try:
        if is_path:
            manifest = read_manifest(manifest_source)
        else:
            manifest = parse_manifest(manifest_source)

        if store is None:
            try:
                store = FileSystemStore(
                    content_root_for(manifest_source),
                    plugin_dirs={p.id: p.source for p in manifest.plugins if p.source},
                )
            except ValueError as e:
                # A source that passes validation can still be a link out of the root
                raise ManifestError.malformed(str(e), field="source") from e
        catalog = build_catalog(manifest, store)
    except ManifestError as e:
        logger.warning(f"Rejected manifest: {e}")
        raise

    logger.info(
        f"Loaded catalog '{catalog.name}' with {len(catalog)} plugin(s) from {store!r}"
    )
    return catalog


def list_plugins(catalog: Catalog) -> tuple[PluginSummary, ...]:
    """List plugin summaries in manifest declaration order."""
    return catalog.list_plugins()


def resolve_plugin(catalog: Catalog, plugin_id: str) -> Plugin:
    """Look up a plugin by identifier, raising ``NotFoundError`` on a miss."""
    return catalog.resolve_plugin(plugin_id)


def entities_for(catalog: Catalog, plugin_id: str) -> EntitySet:
    """Get the identifiers a plugin declares."""
    return catalog.entities_for(plugin_id)


def load_entity_body(catalog: Catalog, ref: EntityRef | str) -> str:
    """Read an entity's body, raising ``NotFoundError`` if it is unavailable."""
    return catalog.load_entity_body(ref)
