"""Manifest schema and parsing for Marketplace Registry."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from marketplace_registry.exceptions import ManifestError

logger = logging.getLogger(__name__)

# Conventional location of the manifest inside a marketplace repository
MANIFEST_DIR = ".claude-plugin"
MANIFEST_FILE = "marketplace.json"

# Identifiers end up in addresses and paths, so they cannot contain separators
IDENTIFIER_PATTERN = r"^[^/\\:\s]+$"


def _not_dot_segment(value: str) -> str:
    if value in (".", ".."):
        raise ValueError(f"'{value}' is not a valid identifier")
    return value


Identifier = Annotated[
    str,
    Field(pattern=IDENTIFIER_PATTERN),
    AfterValidator(_not_dot_segment),
]


class EntityDeclaration(BaseModel):
    """An agent, command or skill reference inside a plugin entry."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: Identifier = Field(..., description="Entity identifier")

    @model_validator(mode="before")
    @classmethod
    def _coerce_identifier(cls, data: Any) -> Any:
        # Bare strings are shorthand for {"id": ...}
        if isinstance(data, str):
            return {"id": data}
        return data


class AgentDeclaration(EntityDeclaration):
    description: str = Field(default="", description="Opaque persona description")


class CommandDeclaration(EntityDeclaration):
    description: str = Field(default="", description="Opaque workflow description")


class SkillDeclaration(EntityDeclaration):
    activation: str = Field(default="", description="Skill activation criteria")


class PluginEntry(BaseModel):
    """One plugin as declared in the manifest."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: Identifier = Field(..., description="Unique plugin slug")
    name: str = Field(..., min_length=1, description="Human-readable plugin name")
    category: str = Field(..., min_length=1, description="Category tag")
    description: str = Field(default="", description="Plugin description")
    version: str | None = Field(default=None, description="Plugin version")
    author: str | dict[str, Any] | None = Field(default=None, description="Author")
    keywords: list[str] = Field(default_factory=list)
    source: str | None = Field(
        default=None,
        description="Plugin directory relative to the content root",
    )
    agents: list[AgentDeclaration] = Field(default_factory=list)
    commands: list[CommandDeclaration] = Field(default_factory=list)
    skills: list[SkillDeclaration] = Field(default_factory=list)

    @field_validator("source")
    @classmethod
    def _source_stays_inside_root(cls, value: str | None) -> str | None:
        if value is None:
            return value
        for flavour in (PurePosixPath, PureWindowsPath):
            path = flavour(value)
            if path.is_absolute() or path.anchor or ".." in path.parts:
                raise ValueError("source must be a relative path inside the content root")
        return value

    @property
    def author_name(self) -> str | None:
        if isinstance(self.author, dict):
            name = self.author.get("name")
            return str(name) if name is not None else None
        return self.author


class MarketplaceManifest(BaseModel):
    """Top-level manifest document."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(default="", description="Marketplace name")
    description: str = Field(default="", description="Marketplace description")
    version: str | None = Field(default=None, description="Marketplace version")
    plugins: list[PluginEntry] = Field(..., description="Declared plugins, in order")


def _locate(data: Any, loc: tuple[Any, ...]) -> tuple[str | None, str | None]:
    """Map a pydantic error location to (plugin id, field path)."""
    field = ".".join(str(part) for part in loc) or None
    if len(loc) >= 2 and loc[0] == "plugins" and isinstance(loc[1], int):
        try:
            entry = data["plugins"][loc[1]]
        except (KeyError, IndexError, TypeError):
            return None, field
        if isinstance(entry, Mapping) and isinstance(entry.get("id"), str):
            return entry["id"], ".".join(str(part) for part in loc[2:]) or None
    return None, field


def _check_unique(manifest: MarketplaceManifest) -> None:
    seen_plugins: set[str] = set()
    for entry in manifest.plugins:
        if entry.id in seen_plugins:
            raise ManifestError.malformed(
                f"Duplicate plugin id '{entry.id}'", plugin_id=entry.id, field="id"
            )
        seen_plugins.add(entry.id)

        for field in ("agents", "commands", "skills"):
            seen: set[str] = set()
            for decl in getattr(entry, field):
                if decl.id in seen:
                    raise ManifestError.malformed(
                        f"Plugin '{entry.id}' declares {field} '{decl.id}' twice",
                        plugin_id=entry.id,
                        field=field,
                    )
                seen.add(decl.id)


def parse_manifest(data: Any) -> MarketplaceManifest:
    """
    Validate decoded manifest data.

    Args:
        data: The decoded JSON document.

    Returns:
        The validated manifest.

    Raises:
        ManifestError: With kind MALFORMED_STRUCTURE on any schema violation.
    """
    try:
        manifest = MarketplaceManifest.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        plugin_id, field = _locate(data, tuple(first["loc"]))
        where = f" at '{field}'" if field else ""
        owner = f"Plugin '{plugin_id}': " if plugin_id else ""
        raise ManifestError.malformed(
            f"{owner}{first['msg']}{where}", plugin_id=plugin_id, field=field
        ) from e

    _check_unique(manifest)
    return manifest


def read_manifest(path: str | Path) -> MarketplaceManifest:
    """
    Read and validate a manifest file.

    Args:
        path: Path to the JSON manifest.

    Returns:
        The validated manifest.

    Raises:
        ManifestError: If the file cannot be read, is not JSON, or fails
            validation.
    """
    manifest_file = Path(path)
    try:
        text = manifest_file.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError.malformed(
            f"Cannot read manifest {manifest_file}: {e}"
        ) from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ManifestError.malformed(
            f"Invalid JSON in {manifest_file}: {e}"
        ) from e

    logger.debug(f"Read manifest from {manifest_file}")
    return parse_manifest(data)


def content_root_for(path: str | Path) -> Path:
    """
    Directory entity paths are resolved against for a manifest file.

    A manifest stored at ``<repo>/.claude-plugin/marketplace.json`` resolves
    against ``<repo>``; anywhere else, against its own directory.
    """
    parent = Path(path).resolve().parent
    if parent.name == MANIFEST_DIR:
        return parent.parent
    return parent
