"""Custom exceptions for Marketplace Registry."""

from __future__ import annotations

from enum import Enum


class MarketplaceError(Exception):
    """Base exception for all marketplace registry errors."""

    pass


class ConfigurationError(MarketplaceError):
    """Raised when there is a configuration issue."""

    pass


class ManifestErrorKind(str, Enum):
    """Why a manifest was rejected."""

    MALFORMED_STRUCTURE = "malformed_structure"
    DANGLING_REFERENCE = "dangling_reference"


class ManifestError(MarketplaceError):
    """
    Raised when a manifest cannot be turned into a catalog.

    The offending plugin, field and entity are kept as attributes so a host
    can point the plugin author at the exact spot to fix.
    """

    def __init__(
        self,
        kind: ManifestErrorKind,
        message: str,
        plugin_id: str | None = None,
        field: str | None = None,
        entity_id: str | None = None,
    ):
        self.kind = kind
        self.plugin_id = plugin_id
        self.field = field
        self.entity_id = entity_id
        super().__init__(f"[{kind.value}] {message}")

    @classmethod
    def malformed(
        cls, message: str, plugin_id: str | None = None, field: str | None = None
    ) -> ManifestError:
        return cls(
            ManifestErrorKind.MALFORMED_STRUCTURE,
            message,
            plugin_id=plugin_id,
            field=field,
        )

    @classmethod
    def dangling(cls, plugin_id: str, field: str, entity_id: str) -> ManifestError:
        return cls(
            ManifestErrorKind.DANGLING_REFERENCE,
            f"Plugin '{plugin_id}' references {field} '{entity_id}' "
            "which does not exist",
            plugin_id=plugin_id,
            field=field,
            entity_id=entity_id,
        )

    def to_dict(self) -> dict[str, str | None]:
        """Serialize the error for host-facing responses."""
        return {
            "kind": self.kind.value,
            "message": str(self),
            "plugin_id": self.plugin_id,
            "field": self.field,
            "entity_id": self.entity_id,
        }


class NotFoundError(MarketplaceError, LookupError):
    """Raised when a lookup by identifier misses."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind.capitalize()} '{identifier}' not found")
