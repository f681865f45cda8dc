"""Entity content stores for Marketplace Registry."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

from marketplace_registry.exceptions import NotFoundError
from marketplace_registry.models import EntityKind, EntityRef

logger = logging.getLogger(__name__)

SKILL_FILE = "SKILL.md"
ENTITY_SUFFIX = ".md"


class EntityStore(ABC):
    """
    Where entity bodies live.

    Validation only ever calls ``exists``; ``read`` is reserved for the moment
    a host activates an entity.
    """

    @abstractmethod
    def exists(self, ref: EntityRef) -> bool:
        """
        Check whether content exists for a reference without reading it.

        Args:
            ref: The entity to check.

        Returns:
            True if the entity can be read.
        """
        pass

    @abstractmethod
    def read(self, ref: EntityRef) -> str:
        """
        Read the body of an entity.

        Args:
            ref: The entity to read.

        Returns:
            The entity body as text.

        Raises:
            NotFoundError: If there is no content for the reference.
        """
        pass


class FileSystemStore(EntityStore):
    """
    Entity bodies stored as markdown files on disk.

    Layout, relative to each plugin's directory::

        agents/<id>.md
        commands/<id>.md
        skills/<id>/SKILL.md    (or skills/<id>.md)

    A plugin's directory is ``root/<plugin-id>`` unless ``plugin_dirs`` says
    otherwise. Relative entries in ``plugin_dirs`` resolve against ``root``.
    Every path must stay under ``root``; anything that resolves outside it is
    treated as missing.
    """

    def __init__(
        self,
        root: str | Path,
        plugin_dirs: Mapping[str, str | Path] | None = None,
        encoding: str = "utf-8",
    ):
        self.root = Path(root)
        self.encoding = encoding
        self._plugin_dirs = MappingProxyType(
            {pid: self.root / Path(d) for pid, d in (plugin_dirs or {}).items()}
        )
        for plugin_id, directory in self._plugin_dirs.items():
            if not self._inside_root(directory):
                raise ValueError(
                    f"Directory for plugin '{plugin_id}' is outside {self.root}: {directory}"
                )

    def _inside_root(self, path: Path) -> bool:
        return path.resolve().is_relative_to(self.root.resolve())

    def plugin_dir(self, plugin_id: str) -> Path:
        return self._plugin_dirs.get(plugin_id, self.root / plugin_id)

    def candidates(self, ref: EntityRef) -> list[Path]:
        """Paths that may hold the body, in lookup order."""
        base = self.plugin_dir(ref.plugin_id) / ref.kind.category
        if ref.kind is EntityKind.SKILL:
            return [base / ref.entity_id / SKILL_FILE, base / f"{ref.entity_id}{ENTITY_SUFFIX}"]
        return [base / f"{ref.entity_id}{ENTITY_SUFFIX}"]

    def _locate(self, ref: EntityRef) -> Path | None:
        for candidate in self.candidates(ref):
            if self._inside_root(candidate) and candidate.is_file():
                return candidate
        return None

    def exists(self, ref: EntityRef) -> bool:
        return self._locate(ref) is not None

    def read(self, ref: EntityRef) -> str:
        path = self._locate(ref)
        if path is None:
            raise NotFoundError(ref.kind.value, str(ref))
        logger.debug(f"Loading {ref} from {path}")
        try:
            return path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            # Removed, unreadable or not text: there is no usable body
            logger.warning(f"Cannot read {ref} from {path}: {e}")
            raise NotFoundError(ref.kind.value, str(ref)) from e

    def __repr__(self) -> str:
        return f"FileSystemStore(root={str(self.root)!r})"


class InMemoryStore(EntityStore):
    """
    Entity bodies held in memory, keyed by address.

    Example:
        ```python
        from marketplace_registry.store import InMemoryStore

        store = InMemoryStore({
            "kubernetes-operations/skills/helm-charts": "# Helm charts ...",
        })
        ```
    """

    def __init__(self, bodies: Mapping[str | EntityRef, str] | None = None):
        normalized: dict[EntityRef, str] = {}
        for key, body in (bodies or {}).items():
            ref = key if isinstance(key, EntityRef) else EntityRef.parse(key)
            normalized[ref] = body
        self._bodies = MappingProxyType(normalized)

    def exists(self, ref: EntityRef) -> bool:
        return ref in self._bodies

    def read(self, ref: EntityRef) -> str:
        try:
            return self._bodies[ref]
        except KeyError:
            raise NotFoundError(ref.kind.value, str(ref)) from None

    def __len__(self) -> int:
        return len(self._bodies)
