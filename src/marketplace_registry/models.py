"""Catalog data model for Marketplace Registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class EntityKind(str, Enum):
    """The three kinds of entity a plugin can provide."""

    AGENT = "agent"
    COMMAND = "command"
    SKILL = "skill"

    @property
    def category(self) -> str:
        """Directory name used in addresses (e.g. 'skills')."""
        return f"{self.value}s"

    @classmethod
    def from_category(cls, category: str) -> EntityKind:
        for kind in cls:
            if kind.category == category or kind.value == category:
                return kind
        raise ValueError(f"Unknown entity category: {category!r}")


@dataclass(frozen=True)
class EntityRef:
    """
    Address of a single agent, command or skill.

    The textual form is ``plugin-id/category/entity-id``, for example
    ``kubernetes-operations/skills/helm-charts``. Commands may also be written
    in their namespaced form ``plugin:command``.
    """

    plugin_id: str
    kind: EntityKind
    entity_id: str

    @classmethod
    def parse(cls, address: str) -> EntityRef:
        """
        Parse a textual address.

        Args:
            address: ``plugin/category/entity`` or ``plugin:command``.

        Returns:
            The parsed reference.

        Raises:
            ValueError: If the address is malformed.
        """
        if any(part in (".", "..") for part in address.replace(":", "/").split("/")):
            raise ValueError(f"Invalid entity address: {address!r}")

        parts = address.split("/")
        if len(parts) == 3 and all(parts):
            plugin_id, category, entity_id = parts
            return cls(plugin_id, EntityKind.from_category(category), entity_id)

        if "/" not in address and address.count(":") == 1:
            plugin_id, entity_id = address.split(":")
            if plugin_id and entity_id:
                return cls(plugin_id, EntityKind.COMMAND, entity_id)

        raise ValueError(f"Invalid entity address: {address!r}")

    def __str__(self) -> str:
        return f"{self.plugin_id}/{self.kind.category}/{self.entity_id}"


@dataclass(frozen=True)
class Agent:
    """A persona description provided by a plugin."""

    id: str
    plugin_id: str
    description: str = ""

    @property
    def ref(self) -> EntityRef:
        return EntityRef(self.plugin_id, EntityKind.AGENT, self.id)


@dataclass(frozen=True)
class Command:
    """A host-invocable workflow provided by a plugin."""

    id: str
    plugin_id: str
    description: str = ""

    @property
    def qualified_id(self) -> str:
        """Namespaced identifier, ``plugin:command``."""
        return f"{self.plugin_id}:{self.id}"

    @property
    def ref(self) -> EntityRef:
        return EntityRef(self.plugin_id, EntityKind.COMMAND, self.id)


@dataclass(frozen=True)
class Skill:
    """
    A lazily loaded knowledge package.

    Only the activation criteria are kept here; the body stays in the entity
    store until the host triggers the skill.
    """

    id: str
    plugin_id: str
    activation: str = ""

    @property
    def ref(self) -> EntityRef:
        return EntityRef(self.plugin_id, EntityKind.SKILL, self.id)


Entity = Agent | Command | Skill


@dataclass(frozen=True)
class EntitySet:
    """Identifiers a plugin declares, grouped by kind."""

    agents: tuple[str, ...] = ()
    commands: tuple[str, ...] = ()
    skills: tuple[str, ...] = ()


@dataclass(frozen=True)
class PluginSummary:
    """Lightweight view of a plugin for listings."""

    id: str
    name: str
    category: str
    description: str
    version: str | None
    agent_count: int
    command_count: int
    skill_count: int


@dataclass(frozen=True)
class Plugin:
    """An installable, isolated bundle of agents, commands and skills."""

    id: str
    name: str
    category: str
    description: str = ""
    version: str | None = None
    author: str | None = None
    keywords: tuple[str, ...] = ()
    agents: tuple[Agent, ...] = ()
    commands: tuple[Command, ...] = ()
    skills: tuple[Skill, ...] = ()
    source: str | None = field(default=None, compare=False)

    def entity_set(self) -> EntitySet:
        return EntitySet(
            agents=tuple(a.id for a in self.agents),
            commands=tuple(c.id for c in self.commands),
            skills=tuple(s.id for s in self.skills),
        )

    def summary(self) -> PluginSummary:
        return PluginSummary(
            id=self.id,
            name=self.name,
            category=self.category,
            description=self.description,
            version=self.version,
            agent_count=len(self.agents),
            command_count=len(self.commands),
            skill_count=len(self.skills),
        )

    def entities(self, kind: EntityKind) -> tuple[Entity, ...]:
        if kind is EntityKind.AGENT:
            return self.agents
        if kind is EntityKind.COMMAND:
            return self.commands
        return self.skills

    def find(self, kind: EntityKind, entity_id: str) -> Entity | None:
        for entity in self.entities(kind):
            if entity.id == entity_id:
                return entity
        return None

    def get_info(self) -> dict[str, object]:
        """Get plugin information as a dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "version": self.version,
            "author": self.author,
            "keywords": list(self.keywords),
            "agents": [a.id for a in self.agents],
            "commands": [c.qualified_id for c in self.commands],
            "skills": [s.id for s in self.skills],
        }
