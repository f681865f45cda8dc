"""API routes for the Marketplace Registry server."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from marketplace_registry.exceptions import ManifestError, NotFoundError
from marketplace_registry.models import EntityKind, EntityRef

if TYPE_CHECKING:
    from marketplace_registry.holder import CatalogHolder
    from marketplace_registry.models import PluginSummary
    from marketplace_registry.registry import Catalog

logger = logging.getLogger(__name__)


class PluginSummaryResponse(BaseModel):
    """A plugin as shown in listings."""

    id: str
    name: str
    category: str
    description: str
    version: str | None = None
    agent_count: int
    command_count: int
    skill_count: int


class PluginListResponse(BaseModel):
    """Response for listing plugins."""

    marketplace: str
    plugins: list[PluginSummaryResponse]


class PluginDetailResponse(BaseModel):
    """Full plugin metadata."""

    id: str
    name: str
    category: str
    description: str
    version: str | None = None
    author: str | None = None
    keywords: list[str]
    agents: list[str]
    commands: list[str]
    skills: list[str]


class EntitySetResponse(BaseModel):
    """Entity identifiers declared by a plugin."""

    agents: list[str]
    commands: list[str]
    skills: list[str]


class ReloadResponse(BaseModel):
    """Result of a catalog reload."""

    status: str
    plugins: int


def _summary(summary: PluginSummary) -> PluginSummaryResponse:
    return PluginSummaryResponse(
        id=summary.id,
        name=summary.name,
        category=summary.category,
        description=summary.description,
        version=summary.version,
        agent_count=summary.agent_count,
        command_count=summary.command_count,
        skill_count=summary.skill_count,
    )


def create_router(
    holder: CatalogHolder,
    reloader: Callable[[], Catalog] | None = None,
) -> APIRouter:
    """
    Create the API router with catalog endpoints.

    Args:
        holder: Holder of the active catalog. Each request reads one snapshot.
        reloader: Callable that reloads the holder. Enables the reload endpoint.

    Returns:
        Configured APIRouter.
    """
    router = APIRouter(tags=["catalog"])

    @router.get("/plugins", response_model=PluginListResponse)
    async def list_plugins() -> PluginListResponse:
        """List all plugins in declaration order."""
        catalog = holder.current
        return PluginListResponse(
            marketplace=catalog.name,
            plugins=[_summary(s) for s in catalog.list_plugins()],
        )

    @router.get("/categories")
    async def list_categories() -> dict[str, list[str]]:
        """List plugin categories."""
        return {"categories": list(holder.current.categories())}

    @router.get("/plugins/{plugin_id}", response_model=PluginDetailResponse)
    async def get_plugin(plugin_id: str) -> PluginDetailResponse:
        """Get metadata for a specific plugin."""
        try:
            plugin = holder.current.resolve_plugin(plugin_id)
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e

        return PluginDetailResponse(**plugin.get_info())

    @router.get("/plugins/{plugin_id}/entities", response_model=EntitySetResponse)
    async def get_entities(plugin_id: str) -> EntitySetResponse:
        """Get the entity identifiers a plugin declares, without content."""
        try:
            entities = holder.current.entities_for(plugin_id)
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e

        return EntitySetResponse(
            agents=list(entities.agents),
            commands=list(entities.commands),
            skills=list(entities.skills),
        )

    @router.get(
        "/plugins/{plugin_id}/{category}/{entity_id}",
        response_class=PlainTextResponse,
    )
    def get_entity_body(plugin_id: str, category: str, entity_id: str) -> str:
        """
        Load the body of an agent, command or skill.

        Hosts call this only when the entity is activated.
        """
        try:
            ref = EntityRef(plugin_id, EntityKind.from_category(category), entity_id)
        except ValueError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e

        try:
            return holder.current.load_entity_body(ref)
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e

    if reloader is not None:

        @router.post("/catalog/reload", response_model=ReloadResponse)
        def reload_catalog() -> ReloadResponse:
            """Reload the manifest. The previous catalog stays active on failure."""
            try:
                catalog = reloader()
            except ManifestError as e:
                logger.warning(f"Reload failed: {e}")
                raise HTTPException(status_code=422, detail=e.to_dict()) from e
            return ReloadResponse(status="ok", plugins=len(catalog))

    return router
