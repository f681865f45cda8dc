"""FastAPI application factory for Marketplace Registry."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from marketplace_registry.exceptions import ConfigurationError
from marketplace_registry.holder import CatalogHolder
from marketplace_registry.registry import Catalog, ManifestSource
from marketplace_registry.server.routes import create_router
from marketplace_registry.store import EntityStore


class MarketplaceServer:
    """
    FastAPI adapter that lets a host UI browse a catalog over HTTP.

    The registry itself is a library; this server is one optional way for a
    host to consume it.

    Example:
        ```python
        from marketplace_registry.server import MarketplaceServer

        server = MarketplaceServer(manifest_source=".claude-plugin/marketplace.json")
        server.serve(host="127.0.0.1", port=8000)
        ```
    """

    def __init__(
        self,
        holder: CatalogHolder | None = None,
        manifest_source: ManifestSource | None = None,
        store: EntityStore | None = None,
        title: str = "Marketplace Registry",
        description: str = "Plugin catalog for agents, commands and skills",
        version: str = "0.1.0",
        cors_origins: list[str] | None = None,
    ):
        """
        Initialize the MarketplaceServer.

        Args:
            holder: Holder of the active catalog. A new one is created if None.
            manifest_source: Manifest to load now and on reload requests.
            store: Entity store passed to ``load_catalog``.
            title: API title for OpenAPI docs.
            description: API description for OpenAPI docs.
            version: API version for OpenAPI docs.
            cors_origins: List of allowed CORS origins. Defaults to ["*"].
        """
        self.holder = holder or CatalogHolder()
        self.manifest_source = manifest_source
        self.store = store
        self.title = title
        self.description = description
        self.version = version
        self.cors_origins = cors_origins or ["*"]
        self._app: FastAPI | None = None

        if manifest_source is not None and not self.holder.loaded:
            self.reload()

    def reload(self) -> Catalog:
        """Reload the catalog from the configured manifest source."""
        if self.manifest_source is None:
            raise ConfigurationError("No manifest source configured")
        return self.holder.reload(self.manifest_source, self.store)

    def get_app(self) -> FastAPI:
        """
        Get or create the FastAPI application.

        Returns:
            The configured FastAPI application.
        """
        if self._app is None:
            self._app = self._create_app()
        return self._app

    def _create_app(self) -> FastAPI:
        """Create and configure the FastAPI application."""
        app = FastAPI(
            title=self.title,
            description=self.description,
            version=self.version,
            docs_url="/docs",
            redoc_url="/redoc",
        )

        app.add_middleware(
            CORSMiddleware,
            allow_origins=self.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        reloader = self.reload if self.manifest_source is not None else None
        router = create_router(self.holder, reloader=reloader)
        app.include_router(router, prefix="/v1")

        @app.exception_handler(ConfigurationError)
        async def no_catalog(request: Request, exc: ConfigurationError) -> JSONResponse:
            return JSONResponse(status_code=503, content={"detail": str(exc)})

        @app.get("/health")
        async def health_check() -> dict[str, str]:
            status = "healthy" if self.holder.loaded else "empty"
            return {"status": status}

        @app.get("/")
        async def root() -> dict[str, str]:
            return {
                "name": self.title,
                "version": self.version,
                "docs": "/docs",
            }

        return app

    def serve(
        self,
        host: str = "127.0.0.1",
        port: int = 8000,
        log_level: str = "info",
    ) -> None:
        """
        Start the server using uvicorn.

        Args:
            host: Host to bind to.
            port: Port to bind to.
            log_level: Uvicorn log level.
        """
        import uvicorn

        uvicorn.run(
            self.get_app(),
            host=host,
            port=port,
            log_level=log_level,
        )
