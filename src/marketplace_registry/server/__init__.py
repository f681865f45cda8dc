"""HTTP adapter for Marketplace Registry."""

from marketplace_registry.server.app import MarketplaceServer
from marketplace_registry.server.routes import create_router

__all__ = ["MarketplaceServer", "create_router"]
