"""Configuration management for Marketplace Registry."""

from pathlib import Path

from pydantic_settings import BaseSettings


class MarketplaceConfig(BaseSettings):
    """Configuration settings loaded from MARKETPLACE_* environment variables."""

    # Catalog sources
    manifest_path: Path = Path(".claude-plugin/marketplace.json")
    content_root: Path | None = None

    # Server settings
    server_host: str = "127.0.0.1"
    server_port: int = 8000

    # Logging
    log_level: str = "INFO"

    model_config = {
        "env_prefix": "MARKETPLACE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Global config instance
_config: MarketplaceConfig | None = None


def get_config() -> MarketplaceConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = MarketplaceConfig()
    return _config


def set_config(config: MarketplaceConfig | None) -> None:
    """Set the global configuration instance (None resets it)."""
    global _config
    _config = config
