"""Shared fixtures for Marketplace Registry tests."""

import json
from pathlib import Path

import pytest

from marketplace_registry.config import set_config

EXAMPLE_MANIFEST = (
    Path(__file__).parent.parent
    / "examples"
    / "sample_marketplace"
    / ".claude-plugin"
    / "marketplace.json"
)


@pytest.fixture
def sample_manifest() -> Path:
    """The manifest shipped under examples/."""
    return EXAMPLE_MANIFEST


@pytest.fixture
def make_marketplace(tmp_path):
    """
    Build a marketplace on disk.

    Returns a factory taking the manifest dict and entity file paths relative
    to the marketplace root; it returns the manifest path.
    """
    root = tmp_path / "marketplace"

    def _make(manifest: dict, files: tuple[str, ...] = ()) -> Path:
        (root / ".claude-plugin").mkdir(parents=True, exist_ok=True)
        for rel in files:
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(f"# {rel}\n", encoding="utf-8")

        manifest_path = root / ".claude-plugin" / "marketplace.json"
        manifest_path.write_text(json.dumps(manifest), encoding="utf-8")
        return manifest_path

    return _make


@pytest.fixture(autouse=True)
def reset_config():
    """Drop any cached global config between tests."""
    set_config(None)
    yield
    set_config(None)
