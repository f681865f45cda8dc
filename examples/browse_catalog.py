"""
Sample Marketplace Registry Application

This example shows how a host loads a marketplace, drives an installation
listing from metadata alone, and loads an entity body only when it is used.

Usage:
    python examples/browse_catalog.py

Or serve the same catalog over HTTP:
    marketplace-registry -m examples/sample_marketplace/.claude-plugin/marketplace.json serve
"""

from pathlib import Path

from marketplace_registry import CatalogHolder, ManifestError, NotFoundError
from marketplace_registry.utils.logging import setup_logging

MANIFEST = Path(__file__).parent / "sample_marketplace" / ".claude-plugin" / "marketplace.json"


def demo_listing(holder: CatalogHolder) -> None:
    """Show what installing each plugin would load, without reading content."""
    print("\n" + "=" * 50)
    print("Installation Listing")
    print("=" * 50)

    catalog = holder.current
    for summary in catalog.list_plugins():
        entities = catalog.entities_for(summary.id)
        print(f"\n{summary.name} [{summary.category}]")
        print(f"  agents:   {', '.join(entities.agents) or '-'}")
        print(f"  commands: {', '.join(entities.commands) or '-'}")
        print(f"  skills:   {', '.join(entities.skills) or '-'}")


def demo_activation(holder: CatalogHolder) -> None:
    """Load bodies only at the moment an entity is activated."""
    print("\n" + "=" * 50)
    print("Activation Demo")
    print("=" * 50)

    catalog = holder.current
    command = catalog.resolve_command("backend-development:feature-development")
    print(f"\nInvoking /{command.qualified_id}:")
    print(catalog.load_entity_body(command.ref))

    print("Triggering skill kubernetes-operations/skills/helm-charts:")
    print(catalog.load_entity_body("kubernetes-operations/skills/helm-charts"))

    try:
        catalog.resolve_plugin("nonexistent")
    except NotFoundError as e:
        print(f"Lookup miss: {e}")


def main() -> None:
    """Run all demos."""
    setup_logging(level="INFO")

    holder = CatalogHolder()
    try:
        holder.reload(MANIFEST)
    except ManifestError as e:
        print(f"Manifest rejected ({e.kind.value}): plugin={e.plugin_id} field={e.field}")
        return

    demo_listing(holder)
    demo_activation(holder)


if __name__ == "__main__":
    main()
