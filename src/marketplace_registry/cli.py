"""Command-line entry point for Marketplace Registry."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from marketplace_registry.config import get_config
from marketplace_registry.exceptions import ManifestError, MarketplaceError
from marketplace_registry.manifest import read_manifest
from marketplace_registry.registry import Catalog, load_catalog
from marketplace_registry.store import FileSystemStore
from marketplace_registry.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marketplace-registry",
        description="Inspect and serve a plugin marketplace catalog",
    )
    parser.add_argument(
        "-m",
        "--manifest",
        type=Path,
        default=None,
        help="Manifest file (defaults to MARKETPLACE_MANIFEST_PATH)",
    )
    parser.add_argument(
        "--content-root",
        type=Path,
        default=None,
        help="Directory holding plugin content (defaults to the manifest's root)",
    )
    parser.add_argument("--log-level", default=None, help="Logging level")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("validate", help="Check the manifest and its references")

    list_parser = sub.add_parser("list", help="List plugins in declaration order")
    list_parser.add_argument("--category", default=None, help="Only this category")
    list_parser.add_argument("--json", action="store_true", help="Emit JSON")

    show_parser = sub.add_parser("show", help="Show a plugin's metadata")
    show_parser.add_argument("plugin_id")

    body_parser = sub.add_parser("body", help="Print an entity body")
    body_parser.add_argument(
        "address", help="plugin/category/entity or plugin:command"
    )

    serve_parser = sub.add_parser("serve", help="Serve the catalog over HTTP")
    serve_parser.add_argument("--host", default=None, help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to bind to")

    return parser


def _store_for(manifest: Path, content_root: Path | None) -> FileSystemStore | None:
    if content_root is None:
        return None
    entries = read_manifest(manifest).plugins
    return FileSystemStore(
        content_root, plugin_dirs={p.id: p.source for p in entries if p.source}
    )


def _print_list(catalog: Catalog, category: str | None, as_json: bool) -> None:
    if category is None:
        summaries = catalog.list_plugins()
    else:
        summaries = catalog.plugins_in_category(category)

    if as_json:
        print(json.dumps([asdict(s) for s in summaries], indent=2))
        return

    for s in summaries:
        print(
            f"{s.id:<32} {s.category:<20} "
            f"agents={s.agent_count} commands={s.command_count} skills={s.skill_count}"
        )


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = _build_parser().parse_args(argv)
    config = get_config()
    setup_logging(level=(args.log_level or config.log_level).upper())

    manifest = args.manifest or config.manifest_path
    content_root = args.content_root or config.content_root

    try:
        if args.command == "serve":
            from marketplace_registry.server import MarketplaceServer

            store = _store_for(manifest, content_root)
            server = MarketplaceServer(manifest_source=manifest, store=store)
            server.serve(
                host=args.host or config.server_host,
                port=args.port or config.server_port,
            )
            return 0

        catalog = load_catalog(manifest, _store_for(manifest, content_root))

        if args.command == "validate":
            print(f"OK: {len(catalog)} plugin(s) in {manifest}")
        elif args.command == "list":
            _print_list(catalog, args.category, args.json)
        elif args.command == "show":
            info = catalog.resolve_plugin(args.plugin_id).get_info()
            print(json.dumps(info, indent=2))
        elif args.command == "body":
            sys.stdout.write(catalog.load_entity_body(args.address))
    except ManifestError as e:
        logger.debug("Manifest rejected", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1
    except MarketplaceError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
