"""Command-line access to the catalog and resource lookups.

Usage:
    uv run python -m oncall.cli lookup ord-1234
    uv run python -m oncall.cli owner usr-42
    uv run python -m oncall.cli services --team commerce
    uv run python -m oncall.cli service order-service
    uv run python -m oncall.cli seed catalog.yaml
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from oncall.catalog.errors import CatalogUnavailableError
from oncall.catalog.loader import load_catalog_file, seed_store
from oncall.config import get_settings
from oncall.resources.resolver import NO_OWNER_ERROR
from oncall.runtime import Runtime, build_runtime

logger = logging.getLogger(__name__)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="oncall", description="Query the on-call service catalog")
    sub = parser.add_subparsers(dest="command", required=True)

    lookup = sub.add_parser("lookup", help="Resource status with ownership context")
    lookup.add_argument("resource_id")
    lookup.add_argument("--no-context", action="store_true", help="Omit owner and related-service context")

    owner = sub.add_parser("owner", help="Which service owns a resource ID")
    owner.add_argument("resource_id")

    services = sub.add_parser("services", help="List catalog services")
    services.add_argument("--team", default=None)

    service = sub.add_parser("service", help="Show one catalog entry")
    service.add_argument("name")

    seed = sub.add_parser("seed", help="Upsert services from a YAML catalog file")
    seed.add_argument("path")
    return parser


def run_command(runtime: Runtime, args: argparse.Namespace) -> int:
    """Execute one parsed command. Returns the process exit code."""
    if args.command == "lookup":
        _print_json(asyncio.run(runtime.lookup.lookup(args.resource_id, include_context=not args.no_context)))
    elif args.command == "owner":
        owner = runtime.resolver.find_owner(args.resource_id)
        payload: dict[str, Any] = {"resource_id": args.resource_id, "owner": owner}
        if owner is None:
            payload["error"] = NO_OWNER_ERROR
        _print_json(payload)
    elif args.command == "services":
        records = sorted(runtime.store.list_services(team=args.team), key=lambda r: r.name)
        _print_json({"count": len(records), "services": [{"name": r.name, "team": r.team} for r in records]})
    elif args.command == "service":
        record = runtime.store.get_service(args.name)
        if record is None:
            print(f"Service '{args.name}' not found", file=sys.stderr)
            return 1
        _print_json(record.to_payload())
    elif args.command == "seed":
        count = seed_store(runtime.store, load_catalog_file(args.path))
        print(f"Seeded {count} service(s)")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(levelname)s: %(message)s",
    )

    try:
        runtime = build_runtime()
        return run_command(runtime, args)
    except CatalogUnavailableError as e:
        print(f"Catalog unavailable: {e}", file=sys.stderr)
        return 1
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
