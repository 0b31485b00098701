"""Command line interface: manifest maintenance and the cache server."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from aiohttp import web

from .cache.gateway import CacheGateway
from .config import Settings
from .errors import HermitcrabError
from .server.app import create_app
from .utils import setup_logging
from .versions.manifest import load_manifest, merge_new_version
from .versions.parser import parse, validate

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hermitcrab",
        description="Manage release manifests and serve cached release archives",
    )
    parser.add_argument("--log-level", help="Logging level (default from HERMITCRAB_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    versions_parser = subparsers.add_parser("versions", help="Manage versions")
    versions_sub = versions_parser.add_subparsers(dest="versions_cmd", required=True,
                                                  help="Version commands")

    add_parser = versions_sub.add_parser("add", help="Add a new version to a manifest")
    add_parser.add_argument("-p", "--prev-manifest", help="Path to the previous manifest")
    add_parser.add_argument("-v", "--version-path", required=True, help="Path to the new version")
    add_parser.add_argument("-o", "--output-path", help="Path to the output manifest")
    add_parser.add_argument("--name", help="Manifest name")
    add_parser.add_argument("--description", help="Manifest description")

    validate_parser = versions_sub.add_parser("validate", help="Validate a version")
    validate_parser.add_argument("-p", "--version-path", required=True,
                                 help="Path to the version to validate")

    latest_parser = versions_sub.add_parser("latest", help="Print the latest version in a manifest")
    latest_parser.add_argument("-m", "--manifest", required=True, help="Path to the manifest")
    latest_parser.add_argument("--series", help="Restrict to a series such as 24.1")

    serve_parser = subparsers.add_parser("serve", help="Serve cached release archives over HTTP")
    serve_parser.add_argument("--cache-dir", type=Path, help="Cache root directory")
    store = serve_parser.add_mutually_exclusive_group()
    store.add_argument("--store-url", help="Base URL of the artifact store")
    store.add_argument("--store-path", type=Path, help="Directory holding release archives")
    serve_parser.add_argument("--series", help="Series used to resolve the latest version")
    serve_parser.add_argument("--host", help="Bind address")
    serve_parser.add_argument("--port", type=int, help="Bind port")

    return parser


def _settings_from_args(args: argparse.Namespace, settings: Settings) -> Settings:
    overrides = {
        "cache_dir": args.cache_dir,
        "store_url": args.store_url,
        "store_path": args.store_path,
        "latest_series": args.series,
        "host": args.host,
        "port": args.port,
    }
    return settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})


def cmd_versions(args: argparse.Namespace) -> int:
    if args.versions_cmd == "add":
        manifest = merge_new_version(
            args.prev_manifest, args.output_path, args.version_path,
            name=args.name, description=args.description,
        )
        print(f"{len(manifest.versions)} versions in manifest")
    elif args.versions_cmd == "validate":
        validate(args.version_path)
        print(parse(args.version_path).canonical)
    elif args.versions_cmd == "latest":
        latest = load_manifest(args.manifest).latest(args.series)
        if latest is None:
            print("no versions found", file=sys.stderr)
            return 1
        print(latest.canonical)
    return 0


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    settings = _settings_from_args(args, settings)
    gateway = CacheGateway(
        settings.build_store(),
        settings.cache_dir,
        series_hint=settings.latest_series,
        root_file=settings.root_file,
    )
    logger.info("Serving %s on %s:%d", settings.cache_dir, settings.host, settings.port)
    web.run_app(create_app(gateway), host=settings.host, port=settings.port, print=None)
    return 0


def main(args: Optional[List[str]] = None) -> int:
    if args is None:
        args = sys.argv[1:]

    parser = build_parser()
    parsed_args = parser.parse_args(args)

    settings = Settings()
    setup_logging((parsed_args.log_level or settings.log_level).upper(), settings.log_file)

    if parsed_args.command is None:
        parser.print_help()
        return 0

    try:
        if parsed_args.command == "versions":
            return cmd_versions(parsed_args)
        if parsed_args.command == "serve":
            return cmd_serve(parsed_args, settings)
    except (HermitcrabError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    parser.print_help()
    return 1
