#!/usr/bin/env python3
"""Schema registry command line.

Commands:
  version                 print the registry tree OID on the main branch
  services [--source S]   print service descriptors (live | registry) as JSON
  status                  diff registry vs live services
  release NAME [-m MSG]   publish live services as a release candidate

Exit codes:
 0 success
 1 status found differences
 2 error (configuration, network, host API)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import List, Optional

import structlog

from gateway_registry.application.registry.schema_registry import SchemaRegistry
from gateway_registry.config import RegistryConfig, load_registry_config
from gateway_registry.domain.shared.errors import DomainError
from gateway_registry.infrastructure.gateway.builder import build_gateway_schema
from gateway_registry.infrastructure.vcs.factory import create_version_control_client
from gateway_registry.logging_config import configure_logging

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_CHANGED = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gateway-registry")
    parser.add_argument("--env-file", default=None, help="dotenv file to load")
    parser.add_argument("--log-level", default=None, help="overrides LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("version", help="registry tree OID on the main branch")

    services = sub.add_parser("services", help="print service descriptors")
    services.add_argument("--source", choices=("live", "registry"), default="live")

    sub.add_parser("status", help="diff registry vs live services")

    release = sub.add_parser("release", help="publish a release candidate")
    release.add_argument("name", help="release name (slugified into a branch)")
    release.add_argument("-m", "--message", default=None, help="commit message")
    return parser


def _emit(payload: object) -> None:
    print(json.dumps(payload, indent=2))


async def run(args: argparse.Namespace, config: RegistryConfig) -> int:
    async with create_version_control_client(config.github) as client:  # type: ignore[attr-defined]
        registry = SchemaRegistry(config, client, build_gateway_schema)

        if args.command == "version":
            _emit({"version": await registry.get_registry_version()})
            return EXIT_OK

        if args.command == "services":
            if args.source == "registry":
                services = await registry.load_registry_services()
            else:
                services = await registry.load_local_services()
            _emit([s.model_dump() for s in services])
            return EXIT_OK

        if registry.is_production:
            print(
                f"[ERROR] '{args.command}' compares live services; "
                "run it outside production",
                file=sys.stderr,
            )
            return EXIT_ERROR

        await registry.load()

        if args.command == "status":
            changes = await registry.pending_changes()
            _emit(changes.as_dict())
            return EXIT_OK if changes.is_empty else EXIT_CHANGED

        release = await registry.create_or_update_release(args.name, args.message)
        _emit(release.model_dump())
        return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = load_registry_config(args.env_file)
        return asyncio.run(run(args, config))
    except DomainError as e:
        logger.error("Command failed", command=args.command, error=str(e))
        print(f"[ERROR] {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
