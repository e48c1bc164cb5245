"""
Command line interface for managing security rules.

Usage:
    python -m security_rules.cli.rules_cli create --file firestore.rules
    python -m security_rules.cli.rules_cli get <ruleset>
    python -m security_rules.cli.rules_cli delete <ruleset>
    python -m security_rules.cli.rules_cli list [--page-size N] [--page-token T] [--all]
    python -m security_rules.cli.rules_cli show-release {firestore,storage} [--bucket B]
    python -m security_rules.cli.rules_cli release {firestore,storage} <ruleset> [--bucket B]
    python -m security_rules.cli.rules_cli deploy {firestore,storage} --file PATH [--bucket B]

Global options:
    --project, --default-bucket, --config, --access-token
    (FIREBASE_RULES_ACCESS_TOKEN is read when --access-token is omitted)
"""

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Any

from security_rules.backend import HttpRulesBackend
from security_rules.client import SecurityRules
from security_rules.config import AppConfig, load_config
from security_rules.core.errors import SecurityRulesError
from security_rules.core.models import Ruleset, RulesetMetadata
from security_rules.observability.logger import get_logger

ACCESS_TOKEN_VAR = "FIREBASE_RULES_ACCESS_TOKEN"

logger = get_logger("security-rules.cli")


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


def _ruleset_dict(ruleset: Ruleset) -> dict[str, Any]:
    return ruleset.model_dump(mode="json")


def _metadata_dict(metadata: RulesetMetadata) -> dict[str, Any]:
    return {"name": metadata.name, "create_time": metadata.create_time}


def _read_source(path: str) -> bytes:
    return Path(path).read_bytes()


async def create_command(args, client: SecurityRules) -> None:
    """Create a ruleset from one or more local rules files."""
    files = [
        client.create_rules_file_from_source(Path(path).name, _read_source(path))
        for path in args.file
    ]
    ruleset = await client.create_ruleset(*files)
    _print_json(_ruleset_dict(ruleset))


async def get_command(args, client: SecurityRules) -> None:
    _print_json(_ruleset_dict(await client.get_ruleset(args.name)))


async def delete_command(args, client: SecurityRules) -> None:
    await client.delete_ruleset(args.name)
    print(f"Deleted ruleset {args.name}")


async def list_command(args, client: SecurityRules) -> None:
    """
    List ruleset metadata.

    With --all every page is fetched in turn; otherwise a single page is
    printed along with its next page token.
    """
    if args.all:
        entries = [
            _metadata_dict(metadata)
            async for metadata in client.iter_ruleset_metadata(args.page_size)
        ]
        _print_json({"rulesets": entries})
        return

    page = await client.list_ruleset_metadata(args.page_size, args.page_token)
    _print_json({
        "rulesets": [_metadata_dict(metadata) for metadata in page.rulesets],
        "next_page_token": page.next_page_token,
    })


async def show_release_command(args, client: SecurityRules) -> None:
    if args.target == "firestore":
        ruleset = await client.get_firestore_ruleset()
    else:
        ruleset = await client.get_storage_ruleset(args.bucket)
    _print_json(_ruleset_dict(ruleset))


async def release_command(args, client: SecurityRules) -> None:
    if args.target == "firestore":
        await client.release_firestore_ruleset(args.name)
    else:
        await client.release_storage_ruleset(args.name, args.bucket)
    print(f"Released ruleset {args.name} to {args.target}")


async def deploy_command(args, client: SecurityRules) -> None:
    """Create a ruleset from a single source file and release it."""
    source = _read_source(args.file)
    if args.target == "firestore":
        ruleset = await client.release_firestore_ruleset_from_source(source)
    else:
        ruleset = await client.release_storage_ruleset_from_source(source, args.bucket)
    _print_json(_ruleset_dict(ruleset))


COMMANDS = {
    "create": create_command,
    "get": get_command,
    "delete": delete_command,
    "list": list_command,
    "show-release": show_release_command,
    "release": release_command,
    "deploy": deploy_command,
}


def build_config(args) -> AppConfig:
    if args.config:
        config = load_config(args.config)
        overrides = {}
        if args.project:
            overrides["project_id"] = args.project
        if args.default_bucket:
            overrides["storage_bucket"] = args.default_bucket
        if overrides:
            return AppConfig.build(**{**config.model_dump(), **overrides})
        return config
    return AppConfig.from_env(project_id=args.project, storage_bucket=args.default_bucket)


def create_client(args) -> SecurityRules:
    access_token = args.access_token or os.getenv(ACCESS_TOKEN_VAR)
    return SecurityRules(HttpRulesBackend(access_token=access_token), build_config(args))


async def run_command(args, client: SecurityRules) -> None:
    """Dispatch a parsed command and close the client afterwards."""
    async with client:
        await COMMANDS[args.command](args, client)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Manage Firebase security rulesets and releases",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--project", help="Project ID (defaults to FIREBASE_CONFIG / GOOGLE_CLOUD_PROJECT)")
    parser.add_argument("--default-bucket", help="Default Cloud Storage bucket for storage releases")
    parser.add_argument("--config", help="Path to YAML configuration file")
    parser.add_argument("--access-token", help=f"OAuth2 access token (defaults to {ACCESS_TOKEN_VAR})")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    create_parser = subparsers.add_parser("create", help="Create a ruleset from rules files")
    create_parser.add_argument(
        "--file",
        action="append",
        required=True,
        help="Rules file to include (repeatable, order is kept)",
    )

    get_parser = subparsers.add_parser("get", help="Show a ruleset")
    get_parser.add_argument("name", help="Short ruleset name")

    delete_parser = subparsers.add_parser("delete", help="Delete a ruleset")
    delete_parser.add_argument("name", help="Short ruleset name")

    list_parser = subparsers.add_parser("list", help="List ruleset metadata")
    list_parser.add_argument(
        "--page-size",
        type=int,
        help="Page size between 1 and 100 (default: 100)",
    )
    list_parser.add_argument("--page-token", help="Token returned by a previous page")
    list_parser.add_argument("--all", action="store_true", help="Fetch every page")

    for command, help_text in (
        ("show-release", "Show the ruleset released to a target"),
        ("release", "Release an existing ruleset to a target"),
        ("deploy", "Create a ruleset from a source file and release it"),
    ):
        target_parser = subparsers.add_parser(command, help=help_text)
        target_parser.add_argument("target", choices=["firestore", "storage"])
        if command == "release":
            target_parser.add_argument("name", help="Short ruleset name")
        if command == "deploy":
            target_parser.add_argument("--file", required=True, help="Rules source file")
        target_parser.add_argument("--bucket", help="Bucket name (storage target only)")

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        client = create_client(args)
        asyncio.run(run_command(args, client))
    except SecurityRulesError as e:
        logger.debug("Command failed", extra={"command": args.command, "error_code": e.code})
        print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
        return 1
    except (FileNotFoundError, IsADirectoryError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n\nInterrupted by user", file=sys.stderr)
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
