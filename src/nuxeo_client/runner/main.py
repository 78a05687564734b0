"""
CLI main entry point.
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any

import yaml

from ..client import NuxeoClient
from ..config import Config, ConfigValidationError, load_config
from ..errors import NuxeoError, NuxeoRemoteError
from ..marshaller import Blob, Blobs

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="nuxeo-client",
        description="Query a Nuxeo document repository from the command line",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("version", help="Show the server version")
    subparsers.add_parser("root", help="Fetch the repository root document")

    # fetch command
    fetch_parser = subparsers.add_parser("fetch", help="Fetch a document")
    target = fetch_parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--id", type=str, help="Document id")
    target.add_argument("--path", type=str, help="Document path")

    # query command
    query_parser = subparsers.add_parser("query", help="Run an NXQL query")
    query_parser.add_argument("nxql", type=str, help="NXQL query")
    query_parser.add_argument(
        "--page-size",
        type=int,
        default=50,
        help="Results per page (default: 50)",
    )

    # operation command
    operation_parser = subparsers.add_parser("operation", help="Execute an automation operation")
    operation_parser.add_argument("operation_id", type=str, help="Operation id, e.g. Document.Query")
    operation_parser.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Operation parameter (repeatable)",
    )
    operation_parser.add_argument(
        "--input",
        type=str,
        help="Input reference, e.g. doc:/default-domain",
    )

    return parser


def parse_params(values: list[str]) -> dict[str, str]:
    """Parse NAME=VALUE pairs."""
    params: dict[str, str] = {}
    for value in values:
        name, sep, param = value.partition("=")
        if not sep or not name:
            raise ValueError(f"Invalid parameter (expected NAME=VALUE): {value}")
        params[name] = param
    return params


def _print_result(result: Any) -> None:
    if isinstance(result, Blobs):
        for blob in result:
            print(f"  📎 {blob_label(blob)} -> {blob.file}")
        print(f"\n✓ {len(result)} blob(s)")
    elif isinstance(result, Blob):
        print(f"  📎 {blob_label(result)} -> {result.file}")
    elif is_dataclass(result):
        print(json.dumps(asdict(result), indent=2, default=str))
    else:
        print(result)


def blob_label(blob: Blob) -> str:
    return f"{blob.filename or '(unnamed)'} [{blob.mime_type}]"


def cmd_version(client: NuxeoClient) -> int:
    """Show server version."""
    version = client.server_version()
    print(f"Nuxeo server {version}")
    return 0


def cmd_root(client: NuxeoClient) -> int:
    """Fetch repository root."""
    root = client.repository().fetch_document_root()
    _print_result(root)
    return 0


def cmd_fetch(client: NuxeoClient, doc_id: str | None, path: str | None) -> int:
    """Fetch a document by id or path."""
    repository = client.repository()
    document = repository.fetch_document_by_id(doc_id) if doc_id else repository.fetch_document_by_path(path or "/")
    _print_result(document)
    return 0


def cmd_query(client: NuxeoClient, nxql: str, page_size: int) -> int:
    """Run an NXQL query."""
    documents = client.repository().query(nxql, page_size=page_size)
    for doc in documents:
        print(f"  📄 [{doc.id}] {doc.path} ({doc.type})")
    print(f"\n✓ Found {len(documents)} document(s)")
    return 0


def cmd_operation(client: NuxeoClient, operation_id: str, params: dict[str, str], input_ref: str | None) -> int:
    """Execute an automation operation."""
    operation = client.operation(operation_id).params(params)
    if input_ref:
        operation.input(input_ref)
    _print_result(operation.execute())
    return 0


def run_command(parsed: argparse.Namespace, config: Config) -> int:
    """Route a parsed command to its handler."""
    client = NuxeoClient.from_config(config)

    if parsed.command == "version":
        return cmd_version(client)
    elif parsed.command == "root":
        return cmd_root(client)
    elif parsed.command == "fetch":
        return cmd_fetch(client, parsed.id, parsed.path)
    elif parsed.command == "query":
        return cmd_query(client, parsed.nxql, parsed.page_size)
    elif parsed.command == "operation":
        return cmd_operation(client, parsed.operation_id, parse_params(parsed.param), parsed.input)
    return 1


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return 1

    # Load config
    try:
        config = load_config(parsed.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"❌ Failed to load config: {e}")
        return 1

    try:
        return run_command(parsed, config)
    except NuxeoRemoteError as e:
        print(f"❌ Server error {e.status_code}: {e.message}")
        return 1
    except (NuxeoError, ConfigValidationError, ValueError) as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
