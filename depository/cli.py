"""
Depository CLI — Inspect and edit a depository from the shell.

Commands:
- depository projects                         — List projects and their branches
- depository branches PROJECT                 — List branches of a project
- depository documents PROJECT BRANCH         — List document uris in a branch
- depository get PROJECT BRANCH URI           — Print (or save) a document
- depository create PROJECT BRANCH URI        — Create a document from a file or stdin
- depository update PROJECT BRANCH URI        — Overwrite a document from a file or stdin
- depository delete PROJECT BRANCH URI        — Delete a document
- depository health                           — Check the storage root
- depository validate-config                  — Validate depository.yaml

Exit codes: 0 success, 1 depository error (printed as JSON on stderr), 2 usage error.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from depository.documents.models import DocumentDto
from depository.engine.config import load_config
from depository.engine.errors import ConfigurationError, DepositoryError, InvalidOperationError
from depository.engine.logging import configure_logging
from depository.engine.runtime import DepositoryRuntime, OperationResult

logger = logging.getLogger("depository.cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="depository",
        description="Depository — hierarchical document store",
    )
    parser.add_argument("--config", help="Path to depository.yaml (default: auto-discover)")
    parser.add_argument("--root", help="Storage root (overrides config)")
    parser.add_argument("--log-level", help="Console log level (default: from config)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("projects", help="List projects")

    branches_parser = subparsers.add_parser("branches", help="List branches of a project")
    branches_parser.add_argument("project_id")

    documents_parser = subparsers.add_parser("documents", help="List documents in a branch")
    documents_parser.add_argument("project_id")
    documents_parser.add_argument("branch_name")

    get_parser = subparsers.add_parser("get", help="Read a document")
    _add_document_args(get_parser)
    get_parser.add_argument("--output", "-o", help="Write content to this file instead of stdout")
    get_parser.add_argument(
        "--metadata", action="store_true", help="Print name/uri/contentType as JSON instead of content"
    )

    create_parser = subparsers.add_parser("create", help="Create a document")
    _add_document_args(create_parser)
    create_parser.add_argument("--file", "-f", help="Read content from this file (default: stdin)")

    update_parser = subparsers.add_parser("update", help="Overwrite a document")
    _add_document_args(update_parser)
    update_parser.add_argument("--file", "-f", help="Read content from this file (default: stdin)")

    delete_parser = subparsers.add_parser("delete", help="Delete a document")
    _add_document_args(delete_parser)

    subparsers.add_parser("health", help="Check the storage root")
    subparsers.add_parser("validate-config", help="Validate depository.yaml")

    return parser


def _add_document_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("project_id")
    parser.add_argument("branch_name")
    parser.add_argument("uri")


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_USAGE

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        _print_error(e)
        return EXIT_ERROR

    configure_logging(args.log_level or config.logging.level)

    if args.command == "validate-config":
        return cmd_validate_config(config)

    if args.root:
        config = config.model_copy(
            update={"storage": config.storage.model_copy(update={"root": args.root})}
        )

    try:
        with DepositoryRuntime(config) as runtime:
            return _COMMANDS[args.command](runtime, args)
    except DepositoryError as e:
        _print_error(e)
        return EXIT_ERROR


def cmd_projects(runtime: DepositoryRuntime, args: argparse.Namespace) -> int:
    return _emit(runtime.dispatch("projects.list"))


def cmd_branches(runtime: DepositoryRuntime, args: argparse.Namespace) -> int:
    return _emit(runtime.dispatch("branches.list", project_id=args.project_id))


def cmd_documents(runtime: DepositoryRuntime, args: argparse.Namespace) -> int:
    return _emit(runtime.dispatch(
        "documents.list", project_id=args.project_id, branch_name=args.branch_name
    ))


def cmd_get(runtime: DepositoryRuntime, args: argparse.Namespace) -> int:
    result = runtime.dispatch(
        "documents.get",
        project_id=args.project_id,
        branch_name=args.branch_name,
        uri=args.uri,
    )
    if not result.ok:
        return _emit(result)

    document: DocumentDto = result.value
    if args.metadata:
        meta = document.to_dict()
        meta.pop("content")
        meta["size_bytes"] = document.size_bytes
        print(json.dumps(meta, indent=2))
    elif args.output:
        Path(args.output).write_bytes(document.content)
        logger.info(f"Wrote {document.size_bytes} bytes to {args.output}")
    else:
        sys.stdout.buffer.write(document.content)
        sys.stdout.buffer.flush()
    return EXIT_OK


def cmd_create(runtime: DepositoryRuntime, args: argparse.Namespace) -> int:
    document = DocumentDto(uri=args.uri, content=_read_content(args.file, "documents.create"))
    return _emit(runtime.dispatch(
        "documents.create",
        project_id=args.project_id,
        branch_name=args.branch_name,
        document=document,
    ))


def cmd_update(runtime: DepositoryRuntime, args: argparse.Namespace) -> int:
    document = DocumentDto(uri=args.uri, content=_read_content(args.file, "documents.update"))
    return _emit(runtime.dispatch(
        "documents.update",
        project_id=args.project_id,
        branch_name=args.branch_name,
        uri=args.uri,
        document=document,
    ))


def cmd_delete(runtime: DepositoryRuntime, args: argparse.Namespace) -> int:
    return _emit(runtime.dispatch(
        "documents.delete",
        project_id=args.project_id,
        branch_name=args.branch_name,
        uri=args.uri,
    ))


def cmd_health(runtime: DepositoryRuntime, args: argparse.Namespace) -> int:
    summary = asyncio.run(runtime.check_health())
    print(json.dumps(summary, indent=2))
    return EXIT_OK if summary["status"] == "healthy" else EXIT_ERROR


def cmd_validate_config(config: Any) -> int:
    print(json.dumps(config.model_dump(), indent=2, default=str))
    print("✅ Configuration is valid", file=sys.stderr)
    return EXIT_OK


_COMMANDS = {
    "projects": cmd_projects,
    "branches": cmd_branches,
    "documents": cmd_documents,
    "get": cmd_get,
    "create": cmd_create,
    "update": cmd_update,
    "delete": cmd_delete,
    "health": cmd_health,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read_content(file_name: Optional[str], operation: str) -> bytes:
    if not file_name:
        return sys.stdin.buffer.read()
    try:
        return Path(file_name).read_bytes()
    except OSError as e:
        raise InvalidOperationError(
            f"Cannot read content from '{file_name}': {e.strerror or e}",
            operation=operation,
        ) from e


def _emit(result: OperationResult) -> int:
    if not result.ok:
        _print_error(result.error)
        return EXIT_ERROR
    payload = result.to_dict()["value"]
    if payload is not None:
        print(json.dumps(payload, indent=2))
    return EXIT_OK


def _print_error(error: DepositoryError) -> None:
    print(error.to_json(), file=sys.stderr)


if __name__ == "__main__":
    sys.exit(main())
