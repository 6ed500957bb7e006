"""Command-line interface for doksnet."""

from __future__ import annotations

import argparse
import logging
import sys
from enum import IntEnum
from pathlib import Path
from typing import Optional

from doksnet import __version__
from doksnet.errors import DoksnetError, StoreError
from doksnet.hashing import fingerprint, short_hash
from doksnet.partition import extract_content, parse
from doksnet.store import (
    DOKS_FILE_NAME,
    DoksConfig,
    create_mapping,
    find_doks_file,
    find_documentation_files,
    load_doks,
    new_config,
    save_doks,
    update_mapping,
)
from doksnet.verifier import check_all_mappings, format_report, remove_failed_mappings

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 200


class ExitCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0
    FAILURE = 1
    USAGE_ERROR = 2


def _locate_store(args: argparse.Namespace) -> Path:
    """Return the .doks path from --file or an upward search."""
    if args.file:
        return Path(args.file)

    doks_path = find_doks_file()
    if doks_path is None:
        raise StoreError(
            f"No {DOKS_FILE_NAME} file found. Run 'doksnet new' first.",
            error_type="store_not_found",
        )
    return doks_path


def _load_store(args: argparse.Namespace) -> tuple[Path, DoksConfig]:
    doks_path = _locate_store(args)
    return doks_path, load_doks(doks_path)


def _store_root(doks_path: Path) -> Path:
    """Partition paths in a .doks file are relative to its directory."""
    return doks_path.resolve().parent


def _expand_doc_reference(reference: str, config: DoksConfig) -> str:
    """Let ':10-20' stand for '<default_doc>:10-20'."""
    if reference.startswith(":"):
        return config.default_doc + reference
    return reference


def _preview(content: str) -> str:
    if len(content) <= PREVIEW_CHARS:
        return content
    return content[:PREVIEW_CHARS] + "\n... (truncated)"


def cmd_new(args: argparse.Namespace) -> int:
    """Create a new .doks file."""
    target = Path(args.path) if args.path else Path.cwd()
    doks_path = target / DOKS_FILE_NAME

    if not target.is_dir():
        raise StoreError(f"Not a directory: {target}", error_type="store_not_found")
    if doks_path.exists():
        raise StoreError(
            f"A {DOKS_FILE_NAME} file already exists in {target}",
            error_type="store_exists",
            file=str(doks_path),
        )

    if args.default_doc:
        default_doc = args.default_doc
    else:
        doc_files = find_documentation_files(target)
        default_doc = doc_files[0] if doc_files else "README.md"
        if len(doc_files) > 1:
            print(f"Found documentation files: {', '.join(doc_files)}")

    save_doks(new_config(default_doc), doks_path)

    print(f"Created {doks_path} with default documentation: {default_doc}")
    print("Use 'doksnet add' to create mappings between documentation and code.")
    return ExitCode.SUCCESS


def cmd_add(args: argparse.Namespace) -> int:
    """Add a mapping between a documentation and a code partition."""
    doks_path, config = _load_store(args)
    root = _store_root(doks_path)

    doc_reference = _expand_doc_reference(args.doc, config)
    mapping = create_mapping(
        doc_reference,
        args.code,
        description=args.description,
        root=root,
    )
    config.add_mapping(mapping)
    save_doks(config, doks_path)

    print(f"Added mapping {short_hash(mapping.id)} ({mapping.id})")
    print(f"  Doc: {mapping.doc_partition}")
    print(f"  Code: {mapping.code_partition}")
    print(f"Total mappings: {len(config.mappings)}")
    return ExitCode.SUCCESS


def cmd_edit(args: argparse.Namespace) -> int:
    """Point a mapping at new partitions, or re-accept its current content."""
    doks_path, config = _load_store(args)
    root = _store_root(doks_path)

    mapping = config.find_mapping(args.id)
    doc_reference = _expand_doc_reference(args.doc, config) if args.doc else None

    update_mapping(
        mapping,
        doc_reference=doc_reference,
        code_reference=args.code,
        description=args.description,
        root=root,
    )
    save_doks(config, doks_path)

    print(f"Updated mapping {short_hash(mapping.id)}")
    print(f"  Doc: {mapping.doc_partition}")
    print(f"  Code: {mapping.code_partition}")
    return ExitCode.SUCCESS


def cmd_list(args: argparse.Namespace) -> int:
    """List every mapping in the store."""
    _, config = _load_store(args)

    if not config.mappings:
        print("No mappings found. Use 'doksnet add' to create some first.")
        return ExitCode.SUCCESS

    print(f"Default documentation file: {config.default_doc}")
    for mapping in config.mappings:
        print(f"\n{short_hash(mapping.id)}  {mapping.id}")
        print(f"  Doc: {mapping.doc_partition}")
        print(f"  Code: {mapping.code_partition}")
        if mapping.description:
            print(f"  Description: {mapping.description}")
    return ExitCode.SUCCESS


def cmd_test(args: argparse.Namespace) -> int:
    """Verify every mapping; exit non-zero if any has drifted."""
    doks_path, config = _load_store(args)

    if not config.mappings:
        print("No mappings found. Use 'doksnet add' to create some first.")
        return ExitCode.SUCCESS

    print(f"=== Testing {len(config.mappings)} documentation-code mappings ===")
    print(f"Default documentation file: {config.default_doc}\n")

    report = check_all_mappings(config, root=_store_root(doks_path))
    print(format_report(report))

    return ExitCode.SUCCESS if report.failed == 0 else ExitCode.FAILURE


def cmd_remove_failed(args: argparse.Namespace) -> int:
    """Remove every mapping whose content no longer matches its hashes."""
    doks_path, config = _load_store(args)

    if not config.mappings:
        print("No mappings found. Use 'doksnet add' to create some first.")
        return ExitCode.SUCCESS

    print(f"Checking {len(config.mappings)} mappings for failures...")
    report = check_all_mappings(config, root=_store_root(doks_path))
    failed = report.failed_results()

    if not failed:
        print("No failed mappings found. All mappings are up to date.")
        return ExitCode.SUCCESS

    print(f"\nFound {len(failed)} failed mapping(s):")
    for result in failed:
        mapping = result.mapping
        print(f"  ID: {short_hash(mapping.id)} ({mapping.id})")
        print(f"    Doc: {mapping.doc_partition}")
        print(f"    Code: {mapping.code_partition}")
        if mapping.description:
            print(f"    Description: {mapping.description}")
        for reason in result.failure_reasons():
            print(f"    - {reason}")

    if not args.yes and not _confirm(f"Remove all {len(failed)} failed mapping(s)?"):
        print("Removal cancelled. Failed mappings remain.")
        return ExitCode.SUCCESS

    removed = remove_failed_mappings(config, report)
    save_doks(config, doks_path)

    print(f"Removed {len(removed)} failed mapping(s)")
    print(f"Remaining mappings: {len(config.mappings)}")
    return ExitCode.SUCCESS


def _confirm(prompt: str) -> bool:
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def cmd_extract(args: argparse.Namespace) -> int:
    """Print the content a partition reference currently points at."""
    content = extract_content(parse(args.reference))
    if args.preview:
        content = _preview(content)
    print(content)
    return ExitCode.SUCCESS


def cmd_hash(args: argparse.Namespace) -> int:
    """Print the fingerprint of a partition's current content."""
    content = extract_content(parse(args.reference))
    print(fingerprint(content))
    return ExitCode.SUCCESS


def _configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="doksnet",
        description="doksnet - documentation-code mapping verification",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Partition references:
  README.md               whole file
  README.md:10-20         lines 10 to 20
  src/lib.py:5-25@10-50   line 5 column 10 through line 25 column 50

Examples:
  doksnet new
  doksnet add --doc README.md:10-20 --code src/lib.py:5-25
  doksnet test
  doksnet edit 3f1c2a9b --code src/lib.py:6-26
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--file",
        type=str,
        default=None,
        help=f"Path to the {DOKS_FILE_NAME} file (defaults to searching upward from cwd)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    new_parser = subparsers.add_parser("new", help=f"Create a new {DOKS_FILE_NAME} file")
    new_parser.add_argument("path", nargs="?", default=None, help="Target directory")
    new_parser.add_argument("--default-doc", default=None, help="Default documentation file")
    new_parser.set_defaults(func=cmd_new)

    add_parser = subparsers.add_parser("add", help="Add a documentation-code mapping")
    add_parser.add_argument(
        "--doc",
        required=True,
        help="Documentation partition (':10-20' uses the default doc)",
    )
    add_parser.add_argument("--code", required=True, help="Code partition")
    add_parser.add_argument("--description", default=None, help="Optional description")
    add_parser.set_defaults(func=cmd_add)

    edit_parser = subparsers.add_parser("edit", help="Edit or re-accept a mapping")
    edit_parser.add_argument("id", help="Mapping ID (a unique prefix is enough)")
    edit_parser.add_argument("--doc", default=None, help="New documentation partition")
    edit_parser.add_argument("--code", default=None, help="New code partition")
    edit_parser.add_argument("--description", default=None, help="New description")
    edit_parser.set_defaults(func=cmd_edit)

    list_parser = subparsers.add_parser("list", help="List all mappings")
    list_parser.set_defaults(func=cmd_list)

    test_parser = subparsers.add_parser("test", help="Verify all mappings (CI friendly)")
    test_parser.set_defaults(func=cmd_test)

    remove_parser = subparsers.add_parser("remove-failed", help="Remove all failed mappings")
    remove_parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    remove_parser.set_defaults(func=cmd_remove_failed)

    extract_parser = subparsers.add_parser("extract", help="Print a partition's content")
    extract_parser.add_argument("reference", help="Partition reference")
    extract_parser.add_argument(
        "--preview",
        action="store_true",
        help=f"Truncate output to {PREVIEW_CHARS} characters",
    )
    extract_parser.set_defaults(func=cmd_extract)

    hash_parser = subparsers.add_parser("hash", help="Print a partition's fingerprint")
    hash_parser.add_argument("reference", help="Partition reference")
    hash_parser.set_defaults(func=cmd_hash)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        return int(args.func(args))
    except DoksnetError as e:
        logger.debug(f"{args.command} failed: {e.to_json()}")
        print(f"Error: {e}", file=sys.stderr)
        return ExitCode.FAILURE


if __name__ == "__main__":
    sys.exit(main())
