"""Command-line entrypoint for importing a food spreadsheet."""

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from pathlib import Path

from food_importer.app_logging import configure_logging
from food_importer.containers import AppContainer, build_container
from food_importer.domain.imports import ColumnMapping, ImportOptions, ImportResult


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the import command."""
    parser = argparse.ArgumentParser(
        prog="food-import",
        description="Import foods from an XLSX or CSV spreadsheet.",
    )
    parser.add_argument("path", type=Path, help="Spreadsheet to import")
    parser.add_argument("--batch-size", type=int, default=None)
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and deduplicate without inserting",
    )
    parser.add_argument(
        "--detect-headers",
        action="store_true",
        help="Locate the header row heuristically (government nutrition exports)",
    )
    parser.add_argument("--sheet", default=None, help="Sheet name (default: first)")
    parser.add_argument("--brand", default=None, help="Brand for rows without one")
    return parser


async def run_import(
    container: AppContainer, args: argparse.Namespace, buffer: bytes
) -> ImportResult:
    """Run one import with progress printed to stderr."""
    options = ImportOptions(
        batch_size=args.batch_size or container.settings.import_batch_size,
        dry_run=args.dry_run,
        column_mapping=(
            ColumnMapping.DETECT if args.detect_headers else ColumnMapping.FIXED
        ),
        sheet_name=args.sheet,
        brand=args.brand or container.settings.default_brand,
    )

    def _print_progress(progress: int) -> None:
        print(f"Progress: {progress}%", file=sys.stderr)

    try:
        return await container.import_service.import_buffer(
            buffer, options, on_progress=_print_progress
        )
    finally:
        await container.close_resources()


def main(
    argv: Sequence[str] | None = None, container: AppContainer | None = None
) -> int:
    """Run the import command and return the process exit code."""
    configure_logging()
    args = build_parser().parse_args(argv)
    if not args.path.is_file():
        print(f"File not found: {args.path}", file=sys.stderr)
        return 2
    try:
        buffer = args.path.read_bytes()
    except OSError as exc:
        print(f"Could not read {args.path}: {exc}", file=sys.stderr)
        return 2
    resolved = container or build_container()
    result = asyncio.run(run_import(resolved, args, buffer))
    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
