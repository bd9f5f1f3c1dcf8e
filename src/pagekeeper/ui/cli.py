from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from pagekeeper.app import create_archive, import_metadata_file
from pagekeeper.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from pagekeeper.domain.reconciliation import ArchiveReconcileResult

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage pagekeeper archive metadata")
    subparsers = parser.add_subparsers(dest="command", required=True)

    archive = subparsers.add_parser("archive", help="Archive management commands")
    archive_sub = archive.add_subparsers(dest="archive_command", required=True)
    archive_create = archive_sub.add_parser("create", help="Register an archive")
    archive_create.add_argument(
        "--hash",
        dest="archive_hash",
        type=str,
        required=True,
        help="Content hash naming the archive's image directory",
    )
    archive_create.add_argument(
        "--title",
        type=str,
        required=True,
        help="Display title for the archive",
    )

    reconcile = subparsers.add_parser(
        "reconcile",
        help="Reconcile a JSON metadata file into an archive",
    )
    reconcile.add_argument(
        "--archive-id",
        type=int,
        required=True,
        help="Id of the archive to update",
    )
    reconcile.add_argument(
        "--metadata",
        type=Path,
        required=True,
        help="Path to a JSON document with sources, images and/or tags",
    )
    reconcile.add_argument(
        "--verbose",
        action="store_true",
        help="Warn about sources that could not be given a name",
    )
    reconcile.add_argument(
        "--merge-sources",
        action="store_true",
        help="Keep stored sources that are missing from the metadata file",
    )

    return parser.parse_args(list(argv))


def _validate(args: argparse.Namespace) -> None:
    if args.command == "archive" and not args.archive_hash.strip():
        raise ValueError("Archive hash must not be empty")
    if args.command == "reconcile":
        if args.archive_id < 1:
            raise ValueError(f"Invalid archive id: {args.archive_id}")
        if not args.metadata.is_file():
            raise ValueError(f"Metadata file not found: {args.metadata}")


def _log_result(result: ArchiveReconcileResult) -> None:
    if result.sources is not None:
        log.info(
            "Sources: inserted=%s, deleted=%s, skipped=%s",
            result.sources.inserted,
            result.sources.deleted,
            result.sources.skipped,
        )
    if result.tags is not None:
        log.info(
            "Tags: upserted=%s, inserted=%s, deleted=%s",
            result.tags.upserted_tags,
            result.tags.inserted,
            result.tags.deleted,
        )
    if result.images is not None:
        log.info(
            "Images: inserted=%s, updated=%s, deleted=%s, removed files=%s",
            result.images.inserted,
            result.images.updated,
            result.images.deleted,
            result.images.removed_files,
        )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "archive" and parsed_args.archive_command == "create":
            archive = create_archive(
                archive_hash=parsed_args.archive_hash.strip(),
                title=parsed_args.title,
            )
            log.info("Created archive %s", archive.id)
        elif parsed_args.command == "reconcile":
            result = import_metadata_file(
                parsed_args.archive_id,
                parsed_args.metadata,
                verbose=parsed_args.verbose,
                merge_sources=parsed_args.merge_sources,
            )
            _log_result(result)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during reconciliation")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
