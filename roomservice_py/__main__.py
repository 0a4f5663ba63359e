#!/usr/bin/env python3
"""
Roomservice CLI Entry Point

Builds the rooms of a project whose sources changed since their last
successful build.
"""

import argparse
import logging
import sys
import uuid
from typing import List, Optional

from . import __version__
from .config import build_scheduler, split_names
from .engine import RunReport, RunStatus
from .errors import EventLogError, RoomserviceError
from .logs import create_logger


logger = logging.getLogger("roomservice_py")


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value}")
    return number


def print_report(report: RunReport) -> None:
    """Print the end-of-run summary."""
    if report.status in (RunStatus.UP_TO_DATE, RunStatus.DRY_RUN):
        return

    if report.status == RunStatus.HASHES_UPDATED:
        print(f"✓ Updated fingerprints for {len(report.committed)} room(s)")
        return

    if report.errored:
        print(f"❌ {len(report.errored)} room(s) failed: {', '.join(report.errored)}", file=sys.stderr)
    else:
        print(f"✅ Built {len(report.changed)} room(s)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Incrementally build the rooms of a project",
        prog="roomservice"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--project", "-p",
        default=".",
        help="Project directory or path to the config file (default: .)"
    )
    parser.add_argument("--force", "-f", action="store_true", help="Build every room regardless of changes")
    parser.add_argument("--dry", action="store_true", help="Only report which rooms would build")
    parser.add_argument("--dump-scope", action="store_true", help="Write each room's file list to ./<room>")
    parser.add_argument(
        "--update-hashes-only",
        action="store_true",
        help="Store current fingerprints for every room without running hooks"
    )
    parser.add_argument("--only", help="Comma separated rooms to build")
    parser.add_argument("--ignore", help="Comma separated rooms to skip")
    parser.add_argument("--cache-dir", help="Fingerprint cache directory (default: <project>/.roomservice)")
    parser.add_argument("--max-workers", type=positive_int, help="Worker pool size for parallel phases")
    parser.add_argument("--log-file", help="Write an NDJSON event log to this path")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    event_log = None
    try:
        if args.log_file:
            try:
                event_log = create_logger(str(uuid.uuid4()), args.log_file)
            except OSError as e:
                raise EventLogError(args.log_file, str(e)) from e

        scheduler = build_scheduler(
            project=args.project,
            force=args.force,
            only=split_names(args.only),
            ignore=split_names(args.ignore),
            cache_dir=args.cache_dir,
            max_workers=args.max_workers,
            event_log=event_log,
        )
        report = scheduler.exec(
            dry_run=args.dry,
            dump_scope=args.dump_scope,
            update_hashes_only=args.update_hashes_only,
        )
    except RoomserviceError as e:
        logger.error(f"Error: {e}")
        return 1
    finally:
        if event_log:
            event_log.close()

    print_report(report)
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
