from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from monosync import __version__
from monosync.app import sync_workspace
from monosync.config import ConfigurationError, configure_logging, parse_max_workers
from monosync.domain.sync import SyncStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from monosync.domain.sync import SyncOutcome

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def _parse_jobs(value: str) -> int:
    try:
        return parse_max_workers(value, source="--jobs")
    except ConfigurationError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="monosync",
        description="Sync workspace package dependencies with the imports in their sources",
    )
    parser.add_argument(
        "--root",
        type=Path,
        help="Workspace root directory (default: $MONOSYNC_ROOT or the current directory)",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="Configuration file (default: monosync.config.json in the workspace root)",
    )
    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        help="Print the changes as a unified diff without writing them",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Like --dry-run, but exit with status 1 when changes are pending",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log per-package scan results and graph analysis",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=_parse_jobs,
        help="Number of packages scanned in parallel (1 disables threading)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(list(argv))


def _exit_status(outcome: SyncOutcome, *, check: bool) -> int:
    if outcome.status is SyncStatus.FAILED:
        return EXIT_FAILURE
    if check and outcome.status is SyncStatus.CHANGES_NEEDED:
        return EXIT_FAILURE
    return EXIT_OK


def _print_report(outcome: SyncOutcome) -> None:
    report = outcome.write_plan.render_report(root=outcome.root)
    if report:
        sys.stdout.write(report)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(verbose=parsed_args.verbose)
    dry_run = parsed_args.dry_run or parsed_args.check

    try:
        outcome = sync_workspace(
            root=parsed_args.root,
            config_path=parsed_args.config,
            dry_run=dry_run,
            max_workers=parsed_args.jobs,
        )
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(EXIT_USAGE)
    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(EXIT_FAILURE)

    if dry_run and outcome.status is SyncStatus.CHANGES_NEEDED:
        _print_report(outcome)
        log.info("Dry run: %s file(s) would change", len(outcome.write_plan.mutations))
    if outcome.warnings:
        log.info("Completed with %s warning(s)", len(outcome.warnings))

    sys.exit(_exit_status(outcome, check=parsed_args.check))


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console-script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
