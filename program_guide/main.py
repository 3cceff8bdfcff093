"""
Command line entry point for the program guide sync.

Usage:
    program-guide-sync --env-file sync.env              # Sync every program that changed
    program-guide-sync --env-file sync.env 82           # Sync one TVMaze show unconditionally
    program-guide-sync --env-file sync.env --schedule   # Run full syncs on the configured cron
"""
import argparse
import logging
import sys

from pydantic import ValidationError

from program_guide.config import CustomSettings, load_settings, setup_logging
from program_guide.services.scheduler_service import SyncScheduler
from program_guide.services.sync_service import run_sync
from program_guide.services.sync_types import ExitCode, SyncSetupError


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="program-guide-sync",
        description="Update the program guide database from TVMaze.",
    )
    parser.add_argument(
        "tvmaze_id",
        nargs="?",
        type=int,
        help="Only update this TVMaze show, even if it has not changed",
    )
    parser.add_argument(
        "-e",
        "--env-file",
        required=True,
        help="Configuration file with DATABASE_URL and TVMAZE_BASE_URL",
    )
    parser.add_argument(
        "--schedule",
        action="store_true",
        help="Keep running and sync on the SYNC_CRON schedule",
    )
    return parser


def _load(env_file: str) -> CustomSettings | None:
    try:
        return load_settings(env_file)
    except FileNotFoundError as exc:
        logger.error("%s", exc)
    except ValidationError as exc:
        logger.error("Invalid configuration in %s:\n%s", env_file, exc)
    return None


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return the process exit code."""
    args = build_parser().parse_args(argv)

    # Logging must be up before settings log what they loaded
    setup_logging()
    settings = _load(args.env_file)
    if settings is None:
        return ExitCode.CONFIG_FAILURE
    logging.getLogger().setLevel(settings.log_level)

    if args.schedule:
        if args.tvmaze_id is not None:
            logger.error("A TVMaze id cannot be combined with --schedule")
            return ExitCode.CONFIG_FAILURE
        SyncScheduler(settings).start()
        return ExitCode.SUCCESS

    try:
        report = run_sync(settings, args.tvmaze_id)
    except SyncSetupError as exc:
        logger.error("Sync aborted: %s", exc)
        return exc.exit_code
    except Exception as exc:
        logger.error("Unexpected error during sync: %s", exc, exc_info=True)
        return ExitCode.RUN_FAILURE

    for summary in report.programs:
        print(summary.outcome_line())
    print(report.summary_line())
    return ExitCode.SUCCESS


def run() -> None:
    sys.exit(int(main()))


if __name__ == "__main__":
    run()
