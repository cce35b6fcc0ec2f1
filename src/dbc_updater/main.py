"""Command line entry point for the DBC updater tool."""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from dbc_updater.models.settings import UpdaterSettings
from dbc_updater.services.sequencer import Sequencer
from dbc_updater.utils.duration import parse_duration
from dbc_updater.utils.logging import setup_logger

EXIT_SUCCESS = 0
EXIT_ABORTED = 1
EXIT_INTERRUPTED = 130


def _duration(value: str) -> float:
    try:
        return parse_duration(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        argv: Argument list (sys.argv[1:] if None)

    Returns:
        Parsed arguments with ``update_timeout`` in seconds
    """
    parser = argparse.ArgumentParser(
        prog="dbc-updater",
        description="Power-cycle the DBC around an externally applied update",
    )
    parser.add_argument(
        "--update-timeout",
        type=_duration,
        default=30 * 60.0,
        metavar="DURATION",
        help="Maximum time to wait for update to complete (e.g. 30m, 90s, 1h30m)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Run one update sequence.

    Returns:
        Process exit status
    """
    args = parse_args(argv)
    settings = UpdaterSettings(update_timeout=args.update_timeout)
    logger = setup_logger("dbc_updater", settings.log_file, level=logging.INFO)

    sequencer = Sequencer(settings)
    try:
        completed = asyncio.run(sequencer.run())
    except KeyboardInterrupt:
        logger.error("Interrupted, update sequence not finished")
        return EXIT_INTERRUPTED

    return EXIT_SUCCESS if completed else EXIT_ABORTED


if __name__ == "__main__":
    sys.exit(main())
