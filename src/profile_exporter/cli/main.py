"""
Command-line interface for the profile exporter.

This module parses the command-line flags, configures logging, loads and
validates the configuration file and runs the exporter until it receives
SIGINT or SIGTERM.
"""

import argparse
import asyncio
import logging
import sys
import tomllib
from pathlib import Path
from typing import List, Optional

from ..config import get_config, set_config_path
from ..orchestration import ExporterRunner
from ..validation import ValidationError, handle_cli_error

LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

DEFAULT_CONFIG_FILE = "profile-exporter.toml"

logger = logging.getLogger(__name__)


def setup_logging(level_name: str) -> None:
    """Configure root logging for the given level name."""
    logging.basicConfig(
        level=LOG_LEVELS.get(level_name, logging.INFO),
        format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="profile-exporter",
        description="Export Parca profiling query results to a Prometheus remote-write endpoint."
    )
    parser.add_argument(
        "--log-level",
        choices=list(LOG_LEVELS),
        default="info",
        help="Log level.",
    )
    parser.add_argument(
        "--config-file",
        type=Path,
        default=Path(DEFAULT_CONFIG_FILE),
        help="Path to the config file.",
    )
    return parser


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line entry point.

    Exits with status 1 when the configuration cannot be loaded or the
    exporter cannot start, and with status 0 after a clean shutdown.
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    set_config_path(args.config_file)
    try:
        app_config = get_config()
    except (FileNotFoundError, ValidationError, tomllib.TOMLDecodeError) as e:
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=1,
            logger=logger,
        )

    logger.info(f"Starting profile exporter with {len(app_config.queries)} queries")
    runner = ExporterRunner(app_config)
    try:
        asyncio.run(runner.run())
    except ValidationError as e:
        handle_cli_error(
            error=e,
            context="exporter startup",
            exit_code=1,
            logger=logger,
        )

    logger.info("Profile exporter shut down cleanly")


if __name__ == "__main__":
    main_cli()
