"""CLI entrypoint for devrun (devrun, python -m devrun)."""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

import structlog
from pydantic import ValidationError

from devrun import __version__
from devrun.core.config import Settings
from devrun.core.exceptions import ConfigurationError
from devrun.supervisor import Supervisor, resolve_launch_command
from devrun.supervisor.models import Task
from devrun.utils.logging import bind_supervisor_context, setup_logging

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devrun",
        description="Run the dev watch and serve scripts together, stopping both when either exits",
    )
    parser.add_argument(
        "tasks",
        nargs="*",
        metavar="TASK",
        help="Package scripts to run (default: dev:watch dev:serve)",
    )
    parser.add_argument("--grace-period-ms", type=int, help="Delay before exiting after kill requests")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--log-format", choices=["console", "json"], help="Log renderer")
    parser.add_argument(
        "--print-commands",
        action="store_true",
        help="Print the resolved launch commands and exit",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Merge command-line overrides over environment settings."""
    overrides = {}
    if args.tasks:
        overrides["tasks"] = ",".join(args.tasks)
    if args.grace_period_ms is not None:
        overrides["grace_period_ms"] = args.grace_period_ms
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.log_format:
        overrides["log_format"] = args.log_format

    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}", code="invalid_config") from e


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args)
    except ConfigurationError as e:
        setup_logging()
        logger.error("Configuration error", error=str(e))
        return 2

    setup_logging(settings.log_level, settings.log_format)
    bind_supervisor_context(pid=os.getpid())

    if args.print_commands:
        for name in settings.task_list:
            print(resolve_launch_command(Task(name)))
        return 0

    supervisor = Supervisor(settings.task_list, grace_period=settings.grace_period)
    return asyncio.run(supervisor.run())


if __name__ == "__main__":
    sys.exit(main())
