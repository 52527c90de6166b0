"""
Command line entry point.

    tasknc                      run the interactive task list
    tasknc --print              print the rendered task list and exit
    tasknc --cfgdump            print every variable after the config file ran
"""

from __future__ import annotations

import argparse
import shutil
import sys
from pathlib import Path

from tasknc import PROGRAM_AUTHOR, PROGRAM_NAME, __version__
from tasknc.config import Config, load_config
from tasknc.errors import ConfigError, TaskncError
from tasknc.formats import align
from tasknc.logging import (
    EXIT_CONFIG_ERROR,
    EXIT_DEP_MISSING,
    EXIT_OK,
    EXIT_RUNTIME_ERROR,
    get_logger,
    json_logging_from_env,
    setup_logging,
)
from tasknc.session import Session

log = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROGRAM_NAME,
        description="ncurses-style interface for taskwarrior",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-l",
        "--loglevel",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "-f",
        "--filter",
        help="Initial task filter (default: status:pending)",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="Command file to source at startup",
    )
    parser.add_argument(
        "-s",
        "--sort",
        help="Initial sort mode (default: drpu)",
    )
    parser.add_argument(
        "-t",
        "--task-format",
        help="Task line format string",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Run log location (default: /tmp/.tasknc_runlog)",
    )
    parser.add_argument(
        "-p",
        "--print",
        action="store_true",
        dest="print_tasks",
        help="Print the task list to stdout and exit (no TUI)",
    )
    parser.add_argument(
        "-d",
        "--cfgdump",
        action="store_true",
        help="Print the configuration variables and exit",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="store_true",
        help="Print the version and exit",
    )
    return parser


def apply_arguments(config: Config, args: argparse.Namespace) -> Config:
    """Command line options override the environment."""
    updates = {
        "log_level": args.loglevel,
        "filter_string": args.filter,
        "config_file": args.config,
        "sort_mode": args.sort,
        "task_format": args.task_format,
        "log_file": args.log_file,
    }
    for key, value in updates.items():
        if value is not None:
            setattr(config, key, value)
    return config


def print_tasks(session: Session) -> int:
    width = shutil.get_terminal_size().columns
    context = session.context()
    for record in session.store:
        _, line = session.render_task(record, False, context)
        print(align(line, width).rstrip())
    return EXIT_OK


def print_variables(session: Session) -> int:
    for variable in session.variables:
        print(session.variables.message(variable.name))
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"{PROGRAM_NAME} {__version__} by {PROGRAM_AUTHOR}")
        return EXIT_OK

    try:
        config = apply_arguments(load_config(), args)
    except (ConfigError, ValueError) as e:
        print(f"{PROGRAM_NAME}: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(config.log_level, config.log_file, config.log_json or json_logging_from_env())
    log.debug("%s started", PROGRAM_NAME)

    if shutil.which(config.task_bin) is None:
        print(f"{PROGRAM_NAME}: task binary not found: {config.task_bin}", file=sys.stderr)
        return EXIT_DEP_MISSING

    session = Session(config)

    if args.cfgdump:
        try:
            session.load_config_file(config.config_file)
        except TaskncError as e:
            print(f"{PROGRAM_NAME}: {e}", file=sys.stderr)
            return EXIT_CONFIG_ERROR
        return print_variables(session)

    if args.print_tasks:
        try:
            session.startup()
        except TaskncError as e:
            log.error("startup failed: %s", e, extra={"error_category": e.category})
            print(f"{PROGRAM_NAME}: {e}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR
        return print_tasks(session)

    # Launch TUI
    from tasknc.app import run

    run(session)
    log.debug("%s exiting", PROGRAM_NAME)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
