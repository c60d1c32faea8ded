"""
error_insight/cli.py - Command line entry point

    error-insight run script.py [args...]   run a script with diagnostics on
    error-insight config                    print the resolved configuration
"""

from __future__ import annotations

import argparse
import json
import logging
import runpy
import sys
from typing import Any, Dict, List, Optional

from .config import load_config
from .exceptions import ConfigError
from .integrations import console

logger = logging.getLogger("insight.cli")


def setup_logging(level: str = "WARNING", log_file: Optional[str] = None, json_format: bool = False) -> None:
    """
    Configure logging for the CLI.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
        json_format: Use JSON format for logs
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    if json_format:

        class JSONFormatter(logging.Formatter):
            def format(self, record):
                return json.dumps({
                    "timestamp": self.formatTime(record),
                    "level": record.levelname,
                    "logger": record.name,
                    "message": record.getMessage(),
                })

        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    # Diagnostics go to stderr; keep log lines there too
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Explain unhandled errors with optional AI backends",
        prog="error-insight",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Log level",
    )
    parser.add_argument("--log-file", default=None, help="Log file path")
    parser.add_argument("--log-json", action="store_true", help="Log in JSON format")

    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Run a Python script with diagnostics installed")
    run.add_argument("--backend", default=None, help="Backend override (none, local, api, ...)")
    run.add_argument("--output", default=None, choices=["auto", "html", "text", "json"])
    run.add_argument("--lang", default=None, help="Language for labels and narratives")
    run.add_argument("--verbose", action="store_true", default=None, help="Capture local variables")
    run.add_argument("script", help="Script path")
    run.add_argument("args", nargs=argparse.REMAINDER, help="Script arguments")

    sub.add_parser("config", help="Print the resolved configuration as JSON")

    return parser


def _overrides(parsed: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for name, key in (("backend", "backend"), ("output", "output"), ("lang", "language"), ("verbose", "verbose")):
        value = getattr(parsed, name, None)
        if value is not None:
            overrides[key] = value
    return overrides


def run_script(script: str, args: List[str], overrides: Dict[str, Any]) -> int:
    """
    Run a script as __main__ with the console adapter installed.

    Returns:
        Exit code: the script's SystemExit code, 1 on an unhandled failure
    """
    config = load_config(overrides)
    hook = console.install(config)

    saved_argv = sys.argv
    sys.argv = [script] + list(args)
    try:
        runpy.run_path(script, run_name="__main__")
        return 0
    except SystemExit as e:
        if e.code is None:
            return 0
        if isinstance(e.code, int):
            return e.code
        print(e.code, file=sys.stderr)
        return 1
    except Exception as e:
        hook(type(e), e, e.__traceback__)
        return 1
    finally:
        sys.argv = saved_argv
        console.uninstall()


def show_config() -> int:
    config = load_config()
    data = config.to_dict()
    data["problems"] = config.problems()
    print(json.dumps(data, indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entry point.

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    parser = build_parser()
    parsed = parser.parse_args(argv)

    setup_logging(level=parsed.log_level, log_file=parsed.log_file, json_format=parsed.log_json)

    try:
        if parsed.command == "run":
            return run_script(parsed.script, parsed.args, _overrides(parsed))
        if parsed.command == "config":
            return show_config()

    except ConfigError as e:
        print(f"error-insight: {e}", file=sys.stderr)
        return 2

    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
