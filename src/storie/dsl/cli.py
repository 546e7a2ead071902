"""
Command-line runner for Storie scripts.

Parses a script file, registers it as an event and triggers it once per
frame. The host exposes a single native, ``echo``, which prints its
arguments separated by spaces, and refreshes two globals before every
frame:

    frame  - frame counter starting at 0 (int)
    delta  - seconds per frame, 1 / 60 (float)

Environment variables:
    STORIE_LOG_LEVEL - Log level (debug, info, warning, error)

Usage:
    storie-dsl script.nim
    storie-dsl script.nim --event render --frames 3 --config runtime.yaml
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from .config import RuntimeConfig, load_config
from .environment import Environment
from .errors import ScriptError
from .runtime import init_runtime
from .values import Value, format_value

ENV_VAR_LOG_LEVEL = "STORIE_LOG_LEVEL"

FRAME_DELTA = 1.0 / 60.0

EXIT_OK = 0
EXIT_RUNTIME_ERROR = 1
EXIT_SCRIPT_ERROR = 2

logger = logging.getLogger("storie.dsl.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storie-dsl", description="Run a Storie script as an event."
    )
    parser.add_argument("script", type=Path, help="script file to run")
    parser.add_argument("--event", default="main", help="event name (default: main)")
    parser.add_argument(
        "--frames", type=int, default=1, help="number of times to trigger the event"
    )
    parser.add_argument("--config", type=Path, help="YAML or JSON runtime config")
    parser.add_argument(
        "--log-level",
        default=os.getenv(ENV_VAR_LOG_LEVEL, "warning"),
        help="log level (default: $STORIE_LOG_LEVEL or warning)",
    )
    return parser


def make_echo(out: TextIO):
    """Builds the `echo` native writing to `out`."""

    def echo(_env: Environment, args: Sequence[Value]) -> Value:
        print(" ".join(format_value(arg) for arg in args), file=out)
        return None

    return echo


def main(argv: Optional[List[str]] = None, out: Optional[TextIO] = None) -> int:
    """Main entry point; returns the process exit status."""
    args = _build_parser().parse_args(argv)
    out = out or sys.stdout

    logging.basicConfig(level=args.log_level.upper())

    config = load_config(args.config) if args.config else RuntimeConfig()
    runtime = init_runtime(config)
    runtime.register_native("echo", make_echo(out))

    source = args.script.read_text(encoding="utf-8")
    try:
        runtime.load_event(args.event, source)
    except ScriptError as error:
        print(error.format_with_context(), file=sys.stderr)
        return EXIT_SCRIPT_ERROR

    for frame in range(args.frames):
        runtime.set_global_int("frame", frame)
        runtime.set_global_float("delta", FRAME_DELTA)
        result = runtime.trigger_event(args.event)
        if not result.success:
            print(result.error, file=sys.stderr)
            return EXIT_RUNTIME_ERROR

    logger.debug("script_finished", extra={"event_name": args.event, "frames": args.frames})
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
