"""
Interactive streaming statistics.

Reads commands from stdin, feeds them to a tracker and prints the snapshot
after every change::

    $ incstats --tracker advanced
    > add 1;2;3.5
    {"count": 3, "mean": 2.1666666666666665, ...}
    > remove 2
    ...
    > quit
"""

from __future__ import annotations

import argparse
import json
import logging
import math
import os
import sys
from typing import List, Optional, TextIO

from incstats import __version__
from incstats._errors import StatisticsError
from incstats.trackers import AdvancedStatisticsTracker, SimpleStatisticsTracker, StatisticsTracker

logger = logging.getLogger("incstats.cli")

PROMPT = "> "

TRACKERS = {
    "simple": SimpleStatisticsTracker,
    "advanced": AdvancedStatisticsTracker,
}

HELP_TEXT = """\
Commands:
  add v1;v2;...     add one observation of each value
  remove v1;v2;...  remove one observation of each value
  snapshot          print the current snapshot
  state             print the raw tracker state
  clear             drop every observation
  help              show this message
  quit              leave (also: exit, EOF)"""


def parse_values(text: str) -> List[float]:
    """
    Parse ``;``-separated numbers, skipping tokens that are not finite numbers.

    Examples:
        >>> parse_values("1; 2.5;x;;4")
        [1.0, 2.5, 4.0]
    """
    values = []
    for token in text.split(";"):
        token = token.strip()
        if not token:
            continue
        try:
            value = float(token)
        except ValueError:
            logger.debug("Skipping non-numeric token %r", token)
            continue
        if math.isfinite(value):
            values.append(value)
    return values


def format_snapshot(tracker: StatisticsTracker) -> str:
    snapshot = tracker.take_snapshot().to_dict()
    if "probabilities" in snapshot:
        snapshot["probabilities"] = {repr(k): v for k, v in snapshot["probabilities"].items()}
    return json.dumps(snapshot)


def run_repl(
    tracker: StatisticsTracker,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    prompt: str = PROMPT,
) -> int:
    """
    Run the command loop until ``quit`` or end of input.

    Errors from the tracker are reported and the loop continues.

    Returns:
        Number of commands that failed
    """
    stdin = sys.stdin if stdin is None else stdin
    stdout = sys.stdout if stdout is None else stdout
    failures = 0

    def emit(line: str) -> None:
        print(line, file=stdout)

    while True:
        if prompt:
            stdout.write(prompt)
            stdout.flush()
        line = stdin.readline()
        if not line:
            break
        command, _, argument = line.strip().partition(" ")
        command = command.lower()

        if not command:
            continue
        if command in ("quit", "exit"):
            break
        if command == "help":
            emit(HELP_TEXT)
            continue
        if command == "snapshot":
            emit(format_snapshot(tracker))
            continue
        if command == "state":
            emit(json.dumps(_jsonable_state(tracker)))
            continue
        if command == "clear":
            tracker.clear()
            emit("Sample cleared")
            continue
        if command not in ("add", "remove"):
            failures += 1
            emit(f"Error: unknown command '{command}' (try 'help')")
            continue

        values = parse_values(argument)
        if not values:
            failures += 1
            emit(f"Error: the input '{argument}' holds no numeric values")
            continue

        try:
            if command == "add":
                tracker.add_many(values)
            else:
                tracker.remove_many(values)
        except StatisticsError as e:
            failures += 1
            logger.debug("Command %r failed", line.strip(), exc_info=True)
            emit(f"Error: {e}")
            continue

        if tracker.is_empty():
            emit("Sample is empty")
        emit(format_snapshot(tracker))

    return failures


def _jsonable_state(tracker: StatisticsTracker) -> dict:
    state = tracker.to_dict()
    for key in ("frequencies", "scale_counts"):
        if key in state:
            state[key] = [[k, v] for k, v in state[key].items()]
    return state


def _configure_logging(verbose: bool) -> None:
    if verbose:
        level = logging.DEBUG
    else:
        name = os.environ.get("INCSTATS_LOG_LEVEL", "WARNING").upper()
        level = getattr(logging, name, None)
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="incstats",
        description="Streaming descriptive statistics over values typed on stdin",
    )
    parser.add_argument(
        "--tracker", "-t",
        choices=sorted(TRACKERS),
        default="simple",
        help="Statistics tracker to use (default: simple)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--no-prompt", action="store_true", help="Do not print the input prompt")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    tracker = TRACKERS[args.tracker]()
    logger.info("Using %s", type(tracker).__name__)

    try:
        run_repl(tracker, prompt="" if args.no_prompt else PROMPT)
    except KeyboardInterrupt:
        print(file=sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
