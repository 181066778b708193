"""CLI entry point for watchrun: watch files and run a command on change."""

import argparse
import asyncio
import logging
import sys
from typing import TextIO

from watchrun import __version__
from watchrun.controller import Watcher
from watchrun.shutdown import ShutdownHooks
from watchrun_core.listeners import NoOpListener
from watchrun_core.models import ChangeEvent, WatchSpec

logger = logging.getLogger(__name__)

USAGE = """\
Usage: watchrun <FILES> [OPTIONS] -- <COMMAND> [COMMAND_ARGS]

    Watch files and run a command.

    FILES .......... One or more glob patterns to watch files.
    OPTIONS ........ Options below.
    COMMAND ........ The command name to run.
    COMMAND_ARGS ... The arguments of the command.

Options:
    --no-initial .......... The flag to prevent the first run at ready.
    --debounce <number> ... The debounce wait time in milliseconds (default: 250).
    --verbose ............. Log debug output to stderr.
    -h, --help ............ Show this help text.
    -v, --version ......... Show the version.

Examples:
    $ watchrun src tests -- pytest
    $ watchrun "src/**/*.py" --no-initial -- make build
"""


class UsageError(Exception):
    """Invalid command-line arguments."""


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting, and prints our usage text."""

    def error(self, message: str):
        raise UsageError(message)

    def format_help(self) -> str:
        return USAGE


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0: {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the parser for everything before ``--``."""
    parser = _ArgumentParser(prog="watchrun", allow_abbrev=False)
    parser.add_argument("patterns", nargs="*")
    parser.add_argument(
        "--initial",
        action=argparse.BooleanOptionalAction,
        default=True,
    )
    parser.add_argument("--debounce", type=_positive_int, default=250)
    parser.add_argument("--verbose", action="store_true")
    parser.add_argument("-v", "--version", action="version", version=f"v{__version__}")
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: Arguments without the program name (default: sys.argv[1:])

    Returns:
        Parsed arguments namespace, with the command line in ``command``

    Raises:
        UsageError: If patterns or command are missing, or options are unknown or invalid
    """
    if argv is None:
        argv = sys.argv[1:]

    if "--" in argv:
        split = argv.index("--")
        head, command = argv[:split], argv[split + 1 :]
    else:
        head, command = argv, []

    args, extras = build_parser().parse_known_intermixed_args(head)
    args.command = command
    unknowns = [arg for arg in extras if arg.startswith("-")]

    if not args.patterns:
        raise UsageError("It requires one or more glob patterns to watch files.")
    if not command:
        raise UsageError("It requires a command to run it.")
    if unknowns:
        raise UsageError(f"Unknown option(s): {', '.join(unknowns)}")

    return args


def spec_from_args(args: argparse.Namespace) -> WatchSpec:
    return WatchSpec(
        patterns=tuple(args.patterns),
        command=args.command[0],
        args=tuple(args.command[1:]),
        initial=args.initial,
        debounce_ms=args.debounce,
    )


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if verbose:
        logging.getLogger("watchrun").setLevel(logging.DEBUG)
        logging.getLogger("watchrun_core").setLevel(logging.DEBUG)


class ConsoleListener(NoOpListener):
    """Print watcher notifications for a terminal user."""

    def __init__(self, spec: WatchSpec, out: TextIO | None = None, err: TextIO | None = None):
        """Initialize console listener.

        Args:
            spec: Session whose command line is shown in messages
            out: Stream for ready and change lines (default: sys.stdout at print time)
            err: Stream for errors (default: sys.stderr at print time)
        """
        self.spec = spec
        self.out = out
        self.err = err

    def on_ready(self) -> None:
        print(f'Start watching for "{self.spec.command_line}"', file=self.out or sys.stdout, flush=True)

    def on_change(self, event: ChangeEvent) -> None:
        print(str(event), file=self.out or sys.stdout, flush=True)

    def on_error(self, error: BaseException) -> None:
        print(f"ERROR: {error}", file=self.err or sys.stderr, flush=True)


async def run(spec: WatchSpec, hooks: ShutdownHooks | None = None) -> int:
    """Watch until a shutdown signal arrives.

    The running command, if any, is terminated on shutdown.

    Returns:
        Exit code for the process
    """
    loop = asyncio.get_running_loop()
    hooks = hooks or ShutdownHooks()
    stopped = asyncio.Event()
    hooks.add(stopped.set)
    hooks.install(loop)

    watcher = Watcher(spec, listener=ConsoleListener(spec))
    try:
        watcher.open()
        await stopped.wait()
        print(f"Stop watching for {spec.command_line}", flush=True)
    finally:
        hooks.uninstall()
        watcher.close()
        await watcher.terminate()
    return 0


def main(argv: list[str] | None = None) -> None:
    """
    Main entry point for the watchrun CLI.

    Handles:
    - Argument parsing and usage errors (exit code 1)
    - Running the watch session until SIGINT/SIGTERM (exit code 0)
    """
    try:
        args = parse_args(argv)
    except UsageError as e:
        print(e, file=sys.stderr)
        print(USAGE, file=sys.stderr)
        sys.exit(1)

    configure_logging(args.verbose)
    spec = spec_from_args(args)

    try:
        sys.exit(asyncio.run(run(spec)))
    except KeyboardInterrupt:
        # Signal arrived before the handlers were installed
        print(f"Stop watching for {spec.command_line}")
        sys.exit(0)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
