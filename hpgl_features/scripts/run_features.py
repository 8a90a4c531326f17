#!/usr/bin/env python3
"""Plot the HP 7090A features program.

Usage::

    hpgl-features                         # plot on GPIB address from config
    hpgl-features --address 5             # another address (1..30)
    hpgl-features --no-progress --log-level DEBUG
    hpgl-features --dry-run \\
        --hard-clip 0,0,10365,7962 --output-window 0,0,10365,7962 \\
        --output features.hpgl            # compile only, no instrument

Exit codes: 0 success, 1 failure, 2 usage error, 130 interrupted.
"""

from __future__ import annotations

import argparse
import logging
import sys

from hpgl_features.compiler.sequence import SequenceCompiler
from hpgl_features.configs.loader import (
    GPIB_ADDRESS_MAX,
    GPIB_ADDRESS_MIN,
    ConfigError,
    PlotterConfig,
    load_config,
)
from hpgl_features.errors import FeaturesError
from hpgl_features.geometry.parser import ResponseKind, parse_rectangle
from hpgl_features.hardware.gpib_session import GpibSession
from hpgl_features.hardware.progress import LoggingProgressSink, TqdmProgressSink
from hpgl_features.hardware.runner import FeaturesRunner
from hpgl_features.utils.fs import atomic_write_text
from hpgl_features.utils.logging_config import (
    install_excepthook,
    push_context,
    setup_logging,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def _gpib_address(value: str) -> int:
    try:
        address = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if not GPIB_ADDRESS_MIN <= address <= GPIB_ADDRESS_MAX:
        raise argparse.ArgumentTypeError(
            f"address must be between {GPIB_ADDRESS_MIN} and "
            f"{GPIB_ADDRESS_MAX}, got {address}"
        )
    return address


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hpgl-features",
        description="Plot the HP 7090A features verification program",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", "-c", type=str, help="Config file path")
    parser.add_argument("--address", "-a", type=_gpib_address,
                        help="GPIB address (overrides config)")
    parser.add_argument("--dry-run", action="store_true",
                        help="Compile only; write the program instead of "
                        "plotting")
    parser.add_argument("--hard-clip", type=str, metavar="X1,Y1,X2,Y2",
                        help="P1/P2 reply to compile against (dry run)")
    parser.add_argument("--output-window", type=str, metavar="X1,Y1,X2,Y2",
                        help="OW reply to compile against (dry run)")
    parser.add_argument("--output", "-o", type=str,
                        help="Program file for --dry-run (default: stdout)")
    parser.add_argument("--log-level", type=str.upper,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Log level (overrides config)")
    parser.add_argument("--log-file", type=str,
                        help="Also log to this file")
    parser.add_argument("--json-logs", action="store_true",
                        help="Log JSON lines")
    parser.add_argument("--no-progress", action="store_true",
                        help="Log stage progress instead of drawing a bar")
    return parser


def dry_run(args: argparse.Namespace) -> int:
    """Compile from the given replies and write the program."""
    hard_clip = parse_rectangle(args.hard_clip, ResponseKind.HARD_CLIP)
    output_window = parse_rectangle(args.output_window, ResponseKind.OUTPUT_WINDOW)

    program = SequenceCompiler().compile(hard_clip, output_window)
    text = program.to_text()

    if args.output:
        atomic_write_text(args.output, text)
        logger.info("Wrote %d commands to %s", len(program), args.output)
    else:
        sys.stdout.write(text)
        sys.stdout.flush()
    return EXIT_OK


def plot(args: argparse.Namespace, config: PlotterConfig) -> int:
    """Run the features plot on the instrument."""
    push_context(address=config.connection.address)

    with GpibSession.from_config(config.connection) as session:
        runner = FeaturesRunner(session, config)
        if args.no_progress:
            runner.set_progress_callback(LoggingProgressSink())
            report = runner.run()
        else:
            with TqdmProgressSink() as sink:
                runner.set_progress_callback(sink)
                report = runner.run()

    if report.cancelled:
        return EXIT_INTERRUPTED
    print(
        f"Features plot complete: {report.stages_sent} stages, "
        f"{report.commands_sent} commands"
    )
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.dry_run and not (args.hard_clip and args.output_window):
        parser.error("--dry-run requires --hard-clip and --output-window")
    if not args.dry_run and (args.hard_clip or args.output_window or args.output):
        parser.error(
            "--hard-clip, --output-window and --output need --dry-run"
        )

    try:
        config = load_config(args.config)
        if args.address is not None:
            config = config.with_address(args.address)
    except (ConfigError, FileNotFoundError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    setup_logging(
        args.log_level or config.logging.level,
        args.log_file or config.logging.file,
        json=args.json_logs or config.logging.json,
        quiet_libs=["pyvisa"],
        context={"app": "features"},
    )
    install_excepthook()

    try:
        if args.dry_run:
            return dry_run(args)
        return plot(args, config)
    except FeaturesError as exc:
        logger.error("%s (%s)", exc, exc.kind.value)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.warning("Interrupted; remaining stages abandoned")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
