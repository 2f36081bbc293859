"""Command line entry points: check-cpu, check-ram and check-load."""

import argparse
import logging
import sys
from collections.abc import Callable

from pycheck.checks import check_cpu, check_load, check_ram
from pycheck.config import CheckConfig
from pycheck.evaluator import CheckResult, unknown
from pycheck.models import AlertLevel, WorkSource
from pycheck.procfs import DEFAULT_PROC_ROOT

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class CheckArgumentParser(argparse.ArgumentParser):
    """Reports usage errors as UNKNOWN instead of argparse's exit status 2."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(AlertLevel.UNKNOWN.exit_code, f"{self.prog} unknown: {message}\n")


def _work_source(text: str) -> WorkSource:
    try:
        return WorkSource.parse(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def _base_parser(prog: str, description: str, warn: float, crit: float) -> CheckArgumentParser:
    parser = CheckArgumentParser(prog=prog, description=description)
    parser.add_argument(
        "-w",
        "--warn",
        type=float,
        default=warn,
        help="""
        Warn above this value, default: %(default)s
        """,
    )
    parser.add_argument(
        "-c",
        "--crit",
        type=float,
        default=crit,
        help="""
        Critical above this value, default: %(default)s
        """,
    )
    parser.add_argument(
        "--proc-root",
        default=DEFAULT_PROC_ROOT,
        help="""
        Mount point of procfs, default: %(default)s
        """,
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="WARNING",
        type=str.upper,
        help="""
        Diagnostics written to stderr, default: %(default)s
        """,
    )
    return parser


def _add_hog_arguments(parser: argparse.ArgumentParser, what: str) -> None:
    parser.add_argument(
        "--show-hogs",
        type=int,
        default=0,
        metavar="COUNT",
        help=f"""
        Show the COUNT most {what}-hungry processes when not OK, default: %(default)s
        """,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="""
        Always show the hogs
        """,
    )


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _run(
    parser: argparse.ArgumentParser,
    argv: list[str] | None,
    build: Callable[[argparse.Namespace], CheckConfig],
    check: Callable[[CheckConfig, argparse.Namespace], CheckResult],
) -> int:
    args = parser.parse_args(argv)
    _setup_logging(args.log_level)
    try:
        config = build(args)
    except ValueError as exc:
        parser.error(str(exc))
    try:
        result = check(config, args)
    except Exception as exc:
        # The exit status stays within 0-3 whatever goes wrong
        logger.exception("%s failed unexpectedly", parser.prog)
        result = unknown(parser.prog, exc)
    print(result.render())
    return result.exit_code


def check_cpu_main(argv: list[str] | None = None) -> int:
    """Entry point for check-cpu."""
    parser = _base_parser(
        "check-cpu",
        "Check CPU utilization over a sampling interval.",
        warn=80.0,
        crit=95.0,
    )
    parser.add_argument(
        "-s",
        "--sleep",
        type=float,
        default=1.0,
        metavar="SECONDS",
        help="""
        Seconds to collect for, default: %(default)s
        """,
    )
    parser.add_argument(
        "--type",
        type=_work_source,
        default=WorkSource.ACTIVE,
        metavar="WORK_SOURCE",
        help=f"""
        Kind of CPU work to check, one of: {", ".join(s.value for s in WorkSource)};
        default: %(default)s
        """,
    )
    _add_hog_arguments(parser, "CPU")

    def build(args: argparse.Namespace) -> CheckConfig:
        return CheckConfig(
            interval=args.sleep,
            warn=args.warn,
            crit=args.crit,
            work_source=args.type,
            show_hogs=args.show_hogs,
            verbose=args.verbose,
            proc_root=args.proc_root,
        )

    return _run(parser, argv, build, lambda config, args: check_cpu(config))


def check_ram_main(argv: list[str] | None = None) -> int:
    """Entry point for check-ram."""
    parser = _base_parser(
        "check-ram",
        "Check the percentage of memory in use.",
        warn=80.0,
        crit=95.0,
    )
    _add_hog_arguments(parser, "RAM")

    def build(args: argparse.Namespace) -> CheckConfig:
        return CheckConfig(
            warn=args.warn,
            crit=args.crit,
            show_hogs=args.show_hogs,
            verbose=args.verbose,
            proc_root=args.proc_root,
        )

    return _run(parser, argv, build, lambda config, args: check_ram(config))


def check_load_main(argv: list[str] | None = None) -> int:
    """Entry point for check-load."""
    parser = _base_parser(
        "check-load",
        "Check the 1-minute load average.",
        warn=1.0,
        crit=2.0,
    )
    parser.add_argument(
        "--per-cpu",
        action="store_true",
        help="""
        Divide the load averages by the number of CPUs
        """,
    )

    def build(args: argparse.Namespace) -> CheckConfig:
        return CheckConfig(warn=args.warn, crit=args.crit, proc_root=args.proc_root)

    return _run(
        parser,
        argv,
        build,
        lambda config, args: check_load(config, per_cpu=args.per_cpu),
    )
