"""
Command-line entry point.

Usage:
    archive-urls [-days N] [-no-subs] [-dates] [-get-versions] [domain]

Examples:
    # Every archived URL of a domain and its subdomains
    archive-urls example.com

    # Only URLs captured in the last week, bare domain only
    archive-urls -days 7 -no-subs example.com

    # Many domains from stdin
    cat domains.txt | archive-urls

    # Snapshot URLs of specific pages
    echo http://example.com/ | archive-urls -get-versions
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional, TextIO

from archive_urls.core.config import settings
from archive_urls.exceptions import InputReadError
from archive_urls.fetch.utils import format_timestamp
from archive_urls.schemas import ArchivedURL, FetchOptions
from archive_urls.services import orchestrator

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    """Send log records to stderr; stdout carries only results."""
    level = logging.DEBUG if verbose else getattr(logging, settings.LOG_LEVEL, logging.WARNING)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


def non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError("must be 0 or greater")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="archive-urls",
        description="List archived URLs of domains from the web archive index.",
        allow_abbrev=False,
    )
    parser.add_argument(
        "domain",
        nargs="?",
        help="Domain to fetch (or URL with -get-versions); read from stdin when omitted",
    )
    parser.add_argument(
        "-days", "--days",
        type=non_negative_int,
        default=0,
        help="Number of days back to fetch URLs for (default: 0, no limit)",
    )
    parser.add_argument(
        "-no-subs", "--no-subs",
        dest="no_subs",
        action="store_true",
        help="Don't include subdomains of the target domain",
    )
    parser.add_argument(
        "-get-versions", "--get-versions",
        dest="get_versions",
        action="store_true",
        help="List URLs for crawled versions of input URL(s)",
    )
    parser.add_argument(
        "-dates", "--dates",
        dest="dates",
        action="store_true",
        help="Show the capture date in the first column",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log failed requests and other details to stderr",
    )
    return parser


def build_options(args: argparse.Namespace) -> FetchOptions:
    return FetchOptions(
        days=args.days,
        exclude_subdomains=args.no_subs,
        get_versions=args.get_versions,
        show_dates=args.dates,
    )


def read_lines(stream: TextIO) -> List[str]:
    """
    Read non-blank, stripped lines.

    Raises:
        InputReadError: carrying the lines read before the failure
    """
    lines: List[str] = []
    try:
        for line in stream:
            line = line.strip()
            if line:
                lines.append(line)
    except (OSError, UnicodeDecodeError) as e:
        raise InputReadError(str(e), lines) from e
    return lines


def collect_inputs(args: argparse.Namespace, stdin: TextIO) -> List[str]:
    if args.domain:
        return [args.domain]
    try:
        return read_lines(stdin)
    except InputReadError as e:
        logger.error(e.message)
        return e.lines


def format_record(record: ArchivedURL, show_dates: bool) -> str:
    if show_dates:
        stamp = format_timestamp(record.date)
        if stamp:
            return f"{stamp} {record.url}"
    return record.url


def emit_line(line: str) -> None:
    print(line, flush=True)


def tolerant_stdin() -> TextIO:
    """stdin that replaces undecodable bytes instead of failing on them"""
    stream = sys.stdin
    if hasattr(stream, "reconfigure"):
        stream.reconfigure(errors="replace")
    return stream


def silence_stdout() -> None:
    """
    Point stdout at devnull once the reader has gone away, so the
    interpreter's final flush cannot raise BrokenPipeError again.
    """
    try:
        fd = sys.stdout.fileno()
    except (AttributeError, OSError, ValueError):
        return
    devnull = os.open(os.devnull, os.O_WRONLY)
    try:
        os.dup2(devnull, fd)
    finally:
        os.close(devnull)


def run(options: FetchOptions, inputs: List[str]) -> None:
    if options.get_versions:
        skipped = asyncio.run(orchestrator.fetch_versions(inputs, emit_line))
        if skipped:
            logger.info("Versions unavailable for %d of %d URLs", len(skipped), len(inputs))
        return

    failures = asyncio.run(
        orchestrator.fetch_domains(
            inputs,
            options,
            lambda record: emit_line(format_record(record, options.show_dates)),
        )
    )
    failed_domains = sorted({failure.domain for failure in failures})
    if failed_domains:
        logger.info("Incomplete results for: %s", ", ".join(failed_domains))


def main(argv: Optional[List[str]] = None, stdin: Optional[TextIO] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    options = build_options(args)
    inputs = collect_inputs(args, stdin if stdin is not None else tolerant_stdin())

    try:
        run(options, inputs)
    except BrokenPipeError:
        # Output closed early, e.g. piped into `head`
        silence_stdout()
        return 141
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == '__main__':
    sys.exit(main())
