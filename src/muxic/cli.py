"""Command-line entrypoint for the dedup command."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import TextIO

from muxic.config import CliOverrides, DedupConfig, load_effective_config
from muxic.display import display_path
from muxic.logging import JsonlAuditLogger
from muxic.resolve import SURVIVOR_STRATEGIES
from muxic.runner import run_dedup
from muxic.scan import ScanError

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_USAGE = 2


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for the dedup command."""
    parser = argparse.ArgumentParser(
        prog="muxic-dedup",
        description=(
            "Find and remove duplicate music files by exact binary content. "
            "A local signature cache speeds up subsequent scans."
        ),
    )
    parser.add_argument("--target", required=False, default=None, help="Directory to scan.")
    parser.add_argument(
        "--scorched-earth",
        "--scorchedearth",
        dest="scorched_earth",
        action="store_true",
        default=None,
        help="Delete duplicates automatically, keeping the first path of each set.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Report what would be deleted without removing anything.",
    )
    parser.add_argument("--cache-path", required=False, default=None)
    parser.add_argument("--audit-log", required=False, default=None)
    parser.add_argument("--config", required=False, default=None)
    parser.add_argument("--strategy", choices=SURVIVOR_STRATEGIES, required=False, default=None)
    parser.add_argument("--workers", type=int, required=False, default=None)
    parser.add_argument(
        "--extension",
        dest="extensions",
        action="append",
        default=None,
        help="Media extension to scan (repeatable), e.g. --extension .mp3",
    )
    parser.add_argument(
        "--show-audit",
        type=int,
        metavar="N",
        default=None,
        help="Print the last N audit log events and exit.",
    )
    return parser


def main(
    argv: list[str] | None = None,
    in_stream: TextIO | None = None,
    out_stream: TextIO | None = None,
    err_stream: TextIO | None = None,
) -> int:
    """Entrypoint for the dedup command; returns the process exit code."""
    stdin = in_stream or sys.stdin
    stdout = out_stream or sys.stdout
    stderr = err_stream or sys.stderr
    args = build_arg_parser().parse_args(argv)

    if args.show_audit is not None:
        return _show_audit(args, stdout, stderr)

    if not args.target:
        stderr.write("Error: --target flag is required\n")
        return EXIT_USAGE
    target = Path(args.target).expanduser()
    if not target.is_dir():
        stderr.write(display_path(f"Error: target directory '{target}' does not exist\n"))
        return EXIT_USAGE

    try:
        config = _load_config(args, target)
    except ValueError as error:
        stderr.write(display_path(f"Error: {error}\n"))
        return EXIT_USAGE

    try:
        run_dedup(config, in_stream=stdin, out_stream=stdout)
    except ScanError as error:
        stderr.write(display_path(f"Error: {error}\n"))
        return EXIT_FATAL
    return EXIT_OK


def _load_config(args: argparse.Namespace, target: Path) -> DedupConfig:
    overrides = CliOverrides(
        cache_path=Path(args.cache_path).expanduser() if args.cache_path else None,
        audit_log_path=Path(args.audit_log).expanduser() if args.audit_log else None,
        extensions=tuple(args.extensions) if args.extensions else None,
        workers=args.workers,
        strategy=args.strategy,
        scorched_earth=args.scorched_earth,
        dry_run=args.dry_run,
    )
    return load_effective_config(
        target,
        config_path=Path(args.config).expanduser() if args.config else None,
        overrides=overrides,
    )


def _show_audit(args: argparse.Namespace, stdout: TextIO, stderr: TextIO) -> int:
    """Print the most recent audit events as JSON lines."""
    if args.show_audit < 1:
        stderr.write("Error: --show-audit must be a positive integer\n")
        return EXIT_USAGE
    target = Path(args.target).expanduser() if args.target else Path.cwd()
    try:
        config = _load_config(args, target)
    except ValueError as error:
        stderr.write(display_path(f"Error: {error}\n"))
        return EXIT_USAGE
    logger = JsonlAuditLogger(config.audit_log_path)
    for entry in logger.read(limit=args.show_audit):
        stdout.write(f"{json.dumps(entry, sort_keys=True)}\n")
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
