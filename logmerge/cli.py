#!/usr/bin/env python3
"""
logmerge - Merge rotated log fragments into consolidated files.

This module implements the command-line interface and the run
orchestration: it builds the immutable Options for a run, compiles the
filters, scans the input directory, merges every group and optionally
deletes the merged fragments.

Responsibilities:
    - Load .env defaults and parse command-line flags
    - Fail fast on configuration and scan errors (exit status 1)
    - Merge each group, skipping groups that cannot be chunked as requested
    - Delete a group's fragments only after that group merged cleanly

Usage:
    python -m logmerge [options]

Examples:
    python -m logmerge --input /var/log/app
    python -m logmerge -i logs -c 4 -r
    python -m logmerge -i logs -f 'user=(\\w+)' -f 'ERROR.*' --delete
"""

import argparse
import os
import sys
from pathlib import Path
from typing import Optional

from .engine.cleanup import delete_fragments
from .engine.filters import FilterSet
from .engine.model import Options
from .engine.scanner import scan_fragments
from .engine.writer import merge_group
from .errors import ConfigError, ScanError
from .utils.runlog import RunLogger, log_file_from_env

EXIT_OK = 0
EXIT_FAILURE = 1

# ============================================================
# Environment Configuration
# ============================================================

def load_dotenv(path: Optional[Path] = None) -> None:
    """
    Load a .env file into os.environ if present.

    Lets users keep LOGMERGE_* defaults next to their logs instead of
    exporting them in every shell.

    Args:
        path: File to read. Defaults to .env in the current directory.

    Side Effects:
        Adds variables from the file that aren't already set (setdefault,
        so existing variables win).
    """
    env_path = Path(path) if path is not None else Path.cwd() / ".env"

    if not env_path.is_file():
        return

    with env_path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            # Split on first = only (value might contain =)
            key, value = line.split("=", 1)
            os.environ.setdefault(key.strip(), value.strip())


def env_int(name: str, default: int) -> int:
    """
    Read an integer from the environment.

    Raises:
        ConfigError: If the variable is set but is not an integer.
    """
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


# ============================================================
# Command-Line Argument Parsing
# ============================================================

def build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser.

    Flags left unset fall back to the LOGMERGE_* environment variables
    (see options_from_args), then to the built-in defaults.

    Returns:
        argparse.ArgumentParser: Configured parser ready to parse sys.argv.
    """
    parser = argparse.ArgumentParser(
        prog="logmerge",
        description="Merge rotated log fragments into consolidated files",
    )
    parser.add_argument(
        "-i", "--input",
        default=None,
        help="Directory to scan (default: $LOGMERGE_INPUT or current directory)",
    )
    parser.add_argument(
        "-r", "--reverse",
        action="store_true",
        help="Reverse numerical order of found files",
    )
    parser.add_argument(
        "-d", "--delete",
        action="store_true",
        help="Delete original files after a successful merge",
    )
    parser.add_argument(
        "-c", "--max-chunks",
        type=int,
        default=None,
        help="Max output files per group; 0 or 1 merges all into one "
             "(default: $LOGMERGE_MAX_CHUNKS or 0)",
    )
    parser.add_argument(
        "-f", "--filter",
        dest="filters",
        action="append",
        default=[],
        help="Regex filter applied to every line; repeatable",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also append the run log to this file (default: $LOGMERGE_LOG_FILE)",
    )
    return parser


def options_from_args(args: argparse.Namespace) -> Options:
    """
    Resolve parsed flags and environment defaults into Options.

    Raises:
        ConfigError: If an environment default is malformed.
    """
    input_dir = args.input or os.environ.get("LOGMERGE_INPUT") or "."
    max_chunks = args.max_chunks
    if max_chunks is None:
        max_chunks = env_int("LOGMERGE_MAX_CHUNKS", 0)
    log_file = Path(args.log_file) if args.log_file else log_file_from_env()

    return Options(
        input=Path(input_dir),
        reverse=args.reverse,
        delete=args.delete,
        max_chunks=max_chunks,
        filters=tuple(args.filters),
        log_file=log_file,
    )


# ============================================================
# Run Orchestration
# ============================================================

def run(options: Optional[Options], logger: Optional[RunLogger] = None) -> int:
    """
    Merge every fragment group found in options.input.

    Args:
        options: Run configuration. None is a configuration error.
        logger: Run logger; built from options.log_file when omitted.

    Returns:
        int: EXIT_OK when the directory was scanned and every group was
             attempted (individual groups may still have been skipped),
             EXIT_FAILURE on configuration errors, scan errors or when no
             fragments were found.
    """
    if options is None:
        (logger or RunLogger()).error("logmerge", "Launch options not passed correctly")
        return EXIT_FAILURE

    if logger is None:
        try:
            logger = RunLogger(path=options.log_file)
        except OSError as exc:
            RunLogger().error("logmerge", f"Cannot open log file {options.log_file}: {exc}")
            return EXIT_FAILURE

    logger.info("logmerge", "Begin logmerge")
    try:
        return _run(options, logger)
    finally:
        logger.info("logmerge", "Finished")


def _run(options: Options, logger: RunLogger) -> int:
    # Compile up front so a bad pattern fails before any file is touched
    try:
        filters = FilterSet.compile(options.filters)
    except ConfigError as exc:
        logger.error("logmerge", str(exc))
        return EXIT_FAILURE
    logger.info("logmerge", str(options))

    logger.info("scan", "Begin scan of path")
    try:
        groups = scan_fragments(options.input, logger)
    except ScanError as exc:
        logger.error("scan", f"Found during input path traversal: {exc}")
        return EXIT_FAILURE
    logger.info("scan", "End scan of path")

    if not groups:
        logger.error("scan", f"No log fragments found in {options.input}")
        return EXIT_FAILURE

    for base in sorted(groups):
        group = groups[base]
        result = merge_group(
            options.input,
            group,
            filters,
            max_chunks=options.max_chunks,
            reverse=options.reverse,
            logger=logger,
        )

        if not options.delete:
            continue
        if result.ok:
            delete_fragments(options.input, group.fragments, logger)
        else:
            logger.warn("cleanup", f"Keeping fragments of {base}: merge did not complete")

    return EXIT_OK


# ============================================================
# Entry Point
# ============================================================

def main(argv=None) -> None:
    """
    Main entry point for the logmerge CLI.

    This function:
    1. Loads environment configuration from .env
    2. Parses command-line arguments
    3. Runs the merge and exits with its status

    Exit Codes:
        0: Success
        1: Configuration error, scan failure or no fragments found
        2: Invalid command-line usage (reported by argparse)
    """
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = options_from_args(args)
    except ConfigError as exc:
        RunLogger().error("logmerge", str(exc))
        sys.exit(EXIT_FAILURE)

    sys.exit(run(options))


if __name__ == "__main__":
    main()
