"""
Filesystem naming rules for fragments and merged outputs.

All path logic is centralized here so the scanner (which must skip earlier
outputs) and the writer (which produces them) agree on one convention.

Naming Convention:
    Fragment:       <base>.<...>.<index>.log   (e.g. app.log.3, app.3.log)
    Single output:  <base>.full.log
    Chunk output:   <base>.full.<n>.log        (n is 1-based)
"""

from pathlib import Path

# Reserved token marking files written by a previous merge.
AGGREGATED_SUFFIX = "full"

# Substring a file name must contain to be considered a log fragment.
# Not checked as an extension: rotation often puts the index after ".log".
LOG_MARKER = ".log"


def resolve_input_dir(path) -> Path:
    """
    Return the absolute form of the directory to scan.

    Args:
        path: A str or Path, relative to the current directory or absolute.

    Returns:
        Path: Absolute path. Symlinks are not resolved.
    """
    return Path(path).expanduser().absolute()


def is_log_fragment(name: str) -> bool:
    """
    Decide whether a directory entry name is a fragment to merge.

    Names without ".log" are ignored, as are names carrying the ".full"
    marker so that a rerun never ingests its own previous output.

    Example:
        >>> is_log_fragment("app.3.log")
        True
        >>> is_log_fragment("app.full.log")
        False
    """
    return LOG_MARKER in name and f".{AGGREGATED_SUFFIX}" not in name


def output_name(base: str, chunk_index: int, chunk_count: int) -> str:
    """
    Build the file name of one merged output.

    Args:
        base: Group base name (first dot-separated token of the fragments).
        chunk_index: Zero-based chunk position.
        chunk_count: Number of chunks produced for the group.

    Returns:
        str: "<base>.full.log" for a single chunk,
             "<base>.full.<chunk_index + 1>.log" otherwise.
    """
    if chunk_count <= 1:
        return ".".join([base, AGGREGATED_SUFFIX, "log"])
    return ".".join([base, AGGREGATED_SUFFIX, str(chunk_index + 1), "log"])
