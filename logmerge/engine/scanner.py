"""
Fragment discovery for the merge engine.

This module scans one directory (never its subdirectories) for rotated or
split log files and groups them by base name. Each fragment also gets an
order index taken from its name so the planner can sequence it.

Naming:
    app.log          -> base "app", index 0
    app.log.3        -> base "app", index 3
    app.2024.7.log   -> base "app", index 7  (rightmost integer wins)
"""

import os
import re
from pathlib import Path
from typing import Dict, Optional

from ..errors import ScanError
from ..utils.paths import is_log_fragment, resolve_input_dir
from ..utils.runlog import RunLogger
from .model import FragmentGroup, FragmentRef

# An order token is a plain ASCII decimal integer, optionally signed
INDEX_TOKEN = re.compile(r"[+-]?[0-9]+")

# Tokens outside the signed 64-bit range are not treated as indices
INDEX_MIN = -(2 ** 63)
INDEX_MAX = 2 ** 63 - 1

FragmentMap = Dict[str, FragmentGroup]


def base_name(name: str) -> str:
    """Return the group key of a file name: everything before the first dot."""
    return name.split(".")[0]


def order_index(name: str) -> int:
    """
    Extract the ordering integer from a fragment name.

    Dot-separated tokens are checked from the last one back to the second
    one; the first that is an integer within the signed 64-bit range is
    used. The first token is the base name and never counts.

    Example:
        >>> order_index("app.log.12")
        12
        >>> order_index("app.log")
        0
    """
    parts = name.split(".")
    for token in reversed(parts[1:]):
        if INDEX_TOKEN.fullmatch(token):
            value = int(token)
            if INDEX_MIN <= value <= INDEX_MAX:
                return value
    return 0


def scan_fragments(root, logger: Optional[RunLogger] = None) -> FragmentMap:
    """
    Discover log fragments directly inside a directory.

    Args:
        root: Directory to scan (str or Path, relative or absolute).
        logger: Run logger; a stderr logger is used when omitted.

    Returns:
        FragmentMap: Base name -> FragmentGroup. Members are in discovery
                     order, which is file name order.

    Raises:
        ScanError: If the directory does not exist, is not a directory or
                   cannot be read. Nothing partial is returned.

    Note:
        - Subdirectories are skipped entirely
        - Only regular files whose name contains ".log" are taken
        - Files containing the ".full" marker are earlier outputs and skipped
    """
    logger = logger or RunLogger()
    basepath = resolve_input_dir(root)
    logger.info("scan", f"Start analysis of basepath: {basepath}")

    groups: FragmentMap = {}
    try:
        with os.scandir(basepath) as it:
            entries = sorted(it, key=lambda e: e.name)

        for entry in entries:
            if entry.is_dir():
                continue
            if not entry.is_file():
                continue
            if not is_log_fragment(entry.name):
                continue

            base = base_name(entry.name)
            group = groups.get(base)
            if group is None:
                group = groups[base] = FragmentGroup(base)

            logger.info("scan", f"Found: {entry.name}")
            group.fragments.append(FragmentRef(entry.name, order_index(entry.name)))
    except OSError as exc:
        raise ScanError(f"Cannot scan {basepath}: {exc}") from exc

    return groups


def fragment_path(root, fragment: FragmentRef) -> Path:
    """Return the absolute path of a fragment inside the scanned directory."""
    return resolve_input_dir(root) / fragment.name
