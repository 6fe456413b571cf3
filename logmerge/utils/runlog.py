"""
Run logging utilities for merge observability.

This module provides the line logger used by every logmerge component.
A run produces a single, append-only stream of lines that shows which
fragments were found, in which order they were written and what failed.

Design Decisions:
    - One logger per run, passed explicitly to each component
    - Human-readable format with timestamps and a stage field
    - UTC timestamps for consistency across timezones
    - A lock around each write, since fragment workers log concurrently
"""

from __future__ import annotations

import datetime
import os
import sys
import threading
from pathlib import Path
from typing import Optional, TextIO


def log_file_from_env() -> Optional[Path]:
    """
    Return the log file configured through the environment, if any.

    Uses the LOGMERGE_LOG_FILE environment variable. An unset or empty
    variable means lines are only written to the stream.

    Example:
        >>> os.environ["LOGMERGE_LOG_FILE"] = "/var/log/logmerge.log"
        >>> log_file_from_env()
        PosixPath('/var/log/logmerge.log')
    """
    path = os.environ.get("LOGMERGE_LOG_FILE")
    if path:
        return Path(path)
    return None


class RunLogger:
    """
    Minimal line logger for one merge run.

    Attributes:
        stream: Text stream every line is written to (stderr by default).
        path: Optional file every line is also appended to.

    Log Line Format:
        <timestamp> [stage=<stage>] <LEVEL> <message>

    Example:
        >>> logger = RunLogger()
        >>> logger.info("scan", "Found: app.1.log")
        # Writes: 2024-01-15T12:00:00Z [stage=scan] INFO Found: app.1.log
    """

    def __init__(self, stream: Optional[TextIO] = None, path: Optional[Path] = None) -> None:
        """
        Initialize a run logger.

        Creates the log file's directory if a path is given, so the first
        write won't fail due to missing directories.

        Args:
            stream: Stream to write to. Defaults to sys.stderr at write time.
            path: Optional file to append every line to.
        """
        self.stream = stream
        self.path = Path(path) if path is not None else None
        self._lock = threading.Lock()
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def _ts(self) -> str:
        """Return an ISO 8601 UTC timestamp such as 2024-01-15T12:00:00Z."""
        return (
            datetime.datetime.now(datetime.UTC)
            .isoformat(timespec="seconds")
            .replace("+00:00", "Z")
        )

    def log(self, stage: str, level: str, message: str) -> None:
        """
        Write one structured line.

        All level-specific methods delegate here.

        Args:
            stage: The component emitting the line (e.g., "scan", "merge").
            level: The severity level ("INFO", "WARN", "ERROR").
            message: The human-readable message. Multi-line messages such
                     as tracebacks are written as-is.
        """
        line = f"{self._ts()} [stage={stage}] {level.upper()} {message.rstrip()}\n"
        with self._lock:
            stream = self.stream if self.stream is not None else sys.stderr
            stream.write(line)
            stream.flush()
            if self.path is not None:
                with self.path.open("a", encoding="utf-8") as f:
                    f.write(line)

    def info(self, stage: str, message: str) -> None:
        """Log an informational message."""
        self.log(stage, "INFO", message)

    def warn(self, stage: str, message: str) -> None:
        """
        Log a warning message.

        Used for non-fatal conditions such as a fragment that could not
        be deleted after a merge.
        """
        self.log(stage, "WARN", message)

    def error(self, stage: str, message: str) -> None:
        """
        Log an error message.

        Used for failures that narrow the scope of the run (a skipped
        fragment or group) as well as fatal ones.
        """
        self.log(stage, "ERROR", message)
