"""
Exception taxonomy for logmerge.

Each error class maps to the scope of work it aborts. The orchestrator in
cli.py decides what to do with each one:

    - ConfigError, ScanError: fatal, the run exits with status 1
    - SubdivisionError: the affected group is skipped, the run continues
    - FragmentLoadError: the affected fragment contributes no bytes
"""


class LogMergeError(Exception):
    """Base class for all logmerge errors."""


class ConfigError(LogMergeError):
    """Options are missing or invalid (bad regex, bad environment value)."""


class ScanError(LogMergeError):
    """The input directory could not be walked."""


class SubdivisionError(LogMergeError):
    """
    A group cannot be split into the requested number of chunks.

    Raised when fewer than two fragments would land in each chunk.
    """

    def __init__(self, fragment_count: int, max_chunks: int):
        self.fragment_count = fragment_count
        self.max_chunks = max_chunks
        super().__init__(
            f"Cannot subdivide {fragment_count} fragments into {max_chunks} chunks"
        )


class FragmentLoadError(LogMergeError):
    """A single fragment could not be read."""

    def __init__(self, name: str, reason: Exception):
        self.name = name
        self.reason = reason
        super().__init__(f"Failed to load {name}: {reason}")
