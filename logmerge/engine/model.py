"""
Data models for the merge engine.

This module defines the structures passed between the scanner, the chunk
planner and the writer. Everything here is created once at the start of a
run and discarded at exit; only the merged files outlive the process.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Options:
    """
    Immutable configuration for one run.

    Attributes:
        input: Directory to scan for fragments.
        reverse: Sort fragments by ascending order index instead of descending.
        delete: Remove the fragments of a group once it merged successfully.
        max_chunks: Requested number of outputs per group; 0 or 1 means one.
        filters: Regular expression sources applied to every line.
        log_file: Optional file the run log is also appended to.
    """
    input: Path = Path(".")
    reverse: bool = False
    delete: bool = False
    max_chunks: int = 0
    filters: Tuple[str, ...] = ()
    log_file: Optional[Path] = None

    def __str__(self) -> str:
        return (
            "[Config]\n"
            f"Input: {self.input}\n"
            f"Reverse: {self.reverse}\n"
            f"Delete: {self.delete}\n"
            f"MaxChunks: {self.max_chunks}\n"
            f"Filters: {list(self.filters)}"
        )


@dataclass(frozen=True)
class FragmentRef:
    """
    One discovered file belonging to a logical log stream.

    Attributes:
        name: File name relative to the scanned directory.
        order_index: Integer taken from the name; 0 when none was found.
    """
    name: str
    order_index: int = 0


@dataclass
class FragmentGroup:
    """
    All fragments sharing one base name, in discovery order until sorted.

    Attributes:
        base: The first dot-separated token of every member's name.
        fragments: Members; only ever reordered after the scan.
    """
    base: str
    fragments: List[FragmentRef] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.fragments)


@dataclass(frozen=True)
class ChunkRange:
    """
    Half-open slice [start, stop) of a sorted fragment list.

    Attributes:
        index: Zero-based chunk position.
        start: First fragment position included.
        stop: First fragment position excluded.
        output: File name the chunk is written to.
    """
    index: int
    start: int
    stop: int
    output: str

    def __len__(self) -> int:
        return self.stop - self.start


@dataclass(frozen=True)
class ChunkPlan:
    """
    Partition of one group's sorted fragments into output files.

    Ranges are contiguous, do not overlap and together cover every
    fragment exactly once.
    """
    base: str
    fragment_count: int
    ranges: Tuple[ChunkRange, ...]

    def __len__(self) -> int:
        return len(self.ranges)


@dataclass
class ChunkResult:
    """
    Outcome of writing one output file.

    Attributes:
        output: Absolute path of the output file.
        written: Names of fragments whose bytes were written, in order.
        failed: Names of fragments that contributed nothing.
        bytes_written: Total bytes committed to the output.
    """
    output: Path
    written: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    bytes_written: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass
class GroupResult:
    """
    Outcome of merging one group.

    Attributes:
        base: Group base name.
        plan: The chunk plan, or None if the group could not be planned.
        chunks: Results of every chunk that was attempted.
        error: Group-level failure, if any.
    """
    base: str
    plan: Optional[ChunkPlan] = None
    chunks: List[ChunkResult] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        """True when every planned chunk was written without a failed fragment."""
        if self.error is not None or self.plan is None:
            return False
        if len(self.chunks) != len(self.plan):
            return False
        return all(chunk.ok for chunk in self.chunks)
