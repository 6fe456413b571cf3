"""
Regex line filtering for fragment contents.

A FilterSet turns the raw bytes of one fragment into the bytes that get
written to the merged output. With no patterns the bytes pass through
untouched. With patterns, only matched text (or its capture groups) is
kept, one output line per input line that matched anything.

Design Decisions:
    - Patterns are compiled as bytes so fragments are never decoded;
      invalid UTF-8 in a log does not break filtering
    - A compiled FilterSet is never mutated, so one instance is shared
      by every concurrent fragment worker
    - Compilation errors surface before any file is touched
    - An empty match abutting the previous match is ignored, so patterns
      that can match nothing emit one piece per gap, not two
"""

import re
from typing import Iterable, Iterator, List, Tuple

from ..errors import ConfigError


def split_lines(data: bytes) -> Iterator[bytes]:
    """
    Yield the lines of a fragment without their terminators.

    Lines end at "\\n"; a single "\\r" before it is dropped as well. A final
    line without a newline is still yielded, a trailing newline does not
    produce an extra empty line.
    """
    if not data:
        return
    lines = data.split(b"\n")
    # Trailing newline leaves an empty tail that is not a line
    if lines[-1] == b"":
        lines.pop()
    for line in lines:
        if line.endswith(b"\r"):
            line = line[:-1]
        yield line


class FilterSet:
    """
    Ordered, immutable collection of compiled line filters.

    Attributes:
        patterns: Compiled bytes patterns in declaration order.

    Example:
        >>> fs = FilterSet.compile([r"id=(\\d+) user=(\\w+)"])
        >>> fs.apply(b"x id=7 user=bob\\n")
        b'7 bob\\n'
    """

    def __init__(self, patterns: Tuple[re.Pattern, ...] = ()):
        self.patterns = tuple(patterns)

    @classmethod
    def compile(cls, sources: Iterable[str]) -> "FilterSet":
        """
        Compile pattern sources into a FilterSet.

        Empty source strings are ignored, so an unset filter option behaves
        like no filter at all.

        Raises:
            ConfigError: If any pattern is not a valid regular expression.
        """
        compiled = []
        for source in sources:
            if not source:
                continue
            try:
                compiled.append(re.compile(source.encode("utf-8")))
            except re.error as exc:
                raise ConfigError(f"Invalid filter {source!r}: {exc}") from exc
        return cls(tuple(compiled))

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def __len__(self) -> int:
        return len(self.patterns)

    def filter_line(self, line: bytes) -> List[bytes]:
        """
        Return the pieces every filter extracts from one line.

        Each pattern contributes all of its non-overlapping matches. A match
        without groups yields the whole match; a match with groups yields
        its groups joined by single spaces, with no space after the last.
        Groups that did not participate yield empty bytes. An empty match
        that starts where the previous match ended is skipped.
        """
        pieces = []
        for pattern in self.patterns:
            prev_end = -1
            for match in pattern.finditer(line):
                # Empty match right after the previous match does not count
                if match.start() == match.end() == prev_end:
                    continue
                prev_end = match.end()
                if pattern.groups == 0:
                    pieces.append(match.group(0))
                else:
                    pieces.append(b" ".join(match.groups(default=b"")))
        return pieces

    def apply(self, data: bytes) -> bytes:
        """
        Produce the bytes to write for one fragment.

        Args:
            data: Full contents of the fragment.

        Returns:
            bytes: data itself when no filters are set. Otherwise, for every
                   line that matched at least one filter, the extracted
                   pieces concatenated and followed by one newline. Lines
                   with no match contribute nothing.
        """
        if not self.patterns:
            return data

        out = bytearray()
        for line in split_lines(data):
            pieces = self.filter_line(line)
            if not pieces:
                continue
            for piece in pieces:
                out += piece
            out += b"\n"
        return bytes(out)
