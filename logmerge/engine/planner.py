"""
Chunk planning for fragment groups.

Given a group and the requested number of outputs, the planner sorts the
fragments by order index and cuts the sorted list into contiguous ranges,
one per output file.

Sort Direction:
    Default: highest order index first (app.log.5 before app.log.1).
    Reverse: lowest order index first.
    Ties keep discovery order in both directions.
"""

from typing import List

from ..errors import SubdivisionError
from ..utils.paths import output_name
from .model import ChunkPlan, ChunkRange, FragmentGroup, FragmentRef


def sort_fragments(group: FragmentGroup, reverse: bool = False) -> List[FragmentRef]:
    """
    Sort a group's fragments in place into write order and return them.

    Python's sort is stable, including with reverse=True, so fragments with
    equal indices stay in discovery order.
    """
    group.fragments.sort(key=lambda f: f.order_index, reverse=not reverse)
    return group.fragments


def plan_chunks(base: str, fragment_count: int, max_chunks: int) -> ChunkPlan:
    """
    Compute output ranges for a sorted fragment list.

    Args:
        base: Group base name, used for output file names.
        fragment_count: Number of fragments in the group.
        max_chunks: Requested number of outputs; values <= 1 mean one.

    Returns:
        ChunkPlan: Ranges covering [0, fragment_count) without gaps.

    Raises:
        SubdivisionError: If max_chunks > 1 would put fewer than two
                          fragments in each chunk.

    Note:
        When the count does not divide evenly an extra chunk is added
        for the remainder, so the plan can hold max_chunks + 1 ranges.
    """
    if max_chunks <= 1:
        chunk_count = 1
        per_chunk = fragment_count
    else:
        per_chunk = fragment_count // max_chunks
        if per_chunk < 2:
            raise SubdivisionError(fragment_count, max_chunks)
        chunk_count = max_chunks
        if fragment_count % max_chunks > 0:
            chunk_count += 1

    ranges = []
    for k in range(chunk_count):
        start = k * per_chunk
        stop = min((k + 1) * per_chunk, fragment_count)
        # Last chunk absorbs whatever the even split leaves over
        if k == chunk_count - 1:
            stop = fragment_count
        ranges.append(ChunkRange(k, start, stop, output_name(base, k, chunk_count)))

    return ChunkPlan(base, fragment_count, tuple(ranges))


def plan_group(group: FragmentGroup, max_chunks: int, reverse: bool = False) -> ChunkPlan:
    """Sort a group into write order and plan its chunks."""
    sort_fragments(group, reverse)
    return plan_chunks(group.base, len(group), max_chunks)
