"""
Ordered merge of fragment groups into output files.

This module loads every fragment of a chunk concurrently (one thread per
fragment) and commits their bytes to the chunk's output file strictly in
list order, using a WriteSequencer to hand out write turns.

Architecture:
    merge_group: plans a group, then merges its chunks one after another
    merge_chunk: fans out one worker per fragment, waits for all of them,
                 then syncs and closes the output file
    load_fragment: reads one fragment and applies the filters

Failure Isolation:
    A fragment that fails to load, or whose worker raises unexpectedly, is
    logged and contributes no bytes. Its slot still takes its write turn,
    so later fragments are never blocked by it.
"""

import os
import threading
import traceback
from pathlib import Path
from typing import List, Optional, Sequence

from ..errors import FragmentLoadError, SubdivisionError
from ..utils.paths import resolve_input_dir
from ..utils.runlog import RunLogger
from .filters import FilterSet
from .model import ChunkResult, FragmentGroup, FragmentRef, GroupResult
from .planner import plan_group
from .scanner import fragment_path
from .sequencer import WriteSequencer


def load_fragment(path: Path, filters: FilterSet) -> bytes:
    """
    Read a fragment and return the bytes to write for it.

    Args:
        path: Absolute path of the fragment.
        filters: Compiled filters; an empty set returns the file unchanged.

    Raises:
        FragmentLoadError: If the file cannot be read.
    """
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise FragmentLoadError(path.name, exc) from exc
    return filters.apply(data)


def merge_chunk(
    out_path: Path,
    basepath: Path,
    fragments: Sequence[FragmentRef],
    filters: FilterSet,
    logger: Optional[RunLogger] = None,
) -> ChunkResult:
    """
    Write one chunk: the filtered bytes of each fragment, in list order.

    Args:
        out_path: Output file to create (truncated if it exists).
        basepath: Directory the fragments live in.
        fragments: Fragments in write order.
        filters: Filters shared read-only by all workers.
        logger: Run logger; a stderr logger is used when omitted.

    Returns:
        ChunkResult: What was written and which fragments failed.

    Raises:
        OSError: If the output file cannot be created or synced. The file
                 is closed either way. Fragment failures are reported in
                 the result, not raised.
    """
    logger = logger or RunLogger()
    total = len(fragments)
    sequencer = WriteSequencer(total)
    # Per-slot outcome: byte count when written, None when the slot failed
    outcomes: List[Optional[int]] = [None] * total

    with out_path.open("wb") as out:
        logger.info("merge", f"Created output file: {out_path}")

        def worker(slot: int, fragment: FragmentRef) -> None:
            data = None
            try:
                try:
                    data = load_fragment(fragment_path(basepath, fragment), filters)
                except FragmentLoadError as exc:
                    logger.error("merge", f"End output for {exc}")
                except Exception:
                    logger.error("merge", f"Unexpected fault loading {fragment.name}\n{traceback.format_exc()}")
            finally:
                with sequencer.turn(slot):
                    if data is not None:
                        try:
                            out.write(data)
                        except Exception:
                            logger.error("merge", f"Failed writing {fragment.name}\n{traceback.format_exc()}")
                        else:
                            outcomes[slot] = len(data)
                            logger.info("merge", f"[{slot + 1} / {total}]: {fragment.name} (read {len(data)} bytes)")

        try:
            logger.info("merge", "Start output of log chunk")
            threads = [
                threading.Thread(target=worker, args=(slot, fragment), daemon=True)
                for slot, fragment in enumerate(fragments)
            ]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()
        finally:
            # The with block closes the file even if the sync fails
            out.flush()
            os.fsync(out.fileno())
            logger.info("merge", "End output of log chunk")

    result = ChunkResult(out_path)
    for fragment, written in zip(fragments, outcomes):
        if written is None:
            result.failed.append(fragment.name)
        else:
            result.written.append(fragment.name)
            result.bytes_written += written
    return result


def merge_group(
    root,
    group: FragmentGroup,
    filters: FilterSet,
    max_chunks: int = 0,
    reverse: bool = False,
    logger: Optional[RunLogger] = None,
) -> GroupResult:
    """
    Sort, plan and merge one group into its output files.

    Chunks are written one after another; only the fragments inside a
    chunk are processed concurrently.

    Args:
        root: Directory the group was scanned from; outputs go there too.
        group: The group to merge. Its fragment list is sorted in place.
        filters: Compiled line filters.
        max_chunks: Requested number of outputs (0 or 1 for a single file).
        reverse: Write lowest order index first instead of highest.
        logger: Run logger; a stderr logger is used when omitted.

    Returns:
        GroupResult: Carries the plan and chunk results, or the error that
                     stopped the group. Group errors are logged, not raised.
    """
    logger = logger or RunLogger()
    basepath = resolve_input_dir(root)
    result = GroupResult(group.base)
    logger.info("merge", f"Start output of log: {group.base} in {basepath}")

    try:
        result.plan = plan_group(group, max_chunks, reverse)
    except SubdivisionError as exc:
        logger.error("merge", f"{exc}; skipping group {group.base}")
        result.error = exc
        return result

    for chunk in result.plan.ranges:
        out_path = basepath / chunk.output
        try:
            chunk_result = merge_chunk(
                out_path,
                basepath,
                group.fragments[chunk.start:chunk.stop],
                filters,
                logger,
            )
        except OSError as exc:
            logger.error("merge", f"End output for {out_path}: {exc}")
            result.error = exc
            break
        result.chunks.append(chunk_result)

    return result
