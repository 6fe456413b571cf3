"""
Merge engine for logmerge.

Modules:
    - model: Data structures shared by the engine components
    - filters: Regex line filtering with capture extraction
    - scanner: Fragment discovery and grouping by base name
    - planner: Sorting by order index and chunk range computation
    - sequencer: Ordered write turns for concurrent workers
    - writer: Concurrent load, ordered write of each chunk
    - cleanup: Concurrent removal of merged fragments

Architecture:
    scan_fragments -> plan_group -> merge_chunk (per range) -> delete_fragments
"""

from .cleanup import delete_fragments
from .filters import FilterSet
from .model import (
    ChunkPlan,
    ChunkRange,
    ChunkResult,
    FragmentGroup,
    FragmentRef,
    GroupResult,
    Options,
)
from .planner import plan_chunks, plan_group, sort_fragments
from .scanner import scan_fragments
from .sequencer import WriteSequencer
from .writer import load_fragment, merge_chunk, merge_group
