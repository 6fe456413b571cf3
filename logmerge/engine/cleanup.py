"""
Removal of merged fragments.

After a group merged successfully and deletion was requested, every
fragment of the group is removed by its own thread. A failed removal is a
warning; it never stops the other removals or the run.
"""

import os
import threading
import traceback
from typing import List, Optional, Sequence

from ..utils.paths import resolve_input_dir
from ..utils.runlog import RunLogger
from .model import FragmentRef
from .scanner import fragment_path


def delete_fragments(
    root,
    fragments: Sequence[FragmentRef],
    logger: Optional[RunLogger] = None,
) -> List[str]:
    """
    Delete fragments concurrently, best effort.

    Args:
        root: Directory the fragments live in.
        fragments: Fragments to remove.
        logger: Run logger; a stderr logger is used when omitted.

    Returns:
        List[str]: Names that could not be removed, in input order.
    """
    logger = logger or RunLogger()
    basepath = resolve_input_dir(root)
    failed = [False] * len(fragments)

    def remove(slot: int, fragment: FragmentRef) -> None:
        try:
            os.remove(fragment_path(basepath, fragment))
        except OSError as exc:
            failed[slot] = True
            logger.warn("cleanup", f"Delete file error: {exc}")
        except Exception:
            failed[slot] = True
            logger.error("cleanup", f"Unexpected fault deleting {fragment.name}\n{traceback.format_exc()}")

    logger.info("cleanup", f"Start delete of log: {basepath}")
    threads = []
    for slot, fragment in enumerate(fragments):
        logger.info("cleanup", f"Delete {fragment.name}")
        thread = threading.Thread(target=remove, args=(slot, fragment), daemon=True)
        thread.start()
        threads.append(thread)
    for thread in threads:
        thread.join()
    logger.info("cleanup", f"End delete of log: {basepath}")

    return [f.name for f, bad in zip(fragments, failed) if bad]
