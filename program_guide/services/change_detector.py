"""
Candidate selection

Decides which local programs need a resync by comparing their watermarks
with the TVMaze bulk update map.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from program_guide.services.sync_types import Program


logger = logging.getLogger(__name__)


def select_candidates(
    programs: Sequence[Program],
    updates: Mapping[int, int] | None,
) -> list[Program]:
    """
    Select the programs whose remote update timestamp differs from their watermark.

    A missing map entry and a missing watermark both count as 0, so a program
    that was never synced and never updated upstream is left alone.

    Args:
        programs: All local programs, in store order
        updates: Show id -> TVMaze update timestamp, or None when the bulk
            update endpoint was unavailable

    Returns:
        Programs to resync, in the order given. Every program when updates is None.
    """
    if updates is None:
        logger.warning(
            "Bulk update map unavailable - treating all %s programs as candidates",
            len(programs),
        )
        return list(programs)

    candidates = []
    for program in programs:
        remote_update = updates.get(program.id, 0)
        local_update = program.last_update or 0
        if remote_update != local_update:
            candidates.append(program)
        else:
            logger.debug(
                "Program %s unchanged since last run (update=%s)",
                program.id,
                local_update,
            )

    logger.info(
        "Selected %s of %s programs for sync",
        len(candidates),
        len(programs),
    )
    return candidates
