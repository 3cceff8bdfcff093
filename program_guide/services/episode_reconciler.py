"""
Episode reconciliation

Classifies a freshly fetched episode list against the stored episodes for
reporting, and builds the replacement set that is written back. The
replacement set is always the full remote list: episodes are replaced
wholesale, the classification never decides what gets written.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from program_guide.schemas import RemoteEpisode
from program_guide.services.projector import project_episode
from program_guide.services.sync_types import Episode


logger = logging.getLogger(__name__)

EpisodeLookup = Callable[[int, int, Optional[int]], Optional[Episode]]


@dataclass(slots=True)
class EpisodeChange:
    before: Episode
    after: Episode


@dataclass(slots=True)
class EpisodeReconciliation:
    replacements: list[Episode] = field(default_factory=list)
    new: list[Episode] = field(default_factory=list)
    changed: list[EpisodeChange] = field(default_factory=list)
    unchanged: list[Episode] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.new or self.changed)


def reconcile(
    program_id: int,
    remote_episodes: Sequence[RemoteEpisode],
    lookup_local: EpisodeLookup,
) -> EpisodeReconciliation:
    """
    Project remote episodes and classify them against the stored ones.

    Args:
        program_id: TVMaze show id the episodes belong to
        remote_episodes: Episode list as returned by TVMaze
        lookup_local: Callable (program_id, season, number) -> stored Episode or None

    Returns:
        EpisodeReconciliation whose replacements hold every projected
        episode in remote order
    """
    result = EpisodeReconciliation()

    for remote in remote_episodes:
        episode = project_episode(program_id, remote)
        result.replacements.append(episode)

        try:
            current = lookup_local(program_id, episode.season, episode.number)
        except SQLAlchemyError as exc:
            # Reporting only; the episode is still written
            logger.warning(
                "[Program %s] Episode lookup S%sE%s failed, reporting as new: %s",
                program_id,
                episode.season,
                episode.number,
                exc,
            )
            current = None

        if current is None:
            result.new.append(episode)
            logger.debug("[Program %s] New episode: %s", program_id, episode)
        elif current != episode:
            result.changed.append(EpisodeChange(before=current, after=episode))
            logger.info("[Program %s] Episode before: %s", program_id, current)
            logger.info("[Program %s] Episode after:  %s", program_id, episode)
        else:
            result.unchanged.append(episode)

    logger.info(
        "[Program %s] Reconciled %s episodes: %s new, %s changed, %s unchanged",
        program_id,
        len(result.replacements),
        len(result.new),
        len(result.changed),
        len(result.unchanged),
    )
    return result
