"""
Database operations for the program guide

This module contains all database reads and writes for programs and episodes.
Errors are not handled here: SQLAlchemyError propagates to the caller, which
decides whether a failure is fatal for the run.
"""
import logging
from collections.abc import Sequence
from typing import cast

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import CursorResult

from program_guide.database import Database
from program_guide.models import EpisodeRow, ProgramRow
from program_guide.services.sync_types import Episode, Program
from program_guide.utils.air_dates import from_db_air_date, to_db_air_date


logger = logging.getLogger(__name__)


def _to_program(row: ProgramRow) -> Program:
    return Program(
        id=row.tvmaze_id,
        name=row.name,
        url=row.url,
        network=row.network,
        last_update=row.last_update,
    )


def _to_episode(row: EpisodeRow) -> Episode:
    return Episode(
        program_id=row.program_id,
        season=row.season,
        number=row.number,
        original_air_date=from_db_air_date(row.original_air_date),
        title=row.title,
        summary_url=row.summary_url,
    )


def _rowcount(result) -> int:
    rowcount = cast(CursorResult, result).rowcount
    if rowcount is None or rowcount < 0:
        return 0
    return rowcount


class ProgramGuideStore:
    """Program and episode persistence on top of a Database."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def get_all_programs(self) -> list[Program]:
        """
        Load every program in the guide.

        Returns:
            Programs ordered by TVMaze id
        """
        with self._db.session_scope() as session:
            rows = session.scalars(select(ProgramRow).order_by(ProgramRow.tvmaze_id)).all()
            programs = [_to_program(row) for row in rows]
        logger.info("Loaded %s programs from database", len(programs))
        return programs

    def get_program(self, program_id: int) -> Program | None:
        """Load one program by TVMaze id, or None if it is not in the guide."""
        with self._db.session_scope() as session:
            row = session.get(ProgramRow, program_id)
            return _to_program(row) if row is not None else None

    def update_program(self, program: Program) -> int:
        """
        Write name, url, network and watermark of an existing program.

        Programs are never created here; an unknown id updates nothing.

        Args:
            program: Projected program, keyed by TVMaze id

        Returns:
            Number of rows updated
        """
        stmt = (
            update(ProgramRow)
            .where(ProgramRow.tvmaze_id == program.id)
            .values(
                name=program.name,
                url=program.url,
                network=program.network,
                last_update=program.last_update,
            )
        )
        with self._db.session_scope() as session:
            updated = _rowcount(session.execute(stmt))
        logger.debug("Updated %s program row(s) for %s", updated, program.id)
        return updated

    def get_episode(self, program_id: int, season: int, number: int | None) -> Episode | None:
        """Load the stored episode for (program, season, number), or None."""
        number_clause = EpisodeRow.number.is_(None) if number is None else EpisodeRow.number == number
        stmt = (
            select(EpisodeRow)
            .where(
                EpisodeRow.program_id == program_id,
                EpisodeRow.season == season,
                number_clause,
            )
            .order_by(EpisodeRow.id)
            .limit(1)
        )
        with self._db.session_scope() as session:
            row = session.scalars(stmt).first()
            return _to_episode(row) if row is not None else None

    def delete_episodes(self, program_id: int) -> int:
        """
        Delete every stored episode of a program.

        Returns:
            Number of deleted episodes
        """
        with self._db.session_scope() as session:
            deleted = _rowcount(
                session.execute(delete(EpisodeRow).where(EpisodeRow.program_id == program_id))
            )
        logger.debug("Deleted %s episodes for program %s", deleted, program_id)
        return deleted

    def insert_episodes(self, episodes: Sequence[Episode]) -> int:
        """
        Insert episodes in one executemany batch.

        Args:
            episodes: Episodes to insert; may belong to any program

        Returns:
            Number of inserted episodes
        """
        episode_list = list(episodes)
        if not episode_list:
            logger.debug("No episodes to insert")
            return 0

        payload = [
            {
                "program_id": episode.program_id,
                "season": episode.season,
                "number": episode.number,
                "original_air_date": to_db_air_date(episode.original_air_date),
                "title": episode.title,
                "summary_url": episode.summary_url,
            }
            for episode in episode_list
        ]
        with self._db.session_scope() as session:
            session.execute(insert(EpisodeRow), payload)
        # executemany rowcounts are driver dependent; the batch is all or nothing
        logger.debug("Inserted %s episodes", len(payload))
        return len(payload)
