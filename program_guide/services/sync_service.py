"""
Program Guide Sync Service

Selects the programs that changed on TVMaze and brings their program row and
episode list in line with the remote catalog, one program at a time.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Literal

from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from program_guide.config import CustomSettings
from program_guide.database import Database
from program_guide.schemas import RemoteEpisode, RemoteShow
from program_guide.services.change_detector import select_candidates
from program_guide.services.db_service import ProgramGuideStore
from program_guide.services.episode_reconciler import reconcile
from program_guide.services.projector import project_show
from program_guide.services.sync_types import (
    Episode,
    ExitCode,
    Failed,
    Found,
    Ok,
    Program,
    Skipped,
    StepResult,
    SyncSetupError,
    SyncState,
    describe_absence,
)
from program_guide.services.tvmaze_client import TVMazeClient
from program_guide.utils.logging_helpers import (
    log_episode_counts,
    log_program_processing,
    log_section_end,
    log_section_start,
    log_sync_end,
    log_sync_start,
)


logger = logging.getLogger(__name__)


def _describe_program(program: Program | None) -> str:
    if program is None:
        return "-"
    return (
        f"name={program.name!r}, url={program.url!r}, "
        f"network={program.network!r}, last_update={program.last_update}"
    )


def _next_watermark(
    program: Program,
    show: RemoteShow,
    updates: Mapping[int, int] | None,
) -> int | None:
    """
    Watermark to commit for a synced program.

    Prefers the bulk map value, the one candidate selection compares against.
    Without it (single-id mode or unavailable map) the show's own timestamp is
    used, and if that is missing too the stored watermark is kept.
    """
    if updates is not None and program.id in updates:
        return updates[program.id]
    if show.updated is not None:
        return show.updated
    return program.last_update


@dataclass(slots=True)
class ProgramSummary:
    index: int
    before: Program
    state: SyncState = SyncState.FETCHING
    after: Program | None = None
    program_changed: bool = False
    program_rows: int = 0
    episodes_deleted: int = 0
    episodes_inserted: int = 0
    episodes_new: int = 0
    episodes_changed: int = 0
    skip_reason: str | None = None
    failures: list[Failed] = field(default_factory=list)

    @property
    def program_id(self) -> int:
        return self.before.id

    @property
    def label(self) -> str:
        return f"{self.before.name or '(unnamed)'} [{self.program_id}]"

    @property
    def changed(self) -> bool:
        return (
            self.program_changed
            or self.episodes_new > 0
            or self.episodes_changed > 0
            or self.episodes_deleted != self.episodes_inserted
        )

    @property
    def outcome(self) -> Literal["updated", "unchanged", "skipped"]:
        if self.changed:
            return "updated"
        if self.skip_reason is not None:
            return "skipped"
        return "unchanged"

    def outcome_line(self) -> str:
        """One human-readable line describing what happened to this program."""
        if self.outcome == "skipped":
            line = f"{self.label}: skipped ({self.skip_reason})"
        elif self.outcome == "unchanged":
            line = f"{self.label}: no changes"
        else:
            line = (
                f"{self.label}: updated - before: {_describe_program(self.before)}; "
                f"after: {_describe_program(self.after)}; "
                f"episodes: {self.episodes_deleted} deleted, {self.episodes_inserted} inserted "
                f"({self.episodes_new} new, {self.episodes_changed} changed)"
            )
            if self.skip_reason is not None:
                line += f"; episodes skipped ({self.skip_reason})"
        if self.failures:
            errors = ", ".join(f"{failure.step}: {failure.error}" for failure in self.failures)
            line += f"; errors: {errors}"
        return line

    def to_dict(self) -> dict:
        payload = {
            "index": self.index,
            "program_id": self.program_id,
            "outcome": self.outcome,
            "state": self.state.value,
            "program_changed": self.program_changed,
            "program_rows": self.program_rows,
            "episodes_deleted": self.episodes_deleted,
            "episodes_inserted": self.episodes_inserted,
            "episodes_new": self.episodes_new,
            "episodes_changed": self.episodes_changed,
        }
        if self.skip_reason:
            payload["skip_reason"] = self.skip_reason
        if self.failures:
            payload["errors"] = [{"step": f.step, "error": f.error} for f in self.failures]
        return payload


@dataclass(slots=True)
class SyncReport:
    mode: Literal["full", "single"]
    started_at: datetime
    completed_at: datetime | None = None
    programs_total: int = 0
    bulk_updates_available: bool | None = None
    message: str | None = None
    programs: list[ProgramSummary] = field(default_factory=list)

    def _count(self, outcome: str) -> int:
        return sum(1 for summary in self.programs if summary.outcome == outcome)

    @property
    def failed_steps(self) -> int:
        return sum(len(summary.failures) for summary in self.programs)

    @property
    def status(self) -> Literal["success", "completed_with_errors"]:
        return "completed_with_errors" if self.failed_steps else "success"

    def summary_line(self) -> str:
        if self.message and not self.programs:
            return f"Sync {self.status}: {self.message}"
        return (
            f"Sync {self.status}: {len(self.programs)} candidate(s) of {self.programs_total} "
            f"program(s) - {self._count('updated')} updated, {self._count('unchanged')} unchanged, "
            f"{self._count('skipped')} skipped, {self.failed_steps} failed step(s)"
        )

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "mode": self.mode,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "programs_total": self.programs_total,
            "candidates": len(self.programs),
            "bulk_updates_available": self.bulk_updates_available,
            "programs_updated": self._count("updated"),
            "programs_unchanged": self._count("unchanged"),
            "programs_skipped": self._count("skipped"),
            "failed_steps": self.failed_steps,
            "message": self.message,
            "program_details": [summary.to_dict() for summary in self.programs],
        }


class SyncOrchestrator:
    """Drives candidate discovery and the per-program sync pipeline."""

    def __init__(
        self,
        store: ProgramGuideStore,
        catalog: TVMazeClient,
        *,
        require_bulk_updates: bool = False,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._require_bulk_updates = require_bulk_updates

    def run(self, program_id: int | None = None) -> SyncReport:
        """
        Run one sync cycle.

        Args:
            program_id: Sync only this TVMaze show, regardless of its watermark

        Returns:
            SyncReport with one ProgramSummary per candidate

        Raises:
            SyncSetupError: If the candidate set cannot be formed
        """
        report = SyncReport(
            mode="full" if program_id is None else "single",
            started_at=datetime.now(timezone.utc),
        )
        log_sync_start(logger)

        if program_id is None:
            candidates, updates = self._discover_all(report)
        else:
            candidates, updates = self._discover_single(report, program_id)

        if not candidates and report.message is None:
            report.message = "no programs changed since the last run"

        log_section_start(logger, f"sync of {len(candidates)} program(s)")
        for index, program in enumerate(candidates, start=1):
            log_program_processing(logger, index, len(candidates), program.name or str(program.id))
            summary = self.sync_program(index, program, updates)
            logger.info(summary.outcome_line())
            report.programs.append(summary)
        log_section_end(logger, f"sync of {len(candidates)} program(s)")

        report.completed_at = datetime.now(timezone.utc)
        logger.info(report.summary_line())
        log_sync_end(logger)
        return report

    def _discover_single(
        self,
        report: SyncReport,
        program_id: int,
    ) -> tuple[list[Program], Mapping[int, int] | None]:
        logger.info("Updating program for tvmaze_id %s", program_id)
        try:
            program = self._store.get_program(program_id)
        except SQLAlchemyError as exc:
            logger.error("Failed to load program %s: %s", program_id, exc, exc_info=True)
            raise SyncSetupError(f"Failed to load program {program_id}: {exc}") from exc

        if program is None:
            report.message = f"program {program_id} is not in the guide; nothing to do"
            logger.info("Program %s is not in the guide; nothing to do", program_id)
            return [], None

        report.programs_total = 1
        return [program], None

    def _discover_all(
        self,
        report: SyncReport,
    ) -> tuple[list[Program], Mapping[int, int] | None]:
        logger.info("Getting all programs from the database...")
        try:
            programs = self._store.get_all_programs()
        except SQLAlchemyError as exc:
            logger.error("Failed to load programs: %s", exc, exc_info=True)
            raise SyncSetupError(f"Failed to load programs: {exc}") from exc
        report.programs_total = len(programs)

        logger.info("Getting show update dates...")
        result = self._catalog.get_show_updates()
        if isinstance(result, Found):
            updates: Mapping[int, int] | None = result.value
            report.bulk_updates_available = True
        else:
            report.bulk_updates_available = False
            if self._require_bulk_updates:
                raise SyncSetupError(f"Bulk show updates {describe_absence(result)}")
            updates = None

        return select_candidates(programs, updates), updates

    def sync_program(
        self,
        index: int,
        program: Program,
        updates: Mapping[int, int] | None = None,
    ) -> ProgramSummary:
        """Sync one candidate program and its episodes; never raises for recoverable failures."""
        summary = ProgramSummary(index=index, before=program)

        summary.state = SyncState.FETCHING
        show_result = self._fetch_show(program.id)
        if isinstance(show_result, Skipped):
            return self._skip(summary, show_result.reason)

        summary.state = SyncState.PROJECTING
        projected = replace(
            project_show(show_result.value),
            last_update=_next_watermark(program, show_result.value, updates),
        )
        summary.after = projected
        summary.program_changed = projected != program
        logger.info("[Program %s] before: %s", program.id, _describe_program(program))
        logger.info("[Program %s] after:  %s", program.id, _describe_program(projected))

        # Written even when unchanged so the watermark always advances
        summary.state = SyncState.WRITING_PROGRAM
        written = self._run_store_step(summary, "update_program", self._store.update_program, projected)
        if isinstance(written, Ok):
            summary.program_rows = written.value

        summary.state = SyncState.FETCHING_EPISODES
        episodes_result = self._fetch_episodes(program.id)
        if isinstance(episodes_result, Skipped):
            return self._skip(summary, episodes_result.reason)

        summary.state = SyncState.RECONCILING_EPISODES
        reconciliation = reconcile(program.id, episodes_result.value, self._store.get_episode)
        summary.episodes_new = len(reconciliation.new)
        summary.episodes_changed = len(reconciliation.changed)

        summary.state = SyncState.WRITING_EPISODES
        self._replace_episodes(summary, reconciliation.replacements)

        summary.state = SyncState.DONE
        return summary

    def _fetch_show(self, program_id: int) -> StepResult[RemoteShow]:
        logger.info("[Program %s] Getting show info from TVMaze...", program_id)
        result = self._catalog.get_show(program_id)
        if isinstance(result, Found):
            return Ok(result.value)
        return Skipped(f"show {describe_absence(result)}")

    def _fetch_episodes(self, program_id: int) -> StepResult[list[RemoteEpisode]]:
        logger.info("[Program %s] Getting episodes from TVMaze...", program_id)
        result = self._catalog.get_episodes(program_id)
        if isinstance(result, Found):
            return Ok(result.value)
        return Skipped(f"episode list {describe_absence(result)}")

    def _replace_episodes(self, summary: ProgramSummary, replacements: list[Episode]) -> None:
        logger.info("[Program %s] Deleting current episodes from database...", summary.program_id)
        deleted = self._run_store_step(
            summary, "delete_episodes", self._store.delete_episodes, summary.program_id
        )
        if isinstance(deleted, Failed):
            logger.error(
                "[Program %s] Episode delete failed; skipping insert, episodes stay as they were",
                summary.program_id,
            )
            return
        summary.episodes_deleted = deleted.value

        # Delete and insert are separate transactions: a failed insert leaves
        # the program without episodes until the next successful cycle.
        logger.info("[Program %s] Inserting updated episodes into database...", summary.program_id)
        inserted = self._run_store_step(
            summary, "insert_episodes", self._store.insert_episodes, replacements
        )
        if isinstance(inserted, Ok):
            summary.episodes_inserted = inserted.value
        log_episode_counts(logger, summary.program_id, summary.episodes_deleted, summary.episodes_inserted)

    def _run_store_step(
        self,
        summary: ProgramSummary,
        step: str,
        func: Callable[..., int],
        *args: Any,
    ) -> StepResult[int]:
        try:
            return Ok(func(*args))
        except SQLAlchemyError as exc:
            logger.error(
                "[Program %s] %s failed: %s",
                summary.program_id,
                step,
                exc,
                exc_info=True,
            )
            message = str(exc).splitlines()[0] if str(exc) else type(exc).__name__
            failure = Failed(step=step, error=message)
            summary.failures.append(failure)
            return failure

    def _skip(self, summary: ProgramSummary, reason: str) -> ProgramSummary:
        logger.warning("[Program %s] Skipping: %s", summary.program_id, reason)
        summary.state = SyncState.SKIPPED
        summary.skip_reason = reason
        return summary


def run_sync(
    settings: CustomSettings,
    program_id: int | None = None,
    *,
    transport=None,
) -> SyncReport:
    """
    Main entry point for one sync cycle.

    Opens the database and the TVMaze client for the duration of the run and
    closes both afterwards.

    Args:
        settings: Loaded configuration
        program_id: Optional single TVMaze show id to sync
        transport: Optional httpx transport (tests)

    Raises:
        SyncSetupError: If the database URL is invalid, the database cannot be
            reached, or candidates cannot be formed
    """
    try:
        database = Database(settings.database_url)
    except (ArgumentError, ImportError) as exc:
        # Malformed URL, unknown dialect or missing driver package
        logger.error("Invalid database URL: %s", exc)
        raise SyncSetupError(
            f"Invalid database URL: {exc}",
            exit_code=ExitCode.CONFIG_FAILURE,
        ) from exc

    try:
        database.check_connection()
        if settings.create_schema:
            database.create_schema()
    except SQLAlchemyError as exc:
        logger.error("Database initialization failed: %s", exc, exc_info=True)
        database.close()
        raise SyncSetupError(
            f"Database initialization failed: {exc}",
            exit_code=ExitCode.CONNECTION_FAILURE,
        ) from exc

    try:
        with TVMazeClient(
            settings.tvmaze_base_url,
            timeout=settings.http_timeout_sec,
            user_agent=settings.http_user_agent,
            transport=transport,
        ) as catalog:
            orchestrator = SyncOrchestrator(
                ProgramGuideStore(database),
                catalog,
                require_bulk_updates=settings.require_bulk_updates,
            )
            return orchestrator.run(program_id)
    finally:
        database.close()
