"""
Shared types used across the program guide sync pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Generic, TypeVar, Union


T = TypeVar("T")


@dataclass(slots=True)
class Program:
    """In-memory representation of a program row.

    Equality covers show content only; the watermark records sync state.
    """
    id: int
    name: str | None = None
    url: str | None = None
    network: str | None = None
    last_update: int | None = field(default=None, compare=False)


@dataclass(slots=True)
class Episode:
    """In-memory representation of an episode row, keyed by (program_id, season, number)."""
    program_id: int
    season: int
    number: int | None
    original_air_date: str | None = None
    title: str | None = None
    summary_url: str | None = None


# Remote lookups: found, definitively absent, or not obtainable right now.

@dataclass(slots=True, frozen=True)
class Found(Generic[T]):
    value: T


@dataclass(slots=True, frozen=True)
class NotFound:
    pass


@dataclass(slots=True, frozen=True)
class Unavailable:
    reason: str


RemoteResult = Union[Found[T], NotFound, Unavailable]


def describe_absence(result: NotFound | Unavailable) -> str:
    """Human-readable reason for a remote result that carries no value."""
    if isinstance(result, Unavailable):
        return f"unavailable ({result.reason})"
    return "not found"


# Per-step outcomes consumed by the orchestrator.

@dataclass(slots=True, frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(slots=True, frozen=True)
class Skipped:
    reason: str


@dataclass(slots=True, frozen=True)
class Failed:
    step: str
    error: str


StepResult = Union[Ok[T], Skipped, Failed]


class SyncState(str, Enum):
    FETCHING = "fetching"
    PROJECTING = "projecting"
    WRITING_PROGRAM = "writing_program"
    FETCHING_EPISODES = "fetching_episodes"
    RECONCILING_EPISODES = "reconciling_episodes"
    WRITING_EPISODES = "writing_episodes"
    DONE = "done"
    SKIPPED = "skipped"


class ExitCode(IntEnum):
    SUCCESS = 0
    RUN_FAILURE = 1
    CONFIG_FAILURE = 2
    CONNECTION_FAILURE = 3


class SyncSetupError(RuntimeError):
    """Candidate discovery failed; the run cannot continue."""

    def __init__(self, message: str, exit_code: ExitCode = ExitCode.CONNECTION_FAILURE) -> None:
        super().__init__(message)
        self.exit_code = exit_code


__all__ = [
    "Program",
    "Episode",
    "Found",
    "NotFound",
    "Unavailable",
    "RemoteResult",
    "describe_absence",
    "Ok",
    "Skipped",
    "Failed",
    "StepResult",
    "SyncState",
    "ExitCode",
    "SyncSetupError",
]
