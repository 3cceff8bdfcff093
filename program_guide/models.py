"""
SQLAlchemy ORM Models for the program guide

This module defines the database models for programs and episodes.
"""
from datetime import date
from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


class ProgramRow(Base):
    """Program model keyed by the TVMaze show id"""
    __tablename__ = "program"

    tvmaze_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    network: Mapped[str | None] = mapped_column(String(255), nullable=True)
    do_update: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # Epoch seconds of the last TVMaze update applied to this row
    last_update: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<ProgramRow(tvmaze_id={self.tvmaze_id}, name={self.name})>"


class EpisodeRow(Base):
    """Episode model, fully owned by its program"""
    __tablename__ = "episode"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    program_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("program.tvmaze_id", ondelete="CASCADE"),
        nullable=False
    )
    season: Mapped[int] = mapped_column(Integer, nullable=False)
    number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    original_air_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    summary_url: Mapped[str | None] = mapped_column(String(512), nullable=True)

    # Constraints
    __table_args__ = (
        UniqueConstraint("program_id", "season", "number", name="uq_episode_program_season_number"),
        Index("idx_episode_program", "program_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<EpisodeRow(program_id={self.program_id}, season={self.season}, "
            f"number={self.number})>"
        )
