"""
Structured logging helpers for consistent log formatting.

Provides utilities for structured, clean logging without excessive decorative separators.
"""
import logging
from datetime import datetime, timezone


def log_section_start(logger: logging.Logger, section_name: str) -> None:
    """
    Log the start of a processing section.

    Args:
        logger: Logger instance
        section_name: Name of the section being started
    """
    logger.info(f"Starting: {section_name}")


def log_section_end(logger: logging.Logger, section_name: str) -> None:
    """
    Log the end of a processing section.

    Args:
        logger: Logger instance
        section_name: Name of the section being ended
    """
    logger.info(f"Completed: {section_name}")


def log_program_processing(logger: logging.Logger, idx: int, total: int, label: str) -> None:
    """
    Log program processing header.

    Args:
        logger: Logger instance
        idx: Current candidate index (1-based)
        total: Total number of candidates
        label: Human-readable program label
    """
    logger.info(f"Processing program {idx}/{total}: {label}")


def log_sync_start(logger: logging.Logger) -> None:
    """Log sync run start."""
    logger.info(f"Program guide sync started at {datetime.now(timezone.utc).isoformat()}")


def log_sync_end(logger: logging.Logger) -> None:
    """Log sync run end."""
    logger.info(f"Program guide sync completed at {datetime.now(timezone.utc).isoformat()}")


def log_episode_counts(
    logger: logging.Logger,
    program_id: int,
    deleted: int,
    inserted: int
) -> None:
    """
    Log episode replacement row counts.

    Args:
        logger: Logger instance
        program_id: TVMaze show id of the program
        deleted: Rows removed by the delete step
        inserted: Rows written by the insert step
    """
    logger.info(
        f"[Program {program_id}] Episodes replaced - deleted: {deleted}, inserted: {inserted}"
    )


def sanitize_url_for_logging(url: str) -> str:
    """Remove credentials from URL for safe logging."""
    if "://" not in url:
        return url
    try:
        protocol, rest = url.split("://", 1)
        if "@" in rest:
            rest = rest.split("@", 1)[1]
            return f"{protocol}://***:***@{rest}"
        return url
    except (ValueError, IndexError):
        return url
