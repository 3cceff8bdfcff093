"""
Air date utilities

Converts between the calendar-date strings used by TVMaze and the DATE
values stored in the program guide database.
"""
from datetime import date
import logging

logger = logging.getLogger(__name__)


class AirDateFormatError(ValueError):
    """Raised when an air date string is not a calendar date"""
    pass


def parse_air_date(date_str: str) -> date:
    """
    Parse a TVMaze air date (YYYY-MM-DD) into a date

    Args:
        date_str: Calendar date string, e.g. '2013-06-24'

    Returns:
        The parsed date

    Raises:
        AirDateFormatError: If the string is not a YYYY-MM-DD date
    """
    try:
        return date.fromisoformat(date_str.strip())
    except (ValueError, AttributeError, TypeError) as e:
        raise AirDateFormatError(f"Invalid air date: {date_str!r}") from e


def to_db_air_date(date_str: str | None) -> date | None:
    """Convert an optional air date string to a storable value; unparseable dates become NULL"""
    if date_str is None:
        return None
    try:
        return parse_air_date(date_str)
    except AirDateFormatError:
        logger.warning("Storing NULL for unparseable air date %r", date_str)
        return None


def normalize_air_date(date_str: str | None) -> str | None:
    """Air date string in the form it reads back from the database (stripped, or None if unparseable)"""
    if date_str is None or not date_str.strip():
        return None
    return from_db_air_date(to_db_air_date(date_str))


def from_db_air_date(value: date | None) -> str | None:
    """Format a stored air date back to its YYYY-MM-DD string form"""
    return value.isoformat() if value is not None else None
