"""
Projection of TVMaze payloads onto program guide rows.

Every optional string is normalized so that "no value" is always None,
whether it came from the database (NULL) or the API (empty string).
"""
from __future__ import annotations

from program_guide.schemas import RemoteEpisode, RemoteShow
from program_guide.services.sync_types import Episode, Program
from program_guide.utils.air_dates import normalize_air_date


def clean_text(value: str | None) -> str | None:
    """Return None for missing or blank strings, otherwise the value unchanged."""
    if value is None or not value.strip():
        return None
    return value


def resolve_network(show: RemoteShow) -> str | None:
    """Broadcast network name, falling back to the web channel name."""
    if show.network is not None:
        return clean_text(show.network.name)
    if show.web_channel is not None:
        return clean_text(show.web_channel.name)
    return None


def project_show(show: RemoteShow) -> Program:
    return Program(
        id=show.id,
        name=clean_text(show.name),
        url=clean_text(show.url),
        network=resolve_network(show),
        last_update=show.updated,
    )


def project_episode(show_id: int, episode: RemoteEpisode) -> Episode:
    return Episode(
        program_id=show_id,
        season=episode.season,
        number=episode.number,
        original_air_date=normalize_air_date(episode.airdate),
        title=clean_text(episode.name),
        summary_url=clean_text(episode.url),
    )
