"""
Pydantic models for TVMaze API payloads

Only the fields the sync reads are declared; everything else in the
response is ignored.
"""
from pydantic import BaseModel, ConfigDict, Field


class RemoteNetwork(BaseModel):
    """Broadcast network a show airs on"""
    name: str | None = None


class RemoteWebChannel(BaseModel):
    """Streaming/web channel a show airs on"""
    name: str | None = None


class RemoteShow(BaseModel):
    """Show detail from GET /shows/{id}"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int = Field(..., description="TVMaze show id")
    url: str | None = Field(None, description="Canonical TVMaze URL")
    name: str | None = Field(None, description="Show name")
    network: RemoteNetwork | None = None
    web_channel: RemoteWebChannel | None = Field(None, alias="webChannel")
    updated: int | None = Field(None, description="Epoch seconds of the last TVMaze update")


class RemoteEpisode(BaseModel):
    """Episode entry from GET /shows/{id}/episodes"""
    model_config = ConfigDict(extra="ignore")

    id: int
    url: str | None = None
    name: str | None = None
    season: int
    number: int | None = Field(None, description="Null for specials")
    airdate: str | None = Field(None, description="YYYY-MM-DD, empty when unknown")
