"""
Channel model produced by the playlist pipeline.
Maps to iptv-org extended M3U entries.
"""
from pydantic import BaseModel
from typing import Optional


class Channel(BaseModel):
    """One playable stream entry with display metadata."""
    id: str
    name: str
    url: str
    logo: Optional[str] = None
    category: Optional[str] = None  # group-title
    country: Optional[str] = None
    language: Optional[str] = None
    region: Optional[str] = None
    source: Optional[str] = None


class NowPlaying(BaseModel):
    """What the player needs to start a channel."""
    id: str
    name: str
    url: str
    logo: Optional[str] = None

    @classmethod
    def from_channel(cls, channel: Channel) -> "NowPlaying":
        return cls(id=channel.id, name=channel.name, url=channel.url, logo=channel.logo)


class PlaylistResponse(BaseModel):
    """One-shot playlist fetch response."""
    dimension: str
    label: Optional[str] = None
    url: str
    channels: list[Channel]
    count: int
    available_filters: list[str]
