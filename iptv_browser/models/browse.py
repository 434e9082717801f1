"""
Browse state owned by the selection controller.
"""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from iptv_browser.models.channel import Channel
from iptv_browser.models.metadata import Selection


class Phase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    LOADING_MORE = "loading_more"


class BrowseState(BaseModel):
    """Everything the presentation layer renders."""
    selection: Selection = Field(default_factory=Selection)
    phase: Phase = Phase.IDLE
    search_term: str = ""
    filter_value: Optional[str] = None
    channels: list[Channel] = Field(default_factory=list)
    displayed: list[Channel] = Field(default_factory=list)
    available_filters: list[str] = Field(default_factory=list)
    current_channel: Optional[Channel] = None
    total_channels: int = 0
    error: Optional[str] = None
    generation: int = 0

    @property
    def loading(self) -> bool:
        return self.phase in (Phase.LOADING, Phase.LOADING_MORE)


class BrowseSummary(BaseModel):
    """Browse state as returned by the API (full batch omitted)."""
    dimension: str
    label: Optional[str] = None
    phase: Phase
    loading: bool
    search_term: str
    filter_value: Optional[str] = None
    available_filters: list[str]
    displayed: list[Channel]
    displayed_count: int
    filtered_count: int
    batch_count: int
    total_channels: int
    has_more: bool
    current_channel: Optional[Channel] = None
    error: Optional[str] = None
