"""
Browse/selection controller.

Holds what is currently displayed (selection, search, secondary filter,
page window, playing channel) and drives playlist loads. Loads are tagged
with a generation number; a completion from a superseded load is dropped.
"""
import logging
from typing import Callable, Optional

from iptv_browser.config import Settings, get_settings
from iptv_browser.exceptions import PlaylistError, UnknownDimensionError
from iptv_browser.models.browse import BrowseState, BrowseSummary, Phase
from iptv_browser.models.channel import Channel
from iptv_browser.models.metadata import Dimension, Selection
from iptv_browser.services.catalog import ReferenceCatalog, get_catalog, playlist_url_for
from iptv_browser.services.playlist_fetcher import PlaylistFetcher, get_playlist_fetcher

logger = logging.getLogger(__name__)

# Secondary filter value meaning "no filter"
FILTER_ALL = "all"


def distinct_values(channels: list[Channel], attribute: str) -> list[str]:
    """Non-empty attribute values in first-seen order."""
    seen = {}
    for channel in channels:
        value = getattr(channel, attribute)
        if value:
            seen.setdefault(value, None)
    return list(seen)


class BrowseController:
    """State machine behind the channel browser."""

    def __init__(
        self,
        fetcher: Optional[PlaylistFetcher] = None,
        catalog: Optional[ReferenceCatalog] = None,
        settings: Optional[Settings] = None,
        on_error: Optional[Callable[[str], None]] = None,
    ):
        self.settings = settings or get_settings()
        self.fetcher = fetcher or get_playlist_fetcher()
        self.catalog = catalog or get_catalog()
        self.page_size = self.settings.page_size
        self.on_error = on_error
        self.state = BrowseState()
        self._filtered: list[Channel] = []

    # Loading

    def playlist_url(self, selection: Selection) -> str:
        if selection.entry is not None and selection.entry.playlist_url:
            return selection.entry.playlist_url
        return playlist_url_for(selection.dimension, selection.label, base=self.settings.playlist_base)

    async def select(self, selection: Selection) -> BrowseState:
        """
        Switch to a new selection and load its playlist.

        Resets the window and secondary filter, enters LOADING, and applies
        the fetch result only if no newer selection was made meanwhile.
        """
        generation = self._begin(selection)

        try:
            url = self.playlist_url(selection)
            channels = await self.fetcher.fetch_playlist(
                url, dimension=selection.dimension, label=selection.label
            )
        except PlaylistError as e:
            if self._is_stale(generation):
                logger.debug(f"Discarding stale failure for generation {generation}: {e}")
                return self.state
            self._fail(selection.label, e)
            return self.state

        if self._is_stale(generation):
            logger.debug(f"Discarding stale result for generation {generation}")
            return self.state

        self._apply(channels)
        return self.state

    async def select_all(self) -> BrowseState:
        return await self.select(Selection())

    async def select_entry(
        self,
        dimension: str | Dimension,
        label: Optional[str] = None,
        subdivision: Optional[str] = None,
    ) -> BrowseState:
        """Select a reference entry by its catalog label."""
        try:
            selection = self.catalog.selection_for(dimension, label, subdivision)
        except UnknownDimensionError as e:
            # Supersede anything in flight, then report
            self._begin(Selection())
            self._fail(label, e)
            return self.state
        return await self.select(selection)

    async def select_subdivision(self, country_label: str, subdivision_name: str) -> BrowseState:
        return await self.select_entry(Dimension.COUNTRY, country_label, subdivision_name)

    async def retry(self) -> BrowseState:
        return await self.select(self.state.selection)

    def _begin(self, selection: Selection) -> int:
        previous = self.state
        self.state = BrowseState(
            selection=selection,
            phase=Phase.LOADING,
            search_term=previous.search_term,
            current_channel=previous.current_channel,
            generation=previous.generation + 1,
        )
        self._filtered = []
        return self.state.generation

    def _is_stale(self, generation: int) -> bool:
        return generation != self.state.generation

    def _apply(self, channels: list[Channel]):
        selection = self.state.selection
        self.state.channels = channels
        self.state.total_channels = selection.total_channels or len(channels)
        self.state.available_filters = distinct_values(
            channels, selection.dimension.channel_attribute
        )
        if self.state.current_channel is None and channels:
            self.state.current_channel = channels[0]
        self.state.error = None
        self._refresh_view()
        self.state.phase = Phase.LOADED
        logger.info(
            f"Loaded {len(channels)} channels for {selection.dimension.value}"
            f"{' ' + repr(selection.label) if selection.label else ''}"
        )

    def _fail(self, label: Optional[str], error: PlaylistError):
        logger.error(f"Failed to load playlist: {error}")
        notice = f"No channels available for {label or 'this selection'}. Please try again."
        self.state.channels = []
        self.state.displayed = []
        self.state.available_filters = []
        self.state.total_channels = 0
        self.state.error = notice
        self.state.phase = Phase.LOADED
        self._filtered = []
        if self.on_error:
            self.on_error(notice)

    # Filtering and paging

    def set_search_term(self, term: str) -> BrowseState:
        self.state.search_term = term or ""
        self._refresh_view()
        return self.state

    def set_filter_value(self, value: Optional[str]) -> BrowseState:
        if not value or value == FILTER_ALL:
            value = None
        self.state.filter_value = value
        self._refresh_view()
        return self.state

    @property
    def filtered_channels(self) -> list[Channel]:
        return self._filtered

    @property
    def has_more(self) -> bool:
        return len(self.state.displayed) < len(self._filtered)

    def _refresh_view(self):
        term = self.state.search_term.strip().lower()
        value = self.state.filter_value
        attribute = self.state.selection.dimension.channel_attribute

        self._filtered = [
            channel for channel in self.state.channels
            if (not term or term in channel.name.lower())
            and (value is None or getattr(channel, attribute) == value)
        ]
        self.state.displayed = self._filtered[:self.page_size]

    def load_more(self) -> int:
        """Append the next page of the filtered view. Returns how many were added."""
        if self.state.phase is not Phase.LOADED or not self.has_more:
            return 0

        self.state.phase = Phase.LOADING_MORE
        start = len(self.state.displayed)
        page = self._filtered[start:start + self.page_size]
        self.state.displayed = self.state.displayed + page
        self.state.phase = Phase.LOADED
        return len(page)

    # Playback

    def select_channel(self, channel_id: str) -> Channel:
        """Play a channel from the displayed window."""
        for channel in self.state.displayed:
            if channel.id == channel_id:
                self.state.current_channel = channel
                return channel
        raise KeyError(channel_id)

    def summary(self) -> BrowseSummary:
        state = self.state
        return BrowseSummary(
            dimension=state.selection.dimension.value,
            label=state.selection.label,
            phase=state.phase,
            loading=state.loading,
            search_term=state.search_term,
            filter_value=state.filter_value,
            available_filters=state.available_filters,
            displayed=state.displayed,
            displayed_count=len(state.displayed),
            filtered_count=len(self._filtered),
            batch_count=len(state.channels),
            total_channels=state.total_channels,
            has_more=self.has_more,
            current_channel=state.current_channel,
            error=state.error,
        )


# Singleton
_controller: Optional[BrowseController] = None


def get_browse_controller() -> BrowseController:
    """Get or create the browse controller singleton."""
    global _controller
    if _controller is None:
        _controller = BrowseController()
    return _controller
