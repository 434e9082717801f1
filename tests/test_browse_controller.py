"""
Tests for the browse/selection state machine.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from iptv_browser.exceptions import EmptyPlaylistError, RetrievalExhaustedError
from iptv_browser.models.browse import Phase
from iptv_browser.models.metadata import Dimension, Selection
from iptv_browser.services.browse_controller import BrowseController, distinct_values
from iptv_browser.services.m3u_parser import parse_m3u

from conftest import make_channel


def news_batch():
    return [
        make_channel("n1", "BBC News", category="News", country="UK"),
        make_channel("m1", "MTV Hits", category="Music", country="US"),
        make_channel("n2", "CNN International", category="News", country="US"),
        make_channel("k1", "Cartoon Time", category="Kids"),
        make_channel("n3", "Euronews", category="News", country="FR"),
    ]


def build_controller(test_settings, catalog, result=None, side_effect=None, on_error=None):
    fetcher = MagicMock()
    fetcher.fetch_playlist = AsyncMock(return_value=result, side_effect=side_effect)
    return BrowseController(fetcher=fetcher, catalog=catalog, settings=test_settings, on_error=on_error)


class TestLoading:

    @pytest.mark.asyncio
    async def test_select_all_loads_first_page(self, test_settings, catalog):
        controller = build_controller(test_settings, catalog, result=news_batch())

        state = await controller.select_all()

        assert state.phase is Phase.LOADED
        assert [ch.id for ch in state.displayed] == ["n1", "m1"]
        assert state.current_channel.id == "n1"
        assert state.available_filters == ["News", "Music", "Kids"]
        assert state.total_channels == 5
        assert state.error is None
        controller.fetcher.fetch_playlist.assert_awaited_once_with(
            "https://iptv-org.github.io/iptv/index.m3u", dimension=Dimension.ALL, label=None
        )

    @pytest.mark.asyncio
    async def test_select_entry_uses_entry_playlist(self, test_settings, catalog):
        controller = build_controller(test_settings, catalog, result=news_batch())

        state = await controller.select_entry("country", "france")

        controller.fetcher.fetch_playlist.assert_awaited_once_with(
            "https://iptv-org.github.io/iptv/countries/fr.m3u", dimension=Dimension.COUNTRY, label="France"
        )
        assert state.selection.dimension is Dimension.COUNTRY
        # Informational count comes from the reference entry
        assert state.total_channels == catalog.find("country", "France").channels
        assert state.available_filters == ["UK", "US", "FR"]

    @pytest.mark.asyncio
    async def test_select_subdivision(self, test_settings, catalog):
        controller = build_controller(test_settings, catalog, result=news_batch())

        state = await controller.select_entry("country", "United States", subdivision="Texas")

        assert state.selection.label == "Texas"
        url = controller.fetcher.fetch_playlist.await_args.args[0]
        assert url.endswith("/subdivisions/us-tx.m3u")

    @pytest.mark.asyncio
    async def test_select_subdivision_shortcut(self, test_settings, catalog):
        controller = build_controller(test_settings, catalog, result=news_batch())

        state = await controller.select_subdivision("Spain", "Catalonia")

        assert state.selection.dimension is Dimension.COUNTRY
        assert state.selection.label == "Catalonia"
        assert state.phase is Phase.LOADED

    @pytest.mark.asyncio
    async def test_loading_phase_while_fetch_outstanding(self, test_settings, catalog):
        gate = asyncio.Event()

        async def slow_fetch(url, dimension=None, label=None):
            await gate.wait()
            return news_batch()

        controller = build_controller(test_settings, catalog, side_effect=slow_fetch)
        task = asyncio.create_task(controller.select_entry("category", "News"))
        await asyncio.sleep(0)

        assert controller.state.phase is Phase.LOADING
        assert controller.state.loading
        assert controller.state.displayed == []

        gate.set()
        await task
        assert controller.state.phase is Phase.LOADED

    @pytest.mark.asyncio
    async def test_keeps_playing_channel_across_loads(self, test_settings, catalog):
        controller = build_controller(test_settings, catalog, result=news_batch())
        await controller.select_all()
        controller.select_channel("m1")

        controller.fetcher.fetch_playlist.return_value = [make_channel("x1")]
        state = await controller.select_entry("category", "Kids")

        assert state.current_channel.id == "m1"

    @pytest.mark.asyncio
    async def test_reset_clears_filter_value(self, test_settings, catalog):
        controller = build_controller(test_settings, catalog, result=news_batch())
        await controller.select_all()
        controller.set_filter_value("News")

        state = await controller.select_entry("category", "News")

        assert state.filter_value is None
        assert len(state.displayed) == test_settings.page_size


class TestFailures:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        RetrievalExhaustedError("down", url="u"),
        EmptyPlaylistError("empty", reason="no channels parsed", url="u"),
    ])
    async def test_failure_yields_empty_loaded_state(self, test_settings, catalog, error):
        notices = []
        controller = build_controller(test_settings, catalog, side_effect=error, on_error=notices.append)

        state = await controller.select_entry("language", "French")

        assert state.phase is Phase.LOADED
        assert state.channels == []
        assert state.displayed == []
        assert "French" in state.error
        assert notices == [state.error]

    @pytest.mark.asyncio
    async def test_unknown_dimension_reported(self, test_settings, catalog):
        controller = build_controller(test_settings, catalog, result=news_batch())

        state = await controller.select_entry("sources", "Whatever")

        assert state.phase is Phase.LOADED
        assert state.error is not None
        assert state.channels == []
        controller.fetcher.fetch_playlist.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_label_reported(self, test_settings, catalog):
        controller = build_controller(test_settings, catalog, result=news_batch())

        state = await controller.select_entry("country", "Atlantis")

        assert "Atlantis" in state.error
        controller.fetcher.fetch_playlist.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retry_after_failure(self, test_settings, catalog):
        controller = build_controller(
            test_settings, catalog, side_effect=[RetrievalExhaustedError("down"), news_batch()]
        )

        first = await controller.select_entry("category", "News")
        assert first.error is not None

        state = await controller.retry()
        assert state.error is None
        assert len(state.channels) == 5
        assert controller.fetcher.fetch_playlist.await_count == 2


class TestSupersededLoads:

    @pytest.mark.asyncio
    async def test_late_result_from_previous_selection_discarded(self, test_settings, catalog):
        """France is still loading when Germany is chosen; only Germany is applied."""
        france_gate = asyncio.Event()

        async def fetch(url, dimension=None, label=None):
            if label == "France":
                await france_gate.wait()
                return [make_channel("fr1", "TF1", country="FR")]
            return [make_channel("de1", "Das Erste", country="DE")]

        controller = build_controller(test_settings, catalog, side_effect=fetch)

        france = asyncio.create_task(controller.select_entry("country", "France"))
        await asyncio.sleep(0)
        await controller.select_entry("country", "Germany")

        france_gate.set()
        await france

        assert controller.state.selection.label == "Germany"
        assert [ch.id for ch in controller.state.channels] == ["de1"]
        assert controller.state.current_channel.id == "de1"
        assert controller.state.phase is Phase.LOADED

    @pytest.mark.asyncio
    async def test_late_failure_from_previous_selection_discarded(self, test_settings, catalog):
        gate = asyncio.Event()

        async def fetch(url, dimension=None, label=None):
            if label == "France":
                await gate.wait()
                raise RetrievalExhaustedError("down")
            return news_batch()

        controller = build_controller(test_settings, catalog, side_effect=fetch)

        france = asyncio.create_task(controller.select_entry("country", "France"))
        await asyncio.sleep(0)
        await controller.select_entry("country", "Germany")
        gate.set()
        await france

        assert controller.state.error is None
        assert len(controller.state.channels) == 5


class TestFilteringAndPaging:

    @pytest.mark.asyncio
    async def test_load_more_grows_window_until_exhausted(self, test_settings, catalog):
        controller = build_controller(test_settings, catalog, result=news_batch())
        await controller.select_all()

        assert controller.load_more() == 2
        assert len(controller.state.displayed) == 4
        assert controller.load_more() == 1
        assert [ch.id for ch in controller.state.displayed] == ["n1", "m1", "n2", "k1", "n3"]
        assert not controller.has_more
        assert controller.load_more() == 0
        assert controller.state.phase is Phase.LOADED

    @pytest.mark.asyncio
    async def test_load_more_ignored_while_loading(self, test_settings, catalog):
        controller = build_controller(test_settings, catalog, result=news_batch())
        assert controller.load_more() == 0
        assert controller.state.phase is Phase.IDLE

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive_and_resets_window(self, test_settings, catalog):
        controller = build_controller(test_settings, catalog, result=news_batch())
        await controller.select_all()
        controller.load_more()

        state = controller.set_search_term("NEWS")

        assert [ch.id for ch in state.displayed] == ["n1", "n3"]
        assert [ch.id for ch in controller.filtered_channels] == ["n1", "n3"]
        controller.fetcher.fetch_playlist.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_filter_value_matches_dimension_attribute(self, test_settings, catalog):
        controller = build_controller(test_settings, catalog, result=news_batch())
        await controller.select_all()

        controller.set_filter_value("News")
        assert [ch.id for ch in controller.filtered_channels] == ["n1", "n2", "n3"]
        assert len(controller.state.displayed) == 2

        controller.set_search_term("cnn")
        assert [ch.id for ch in controller.state.displayed] == ["n2"]

        controller.set_search_term("")
        controller.set_filter_value("all")
        assert len(controller.filtered_channels) == 5

    @pytest.mark.asyncio
    async def test_country_dimension_filters_on_country(self, test_settings, catalog):
        controller = build_controller(test_settings, catalog, result=news_batch())
        await controller.select_entry("country", "United States")

        controller.set_filter_value("US")
        assert [ch.id for ch in controller.filtered_channels] == ["m1", "n2"]

    @pytest.mark.asyncio
    async def test_select_channel(self, test_settings, catalog):
        controller = build_controller(test_settings, catalog, result=news_batch())
        await controller.select_all()

        controller.select_channel("m1")
        assert controller.state.current_channel.id == "m1"
        assert len(controller.state.displayed) == 2

        with pytest.raises(KeyError):
            controller.select_channel("k1")  # not displayed yet

    @pytest.mark.asyncio
    async def test_second_feed_sharing_tvg_id_is_playable(self, test_settings, catalog):
        batch = parse_m3u(
            "#EXTINF:-1 tvg-id=\"CNN.us\",CNN (720p)\n"
            "https://stream.example/cnn-720.m3u8\n"
            "#EXTINF:-1 tvg-id=\"CNN.us\",CNN (1080p)\n"
            "https://stream.example/cnn-1080.m3u8\n",
            [],
        )
        controller = build_controller(test_settings, catalog, result=batch)
        await controller.select_all()

        played = controller.select_channel(batch[1].id)

        assert played.name == "CNN (1080p)"
        assert controller.state.current_channel.url == "https://stream.example/cnn-1080.m3u8"


class TestSelection:

    def test_all_takes_no_entry(self, catalog):
        with pytest.raises(ValueError):
            Selection(dimension=Dimension.ALL, entry=catalog.find("category", "News"))

    def test_entry_type_must_match_dimension(self, catalog):
        with pytest.raises(ValueError):
            Selection(dimension=Dimension.LANGUAGE, entry=catalog.find("category", "News"))

    def test_dimension_requires_entry(self):
        with pytest.raises(ValueError):
            Selection(dimension=Dimension.REGION)

    def test_distinct_values(self):
        assert distinct_values(news_batch(), "country") == ["UK", "US", "FR"]
