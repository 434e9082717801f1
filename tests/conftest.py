"""
Pytest configuration and fixtures for IPTV Browser tests.
"""
import pytest

from iptv_browser.config import Settings
from iptv_browser.models.channel import Channel
from iptv_browser.services.catalog import BUNDLED_DATA_DIR, ReferenceCatalog


@pytest.fixture
def sample_m3u_content():
    """Sample extended M3U content for testing."""
    return """#EXTM3U x-tvg-url="https://iptv-org.github.io/epg/guides.xml"
#EXTINF:-1 tvg-id="BBCOne.uk" tvg-logo="https://i.imgur.com/bbc1.png" group-title="News",BBC One
https://stream.example/bbc1.m3u8
#EXTINF:-1 tvg-id="France24.fr" tvg-country="FR" tvg-language="French" group-title="News",France 24 (720p)
https://static.france24.com/live/F24_FR_HLS/live_web.m3u8
#EXTINF:-1 tvg-logo="http://insecure.example/logo.png" group-title="Music",Radio Without ID
https://radio.example/live.m3u8
#EXTINF:-1 tvg-id="Broken.us" group-title="Kids",Broken Stream
not a url
"""


@pytest.fixture
def sample_m3u_file(sample_m3u_content, tmp_path):
    """Create a temporary M3U file for testing."""
    m3u_file = tmp_path / "news.m3u"
    m3u_file.write_text(sample_m3u_content)
    return m3u_file


@pytest.fixture
def test_settings():
    """Settings with deterministic relays and a short denylist."""
    return Settings(
        same_origin_relay="http://relay.local/api/relay",
        public_relays=[
            "https://relay-one.test/raw?url=",
            "https://relay-two.test/?",
        ],
        host_denylist=["pluto.tv", "blocked.example"],
        logo_blocklist=["default_logo-150x150.png"],
        denylist_file=None,
        page_size=2,
    )


@pytest.fixture
def catalog():
    """Catalog over the bundled reference datasets."""
    return ReferenceCatalog(BUNDLED_DATA_DIR)


def make_channel(channel_id: str, name: str | None = None, **fields) -> Channel:
    return Channel(
        id=channel_id,
        name=name or f"Channel {channel_id}",
        url=fields.pop("url", f"https://stream.example/{channel_id}.m3u8"),
        **fields,
    )


@pytest.fixture
def channel_factory():
    return make_channel
