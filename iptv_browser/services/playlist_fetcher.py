"""
Playlist retrieval service.
Fetches an M3U playlist directly, falling back through relay endpoints,
then parses and filters it into playable channels.
"""
import asyncio
import httpx
import logging
from typing import Optional
from urllib.parse import quote

from iptv_browser.config import Settings, get_settings
from iptv_browser.exceptions import EmptyPlaylistError, RetrievalExhaustedError
from iptv_browser.models.channel import Channel
from iptv_browser.models.metadata import Dimension
from iptv_browser.services.accessibility import AccessibilityFilter
from iptv_browser.services.m3u_parser import M3UParser

logger = logging.getLogger(__name__)

# Relay kinds
JSON_RELAY = "json"  # answers {success, content}
RAW_RELAY = "raw"    # answers the target body as-is


class PlaylistFetcher:
    """Service to retrieve, parse and filter playlists."""

    ACCEPT = "application/x-mpegURL, application/vnd.apple.mpegurl, application/octet-stream, */*"
    USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        parser: Optional[M3UParser] = None,
        accessibility: Optional[AccessibilityFilter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.parser = parser or M3UParser(self.settings.logo_blocklist)
        self.accessibility = accessibility or AccessibilityFilter.from_settings(self.settings)
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            transport=self._transport,
            headers={"User-Agent": self.USER_AGENT},
        )

    def relays(self) -> list[tuple[str, str]]:
        """Ordered (kind, endpoint) pairs tried after the direct fetch."""
        relays = []
        if self.settings.same_origin_relay:
            relays.append((JSON_RELAY, self.settings.same_origin_relay))
        relays.extend((RAW_RELAY, prefix) for prefix in self.settings.public_relays)
        return relays

    async def fetch_direct(self, url: str) -> Optional[str]:
        """GET the playlist itself. Returns None on any failure or empty body."""
        timeout = self.settings.direct_timeout_seconds
        try:
            body = await asyncio.wait_for(self._direct_request(url, timeout), timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning(f"Direct fetch timed out for {url}")
            return None
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Direct fetch failed for {url}: {e}")
            return None

        if not body.strip():
            logger.warning(f"Direct fetch returned an empty body for {url}")
            return None
        return body

    async def _direct_request(self, url: str, timeout: float) -> str:
        async with self._client(timeout) as client:
            response = await client.get(url, headers={"Accept": self.ACCEPT})
            response.raise_for_status()
            return response.text

    async def fetch_via_relay(self, kind: str, relay: str, url: str) -> Optional[str]:
        """
        Fetch through one relay with its own timeout.
        Timeouts, errors and empty answers all return None.
        """
        timeout = self.settings.relay_timeout_seconds
        try:
            return await asyncio.wait_for(self._relay_request(kind, relay, url, timeout), timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning(f"Relay {relay} timed out for {url}")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Relay {relay} failed for {url}: {e}")
        except ValueError as e:
            logger.warning(f"Relay {relay} returned malformed JSON for {url}: {e}")
        return None

    async def _relay_request(self, kind: str, relay: str, url: str, timeout: float) -> Optional[str]:
        async with self._client(timeout) as client:
            if kind == JSON_RELAY:
                response = await client.get(relay, params={"url": url})
                response.raise_for_status()
                data = response.json()
                if not isinstance(data, dict) or not data.get("success"):
                    logger.warning(f"Relay {relay} reported failure for {url}")
                    return None
                body = data.get("content")
            else:
                response = await client.get(relay + quote(url, safe=""))
                response.raise_for_status()
                body = response.text

        if not isinstance(body, str) or not body.strip():
            logger.warning(f"Relay {relay} returned an empty body for {url}")
            return None
        return body

    async def fetch_text(
        self,
        url: str,
        dimension: Optional[str] = None,
        label: Optional[str] = None,
    ) -> str:
        """
        Retrieve playlist text: direct first, then each relay in order.
        Attempts are sequential and the first non-empty body wins.
        """
        body = await self.fetch_direct(url)
        if body is not None:
            logger.info(f"Direct fetch successful for {url}")
            return body

        for kind, relay in self.relays():
            body = await self.fetch_via_relay(kind, relay, url)
            if body is not None:
                logger.info(f"Fetch successful via relay {relay}")
                return body

        logger.error(f"All retrieval attempts failed for {url}")
        raise RetrievalExhaustedError(
            f"Could not load playlist {url}",
            url=url, dimension=dimension, label=label,
        )

    async def fetch_playlist(
        self,
        url: str,
        dimension: Optional[str | Dimension] = None,
        label: Optional[str] = None,
    ) -> list[Channel]:
        """
        Fetch, parse and filter one playlist.

        Args:
            url: Playlist location
            dimension: Browse dimension, for diagnostics only
            label: Selected entry label, for diagnostics only

        Returns:
            Accessible channels in document order

        Raises:
            RetrievalExhaustedError: nothing could be retrieved
            EmptyPlaylistError: nothing usable was parsed or kept
        """
        if isinstance(dimension, Dimension):
            dimension = dimension.value
        context = {"url": url, "dimension": dimension, "label": label}

        described = f"{dimension} '{label}'" if label else (dimension or "playlist")
        logger.info(f"Fetching {described} from {url}")

        content = await self.fetch_text(url, dimension=dimension, label=label)

        channels = self.parser.parse(content)
        if not channels:
            raise EmptyPlaylistError(
                f"No channels parsed from {url}", reason="no channels parsed", **context
            )

        accessible = self.accessibility.apply(channels)
        if not accessible:
            raise EmptyPlaylistError(
                f"No accessible channels in {url}", reason="no accessible channels", **context
            )
        return accessible


# Singleton
_fetcher: Optional[PlaylistFetcher] = None


def get_playlist_fetcher() -> PlaylistFetcher:
    """Get or create playlist fetcher singleton."""
    global _fetcher
    if _fetcher is None:
        _fetcher = PlaylistFetcher()
    return _fetcher
