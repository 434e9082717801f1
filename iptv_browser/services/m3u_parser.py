"""
M3U Parser Service.
Parses extended M3U playlist documents into Channel records.
"""
import re
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import quote, urlparse
import logging

from iptv_browser.config import get_settings
from iptv_browser.models.channel import Channel

logger = logging.getLogger(__name__)

EXTINF_PREFIX = "#EXTINF:"

# EXTINF attribute -> Channel field
ATTRIBUTE_FIELDS = {
    "tvg-logo": "logo",
    "group-title": "category",
    "tvg-country": "country",
    "tvg-language": "language",
    "tvg-region": "region",
}


def extract_attribute(line: str, key: str) -> Optional[str]:
    """
    Return the quoted value of `key="..."` in an EXTINF line.

    Key matching is case-insensitive and must start at an attribute boundary,
    so `tvg-id` never matches inside `xtvg-id`. Missing or unterminated
    attributes yield None.
    """
    if not line or not key:
        return None
    pattern = r'(?<![\w-])' + re.escape(key) + r'\s*=\s*"([^"]*)"'
    match = re.search(pattern, line, re.IGNORECASE)
    return match.group(1) if match else None


def sanitize_logo(logo: Optional[str], blocklist: Iterable[str] = ()) -> Optional[str]:
    """Drop plain-http logos and logos known to be broken."""
    if not logo:
        return None
    if logo.startswith("http://"):
        return None
    if any(fragment in logo for fragment in blocklist):
        return None
    return logo


def normalize_stream_url(url: str) -> Optional[str]:
    """
    Return the stream location with inner whitespace percent-encoded, or None
    unless it is an absolute http(s) URL with a host.
    """
    if not url or not url.strip():
        return None
    url = re.sub(r"\s", lambda m: quote(m.group(0)), url.strip())
    try:
        parsed = urlparse(url)
        # Raises on a malformed port
        parsed.port
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return None
    # Whitespace is only tolerated outside the host
    if "%" in parsed.hostname:
        return None
    return url


def is_valid_stream_url(url: str) -> bool:
    """Absolute, scheme-qualified http(s) URL with a host."""
    return normalize_stream_url(url) is not None


class M3UParser:
    """Parse extended M3U playlists."""

    def __init__(self, logo_blocklist: Optional[Iterable[str]] = None):
        if logo_blocklist is None:
            logo_blocklist = get_settings().logo_blocklist
        self.logo_blocklist = tuple(logo_blocklist)

    def parse(self, content: str) -> list[Channel]:
        """
        Parse a whole playlist document.

        Each EXTINF line opens a pending record that the next non-comment line
        closes. Records whose location is not an absolute http(s) URL are
        dropped, as are location lines with no pending record.

        Args:
            content: Full playlist text

        Returns:
            Channels in document order
        """
        channels = []
        seen_ids = set()
        pending = None
        counter = 1

        for line in content.split('\n'):
            line = line.strip()
            if not line:
                continue

            if line.startswith(EXTINF_PREFIX):
                # A second EXTINF abandons the previous pending record
                pending = self._parse_extinf(line[len(EXTINF_PREFIX):], counter)

            elif line.startswith('#'):
                continue

            elif pending is not None:
                url = normalize_stream_url(line)
                if pending['name'] and url:
                    # Feeds of one channel often share a tvg-id
                    channel_id = pending['tvg_id'] or str(counter)
                    while channel_id in seen_ids:
                        channel_id = f"{channel_id}-{counter}"
                    seen_ids.add(channel_id)

                    channels.append(Channel(
                        id=channel_id,
                        name=pending['name'],
                        url=url,
                        **pending['attributes'],
                    ))
                pending = None
                counter += 1

        logger.info(f"Parsed {len(channels)} channels from playlist")
        return channels

    def parse_file(self, filepath: str | Path) -> list[Channel]:
        """Parse a local M3U file."""
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"M3U file not found: {filepath}")

        logger.info(f"Parsing M3U file: {filepath}")
        return self.parse(filepath.read_text(encoding='utf-8', errors='ignore'))

    def _parse_extinf(self, info: str, counter: int) -> dict:
        """Build a pending record from the text after '#EXTINF:'."""
        _, comma, name = info.rpartition(',')
        name = name.strip() if comma else ''

        attributes = {
            field: extract_attribute(info, key) or None
            for key, field in ATTRIBUTE_FIELDS.items()
        }
        attributes['logo'] = sanitize_logo(attributes['logo'], self.logo_blocklist)

        return {
            'tvg_id': extract_attribute(info, 'tvg-id'),
            'name': name or f"Channel {counter}",
            'attributes': attributes,
        }


def parse_m3u(content: str, logo_blocklist: Optional[Iterable[str]] = None) -> list[Channel]:
    """Parse playlist text with a fresh parser."""
    return M3UParser(logo_blocklist).parse(content)
