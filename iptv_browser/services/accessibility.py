"""
Accessibility heuristics for parsed channels.

Prunes streams that are unlikely to play in a browser-class client: plain
http (mixed content), bare IPv4 hosts, expiring tokens in the query string,
and hosts on a maintained denylist. The filter is advisory; a kept channel
can still fail at play time.
"""
import logging
import re
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import urlparse

from iptv_browser.config import Settings, get_settings
from iptv_browser.models.channel import Channel

logger = logging.getLogger(__name__)

IPV4_HOST = re.compile(r'^\d{1,3}(?:\.\d{1,3}){3}$')


def is_stream_accessible(channel: Channel, denylist: Iterable[str] = ()) -> bool:
    """Depends only on the channel URL and the given denylist."""
    url = channel.url.lower()

    try:
        parsed = urlparse(url)
    except ValueError:
        return False

    if parsed.scheme != "https":
        return False

    if IPV4_HOST.match(parsed.hostname or ""):
        return False

    if "token=" in parsed.query:
        return False

    return not any(entry in url for entry in denylist)


def load_denylist_file(path: str | Path) -> list[str]:
    """Read denylist entries, one per line; blank lines and # comments skipped."""
    entries = []
    for line in Path(path).read_text(encoding='utf-8').splitlines():
        line = line.strip()
        if line and not line.startswith('#'):
            entries.append(line.lower())
    return entries


class AccessibilityFilter:
    """Channel filter bound to a fixed denylist."""

    def __init__(self, denylist: Iterable[str] = ()):
        self.denylist = tuple(entry.lower() for entry in denylist)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "AccessibilityFilter":
        settings = settings or get_settings()
        denylist = list(settings.host_denylist)
        if settings.denylist_file:
            extra = load_denylist_file(settings.denylist_file)
            logger.info(f"Loaded {len(extra)} denylist entries from {settings.denylist_file}")
            denylist.extend(extra)
        return cls(denylist)

    def is_accessible(self, channel: Channel) -> bool:
        return is_stream_accessible(channel, self.denylist)

    def apply(self, channels: list[Channel]) -> list[Channel]:
        kept = [channel for channel in channels if self.is_accessible(channel)]
        logger.info(f"Filtered to {len(kept)} accessible channels out of {len(channels)}")
        return kept
