"""
Same-origin playlist relay.
Lets a browser client fetch playlists from hosts that do not send CORS headers.
"""
import logging
from urllib.parse import urlparse

from fastapi import APIRouter, HTTPException, Query, Request

from iptv_browser.config import get_settings
from iptv_browser.ratelimit import limiter
from iptv_browser.services.playlist_fetcher import get_playlist_fetcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["relay"])

settings = get_settings()


def is_relay_allowed(url: str, allowed_hosts: list[str]) -> bool:
    """http(s) URLs whose host is an allowed host or one of its subdomains."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return False
    host = parsed.hostname.lower()
    return any(host == allowed or host.endswith("." + allowed) for allowed in allowed_hosts)


@router.get("/relay")
@limiter.limit(f"{settings.relay_rate_limit_per_minute}/minute")
async def relay_playlist(
    request: Request,
    url: str = Query(..., description="Playlist URL to fetch"),
):
    """
    Fetch a playlist on behalf of the client.

    Returns `{success, content}`; only hosts listed in
    IPTV_RELAY_ALLOWED_HOSTS are relayed.
    """
    if not is_relay_allowed(url, get_settings().relay_allowed_hosts):
        raise HTTPException(status_code=400, detail="URL not allowed for relay")

    fetcher = get_playlist_fetcher()
    content = await fetcher.fetch_direct(url)
    if content is None:
        logger.warning(f"Relay could not retrieve {url}")
        return {"success": False, "content": None, "error": "Upstream retrieval failed"}

    return {"success": True, "content": content}
