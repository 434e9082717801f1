"""
Browse session API endpoints.
Drives the single in-process BrowseController.
"""
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from iptv_browser.models.browse import BrowseSummary
from iptv_browser.models.channel import NowPlaying
from iptv_browser.services.browse_controller import get_browse_controller

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/browse", tags=["browse"])

# In-flight load; superseded loads are cancelled
_load_task: Optional[asyncio.Task] = None


class SelectRequest(BaseModel):
    dimension: str = "all"
    label: Optional[str] = None
    subdivision: Optional[str] = None


class SearchRequest(BaseModel):
    term: str = ""


class FilterRequest(BaseModel):
    value: Optional[str] = None


def _log_load_failure(task: asyncio.Task):
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error(f"Background playlist load failed: {error}", exc_info=error)


async def _schedule(coro, wait: bool):
    """Run a load in the background, replacing any load still in flight."""
    global _load_task
    if _load_task is not None and not _load_task.done():
        _load_task.cancel()
    task = _load_task = asyncio.create_task(coro)
    task.add_done_callback(_log_load_failure)

    if wait:
        # Returns normally even if a newer request cancels this load
        await asyncio.wait({task})
    else:
        # Let the load reach its first network wait so the response shows LOADING
        await asyncio.sleep(0)


@router.get("", response_model=BrowseSummary)
async def get_browse_state():
    """Current browse state."""
    return get_browse_controller().summary()


@router.post("/select", response_model=BrowseSummary)
async def select(
    body: SelectRequest,
    wait: bool = Query(False, description="Wait for the playlist to load"),
):
    """
    Select a dimension and reference entry, then load its playlist.

    Unknown dimensions or labels are reported in `error`.
    """
    controller = get_browse_controller()
    await _schedule(controller.select_entry(body.dimension, body.label, body.subdivision), wait)
    return controller.summary()


@router.post("/retry", response_model=BrowseSummary)
async def retry(wait: bool = Query(False, description="Wait for the playlist to load")):
    """Reload the current selection."""
    controller = get_browse_controller()
    await _schedule(controller.retry(), wait)
    return controller.summary()


@router.post("/search", response_model=BrowseSummary)
async def search(body: SearchRequest):
    """Filter the loaded batch by channel name."""
    controller = get_browse_controller()
    controller.set_search_term(body.term)
    return controller.summary()


@router.post("/filter", response_model=BrowseSummary)
async def set_filter(body: FilterRequest):
    """Filter the loaded batch by one of `available_filters` ('all' clears it)."""
    controller = get_browse_controller()
    controller.set_filter_value(body.value)
    return controller.summary()


@router.post("/more", response_model=BrowseSummary)
async def load_more():
    """Append the next page to the displayed window."""
    controller = get_browse_controller()
    added = controller.load_more()
    logger.debug(f"Load more appended {added} channels")
    return controller.summary()


@router.post("/play/{channel_id}", response_model=NowPlaying)
async def play(channel_id: str):
    """Make a displayed channel the current one."""
    controller = get_browse_controller()
    try:
        channel = controller.select_channel(channel_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Channel not in displayed list")
    return NowPlaying.from_channel(channel)


@router.get("/now-playing", response_model=NowPlaying)
async def now_playing():
    """Stream location and display details for the player."""
    channel = get_browse_controller().state.current_channel
    if channel is None:
        raise HTTPException(status_code=404, detail="Nothing is playing")
    return NowPlaying.from_channel(channel)
