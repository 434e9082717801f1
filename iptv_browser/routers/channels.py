"""
Catalog and playlist API endpoints.
"""
from fastapi import APIRouter, Query, HTTPException
from typing import Optional

from iptv_browser.exceptions import EmptyPlaylistError, RetrievalExhaustedError, UnknownDimensionError
from iptv_browser.models.channel import PlaylistResponse
from iptv_browser.services.browse_controller import distinct_values
from iptv_browser.services.catalog import get_catalog, playlist_url_for
from iptv_browser.services.playlist_fetcher import get_playlist_fetcher

router = APIRouter(prefix="/api", tags=["channels"])


@router.get("/catalog/{dimension}")
async def list_catalog(dimension: str):
    """
    List reference entries for one dimension.

    - **dimension**: category, language, country or region
    """
    catalog = get_catalog()
    try:
        entries = catalog.entries(dimension)
    except UnknownDimensionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "dimension": dimension,
        "entries": [entry.model_dump() for entry in entries],
        "total": len(entries),
    }


@router.get("/playlist", response_model=PlaylistResponse)
async def get_playlist(
    dimension: str = Query("all", description="all, category, language, country or region"),
    label: Optional[str] = Query(None, description="Reference entry label (e.g., News, France)"),
    subdivision: Optional[str] = Query(None, description="Country subdivision name"),
):
    """
    Fetch, parse and filter one playlist without touching browse state.
    """
    catalog = get_catalog()
    fetcher = get_playlist_fetcher()

    try:
        selection = catalog.selection_for(dimension, label, subdivision)
    except UnknownDimensionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if selection.entry is not None:
        url = selection.entry.playlist_url
    else:
        url = playlist_url_for(selection.dimension, base=fetcher.settings.playlist_base)

    try:
        channels = await fetcher.fetch_playlist(url, dimension=selection.dimension, label=selection.label)
    except EmptyPlaylistError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RetrievalExhaustedError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return PlaylistResponse(
        dimension=selection.dimension.value,
        label=selection.label,
        url=url,
        channels=channels,
        count=len(channels),
        available_filters=distinct_values(channels, selection.dimension.channel_attribute),
    )
