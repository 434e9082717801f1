#!/usr/bin/env python3
"""
Playlist Fetch Script

Fetches one iptv-org playlist through the same pipeline the browser uses
(direct fetch, relay fallback, parse, accessibility filter) and reports
what survived.

Usage:
    python -m iptv_browser.scripts.fetch_playlist --dimension country --label France
    python -m iptv_browser.scripts.fetch_playlist --dimension category --label News --output news.json

Output:
    Summary on stdout; channels as JSON when --output is given
"""

import asyncio
import argparse
import json
import logging
import sys
from collections import Counter
from pathlib import Path

from iptv_browser.exceptions import PlaylistError
from iptv_browser.services.catalog import get_catalog, playlist_url_for
from iptv_browser.services.playlist_fetcher import get_playlist_fetcher

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def run(dimension: str, label: str | None, subdivision: str | None,
              output: str | None, limit: int) -> int:
    fetcher = get_playlist_fetcher()

    try:
        selection = get_catalog().selection_for(dimension, label, subdivision)
        if selection.entry is not None:
            url = selection.entry.playlist_url
        else:
            url = playlist_url_for(selection.dimension, base=fetcher.settings.playlist_base)
        channels = await fetcher.fetch_playlist(url, dimension=selection.dimension, label=selection.label)
    except PlaylistError as e:
        logger.error(f"Failed: {e}")
        return 1

    print(f"\n{len(channels)} accessible channels from {url}")

    attribute = selection.dimension.channel_attribute
    counts = Counter(getattr(ch, attribute) or "(none)" for ch in channels)
    print(f"\nBy {attribute}:")
    for value, count in counts.most_common(10):
        print(f"  {value}: {count}")

    print("\nFirst channels:")
    for ch in channels[:limit]:
        print(f"  [{ch.id}] {ch.name} - {ch.url}")

    if output:
        out_path = Path(output)
        out_path.write_text(json.dumps([ch.model_dump() for ch in channels], indent=2))
        print(f"\nWrote {len(channels)} channels to {out_path}")

    return 0


def main():
    parser = argparse.ArgumentParser(description="Fetch and filter an iptv-org playlist")
    parser.add_argument("--dimension", default="all",
                        help="all, category, language, country or region")
    parser.add_argument("--label", help="Reference entry label (e.g., News, France)")
    parser.add_argument("--subdivision", help="Country subdivision name")
    parser.add_argument("--output", help="Write channels to this JSON file")
    parser.add_argument("--limit", type=int, default=10, help="Channels to list on stdout")
    args = parser.parse_args()

    sys.exit(asyncio.run(run(args.dimension, args.label, args.subdivision, args.output, args.limit)))


if __name__ == "__main__":
    main()
