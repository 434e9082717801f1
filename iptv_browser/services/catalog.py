"""
Static reference catalog.
Loads the category/language/country/region datasets and maps a browse
dimension and label to its iptv-org playlist location.
"""
import json
import logging
import re
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from iptv_browser.config import get_settings
from iptv_browser.exceptions import UnknownDimensionError
from iptv_browser.models.metadata import (
    Category,
    Country,
    Dimension,
    Language,
    Region,
    Selection,
)

logger = logging.getLogger(__name__)

BUNDLED_DATA_DIR = Path(__file__).parent.parent / "data"

# Dimension -> playlist folder under the playlist base
PLAYLIST_FOLDERS = {
    Dimension.CATEGORY: "categories",
    Dimension.LANGUAGE: "languages",
    Dimension.COUNTRY: "countries",
    Dimension.REGION: "regions",
}


def slugify(label: str) -> str:
    """Lower-case, whitespace runs replaced by underscores."""
    return re.sub(r'\s+', '_', label.strip().lower())


def parse_dimension(value: str | Dimension) -> Dimension:
    try:
        return Dimension(value)
    except ValueError:
        raise UnknownDimensionError(f"Unknown dimension: {value!r}", dimension=str(value))


def playlist_url_for(
    dimension: str | Dimension,
    label: Optional[str] = None,
    base: Optional[str] = None,
) -> str:
    """
    Build the playlist URL for a dimension and label.

    Examples (default base):
        all                -> .../index.m3u
        country, "France"  -> .../countries/france.m3u
        region, "Asia Pacific" -> .../regions/asia_pacific.m3u
    """
    dimension = parse_dimension(dimension)
    base = (base or get_settings().playlist_base).rstrip('/')

    if dimension is Dimension.ALL:
        return f"{base}/index.m3u"

    if not label or not label.strip():
        raise UnknownDimensionError(
            f"Dimension '{dimension.value}' requires a label",
            dimension=dimension.value,
        )
    return f"{base}/{PLAYLIST_FOLDERS[dimension]}/{slugify(label)}.m3u"


class ReferenceCatalog:
    """Read-only reference datasets, loaded once per dimension."""

    FILES = {
        Dimension.CATEGORY: ("categories.json", Category),
        Dimension.LANGUAGE: ("languages.json", Language),
        Dimension.COUNTRY: ("countries.json", Country),
        Dimension.REGION: ("regions.json", Region),
    }

    def __init__(self, data_dir: Optional[str | Path] = None):
        if data_dir is None:
            data_dir = get_settings().catalog_dir or BUNDLED_DATA_DIR
        self.data_dir = Path(data_dir)
        self._entries: dict[Dimension, list] = {}

    def entries(self, dimension: str | Dimension) -> list:
        """All reference entries for a dimension ('all' has none)."""
        dimension = parse_dimension(dimension)
        if dimension is Dimension.ALL:
            return []
        if dimension not in self._entries:
            self._entries[dimension] = self._load(dimension)
        return self._entries[dimension]

    def _load(self, dimension: Dimension) -> list:
        filename, model = self.FILES[dimension]
        path = self.data_dir / filename
        if not path.exists():
            logger.warning(f"Reference dataset not found: {path}")
            return []

        try:
            rows = json.loads(path.read_text(encoding='utf-8'))
            entries = [model.model_validate(row) for row in rows]
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Invalid reference dataset {path}: {e}")
            raise

        logger.info(f"Loaded {len(entries)} {dimension.value} entries from {path.name}")
        return entries

    def find(self, dimension: str | Dimension, label: str):
        """Case-insensitive lookup of one entry by label."""
        dimension = parse_dimension(dimension)
        wanted = label.strip().lower()
        for entry in self.entries(dimension):
            if entry.label.lower() == wanted:
                return entry
        raise UnknownDimensionError(
            f"No {dimension.value} named {label!r}",
            dimension=dimension.value,
            label=label,
        )

    def selection_for(
        self,
        dimension: str | Dimension,
        label: Optional[str] = None,
        subdivision: Optional[str] = None,
    ) -> Selection:
        """Resolve API-style (dimension, label, subdivision) input to a Selection."""
        dimension = parse_dimension(dimension)
        if dimension is Dimension.ALL:
            return Selection()
        if not label:
            raise UnknownDimensionError(
                f"Dimension '{dimension.value}' requires a label",
                dimension=dimension.value,
            )

        entry = self.find(dimension, label)
        if subdivision:
            if dimension is not Dimension.COUNTRY:
                raise UnknownDimensionError(
                    "Subdivisions only exist for countries",
                    dimension=dimension.value,
                    label=label,
                )
            sub = entry.find_subdivision(subdivision)
            if sub is None:
                raise UnknownDimensionError(
                    f"No subdivision {subdivision!r} in {entry.name}",
                    dimension=dimension.value,
                    label=subdivision,
                )
            entry = sub
        return Selection(dimension=dimension, entry=entry)


# Singleton
_catalog: Optional[ReferenceCatalog] = None


def get_catalog() -> ReferenceCatalog:
    """Get or create the reference catalog singleton."""
    global _catalog
    if _catalog is None:
        _catalog = ReferenceCatalog()
    return _catalog
