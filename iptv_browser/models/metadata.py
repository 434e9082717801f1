"""
Metadata models for categories, countries, languages, regions.
Field names follow the published iptv-org reference datasets.
"""
from enum import Enum
from typing import Optional, Union
from pydantic import AliasChoices, BaseModel, Field, model_validator


class Dimension(str, Enum):
    """Ways to browse the catalog."""
    ALL = "all"
    CATEGORY = "category"
    LANGUAGE = "language"
    COUNTRY = "country"
    REGION = "region"

    @property
    def channel_attribute(self) -> str:
        """Channel field that secondary filter values are drawn from."""
        if self is Dimension.ALL:
            return "category"
        return self.value


class Subdivision(BaseModel):
    """Country subdivision (state/province) with its own playlist."""
    name: str
    channels: int = 0
    playlist_url: str

    @property
    def label(self) -> str:
        return self.name


class Category(BaseModel):
    """Channel category model."""
    name: str = Field(validation_alias=AliasChoices("category", "name"))
    channels: int = 0  # Informational only
    playlist_url: str = Field(validation_alias=AliasChoices("playlist", "playlist_url"))

    @property
    def label(self) -> str:
        return self.name


class Language(BaseModel):
    """Language model."""
    name: str = Field(validation_alias=AliasChoices("language_name", "name"))
    channels: int = 0
    playlist_url: str

    @property
    def label(self) -> str:
        return self.name


class Country(BaseModel):
    """Country model with channel count and subdivisions."""
    name: str
    flag: Optional[str] = None
    channels: int = 0
    playlist_url: str
    subdivisions: list[Subdivision] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return self.name

    def find_subdivision(self, name: str) -> Optional[Subdivision]:
        for sub in self.subdivisions:
            if sub.name.lower() == name.lower():
                return sub
        return None


class Region(BaseModel):
    """Geographic region model."""
    name: str = Field(validation_alias=AliasChoices("region_name", "name"))
    channels: int = 0
    playlist_url: str

    @property
    def label(self) -> str:
        return self.name


ReferenceEntry = Union[Category, Language, Country, Region, Subdivision]

ENTRY_TYPES: dict[Dimension, tuple[type, ...]] = {
    Dimension.CATEGORY: (Category,),
    Dimension.LANGUAGE: (Language,),
    Dimension.COUNTRY: (Country, Subdivision),
    Dimension.REGION: (Region,),
}


class Selection(BaseModel):
    """
    What the user is browsing: everything, or exactly one reference entry.

    A single entry slot makes the category/language/country/region choices
    mutually exclusive.
    """
    dimension: Dimension = Dimension.ALL
    entry: Optional[ReferenceEntry] = None

    @model_validator(mode="after")
    def _check_entry(self) -> "Selection":
        if self.dimension is Dimension.ALL:
            if self.entry is not None:
                raise ValueError("the 'all' dimension takes no entry")
            return self
        if self.entry is None:
            raise ValueError(f"dimension '{self.dimension.value}' requires an entry")
        if not isinstance(self.entry, ENTRY_TYPES[self.dimension]):
            raise ValueError(
                f"{type(self.entry).__name__} is not a valid entry for '{self.dimension.value}'"
            )
        return self

    @property
    def label(self) -> Optional[str]:
        return self.entry.label if self.entry is not None else None

    @property
    def total_channels(self) -> Optional[int]:
        return self.entry.channels if self.entry is not None else None
