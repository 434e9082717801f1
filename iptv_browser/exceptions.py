"""
Playlist ingestion errors.
"""
from typing import Optional


class PlaylistError(Exception):
    """Base class for failures loading a playlist."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        dimension: Optional[str] = None,
        label: Optional[str] = None,
    ):
        super().__init__(message)
        self.url = url
        self.dimension = dimension
        self.label = label


class RetrievalExhaustedError(PlaylistError):
    """Direct retrieval and every relay failed."""


class EmptyPlaylistError(PlaylistError):
    """A body was retrieved but yielded no usable channels."""

    def __init__(self, message: str, reason: str, **context):
        super().__init__(message, **context)
        self.reason = reason


class UnknownDimensionError(PlaylistError, ValueError):
    """A dimension/label pair does not map to a playlist."""
