from __future__ import annotations

from typing import Protocol

from ...domain.models import Photo


class FlickrAdapterError(RuntimeError):
    """Raised when a Flickr API request cannot be completed."""


class AlbumNotFoundError(FlickrAdapterError):
    """Raised when a user has no album with the requested title."""

    def __init__(self, album_name: str) -> None:
        super().__init__(f"Album not found: {album_name}")
        self.album_name = album_name


class PhotoCollectionSource(Protocol):
    def load_collection(self, username: str, album_name: str | None = None) -> list[Photo]:
        """Resolve a user (and optional album) to the ordered photo list."""

    def get_description(self, photo_id: str) -> str:
        """Fetch the caption text for a single photo."""
