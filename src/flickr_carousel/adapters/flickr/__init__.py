from .base import AlbumNotFoundError, FlickrAdapterError, PhotoCollectionSource
from .rest import FlickrRestAdapter, resolve_album_id

__all__ = [
    "AlbumNotFoundError",
    "FlickrAdapterError",
    "FlickrRestAdapter",
    "PhotoCollectionSource",
    "resolve_album_id",
]
