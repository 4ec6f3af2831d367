from __future__ import annotations

import json
import logging
from typing import Any, Iterable
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from pydantic import ValidationError

from ...domain.models import Photo
from .base import AlbumNotFoundError, FlickrAdapterError

LOGGER = logging.getLogger(__name__)

FLICKR_REST_URL = "https://api.flickr.com/services/rest/"
DEFAULT_TIMEOUT_SECONDS = 10


def _fetch_json(url: str, *, timeout: int = DEFAULT_TIMEOUT_SECONDS) -> dict[str, Any]:
    request = Request(url, headers={"User-Agent": "flickr-carousel/0.1"})
    try:
        with urlopen(request, timeout=timeout) as response:
            payload = json.loads(response.read().decode("utf-8"))
    except (HTTPError, URLError, TimeoutError, json.JSONDecodeError) as exc:
        raise FlickrAdapterError("Failed to fetch data from the Flickr API") from exc

    if not isinstance(payload, dict):
        raise FlickrAdapterError("Unexpected Flickr response shape")
    return payload


def _dig(payload: dict[str, Any], *path: str) -> Any:
    current: Any = payload
    for key in path:
        if not isinstance(current, dict) or key not in current:
            raise FlickrAdapterError(f"Flickr response did not include '{'.'.join(path)}'")
        current = current[key]
    return current


def _parse_photos(raw_photos: Any) -> list[Photo]:
    if not isinstance(raw_photos, list):
        raise FlickrAdapterError("Flickr photo list payload was not a list")

    photos: list[Photo] = []
    for item in raw_photos:
        try:
            photos.append(
                Photo(
                    id=str(item["id"]),
                    secret=str(item["secret"]),
                    server=str(item["server"]),
                    farm=item["farm"],
                )
            )
        except (KeyError, TypeError, ValidationError) as exc:
            raise FlickrAdapterError("Flickr photo entry was incomplete") from exc
    return photos


def resolve_album_id(albums: Iterable[dict[str, Any]], album_name: str) -> str:
    for album in albums:
        if not isinstance(album, dict):
            continue
        title = album.get("title")
        title_text = title.get("_content") if isinstance(title, dict) else title
        if title_text == album_name and album.get("id") is not None:
            return str(album["id"])
    raise AlbumNotFoundError(album_name)


class FlickrRestAdapter:
    def __init__(
        self,
        *,
        api_key: str,
        endpoint: str = FLICKR_REST_URL,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        if not api_key.strip():
            raise FlickrAdapterError("A Flickr API key must be configured")
        self._api_key = api_key.strip()
        self._endpoint = endpoint
        self._timeout_seconds = timeout_seconds

    def _call(self, method: str, **params: str) -> dict[str, Any]:
        query = urlencode(
            {
                "method": method,
                "api_key": self._api_key,
                "format": "json",
                "nojsoncallback": "1",
                **params,
            }
        )
        payload = _fetch_json(f"{self._endpoint}?{query}", timeout=self._timeout_seconds)
        if payload.get("stat") == "fail":
            raise FlickrAdapterError(
                f"{method} failed: {payload.get('message', 'unknown error')} "
                f"(code {payload.get('code', '?')})"
            )
        return payload

    def find_user_id(self, username: str) -> str:
        payload = self._call("flickr.people.findByUserName", username=username)
        return str(_dig(payload, "user", "id"))

    def get_public_photos(self, user_id: str) -> list[Photo]:
        payload = self._call("flickr.people.getPublicPhotos", user_id=user_id)
        return _parse_photos(_dig(payload, "photos", "photo"))

    def get_albums(self, user_id: str) -> list[dict[str, Any]]:
        payload = self._call("flickr.photosets.getList", user_id=user_id)
        albums = _dig(payload, "photosets", "photoset")
        if not isinstance(albums, list):
            raise FlickrAdapterError("Flickr album list payload was not a list")
        return albums

    def get_album_photos(self, user_id: str, photoset_id: str) -> list[Photo]:
        payload = self._call(
            "flickr.photosets.getPhotos",
            user_id=user_id,
            photoset_id=photoset_id,
        )
        return _parse_photos(_dig(payload, "photoset", "photo"))

    def get_description(self, photo_id: str) -> str:
        payload = self._call("flickr.photos.getInfo", photo_id=photo_id)
        description = _dig(payload, "photo", "description", "_content")
        if not isinstance(description, str):
            raise FlickrAdapterError(f"Description for photo '{photo_id}' was not text")
        return description

    def load_collection(self, username: str, album_name: str | None = None) -> list[Photo]:
        user_id = self.find_user_id(username)
        if album_name is None:
            photos = self.get_public_photos(user_id)
        else:
            photoset_id = resolve_album_id(self.get_albums(user_id), album_name)
            photos = self.get_album_photos(user_id, photoset_id)
        LOGGER.info(
            "Loaded %d photos for '%s'%s",
            len(photos),
            username,
            f" album '{album_name}'" if album_name is not None else "",
        )
        return photos
