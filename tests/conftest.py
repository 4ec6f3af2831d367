from __future__ import annotations

import asyncio
import threading

from flickr_carousel.adapters.flickr import FlickrAdapterError
from flickr_carousel.domain.models import Photo


def make_photo(photo_id: str, description: str | None = None) -> Photo:
    return Photo(id=photo_id, secret=f"s{photo_id}", server="100", farm=1, description=description)


def make_photos(*photo_ids: str) -> list[Photo]:
    return [make_photo(photo_id) for photo_id in photo_ids]


class FakeSource:
    """In-memory stand-in for the Flickr adapter.

    Keys listed in ``gated`` (photo ids for description lookups, user names
    for collection loads) are held back until ``release`` is called, which
    lets tests choose the order lookups complete in.
    """

    def __init__(
        self,
        *,
        photos: list[Photo] | None = None,
        collections: dict[str, list[Photo]] | None = None,
        descriptions: dict[str, str] | None = None,
        failing: set[str] | None = None,
        gated: set[str] | None = None,
        load_error: Exception | None = None,
    ) -> None:
        self.photos = list(photos or [])
        self.collections = dict(collections or {})
        self.descriptions = dict(descriptions or {})
        self.failing = set(failing or set())
        self.load_error = load_error
        self.load_calls: list[tuple[str, str | None]] = []
        self.description_calls: list[str] = []
        self._gates = {key: threading.Event() for key in gated or set()}

    def release(self, key: str) -> None:
        self._gates[key].set()

    def _wait_for_gate(self, key: str) -> None:
        gate = self._gates.get(key)
        if gate is not None and not gate.wait(timeout=5):
            raise FlickrAdapterError(f"gate for {key} never opened")

    def load_collection(self, username: str, album_name: str | None = None) -> list[Photo]:
        self.load_calls.append((username, album_name))
        self._wait_for_gate(username)
        if self.load_error is not None:
            raise self.load_error
        return list(self.collections.get(username, self.photos))

    def get_description(self, photo_id: str) -> str:
        self.description_calls.append(photo_id)
        self._wait_for_gate(photo_id)
        if photo_id in self.failing:
            raise FlickrAdapterError(f"photo {photo_id} not found")
        return self.descriptions.get(photo_id, f"caption {photo_id}")


async def wait_until(predicate, *, timeout: float = 5.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition was not met in time")
        await asyncio.sleep(0.01)
