from __future__ import annotations

import asyncio
import logging
from typing import Literal

from .adapters.flickr import AlbumNotFoundError, FlickrAdapterError, PhotoCollectionSource
from .captions import CaptionLoader
from .domain.carousel import Carousel, Direction
from .domain.gallery import Gallery
from .domain.models import Photo
from .domain.state import (
    CaptionEvent,
    CaptionFailed,
    CollectionError,
    CollectionState,
    LiveCollection,
    apply_caption,
)

LOGGER = logging.getLogger(__name__)

DisplayMode = Literal["carousel", "gallery"]


class NavigationDisabledError(RuntimeError):
    """Raised when navigation is requested while no carousel is live."""


class ViewerSession:
    """Owns the collection state of one running viewer.

    All mutation happens on the event loop: user navigation, scheduled jobs and
    caption completions each replace ``state`` with a freshly built value.
    Carousel mode loads captions lazily for the shown photo; gallery mode loads
    them eagerly for every pending photo.
    """

    def __init__(
        self,
        *,
        source: PhotoCollectionSource,
        username: str,
        album_name: str | None = None,
        mode: DisplayMode = "carousel",
    ) -> None:
        self._source = source
        self._username = username
        self._album_name = album_name
        self._mode: DisplayMode = mode
        self._state: CollectionState = LiveCollection(view=self._empty_view())
        self._load_generation = 0
        self._captions = CaptionLoader(source=source, on_event=self.handle_caption_event)

    @property
    def state(self) -> CollectionState:
        return self._state

    @property
    def mode(self) -> DisplayMode:
        return self._mode

    @property
    def username(self) -> str:
        return self._username

    @property
    def album_name(self) -> str | None:
        return self._album_name

    @property
    def captions(self) -> CaptionLoader:
        return self._captions

    def _empty_view(self) -> Carousel | Gallery:
        return Gallery() if self._mode == "gallery" else Carousel()

    async def load(self, username: str | None = None, album_name: str | None = None) -> CollectionState:
        """Run a fresh top-level load, replacing whatever collection is live.

        Only the most recently started load may write its outcome; a load that
        finishes after a newer one has started is dropped.
        """
        if username is not None:
            self._username = username
            self._album_name = album_name
        self._load_generation += 1
        generation = self._load_generation
        requested_username, requested_album = self._username, self._album_name

        try:
            photos = await asyncio.to_thread(
                self._source.load_collection,
                requested_username,
                requested_album,
            )
        except AlbumNotFoundError as exc:
            if self._is_superseded(generation, requested_username):
                return self._state
            LOGGER.warning("Album '%s' not found for user '%s'", exc.album_name, requested_username)
            self._state = CollectionError(message=str(exc), album_name=exc.album_name)
            return self._state
        except FlickrAdapterError as exc:
            if self._is_superseded(generation, requested_username):
                return self._state
            LOGGER.exception("Collection load for '%s' failed", requested_username)
            self._state = CollectionError(message=str(exc))
            return self._state

        if self._is_superseded(generation, requested_username):
            return self._state
        self.replace_collection(photos)
        return self._state

    def _is_superseded(self, generation: int, username: str) -> bool:
        if generation == self._load_generation:
            return False
        LOGGER.debug("Discarding collection load for '%s': a newer load has started", username)
        return True

    def replace_collection(self, photos: list[Photo]) -> None:
        self._captions.reset()
        if self._mode == "gallery":
            gallery = Gallery.from_photos(photos)
            self._state = LiveCollection(view=gallery)
            for photo in gallery.pending:
                self._captions.load(photo)
            return

        carousel = Carousel.from_photos(photos)
        self._state = LiveCollection(view=carousel)
        self._request_shown_caption(carousel)

    def rotate(self, direction: Direction) -> Photo | None:
        carousel = self.carousel()
        rotated = carousel.rotate(direction)
        if rotated is carousel:
            return carousel.shown

        self._state = LiveCollection(view=rotated)
        self._request_shown_caption(rotated)
        return rotated.shown

    def carousel(self) -> Carousel:
        state = self._state
        if isinstance(state, CollectionError):
            raise NavigationDisabledError(f"Collection failed to load: {state.message}")
        if not isinstance(state.view, Carousel):
            raise NavigationDisabledError("Navigation is not available in gallery mode")
        return state.view

    def gallery(self) -> Gallery:
        state = self._state
        if isinstance(state, CollectionError):
            raise NavigationDisabledError(f"Collection failed to load: {state.message}")
        if not isinstance(state.view, Gallery):
            raise NavigationDisabledError("Gallery is not available in carousel mode")
        return state.view

    def handle_caption_event(self, event: CaptionEvent) -> None:
        if isinstance(event, CaptionFailed):
            LOGGER.info("Photo '%s' keeps no caption: %s", event.photo_id, event.reason)
        self._state = apply_caption(self._state, event)

    def _request_shown_caption(self, carousel: Carousel) -> None:
        if carousel.shown is not None and not carousel.shown.has_description:
            self._captions.load(carousel.shown)
