from __future__ import annotations

import asyncio
import logging
from typing import Callable

from .adapters.flickr import FlickrAdapterError, PhotoCollectionSource
from .domain.models import Photo
from .domain.state import CaptionEvent, CaptionFailed, CaptionLoaded

LOGGER = logging.getLogger(__name__)

CaptionEventHandler = Callable[[CaptionEvent], None]


class CaptionLoader:
    """Issues one background description lookup per photo id.

    Lookups are never cancelled. Each completion is handed to ``on_event`` on
    the event loop that issued it; the handler decides whether the result
    still applies.
    """

    def __init__(self, *, source: PhotoCollectionSource, on_event: CaptionEventHandler) -> None:
        self._source = source
        self._on_event = on_event
        self._requested: set[str] = set()
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def reset(self) -> None:
        # In-flight tasks keep running; their results are reconciled by id.
        self._requested.clear()

    def load(self, photo: Photo) -> bool:
        if photo.has_description:
            return False
        if photo.id in self._requested:
            return False

        self._requested.add(photo.id)
        task = asyncio.get_running_loop().create_task(self._lookup(photo.id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def _lookup(self, photo_id: str) -> None:
        try:
            description = await asyncio.to_thread(self._source.get_description, photo_id)
        except FlickrAdapterError as exc:
            LOGGER.warning("Caption lookup for photo '%s' failed: %s", photo_id, exc)
            event: CaptionEvent = CaptionFailed(photo_id=photo_id, reason=str(exc))
        except Exception as exc:  # pragma: no cover - defensive fallback
            LOGGER.exception("Caption lookup for photo '%s' failed", photo_id)
            event = CaptionFailed(photo_id=photo_id, reason=f"unexpected error: {exc}")
        else:
            event = CaptionLoaded(photo_id=photo_id, description=description)
        self._on_event(event)
