from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from .carousel import Carousel
from .gallery import Gallery

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CollectionError:
    """Terminal outcome of a failed collection load."""

    message: str
    album_name: str | None = None


@dataclass(frozen=True, slots=True)
class LiveCollection:
    view: Carousel | Gallery


CollectionState = Union[CollectionError, LiveCollection]


@dataclass(frozen=True, slots=True)
class CaptionLoaded:
    photo_id: str
    description: str


@dataclass(frozen=True, slots=True)
class CaptionFailed:
    photo_id: str
    reason: str


CaptionEvent = Union[CaptionLoaded, CaptionFailed]


def apply_caption(state: CollectionState, event: CaptionEvent) -> CollectionState:
    """Reconcile one caption lookup result against the current state.

    The result is matched purely by photo id against whatever collection is
    live now. Missing ids and failed lookups leave the state untouched, so
    late, duplicate and reordered completions are all harmless.
    """
    if isinstance(event, CaptionFailed):
        return state
    if not isinstance(state, LiveCollection):
        LOGGER.debug("Discarding caption for '%s': collection is in error state", event.photo_id)
        return state

    view = state.view
    updated = view.with_description(event.photo_id, event.description)
    if updated is view:
        LOGGER.debug("Discarding caption for '%s': no pending match", event.photo_id)
        return state
    return LiveCollection(view=updated)
