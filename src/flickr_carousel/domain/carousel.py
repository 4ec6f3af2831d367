from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .models import Photo


class Direction(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


@dataclass(frozen=True, slots=True)
class Carousel:
    """Left/shown/right partition of a fetched photo sequence.

    ``left`` is kept nearest-first: its head is the photo passed most recently,
    so ``reverse(left) + [shown] + right`` is always a rotation of the fetched
    order. When ``shown`` is None both sides are empty.
    """

    left: tuple[Photo, ...] = ()
    shown: Photo | None = None
    right: tuple[Photo, ...] = ()

    @classmethod
    def from_photos(cls, photos: Iterable[Photo]) -> Carousel:
        ordered = tuple(photos)
        if not ordered:
            return cls()
        return cls(left=(), shown=ordered[0], right=ordered[1:])

    def __len__(self) -> int:
        if self.shown is None:
            return 0
        return len(self.left) + 1 + len(self.right)

    @property
    def is_empty(self) -> bool:
        return self.shown is None

    def photos(self) -> list[Photo]:
        if self.shown is None:
            return []
        return [*reversed(self.left), self.shown, *self.right]

    def rotate(self, direction: Direction | str) -> Carousel:
        direction = Direction(direction)
        if self.shown is None:
            return self

        if direction is Direction.FORWARD:
            ahead, behind = self.right, self.left
        else:
            ahead, behind = self.left, self.right

        if ahead:
            new_ahead = ahead[1:]
            new_behind = (self.shown, *behind)
            new_shown = ahead[0]
        else:
            # Wrap: the whole traversed history flips to the side ahead.
            rebuilt = tuple(reversed((self.shown, *behind)))
            new_shown = rebuilt[0]
            new_ahead = rebuilt[1:]
            new_behind = ()

        if direction is Direction.FORWARD:
            return Carousel(left=new_behind, shown=new_shown, right=new_ahead)
        return Carousel(left=new_ahead, shown=new_shown, right=new_behind)

    def find(self, photo_id: str) -> Photo | None:
        if self.shown is not None and self.shown.id == photo_id:
            return self.shown
        for photo in (*self.left, *self.right):
            if photo.id == photo_id:
                return photo
        return None

    def with_description(self, photo_id: str, description: str) -> Carousel:
        if self.find(photo_id) is None:
            return self

        def _apply(photo: Photo) -> Photo:
            if photo.id != photo_id:
                return photo
            return photo.with_description(description)

        return Carousel(
            left=tuple(_apply(photo) for photo in self.left),
            shown=_apply(self.shown) if self.shown is not None else None,
            right=tuple(_apply(photo) for photo in self.right),
        )
