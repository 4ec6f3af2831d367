from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .models import Photo


@dataclass(frozen=True, slots=True)
class Gallery:
    """Photos split into those still waiting for a caption and those captioned."""

    pending: tuple[Photo, ...] = ()
    captioned: tuple[Photo, ...] = ()

    @classmethod
    def from_photos(cls, photos: Iterable[Photo]) -> Gallery:
        pending: list[Photo] = []
        captioned: list[Photo] = []
        for photo in photos:
            (captioned if photo.has_description else pending).append(photo)
        return cls(pending=tuple(pending), captioned=tuple(captioned))

    def __len__(self) -> int:
        return len(self.pending) + len(self.captioned)

    def is_pending(self, photo_id: str) -> bool:
        return any(photo.id == photo_id for photo in self.pending)

    def with_description(self, photo_id: str, description: str) -> Gallery:
        moved: Photo | None = None
        remaining: list[Photo] = []
        for photo in self.pending:
            if moved is None and photo.id == photo_id:
                moved = photo.with_description(description)
                continue
            remaining.append(photo)

        if moved is None:
            return self
        return Gallery(pending=tuple(remaining), captioned=(*self.captioned, moved))
