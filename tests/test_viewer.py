from __future__ import annotations

import asyncio

import pytest

from conftest import FakeSource, make_photo, make_photos, wait_until
from flickr_carousel.adapters.flickr import AlbumNotFoundError, FlickrAdapterError
from flickr_carousel.domain.carousel import Carousel, Direction
from flickr_carousel.domain.gallery import Gallery
from flickr_carousel.domain.state import CollectionError, LiveCollection
from flickr_carousel.viewer import NavigationDisabledError, ViewerSession


def _session(source: FakeSource, *, mode: str = "carousel", album: str | None = None) -> ViewerSession:
    return ViewerSession(source=source, username="alice", album_name=album, mode=mode)


@pytest.mark.asyncio
async def test_load_shows_first_photo_and_fetches_its_caption_only() -> None:
    source = FakeSource(photos=make_photos("a", "b", "c"), descriptions={"a": "Pier"})
    session = _session(source, album="Trips")

    await session.load()
    await session.captions.wait_idle()

    carousel = session.carousel()
    assert source.load_calls == [("alice", "Trips")]
    assert carousel.shown == make_photo("a", description="Pier")
    assert source.description_calls == ["a"]


@pytest.mark.asyncio
async def test_rotation_fetches_caption_for_newly_shown_photo() -> None:
    source = FakeSource(photos=make_photos("a", "b", "c"))
    session = _session(source)
    await session.load()
    await session.captions.wait_idle()

    shown = session.rotate(Direction.FORWARD)
    await session.captions.wait_idle()

    assert shown.id == "b"
    assert source.description_calls == ["a", "b"]
    assert session.carousel().shown.description == "caption b"
    assert session.carousel().left[0].description == "caption a"


@pytest.mark.asyncio
async def test_revisiting_a_photo_does_not_refetch_caption() -> None:
    source = FakeSource(photos=make_photos("a", "b"), failing={"b"})
    session = _session(source)
    await session.load()
    await session.captions.wait_idle()

    session.rotate(Direction.FORWARD)
    await session.captions.wait_idle()
    session.rotate(Direction.FORWARD)
    session.rotate(Direction.FORWARD)
    await session.captions.wait_idle()

    assert source.description_calls == ["a", "b"]
    assert session.carousel().shown.id == "b"
    assert session.carousel().shown.description is None


@pytest.mark.asyncio
async def test_single_photo_rotation_issues_no_duplicate_fetch() -> None:
    source = FakeSource(photos=make_photos("only"), gated={"only"})
    session = _session(source)
    await session.load()

    session.rotate(Direction.FORWARD)
    session.rotate(Direction.BACKWARD)
    source.release("only")
    await session.captions.wait_idle()

    assert source.description_calls == ["only"]
    assert session.carousel().shown.description == "caption only"


@pytest.mark.asyncio
async def test_caption_lands_on_photo_after_user_moved_on() -> None:
    source = FakeSource(photos=make_photos("a", "b", "c"), gated={"a"})
    session = _session(source)
    await session.load()

    session.rotate(Direction.FORWARD)
    await wait_until(lambda: session.carousel().shown.description is not None)
    source.release("a")
    await session.captions.wait_idle()

    carousel = session.carousel()
    assert carousel.shown.id == "b"
    assert carousel.left[0].id == "a"
    assert carousel.left[0].description == "caption a"


@pytest.mark.asyncio
async def test_late_caption_for_replaced_collection_is_discarded() -> None:
    source = FakeSource(photos=make_photos("a", "b"), gated={"a"})
    session = _session(source)
    await session.load()
    session.rotate(Direction.FORWARD)
    await wait_until(lambda: session.carousel().shown.description is not None)

    session.replace_collection(make_photos("x", "y"))
    await wait_until(lambda: session.carousel().shown.description is not None)
    before = session.state
    source.release("a")
    await session.captions.wait_idle()

    assert session.state == before
    assert session.carousel().find("a") is None
    assert [photo.id for photo in session.carousel().photos()] == ["x", "y"]


@pytest.mark.asyncio
async def test_collection_failure_is_terminal_until_fresh_load() -> None:
    source = FakeSource(load_error=FlickrAdapterError("User not found"))
    session = _session(source)

    state = await session.load()

    assert state == CollectionError(message="User not found")
    with pytest.raises(NavigationDisabledError):
        session.rotate(Direction.FORWARD)

    source.load_error = None
    source.photos = make_photos("a")
    state = await session.load("bob")

    assert isinstance(state, LiveCollection)
    assert session.username == "bob"
    assert session.album_name is None
    await session.captions.wait_idle()


@pytest.mark.asyncio
async def test_album_not_found_records_album_name() -> None:
    source = FakeSource(load_error=AlbumNotFoundError("Vacation"))
    session = _session(source, album="Vacation")

    state = await session.load()

    assert isinstance(state, CollectionError)
    assert state.album_name == "Vacation"
    assert "Vacation" in state.message


@pytest.mark.asyncio
async def test_gallery_mode_fetches_every_caption_eagerly() -> None:
    source = FakeSource(photos=make_photos("a", "b", "c"), failing={"b"})
    session = _session(source, mode="gallery")

    await session.load()
    await session.captions.wait_idle()

    gallery = session.gallery()
    assert isinstance(gallery, Gallery)
    assert sorted(source.description_calls) == ["a", "b", "c"]
    assert [photo.id for photo in gallery.pending] == ["b"]
    assert sorted(photo.id for photo in gallery.captioned) == ["a", "c"]
    with pytest.raises(NavigationDisabledError):
        session.rotate(Direction.FORWARD)


@pytest.mark.asyncio
async def test_empty_collection_is_live_and_inert() -> None:
    session = _session(FakeSource(photos=[]))

    await session.load()

    assert session.carousel() == Carousel()
    assert session.rotate(Direction.FORWARD) is None
    assert session.captions.in_flight == 0


@pytest.mark.asyncio
async def test_older_load_finishing_last_does_not_overwrite_newer_one() -> None:
    source = FakeSource(
        collections={"alice": make_photos("alice-1", "alice-2"), "bob": make_photos("bob-1")},
        gated={"alice", "bob"},
    )
    session = _session(source)

    refresh = asyncio.create_task(session.load())
    await wait_until(lambda: len(source.load_calls) == 1)
    switch = asyncio.create_task(session.load("bob"))
    await wait_until(lambda: len(source.load_calls) == 2)

    source.release("bob")
    await switch
    source.release("alice")
    stale_result = await refresh
    await session.captions.wait_idle()

    assert source.load_calls == [("alice", None), ("bob", None)]
    assert stale_result is session.state
    assert session.username == "bob"
    assert [photo.id for photo in session.carousel().photos()] == ["bob-1"]


@pytest.mark.asyncio
async def test_older_load_failing_last_keeps_newer_collection_live() -> None:
    source = FakeSource(
        collections={"alice": make_photos("alice-1"), "bob": make_photos("bob-1")},
        gated={"alice", "bob"},
    )
    session = _session(source)

    refresh = asyncio.create_task(session.load())
    await wait_until(lambda: len(source.load_calls) == 1)
    switch = asyncio.create_task(session.load("bob"))
    await wait_until(lambda: len(source.load_calls) == 2)

    source.release("bob")
    await switch
    source.load_error = FlickrAdapterError("timed out")
    source.release("alice")
    await refresh
    await session.captions.wait_idle()

    assert isinstance(session.state, LiveCollection)
    assert session.carousel().shown.id == "bob-1"
