from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, field_validator

from .adapters.flickr import FlickrRestAdapter
from .domain.carousel import Direction
from .domain.models import Photo
from .domain.state import CollectionError
from .scheduler import build_scheduler
from .settings import AppSettings, load_settings
from .viewer import NavigationDisabledError, ViewerSession


class CollectionRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    username: str
    album: str | None = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("username must not be empty")
        return text

    @field_validator("album")
    @classmethod
    def validate_album(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value if value.strip() else None


def _get_session(request: Request) -> ViewerSession:
    return request.app.state.session


def _photo_payload(photo: Photo | None) -> dict[str, Any] | None:
    if photo is None:
        return None
    return {
        "id": photo.id,
        "image_url": photo.image_url,
        "description": photo.description,
    }


def _error_payload(state: CollectionError) -> dict[str, Any]:
    return {
        "status": "error",
        "error": state.message,
        "album_name": state.album_name,
    }


def _view_payload(session: ViewerSession) -> dict[str, Any]:
    state = session.state
    if isinstance(state, CollectionError):
        return _error_payload(state)

    payload: dict[str, Any] = {
        "status": "ok",
        "mode": session.mode,
        "username": session.username,
        "album": session.album_name,
        "total_count": len(state.view),
        "captions_in_flight": session.captions.in_flight,
    }
    if session.mode == "gallery":
        return payload

    carousel = session.carousel()
    payload.update(
        {
            "photo": _photo_payload(carousel.shown),
            "previous_count": len(carousel.left),
            "next_count": len(carousel.right),
        }
    )
    return payload


def build_session(settings: AppSettings) -> ViewerSession:
    adapter = FlickrRestAdapter(
        api_key=settings.env.flickr_api_key,
        endpoint=settings.yaml.flickr.endpoint,
        timeout_seconds=settings.yaml.flickr.timeout_seconds,
    )
    return ViewerSession(
        source=adapter,
        username=settings.yaml.collection.username,
        album_name=settings.yaml.collection.album,
        mode=settings.yaml.display.mode,
    )


@asynccontextmanager
async def lifespan(application: FastAPI):
    settings = load_settings()
    session = build_session(settings)
    await session.load()
    scheduler = build_scheduler(settings, session)
    scheduler.start()

    application.state.settings = settings
    application.state.session = session
    application.state.scheduler = scheduler
    application.state.started_at_utc = datetime.now(timezone.utc)

    try:
        yield
    finally:
        if scheduler.running:
            scheduler.shutdown(wait=False)


app = FastAPI(title="Flickr Carousel", version="0.1.0", lifespan=lifespan)


@app.get("/health", response_class=JSONResponse)
async def health(request: Request) -> JSONResponse:
    session = _get_session(request)
    settings: AppSettings | None = getattr(request.app.state, "settings", None)
    scheduler = getattr(request.app.state, "scheduler", None)
    state = session.state
    return JSONResponse(
        {
            "status": "ok",
            "service": "flickr-carousel",
            "environment": settings.env.viewer_env if settings is not None else None,
            "scheduler_running": bool(scheduler is not None and scheduler.running),
            "collection_status": "error" if isinstance(state, CollectionError) else "live",
            "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        }
    )


@app.get("/api/view", response_class=JSONResponse)
async def view(request: Request) -> JSONResponse:
    return JSONResponse(_view_payload(_get_session(request)))


@app.post("/api/navigate/{direction}", response_class=JSONResponse)
async def navigate(request: Request, direction: str) -> JSONResponse:
    try:
        parsed_direction = Direction(direction.lower())
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="Unknown direction") from exc

    session = _get_session(request)
    try:
        session.rotate(parsed_direction)
    except NavigationDisabledError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return JSONResponse(_view_payload(session))


@app.get("/api/gallery", response_class=JSONResponse)
async def gallery(request: Request) -> JSONResponse:
    session = _get_session(request)
    try:
        current = session.gallery()
    except NavigationDisabledError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return JSONResponse(
        {
            "status": "ok",
            "pending": [_photo_payload(photo) for photo in current.pending],
            "captioned": [_photo_payload(photo) for photo in current.captioned],
        }
    )


@app.post("/api/collection", response_class=JSONResponse)
async def reload_collection(request: Request, body: CollectionRequest) -> JSONResponse:
    session = _get_session(request)
    state = await session.load(body.username, body.album)
    if isinstance(state, CollectionError):
        status_code = 404 if state.album_name is not None else 502
        return JSONResponse(_error_payload(state), status_code=status_code)
    return JSONResponse(_view_payload(session))
