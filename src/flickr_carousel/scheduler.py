from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from .domain.carousel import Direction
from .domain.state import CollectionError
from .settings import AppSettings
from .viewer import NavigationDisabledError, ViewerSession

LOGGER = logging.getLogger(__name__)

SLIDESHOW_JOB_ID = "slideshow_advance_job"
COLLECTION_REFRESH_JOB_ID = "collection_refresh_job"


# Jobs are coroutines so AsyncIOScheduler runs them on the loop, not in a thread.
async def run_slideshow_advance_job(session: ViewerSession) -> None:
    try:
        shown = session.rotate(Direction.FORWARD)
    except NavigationDisabledError as exc:
        LOGGER.debug("Slideshow advance skipped: %s", exc)
        return
    LOGGER.debug("Slideshow advanced to '%s'", shown.id if shown is not None else None)


async def run_collection_refresh_job(session: ViewerSession) -> None:
    try:
        state = await session.load()
    except Exception:  # pragma: no cover - defensive fallback
        LOGGER.exception("Collection refresh job failed")
        return

    if isinstance(state, CollectionError):
        LOGGER.warning("Collection refresh for '%s' failed: %s", session.username, state.message)
        return
    LOGGER.info("Collection refresh job reloaded '%s' (%d photos)", session.username, len(state.view))


def build_scheduler(settings: AppSettings, session: ViewerSession) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler()

    advance_seconds = settings.yaml.display.auto_advance_seconds
    if advance_seconds is not None and session.mode == "carousel":
        scheduler.add_job(
            run_slideshow_advance_job,
            "interval",
            kwargs={"session": session},
            seconds=advance_seconds,
            id=SLIDESHOW_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=advance_seconds,
        )

    refresh_minutes = settings.yaml.refresh.interval_minutes
    if refresh_minutes is not None:
        scheduler.add_job(
            run_collection_refresh_job,
            "interval",
            kwargs={"session": session},
            minutes=refresh_minutes,
            id=COLLECTION_REFRESH_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=300,
        )
    return scheduler
