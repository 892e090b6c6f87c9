"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from .config import Settings, settings
from .engine import theme
from .engine.mascot import emotion_message
from .goals.database import GoalDatabase
from .goals.models import GoalChangeEvent
from .widget.builder import SnapshotBuilder
from .widget.models import GoalEventRequest, RefreshRequest
from .widget.notifier import WidgetNotifier
from .widget.scheduler import UpdateScheduler
from .widget.store import SnapshotStore

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@dataclass
class WidgetContext:
    """Everything one running widget service owns."""
    settings: Settings
    goal_store: GoalDatabase
    store: SnapshotStore
    builder: SnapshotBuilder
    notifier: WidgetNotifier
    scheduler: UpdateScheduler
    unsubscribe: Callable[[], None]


def create_context(config: Settings) -> WidgetContext:
    """Wire stores, builder, notifier and scheduler together."""
    goal_store = GoalDatabase(config.goals_db_path)
    store = SnapshotStore(config.snapshot_db_path)
    builder = SnapshotBuilder(goal_store, store, config)
    notifier = WidgetNotifier(config.notify_url, timeout=config.notify_timeout_seconds)
    scheduler = UpdateScheduler(builder, notifier, config)
    unsubscribe = goal_store.subscribe(scheduler.on_goal_change)
    return WidgetContext(
        settings=config,
        goal_store=goal_store,
        store=store,
        builder=builder,
        notifier=notifier,
        scheduler=scheduler,
        unsubscribe=unsubscribe,
    )


def get_context(request: Request) -> WidgetContext:
    return request.app.state.context


def create_app(config: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI app; the widget service lives for the app's lifespan."""
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        context = create_context(config)
        app.state.context = context
        context.scheduler.start()
        logger.info("Widget service started")
        try:
            yield
        finally:
            context.unsubscribe()
            context.scheduler.shutdown()
            await context.scheduler.wait_idle()
            logger.info("Widget service stopped")

    app = FastAPI(
        title="Goal Widget Service",
        description="Keeps the home-screen goal widget snapshot up to date",
        version=VERSION,
        lifespan=lifespan,
    )

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Goal Widget Service",
            "version": VERSION,
            "endpoints": {
                "snapshot": "/api/snapshot",
                "events": "/api/events",
                "refresh": "/api/refresh",
                "status": "/status",
            },
        }

    @app.get("/status")
    async def status(request: Request):
        """Server status endpoint."""
        context = get_context(request)
        snapshot = await context.builder.get_snapshot()
        now = datetime.now()

        snapshot_info = None
        if snapshot is not None:
            threshold = timedelta(minutes=context.settings.snapshot_stale_minutes)
            snapshot_info = {
                "generated_at": snapshot.generated_at,
                "age_seconds": int(snapshot.age(now).total_seconds()),
                "stale": snapshot.is_stale(now, threshold),
                "background_status": snapshot.background_status,
                "background_color": theme.background_color_hex(
                    snapshot.background_status, snapshot.background_time_band
                ),
                "mascot_message": emotion_message(snapshot.mascot.emotion),
            }

        return {
            "status": "running",
            "version": VERSION,
            "timestamp": now.isoformat(),
            "snapshot": snapshot_info,
            "scheduler": context.scheduler.status(),
            "notify_configured": bool(context.settings.notify_url),
        }

    @app.get("/api/snapshot")
    async def snapshot_endpoint(request: Request):
        """
        Current widget snapshot, as the renderer would read it.

        A missing or unreadable snapshot forces a rebuild first.
        """
        context = get_context(request)
        snapshot = await context.builder.get_snapshot()

        if snapshot is None:
            logger.info("No usable snapshot stored, forcing update")
            await context.scheduler.force_update()
            snapshot = await context.builder.get_snapshot()

        if snapshot is None:
            raise HTTPException(status_code=503, detail="Widget snapshot unavailable")

        return JSONResponse(snapshot.model_dump(mode="json", by_alias=True))

    @app.post("/api/events")
    async def events_endpoint(event: GoalEventRequest, request: Request):
        """
        Goal change notification from the app that owns the goals.

        Feeds the scheduler's debounce; the rebuild happens shortly after.
        """
        context = get_context(request)
        logger.info(f"Goal event received: {event.kind} ({event.goal_id or 'unknown'})")
        context.scheduler.on_goal_change(
            GoalChangeEvent(
                kind=event.kind,
                goal_id=event.goal_id,
                is_celebration=event.is_celebration,
            )
        )
        return {"status": "accepted"}

    @app.post("/api/refresh")
    async def refresh_endpoint(request: Request, body: Optional[RefreshRequest] = None):
        """Rebuild the snapshot immediately."""
        context = get_context(request)
        is_celebration = body.is_celebration if body else False
        logger.info(f"Manual refresh requested (celebration: {is_celebration})")

        await context.scheduler.force_update(is_celebration=is_celebration)
        snapshot = await context.builder.get_snapshot()
        if snapshot is None:
            raise HTTPException(status_code=503, detail="Widget snapshot unavailable")

        return {
            "status": "success",
            "message": "Widget snapshot regenerated",
            "generatedAt": snapshot.generated_at,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )
