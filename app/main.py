# app/main.py
"""
Rail Cargo Stream - Main Application

Mock US railway cargo feed: simulated freight trains, rail cars and airway
bills streamed over Server-Sent Events with server-side filters.
"""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles

from .settings import settings
from .logging import configure_logging, get_logger
from .streaming import FleetBroadcaster
from .api import stream_router, info_router

configure_logging(level=settings.log_level, json_output=settings.log_json)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.

    Builds the fleet (invalid configuration aborts startup before any tick),
    starts the shared ticker and stops it on shutdown.
    """
    broadcaster = FleetBroadcaster.from_settings(settings)
    app.state.broadcaster = broadcaster
    broadcaster.start()
    logger.info(
        "server_started",
        port=settings.api_port,
        sse_endpoint="/SSE/Stream",
        tick_ms=settings.tick_ms,
        trains=settings.train_count,
        max_cars_per_train=settings.max_cars_per_train,
        max_awbs_per_car=settings.max_awbs_per_car,
    )

    yield

    await broadcaster.stop()
    logger.info("server_stopped")


app = FastAPI(
    title="Rail Cargo Stream",
    description="""
    Mock US railway cargo SSE server.

    Streams fictional train, car and airway bill status updates as
    Server-Sent Events. Trains move along real great-circle distances
    between cargo hubs, dwell at stations, deliver cargo and pick up
    new freight.

    Filters: awb, trainName, carNumber, station, status.
    """,
    version="0.1.0",
    lifespan=lifespan,
)

# Browser demos connect from arbitrary origins by default; set ALLOWED_ORIGINS to restrict
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type", "Last-Event-ID"],
)

app.include_router(stream_router)
app.include_router(info_router)


@app.get("/health")
async def health_check():
    """Basic health check."""
    return {"status": "ok", "service": "rail-cargo-stream"}


@app.get("/")
async def root():
    """Redirect to UI."""
    return RedirectResponse(url="/ui/")


# Mount static files for the dashboard
ui_path = os.path.join(os.path.dirname(__file__), "ui", "static")
if os.path.exists(ui_path):
    app.mount("/ui", StaticFiles(directory=ui_path, html=True), name="ui")
else:
    logger.warning("ui_path_missing", path=ui_path)


def run():
    """Run the server (entry point for CLI)."""
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
    )


if __name__ == "__main__":
    run()
