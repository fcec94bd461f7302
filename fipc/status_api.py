from __future__ import annotations

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse

from . import __version__
from .api_models import EventModel, StatusResponse
from .events import MAX_EVENTS, latest_events
from .runtime import RuntimeState


def create_app(runtime: RuntimeState) -> FastAPI:
    """Read-only status API over the controller's runtime state."""
    app = FastAPI(title="Floating IP Controller", version=__version__)

    @app.get("/healthz")
    def healthz():
        if not runtime.snapshot()["running"]:
            return JSONResponse({"status": "stopped"}, status_code=503)
        return {"status": "ok"}

    @app.get("/readyz")
    def readyz():
        if not runtime.ready():
            return JSONResponse({"status": "not ready"}, status_code=503)
        return {"status": "ready"}

    @app.get("/status", response_model=StatusResponse)
    def status():
        return StatusResponse(version=__version__, ready=runtime.ready(), **runtime.snapshot())

    @app.get("/events", response_model=list[EventModel])
    def events(limit: int = Query(100, ge=1, le=MAX_EVENTS)):
        return latest_events(limit)

    return app
