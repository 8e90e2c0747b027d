"""Local FastAPI bridge exposing the synchronized state to a view."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from sse_starlette.sse import EventSourceResponse

from core.config import Settings
from core.sync_client import SyncClient

logger = logging.getLogger(__name__)

LOG_POLL_INTERVAL = 0.1


class DateCreate(BaseModel):
    date: str


class DateUpdate(BaseModel):
    enabled: Optional[bool] = None
    timeSlots: Optional[List[str]] = None


class RestrictionUpdate(BaseModel):
    enabled: bool


class ManualReserve(BaseModel):
    date: str
    url: str = Field(min_length=1)


def _result(ok: bool, message: str) -> dict:
    if not ok:
        # The failure itself is already in the activity log.
        raise HTTPException(status_code=502, detail="Reservation service request failed")
    return {"success": True, "message": message}


def create_app(client: SyncClient) -> FastAPI:
    """Build the bridge app around one sync client session."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client.start()
        try:
            yield
        finally:
            await client.stop()

    app = FastAPI(title="Reservation Sync Client", version="1.0.0", lifespan=lifespan)
    app.state.client = client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, specify exact origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        """Root endpoint returning bridge information."""
        return {
            "message": "Reservation Sync Client",
            "version": "1.0.0",
            "endpoints": {
                "state": "/state",
                "logs": "/logs",
                "history": "/logs/history"
            }
        }

    @app.get("/state")
    async def get_state():
        return client.published_state()

    @app.get("/logs/history")
    async def get_log_history():
        return [entry.to_dict() for entry in client.log_store.entries()]

    @app.get("/logs")
    async def stream_logs():
        async def event_generator():
            cursor = client.log_store.cursor
            try:
                while True:
                    entries, cursor = client.log_store.entries_since(cursor)
                    if not entries:
                        await asyncio.sleep(LOG_POLL_INTERVAL)
                        continue
                    for entry in entries:
                        yield {"event": "log", "data": entry.to_dict()}
            except asyncio.CancelledError:
                logger.debug("Log stream closed by consumer")
                raise

        return EventSourceResponse(event_generator())

    @app.post("/refresh")
    async def refresh():
        refreshed = await client.refresher.refresh()
        return {"success": True, "refreshed": refreshed}

    @app.post("/dates")
    async def add_date(body: DateCreate):
        return _result(await client.add_date(body.date), f"Added date: {body.date}")

    @app.put("/dates/{date}")
    async def update_date(date: str, body: DateUpdate):
        if body.enabled is None and body.timeSlots is None:
            raise HTTPException(status_code=400, detail="enabled or timeSlots required")
        if body.enabled is not None:
            _result(await client.toggle_date(date, body.enabled), f"Toggled date: {date}")
        if body.timeSlots is not None:
            client.update_time_slots(date, body.timeSlots)
        return {"success": True, "message": f"Updated date: {date}"}

    @app.delete("/dates/{date}")
    async def remove_date(date: str):
        return _result(await client.remove_date(date), f"Removed date: {date}")

    @app.post("/monitoring/start")
    async def start_monitoring():
        return _result(await client.start_monitoring(), "Monitoring started")

    @app.post("/monitoring/stop")
    async def stop_monitoring():
        return _result(await client.stop_monitoring(), "Monitoring stopped")

    @app.put("/config/monitoring-time-restriction")
    async def set_restriction(body: RestrictionUpdate):
        return _result(
            await client.set_monitoring_time_restriction(body.enabled),
            "Monitoring time restriction updated"
        )

    @app.post("/manual-reserve")
    async def manual_reserve(body: ManualReserve):
        return _result(await client.manual_reserve(body.date, body.url), "Manual reservation started")

    return app


settings = Settings.from_env()

# Configure logging
logging.basicConfig(level=settings.log_level.upper())

app = create_app(SyncClient(settings))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )
