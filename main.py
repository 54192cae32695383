"""
Deployment Map FastAPI Application

Main entry point for the Deployment Map application, serving the REST API
and the real-time feed of disaster-response deployment pins.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Cookie, FastAPI
from fastapi.responses import StreamingResponse
from fastapi.staticfiles import StaticFiles

from database import init_db
from logic import config
from server import broadcast
from server.auth import COOKIE_NAME, router as auth_router, session_id_from_cookie
from server.pins import router as pins_router
from server.realtime import RealtimeSubscriber
from server.routes import router as routes_router
from server.search import router as search_router
from server.state import map_state, reload_pins

config.setup_logging()
logger = logging.getLogger(__name__)

init_db()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load pins and subscribe to the realtime feed for the app's lifetime."""
    await reload_pins()

    subscriber = None
    if config.ENABLE_REALTIME and config.SUPABASE_URL:
        subscriber = RealtimeSubscriber(map_state, broadcast.publish, resync=reload_pins)
        subscriber.start()
    else:
        logger.warning("Realtime updates disabled")

    yield

    if subscriber is not None:
        await subscriber.stop()


app = FastAPI(title="Deployment Map", lifespan=lifespan)

# Include all routers
app.include_router(routes_router)
app.include_router(pins_router)
app.include_router(search_router)
app.include_router(auth_router)

# ============================================================
# SSE Endpoint
# ============================================================


@app.get("/api/stream")
async def stream(session: Optional[str] = Cookie(None, alias=COOKIE_NAME)):
    """Server-Sent Events (SSE) endpoint for real-time updates.

    Clients connect to this endpoint to receive pin changes, filter changes
    and search results as they happen. Signed-in admins also receive auth
    events for their own session.

    Args:
        session: Session cookie value, if any.

    Returns:
        StreamingResponse with text/event-stream content type.
    """
    queue = broadcast.subscribe(session_id_from_cookie(session))
    return StreamingResponse(broadcast.event_generator(queue), media_type="text/event-stream")


# ============================================================
# Static Files
# ============================================================

app.mount("/static", StaticFiles(directory=config.STATIC_DIR), name="static")
