# File: collab_todo/routers/health.py | Version: 1.0 | Title: Health & readiness endpoints
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from collab_todo.db.session import engine

log = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/healthz")
def healthz() -> dict:
    """
    Liveness probe: returns 200 if the app can serve requests.
    """
    return {"status": "ok"}


@router.get("/readyz")
def readyz(request: Request):
    """
    Readiness probe: 200 if DB is reachable (SELECT 1 succeeds), else 503.
    Also reports how many realtime channels are joined.
    """
    channels = len(request.app.state.realtime.channels())
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        log.warning("Readiness check failed: %s", exc)
        return JSONResponse({"status": "degraded", "db": "error", "channels": channels}, status_code=503)
    return {"status": "ok", "db": "ok", "channels": channels}
