"""FastAPI app exposing the scheduled daily idea job."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
import hmac
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from config import get_cron_settings
from core import PipelineStage
from utils.exceptions import PipelineAbortedError
from webapp.runtime import close_pipeline, get_pipeline


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    await close_pipeline()
    logger.info("Pipeline clients closed")


app = FastAPI(title="Niche Radar API", lifespan=lifespan)

ABORT_STATUS = {
    "already_exists": 409,
    "generation_failed": 502,
}


def _matches(provided: Optional[str], expected: Optional[str]) -> bool:
    if not provided or not expected:
        return False
    return hmac.compare_digest(str(provided), str(expected))


def is_authorized(request: Request) -> bool:
    """
    Bearer secret or scheduler header, whichever is configured.

    With neither configured the endpoint is open.
    """
    settings = get_cron_settings()
    if not settings.secret and not settings.scheduler_token:
        return True

    auth = str(request.headers.get("authorization") or "").strip()
    if settings.secret and auth.lower().startswith("bearer "):
        if _matches(auth[7:].strip(), settings.secret):
            return True

    if settings.scheduler_token:
        if _matches(request.headers.get(settings.scheduler_header), settings.scheduler_token):
            return True
    return False


def _parse_date(value: Optional[str]) -> Optional[date]:
    text = str(value or "").strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"invalid date: {text}") from exc


@app.get("/api/health")
def health() -> Dict[str, Any]:
    return {"ok": True, "ts": datetime.now(timezone.utc).isoformat(timespec="seconds")}


@app.api_route("/api/cron/generate-daily-idea", methods=["GET", "POST"])
async def generate_daily_idea(request: Request, date: Optional[str] = None):
    if not is_authorized(request):
        return JSONResponse(status_code=401, content={"error": "unauthorized"})

    target_date = _parse_date(date)
    try:
        result = await get_pipeline().run(target_date)
    except PipelineAbortedError as exc:
        status = ABORT_STATUS.get(exc.reason, 500)
        log = logger.info if status == 409 else logger.error
        log(f"Daily idea run aborted at {exc.stage}: {exc.reason} ({exc.message})")
        return JSONResponse(
            status_code=status,
            content={"success": False, "error": exc.reason, "stage": exc.stage},
        )
    except Exception as exc:
        # pipeline could not be built, or a collaborator outside the stages failed
        logger.exception(f"Daily idea run failed: {exc}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "internal_error", "stage": PipelineStage.ABORTED.value},
        )

    return {
        "success": True,
        "idea_id": result.idea_id,
        "name": result.name,
        "industry": result.industry,
        "notifications_queued": result.notifications_queued,
    }
