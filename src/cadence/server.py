import logging
import time
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from cadence.application.config import resolve_config
from cadence.application.factory import build_study_service
from cadence.application.stats.service import StudySessionService
from cadence.consts import VERSION
from cadence.domain.errors import (
    CardNotFoundError,
    InvalidReviewError,
    PersistenceConflictError,
)
from cadence.infrastructure.adapters.serialization import card_view, review_to_dict

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cadence.server")

_service: StudySessionService | None = None


def get_service() -> StudySessionService:
    """Process-wide service built from the resolved configuration."""
    global _service
    if _service is None:
        _service = build_study_service(resolve_config())
    return _service


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Cadence Server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("Cadence Server shutting down...")


app = FastAPI(
    title="Cadence Server",
    description="Spaced-repetition scheduling API.",
    version=VERSION,
    lifespan=lifespan,
)


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


start_time = time.time()


def _now() -> datetime:
    return datetime.now(timezone.utc)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


class CreateCardRequest(BaseModel):
    front: str
    back: str
    card_id: str | None = None


@app.post("/cards", status_code=201)
async def create_card(req: CreateCardRequest, service: StudySessionService = Depends(get_service)):
    """Create a card in the learning phase, due immediately."""
    try:
        card = await service.add_card(req.front, req.back, _now(), card_id=req.card_id)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    return card_view(card)


class ReviewRequest(BaseModel):
    card_id: str
    # Checked by parse_quality; invalid ratings are a 400.
    quality: Any
    response_time: float | None = None
    review_type: str = "scheduled"
    session_id: str | None = None


@app.post("/review")
async def submit_review(req: ReviewRequest, service: StudySessionService = Depends(get_service)):
    """
    Record a review and return the rescheduled card.
    """
    logger.info(f"Review requested via API: card={req.card_id} quality={req.quality}")

    try:
        result = await service.submit_review(
            req.card_id,
            req.quality,
            _now(),
            response_time=req.response_time,
            review_type=req.review_type,
            session_id=req.session_id,
        )
    except InvalidReviewError as e:
        raise HTTPException(status_code=400, detail=f"Invalid review: {e}") from None
    except CardNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except PersistenceConflictError as e:
        logger.warning(f"Review conflict: {e}")
        raise HTTPException(status_code=409, detail=str(e)) from None

    return {
        "card": card_view(result.card),
        "review": review_to_dict(result.event),
        "graduated_from_learning": result.graduated_from_learning,
        "message": "Card graduated from learning phase!"
        if result.graduated_from_learning
        else None,
    }


@app.get("/due")
async def due_cards(service: StudySessionService = Depends(get_service)):
    """Cards grouped by urgency, plus the flat due list."""
    now = _now()
    buckets = await service.due_overview(now)
    due = await service.due_cards(now)
    return {
        "cards": {
            "due_now": [card_view(c) for c in buckets.due_now],
            "learning": [card_view(c) for c in buckets.learning],
            "upcoming": [card_view(c) for c in buckets.upcoming],
            "future": [card_view(c) for c in buckets.future],
        },
        "counts": buckets.counts(),
        "due_card_ids": [c.card_id for c in due],
    }


@app.get("/stats")
async def study_stats(days: int = 30, service: StudySessionService = Depends(get_service)):
    """Study statistics and a per-day review breakdown."""
    now = _now()
    summary = await service.study_stats(now)
    daily = await service.daily_breakdown(now, days)
    return {
        "stats": asdict(summary),
        "daily": [{**asdict(d), "day": d.day.isoformat()} for d in daily],
    }
