"""
Conversion between domain records and plain storage dictionaries.

Used by file-backed adapters and the HTTP layer. Timestamps are stored as
ISO-8601 strings in UTC.
"""

from datetime import datetime, timezone
from typing import Any

from cadence.domain.errors import InvalidReviewError
from cadence.domain.scheduling.models import Card, CardSchedulingState, ReviewEvent


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_datetime(value: datetime | None) -> str | None:
    if value is None:
        return None
    return _ensure_utc(value).isoformat().replace("+00:00", "Z")


def parse_datetime(value: Any) -> datetime | None:
    """Parse an ISO string (or datetime) into an aware UTC datetime."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return _ensure_utc(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return _ensure_utc(datetime.fromisoformat(text))
        except ValueError as e:
            raise InvalidReviewError(f"Invalid timestamp: {value!r}") from e
    raise InvalidReviewError(f"Invalid timestamp: {value!r}")


def state_to_dict(state: CardSchedulingState) -> dict[str, Any]:
    return {
        "ease_factor": state.ease_factor,
        "interval": state.interval,
        "repetitions": state.repetitions,
        "is_learning": state.is_learning,
        "learning_step": state.learning_step,
        "next_review_date": format_datetime(state.next_review_date),
        "last_review_date": format_datetime(state.last_review_date),
    }


def state_from_dict(data: dict[str, Any]) -> CardSchedulingState:
    try:
        return CardSchedulingState(
            ease_factor=float(data["ease_factor"]),
            interval=int(data["interval"]),
            repetitions=int(data["repetitions"]),
            is_learning=bool(data["is_learning"]),
            learning_step=int(data["learning_step"]),
            next_review_date=parse_datetime(data["next_review_date"]),
            last_review_date=parse_datetime(data.get("last_review_date")),
        )
    except KeyError as e:
        raise InvalidReviewError(f"Card state is missing field {e.args[0]!r}") from e


def card_to_dict(card: Card) -> dict[str, Any]:
    return {
        "card_id": card.card_id,
        "front": card.front,
        "back": card.back,
        "state": state_to_dict(card.state),
        "total_reviews": card.total_reviews,
        "correct_reviews": card.correct_reviews,
        "streak_count": card.streak_count,
        "max_streak": card.max_streak,
        "average_response_time": card.average_response_time,
        "version": card.version,
    }


def card_view(card: Card) -> dict[str, Any]:
    """Client-facing card: the stored fields plus derived accuracy."""
    return {**card_to_dict(card), "accuracy": card.accuracy}


def card_from_dict(data: dict[str, Any]) -> Card:
    average = data.get("average_response_time")
    return Card(
        card_id=str(data["card_id"]),
        state=state_from_dict(data["state"]),
        front=data.get("front") or "",
        back=data.get("back") or "",
        total_reviews=int(data.get("total_reviews", 0) or 0),
        correct_reviews=int(data.get("correct_reviews", 0) or 0),
        streak_count=int(data.get("streak_count", 0) or 0),
        max_streak=int(data.get("max_streak", 0) or 0),
        average_response_time=float(average) if average is not None else None,
        version=int(data.get("version", 0) or 0),
    )


def review_to_dict(event: ReviewEvent) -> dict[str, Any]:
    return {
        "card_id": event.card_id,
        "quality": int(event.quality),
        "was_correct": event.was_correct,
        "created_at": format_datetime(event.created_at),
        "response_time": event.response_time,
        "ease_factor_before": event.ease_factor_before,
        "interval_before": event.interval_before,
        "ease_factor_after": event.ease_factor_after,
        "interval_after": event.interval_after,
        "review_type": event.review_type,
        "session_id": event.session_id,
    }


def review_from_dict(data: dict[str, Any]) -> ReviewEvent:
    response_time = data.get("response_time")
    return ReviewEvent(
        card_id=str(data["card_id"]),
        quality=data["quality"],
        was_correct=bool(data["was_correct"]),
        created_at=parse_datetime(data["created_at"]),
        response_time=float(response_time) if response_time is not None else None,
        ease_factor_before=float(data["ease_factor_before"]),
        interval_before=int(data["interval_before"]),
        ease_factor_after=float(data["ease_factor_after"]),
        interval_after=int(data["interval_after"]),
        review_type=data.get("review_type") or "scheduled",
        session_id=data.get("session_id"),
    )
