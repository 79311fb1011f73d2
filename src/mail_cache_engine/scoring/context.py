"""Inputs shared by every scoring pass."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(value, high))


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


class ScoringContext(BaseModel):
    """Everything a scoring pass may read besides the message itself."""

    model_config = ConfigDict(frozen=True)

    now: datetime = Field(default_factory=_utcnow, description="Reference time for deadlines and decay")
    contacts: str = Field(default="", description="The user's known contacts joined as one string")
