import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


def new_log_id() -> str:
    """Return a unique identifier for a log entry."""
    return f"log_{uuid.uuid4()}"


class BaseLogEntry(BaseModel):
    """Common metadata for all session log entries."""

    log_id: str = Field(default_factory=new_log_id)
    sim_time: float
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    session_id: Optional[str] = None


class SessionStartedPayload(BaseModel):
    target: float
    halt_limit: Optional[float]
    degraded: bool
    baseline: Optional[str]


class SessionStartedLog(BaseLogEntry):
    event_type: str = "TimeWarpStarted"
    payload: SessionStartedPayload


class SessionEndedPayload(BaseModel):
    state: str
    target: float
    wall_elapsed: float
    finished_trips: int
    location: Optional[str] = None
    message: Optional[str] = None


class SessionEndedLog(BaseLogEntry):
    event_type: str = "TimeWarpEnded"
    payload: SessionEndedPayload
