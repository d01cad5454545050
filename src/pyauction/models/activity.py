"""Activity log entries appended by auction transitions."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict
from uuid import uuid4

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class ActivityType(str, Enum):
    SALE = "sale"
    REVERT = "revert"
    CORRECTION = "correction"
    CAPTAIN = "captain"


class ActivityEntry(BaseModel):
    """Immutable log line stored under ``activity_log/{timestamp}``."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    timestamp: int = Field(..., ge=0)
    type: ActivityType
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    def to_store(self) -> dict:
        return self.model_dump(mode="json")
