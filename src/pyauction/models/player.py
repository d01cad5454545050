"""Canonical player model shared across ingestion, auction and stats layers."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict


NO_GRADE = "0"
GRADES: tuple[str, ...] = ("A", "B", "C")
CONTACT_PLACEHOLDER = "N/A"


class Player(BaseModel):
    """A player as stored under ``players/{id}``.

    ``team is None`` means the player is unsold. The model enforces that an
    unsold player carries no price, captaincy or sale time, so records read
    back after a partial field-level write still satisfy the invariant.
    """

    id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1)
    team: Optional[str] = None
    price: int = Field(default=0, ge=0)
    ratings: Dict[str, str] = Field(default_factory=dict)
    contact_info: str = Field(default=CONTACT_PLACEHOLDER, alias="contactInfo")
    captain_for: Optional[str] = Field(default=None, alias="captainFor")
    sold_at: Optional[datetime] = Field(default=None, alias="soldAt")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _clear_unsold_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        team = data.get("team")
        if isinstance(team, str):
            team = team.strip() or None
            data["team"] = team
        if team is None:
            data["price"] = 0
            for key in ("captain_for", "captainFor", "sold_at", "soldAt"):
                if key in data:
                    data[key] = None
        elif data.get("price") is None:
            data["price"] = 0
        if not data.get("contact_info") and not data.get("contactInfo"):
            data.pop("contact_info", None)
            data["contactInfo"] = CONTACT_PLACEHOLDER
        return data

    @property
    def is_sold(self) -> bool:
        return self.team is not None

    def rating(self, category: str) -> str:
        return self.ratings.get(category, NO_GRADE)

    def plays(self, category: str) -> bool:
        return self.rating(category) != NO_GRADE

    def with_updates(self, **changes: Any) -> "Player":
        """Return a validated copy; unlike ``model_copy`` this re-applies the invariant."""

        return type(self).model_validate({**self.model_dump(), **changes})

    def to_store(self) -> dict:
        """Serialize using the store's field names."""

        return self.model_dump(mode="json", by_alias=True)
