"""Tournament-wide configuration singleton."""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class TournamentConfig(BaseModel):
    """Budget and squad limits stored under ``config``; always written wholesale."""

    purse_limit: int = Field(default=10_000, gt=0, alias="purseLimit")
    max_squad_size: int = Field(default=25, gt=0, alias="maxSquadSize")
    base_price: int = Field(default=10, gt=0, alias="basePrice")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_store(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
