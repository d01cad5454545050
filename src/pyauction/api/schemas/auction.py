from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from .players import PlayerResponse


class OfferRequest(BaseModel):
    player_id: int


class SpinRequest(BaseModel):
    category: str | None = None
    grade: str | None = None


class SellRequest(BaseModel):
    player_id: int
    team: str
    price: int


class UnsellRequest(BaseModel):
    player_id: int


class CorrectRequest(BaseModel):
    player_id: int
    team: str | None = None
    price: int = 0


class CaptainRequest(BaseModel):
    player_id: int
    team: str
    category: str
    price: int = 0


class TransitionResponse(BaseModel):
    applied: bool
    player: PlayerResponse | None = None
    warnings: List[str] = Field(default_factory=list)


class ResetRequest(BaseModel):
    confirm: str = ""
