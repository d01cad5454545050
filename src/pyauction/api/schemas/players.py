from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field


class PlayerResponse(BaseModel):
    id: int
    name: str
    team: str | None
    price: int
    ratings: Dict[str, str]
    contact_info: str
    captain_for: str | None = None
    sold_at: str | None = None


class TeamStatsResponse(BaseModel):
    team: str
    spent: int
    count: int
    remaining: int
    max_squad_size: int
    slots_left: int
    over_budget: bool
    squad_full: bool
    category_counts: Dict[str, int]
    player_ids: List[int] = Field(default_factory=list)


class LeagueSummaryResponse(BaseModel):
    total_sold: int
    remaining_players: int
    highest_bid: int


class ActivityResponse(BaseModel):
    id: str
    timestamp: int
    type: str
    message: str
    details: dict = Field(default_factory=dict)


class ConfigPayload(BaseModel):
    purse_limit: int = Field(gt=0)
    max_squad_size: int = Field(gt=0)
    base_price: int = Field(gt=0)


class StateResponse(BaseModel):
    players: List[PlayerResponse]
    config: ConfigPayload
    current_offer: int | None
    current_player: PlayerResponse | None
    teams: List[TeamStatsResponse]
    summary: LeagueSummaryResponse
    activity: List[ActivityResponse]
