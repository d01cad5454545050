from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from .players import PlayerResponse


class ImportPreviewResponse(BaseModel):
    accepted: int
    rejected_rows: List[int] = Field(default_factory=list)
    committed: bool = False
    players: List[PlayerResponse] = Field(default_factory=list)


class MergeReportResponse(BaseModel):
    category: str
    total_rows: int
    matched_names: List[str]
    unmatched_rows: List[str]
    updated_players: int
