"""Pydantic models for API I/O."""

from .players import (
    ActivityResponse,
    ConfigPayload,
    LeagueSummaryResponse,
    PlayerResponse,
    StateResponse,
    TeamStatsResponse,
)
from .auction import (
    CaptainRequest,
    CorrectRequest,
    OfferRequest,
    ResetRequest,
    SellRequest,
    SpinRequest,
    TransitionResponse,
    UnsellRequest,
)
from .ingest import ImportPreviewResponse, MergeReportResponse

__all__ = [
    "ActivityResponse",
    "CaptainRequest",
    "ConfigPayload",
    "CorrectRequest",
    "ImportPreviewResponse",
    "LeagueSummaryResponse",
    "MergeReportResponse",
    "OfferRequest",
    "PlayerResponse",
    "ResetRequest",
    "SellRequest",
    "SpinRequest",
    "StateResponse",
    "TeamStatsResponse",
    "TransitionResponse",
    "UnsellRequest",
]
