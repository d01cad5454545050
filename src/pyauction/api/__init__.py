"""REST API for the auction console."""

from __future__ import annotations

import hmac
import json
import logging
from typing import Any, Iterable, List

from fastapi import Depends, FastAPI, File, Form, Header, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse, Response

from pyauction.api.schemas import (
    ActivityResponse,
    CaptainRequest,
    ConfigPayload,
    CorrectRequest,
    ImportPreviewResponse,
    LeagueSummaryResponse,
    MergeReportResponse,
    OfferRequest,
    PlayerResponse,
    ResetRequest,
    SellRequest,
    SpinRequest,
    StateResponse,
    TeamStatsResponse,
    TransitionResponse,
    UnsellRequest,
)
from pyauction.auction import (
    AuctionStateMachine,
    LeagueSummary,
    TeamStats,
    compute_all_stats,
    compute_stats,
    league_summary,
    sale_warnings,
)
from pyauction.config import Settings, TournamentRules, get_rules, load_settings
from pyauction.ingest import merge_category_rows, normalize_rows, read_roster_csv
from pyauction.models import ActivityEntry, Player, TournamentConfig
from pyauction.roster import export_players_to_csv
from pyauction.store import RecordStore, SqliteTransport, StoreWriteError


logger = logging.getLogger(__name__)

RESET_CONFIRMATION = "RESET"


def _player_response(player: Player | None) -> PlayerResponse | None:
    if player is None:
        return None
    return PlayerResponse.model_validate(player.model_dump(mode="json"))


def _config_response(config: TournamentConfig) -> ConfigPayload:
    return ConfigPayload.model_validate(config.model_dump())


def _team_stats_response(stats: TeamStats) -> TeamStatsResponse:
    return TeamStatsResponse(
        team=stats.team,
        spent=stats.spent,
        count=stats.count,
        remaining=stats.remaining,
        max_squad_size=stats.max_squad_size,
        slots_left=stats.slots_left,
        over_budget=stats.over_budget,
        squad_full=stats.squad_full,
        category_counts=dict(stats.category_counts),
        player_ids=[player.id for player in stats.roster],
    )


def _summary_response(summary: LeagueSummary) -> LeagueSummaryResponse:
    return LeagueSummaryResponse(
        total_sold=summary.total_sold,
        remaining_players=summary.remaining_players,
        highest_bid=summary.highest_bid,
    )


def _activity_response(entries: Iterable[ActivityEntry]) -> List[ActivityResponse]:
    return [ActivityResponse.model_validate(entry.model_dump(mode="json")) for entry in entries]


def _transition(player: Player | None, warnings: List[str] | None = None) -> TransitionResponse:
    return TransitionResponse(
        applied=player is not None,
        player=_player_response(player),
        warnings=warnings or [],
    )


def _parse_aliases(aliases_str: str | None) -> dict[str, list[str]]:
    if not aliases_str:
        return {}
    try:
        payload = json.loads(aliases_str)
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid aliases JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="aliases must be a JSON object")
    payload = payload.get("aliases", payload)
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="aliases must map field names to header lists")
    parsed: dict[str, list[str]] = {}
    for field, values in payload.items():
        if isinstance(values, str):
            values = [values]
        if not isinstance(values, list) or not all(isinstance(value, str) for value in values):
            raise HTTPException(status_code=400, detail=f"aliases for {field!r} must be a string or list of strings")
        parsed[str(field)] = values
    return parsed


async def _read_csv_upload(upload: UploadFile) -> list[dict[str, Any]]:
    contents = await upload.read()
    if not contents:
        raise HTTPException(status_code=400, detail="CSV file is empty")
    try:
        text = contents.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail=f"CSV must be UTF-8: {exc}") from exc
    return read_roster_csv(text)


def create_app(
    store: RecordStore | None = None,
    rules: TournamentRules | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    rules = rules or get_rules(settings.rules_name)
    if store is None:
        store = RecordStore(SqliteTransport(settings.db_path))
    store.ensure_config(rules.default_config)
    machine = AuctionStateMachine(store, rules=rules)

    app = FastAPI(title="pyauction console")
    app.state.store = store
    app.state.rules = rules
    app.state.settings = settings
    app.state.machine = machine

    def require_admin(x_admin_passphrase: str | None = Header(None)) -> None:
        supplied = (x_admin_passphrase or "").encode("utf-8")
        expected = settings.admin_passphrase.encode("utf-8")
        if not hmac.compare_digest(supplied, expected):
            raise HTTPException(status_code=403, detail="Admin passphrase required")

    admin = [Depends(require_admin)]

    def team_stats() -> List[TeamStats]:
        return compute_all_stats(rules.teams, store.player_list(), store.config(), rules.category_keys)

    @app.exception_handler(StoreWriteError)
    async def store_write_failed(request: Request, exc: StoreWriteError) -> JSONResponse:
        logger.error("Write failed for %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/state", response_model=StateResponse)
    async def state() -> StateResponse:
        players = store.player_list()
        config = store.config()
        offer = store.current_offer()
        stats = compute_all_stats(rules.teams, players, config, rules.category_keys)
        current = next((player for player in players if player.id == offer), None)
        return StateResponse(
            players=[_player_response(player) for player in players],
            config=_config_response(config),
            current_offer=offer,
            current_player=_player_response(current),
            teams=[_team_stats_response(item) for item in stats],
            summary=_summary_response(league_summary(players)),
            activity=_activity_response(store.activity(settings.activity_limit)),
        )

    @app.get("/players", response_model=list[PlayerResponse])
    async def list_players(
        team: str | None = Query(None),
        unsold: bool = Query(False),
    ) -> list[PlayerResponse]:
        players = store.player_list()
        if unsold:
            players = [player for player in players if not player.is_sold]
        elif team is not None:
            canonical = rules.canonical_team(team) or team
            players = [player for player in players if player.team == canonical]
        return [_player_response(player) for player in players]

    @app.get("/players/{player_id}", response_model=PlayerResponse)
    async def get_player(player_id: int) -> PlayerResponse:
        player = store.get_player(player_id)
        if player is None:
            raise HTTPException(status_code=404, detail="Player not found")
        return _player_response(player)

    @app.get("/teams", response_model=list[TeamStatsResponse])
    async def teams() -> list[TeamStatsResponse]:
        return [_team_stats_response(item) for item in team_stats()]

    @app.get("/activity", response_model=list[ActivityResponse])
    async def activity(limit: int | None = Query(None, ge=1)) -> list[ActivityResponse]:
        return _activity_response(store.activity(limit or settings.activity_limit))

    @app.get("/config", response_model=ConfigPayload)
    async def get_config() -> ConfigPayload:
        return _config_response(store.config())

    @app.put("/config", response_model=ConfigPayload, dependencies=admin)
    async def put_config(payload: ConfigPayload) -> ConfigPayload:
        config = TournamentConfig(**payload.model_dump())
        store.put_config(config)
        logger.info("Config updated: %s", payload.model_dump())
        return _config_response(config)

    @app.post("/auction/offer", response_model=TransitionResponse, dependencies=admin)
    async def offer(payload: OfferRequest) -> TransitionResponse:
        return _transition(machine.offer(payload.player_id))

    @app.delete("/auction/offer", response_model=TransitionResponse, dependencies=admin)
    async def clear_offer() -> TransitionResponse:
        current = machine.current_player()
        machine.clear_offer()
        return _transition(current)

    @app.post("/auction/spin", response_model=TransitionResponse, dependencies=admin)
    async def spin(payload: SpinRequest) -> TransitionResponse:
        try:
            return _transition(machine.spin(payload.category, payload.grade))
        except KeyError as exc:
            raise HTTPException(status_code=400, detail=f"Unknown category {payload.category!r}") from exc

    @app.post("/auction/sell", response_model=TransitionResponse, dependencies=admin)
    async def sell(payload: SellRequest) -> TransitionResponse:
        team = rules.canonical_team(payload.team) or payload.team
        warnings: List[str] = []
        if rules.has_team(team):
            config = store.config()
            before = compute_stats(team, store.player_list(), config, rules.category_keys)
            warnings = sale_warnings(before, payload.price, config)
        return _transition(machine.sell(payload.player_id, team, payload.price), warnings)

    @app.post("/auction/unsell", response_model=TransitionResponse, dependencies=admin)
    async def unsell(payload: UnsellRequest) -> TransitionResponse:
        return _transition(machine.unsell(payload.player_id))

    @app.post("/auction/correct", response_model=TransitionResponse, dependencies=admin)
    async def correct(payload: CorrectRequest) -> TransitionResponse:
        team = rules.canonical_team(payload.team) or payload.team
        return _transition(machine.correct(payload.player_id, team, payload.price))

    @app.post("/auction/captain", response_model=TransitionResponse, dependencies=admin)
    async def captain(payload: CaptainRequest) -> TransitionResponse:
        team = rules.canonical_team(payload.team) or payload.team
        return _transition(machine.assign_captain(payload.player_id, team, payload.category, payload.price))

    @app.post("/auction/captain/remove", response_model=TransitionResponse, dependencies=admin)
    async def remove_captain(payload: UnsellRequest) -> TransitionResponse:
        return _transition(machine.remove_captain(payload.player_id))

    @app.post("/import", response_model=ImportPreviewResponse, dependencies=admin)
    async def import_players(
        file: UploadFile = File(...),
        commit: bool = Form(False),
        aliases: str | None = Form(None),
    ) -> ImportPreviewResponse:
        rows = await _read_csv_upload(file)
        result = normalize_rows(rows, rules=rules, aliases=_parse_aliases(aliases) or None)
        if commit:
            store.upsert_players(result.players)
        return ImportPreviewResponse(
            accepted=result.accepted,
            rejected_rows=result.rejected_rows,
            committed=commit,
            players=[_player_response(player) for player in result.players],
        )

    @app.post("/import/{category}", response_model=MergeReportResponse, dependencies=admin)
    async def import_category(
        category: str,
        file: UploadFile = File(...),
        aliases: str | None = Form(None),
    ) -> MergeReportResponse:
        rows = await _read_csv_upload(file)
        try:
            updated, report = merge_category_rows(
                store.player_list(),
                rows,
                category,
                rules=rules,
                aliases=_parse_aliases(aliases) or None,
            )
        except KeyError as exc:
            raise HTTPException(status_code=400, detail=f"Unknown category {category!r}") from exc
        if updated:
            store.upsert_players(updated)
        return MergeReportResponse(
            category=report.category,
            total_rows=report.total_rows,
            matched_names=report.matched_names,
            unmatched_rows=report.unmatched_rows,
            updated_players=len(updated),
        )

    @app.get("/export.csv")
    async def export_csv() -> Response:
        csv_text = export_players_to_csv(store.player_list(), rules=rules)
        return Response(
            content=csv_text,
            media_type="text/csv",
            headers={"Content-Disposition": "attachment; filename=auction_results.csv"},
        )

    @app.post("/reset", dependencies=admin)
    async def reset(payload: ResetRequest) -> dict[str, str]:
        if payload.confirm != RESET_CONFIRMATION:
            raise HTTPException(status_code=400, detail=f"Type {RESET_CONFIRMATION} to confirm")
        machine.reset()
        return {"status": "reset"}

    @app.get("/store")
    async def read_store_root() -> Any:
        return store.transport.get("")

    @app.get("/store/{path:path}")
    async def read_store(path: str) -> Any:
        return store.transport.get(path)

    @app.put("/store/{path:path}", dependencies=admin)
    async def write_store(path: str, request: Request) -> dict[str, str]:
        value = await _json_body(request)
        try:
            store.transport.put(path, value)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"status": "ok"}

    @app.patch("/store", dependencies=admin)
    async def update_store(request: Request) -> dict[str, str]:
        values = await _json_body(request)
        if not isinstance(values, dict):
            raise HTTPException(status_code=400, detail="Body must map paths to values")
        try:
            store.transport.update(values)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"status": "ok"}

    return app


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid JSON body: {exc}") from exc


__all__ = ["create_app"]
