import threading
from pathlib import Path

import pytest

from pyauction.ingest import normalize
from pyauction.models import ActivityEntry, ActivityType, Player, TournamentConfig
from pyauction.store import MemoryTransport, RecordStore, SqliteTransport, StoreWriteError


@pytest.fixture(params=["memory", "sqlite"])
def transport(request, tmp_path: Path):
    if request.param == "memory":
        return MemoryTransport()
    return SqliteTransport(tmp_path / "auction.sqlite")


@pytest.fixture
def store(transport):
    return RecordStore(transport)


def _entry(timestamp: int, message: str) -> ActivityEntry:
    return ActivityEntry(timestamp=timestamp, type=ActivityType.SALE, message=message)


def test_players_are_keyed_by_id_and_sorted(store: RecordStore):
    store.upsert_players([Player(id=3, name="Cy"), Player(id=1, name="Asha")])

    assert list(store.players()) == [1, 3]
    assert store.get_player(3).name == "Cy"
    assert store.get_player(99) is None


def test_subscribe_delivers_current_value_then_replacements(transport):
    received = []
    transport.put("config", {"purseLimit": 100})

    unsubscribe = transport.subscribe("config", received.append)
    transport.put("config/basePrice", 5)
    unsubscribe()
    transport.put("config/basePrice", 6)

    assert received == [{"purseLimit": 100}, {"purseLimit": 100, "basePrice": 5}]


def test_ancestor_write_notifies_descendant_subscriber(transport):
    received = []
    transport.put("players/1", {"name": "Asha"})
    transport.subscribe("players/1/name", received.append)

    transport.remove("players")

    assert received == ["Asha", None]
    assert transport.get("players") is None


def test_unrelated_write_does_not_notify(transport):
    received = []
    transport.subscribe("players", received.append)

    transport.put("config", {"purseLimit": 1})

    assert received == [None]


def test_removing_last_child_prunes_parent(transport):
    transport.put("players/1", {"name": "Asha"})

    transport.put("players/1", {})

    assert transport.get("players") is None
    assert transport.get("") == {}


def test_root_writes_are_rejected(transport):
    with pytest.raises(ValueError):
        transport.put("/", {"players": {}})


def test_failing_subscriber_does_not_block_others(transport, caplog):
    received = []

    def broken(value):
        raise RuntimeError("boom")

    transport.subscribe("config", broken)
    transport.subscribe("config", received.append)
    transport.put("config", {"basePrice": 1})

    assert received[-1] == {"basePrice": 1}
    assert "Subscriber for 'config' failed" in caplog.text


def test_deliveries_hold_the_store_lock(transport):
    writer_blocked = []

    def try_lock():
        acquired = transport._lock.acquire(blocking=False)
        if acquired:
            transport._lock.release()
        writer_blocked.append(not acquired)

    def check_from_other_thread(value):
        thread = threading.Thread(target=try_lock)
        thread.start()
        thread.join()

    transport.subscribe("config", check_from_other_thread)
    transport.put("config", {"basePrice": 1})

    assert writer_blocked == [True, True]


def test_typed_subscription_replaces_players(store: RecordStore):
    snapshots = []
    store.subscribe_players(snapshots.append)

    store.put_player(Player(id=1, name="Asha"))
    store.put_player(Player(id=1, name="Asha", team="Alfen Royals", price=50))

    assert snapshots[0] == {}
    assert snapshots[-1][1].team == "Alfen Royals"
    assert len(snapshots) == 3


def test_config_defaults_until_written(store: RecordStore):
    assert store.config() == TournamentConfig()

    custom = TournamentConfig(purse_limit=500, max_squad_size=5, base_price=5)
    assert store.ensure_config(custom) == custom
    assert store.ensure_config(TournamentConfig()) == custom


def test_current_offer_round_trip(store: RecordStore):
    assert store.current_offer() is None

    store.set_current_offer(7)
    assert store.current_offer() == 7

    store.set_current_offer(None)
    assert store.current_offer() is None


def test_activity_is_newest_first_and_limit_is_a_view(store: RecordStore):
    for timestamp in (1_000, 3_000, 2_000):
        store.append_activity(_entry(timestamp, f"at {timestamp}"))

    assert [entry.timestamp for entry in store.activity()] == [3_000, 2_000, 1_000]
    assert [entry.timestamp for entry in store.activity(limit=1)] == [3_000]
    assert len(store.activity()) == 3


def test_reset_clears_everything_but_config(store: RecordStore):
    config = TournamentConfig(purse_limit=900, max_squad_size=9, base_price=9)
    store.put_config(config)
    store.upsert_players([Player(id=1, name="Asha")])
    store.set_current_offer(1)
    store.append_activity(_entry(1_000, "sold"))

    store.reset()

    assert store.players() == {}
    assert store.current_offer() is None
    assert store.activity() == []
    assert store.config() == config


def test_reimport_reassigns_ids_and_orphans_trailing_records(store: RecordStore):
    first = normalize([{"Name": "Asha"}, {"Name": "Bo"}, {"Name": "Cy"}])
    store.upsert_players(first)
    store.put_player(store.get_player(1).with_updates(team="Alfen Royals", price=300))

    second = normalize([{"Name": "Bo"}, {"Name": "Cy"}])
    store.upsert_players(second)

    players = store.players()
    assert [(pid, player.name) for pid, player in players.items()] == [(1, "Bo"), (2, "Cy"), (3, "Cy")]
    # The sale recorded against id 1 is overwritten by the re-import.
    assert players[1].team is None
    assert players[1].price == 0


def test_unreadable_records_are_skipped():
    transport = MemoryTransport(
        {"players": {"1": {"name": ""}, "2": {"name": "Bo"}, "x": {"name": "Ghost"}}, "current_auction_id": "2"}
    )
    store = RecordStore(transport)

    assert list(store.players()) == [2]
    assert store.current_offer() == 2


def test_sqlite_state_survives_new_transport(tmp_path: Path):
    path = tmp_path / "auction.sqlite"
    RecordStore(SqliteTransport(path)).upsert_players([Player(id=1, name="Asha", team="Taluka Fighters", price=20)])

    reopened = RecordStore(SqliteTransport(path))

    assert reopened.get_player(1).price == 20


def test_sqlite_failure_surfaces_as_store_write_error(tmp_path: Path):
    transport = SqliteTransport(tmp_path / "auction.sqlite")
    with transport._transaction() as conn:
        conn.execute("DROP TABLE nodes")

    with pytest.raises(StoreWriteError):
        transport.put("config", {"purseLimit": 1})
