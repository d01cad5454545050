import json

import httpx
import pytest
from fastapi.testclient import TestClient

from pyauction.api import create_app
from pyauction.auction import AuctionStateMachine
from pyauction.client import HttpTransport
from pyauction.config import Settings
from pyauction.models import Player
from pyauction.store import LiveView, MemoryTransport, RecordStore, StoreWriteError


class FakeStoreServer:
    """Serves the ``/store`` routes from an in-memory tree."""

    def __init__(self):
        self.backend = MemoryTransport()
        self.requests: list[httpx.Request] = []
        self.fail_writes = False
        self.fail_reads = False
        self.fail_reads_after_write = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.method == "GET" and path.startswith("/store"):
            if self.fail_reads:
                return httpx.Response(500)
            value = self.backend.get(path[len("/store"):])
            return httpx.Response(
                200, content=json.dumps(value), headers={"content-type": "application/json"}
            )
        if request.method == "PATCH" and path == "/store":
            if self.fail_writes:
                return httpx.Response(503, json={"detail": "Store write failed"})
            self.backend.update(json.loads(request.content))
            if self.fail_reads_after_write:
                self.fail_reads = True
            return httpx.Response(200, json={"status": "ok"})
        return httpx.Response(404)


@pytest.fixture
def server():
    return FakeStoreServer()


@pytest.fixture
def transport(server):
    client = httpx.Client(transport=httpx.MockTransport(server), base_url="http://auction")
    with HttpTransport(passphrase="secret", client=client) as transport:
        yield transport
    client.close()


def test_get_reads_remote_path(server, transport):
    server.backend.put("players/1", {"name": "Asha"})

    assert transport.get("players/1") == {"name": "Asha"}
    assert transport.get("") == {"players": {"1": {"name": "Asha"}}}
    assert transport.get("config") is None


def test_update_sends_one_patch_with_passphrase(server, transport):
    transport.update({"players/1": {"name": "Asha"}, "current_auction_id": 1})

    patch = next(request for request in server.requests if request.method == "PATCH")
    assert patch.headers["X-Admin-Passphrase"] == "secret"
    assert json.loads(patch.content) == {"players/1": {"name": "Asha"}, "current_auction_id": 1}
    assert server.backend.get("current_auction_id") == 1


def test_rejected_write_raises_store_write_error(server, transport):
    server.fail_writes = True

    with pytest.raises(StoreWriteError):
        transport.put("config", {"purseLimit": 5})


def test_poll_redelivers_only_changed_paths(server, transport):
    players = []
    config = []
    transport.subscribe("players", players.append)
    transport.subscribe("config", config.append)

    assert transport.poll() == 0
    server.backend.put("players/1", {"name": "Asha"})

    assert transport.poll() == 1
    assert players == [None, {"1": {"name": "Asha"}}]
    assert config == [None]


def test_local_write_notifies_local_subscribers(transport):
    received = []
    transport.subscribe("current_auction_id", received.append)

    transport.put("current_auction_id", 4)

    assert received == [None, 4]
    assert transport.poll() == 0


def test_get_treats_empty_body_as_absent():
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)), base_url="http://auction")
    with HttpTransport(client=client) as transport:
        assert transport.get("config") is None
    client.close()


def test_failed_read_back_does_not_fail_committed_write(server, transport):
    received = []
    transport.subscribe("players", received.append)
    server.fail_reads = True

    transport.put("players/1", {"name": "Asha"})

    assert server.backend.get("players/1") == {"name": "Asha"}
    assert received == [None]

    server.fail_reads = False
    assert transport.poll() == 1
    assert received == [None, {"1": {"name": "Asha"}}]


def test_sale_is_logged_when_read_back_fails(server, transport):
    remote = RecordStore(transport)
    remote.upsert_players([Player(id=1, name="Asha")])
    remote.subscribe_players(lambda players: None)
    machine = AuctionStateMachine(remote)
    server.fail_reads_after_write = True

    sold = machine.sell(1, "Alfen Royals", 120)

    assert sold.team == "Alfen Royals"
    assert server.fail_reads
    server.fail_reads = False
    server.fail_reads_after_write = False
    (entry,) = remote.activity()
    assert entry.message == "Asha sold to Alfen Royals for 120"


def test_http_transport_requires_base_url_or_client():
    with pytest.raises(ValueError):
        HttpTransport()


def test_console_against_running_api(tmp_path):
    server_store = RecordStore(MemoryTransport())
    server_store.upsert_players([Player(id=1, name="Asha"), Player(id=2, name="Bo")])
    settings = Settings(
        db_path=tmp_path / "unused.sqlite",
        admin_passphrase="secret",
        activity_limit=10,
        rules_name="default",
    )
    app = create_app(store=server_store, settings=settings)

    with TestClient(app) as client:
        remote = RecordStore(HttpTransport(passphrase="secret", client=client))
        view = LiveView(remote)
        machine = AuctionStateMachine(remote)

        machine.offer(2)
        sold = machine.sell(2, "Sai Kripa Soldiers", 75)

        assert sold.team == "Sai Kripa Soldiers"
        assert server_store.get_player(2).price == 75
        assert server_store.current_offer() is None
        assert view.players[2].team == "Sai Kripa Soldiers"
        assert server_store.activity()[0].message == "Bo sold to Sai Kripa Soldiers for 75"

        server_store.put_player(Player(id=3, name="Cy"))
        remote.transport.poll()
        assert 3 in view.players


def test_console_without_passphrase_cannot_write(tmp_path):
    settings = Settings(
        db_path=tmp_path / "unused.sqlite",
        admin_passphrase="secret",
        activity_limit=10,
        rules_name="default",
    )
    app = create_app(store=RecordStore(MemoryTransport()), settings=settings)

    with TestClient(app) as client:
        remote = RecordStore(HttpTransport(client=client))
        with pytest.raises(StoreWriteError):
            remote.set_current_offer(1)
