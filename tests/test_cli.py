import json
from pathlib import Path

import pytest

from pyauction.cli import main
from pyauction.store import RecordStore, SqliteTransport


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for name in ("PYAUCTION_DB_PATH", "PYAUCTION_ADMIN_PASSPHRASE", "PYAUCTION_ACTIVITY_LIMIT", "PYAUCTION_RULES"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def roster(tmp_path: Path) -> Path:
    path = tmp_path / "roster.csv"
    path.write_text(
        "Name,Cric,Bad,TTE,Winning Team,Auction Value\n"
        "Asha,A,B,,Alfen Royals,300\n"
        "Bo,B,,A,,\n"
        ",C,,,,\n",
        encoding="utf-8",
    )
    return path


def _db(tmp_path: Path) -> Path:
    return tmp_path / "auction.sqlite"


def test_import_preview_does_not_write(tmp_path: Path, roster: Path, capsys):
    assert main(["--db", str(_db(tmp_path)), "import", str(roster)]) == 0

    out = capsys.readouterr().out
    assert "Normalized 2 players" in out
    assert "Rejected rows without a name: 3" in out
    assert not _db(tmp_path).exists()


def test_import_commit_and_save_aliases(tmp_path: Path, roster: Path):
    aliases = tmp_path / "aliases.json"
    aliases.write_text(json.dumps({"aliases": {"contact": "Phone"}}), encoding="utf-8")
    saved = tmp_path / "saved.json"

    code = main(
        [
            "--db",
            str(_db(tmp_path)),
            "import",
            str(roster),
            "--commit",
            "--aliases",
            str(aliases),
            "--save-aliases",
            str(saved),
        ]
    )

    assert code == 0
    store = RecordStore(SqliteTransport(_db(tmp_path)))
    asha = store.get_player(1)
    assert asha.team == "Alfen Royals"
    assert asha.price == 300
    assert store.get_player(2).rating("tt") == "A"
    assert store.config().purse_limit == 10_000
    assert json.loads(saved.read_text(encoding="utf-8")) == {"aliases": {"contact": ["Phone"]}}


def test_merge_export_and_stats(tmp_path: Path, roster: Path, capsys):
    db = str(_db(tmp_path))
    main(["--db", db, "import", str(roster), "--commit"])
    sheet = tmp_path / "badminton.csv"
    sheet.write_text("Player,Level\nbo,1\nGhost,A\n", encoding="utf-8")

    assert main(["--db", db, "merge", "badminton", str(sheet)]) == 0
    out = capsys.readouterr().out
    assert "Matched 1/2 rows for badminton" in out
    assert "Ghost" in out

    output = tmp_path / "results.csv"
    assert main(["--db", db, "export", "--output", str(output)]) == 0
    lines = output.read_text(encoding="utf-8").splitlines()
    assert lines[1].startswith("1,Asha,A,B,0,")
    assert lines[2].startswith("2,Bo,B,A,A,")

    assert main(["--db", db, "stats"]) == 0
    out = capsys.readouterr().out
    assert "Sold 1, remaining 1, highest bid 300" in out
    assert "Alfen Royals: 1/25 players, spent 300, remaining 9700" in out


def test_merge_unknown_category(tmp_path: Path, roster: Path, capsys):
    assert main(["--db", str(_db(tmp_path)), "merge", "chess", str(roster)]) == 2
    assert "Unknown category" in capsys.readouterr().out


def test_reset_requires_yes(tmp_path: Path, roster: Path):
    db = str(_db(tmp_path))
    main(["--db", db, "import", str(roster), "--commit"])

    assert main(["--db", db, "reset"]) == 2
    assert len(RecordStore(SqliteTransport(_db(tmp_path))).players()) == 2

    assert main(["--db", db, "reset", "--yes"]) == 0
    assert RecordStore(SqliteTransport(_db(tmp_path))).players() == {}
