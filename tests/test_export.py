import csv
from io import StringIO

from pyauction.ingest import normalize_rows, read_roster_csv
from pyauction.models import NO_GRADE, Player
from pyauction.roster import export_headers, export_players_to_csv
from pyauction.config import get_rules


def _players() -> list[Player]:
    return [
        Player(id=1, name="Asha", ratings={"cricket": "A", "badminton": "B", "tt": NO_GRADE}, contact_info="111"),
        Player(id=2, name="Bo", team="taluka fighters", price=250, ratings={"cricket": "B"}),
        Player(id=3, name="Cy", team="Alfen Royals", price=120, captain_for="cricket", ratings={"tt": "C"}),
        Player(id=4, name="Dee", team="Alfen Royals", price=90),
    ]


def test_export_headers():
    assert export_headers(get_rules()) == (
        "ID",
        "Player Name",
        "Cricket",
        "Badminton",
        "TT",
        "Contact No",
        "Team",
        "Auction Value",
        "Captain",
    )


def test_export_sorts_by_team_with_unsold_last():
    text = export_players_to_csv(_players())

    rows = list(csv.DictReader(StringIO(text)))

    assert [row["ID"] for row in rows] == ["3", "4", "2", "1"]
    assert rows[0]["Captain"] == "cricket"
    assert rows[-1]["Team"] == ""
    assert rows[-1]["Auction Value"] == "0"
    assert rows[2]["Badminton"] == NO_GRADE


def test_export_is_reimportable():
    players = _players()
    text = export_players_to_csv({player.id: player for player in players})

    result = normalize_rows(read_roster_csv(text))

    by_name = {player.name: player for player in result.players}
    assert set(by_name) == {"Asha", "Bo", "Cy", "Dee"}
    assert by_name["Bo"].team == "Taluka Fighters"
    assert by_name["Bo"].price == 250
    assert by_name["Cy"].rating("tt") == "C"
    assert by_name["Asha"].contact_info == "111"
    assert by_name["Asha"].ratings == {"cricket": "A", "badminton": "B", "tt": NO_GRADE}
