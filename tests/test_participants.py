import pytest

from conftest import make_players
from pingpongclub.constants import RULE_SET_WIN_POINTS
from pingpongclub.controllers.base import BaseController
from pingpongclub.events import EventType
from pingpongclub.exceptions import NotFoundError, ProtectedResourceError, ValidationError
from pingpongclub.models.enums import MatchType, Rank, RuleCategory
from pingpongclub.models.participant import Participant


def _types(recorded):
    return [event.type for event in recorded]


# ========== Players ==========


def test_create_player_normalizes_email(app, storage, recorded):
    player = app.players.create("Trần Thị Lan", " Lan.Tran@PingPong.example ", "5 Lê Lợi, Huế")
    assert player.email == "lan.tran@pingpong.example"
    assert player.rank is Rank.BEGINNER
    assert storage.load("players")[0]["id"] == player.id
    assert _types(recorded) == [EventType.PLAYER_CREATED]
    assert recorded[0].payload["player"] is player


def test_duplicate_email_is_rejected(app):
    app.players.create("Trần Thị Lan", "lan@pingpong.example", "5 Lê Lợi, Huế")
    with pytest.raises(ValidationError) as excinfo:
        app.players.create("Lê Văn Lan", "LAN@pingpong.example", "7 Trần Phú, Huế")
    assert "already used" in str(excinfo.value)
    assert len(app.players) == 1


@pytest.mark.parametrize(
    "name,email,address",
    [
        ("", "a@pingpong.example", "5 Lê Lợi, Huế"),
        ("Lan", "not-an-email", "5 Lê Lợi, Huế"),
        ("Lan", "a@pingpong.example", "Huế"),
    ],
)
def test_invalid_player_fields(app, name, email, address):
    with pytest.raises(ValidationError):
        app.players.create(name, email, address)
    assert len(app.players) == 0


def test_invalid_rank_is_rejected(app):
    with pytest.raises(ValidationError):
        app.players.create("Trần Thị Lan", "lan@pingpong.example", "5 Lê Lợi, Huế", rank="Master")


def test_failed_update_leaves_player_untouched(app):
    first, second = make_players(app, 2)
    with pytest.raises(ValidationError):
        app.players.update(first.id, name="Tên mới", email=second.email)
    assert first.name == "Người chơi 01"
    assert first.email == "player01@pingpong.example"


def test_update_player(app, recorded):
    (player,) = make_players(app, 1)
    app.players.update(player.id, address="99 Hùng Vương, Đà Nẵng", rank="Advanced")
    assert player.rank is Rank.ADVANCED
    assert player.address == "99 Hùng Vương, Đà Nẵng"
    assert recorded[-1].type is EventType.PLAYER_UPDATED
    assert recorded[-1].payload["changes"] == ["address", "rank"]


def test_update_unknown_field(app):
    (player,) = make_players(app, 1)
    with pytest.raises(ValidationError) as excinfo:
        app.players.update(player.id, points=500)
    assert excinfo.value.errors == ["Unknown field: points"]
    assert player.points == 0


def test_participant_and_controller_bases_are_abstract(storage, events):
    with pytest.raises(TypeError):
        Participant("Khách lẻ")
    with pytest.raises(TypeError):
        BaseController(storage, events)


def test_get_unknown_player(app):
    with pytest.raises(NotFoundError):
        app.players.get("player_missing")
    assert app.players.find("player_missing") is None


def test_import_players_skips_bad_rows(app, recorded):
    created, errors = app.players.import_players(
        [
            {"name": "Phạm Minh", "email": "minh@pingpong.example", "address": "1 Nguyễn Huệ, Huế"},
            {"name": "Võ Hoa", "email": "hoa@pingpong.example", "address": "2 Lê Duẩn, Huế", "rank": "Guru"},
            {"name": "Phạm Minh 2", "email": "MINH@pingpong.example", "address": "3 Lê Duẩn, Huế"},
        ]
    )
    assert [p.name for p in created] == ["Phạm Minh"]
    assert len(errors) == 2
    assert errors[0].startswith("Row 2")
    assert recorded[-1].type is EventType.PLAYERS_IMPORTED
    assert recorded[-1].payload["count"] == 1


def test_rank_change_is_published(app, recorded):
    winner, loser = make_players(app, 2)
    winner.points = 195
    entry = app.players.update_after_match(
        winner.id, True, loser, MatchType.SINGLES, "3-0", match_id="match_1"
    )
    assert entry.points_earned == 10
    assert winner.rank is Rank.INTERMEDIATE
    rank_events = [e for e in recorded if e.type is EventType.PLAYER_RANK_CHANGED]
    assert len(rank_events) == 1
    assert rank_events[0].payload["oldRank"] == "Beginner"
    assert rank_events[0].payload["newRank"] == "Intermediate"
    assert recorded[-1].type is EventType.PLAYER_MATCH_RESULT
    assert recorded[-1].payload["matchId"] == "match_1"


def test_player_queries(app):
    lan, minh, hoa = make_players(app, 3)
    app.players.update(hoa.id, rank="Advanced")
    app.players.update_after_match(lan.id, True, minh, MatchType.SINGLES, "3-1")
    app.players.update_after_match(minh.id, False, lan, MatchType.SINGLES, "1-3")

    assert app.players.search("advanced") == [hoa]
    assert app.players.search("Người chơi", rank=Rank.BEGINNER) == [lan, minh]
    assert app.players.top_by_points(1) == [lan]
    assert app.players.top_by_win_rate(min_matches=1) == [lan, minh]

    summary = app.players.statistics_summary()
    assert summary["totalPlayers"] == 3
    assert summary["activePlayers"] == 2
    assert summary["byRank"] == {
        "Beginner": 2,
        "Intermediate": 0,
        "Advanced": 1,
        "Professional": 0,
    }
    assert summary["topPlayer"] == lan.name
    assert summary["averageWinRate"] == 50


# ========== Doubles ==========


def test_double_is_named_after_its_players(app):
    lan, minh = make_players(app, 2)
    double = app.doubles.create(lan.id, minh.id)
    assert double.name == "Người chơi 01 & Người chơi 02"
    assert app.doubles.players_of(double.id) == [lan, minh]


def test_same_pair_cannot_register_twice(app):
    lan, minh = make_players(app, 2)
    app.doubles.create(lan.id, minh.id)
    with pytest.raises(ValidationError):
        app.doubles.create(minh.id, lan.id, name="Đôi khác")
    assert len(app.doubles) == 1


def test_double_needs_two_known_players(app):
    (lan,) = make_players(app, 1)
    with pytest.raises(ValidationError):
        app.doubles.create(lan.id, lan.id)
    with pytest.raises(ValidationError):
        app.doubles.create(lan.id, "player_missing")


# ========== Teams ==========


def test_team_roster_size(app):
    players = make_players(app, 5)
    with pytest.raises(ValidationError):
        app.teams.create("Đội Hai Người", [p.id for p in players[:2]])
    with pytest.raises(ValidationError):
        app.teams.create("Đội Năm Người", [p.id for p in players])
    team = app.teams.create("Đội Sấm Sét", [p.id for p in players[:3]])
    assert team.captain_id == players[0].id


def test_team_names_are_unique_ignoring_case(app):
    players = make_players(app, 6)
    app.teams.create("Đội Sấm Sét", [p.id for p in players[:3]])
    with pytest.raises(ValidationError):
        app.teams.create("đội sấm sét", [p.id for p in players[3:]])


def test_player_belongs_to_one_active_team(app):
    players = make_players(app, 6)
    first = app.teams.create("Đội Một", [p.id for p in players[:3]])
    with pytest.raises(ValidationError):
        app.teams.create("Đội Hai", [players[0].id, players[3].id, players[4].id])

    second = app.teams.create("Đội Hai", [p.id for p in players[3:]])
    with pytest.raises(ValidationError):
        app.teams.add_player(second.id, players[0].id)

    app.teams.set_status(first.id, False)
    app.teams.add_player(second.id, players[0].id)
    assert second.player_count == 4
    with pytest.raises(ValidationError):
        app.teams.set_status(first.id, True)
    assert not first.is_active


def test_remove_player_keeps_minimum_roster(app):
    players = make_players(app, 4)
    team = app.teams.create("Đội Gió", [p.id for p in players])
    app.teams.remove_player(team.id, players[0].id)
    assert team.captain_id == players[1].id
    with pytest.raises(ValidationError):
        app.teams.remove_player(team.id, players[1].id)
    with pytest.raises(ValidationError):
        app.teams.remove_player(team.id, players[0].id)
    assert team.player_count == 3


def test_set_captain_moves_previous_captain_back(app):
    players = make_players(app, 4)
    team = app.teams.create("Đội Lửa", [p.id for p in players])
    app.teams.set_captain(team.id, players[2].id)
    assert team.player_ids == [players[2].id, players[1].id, players[3].id, players[0].id]


def test_available_players(app):
    players = make_players(app, 4)
    team = app.teams.create("Đội Mây", [p.id for p in players[:3]])
    assert app.teams.available_players() == [players[3]]
    assert len(app.teams.available_players(exclude_team_id=team.id)) == 4


# ========== Cascade ==========


def test_deleting_player_cascades_to_doubles_and_teams(app, recorded):
    players = make_players(app, 7)
    leaving = players[0]
    double = app.doubles.create(leaving.id, players[1].id)
    other_double = app.doubles.create(players[1].id, players[2].id)
    small = app.teams.create("Đội Nhỏ", [leaving.id, players[1].id, players[2].id])
    app.teams.set_status(small.id, False)
    large = app.teams.create(
        "Đội Lớn", [leaving.id, players[3].id, players[4].id, players[5].id]
    )

    app.players.delete(leaving.id)

    assert double.id not in app.doubles
    assert other_double.id in app.doubles
    assert large.is_active
    assert large.player_ids == [players[3].id, players[4].id, players[5].id]
    assert small.player_ids == [players[1].id, players[2].id]

    types = _types(recorded)
    deleted_at = types.index(EventType.PLAYER_DELETED)
    assert types[deleted_at + 1:] == [
        EventType.DOUBLES_AUTO_DELETED,
        EventType.TEAMS_AUTO_MODIFIED,
    ]
    assert recorded[-2].payload["ids"] == [double.id]
    assert recorded[-1].payload["playerId"] == leaving.id


def test_team_below_minimum_is_deactivated(app, recorded):
    players = make_players(app, 3)
    team = app.teams.create("Đội Ba", [p.id for p in players])
    app.players.delete(players[0].id)
    assert team.id in app.teams
    assert not team.is_active
    assert team.player_count == 2
    assert recorded[-1].payload["deactivated"] == [team.id]


# ========== Rules ==========


def test_default_rules_are_seeded(app):
    assert len(app.rules) == 10
    assert app.rules.rule_set.match_rules().winning_score == 11


def test_protected_rule_cannot_be_deactivated_or_deleted(app):
    rule = app.rules.find_by_key(RULE_SET_WIN_POINTS)
    with pytest.raises(ProtectedResourceError):
        app.rules.deactivate(rule.id)
    with pytest.raises(ProtectedResourceError):
        app.rules.delete(rule.id)
    assert rule.is_active
    assert rule.id in app.rules


def test_protected_rule_value_can_change_but_not_category(app):
    rule = app.rules.find_by_key(RULE_SET_WIN_POINTS)
    app.rules.update(rule.id, value=21)
    assert app.rules.rule_set.match_rules().winning_score == 21
    with pytest.raises(ProtectedResourceError):
        app.rules.update(rule.id, category="custom")
    with pytest.raises(ValidationError):
        app.rules.update(rule.id, value=0)
    assert rule.value == 21


def test_custom_rule_lifecycle(app, recorded):
    rule = app.rules.create("Áo đồng phục", "Bắt buộc", category="custom")
    assert rule.key is None
    with pytest.raises(ValidationError):
        app.rules.create("áo đồng phục", 1)
    app.rules.deactivate(rule.id)
    assert not rule.is_active
    app.rules.activate(rule.id)
    app.rules.delete(rule.id)
    assert rule.id not in app.rules
    assert _types(recorded) == [
        EventType.RULE_CREATED,
        EventType.RULE_DEACTIVATED,
        EventType.RULE_ACTIVATED,
        EventType.RULE_DELETED,
    ]


def test_rule_search_and_reset(app):
    app.rules.create("Khăn lau", 2, category=RuleCategory.CUSTOM, description="Số khăn mỗi bàn")
    assert [r.name for r in app.rules.search("khăn")] == ["Khăn lau"]
    assert len(app.rules.search(category="timing")) == 2
    app.rules.reset_to_defaults()
    assert app.rules.search("khăn") == []
    assert len(app.rules) == 10
