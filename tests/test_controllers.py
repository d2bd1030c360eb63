from datetime import timedelta

import pytest

from conftest import make_players, play_sets
from pingpongclub.constants import RULE_SET_WIN_POINTS
from pingpongclub.events import EventType
from pingpongclub.exceptions import InvalidStateError, ValidationError
from pingpongclub.models.enums import (
    MatchStatus,
    MatchType,
    Side,
    TournamentFormat,
    TournamentStatus,
)
from pingpongclub.models.match import ScoreOutcome
from pingpongclub.models.participant import ParticipantRef
from pingpongclub.utils import utc_now

STRAIGHT_SETS = {
    Side.ONE: [(11, 4), (11, 6), (11, 8)],
    Side.TWO: [(4, 11), (6, 11), (8, 11)],
}


def _singles(app):
    lan, minh = make_players(app, 2)
    match = app.matches.create(MatchType.SINGLES, lan.ref, minh.ref)
    return lan, minh, match


def _win(app, match, side=Side.ONE):
    app.matches.start(match.id)
    play_sets(app, match.id, STRAIGHT_SETS[side])
    return match


def _tournament(app, count, tournament_format=TournamentFormat.ROUND_ROBIN):
    players = make_players(app, count)
    tournament = app.tournaments.create(
        "Giải Mùa Thu", tournament_format=tournament_format
    )
    app.tournaments.open_registration(tournament.id)
    for player in players:
        app.tournaments.add_participant(tournament.id, player.ref)
    return players, tournament


# ========== Matches ==========


def test_create_match_requires_existing_participants(app):
    (lan,) = make_players(app, 1)
    with pytest.raises(ValidationError) as excinfo:
        app.matches.create(MatchType.SINGLES, lan.ref, ParticipantRef.player("player_missing"))
    assert "does not exist" in str(excinfo.value)
    assert len(app.matches) == 0


def test_create_match_rejects_wrong_kind_and_past_date(app):
    lan, minh = make_players(app, 2)
    with pytest.raises(ValidationError):
        app.matches.create(MatchType.DOUBLES, lan.ref, minh.ref)
    with pytest.raises(ValidationError):
        app.matches.create(
            MatchType.SINGLES,
            lan.ref,
            minh.ref,
            scheduled_date=utc_now() - timedelta(hours=1),
        )
    with pytest.raises(ValidationError):
        app.matches.create("badminton", lan.ref, minh.ref)


def test_match_keeps_rules_from_creation(app):
    _, _, match = _singles(app)
    rule = app.rules.find_by_key(RULE_SET_WIN_POINTS)
    app.rules.update(rule.id, value=15)
    assert match.rules.winning_score == 11
    app.matches.start(match.id)
    update = app.matches.update_score(match.id, 11, 9)
    assert update.outcome is ScoreOutcome.SET_COMPLETED


def test_completing_match_records_results_once(app, recorded):
    lan, minh, match = _singles(app)
    _win(app, match)

    assert match.status is MatchStatus.COMPLETED
    assert match.results_applied
    assert lan.points == 10 and minh.points == 0
    assert (lan.matches_won, minh.matches_lost) == (1, 1)
    assert lan.history[0].score == "3-0"
    assert minh.history[0].score == "0-3"
    assert lan.history[0].match_id == match.id

    types = [e.type for e in recorded]
    assert types[-5:] == [
        EventType.MATCH_SCORE_UPDATED,
        EventType.MATCH_SET_COMPLETED,
        EventType.MATCH_COMPLETED,
        EventType.PLAYER_MATCH_RESULT,
        EventType.PLAYER_MATCH_RESULT,
    ]
    assert types.count(EventType.MATCH_COMPLETED) == 1

    assert app.results.record(match) is False
    assert lan.points == 10
    assert len(lan.history) == 1


def test_loser_side_two_winner(app):
    lan, minh, match = _singles(app)
    _win(app, match, Side.TWO)
    assert match.winner == minh.ref
    assert minh.points == 10
    assert lan.win_rate == 0


def test_end_match_early_records_results(app):
    lan, minh, match = _singles(app)
    app.matches.start(match.id)
    app.matches.update_score(match.id, 11, 7)
    app.matches.update_score(match.id, 3, 1)
    app.matches.end(match.id)
    assert match.winner == lan.ref
    assert [s.completed for s in match.sets] == [True, False]
    assert lan.matches_won == 1


def test_increment_through_controller(app, recorded):
    _, _, match = _singles(app)
    app.matches.start(match.id)
    for _ in range(11):
        update = app.matches.increment_score(match.id, Side.TWO)
    assert update.set_winner is Side.TWO
    assert match.sets_won2 == 1
    app.matches.decrement_score(match.id, Side.ONE)
    assert recorded[-1].type is EventType.MATCH_SCORE_UPDATED
    assert recorded[-1].payload["setNumber"] == 2


def test_failed_score_update_changes_nothing(app, storage):
    _, _, match = _singles(app)
    app.matches.start(match.id)
    app.matches.update_score(match.id, 5, 5)
    saves = storage.save_count
    with pytest.raises(ValidationError):
        app.matches.update_score(match.id, 25, 23)
    assert storage.save_count == saves
    assert (match.current_set.score1, match.current_set.score2) == (5, 5)


def test_match_edit_and_delete_rules(app):
    _, _, match = _singles(app)
    app.matches.update(match.id, venue="Bàn 3", referee="Ông Tư")
    assert match.venue == "Bàn 3"
    with pytest.raises(ValidationError):
        app.matches.update(match.id, status=MatchStatus.COMPLETED)
    assert match.status is MatchStatus.SCHEDULED

    app.matches.start(match.id)
    with pytest.raises(InvalidStateError):
        app.matches.delete(match.id)
    play_sets(app, match.id, STRAIGHT_SETS[Side.ONE])
    with pytest.raises(InvalidStateError):
        app.matches.update(match.id, notes="sửa kết quả")
    app.matches.delete(match.id)
    assert match.id not in app.matches


def test_postpone_and_reschedule(app, recorded):
    _, _, match = _singles(app)
    app.matches.postpone(match.id, reason="mất điện")
    assert match.status is MatchStatus.POSTPONED
    new_date = utc_now() + timedelta(days=1)
    app.matches.reschedule(match.id, new_date, venue="Bàn 1")
    assert match.status is MatchStatus.SCHEDULED
    assert [e.type for e in recorded][-2:] == [
        EventType.MATCH_POSTPONED,
        EventType.MATCH_RESCHEDULED,
    ]
    app.matches.cancel(match.id, reason="trùng lịch")
    assert match.notes == "Hủy: trùng lịch"


def test_match_queries(app):
    lan, minh, hoa = make_players(app, 3)
    now = utc_now()
    later = app.matches.create(
        MatchType.SINGLES, lan.ref, minh.ref, scheduled_date=now + timedelta(days=2)
    )
    sooner = app.matches.create(
        MatchType.SINGLES, minh.ref, hoa.ref, scheduled_date=now + timedelta(days=1), venue="Sân Huế"
    )
    undated = app.matches.create(MatchType.SINGLES, lan.ref, hoa.ref)

    assert app.matches.upcoming(now=now) == [sooner, later, undated]
    assert app.matches.upcoming(limit=1, now=now) == [sooner]
    assert app.matches.by_participant(hoa.ref) == [sooner, undated]
    assert app.matches.search("huế") == [sooner]
    assert app.matches.search("Người chơi 01") == [later, undated]

    _win(app, undated)
    assert app.matches.recent_results() == [undated]
    assert app.matches.by_status(MatchStatus.SCHEDULED) == [later, sooner]


# ========== Tournaments ==========


def test_tournament_defaults_and_lead_time(app):
    tournament = app.tournaments.create("Giải Mùa Xuân")
    assert tournament.max_participants == 32
    assert tournament.status is TournamentStatus.PLANNING

    with pytest.raises(ValidationError):
        app.tournaments.create("Giải Gấp", start_date=utc_now() + timedelta(hours=3))
    with pytest.raises(ValidationError):
        app.tournaments.create("G")
    with pytest.raises(ValidationError):
        app.tournaments.create("Giải Lạ", tournament_format="knockout")


def test_registration_checks(app):
    players, tournament = _tournament(app, 2)
    with pytest.raises(ValidationError):
        app.tournaments.add_participant(tournament.id, players[0].ref)
    with pytest.raises(ValidationError):
        app.tournaments.add_participant(tournament.id, ParticipantRef.player("player_missing"))

    double = app.doubles.create(players[0].id, players[1].id)
    with pytest.raises(ValidationError):
        app.tournaments.add_participant(tournament.id, double.ref)

    assert app.tournaments.remove_participant(tournament.id, players[1].ref) is True
    assert app.tournaments.remove_participant(tournament.id, players[1].ref) is False
    assert tournament.participants == [players[0].ref]


def test_inactive_team_cannot_register(app):
    players = make_players(app, 3)
    team = app.teams.create("Đội Sao", [p.id for p in players])
    app.teams.set_status(team.id, False)
    tournament = app.tournaments.create("Giải Đồng Đội", tournament_type="teams")
    with pytest.raises(ValidationError):
        app.tournaments.add_participant(tournament.id, team.ref)


def test_tournament_needs_two_participants(app):
    _, tournament = _tournament(app, 1)
    with pytest.raises(InvalidStateError):
        app.tournaments.start(tournament.id)
    assert tournament.status is TournamentStatus.REGISTRATION
    assert len(app.matches) == 0


def test_round_robin_tournament_flow(app, recorded):
    players, tournament = _tournament(app, 4)
    matches = app.tournaments.start(tournament.id)

    assert len(matches) == 6
    assert tournament.status is TournamentStatus.IN_PROGRESS
    assert app.matches.by_tournament(tournament.id) == matches
    assert [e.type for e in recorded].count(EventType.MATCH_CREATED) == 6
    with pytest.raises(InvalidStateError):
        app.tournaments.start(tournament.id)
    with pytest.raises(InvalidStateError):
        app.tournaments.update(tournament.id, format="single-elimination")

    for match in matches:
        _win(app, match)

    assert app.tournaments.progress(tournament.id) == {
        "totalMatches": 6,
        "completedMatches": 6,
        "percentage": 100,
    }
    assert app.tournaments.pending_matches(tournament.id) == []

    standings = app.tournaments.complete(tournament.id)
    assert tournament.status is TournamentStatus.COMPLETED
    assert [e.participant for e in standings] == [p.ref for p in players]
    assert [e.points for e in standings] == [9, 6, 3, 0]
    assert [e.final_rank for e in standings] == [1, 2, 3, 4]
    assert players[0].points == 30

    board = app.tournaments.leaderboard(tournament.id, limit=2)
    assert [(row["position"], row["name"]) for row in board] == [
        (1, "Người chơi 01"),
        (2, "Người chơi 02"),
    ]
    with pytest.raises(InvalidStateError):
        app.tournaments.update(tournament.id, name="Giải khác")


def test_standings_refresh_as_matches_complete(app):
    players, tournament = _tournament(app, 3)
    first = app.tournaments.start(tournament.id)[0]
    _win(app, first, Side.TWO)
    assert tournament.standings[0].participant == players[1].ref
    assert tournament.standings[0].won == 1


def test_tournament_matches_use_rules_at_start(app):
    _, tournament = _tournament(app, 2)
    rule = app.rules.find_by_key(RULE_SET_WIN_POINTS)
    app.rules.update(rule.id, value=7)
    (match,) = app.tournaments.start(tournament.id)
    app.rules.update(rule.id, value=11)
    assert match.rules.winning_score == 7


def test_elimination_winners_advance(app, recorded):
    players, tournament = _tournament(app, 5, TournamentFormat.SINGLE_ELIMINATION)
    app.tournaments.start(tournament.id)
    opener, semi1, semi2, final = app.matches.by_tournament(tournament.id)

    assert (opener.participant1, opener.participant2) == (players[3].ref, players[4].ref)
    with pytest.raises(InvalidStateError):
        app.matches.start(semi2.id)

    _win(app, opener, Side.TWO)
    assert semi2.participant2 == players[4].ref
    advanced = [e for e in recorded if e.type is EventType.TOURNAMENT_BRACKET_ADVANCED]
    assert advanced[-1].payload["toMatchId"] == semi2.id
    assert advanced[-1].payload["participant"] == players[4].ref

    _win(app, semi1)
    _win(app, semi2, Side.TWO)
    assert (final.participant1, final.participant2) == (players[0].ref, players[4].ref)

    _win(app, final)
    standings = app.tournaments.complete(tournament.id)
    assert standings[0].participant == players[0].ref
    assert standings[0].won == 2
    assert players[4].matches_played == 3


def test_postponed_final_still_receives_winners(app):
    _, tournament = _tournament(app, 4, TournamentFormat.SINGLE_ELIMINATION)
    app.tournaments.start(tournament.id)
    semi1, semi2, final = app.matches.by_tournament(tournament.id)

    app.matches.postpone(final.id, reason="thiếu sân")
    _win(app, semi1)
    assert semi1.status is MatchStatus.COMPLETED
    assert final.participant(semi1.next_slot) == semi1.winner
    assert final.status is MatchStatus.POSTPONED

    _win(app, semi2, Side.TWO)
    assert final.has_both_participants
    app.matches.reschedule(final.id, utc_now() + timedelta(hours=2))
    _win(app, final)
    assert final.winner == semi1.winner


def test_cancel_tournament_cancels_open_matches(app):
    _, tournament = _tournament(app, 3)
    matches = app.tournaments.start(tournament.id)
    _win(app, matches[0])

    app.tournaments.cancel(tournament.id)
    assert tournament.status is TournamentStatus.CANCELLED
    assert [m.status for m in matches] == [
        MatchStatus.COMPLETED,
        MatchStatus.CANCELLED,
        MatchStatus.CANCELLED,
    ]

    app.tournaments.delete(tournament.id)
    assert tournament.id not in app.tournaments
    assert app.matches.by_tournament(tournament.id) == []


def test_tournament_in_progress_cannot_be_deleted(app):
    _, tournament = _tournament(app, 2)
    app.tournaments.start(tournament.id)
    with pytest.raises(InvalidStateError):
        app.tournaments.delete(tournament.id)


def test_tournament_update_and_search(app):
    tournament = app.tournaments.create("Giải Mùa Hè", description="Giải nội bộ")
    app.tournaments.update(
        tournament.id, max_participants=8, metadata={"venue": "Nhà thi đấu Đà Nẵng"}
    )
    assert tournament.max_participants == 8
    assert tournament.metadata["venue"] == "Nhà thi đấu Đà Nẵng"
    with pytest.raises(ValidationError):
        app.tournaments.update(tournament.id, max_participants=1)
    assert tournament.max_participants == 8

    assert app.tournaments.search("đà nẵng") == [tournament]
    assert app.tournaments.search("nội bộ") == [tournament]
    assert app.tournaments.by_status(TournamentStatus.PLANNING) == [tournament]


def test_max_participants_cannot_drop_below_registered(app):
    _, tournament = _tournament(app, 4)
    with pytest.raises(ValidationError) as excinfo:
        app.tournaments.update(tournament.id, max_participants=2)
    assert excinfo.value.errors == [
        "4 participants are already registered, more than the maximum of 2"
    ]
    assert tournament.max_participants == 32
    app.tournaments.update(tournament.id, max_participants=4)
    assert tournament.max_participants == 4
