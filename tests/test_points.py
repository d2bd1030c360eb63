from datetime import datetime, timezone

import pytest

from pingpongclub.models.enums import MatchType, Rank
from pingpongclub.models.participant import Double, Player, Team
from pingpongclub.ranking import (
    average_rank,
    derive_rank,
    player_points_earned,
    strength_multiplier,
    strength_points_earned,
)


def _player(name, rank=Rank.BEGINNER):
    return Player(name, f"{name.lower()}@pingpong.example", "12 Phố Huế, Hà Nội", rank=rank)


def day(number):
    return datetime(2025, 3, number, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "match_type,rank,expected",
    [
        (MatchType.SINGLES, Rank.BEGINNER, 10),
        (MatchType.SINGLES, Rank.INTERMEDIATE, 12),
        (MatchType.SINGLES, Rank.ADVANCED, 15),
        (MatchType.SINGLES, Rank.PROFESSIONAL, 20),
        (MatchType.DOUBLES, Rank.INTERMEDIATE, 10),
        (MatchType.DOUBLES, Rank.ADVANCED, 12),
        (MatchType.TEAMS, Rank.INTERMEDIATE, 7),
        (MatchType.TEAMS, Rank.PROFESSIONAL, 12),
    ],
)
def test_player_points_scale_with_opponent_rank(match_type, rank, expected):
    assert player_points_earned(match_type, rank) == expected


def test_opponent_without_rank_counts_as_beginner():
    assert player_points_earned(MatchType.SINGLES, None) == 10


def test_strength_multiplier_is_clamped():
    assert strength_multiplier(100, 150) == 1.5
    assert strength_multiplier(10, 100) == 2.0
    assert strength_multiplier(100, 10) == 0.5
    assert strength_multiplier(0, 0) == 0.5


def test_strength_points_round_half_up():
    assert strength_points_earned(15, 0, 0) == 8
    assert strength_points_earned(15, 100, 150) == 23
    assert strength_points_earned(20, 50, 50) == 20


def test_rank_thresholds():
    assert derive_rank(0) is Rank.BEGINNER
    assert derive_rank(199) is Rank.BEGINNER
    assert derive_rank(200) is Rank.INTERMEDIATE
    assert derive_rank(499) is Rank.INTERMEDIATE
    assert derive_rank(500) is Rank.ADVANCED
    assert derive_rank(999) is Rank.ADVANCED
    assert derive_rank(1000) is Rank.PROFESSIONAL


def test_average_rank():
    assert average_rank([Rank.BEGINNER, Rank.ADVANCED]) is Rank.INTERMEDIATE
    assert average_rank([Rank.BEGINNER, Rank.INTERMEDIATE]) is Rank.INTERMEDIATE
    assert average_rank([Rank.PROFESSIONAL]) is Rank.PROFESSIONAL
    assert average_rank([]) is None


def test_player_win_and_loss_update_counters():
    lan = _player("Lan")
    minh = _player("Minh", rank=Rank.ADVANCED)

    entry = lan.add_match_result(
        True, minh, MatchType.SINGLES, "3-1", date=day(1), match_id="m1"
    )
    assert entry.points_earned == 15
    assert entry.opponent == minh.ref
    assert entry.opponent_name == "Minh"
    lan.add_match_result(False, minh, MatchType.SINGLES, "0-3", date=day(2))
    lan.add_match_result(True, minh, MatchType.SINGLES, "3-2", date=day(3))

    assert lan.points == 30
    assert (lan.matches_played, lan.matches_won, lan.matches_lost) == (3, 2, 1)
    assert lan.win_rate == 67
    assert lan.statistics()["totalPointsEarned"] == 30
    assert [e.score for e in lan.recent_matches(2)] == ["3-2", "0-3"]


def test_loss_earns_nothing():
    lan = _player("Lan")
    entry = lan.add_match_result(False, _player("Minh"), MatchType.SINGLES, "1-3")
    assert entry.points_earned == 0
    assert lan.points == 0
    assert lan.win_rate == 0


def test_player_rank_follows_points():
    lan = _player("Lan")
    lan.points = 250
    assert lan.update_rank() is True
    assert lan.rank is Rank.INTERMEDIATE
    assert lan.update_rank() is False


def test_double_points_use_relative_strength():
    first = Double("p1", "p2", name="Lan & Minh")
    second = Double("p3", "p4", name="Hoa & Nam")
    first.points, second.points = 100, 150
    first.add_match_result(True, second, MatchType.DOUBLES, "3-0")
    assert first.points == 123


def test_team_points_use_relative_strength():
    first = Team("Đội Sấm Sét", ["p1", "p2", "p3"])
    second = Team("Đội Gió", ["p4", "p5", "p6"])
    first.add_match_result(True, second, MatchType.TEAMS, "3-2")
    assert first.points == 10


def test_average_points_per_match_rounds_half_up():
    double = Double("p1", "p2", name="Lan & Minh")
    double.points, double.matches_played = 5, 2
    assert double.statistics()["averagePointsPerMatch"] == 3

    team = Team("Đội Sấm Sét", ["p1", "p2", "p3"])
    team.points, team.matches_played = 25, 10
    assert team.statistics()["averagePointsPerMatch"] == 3
    assert team.statistics()["playerCount"] == 3


def test_status_label():
    lan = _player("Lan")
    assert lan.status_label() == "Mới"
    lan.matches_played, lan.matches_won = 10, 8
    lan.calculate_win_rate()
    assert lan.status_label() == "Xuất sắc"
    lan.matches_won = 3
    lan.calculate_win_rate()
    assert lan.status_label() == "Cần cải thiện"
