from pingpongclub.models.enums import MatchType, Side
from pingpongclub.models.match import MatchRules
from pingpongclub.models.participant import ParticipantRef
from pingpongclub.pairing import (
    create_round_robin_matches,
    create_single_elimination_bracket,
    next_power_of_two,
    seed_slots,
)


def _players(count):
    return [ParticipantRef.player(f"player_{i}") for i in range(1, count + 1)]


def test_round_robin_pairs_everyone_once():
    entrants = _players(4)
    matches = create_round_robin_matches(entrants, "t1", MatchType.SINGLES)

    assert len(matches) == 6
    assert all(m.round == 1 for m in matches)
    assert [m.match_number for m in matches] == [1, 2, 3, 4, 5, 6]
    pairs = {frozenset((m.participant1, m.participant2)) for m in matches}
    assert len(pairs) == 6
    assert (matches[0].participant1, matches[0].participant2) == (entrants[0], entrants[1])
    assert (matches[-1].participant1, matches[-1].participant2) == (entrants[2], entrants[3])


def test_round_robin_copies_rules_and_tournament():
    rules = MatchRules(best_of=3)
    matches = create_round_robin_matches(_players(3), "t1", MatchType.SINGLES, rules)
    assert all(m.tournament_id == "t1" for m in matches)
    assert all(m.rules.best_of == 3 for m in matches)


def test_round_robin_needs_two_entrants():
    assert create_round_robin_matches(_players(1), "t1", MatchType.SINGLES) == []


def test_next_power_of_two():
    assert [next_power_of_two(n) for n in (1, 2, 3, 5, 8, 9)] == [1, 2, 4, 8, 8, 16]


def test_byes_follow_top_seeds():
    slots = seed_slots(_players(5))
    assert len(slots) == 8
    assert [s is None for s in slots] == [
        False, True, False, True, False, True, False, False,
    ]


def test_five_entrant_bracket():
    entrants = _players(5)
    plan = create_single_elimination_bracket(entrants, "t1", MatchType.SINGLES)

    assert plan.round_count == 3
    first_round = plan.rounds[0]
    assert len(first_round) == 4
    assert [p.is_bye for p in first_round] == [True, True, True, False]
    assert [p.advanced.ref for p in first_round[:3]] == entrants[:3]

    assert len(plan.matches_in_round(1)) == 1
    assert len(plan.matches_in_round(2)) == 2
    assert len(plan.matches_in_round(3)) == 1
    assert len(plan.matches) == 4

    opener = plan.matches_in_round(1)[0]
    assert (opener.participant1, opener.participant2) == (entrants[3], entrants[4])

    semi1, semi2 = plan.matches_in_round(2)
    assert (semi1.participant1, semi1.participant2) == (entrants[0], entrants[1])
    assert semi2.participant1 == entrants[2]
    assert semi2.participant2 is None
    assert opener.next_match_id == semi2.id
    assert opener.next_slot is Side.TWO

    final = plan.final_match
    assert final.round == 3
    assert final.participant1 is None and final.participant2 is None
    assert (semi1.next_match_id, semi1.next_slot) == (final.id, Side.ONE)
    assert (semi2.next_match_id, semi2.next_slot) == (final.id, Side.TWO)
    assert final.next_match_id is None


def test_four_entrant_bracket_has_no_byes():
    plan = create_single_elimination_bracket(_players(4), "t1", MatchType.SINGLES)
    assert plan.round_count == 2
    assert not any(p.is_bye for p in plan.rounds[0])
    assert len(plan.matches) == 3


def test_bracket_with_single_entrant_is_empty():
    plan = create_single_elimination_bracket(_players(1), "t1", MatchType.SINGLES)
    assert plan.round_count == 0
    assert plan.final_match is None
