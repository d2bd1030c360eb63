"""Single-elimination bracket generation.

The entrant list is padded with byes to the next power of two. Byes go to
the earliest-registered entrants, so a bye never meets another bye in the
first round. Each round pairs consecutive slots:

* two entrants (or winners-to-be) produce a match;
* an entrant against a bye advances without a match record;
* two byes produce a bye.

A slot may be "winner of match X". The feeding match then records the
match and side its winner moves into, via ``next_match_id`` and
``next_slot``.
"""

# Ping Pong Club
# Copyright (C) 2025  Ping Pong Club developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pingpongclub.models.enums import MatchType, Side
from pingpongclub.models.match import Match, MatchRules
from pingpongclub.models.participant.ref import ParticipantRef
from pingpongclub.utils import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class BracketSlot:
    """A position in the bracket: a known entrant or the winner of a match."""

    ref: Optional[ParticipantRef] = None
    feeder_match_id: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.ref is None

    def __str__(self) -> str:
        if self.ref is not None:
            return str(self.ref)
        return f"winner of {self.feeder_match_id}"


@dataclass
class BracketPairing:
    """Two slots meeting in one round. ``None`` slots are byes.

    Attributes
    ----------
    round : int
        Round number, starting at 1.
    slot1 : BracketSlot or None
        Upper slot.
    slot2 : BracketSlot or None
        Lower slot.
    match_id : str or None
        Match created for this pairing, if both slots were filled.
    advanced : BracketSlot or None
        Slot moving on without a match.
    """

    round: int
    slot1: Optional[BracketSlot]
    slot2: Optional[BracketSlot]
    match_id: Optional[str] = None
    advanced: Optional[BracketSlot] = None

    @property
    def is_bye(self) -> bool:
        return self.match_id is None


@dataclass
class BracketPlan:
    """Every round of a generated bracket and the matches it needs."""

    rounds: List[List[BracketPairing]] = field(default_factory=list)
    matches: List[Match] = field(default_factory=list)

    @property
    def round_count(self) -> int:
        return len(self.rounds)

    def matches_in_round(self, round_number: int) -> List[Match]:
        return [m for m in self.matches if m.round == round_number]

    @property
    def final_match(self) -> Optional[Match]:
        return self.matches[-1] if self.matches else None


def next_power_of_two(n: int) -> int:
    size = 1
    while size < n:
        size *= 2
    return size


def seed_slots(participants: List[ParticipantRef]) -> List[Optional[BracketSlot]]:
    """Pad entrants with byes to a power of two, one bye per top seed."""
    size = next_power_of_two(len(participants))
    byes = size - len(participants)
    slots: List[Optional[BracketSlot]] = []
    for index, ref in enumerate(participants):
        slots.append(BracketSlot(ref=ref))
        if index < byes:
            slots.append(None)
    return slots


def create_single_elimination_bracket(
    participants: List[ParticipantRef],
    tournament_id: str,
    match_type: MatchType,
    rules: Optional[MatchRules] = None,
) -> BracketPlan:
    """Build every round of a knockout bracket.

    Args:
        participants: Registered entrants, best seed first
        tournament_id: Owning tournament
        match_type: Discipline of the tournament
        rules: Scoring snapshot copied into every match

    Returns:
        BracketPlan with the pairings of each round and the created matches
    """
    plan = BracketPlan()
    if len(participants) < 2:
        return plan

    matches_by_id: Dict[str, Match] = {}
    slots = seed_slots(participants)
    round_number = 1

    while len(slots) > 1:
        next_slots: List[Optional[BracketSlot]] = []
        pairings: List[BracketPairing] = []
        match_count = 0

        for index in range(0, len(slots), 2):
            slot1, slot2 = slots[index], slots[index + 1]
            pairing = BracketPairing(round=round_number, slot1=slot1, slot2=slot2)

            if slot1 is not None and slot2 is not None:
                match_count += 1
                match = Match(
                    match_type=match_type,
                    participant1=slot1.ref,
                    participant2=slot2.ref,
                    tournament_id=tournament_id,
                    rules=rules,
                    match_id=f"match_{tournament_id}_r{round_number}_{match_count}",
                    round_number=round_number,
                    match_number=match_count,
                )
                for side, slot in ((Side.ONE, slot1), (Side.TWO, slot2)):
                    if slot.feeder_match_id is not None:
                        feeder = matches_by_id[slot.feeder_match_id]
                        feeder.next_match_id = match.id
                        feeder.next_slot = side
                matches_by_id[match.id] = match
                plan.matches.append(match)
                pairing.match_id = match.id
                next_slots.append(BracketSlot(feeder_match_id=match.id))
            else:
                pairing.advanced = slot1 if slot1 is not None else slot2
                next_slots.append(pairing.advanced)

            pairings.append(pairing)

        plan.rounds.append(pairings)
        slots = next_slots
        round_number += 1

    logger.info(
        "Generated elimination bracket: %s entrants, %s rounds, %s matches",
        len(participants),
        plan.round_count,
        len(plan.matches),
    )
    return plan
