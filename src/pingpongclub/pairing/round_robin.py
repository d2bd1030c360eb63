"""Round-robin match generation."""

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

from typing import List, Optional

from pingpongclub.models.enums import MatchType
from pingpongclub.models.match import Match, MatchRules
from pingpongclub.models.participant.ref import ParticipantRef
from pingpongclub.utils import setup_logger

logger = setup_logger(__name__)


def create_round_robin_matches(
    participants: List[ParticipantRef],
    tournament_id: str,
    match_type: MatchType,
    rules: Optional[MatchRules] = None,
) -> List[Match]:
    """Create one match for every unordered pair of participants.

    All ``n * (n - 1) / 2`` matches belong to round 1 and come out in
    registration order: the first participant against everyone after it,
    then the second, and so on.

    Args:
        participants: Registered participants, in registration order
        tournament_id: Owning tournament
        match_type: Discipline of the tournament
        rules: Scoring snapshot copied into every match

    Returns:
        The generated matches
    """
    matches: List[Match] = []
    for i, first in enumerate(participants):
        for j in range(i + 1, len(participants)):
            matches.append(
                Match(
                    match_type=match_type,
                    participant1=first,
                    participant2=participants[j],
                    tournament_id=tournament_id,
                    rules=rules,
                    match_id=f"match_{tournament_id}_{i}_{j}",
                    round_number=1,
                    match_number=len(matches) + 1,
                )
            )

    logger.info(
        "Generated %s round-robin matches for %s participants",
        len(matches),
        len(participants),
    )
    return matches
