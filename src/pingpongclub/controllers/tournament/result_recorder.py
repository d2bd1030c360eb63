"""Result recording for completed matches.

This module applies the outcome of a completed match to both participants:
match history, win/loss counters, ranking points and, for players, the rank
tier.
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

from pingpongclub.controllers.base import ParticipantDirectory, resolve_participant
from pingpongclub.models.enums import MatchStatus, Side
from pingpongclub.models.match import Match
from pingpongclub.utils import setup_logger

logger = setup_logger(__name__)


class ResultRecorder:
    """Handles recording match results on participants.

    This class is responsible for:
    - Checking that a match is completed and both sides still exist
    - Updating both participants through their controllers
    - Preventing duplicate result recording
    """

    def __init__(self, participants: ParticipantDirectory) -> None:
        self.participants = participants

    def record(self, match: Match) -> bool:
        """Apply a completed match to both participants.

        Args:
            match: The match that just completed

        Returns:
            True if the result was applied, False if it was skipped
        """
        if match.status is not MatchStatus.COMPLETED or match.winner_side is None:
            logger.warning(f"Match {match.id} is not completed, no result to record")
            return False
        if match.results_applied:
            logger.warning(f"Results of match {match.id} were already recorded")
            return False

        sides = {
            Side.ONE: resolve_participant(self.participants, match.participant1),
            Side.TWO: resolve_participant(self.participants, match.participant2),
        }
        if sides[Side.ONE] is None or sides[Side.TWO] is None:
            logger.error(
                f"Cannot find participants of match {match.id}: "
                f"{match.participant1} and/or {match.participant2}"
            )
            return False

        winner_side = match.winner_side
        for side in (winner_side, winner_side.other):
            own = sides[side]
            opponent = sides[side.other]
            controller = self.participants[own.kind]
            controller.update_after_match(
                own.id,
                is_win=side is winner_side,
                opponent=opponent,
                match_type=match.match_type,
                score=match.score_from(side),
                date=match.end_time,
                match_id=match.id,
            )

        match.results_applied = True
        logger.debug(f"Recorded result of match {match.id}: {match.winner} won")
        return True
