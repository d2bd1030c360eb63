"""Standings table built from completed tournament matches."""

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

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pingpongclub.constants import (
    STANDING_DRAW_POINTS,
    STANDING_LOSS_POINTS,
    STANDING_WIN_POINTS,
)
from pingpongclub.models.enums import MatchStatus
from pingpongclub.models.match import Match
from pingpongclub.models.participant.ref import ParticipantRef


@dataclass
class StandingEntry:
    """One participant's line in the standings.

    Attributes
    ----------
    participant : ParticipantRef
        Whose line this is.
    played, won, lost, drawn : int
        Completed matches and their outcomes.
    points : int
        3 per win, 1 per draw, 0 per loss.
    sets_won, sets_lost : int
        Sets taken and conceded.
    games_won, games_lost : int
        Rally points scored and conceded across all sets.
    final_rank : int or None
        1-based position, assigned when the tournament completes.
    """

    participant: ParticipantRef
    played: int = 0
    won: int = 0
    lost: int = 0
    drawn: int = 0
    points: int = 0
    sets_won: int = 0
    sets_lost: int = 0
    games_won: int = 0
    games_lost: int = 0
    final_rank: Optional[int] = None

    @property
    def set_difference(self) -> int:
        return self.sets_won - self.sets_lost

    @property
    def game_difference(self) -> int:
        return self.games_won - self.games_lost

    def sort_key(self) -> Tuple[int, int, int, int]:
        return (-self.points, -self.won, -self.set_difference, -self.game_difference)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize standing entry to dictionary."""
        return {
            "participant": self.participant.to_dict(),
            "matchesPlayed": self.played,
            "wins": self.won,
            "losses": self.lost,
            "draws": self.drawn,
            "points": self.points,
            "setsWon": self.sets_won,
            "setsLost": self.sets_lost,
            "gamesWon": self.games_won,
            "gamesLost": self.games_lost,
            "finalRank": self.final_rank,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StandingEntry":
        """Deserialize standing entry from dictionary."""
        return cls(
            participant=ParticipantRef.from_dict(data["participant"]),
            played=data.get("matchesPlayed", 0),
            won=data.get("wins", 0),
            lost=data.get("losses", 0),
            drawn=data.get("draws", 0),
            points=data.get("points", 0),
            sets_won=data.get("setsWon", 0),
            sets_lost=data.get("setsLost", 0),
            games_won=data.get("gamesWon", 0),
            games_lost=data.get("gamesLost", 0),
            final_rank=data.get("finalRank"),
        )


def calculate_standings(
    tournament_id: str,
    participants: List[ParticipantRef],
    matches: Iterable[Match],
) -> List[StandingEntry]:
    """Aggregate completed matches of one tournament into a sorted table.

    Only matches between two registered participants count. Entries are
    ordered by points, wins, set difference and game difference, all
    descending; remaining ties keep registration order.
    """
    entries: Dict[ParticipantRef, StandingEntry] = {
        ref: StandingEntry(participant=ref) for ref in participants
    }

    for match in matches:
        if match.tournament_id != tournament_id or match.status is not MatchStatus.COMPLETED:
            continue
        first = entries.get(match.participant1)
        second = entries.get(match.participant2)
        if first is None or second is None:
            continue

        first.played += 1
        second.played += 1
        if match.winner is not None and match.winner == match.participant1:
            _record_win(first, second)
        elif match.winner is not None and match.winner == match.participant2:
            _record_win(second, first)
        else:
            first.drawn += 1
            second.drawn += 1
            first.points += STANDING_DRAW_POINTS
            second.points += STANDING_DRAW_POINTS

        first.sets_won += match.sets_won1
        first.sets_lost += match.sets_won2
        second.sets_won += match.sets_won2
        second.sets_lost += match.sets_won1
        for set_score in match.sets:
            first.games_won += set_score.score1
            first.games_lost += set_score.score2
            second.games_won += set_score.score2
            second.games_lost += set_score.score1

    # sorted() is stable, so ties keep registration order
    return sorted(entries.values(), key=StandingEntry.sort_key)


def _record_win(winner: StandingEntry, loser: StandingEntry) -> None:
    winner.won += 1
    winner.points += STANDING_WIN_POINTS
    loser.lost += 1
    loser.points += STANDING_LOSS_POINTS
