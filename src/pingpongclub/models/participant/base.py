"""Common state for anything that can stand on one side of a match."""

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

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from pingpongclub.models.enums import MatchType, ParticipantKind
from pingpongclub.models.participant.ref import MatchHistoryEntry, ParticipantRef
from pingpongclub.utils import (
    from_iso,
    generate_id,
    round_half_up,
    setup_logger,
    to_iso,
    utc_now,
)

logger = setup_logger(__name__)


class Participant(ABC):
    """Base class for players, doubles and teams.

    Holds identity, point total, win/loss counters, the derived win rate and
    the match history. Subclasses decide how many points a win is worth.

    Attributes:
        id: Unique identifier
        name: Display name
        points: Accumulated ranking points (never negative)
        matches_played: Completed matches
        matches_won: Matches won
        matches_lost: Matches lost
        win_rate: Whole percentage of matches won
        history: Chronological match results
        created_at: Creation time (UTC)
        updated_at: Last modification time (UTC)
    """

    kind: ParticipantKind = ParticipantKind.PLAYER

    def __init__(
        self,
        name: str,
        participant_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        self.id: str = participant_id or generate_id(self.kind.value)
        self.name: str = name.strip() if name else ""

        self.points: int = 0
        self.matches_played: int = 0
        self.matches_won: int = 0
        self.matches_lost: int = 0
        self.win_rate: int = 0
        self.history: List[MatchHistoryEntry] = []

        self.created_at: datetime = created_at or utc_now()
        self.updated_at: datetime = self.created_at

    @property
    def ref(self) -> ParticipantRef:
        """Tagged reference to this participant."""
        return ParticipantRef(self.kind, self.id)

    def touch(self) -> None:
        self.updated_at = utc_now()

    # ========== Results ==========

    @abstractmethod
    def calculate_points_earned(
        self, opponent: "Participant", match_type: MatchType
    ) -> int:
        """Points awarded for beating ``opponent``. Implemented per kind."""

    def calculate_win_rate(self) -> int:
        if self.matches_played == 0:
            self.win_rate = 0
        else:
            self.win_rate = round_half_up(self.matches_won / self.matches_played * 100)
        return self.win_rate

    def add_match_result(
        self,
        is_win: bool,
        opponent: "Participant",
        match_type: MatchType,
        score: str,
        date: Optional[datetime] = None,
        match_id: Optional[str] = None,
    ) -> MatchHistoryEntry:
        """Record the outcome of a completed match.

        Args:
            is_win: Whether this participant won
            opponent: The other side
            match_type: Discipline of the match
            score: Set tally from this side, e.g. ``"3-1"``
            date: When the match ended (defaults to now)
            match_id: Match the result comes from

        Returns:
            The appended history entry
        """
        points_earned = self.calculate_points_earned(opponent, match_type) if is_win else 0
        entry = MatchHistoryEntry(
            opponent=opponent.ref,
            opponent_name=opponent.name,
            is_win=is_win,
            match_type=match_type,
            score=score,
            date=date or utc_now(),
            points_earned=points_earned,
            match_id=match_id,
        )
        self.history.append(entry)

        self.matches_played += 1
        if is_win:
            self.matches_won += 1
            self.points += points_earned
        else:
            self.matches_lost += 1

        self.calculate_win_rate()
        self.touch()
        logger.debug(
            "%s %s against %s (+%s points)",
            self.name,
            "won" if is_win else "lost",
            opponent.name,
            points_earned,
        )
        return entry

    def recent_matches(self, limit: int = 5) -> List[MatchHistoryEntry]:
        return sorted(self.history, key=lambda entry: entry.date, reverse=True)[:limit]

    def statistics(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "points": self.points,
            "matchesPlayed": self.matches_played,
            "matchesWon": self.matches_won,
            "matchesLost": self.matches_lost,
            "winRate": self.win_rate,
            "totalPointsEarned": sum(e.points_earned for e in self.history),
        }

    def status_label(self) -> str:
        """Performance label shown next to the win rate."""
        if self.matches_played == 0:
            return "Mới"
        if self.win_rate >= 80:
            return "Xuất sắc"
        if self.win_rate >= 60:
            return "Tốt"
        if self.win_rate >= 40:
            return "Trung bình"
        return "Cần cải thiện"

    def matches_search(self, term: str) -> bool:
        return term.lower() in self.name.lower()

    @abstractmethod
    def validate(self) -> List[str]:
        """Return a list of problems with this participant's own fields."""

    # ========== Serialization ==========

    def _common_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "points": self.points,
            "matchesPlayed": self.matches_played,
            "matchesWon": self.matches_won,
            "matchesLost": self.matches_lost,
            "winRate": self.win_rate,
            "history": [entry.to_dict() for entry in self.history],
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }

    def _restore_common(self, data: Dict[str, Any]) -> None:
        self.points = data.get("points", 0)
        self.matches_played = data.get("matchesPlayed", 0)
        self.matches_won = data.get("matchesWon", 0)
        self.matches_lost = data.get("matchesLost", 0)
        self.win_rate = data.get("winRate", 0)
        self.history = [
            MatchHistoryEntry.from_dict(item) for item in data.get("history") or []
        ]
        self.created_at = from_iso(data.get("createdAt")) or self.created_at
        self.updated_at = from_iso(data.get("updatedAt")) or self.created_at

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a camelCase record."""

    def clone(self) -> "Participant":
        """Independent copy, for callers that must not share registry state."""
        return type(self).from_dict(self.to_dict())

    @classmethod
    @abstractmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Participant":
        """Rebuild a participant from its record."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name='{self.name}', points={self.points}, id='{self.id}')"

    def __str__(self) -> str:
        return self.name
