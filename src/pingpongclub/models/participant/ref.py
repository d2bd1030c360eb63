"""References to participants and the match-history entries they carry."""

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
from datetime import datetime
from typing import Any, Dict, Optional

from pingpongclub.models.enums import MatchType, ParticipantKind
from pingpongclub.utils import from_iso, to_iso


@dataclass(frozen=True)
class ParticipantRef:
    """Tagged reference to a player, double or team.

    Attributes
    ----------
    kind : ParticipantKind
        Which registry the id belongs to.
    id : str
        Id of the entity inside that registry.
    """

    kind: ParticipantKind
    id: str

    @classmethod
    def player(cls, participant_id: str) -> "ParticipantRef":
        return cls(ParticipantKind.PLAYER, participant_id)

    @classmethod
    def double(cls, participant_id: str) -> "ParticipantRef":
        return cls(ParticipantKind.DOUBLE, participant_id)

    @classmethod
    def team(cls, participant_id: str) -> "ParticipantRef":
        return cls(ParticipantKind.TEAM, participant_id)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "id": self.id}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParticipantRef":
        return cls(kind=ParticipantKind(data["kind"]), id=data["id"])

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


def ref_to_dict(ref: Optional[ParticipantRef]) -> Optional[Dict[str, Any]]:
    return ref.to_dict() if ref is not None else None


def ref_from_dict(data: Optional[Dict[str, Any]]) -> Optional[ParticipantRef]:
    return ParticipantRef.from_dict(data) if data else None


@dataclass
class MatchHistoryEntry:
    """One completed match as seen from a participant's side.

    Attributes
    ----------
    opponent : ParticipantRef
        Who the participant played.
    opponent_name : str
        Opponent's display name at the time of the match.
    is_win : bool
        Whether the participant won.
    match_type : MatchType
        Discipline of the match.
    score : str
        Set tally from this participant's side, e.g. ``"3-1"``.
    date : datetime
        When the match ended.
    points_earned : int
        Ranking points awarded (0 for a loss).
    match_id : str or None
        Match the entry was recorded from.
    """

    opponent: ParticipantRef
    opponent_name: str
    is_win: bool
    match_type: MatchType
    score: str
    date: datetime
    points_earned: int = 0
    match_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize history entry to dictionary."""
        return {
            "opponent": self.opponent.to_dict(),
            "opponentName": self.opponent_name,
            "isWin": self.is_win,
            "matchType": self.match_type.value,
            "score": self.score,
            "date": to_iso(self.date),
            "pointsEarned": self.points_earned,
            "matchId": self.match_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatchHistoryEntry":
        """Deserialize history entry from dictionary."""
        return cls(
            opponent=ParticipantRef.from_dict(data["opponent"]),
            opponent_name=data.get("opponentName", ""),
            is_win=bool(data["isWin"]),
            match_type=MatchType(data["matchType"]),
            score=data.get("score", ""),
            date=from_iso(data["date"]),
            points_earned=data.get("pointsEarned", 0),
            match_id=data.get("matchId"),
        )
