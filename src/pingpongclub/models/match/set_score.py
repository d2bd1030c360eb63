"""Score of a single set."""

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

from pingpongclub.models.enums import Side
from pingpongclub.utils import from_iso, to_iso


@dataclass
class SetScore:
    """Represents one set of a match.

    Attributes
    ----------
    number : int
        1-based position of the set in the match.
    score1 : int
        Points of side one.
    score2 : int
        Points of side two.
    completed : bool
        Whether the set has been decided.
    winner : Side or None
        Side that took the set, once decided.
    start_time : datetime or None
        When the set was opened.
    end_time : datetime or None
        When the set was decided.
    """

    number: int
    score1: int = 0
    score2: int = 0
    completed: bool = False
    winner: Optional[Side] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        return self.score1 == 0 and self.score2 == 0

    def score_for(self, side: Side) -> int:
        return self.score1 if side is Side.ONE else self.score2

    def to_dict(self) -> Dict[str, Any]:
        """Serialize set score to dictionary."""
        return {
            "setNumber": self.number,
            "participant1Score": self.score1,
            "participant2Score": self.score2,
            "completed": self.completed,
            "winner": self.winner.value if self.winner else None,
            "startTime": to_iso(self.start_time),
            "endTime": to_iso(self.end_time),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SetScore":
        """Deserialize set score from dictionary."""
        winner = data.get("winner")
        return cls(
            number=data["setNumber"],
            score1=data.get("participant1Score", 0),
            score2=data.get("participant2Score", 0),
            completed=data.get("completed", False),
            winner=Side(winner) if winner else None,
            start_time=from_iso(data.get("startTime")),
            end_time=from_iso(data.get("endTime")),
        )
