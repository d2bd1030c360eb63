"""A fixed pair of players entered in doubles."""

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

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pingpongclub.constants import DOUBLE_BASE_POINTS
from pingpongclub.models.enums import MatchType, ParticipantKind
from pingpongclub.models.participant.base import Participant
from pingpongclub.ranking.points import strength_points_earned
from pingpongclub.utils import round_half_up
from pingpongclub.utils.validation import validate_name


class Double(Participant):
    """Two players competing together.

    Attributes:
        player1_id: First player
        player2_id: Second player
        is_active: Whether the pair may be entered in matches
    """

    kind = ParticipantKind.DOUBLE

    def __init__(
        self,
        player1_id: str,
        player2_id: str,
        name: Optional[str] = None,
        participant_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        super().__init__(name or "", participant_id=participant_id, created_at=created_at)
        self.player1_id: str = player1_id
        self.player2_id: str = player2_id
        self.is_active: bool = True
        if not self.name:
            self.name = f"Cặp đôi {self.id[-4:]}"

    @property
    def player_ids(self) -> Tuple[str, str]:
        return (self.player1_id, self.player2_id)

    def has_player(self, player_id: str) -> bool:
        return player_id in self.player_ids

    def same_pair(self, player1_id: str, player2_id: str) -> bool:
        """True when this double is made of the two players, in either order."""
        return {self.player1_id, self.player2_id} == {player1_id, player2_id}

    def set_name_from_players(self, player1_name: str, player2_name: str) -> None:
        self.name = f"{player1_name} & {player2_name}"
        self.touch()

    def calculate_points_earned(self, opponent: Participant, match_type: MatchType) -> int:
        return strength_points_earned(DOUBLE_BASE_POINTS, self.points, opponent.points)

    def statistics(self) -> Dict[str, Any]:
        stats = super().statistics()
        stats["averagePointsPerMatch"] = (
            round_half_up(self.points / self.matches_played) if self.matches_played else 0
        )
        return stats

    def activate(self) -> None:
        self.is_active = True
        self.touch()

    def deactivate(self) -> None:
        self.is_active = False
        self.touch()

    def validate(self) -> List[str]:
        errors = []
        if not self.player1_id:
            errors.append("First player is required")
        if not self.player2_id:
            errors.append("Second player is required")
        if self.player1_id and self.player1_id == self.player2_id:
            errors.append("A double needs two different players")
        result = validate_name(self.name)
        if not result:
            errors.append(result.error_message)
        return errors

    def to_dict(self) -> Dict[str, Any]:
        data = self._common_dict()
        data.update(
            {
                "player1Id": self.player1_id,
                "player2Id": self.player2_id,
                "isActive": self.is_active,
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Double":
        double = cls(
            player1_id=data["player1Id"],
            player2_id=data["player2Id"],
            name=data.get("name"),
            participant_id=data.get("id"),
        )
        double.is_active = data.get("isActive", True)
        double._restore_common(data)
        return double
