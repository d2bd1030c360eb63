"""A roster of three or four players competing as one side."""

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
from typing import Any, Dict, List, Optional

from pingpongclub.constants import TEAM_BASE_POINTS, TEAM_MAX_PLAYERS, TEAM_MIN_PLAYERS
from pingpongclub.exceptions import ValidationError
from pingpongclub.models.enums import MatchType, ParticipantKind
from pingpongclub.models.participant.base import Participant
from pingpongclub.ranking.points import strength_points_earned
from pingpongclub.utils import round_half_up
from pingpongclub.utils.validation import validate_name


class Team(Participant):
    """A team of players.

    The first id in ``player_ids`` is the captain. Removing the captain
    promotes the next player.

    Attributes:
        player_ids: Ordered, unique player ids (captain first)
        description: Free text
        is_active: Whether the team may be entered in matches
    """

    kind = ParticipantKind.TEAM

    def __init__(
        self,
        name: str,
        player_ids: List[str],
        description: str = "",
        participant_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        super().__init__(name, participant_id=participant_id, created_at=created_at)
        self.player_ids: List[str] = [pid for pid in player_ids if pid]
        self.description: str = description or ""
        self.is_active: bool = True

    # ========== Roster ==========

    @property
    def captain_id(self) -> Optional[str]:
        return self.player_ids[0] if self.player_ids else None

    @property
    def player_count(self) -> int:
        return len(self.player_ids)

    def has_player(self, player_id: str) -> bool:
        return player_id in self.player_ids

    def has_minimum_players(self) -> bool:
        return self.player_count >= TEAM_MIN_PLAYERS

    def is_full(self) -> bool:
        return self.player_count >= TEAM_MAX_PLAYERS

    def add_player(self, player_id: str) -> None:
        """Append a player to the roster.

        Raises:
            ValidationError: If the team is full or already has the player
        """
        if self.is_full():
            raise ValidationError(f"Team {self.name} already has {TEAM_MAX_PLAYERS} players")
        if self.has_player(player_id):
            raise ValidationError(f"Player {player_id} is already in team {self.name}")
        self.player_ids.append(player_id)
        self.touch()

    def remove_player(self, player_id: str) -> bool:
        """Remove a player; later players shift up.

        Returns:
            False if the player was not on the roster
        """
        if not self.has_player(player_id):
            return False
        self.player_ids.remove(player_id)
        self.touch()
        return True

    def set_captain(self, player_id: str) -> None:
        """Make ``player_id`` captain; the previous captain moves to the back."""
        if not self.has_player(player_id):
            raise ValidationError(f"Player {player_id} is not in team {self.name}")
        if self.captain_id == player_id:
            return
        previous = self.player_ids[0]
        self.player_ids.remove(player_id)
        self.player_ids[0] = player_id
        self.player_ids.append(previous)
        self.touch()

    def activate(self) -> None:
        self.is_active = True
        self.touch()

    def deactivate(self) -> None:
        self.is_active = False
        self.touch()

    # ========== Results ==========

    def calculate_points_earned(self, opponent: Participant, match_type: MatchType) -> int:
        return strength_points_earned(TEAM_BASE_POINTS, self.points, opponent.points)

    def statistics(self) -> Dict[str, Any]:
        stats = super().statistics()
        stats["playerCount"] = self.player_count
        stats["averagePointsPerMatch"] = (
            round_half_up(self.points / self.matches_played) if self.matches_played else 0
        )
        return stats

    def matches_search(self, term: str) -> bool:
        term = term.lower()
        return term in self.name.lower() or term in self.description.lower()

    def validate(self) -> List[str]:
        errors = []
        result = validate_name(self.name, field_name="Team name")
        if not result:
            errors.append(result.error_message)
        if self.player_count < TEAM_MIN_PLAYERS:
            errors.append(f"A team needs at least {TEAM_MIN_PLAYERS} players")
        if self.player_count > TEAM_MAX_PLAYERS:
            errors.append(f"A team can have at most {TEAM_MAX_PLAYERS} players")
        if len(set(self.player_ids)) != self.player_count:
            errors.append("A player cannot appear twice in a team")
        return errors

    # ========== Serialization ==========

    def to_dict(self) -> Dict[str, Any]:
        data = self._common_dict()
        data.update(
            {
                "playerIds": list(self.player_ids),
                "description": self.description,
                "isActive": self.is_active,
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Team":
        team = cls(
            name=data["name"],
            player_ids=data.get("playerIds") or [],
            description=data.get("description", ""),
            participant_id=data.get("id"),
        )
        team.is_active = data.get("isActive", True)
        team._restore_common(data)
        return team
