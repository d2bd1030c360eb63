"""A club member playing singles, or as part of a double or team."""

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

from pingpongclub.models.enums import MatchType, ParticipantKind, Rank
from pingpongclub.models.participant.base import Participant
from pingpongclub.ranking.points import derive_rank, player_points_earned
from pingpongclub.utils import setup_logger
from pingpongclub.utils.validation import (
    validate_address,
    validate_choice,
    validate_email,
    validate_name,
)

logger = setup_logger(__name__)


class Player(Participant):
    """Represents a club member.

    Attributes:
        email: Contact email, unique across the club
        address: Postal address
        rank: Current rank tier
    """

    kind = ParticipantKind.PLAYER

    def __init__(
        self,
        name: str,
        email: str,
        address: str,
        rank: Rank = Rank.BEGINNER,
        participant_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        super().__init__(name, participant_id=participant_id, created_at=created_at)
        self.email: str = email.strip() if email else ""
        self.address: str = address.strip() if address else ""
        self.rank: Rank = rank

    def calculate_points_earned(self, opponent: Participant, match_type: MatchType) -> int:
        return player_points_earned(match_type, getattr(opponent, "rank", None))

    def update_rank(self) -> bool:
        """Re-derive the rank tier from points.

        Returns:
            True if the tier changed
        """
        old_rank = self.rank
        self.rank = derive_rank(self.points)
        if self.rank is not old_rank:
            self.touch()
            logger.info(
                "Rank of %s changed from %s to %s",
                self.name,
                old_rank.value,
                self.rank.value,
            )
            return True
        return False

    def statistics(self) -> Dict[str, Any]:
        stats = super().statistics()
        stats["rank"] = self.rank.value
        return stats

    def matches_search(self, term: str) -> bool:
        term = term.lower()
        return (
            term in self.name.lower()
            or term in self.email.lower()
            or term in self.address.lower()
            or term in self.rank.value.lower()
        )

    def validate(self) -> List[str]:
        errors = []
        for result in (
            validate_name(self.name),
            validate_email(self.email, required=True),
            validate_address(self.address),
            validate_choice(self.rank, list(Rank), "Rank"),
        ):
            if not result:
                errors.append(result.error_message)
        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Serialize player data to dictionary format."""
        data = self._common_dict()
        data.update(
            {
                "email": self.email,
                "address": self.address,
                "rank": self.rank.value,
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        """Create a Player instance from serialized dictionary data."""
        player = cls(
            name=data["name"],
            email=data.get("email", ""),
            address=data.get("address", ""),
            rank=Rank(data.get("rank", Rank.BEGINNER.value)),
            participant_id=data.get("id"),
        )
        player._restore_common(data)
        return player
