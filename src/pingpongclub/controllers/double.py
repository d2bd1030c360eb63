"""Doubles registry."""

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

from typing import Any, List, Optional

from pingpongclub.constants import KEY_DOUBLES
from pingpongclub.controllers.base import ParticipantController, apply_changes
from pingpongclub.controllers.player import PlayerController
from pingpongclub.events import EventBus, EventType
from pingpongclub.models.participant import Double, Player
from pingpongclub.storage import Record, StoragePort
from pingpongclub.utils import setup_logger
from pingpongclub.utils.validation import raise_if_invalid

logger = setup_logger(__name__)

DOUBLE_FIELDS = ["name", "player1_id", "player2_id", "is_active"]


class DoubleController(ParticipantController[Double]):
    """Manages pairs of players.

    A pair of players may only be registered once, in either order. Deleting
    a player deletes every double it belongs to.
    """

    storage_key = KEY_DOUBLES
    label = "double"
    result_event = EventType.DOUBLE_MATCH_RESULT

    def __init__(
        self, storage: StoragePort, events: EventBus, players: PlayerController
    ) -> None:
        super().__init__(storage, events)
        self.players = players

    def _from_record(self, record: Record) -> Double:
        return Double.from_dict(record)

    def find_pair(
        self, player1_id: str, player2_id: str, exclude_id: Optional[str] = None
    ) -> Optional[Double]:
        for double in self._items.values():
            if double.id != exclude_id and double.same_pair(player1_id, player2_id):
                return double
        return None

    def _check(self, double: Double) -> None:
        errors = double.validate()
        for player_id in double.player_ids:
            if player_id and self.players.find(player_id) is None:
                errors.append(f"Player {player_id} does not exist")
        if not errors and self.find_pair(
            double.player1_id, double.player2_id, exclude_id=double.id
        ):
            errors.append("These two players are already registered as a double")
        raise_if_invalid(errors, "Invalid double")

    # ========== Commands ==========

    def create(self, player1_id: str, player2_id: str, name: Optional[str] = None) -> Double:
        """Pair two existing players.

        Without a name the double is called ``"<player 1> & <player 2>"``.

        Raises:
            ValidationError: If a player is unknown, the players are the
                same, or the pair already exists
        """
        double = Double(player1_id, player2_id, name=name)
        self._check(double)
        if not name:
            double.set_name_from_players(
                self.players.get(player1_id).name, self.players.get(player2_id).name
            )

        self._store(double)
        self._commit(EventType.DOUBLE_CREATED, double)
        logger.info("Created double %s (%s)", double.name, double.id)
        return double

    def update(self, double_id: str, **changes: Any) -> Double:
        double = self.get(double_id)
        candidate = double.clone()
        apply_changes(candidate, changes, DOUBLE_FIELDS)
        self._check(candidate)

        apply_changes(double, changes, DOUBLE_FIELDS)
        double.touch()
        self._commit(EventType.DOUBLE_UPDATED, double, changes=sorted(changes))
        return double

    def delete(self, double_id: str) -> Double:
        double = self.get(double_id)
        self._discard(double_id)
        self._commit(EventType.DOUBLE_DELETED, double)
        logger.info("Deleted double %s (%s)", double.name, double.id)
        return double

    def handle_player_deleted(self, player: Player) -> List[Double]:
        """Delete every double ``player`` belonged to.

        Returns:
            The deleted doubles
        """
        removed = self.by_player(player.id)
        if not removed:
            return []
        for double in removed:
            self._discard(double.id)
        self._commit(
            EventType.DOUBLES_AUTO_DELETED,
            playerId=player.id,
            doubles=removed,
            ids=[d.id for d in removed],
        )
        logger.info(
            "Deleted %s doubles of removed player %s", len(removed), player.name
        )
        return removed

    # ========== Queries ==========

    def by_player(self, player_id: str) -> List[Double]:
        return [d for d in self._items.values() if d.has_player(player_id)]

    def active(self) -> List[Double]:
        return [d for d in self._items.values() if d.is_active]

    def players_of(self, double_id: str) -> List[Player]:
        double = self.get(double_id)
        return [p for p in (self.players.find(pid) for pid in double.player_ids) if p]
