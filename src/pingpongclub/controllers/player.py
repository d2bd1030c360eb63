"""Player registry: creation, editing, deletion and result bookkeeping."""

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

from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from pingpongclub.constants import KEY_PLAYERS, RANK_LEVELS
from pingpongclub.controllers.base import Listener, ParticipantController, apply_changes
from pingpongclub.events import EventType
from pingpongclub.exceptions import ValidationError
from pingpongclub.models.enums import Rank
from pingpongclub.models.participant import Player
from pingpongclub.storage import Record
from pingpongclub.utils import round_half_up, setup_logger
from pingpongclub.utils.validation import raise_if_invalid

logger = setup_logger(__name__)

PLAYER_FIELDS = ["name", "email", "address", "rank"]


class PlayerController(ParticipantController[Player]):
    """Manages club members.

    Deleting a player notifies the deletion listeners (the double and team
    controllers) so they can cascade.
    """

    storage_key = KEY_PLAYERS
    label = "player"
    result_event = EventType.PLAYER_MATCH_RESULT

    def __init__(self, storage, events) -> None:
        super().__init__(storage, events)
        self._deletion_listeners: List[Listener] = []

    def _from_record(self, record: Record) -> Player:
        return Player.from_dict(record)

    def add_deletion_listener(self, listener: Listener) -> None:
        """Call ``listener(player)`` after a player is removed."""
        self._deletion_listeners.append(listener)

    def find_by_email(self, email: str, exclude_id: Optional[str] = None) -> Optional[Player]:
        email = (email or "").strip().lower()
        for player in self._items.values():
            if player.id != exclude_id and player.email.lower() == email:
                return player
        return None

    def _check(self, player: Player) -> None:
        errors = player.validate()
        if player.email and self.find_by_email(player.email, exclude_id=player.id):
            errors.append(f"Email {player.email} is already used by another player")
        raise_if_invalid(errors, "Invalid player")

    # ========== Commands ==========

    def create(
        self,
        name: str,
        email: str,
        address: str,
        rank: Union[Rank, str] = Rank.BEGINNER,
    ) -> Player:
        """Register a new player.

        Raises:
            ValidationError: If a field is invalid or the email is taken
        """
        player = Player(name, email, address, rank=_as_rank(rank))
        player.email = player.email.lower()
        self._check(player)

        self._store(player)
        self._commit(EventType.PLAYER_CREATED, player)
        logger.info("Created player %s (%s)", player.name, player.id)
        return player

    def update(self, player_id: str, **changes: Any) -> Player:
        """Edit a player's name, email, address or rank."""
        player = self.get(player_id)
        if "rank" in changes:
            changes["rank"] = _as_rank(changes["rank"])
        if changes.get("email"):
            changes["email"] = changes["email"].strip().lower()

        candidate = player.clone()
        apply_changes(candidate, changes, PLAYER_FIELDS)
        self._check(candidate)

        apply_changes(player, changes, PLAYER_FIELDS)
        player.touch()
        self._commit(EventType.PLAYER_UPDATED, player, changes=sorted(changes))
        return player

    def delete(self, player_id: str) -> Player:
        """Remove a player and cascade to doubles and teams."""
        player = self.get(player_id)
        self._discard(player_id)
        self._commit(EventType.PLAYER_DELETED, player)
        logger.info("Deleted player %s (%s)", player.name, player.id)
        for listener in list(self._deletion_listeners):
            listener(player)
        return player

    def import_players(self, records: Iterable[Dict[str, Any]]) -> Tuple[List[Player], List[str]]:
        """Create players from plain dicts with name, email, address and rank.

        Invalid rows are skipped and reported.

        Returns:
            The created players and one message per rejected row
        """
        created: List[Player] = []
        errors: List[str] = []
        for index, record in enumerate(records, start=1):
            try:
                player = self.create(
                    record.get("name", ""),
                    record.get("email", ""),
                    record.get("address", ""),
                    rank=record.get("rank") or Rank.BEGINNER,
                )
            except (ValidationError, ValueError) as e:
                logger.warning("Skipping player row %s: %s", index, e)
                errors.append(f"Row {index}: {e}")
                continue
            created.append(player)

        self.events.publish(
            EventType.PLAYERS_IMPORTED,
            {"count": len(created), "errors": list(errors)},
        )
        logger.info("Imported %s players (%s rejected)", len(created), len(errors))
        return created, errors

    # ========== Results ==========

    def _after_result(self, player: Player) -> None:
        old_rank = player.rank
        if player.update_rank():
            self.events.publish(
                EventType.PLAYER_RANK_CHANGED,
                {
                    "id": player.id,
                    "player": player,
                    "oldRank": old_rank.value,
                    "newRank": player.rank.value,
                },
            )

    # ========== Queries ==========

    def search(self, term: str = "", rank: Optional[Union[Rank, str]] = None) -> List[Player]:
        found = super().search(term)
        if rank is not None:
            rank = _as_rank(rank)
            found = [p for p in found if p.rank is rank]
        return found

    def top_by_points(self, limit: int = 10) -> List[Player]:
        return self.ranked_by_points(limit)

    def top_by_win_rate(self, limit: int = 10, min_matches: int = 1) -> List[Player]:
        """Players with at least ``min_matches`` played, best win rate first."""
        eligible = [p for p in self._items.values() if p.matches_played >= min_matches]
        eligible.sort(key=lambda p: (p.win_rate, p.matches_won), reverse=True)
        return eligible[:limit]

    def statistics_summary(self) -> Dict[str, Any]:
        players = self.all()
        by_rank = {rank: 0 for rank in RANK_LEVELS}
        for player in players:
            by_rank[player.rank.value] += 1
        active = [p for p in players if p.matches_played > 0]
        top = self.top_by_points(1)
        return {
            "totalPlayers": len(players),
            "activePlayers": len(active),
            "byRank": by_rank,
            "totalMatches": sum(p.matches_played for p in players),
            "averagePoints": (
                round_half_up(sum(p.points for p in players) / len(players)) if players else 0
            ),
            "averageWinRate": (
                round_half_up(sum(p.win_rate for p in active) / len(active)) if active else 0
            ),
            "topPlayer": top[0].name if top else None,
        }


def _as_rank(value: Union[Rank, str]) -> Rank:
    if isinstance(value, Rank):
        return value
    try:
        return Rank(value)
    except ValueError:
        raise ValidationError(f"Invalid rank: {value!r}") from None
