"""Teams registry."""

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

from pingpongclub.constants import KEY_TEAMS, TEAM_MIN_PLAYERS
from pingpongclub.controllers.base import ParticipantController, apply_changes
from pingpongclub.controllers.player import PlayerController
from pingpongclub.events import EventBus, EventType
from pingpongclub.exceptions import ValidationError
from pingpongclub.models.participant import Player, Team
from pingpongclub.storage import Record, StoragePort
from pingpongclub.utils import setup_logger
from pingpongclub.utils.validation import raise_if_invalid

logger = setup_logger(__name__)

TEAM_FIELDS = ["name", "description", "player_ids"]


class TeamController(ParticipantController[Team]):
    """Manages teams of three or four players.

    Team names are unique (case-insensitive) and a player belongs to at most
    one active team. When a player is deleted the player leaves every team;
    a team left with fewer than three players is deactivated, not deleted.
    """

    storage_key = KEY_TEAMS
    label = "team"
    result_event = EventType.TEAM_MATCH_RESULT

    def __init__(
        self, storage: StoragePort, events: EventBus, players: PlayerController
    ) -> None:
        super().__init__(storage, events)
        self.players = players

    def _from_record(self, record: Record) -> Team:
        return Team.from_dict(record)

    def find_by_name(self, name: str, exclude_id: Optional[str] = None) -> Optional[Team]:
        name = (name or "").strip().lower()
        for team in self._items.values():
            if team.id != exclude_id and team.name.lower() == name:
                return team
        return None

    def active_team_of(self, player_id: str, exclude_id: Optional[str] = None) -> Optional[Team]:
        for team in self._items.values():
            if team.id != exclude_id and team.is_active and team.has_player(player_id):
                return team
        return None

    def _check(self, team: Team) -> None:
        errors = team.validate()
        if self.find_by_name(team.name, exclude_id=team.id):
            errors.append(f"A team named {team.name} already exists")
        for player_id in team.player_ids:
            if self.players.find(player_id) is None:
                errors.append(f"Player {player_id} does not exist")
                continue
            if team.is_active:
                other = self.active_team_of(player_id, exclude_id=team.id)
                if other is not None:
                    errors.append(f"Player {player_id} already plays for {other.name}")
        raise_if_invalid(errors, "Invalid team")

    # ========== Commands ==========

    def create(self, name: str, player_ids: List[str], description: str = "") -> Team:
        """Create a team; the first player is the captain.

        Raises:
            ValidationError: If the name is taken, the roster size is wrong,
                or a player is unknown or already in an active team
        """
        team = Team(name, list(player_ids), description=description)
        self._check(team)

        self._store(team)
        self._commit(EventType.TEAM_CREATED, team)
        logger.info("Created team %s with %s players", team.name, team.player_count)
        return team

    def update(self, team_id: str, **changes: Any) -> Team:
        team = self.get(team_id)
        if "player_ids" in changes:
            changes["player_ids"] = list(changes["player_ids"])
        candidate = team.clone()
        apply_changes(candidate, changes, TEAM_FIELDS)
        self._check(candidate)

        apply_changes(team, changes, TEAM_FIELDS)
        team.touch()
        self._commit(EventType.TEAM_UPDATED, team, changes=sorted(changes))
        return team

    def delete(self, team_id: str) -> Team:
        team = self.get(team_id)
        self._discard(team_id)
        self._commit(EventType.TEAM_DELETED, team)
        logger.info("Deleted team %s (%s)", team.name, team.id)
        return team

    def add_player(self, team_id: str, player_id: str) -> Team:
        team = self.get(team_id)
        self.players.get(player_id)
        if team.is_active:
            other = self.active_team_of(player_id, exclude_id=team.id)
            if other is not None:
                raise ValidationError(f"Player {player_id} already plays for {other.name}")
        team.add_player(player_id)
        self._commit(EventType.TEAM_UPDATED, team, addedPlayerId=player_id)
        return team

    def remove_player(self, team_id: str, player_id: str) -> Team:
        """Take a player off the roster.

        Raises:
            ValidationError: If the player is not in the team, or removing
                them would leave fewer than the minimum roster
        """
        team = self.get(team_id)
        if not team.has_player(player_id):
            raise ValidationError(f"Player {player_id} is not in team {team.name}")
        if team.player_count <= TEAM_MIN_PLAYERS:
            raise ValidationError(
                f"Team {team.name} needs at least {TEAM_MIN_PLAYERS} players"
            )
        team.remove_player(player_id)
        self._commit(EventType.TEAM_UPDATED, team, removedPlayerId=player_id)
        return team

    def set_captain(self, team_id: str, player_id: str) -> Team:
        team = self.get(team_id)
        team.set_captain(player_id)
        self._commit(EventType.TEAM_UPDATED, team, captainId=player_id)
        return team

    def set_status(self, team_id: str, is_active: bool) -> Team:
        """Activate or deactivate a team.

        Activation re-checks the roster size and that no player is already
        in another active team.
        """
        team = self.get(team_id)
        if is_active and not team.is_active:
            candidate = team.clone()
            candidate.is_active = True
            self._check(candidate)
            team.activate()
        elif not is_active and team.is_active:
            team.deactivate()
        self._commit(EventType.TEAM_UPDATED, team, isActive=team.is_active)
        return team

    def handle_player_deleted(self, player: Player) -> List[Team]:
        """Remove ``player`` from every team, deactivating undersized ones.

        Returns:
            The teams that were modified
        """
        modified = [t for t in self._items.values() if t.has_player(player.id)]
        if not modified:
            return []
        deactivated = []
        for team in modified:
            team.remove_player(player.id)
            if team.is_active and not team.has_minimum_players():
                team.deactivate()
                deactivated.append(team.id)
                logger.info(
                    "Team %s deactivated: %s players left", team.name, team.player_count
                )
        self._commit(
            EventType.TEAMS_AUTO_MODIFIED,
            playerId=player.id,
            teams=modified,
            deactivated=deactivated,
        )
        return modified

    # ========== Queries ==========

    def by_player(self, player_id: str) -> List[Team]:
        return [t for t in self._items.values() if t.has_player(player_id)]

    def active(self) -> List[Team]:
        return [t for t in self._items.values() if t.is_active]

    def available_players(self, exclude_team_id: Optional[str] = None) -> List[Player]:
        """Players not on any active team other than ``exclude_team_id``."""
        return [
            p
            for p in self.players.all()
            if self.active_team_of(p.id, exclude_id=exclude_team_id) is None
        ]

    def members(self, team_id: str) -> List[Player]:
        team = self.get(team_id)
        return [p for p in (self.players.find(pid) for pid in team.player_ids) if p]
