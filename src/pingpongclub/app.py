"""Composition root: builds every controller once and wires them together."""

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
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pingpongclub.config import ClubConfig
from pingpongclub.controllers import (
    BaseController,
    DoubleController,
    MatchController,
    ParticipantDirectory,
    PlayerController,
    ResultRecorder,
    RuleController,
    TeamController,
    TournamentController,
    resolve_participant,
)
from pingpongclub.events import EventBus, EventType
from pingpongclub.models.enums import ParticipantKind
from pingpongclub.models.participant import Participant, ParticipantRef
from pingpongclub.storage import (
    ImportReport,
    StoragePort,
    build_bundle,
    import_bundle,
    read_bundle,
    write_bundle,
)
from pingpongclub.utils import setup_logger

logger = setup_logger(__name__)


class ClubApplication:
    """A fully wired club.

    Args:
        config: Settings; defaults to in-memory storage
        storage: Overrides the storage built from ``config``
        events: Overrides the event bus
    """

    def __init__(
        self,
        config: Optional[ClubConfig] = None,
        storage: Optional[StoragePort] = None,
        events: Optional[EventBus] = None,
    ) -> None:
        self.config = config or ClubConfig()
        self.storage: StoragePort = storage or self.config.make_storage()
        self.events = events or EventBus()

        self.rules = RuleController(
            self.storage, self.events, seed_defaults=self.config.seed_default_rules
        )
        self.players = PlayerController(self.storage, self.events)
        self.doubles = DoubleController(self.storage, self.events, self.players)
        self.teams = TeamController(self.storage, self.events, self.players)

        self.participants: ParticipantDirectory = {
            ParticipantKind.PLAYER: self.players,
            ParticipantKind.DOUBLE: self.doubles,
            ParticipantKind.TEAM: self.teams,
        }
        self.matches = MatchController(
            self.storage, self.events, self.rules, self.participants
        )
        self.tournaments = TournamentController(
            self.storage, self.events, self.rules, self.matches, self.participants
        )
        self.results = ResultRecorder(self.participants)

        self.players.add_deletion_listener(self.doubles.handle_player_deleted)
        self.players.add_deletion_listener(self.teams.handle_player_deleted)
        self.matches.add_completion_listener(self.results.record)
        self.matches.add_completion_listener(self.tournaments.handle_match_completed)

    @property
    def controllers(self) -> Dict[str, BaseController]:
        """Controllers by the storage key of their collection."""
        return {
            c.storage_key: c
            for c in (
                self.players,
                self.doubles,
                self.teams,
                self.tournaments,
                self.matches,
                self.rules,
            )
        }

    def resolve(self, ref: Optional[ParticipantRef]) -> Optional[Participant]:
        return resolve_participant(self.participants, ref)

    # ========== Persistence ==========

    def load_all(self) -> Dict[str, int]:
        """Reload every collection from storage.

        Returns:
            Number of records loaded per collection
        """
        counts = {key: controller.load() for key, controller in self.controllers.items()}
        logger.info("Loaded club data: %s", counts)
        return counts

    def save_all(self) -> None:
        for controller in self.controllers.values():
            controller.save()

    def export_bundle(
        self,
        path: Optional[Union[str, Path]] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Snapshot every collection; also written to ``path`` when given."""
        bundle = build_bundle(
            {key: c.records() for key, c in self.controllers.items()},
            now=now,
            version=self.config.export_version,
        )
        if path is not None:
            write_bundle(bundle, path)
        return bundle

    def import_bundle(self, source: Union[Dict[str, Any], str, Path]) -> ImportReport:
        """Import a bundle dict or file, then reload the registries."""
        bundle = source if isinstance(source, dict) else read_bundle(source)
        report = import_bundle(self.storage, bundle)
        self.load_all()
        self.events.publish(
            EventType.DATA_IMPORTED,
            {"imported": dict(report.imported), "errors": dict(report.errors)},
        )
        return report
