"""Tournament registry and lifecycle commands.

The controller coordinates a tournament with the rest of the club: it checks
entrants against the participant registries, hands generated matches to the
match controller and advances elimination winners as matches complete.
"""

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
from typing import Any, Dict, List, Optional, Union

from pingpongclub.constants import KEY_TOURNAMENTS
from pingpongclub.controllers.base import (
    BaseController,
    ParticipantDirectory,
    apply_changes,
    resolve_participant,
)
from pingpongclub.controllers.match import MatchController
from pingpongclub.controllers.rule import RuleController
from pingpongclub.events import EventBus, EventType
from pingpongclub.exceptions import InvalidStateError, ValidationError
from pingpongclub.models.enums import MatchStatus, MatchType, TournamentFormat, TournamentStatus
from pingpongclub.models.match import Match
from pingpongclub.models.participant import ParticipantRef
from pingpongclub.models.tournament import StandingEntry, Tournament
from pingpongclub.storage import Record, StoragePort
from pingpongclub.utils import setup_logger
from pingpongclub.utils.validation import raise_if_invalid

logger = setup_logger(__name__)

TOURNAMENT_FIELDS = [
    "name",
    "description",
    "max_participants",
    "registration_deadline",
    "start_date",
    "end_date",
    "format",
]


class TournamentController(BaseController[Tournament]):
    """Manages tournaments from planning to completion.

    Args:
        storage: Persistence port
        events: Change notifications
        rules: Club rules; supply the default capacity and the scoring snapshot
        matches: Receives the generated matches
        participants: Controller per participant kind
    """

    storage_key = KEY_TOURNAMENTS
    label = "tournament"

    def __init__(
        self,
        storage: StoragePort,
        events: EventBus,
        rules: RuleController,
        matches: MatchController,
        participants: ParticipantDirectory,
    ) -> None:
        super().__init__(storage, events)
        self.rules = rules
        self.matches = matches
        self.participants = participants

    def _from_record(self, record: Record) -> Tournament:
        return Tournament.from_dict(record)

    def _check(self, tournament: Tournament, now: Optional[datetime] = None) -> None:
        errors = tournament.validate()
        if not errors:
            errors.extend(self.rules.validate(tournament, now=now).violations)
        raise_if_invalid(errors, "Invalid tournament")

    # ========== Commands ==========

    def create(
        self,
        name: str,
        tournament_type: Union[MatchType, str] = MatchType.SINGLES,
        tournament_format: Union[TournamentFormat, str] = TournamentFormat.ROUND_ROBIN,
        description: str = "",
        max_participants: Optional[int] = None,
        registration_deadline: Optional[datetime] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        metadata: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> Tournament:
        """Plan a new tournament.

        ``max_participants`` defaults to the club's participant limit rule.

        Raises:
            ValidationError: If a field is invalid or an active rule is broken
        """
        tournament = Tournament(
            name,
            tournament_type=_as_enum(MatchType, tournament_type, "tournament type"),
            tournament_format=_as_enum(TournamentFormat, tournament_format, "tournament format"),
            description=description,
            max_participants=(
                max_participants
                if max_participants is not None
                else self.rules.rule_set.max_participants
            ),
            registration_deadline=registration_deadline,
            start_date=start_date,
            end_date=end_date,
            metadata=metadata,
        )
        self._check(tournament, now)

        self._store(tournament)
        self._commit(EventType.TOURNAMENT_CREATED, tournament)
        logger.info(
            "Created %s %s tournament %s",
            tournament.format.value,
            tournament.tournament_type.value,
            tournament.name,
        )
        return tournament

    def update(self, tournament_id: str, **changes: Any) -> Tournament:
        """Edit a tournament that has not finished.

        ``metadata`` is merged into the existing metadata. The format can only
        change before matches are generated.
        """
        tournament = self.get(tournament_id)
        if tournament.status.is_terminal:
            raise InvalidStateError(
                f"Tournament {tournament.name} is {tournament.status.value} and cannot be edited"
            )
        metadata = changes.pop("metadata", None)
        if "format" in changes:
            changes["format"] = _as_enum(TournamentFormat, changes["format"], "tournament format")
            if tournament.matches and changes["format"] is not tournament.format:
                raise InvalidStateError(
                    f"Matches for {tournament.name} exist; the format cannot change"
                )

        candidate = Tournament.from_dict(tournament.to_dict())
        apply_changes(candidate, changes, TOURNAMENT_FIELDS)
        raise_if_invalid(candidate.validate(), "Invalid tournament")

        apply_changes(tournament, changes, TOURNAMENT_FIELDS)
        if metadata:
            tournament.metadata.update(metadata)
        tournament.touch()
        self._commit(
            EventType.TOURNAMENT_UPDATED,
            tournament,
            changes=sorted(list(changes) + (["metadata"] if metadata else [])),
        )
        return tournament

    def delete(self, tournament_id: str) -> Tournament:
        """Remove a tournament and its matches.

        Raises:
            InvalidStateError: If the tournament is in progress
        """
        tournament = self.get(tournament_id)
        if tournament.status is TournamentStatus.IN_PROGRESS:
            raise InvalidStateError(
                f"Tournament {tournament.name} is in progress and cannot be deleted"
            )
        for match in self.matches.by_tournament(tournament.id):
            self.matches.delete(match.id)
        self._discard(tournament_id)
        self._commit(EventType.TOURNAMENT_DELETED, tournament)
        logger.info("Deleted tournament %s", tournament.name)
        return tournament

    def open_registration(self, tournament_id: str) -> Tournament:
        tournament = self.get(tournament_id)
        tournament.open_registration()
        self._commit(EventType.TOURNAMENT_REGISTRATION_OPENED, tournament)
        return tournament

    def add_participant(
        self, tournament_id: str, ref: ParticipantRef, now: Optional[datetime] = None
    ) -> Tournament:
        """Register an existing participant.

        Raises:
            ValidationError: If the participant is unknown or inactive, or
                the tournament rejects it
            InvalidStateError: If registration is closed
        """
        tournament = self.get(tournament_id)
        participant = resolve_participant(self.participants, ref)
        if participant is None:
            raise ValidationError(f"{ref} does not exist")
        if not getattr(participant, "is_active", True):
            raise ValidationError(f"{participant.name} is inactive and cannot register")
        tournament.add_participant(ref, now=now)
        self._commit(EventType.TOURNAMENT_PARTICIPANT_ADDED, tournament, participant=ref)
        return tournament

    def remove_participant(self, tournament_id: str, ref: ParticipantRef) -> bool:
        tournament = self.get(tournament_id)
        removed = tournament.remove_participant(ref)
        if removed:
            self._commit(EventType.TOURNAMENT_PARTICIPANT_REMOVED, tournament, participant=ref)
        return removed

    def start(self, tournament_id: str, now: Optional[datetime] = None) -> List[Match]:
        """Start play: generate the matches and register them.

        Returns:
            The generated matches
        """
        tournament = self.get(tournament_id)
        generated = tournament.start(self.rules.rule_set.match_rules(), now=now)
        self.matches.add_generated(generated)
        self._commit(EventType.TOURNAMENT_STARTED, tournament, matchCount=len(generated))
        return generated

    def complete(self, tournament_id: str, now: Optional[datetime] = None) -> List[StandingEntry]:
        """Finish the tournament and fix the final ranks.

        Returns:
            The final standings
        """
        tournament = self.get(tournament_id)
        standings = tournament.complete(self.matches.by_tournament(tournament.id), now=now)
        self._commit(EventType.TOURNAMENT_COMPLETED, tournament, standings=standings)
        return standings

    def cancel(self, tournament_id: str) -> Tournament:
        """Cancel a tournament and every match of it that has not finished."""
        tournament = self.get(tournament_id)
        tournament.cancel()
        for match in self.matches.by_tournament(tournament.id):
            if not match.status.is_terminal:
                self.matches.cancel(match.id, reason=tournament.name)
        self._commit(EventType.TOURNAMENT_CANCELLED, tournament)
        return tournament

    def handle_match_completed(self, match: Match) -> None:
        """Refresh standings and move an elimination winner to its next match."""
        tournament = self.find(match.tournament_id)
        if tournament is None:
            return
        if match.next_match_id and match.winner is not None:
            next_match = self.matches.find(match.next_match_id)
            if next_match is None:
                logger.error(
                    f"Match {match.id} feeds unknown match {match.next_match_id}"
                )
            else:
                self.matches.assign_participant(next_match.id, match.next_slot, match.winner)
                self.events.publish(
                    EventType.TOURNAMENT_BRACKET_ADVANCED,
                    {
                        "id": tournament.id,
                        "tournament": tournament,
                        "fromMatchId": match.id,
                        "toMatchId": next_match.id,
                        "participant": match.winner,
                    },
                )
                logger.info(f"{match.winner} advances to match {next_match.id}")
        tournament.calculate_standings(self.matches.by_tournament(tournament.id))
        tournament.touch()
        self.save()

    # ========== Queries ==========

    def search(self, term: str = "") -> List[Tournament]:
        term = (term or "").strip().lower()
        if not term:
            return self.all()
        return [
            t
            for t in self._items.values()
            if term in t.name.lower()
            or term in t.description.lower()
            or term in str(t.metadata.get("venue", "")).lower()
        ]

    def by_status(self, status: TournamentStatus) -> List[Tournament]:
        return [t for t in self._items.values() if t.status is status]

    def standings(self, tournament_id: str) -> List[StandingEntry]:
        tournament = self.get(tournament_id)
        return tournament.calculate_standings(self.matches.by_tournament(tournament.id))

    def progress(self, tournament_id: str) -> Dict[str, int]:
        tournament = self.get(tournament_id)
        return tournament.progress(self.matches.by_tournament(tournament.id))

    def leaderboard(self, tournament_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Standings with participant names, ready for display."""
        rows = []
        for position, entry in enumerate(self.standings(tournament_id), start=1):
            participant = resolve_participant(self.participants, entry.participant)
            row = entry.to_dict()
            row["position"] = position
            row["name"] = participant.name if participant else str(entry.participant)
            rows.append(row)
        return rows if limit is None else rows[:limit]

    def pending_matches(self, tournament_id: str) -> List[Match]:
        """Matches of the tournament still to be played."""
        return [
            m
            for m in self.matches.by_tournament(tournament_id)
            if m.status in (MatchStatus.SCHEDULED, MatchStatus.IN_PROGRESS, MatchStatus.POSTPONED)
        ]


def _as_enum(enum_cls, value, label: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Invalid {label}: {value!r}") from None
