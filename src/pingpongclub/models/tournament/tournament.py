"""Tournament lifecycle, registration and match generation."""

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
from typing import Any, Dict, Iterable, List, Optional

from pingpongclub.constants import MIN_TOURNAMENT_PARTICIPANTS
from pingpongclub.exceptions import InvalidStateError, ValidationError
from pingpongclub.models.enums import (
    MatchStatus,
    MatchType,
    ParticipantKind,
    TournamentFormat,
    TournamentStatus,
)
from pingpongclub.models.match import Match, MatchRules
from pingpongclub.models.participant.ref import ParticipantRef
from pingpongclub.pairing import (
    BracketPlan,
    create_round_robin_matches,
    create_single_elimination_bracket,
)
from pingpongclub.utils import from_iso, generate_id, round_half_up, setup_logger, to_iso, utc_now
from pingpongclub.utils.validation import validate_name

from .standing import StandingEntry, calculate_standings

logger = setup_logger(__name__)

DEFAULT_METADATA = {
    "venue": "",
    "entryFee": 0,
    "currency": "VND",
    "contactInfo": "",
    "website": "",
    "organizer": "",
}


class Tournament:
    """A competition among registered participants of one kind.

    Status moves Planning -> Registration -> InProgress -> Completed, or to
    Cancelled from any state but Completed. Matches are generated exactly
    once, when the tournament starts.

    Attributes:
        id: Unique identifier
        name: Display name
        tournament_type: Discipline; decides which participants may enter
        format: Round-robin, single-elimination or swiss
        status: Lifecycle state
        participants: Registered participants, in registration order
        max_participants: Capacity, None for unlimited
        registration_deadline: Last moment to register
        start_date: When play starts
        end_date: When play ended or is planned to end
        matches: Ids of the generated matches
        standings: Table from the last standings calculation
        metadata: Venue, organizer and other free-form details
    """

    def __init__(
        self,
        name: str,
        tournament_type: MatchType = MatchType.SINGLES,
        tournament_format: TournamentFormat = TournamentFormat.ROUND_ROBIN,
        description: str = "",
        max_participants: Optional[int] = None,
        registration_deadline: Optional[datetime] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        tournament_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.id: str = tournament_id or generate_id("tournament")
        self.name: str = name.strip() if name else ""
        self.description: str = description
        self.tournament_type: MatchType = tournament_type
        self.format: TournamentFormat = tournament_format
        self.status: TournamentStatus = TournamentStatus.PLANNING

        self.participants: List[ParticipantRef] = []
        self.max_participants: Optional[int] = max_participants
        self.registration_deadline: Optional[datetime] = registration_deadline
        self.start_date: Optional[datetime] = start_date
        self.end_date: Optional[datetime] = end_date

        self.matches: List[str] = []
        self.standings: List[StandingEntry] = []
        self.metadata: Dict[str, Any] = dict(DEFAULT_METADATA)
        if metadata:
            self.metadata.update(metadata)

        # Only kept in memory for inspection; matches carry the links
        self.bracket: Optional[BracketPlan] = None

        self.created_at: datetime = utc_now()
        self.updated_at: datetime = self.created_at

    @property
    def participant_kind(self) -> ParticipantKind:
        return ParticipantKind.for_match_type(self.tournament_type)

    @property
    def is_full(self) -> bool:
        return (
            self.max_participants is not None
            and len(self.participants) >= self.max_participants
        )

    def has_participant(self, ref: ParticipantRef) -> bool:
        return ref in self.participants

    def touch(self) -> None:
        self.updated_at = utc_now()

    # ========== Registration ==========

    def open_registration(self) -> None:
        if self.status is not TournamentStatus.PLANNING:
            raise InvalidStateError(
                f"Registration can only open from planning (tournament {self.name} is "
                f"{self.status.value})"
            )
        self.status = TournamentStatus.REGISTRATION
        self.touch()
        logger.info("Registration opened for %s", self.name)

    def add_participant(self, ref: ParticipantRef, now: Optional[datetime] = None) -> None:
        """Register a participant.

        Raises:
            InvalidStateError: If registration is closed or past its deadline
            ValidationError: If full, already registered or of the wrong kind
        """
        if self.status not in (TournamentStatus.PLANNING, TournamentStatus.REGISTRATION):
            raise InvalidStateError(
                f"Cannot register for {self.name}: tournament is {self.status.value}"
            )
        if ref.kind is not self.participant_kind:
            raise ValidationError(
                f"A {self.tournament_type.value} tournament only accepts "
                f"{self.participant_kind.value} entries"
            )
        if self.is_full:
            raise ValidationError(f"{self.name} is full ({self.max_participants} participants)")
        if self.has_participant(ref):
            raise ValidationError(f"{ref} is already registered for {self.name}")
        now = now or utc_now()
        if self.registration_deadline is not None and now > self.registration_deadline:
            raise InvalidStateError(f"Registration for {self.name} has closed")

        self.participants.append(ref)
        self.touch()
        logger.debug("Registered %s for %s", ref, self.name)

    def remove_participant(self, ref: ParticipantRef) -> bool:
        """Withdraw a participant.

        Returns:
            False if the participant was not registered
        """
        if self.status in (TournamentStatus.IN_PROGRESS, TournamentStatus.COMPLETED):
            raise InvalidStateError(
                f"Cannot withdraw from {self.name}: tournament is {self.status.value}"
            )
        if ref not in self.participants:
            return False
        self.participants.remove(ref)
        self.touch()
        return True

    # ========== Lifecycle ==========

    def start(
        self, rules: Optional[MatchRules] = None, now: Optional[datetime] = None
    ) -> List[Match]:
        """Begin play and generate the matches.

        Args:
            rules: Scoring snapshot for every generated match
            now: Start time, used when no start date is set

        Returns:
            The generated matches

        Raises:
            InvalidStateError: If not in registration, already generated, or
                fewer than two participants are registered
        """
        if self.status is not TournamentStatus.REGISTRATION:
            raise InvalidStateError(
                f"Only a tournament in registration can start ({self.name} is "
                f"{self.status.value})"
            )
        if len(self.participants) < MIN_TOURNAMENT_PARTICIPANTS:
            raise InvalidStateError(
                f"{self.name} needs at least {MIN_TOURNAMENT_PARTICIPANTS} participants"
            )
        if self.matches:
            raise InvalidStateError(f"Matches for {self.name} were already generated")

        generated = self.generate_matches(rules)
        self.status = TournamentStatus.IN_PROGRESS
        if self.start_date is None:
            self.start_date = now or utc_now()
        self.touch()
        logger.info("Tournament %s started with %s matches", self.name, len(generated))
        return generated

    def generate_matches(self, rules: Optional[MatchRules] = None) -> List[Match]:
        """Create matches for the current participants according to the format."""
        participants = list(self.participants)
        if self.format is TournamentFormat.SINGLE_ELIMINATION:
            self.bracket = create_single_elimination_bracket(
                participants, self.id, self.tournament_type, rules
            )
            generated = self.bracket.matches
        else:
            if self.format is TournamentFormat.SWISS:
                logger.info("Swiss format for %s is generated as round-robin", self.name)
            generated = create_round_robin_matches(
                participants, self.id, self.tournament_type, rules
            )
        self.matches = [match.id for match in generated]
        return generated

    def complete(
        self, matches: Iterable[Match], now: Optional[datetime] = None
    ) -> List[StandingEntry]:
        """Finish the tournament and assign final ranks."""
        if self.status is not TournamentStatus.IN_PROGRESS:
            raise InvalidStateError(
                f"Only a tournament in progress can complete ({self.name} is "
                f"{self.status.value})"
            )
        self.status = TournamentStatus.COMPLETED
        self.end_date = now or utc_now()
        standings = self.calculate_standings(matches)
        for position, entry in enumerate(standings, start=1):
            entry.final_rank = position
        self.touch()
        logger.info("Tournament %s completed", self.name)
        return standings

    def cancel(self) -> None:
        if self.status.is_terminal:
            raise InvalidStateError(
                f"Cannot cancel {self.name}: tournament is {self.status.value}"
            )
        self.status = TournamentStatus.CANCELLED
        self.touch()
        logger.info("Tournament %s cancelled", self.name)

    # ========== Results ==========

    def calculate_standings(self, matches: Iterable[Match]) -> List[StandingEntry]:
        """Recompute the standings from ``matches`` and store them."""
        self.standings = calculate_standings(self.id, self.participants, matches)
        return self.standings

    def progress(self, matches: Iterable[Match]) -> Dict[str, int]:
        own = [m for m in matches if m.id in self.matches]
        completed = sum(1 for m in own if m.status is MatchStatus.COMPLETED)
        total = len(self.matches)
        return {
            "totalMatches": total,
            "completedMatches": completed,
            "percentage": round_half_up(completed / total * 100) if total else 0,
        }

    def validate(self) -> List[str]:
        """Return a list of problems with this tournament's own fields."""
        errors = []
        result = validate_name(self.name, field_name="Tournament name")
        if not result:
            errors.append(result.error_message)
        if not isinstance(self.tournament_type, MatchType):
            errors.append(f"Invalid tournament type: {self.tournament_type!r}")
        if not isinstance(self.format, TournamentFormat):
            errors.append(f"Invalid tournament format: {self.format!r}")
        if self.start_date and self.end_date and self.start_date > self.end_date:
            errors.append("The start date cannot be after the end date")
        if (
            self.registration_deadline
            and self.start_date
            and self.registration_deadline > self.start_date
        ):
            errors.append("The registration deadline cannot be after the start date")
        if (
            self.max_participants is not None
            and self.max_participants < MIN_TOURNAMENT_PARTICIPANTS
        ):
            errors.append(
                f"Maximum participants must be at least {MIN_TOURNAMENT_PARTICIPANTS}"
            )
        if (
            self.max_participants is not None
            and len(self.participants) > self.max_participants
        ):
            errors.append(
                f"{len(self.participants)} participants are already registered, "
                f"more than the maximum of {self.max_participants}"
            )
        return errors

    # ========== Serialization ==========

    def to_dict(self) -> Dict[str, Any]:
        """Serialize tournament to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.tournament_type.value,
            "format": self.format.value,
            "status": self.status.value,
            "participants": [ref.to_dict() for ref in self.participants],
            "maxParticipants": self.max_participants,
            "registrationDeadline": to_iso(self.registration_deadline),
            "startDate": to_iso(self.start_date),
            "endDate": to_iso(self.end_date),
            "matches": list(self.matches),
            "standings": [entry.to_dict() for entry in self.standings],
            "metadata": dict(self.metadata),
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tournament":
        """Deserialize tournament from dictionary."""
        tournament = cls(
            name=data["name"],
            tournament_type=MatchType(data.get("type", MatchType.SINGLES.value)),
            tournament_format=TournamentFormat(
                data.get("format", TournamentFormat.ROUND_ROBIN.value)
            ),
            description=data.get("description", ""),
            max_participants=data.get("maxParticipants"),
            registration_deadline=from_iso(data.get("registrationDeadline")),
            start_date=from_iso(data.get("startDate")),
            end_date=from_iso(data.get("endDate")),
            tournament_id=data["id"],
            metadata=data.get("metadata"),
        )
        tournament.status = TournamentStatus(
            data.get("status", TournamentStatus.PLANNING.value)
        )
        tournament.participants = [
            ParticipantRef.from_dict(item) for item in data.get("participants", [])
        ]
        tournament.matches = list(data.get("matches", []))
        tournament.standings = [
            StandingEntry.from_dict(item) for item in data.get("standings", [])
        ]
        tournament.created_at = from_iso(data.get("createdAt")) or tournament.created_at
        tournament.updated_at = from_iso(data.get("updatedAt")) or tournament.created_at
        return tournament

    def __repr__(self) -> str:
        return f"Tournament(name='{self.name}', status={self.status.value}, id='{self.id}')"
