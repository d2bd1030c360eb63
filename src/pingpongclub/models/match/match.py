"""The match state machine: sets, scores, status and winner."""

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
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pingpongclub.exceptions import InvalidStateError, ValidationError
from pingpongclub.models.enums import MatchStatus, MatchType, Side
from pingpongclub.models.match.rules import MatchRules
from pingpongclub.models.match.set_score import SetScore
from pingpongclub.models.participant.ref import (
    ParticipantRef,
    ref_from_dict,
    ref_to_dict,
)
from pingpongclub.utils import (
    from_iso,
    generate_id,
    round_half_up,
    setup_logger,
    to_iso,
    utc_now,
)

logger = setup_logger(__name__)


class ScoreOutcome(Enum):
    """What a score update caused."""

    NONE = "none"
    SET_COMPLETED = "set_completed"
    MATCH_COMPLETED = "match_completed"


@dataclass
class ScoreUpdate:
    """Result of :meth:`Match.update_score`.

    Attributes
    ----------
    outcome : ScoreOutcome
        Whether the update closed a set, the match, or neither.
    set_score : SetScore
        The set the scores were written to.
    set_winner : Side or None
        Side that took the set, when one was closed.
    """

    outcome: ScoreOutcome
    set_score: SetScore
    set_winner: Optional[Side] = None


class Match:
    """A match between two participants.

    Status moves Scheduled -> InProgress -> Completed. Cancelled and
    Postponed are reachable from any non-terminal state, and a postponed
    match may be rescheduled. Completed and Cancelled are terminal.

    At most one set is open at a time. Every command either applies fully
    or raises without touching the match.

    Attributes:
        id: Unique identifier
        match_type: Singles, doubles or teams
        participant1: First side, None while an elimination slot is undecided
        participant2: Second side, None while an elimination slot is undecided
        tournament_id: Owning tournament, if any
        round: Round number within the tournament
        match_number: Position within the round
        next_match_id: Elimination match the winner advances to
        next_slot: Side of ``next_match_id`` the winner fills
        status: Lifecycle state
        sets: Sets played so far
        sets_won1: Sets taken by side one
        sets_won2: Sets taken by side two
        points1: Total points of side one, set on completion
        points2: Total points of side two, set on completion
        winner: Winning participant once completed
        rules: Scoring parameters fixed at creation
        results_applied: Whether ranking points were awarded
    """

    def __init__(
        self,
        match_type: MatchType,
        participant1: Optional[ParticipantRef],
        participant2: Optional[ParticipantRef],
        tournament_id: Optional[str] = None,
        rules: Optional[MatchRules] = None,
        match_id: Optional[str] = None,
        round_number: int = 1,
        match_number: Optional[int] = None,
        scheduled_date: Optional[datetime] = None,
        venue: str = "",
        referee: str = "",
    ) -> None:
        self.id: str = match_id or generate_id("match")
        self.match_type: MatchType = match_type
        self.participant1: Optional[ParticipantRef] = participant1
        self.participant2: Optional[ParticipantRef] = participant2
        self.tournament_id: Optional[str] = tournament_id
        self.round: int = round_number
        self.match_number: Optional[int] = match_number
        self.next_match_id: Optional[str] = None
        self.next_slot: Optional[Side] = None

        self.status: MatchStatus = MatchStatus.SCHEDULED
        self.sets: List[SetScore] = []
        self.sets_won1: int = 0
        self.sets_won2: int = 0
        self.points1: int = 0
        self.points2: int = 0
        self.winner: Optional[ParticipantRef] = None

        self.scheduled_date: Optional[datetime] = scheduled_date
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.venue: str = venue
        self.referee: str = referee
        self.notes: str = ""

        self.rules: MatchRules = rules or MatchRules()
        self.results_applied: bool = False

        self.created_at: datetime = utc_now()
        self.updated_at: datetime = self.created_at

    # ========== Sides ==========

    def participant(self, side: Side) -> Optional[ParticipantRef]:
        return self.participant1 if side is Side.ONE else self.participant2

    def set_participant(self, side: Side, ref: ParticipantRef) -> None:
        """Fill an elimination slot once the feeding match is decided."""
        if self.status not in (MatchStatus.SCHEDULED, MatchStatus.POSTPONED):
            raise InvalidStateError(
                f"Cannot change participants of match {self.id} ({self.status.value})"
            )
        if side is Side.ONE:
            self.participant1 = ref
        else:
            self.participant2 = ref
        self.updated_at = utc_now()

    def side_of(self, ref: ParticipantRef) -> Optional[Side]:
        if ref == self.participant1:
            return Side.ONE
        if ref == self.participant2:
            return Side.TWO
        return None

    def involves(self, ref: ParticipantRef) -> bool:
        return self.side_of(ref) is not None

    @property
    def has_both_participants(self) -> bool:
        return self.participant1 is not None and self.participant2 is not None

    @property
    def winner_side(self) -> Optional[Side]:
        return self.side_of(self.winner) if self.winner else None

    @property
    def loser(self) -> Optional[ParticipantRef]:
        side = self.winner_side
        return self.participant(side.other) if side else None

    def sets_won(self, side: Side) -> int:
        return self.sets_won1 if side is Side.ONE else self.sets_won2

    def score_from(self, side: Side) -> str:
        """Set tally from one side's point of view, e.g. ``"3-1"``."""
        return f"{self.sets_won(side)}-{self.sets_won(side.other)}"

    @property
    def current_set(self) -> Optional[SetScore]:
        return next((s for s in self.sets if not s.completed), None)

    @property
    def is_completed(self) -> bool:
        return self.status is MatchStatus.COMPLETED

    # ========== Lifecycle ==========

    def start(self, now: Optional[datetime] = None) -> None:
        """Begin play and open a set.

        Raises:
            InvalidStateError: If the match is not scheduled or a side is missing
        """
        if self.status is not MatchStatus.SCHEDULED:
            raise InvalidStateError(
                f"Only a scheduled match can start (match {self.id} is {self.status.value})"
            )
        if not self.has_both_participants:
            raise InvalidStateError(f"Match {self.id} is waiting for its participants")

        now = now or utc_now()
        self.status = MatchStatus.IN_PROGRESS
        self.start_time = self.start_time or now
        # A match resumed after postponement keeps its open set
        if self.current_set is None:
            self._open_set(now)
        self.updated_at = now
        logger.info("Match %s started", self.id)

    def update_score(
        self, score1: int, score2: int, now: Optional[datetime] = None
    ) -> ScoreUpdate:
        """Write the score of the open set and apply the win rules.

        Negative scores are clamped to 0. A score above the set ceiling, or a
        tie at the ceiling, is rejected and nothing is written.

        Args:
            score1: Points of side one in the open set
            score2: Points of side two in the open set
            now: Time of the update (defaults to now)

        Returns:
            ScoreUpdate describing whether a set or the match was closed

        Raises:
            InvalidStateError: If the match is not in progress or no set is open
            ValidationError: If a score is not an integer or exceeds the ceiling
        """
        if self.status is not MatchStatus.IN_PROGRESS:
            raise InvalidStateError(
                f"Scores can only be updated while in progress (match {self.id} is "
                f"{self.status.value})"
            )
        open_set = self.current_set
        if open_set is None:
            raise InvalidStateError(f"Match {self.id} has no open set")

        for value in (score1, score2):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"Score must be an integer: {value!r}")
        score1 = max(0, score1)
        score2 = max(0, score2)

        ceiling = self.rules.max_score
        errors = []
        if score1 > ceiling or score2 > ceiling:
            errors.append(f"A set score cannot exceed {ceiling}: {score1}-{score2}")
        elif score1 == score2 == ceiling:
            errors.append(f"A set cannot be tied at the ceiling of {ceiling}")
        if errors:
            raise ValidationError(errors[0], errors)

        now = now or utc_now()
        open_set.score1 = score1
        open_set.score2 = score2
        self.updated_at = now
        logger.debug("Match %s set %s: %s-%s", self.id, open_set.number, score1, score2)

        taken_by = self.rules.is_set_won(score1, score2)
        if taken_by is None:
            return ScoreUpdate(ScoreOutcome.NONE, open_set)

        self._close_set(open_set, taken_by, now)
        match_side = self.rules.is_match_won(self.sets_won1, self.sets_won2)
        if match_side is not None:
            self._complete(match_side, now)
            return ScoreUpdate(ScoreOutcome.MATCH_COMPLETED, open_set, taken_by)

        self._open_set(now)
        return ScoreUpdate(ScoreOutcome.SET_COMPLETED, open_set, taken_by)

    def increment_score(
        self, side: Side, points: int = 1, now: Optional[datetime] = None
    ) -> ScoreUpdate:
        """Add ``points`` to one side of the open set."""
        open_set = self._require_open_set()
        score1, score2 = open_set.score1, open_set.score2
        if side is Side.ONE:
            score1 += points
        else:
            score2 += points
        return self.update_score(score1, score2, now=now)

    def decrement_score(
        self, side: Side, points: int = 1, now: Optional[datetime] = None
    ) -> ScoreUpdate:
        """Take ``points`` off one side of the open set (never below 0)."""
        return self.increment_score(side, -points, now=now)

    def end(
        self,
        winner: Optional[Union[ParticipantRef, Side]] = None,
        now: Optional[datetime] = None,
    ) -> ParticipantRef:
        """Finish the match early or confirm its result.

        Without an explicit winner, the side that has won the match is used,
        else the side leading in sets. An untouched open set is discarded.

        Returns:
            The winning participant

        Raises:
            InvalidStateError: If not in progress, or the set tally is level
            ValidationError: If the explicit winner is not in this match
        """
        if self.status is not MatchStatus.IN_PROGRESS:
            raise InvalidStateError(
                f"Only a match in progress can be ended (match {self.id} is "
                f"{self.status.value})"
            )

        if isinstance(winner, Side):
            side: Optional[Side] = winner
        elif winner is not None:
            side = self.side_of(winner)
            if side is None:
                raise ValidationError(f"{winner} does not play in match {self.id}")
        else:
            side = self.rules.is_match_won(self.sets_won1, self.sets_won2)
            if side is None and self.sets_won1 != self.sets_won2:
                side = Side.ONE if self.sets_won1 > self.sets_won2 else Side.TWO
            if side is None:
                raise InvalidStateError(
                    f"Cannot determine a winner for match {self.id} at "
                    f"{self.sets_won1}-{self.sets_won2} sets"
                )

        open_set = self.current_set
        if open_set is not None and open_set.is_empty:
            self.sets.remove(open_set)

        self._complete(side, now or utc_now())
        return self.winner

    def cancel(self, reason: str = "", now: Optional[datetime] = None) -> None:
        if self.status.is_terminal:
            raise InvalidStateError(
                f"Cannot cancel match {self.id}: it is already {self.status.value}"
            )
        self.status = MatchStatus.CANCELLED
        self.notes = f"Hủy: {reason}" if reason else "Đã hủy"
        self.updated_at = now or utc_now()
        logger.info("Match %s cancelled", self.id)

    def postpone(
        self,
        new_date: Optional[datetime] = None,
        reason: str = "",
        now: Optional[datetime] = None,
    ) -> None:
        if self.status.is_terminal:
            raise InvalidStateError(
                f"Cannot postpone match {self.id}: it is already {self.status.value}"
            )
        self.status = MatchStatus.POSTPONED
        if new_date is not None:
            self.scheduled_date = new_date
        self.notes = f"Hoãn: {reason}" if reason else "Đã hoãn"
        self.updated_at = now or utc_now()
        logger.info("Match %s postponed", self.id)

    def reschedule(
        self,
        new_date: datetime,
        venue: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """Move the match to ``new_date``; a postponed match becomes scheduled."""
        if self.status.is_terminal:
            raise InvalidStateError(
                f"Cannot reschedule match {self.id}: it is already {self.status.value}"
            )
        self.scheduled_date = new_date
        if venue:
            self.venue = venue
        if self.status is MatchStatus.POSTPONED:
            self.status = MatchStatus.SCHEDULED
        self.updated_at = now or utc_now()

    # ========== Internals ==========

    def _require_open_set(self) -> SetScore:
        if self.status is not MatchStatus.IN_PROGRESS:
            raise InvalidStateError(
                f"Scores can only be updated while in progress (match {self.id} is "
                f"{self.status.value})"
            )
        open_set = self.current_set
        if open_set is None:
            raise InvalidStateError(f"Match {self.id} has no open set")
        return open_set

    def _open_set(self, now: datetime) -> SetScore:
        new_set = SetScore(number=len(self.sets) + 1, start_time=now)
        self.sets.append(new_set)
        return new_set

    def _close_set(self, set_score: SetScore, side: Side, now: datetime) -> None:
        set_score.completed = True
        set_score.winner = side
        set_score.end_time = now
        if side is Side.ONE:
            self.sets_won1 += 1
        else:
            self.sets_won2 += 1
        logger.debug(
            "Match %s set %s won by side %s (%s-%s)",
            self.id,
            set_score.number,
            side.value,
            set_score.score1,
            set_score.score2,
        )

    def _complete(self, side: Side, now: datetime) -> None:
        self.status = MatchStatus.COMPLETED
        self.winner = self.participant(side)
        self.end_time = now
        self.points1 = sum(s.score1 for s in self.sets)
        self.points2 = sum(s.score2 for s in self.sets)
        self.updated_at = now
        logger.info(
            "Match %s completed: %s wins %s",
            self.id,
            self.winner,
            self.score_from(side),
        )

    # ========== Queries ==========

    def duration_minutes(self, now: Optional[datetime] = None) -> int:
        if self.start_time is None:
            return 0
        end = self.end_time or now or utc_now()
        return round_half_up((end - self.start_time).total_seconds() / 60)

    def score_summary(self) -> Dict[str, Any]:
        return {
            "sets": [
                f"{s.score1}-{s.score2}" if s.completed else "In Progress"
                for s in self.sets
            ],
            "totalSets": f"{self.sets_won1}-{self.sets_won2}",
            "totalPoints": f"{self.points1}-{self.points2}",
            "winner": ref_to_dict(self.winner),
            "isCompleted": self.is_completed,
        }

    def validate(self, now: Optional[datetime] = None) -> List[str]:
        """Return a list of problems with this match's own fields."""
        errors = []
        if not isinstance(self.match_type, MatchType):
            errors.append(f"Invalid match type: {self.match_type!r}")
        if self.participant1 is None or self.participant2 is None:
            errors.append("A match needs two participants")
        elif self.participant1 == self.participant2:
            errors.append("A participant cannot play against itself")
        elif isinstance(self.match_type, MatchType) and any(
            ref.kind.match_type is not self.match_type
            for ref in (self.participant1, self.participant2)
        ):
            errors.append(f"Participants do not match the {self.match_type.value} type")
        now = now or utc_now()
        if (
            self.status is MatchStatus.SCHEDULED
            and self.scheduled_date is not None
            and self.scheduled_date < now
        ):
            errors.append("A scheduled match cannot be in the past")
        if self.rules.best_of < 1:
            errors.append("Best-of must be at least 1")
        if self.rules.winning_score < 1:
            errors.append("Winning score must be at least 1")
        return errors

    # ========== Serialization ==========

    def to_dict(self) -> Dict[str, Any]:
        """Serialize match to dictionary."""
        return {
            "id": self.id,
            "type": self.match_type.value,
            "participant1": ref_to_dict(self.participant1),
            "participant2": ref_to_dict(self.participant2),
            "tournamentId": self.tournament_id,
            "round": self.round,
            "matchNumber": self.match_number,
            "nextMatchId": self.next_match_id,
            "nextSlot": self.next_slot.value if self.next_slot else None,
            "status": self.status.value,
            "winner": ref_to_dict(self.winner),
            "score": {
                "sets": [s.to_dict() for s in self.sets],
                "participant1Points": self.points1,
                "participant2Points": self.points2,
                "totalSets1": self.sets_won1,
                "totalSets2": self.sets_won2,
            },
            "scheduledDate": to_iso(self.scheduled_date),
            "startTime": to_iso(self.start_time),
            "endTime": to_iso(self.end_time),
            "venue": self.venue,
            "referee": self.referee,
            "notes": self.notes,
            "metadata": self.rules.to_dict(),
            "resultsApplied": self.results_applied,
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Match":
        """Deserialize match from dictionary."""
        match = cls(
            match_type=MatchType(data["type"]),
            participant1=ref_from_dict(data.get("participant1")),
            participant2=ref_from_dict(data.get("participant2")),
            tournament_id=data.get("tournamentId"),
            rules=MatchRules.from_dict(data.get("metadata")),
            match_id=data["id"],
            round_number=data.get("round", 1),
            match_number=data.get("matchNumber"),
            scheduled_date=from_iso(data.get("scheduledDate")),
            venue=data.get("venue", ""),
            referee=data.get("referee", ""),
        )
        next_slot = data.get("nextSlot")
        match.next_match_id = data.get("nextMatchId")
        match.next_slot = Side(next_slot) if next_slot else None
        match.status = MatchStatus(data.get("status", MatchStatus.SCHEDULED.value))
        match.winner = ref_from_dict(data.get("winner"))

        score = data.get("score") or {}
        match.sets = [SetScore.from_dict(s) for s in score.get("sets", [])]
        match.points1 = score.get("participant1Points", 0)
        match.points2 = score.get("participant2Points", 0)
        match.sets_won1 = score.get("totalSets1", 0)
        match.sets_won2 = score.get("totalSets2", 0)

        match.start_time = from_iso(data.get("startTime"))
        match.end_time = from_iso(data.get("endTime"))
        match.notes = data.get("notes", "")
        match.results_applied = data.get("resultsApplied", False)
        match.created_at = from_iso(data.get("createdAt")) or match.created_at
        match.updated_at = from_iso(data.get("updatedAt")) or match.created_at
        return match

    def __repr__(self) -> str:
        return (
            f"Match(id='{self.id}', {self.participant1} vs {self.participant2}, "
            f"status={self.status.value})"
        )
