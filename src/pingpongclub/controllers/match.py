"""Match registry and live scoring commands."""

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
from typing import Any, Iterable, List, Optional, Union

from pingpongclub.constants import KEY_MATCHES
from pingpongclub.controllers.base import (
    BaseController,
    Listener,
    ParticipantDirectory,
    apply_changes,
    resolve_participant,
)
from pingpongclub.controllers.rule import RuleController
from pingpongclub.events import EventBus, EventType
from pingpongclub.exceptions import InvalidStateError, ValidationError
from pingpongclub.models.enums import MatchStatus, MatchType, ParticipantKind, Side
from pingpongclub.models.match import Match, ScoreOutcome, ScoreUpdate
from pingpongclub.models.participant import Participant, ParticipantRef
from pingpongclub.storage import Record, StoragePort
from pingpongclub.utils import setup_logger, utc_now
from pingpongclub.utils.validation import raise_if_invalid

logger = setup_logger(__name__)

MATCH_FIELDS = ["scheduled_date", "venue", "referee", "notes"]


class MatchController(BaseController[Match]):
    """Manages matches and drives their state machine.

    Completion listeners run once for every match that reaches Completed,
    whether through scoring or :meth:`end`. The result recorder and the
    tournament controller hook in here.

    Args:
        storage: Persistence port
        events: Change notifications
        rules: Source of the scoring snapshot taken at creation
        participants: Controller per participant kind
    """

    storage_key = KEY_MATCHES
    label = "match"

    def __init__(
        self,
        storage: StoragePort,
        events: EventBus,
        rules: RuleController,
        participants: ParticipantDirectory,
    ) -> None:
        super().__init__(storage, events)
        self.rules = rules
        self.participants = participants
        self._completion_listeners: List[Listener] = []

    def _from_record(self, record: Record) -> Match:
        return Match.from_dict(record)

    def add_completion_listener(self, listener: Listener) -> None:
        """Call ``listener(match)`` whenever a match completes."""
        self._completion_listeners.append(listener)

    def resolve(self, ref: Optional[ParticipantRef]) -> Optional[Participant]:
        return resolve_participant(self.participants, ref)

    # ========== Commands ==========

    def create(
        self,
        match_type: Union[MatchType, str],
        participant1: ParticipantRef,
        participant2: ParticipantRef,
        tournament_id: Optional[str] = None,
        scheduled_date: Optional[datetime] = None,
        venue: str = "",
        referee: str = "",
        round_number: int = 1,
        now: Optional[datetime] = None,
    ) -> Match:
        """Schedule a match between two existing participants.

        The current scoring rules are copied into the match and do not
        change if the rules are edited later.

        Raises:
            ValidationError: If a participant is unknown, of the wrong kind,
                or both sides are the same
        """
        if not isinstance(match_type, MatchType):
            try:
                match_type = MatchType(match_type)
            except ValueError:
                raise ValidationError(f"Invalid match type: {match_type!r}") from None

        match = Match(
            match_type,
            participant1,
            participant2,
            tournament_id=tournament_id,
            rules=self.rules.rule_set.match_rules(),
            round_number=round_number,
            scheduled_date=scheduled_date,
            venue=venue,
            referee=referee,
        )
        errors = match.validate(now)
        expected = ParticipantKind.for_match_type(match_type)
        for ref in (participant1, participant2):
            if ref is None or ref.kind is not expected:
                continue
            if self.resolve(ref) is None:
                errors.append(f"{ref} does not exist")
        raise_if_invalid(errors, "Invalid match")

        self._store(match)
        self._commit(EventType.MATCH_CREATED, match)
        logger.info("Created %s match %s: %s vs %s", match_type.value, match.id, participant1, participant2)
        return match

    def add_generated(self, matches: Iterable[Match]) -> List[Match]:
        """Register matches produced by a tournament generator."""
        added = []
        for match in matches:
            self._store(match)
            added.append(match)
        self.save()
        for match in added:
            self.events.publish(EventType.MATCH_CREATED, {"id": match.id, "match": match})
        return added

    def update(self, match_id: str, **changes: Any) -> Match:
        """Edit the date, venue, referee or notes of a match.

        Raises:
            InvalidStateError: If the match is completed
        """
        match = self.get(match_id)
        if match.status is MatchStatus.COMPLETED:
            raise InvalidStateError(f"Match {match.id} is completed and cannot be edited")
        apply_changes(match, changes, MATCH_FIELDS)
        match.updated_at = utc_now()
        self._commit(EventType.MATCH_UPDATED, match, changes=sorted(changes))
        return match

    def assign_participant(self, match_id: str, side: Side, ref: ParticipantRef) -> Match:
        match = self.get(match_id)
        match.set_participant(side, ref)
        self._commit(EventType.MATCH_UPDATED, match, side=side.value, participant=ref)
        return match

    def delete(self, match_id: str) -> Match:
        match = self.get(match_id)
        if match.status is MatchStatus.IN_PROGRESS:
            raise InvalidStateError(f"Match {match.id} is in progress and cannot be deleted")
        self._discard(match_id)
        self._commit(EventType.MATCH_DELETED, match)
        return match

    def start(self, match_id: str, now: Optional[datetime] = None) -> Match:
        match = self.get(match_id)
        match.start(now)
        self._commit(EventType.MATCH_STARTED, match)
        return match

    def update_score(
        self, match_id: str, score1: int, score2: int, now: Optional[datetime] = None
    ) -> ScoreUpdate:
        """Write the open set's score and publish what it caused."""
        match = self.get(match_id)
        update = match.update_score(score1, score2, now=now)
        return self._after_score(match, update)

    def increment_score(
        self, match_id: str, side: Side, points: int = 1, now: Optional[datetime] = None
    ) -> ScoreUpdate:
        match = self.get(match_id)
        update = match.increment_score(side, points, now=now)
        return self._after_score(match, update)

    def decrement_score(
        self, match_id: str, side: Side, points: int = 1, now: Optional[datetime] = None
    ) -> ScoreUpdate:
        match = self.get(match_id)
        update = match.decrement_score(side, points, now=now)
        return self._after_score(match, update)

    def end(
        self,
        match_id: str,
        winner: Optional[Union[ParticipantRef, Side]] = None,
        now: Optional[datetime] = None,
    ) -> Match:
        match = self.get(match_id)
        match.end(winner, now=now)
        self._completed(match)
        return match

    def cancel(self, match_id: str, reason: str = "") -> Match:
        match = self.get(match_id)
        match.cancel(reason)
        self._commit(EventType.MATCH_CANCELLED, match, reason=reason)
        return match

    def postpone(
        self, match_id: str, new_date: Optional[datetime] = None, reason: str = ""
    ) -> Match:
        match = self.get(match_id)
        match.postpone(new_date, reason)
        self._commit(EventType.MATCH_POSTPONED, match, reason=reason)
        return match

    def reschedule(
        self, match_id: str, new_date: datetime, venue: Optional[str] = None
    ) -> Match:
        match = self.get(match_id)
        match.reschedule(new_date, venue)
        self._commit(EventType.MATCH_RESCHEDULED, match)
        return match

    def _after_score(self, match: Match, update: ScoreUpdate) -> ScoreUpdate:
        self._commit(
            EventType.MATCH_SCORE_UPDATED,
            match,
            setNumber=update.set_score.number,
            score1=update.set_score.score1,
            score2=update.set_score.score2,
        )
        if update.outcome is not ScoreOutcome.NONE:
            self.events.publish(
                EventType.MATCH_SET_COMPLETED,
                {
                    "id": match.id,
                    "match": match,
                    "setNumber": update.set_score.number,
                    "winner": update.set_winner.value,
                },
            )
        if update.outcome is ScoreOutcome.MATCH_COMPLETED:
            self._completed(match)
        return update

    def _completed(self, match: Match) -> None:
        self._commit(EventType.MATCH_COMPLETED, match, winner=match.winner)
        for listener in list(self._completion_listeners):
            listener(match)
        self.save()

    # ========== Queries ==========

    def search(self, term: str = "") -> List[Match]:
        term = (term or "").strip().lower()
        if not term:
            return self.all()
        found = []
        for match in self._items.values():
            names = [
                p.name.lower()
                for p in (self.resolve(match.participant1), self.resolve(match.participant2))
                if p is not None
            ]
            fields = [match.venue.lower(), match.referee.lower(), match.notes.lower()]
            if any(term in text for text in names + fields):
                found.append(match)
        return found

    def by_tournament(self, tournament_id: str) -> List[Match]:
        matches = [m for m in self._items.values() if m.tournament_id == tournament_id]
        return sorted(matches, key=lambda m: (m.round, m.match_number or 0))

    def by_participant(self, ref: ParticipantRef) -> List[Match]:
        return [m for m in self._items.values() if m.involves(ref)]

    def by_status(self, status: MatchStatus) -> List[Match]:
        return [m for m in self._items.values() if m.status is status]

    def upcoming(self, limit: int = 10, now: Optional[datetime] = None) -> List[Match]:
        """Scheduled matches, soonest first; undated matches come last."""
        now = now or utc_now()
        scheduled = [
            m
            for m in self._items.values()
            if m.status is MatchStatus.SCHEDULED
            and (m.scheduled_date is None or m.scheduled_date >= now)
        ]
        dated = sorted(
            (m for m in scheduled if m.scheduled_date is not None),
            key=lambda m: m.scheduled_date,
        )
        undated = [m for m in scheduled if m.scheduled_date is None]
        return (dated + undated)[:limit]

    def recent_results(self, limit: int = 10) -> List[Match]:
        completed = [m for m in self._items.values() if m.status is MatchStatus.COMPLETED]
        completed.sort(key=lambda m: m.end_time or m.updated_at, reverse=True)
        return completed[:limit]
