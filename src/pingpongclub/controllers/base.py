"""Shared registry behaviour for the entity controllers.

A controller owns the live objects of one collection. It loads them from a
:class:`~pingpongclub.storage.StoragePort`, writes the whole collection back
after every successful command and publishes an event describing the change.
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

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from pingpongclub.events import EventBus, EventType
from pingpongclub.exceptions import NotFoundError, ValidationError
from pingpongclub.models.enums import MatchType, ParticipantKind
from pingpongclub.models.participant import MatchHistoryEntry, Participant, ParticipantRef
from pingpongclub.storage import Record, StoragePort
from pingpongclub.utils import setup_logger

logger = setup_logger(__name__)

T = TypeVar("T")
P = TypeVar("P", bound=Participant)


class BaseController(ABC, Generic[T]):
    """Registry of one entity collection.

    Subclasses set ``storage_key`` and ``label`` and implement
    :meth:`_from_record`.

    Attributes:
        storage: Persistence port the collection is loaded from and saved to
        events: Bus that change notifications are published on
    """

    storage_key: str = ""
    label: str = "entity"

    def __init__(self, storage: StoragePort, events: EventBus) -> None:
        self.storage = storage
        self.events = events
        self._items: Dict[str, T] = {}

    # ========== Lookup ==========

    def get(self, item_id: str) -> T:
        """Return the entity with ``item_id``.

        Raises:
            NotFoundError: If there is no such entity
        """
        item = self._items.get(item_id)
        if item is None:
            raise NotFoundError(f"No {self.label} with id {item_id}")
        return item

    def find(self, item_id: Optional[str]) -> Optional[T]:
        if item_id is None:
            return None
        return self._items.get(item_id)

    def all(self) -> List[T]:
        return list(self._items.values())

    def search(self, term: str = "") -> List[T]:
        term = (term or "").strip()
        if not term:
            return self.all()
        return [item for item in self._items.values() if item.matches_search(term)]

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._items

    # ========== Persistence ==========

    @abstractmethod
    def _from_record(self, record: Record) -> T:
        """Build an entity from its stored record."""

    def load(self) -> int:
        """Replace the registry with the stored collection.

        Returns:
            Number of entities loaded
        """
        records = self.storage.load(self.storage_key)
        self._items = {}
        for record in records:
            item = self._from_record(record)
            self._items[item.id] = item
        logger.debug("Loaded %s %s records", len(self._items), self.label)
        return len(self._items)

    def save(self) -> bool:
        return self.storage.save(
            self.storage_key, [item.to_dict() for item in self._items.values()]
        )

    def records(self) -> List[Record]:
        return [item.to_dict() for item in self._items.values()]

    def _store(self, item: T) -> None:
        self._items[item.id] = item

    def _discard(self, item_id: str) -> Optional[T]:
        return self._items.pop(item_id, None)

    def _commit(self, event_type: EventType, item: Any = None, **extra: Any) -> None:
        """Save the collection, then publish ``event_type``."""
        self.save()
        payload: Dict[str, Any] = {}
        if item is not None:
            payload.update({"id": item.id, self.label: item})
        payload.update(extra)
        self.events.publish(event_type, payload)


class ParticipantController(BaseController[P]):
    """Registry of players, doubles or teams.

    Adds result bookkeeping shared by the three participant kinds.
    """

    result_event: EventType = EventType.PLAYER_MATCH_RESULT

    def update_after_match(
        self,
        participant_id: str,
        is_win: bool,
        opponent: Participant,
        match_type: MatchType,
        score: str,
        date: Optional[datetime] = None,
        match_id: Optional[str] = None,
    ) -> MatchHistoryEntry:
        """Append a completed match to a participant's record.

        Returns:
            The history entry that was added
        """
        participant = self.get(participant_id)
        entry = participant.add_match_result(
            is_win, opponent, match_type, score, date=date, match_id=match_id
        )
        self._after_result(participant)
        self._commit(
            self.result_event,
            participant,
            isWin=is_win,
            pointsEarned=entry.points_earned,
            matchId=match_id,
        )
        return entry

    def _after_result(self, participant: P) -> None:
        """Hook run after a result is applied, before the collection is saved."""

    def ranked_by_points(self, limit: Optional[int] = None) -> List[P]:
        ranked = sorted(self._items.values(), key=lambda p: p.points, reverse=True)
        return ranked if limit is None else ranked[:limit]


ParticipantDirectory = Dict[ParticipantKind, ParticipantController]


def resolve_participant(
    directory: ParticipantDirectory, ref: Optional[ParticipantRef]
) -> Optional[Participant]:
    """Look up the participant a reference points at, or None."""
    if ref is None:
        return None
    controller = directory.get(ref.kind)
    if controller is None:
        return None
    return controller.find(ref.id)


def apply_changes(item: Any, changes: Dict[str, Any], allowed: List[str]) -> None:
    """Set each attribute in ``changes``; unknown names are an error."""
    unknown = sorted(set(changes) - set(allowed))
    if unknown:
        raise ValidationError(
            f"Cannot update {', '.join(unknown)}",
            [f"Unknown field: {name}" for name in unknown],
        )
    for name, value in changes.items():
        setattr(item, name, value)


Listener = Callable[[Any], Any]
