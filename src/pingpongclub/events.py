"""In-process notification port.

Controllers publish an :class:`Event` after every create, update, delete or
status change. Views and other consumers subscribe to the event types they
care about, or to everything by subscribing with ``None``.
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

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pingpongclub.utils import setup_logger, utc_now

logger = setup_logger(__name__)


class EventType(Enum):
    """Closed vocabulary of change notifications."""

    PLAYER_CREATED = "player_created"
    PLAYER_UPDATED = "player_updated"
    PLAYER_DELETED = "player_deleted"
    PLAYER_RANK_CHANGED = "player_rank_changed"
    PLAYER_MATCH_RESULT = "player_match_result"
    PLAYERS_IMPORTED = "players_imported"

    DOUBLE_CREATED = "double_created"
    DOUBLE_UPDATED = "double_updated"
    DOUBLE_DELETED = "double_deleted"
    DOUBLE_MATCH_RESULT = "double_match_result"
    DOUBLES_AUTO_DELETED = "doubles_auto_deleted"

    TEAM_CREATED = "team_created"
    TEAM_UPDATED = "team_updated"
    TEAM_DELETED = "team_deleted"
    TEAM_MATCH_RESULT = "team_match_result"
    TEAMS_AUTO_MODIFIED = "teams_auto_modified"

    RULE_CREATED = "rule_created"
    RULE_UPDATED = "rule_updated"
    RULE_DELETED = "rule_deleted"
    RULE_ACTIVATED = "rule_activated"
    RULE_DEACTIVATED = "rule_deactivated"
    RULES_RESET = "rules_reset"

    MATCH_CREATED = "match_created"
    MATCH_UPDATED = "match_updated"
    MATCH_DELETED = "match_deleted"
    MATCH_STARTED = "match_started"
    MATCH_SCORE_UPDATED = "match_score_updated"
    MATCH_SET_COMPLETED = "match_set_completed"
    MATCH_COMPLETED = "match_completed"
    MATCH_CANCELLED = "match_cancelled"
    MATCH_POSTPONED = "match_postponed"
    MATCH_RESCHEDULED = "match_rescheduled"

    TOURNAMENT_CREATED = "tournament_created"
    TOURNAMENT_UPDATED = "tournament_updated"
    TOURNAMENT_DELETED = "tournament_deleted"
    TOURNAMENT_REGISTRATION_OPENED = "tournament_registration_opened"
    TOURNAMENT_PARTICIPANT_ADDED = "tournament_participant_added"
    TOURNAMENT_PARTICIPANT_REMOVED = "tournament_participant_removed"
    TOURNAMENT_STARTED = "tournament_started"
    TOURNAMENT_COMPLETED = "tournament_completed"
    TOURNAMENT_CANCELLED = "tournament_cancelled"
    TOURNAMENT_BRACKET_ADVANCED = "tournament_bracket_advanced"

    DATA_IMPORTED = "data_imported"


@dataclass
class Event:
    """A published notification.

    Attributes
    ----------
    type : EventType
        What happened.
    payload : dict
        Affected entity and any extra detail.
    timestamp : datetime
        When the event was published (UTC).
    """

    type: EventType
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utc_now)


Handler = Callable[[Event], None]


class EventBus:
    """Synchronous publish/subscribe dispatcher.

    Handlers run in subscription order on the publishing thread. A handler
    that raises is logged and skipped; the command that published the event
    has already completed.
    """

    def __init__(self) -> None:
        self._handlers: Dict[Optional[EventType], List[Handler]] = {}
        self.published: int = 0

    def subscribe(
        self, event_type: Optional[EventType], handler: Handler
    ) -> Callable[[], None]:
        """Register ``handler`` for ``event_type`` (``None`` for all events).

        Returns:
            A callable that removes the subscription
        """
        self._handlers.setdefault(event_type, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def publish(self, event_type: EventType, payload: Optional[Dict[str, Any]] = None) -> Event:
        event = Event(type=event_type, payload=payload or {})
        self.published += 1
        handlers = list(self._handlers.get(event_type, [])) + list(
            self._handlers.get(None, [])
        )
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler failed for %s", event_type.value)
        return event
