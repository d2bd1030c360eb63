"""Enumerations shared by the club models."""

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

from enum import Enum


class Rank(Enum):
    """Player rank tier, derived from accumulated points."""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    PROFESSIONAL = "Professional"


class MatchType(Enum):
    """Discipline of a match or tournament."""

    SINGLES = "singles"
    DOUBLES = "doubles"
    TEAMS = "teams"


class ParticipantKind(Enum):
    """Kind of entity a participant reference points at."""

    PLAYER = "player"
    DOUBLE = "double"
    TEAM = "team"

    @classmethod
    def for_match_type(cls, match_type: MatchType) -> "ParticipantKind":
        return _KIND_BY_TYPE[match_type]

    @property
    def match_type(self) -> MatchType:
        return _TYPE_BY_KIND[self]


_KIND_BY_TYPE = {
    MatchType.SINGLES: ParticipantKind.PLAYER,
    MatchType.DOUBLES: ParticipantKind.DOUBLE,
    MatchType.TEAMS: ParticipantKind.TEAM,
}
_TYPE_BY_KIND = {kind: match_type for match_type, kind in _KIND_BY_TYPE.items()}


class MatchStatus(Enum):
    """Lifecycle state of a match."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    POSTPONED = "postponed"

    @property
    def is_terminal(self) -> bool:
        return self in (MatchStatus.COMPLETED, MatchStatus.CANCELLED)


class TournamentStatus(Enum):
    """Lifecycle state of a tournament."""

    PLANNING = "planning"
    REGISTRATION = "registration"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (TournamentStatus.COMPLETED, TournamentStatus.CANCELLED)


class TournamentFormat(Enum):
    """How a tournament's matches are generated.

    ``SWISS`` is accepted but generated as a round-robin.
    """

    ROUND_ROBIN = "round-robin"
    SINGLE_ELIMINATION = "single-elimination"
    SWISS = "swiss"


class RuleCategory(Enum):
    SCORING = "scoring"
    MATCH = "match"
    TIMING = "timing"
    SERVING = "serving"
    REGISTRATION = "registration"
    TOURNAMENT = "tournament"
    CUSTOM = "custom"


class Side(Enum):
    """One of the two sides of a match."""

    ONE = 1
    TWO = 2

    @property
    def other(self) -> "Side":
        return Side.TWO if self is Side.ONE else Side.ONE
