"""Dispatch from participant kind to model class."""

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

from typing import Any, Dict, List, Type

from pingpongclub.exceptions import ValidationError
from pingpongclub.models.enums import ParticipantKind
from pingpongclub.models.participant.base import Participant
from pingpongclub.models.participant.double import Double
from pingpongclub.models.participant.player import Player
from pingpongclub.models.participant.team import Team

PARTICIPANT_CLASSES: Dict[ParticipantKind, Type[Participant]] = {
    ParticipantKind.PLAYER: Player,
    ParticipantKind.DOUBLE: Double,
    ParticipantKind.TEAM: Team,
}

# Fields a record must carry to be rebuilt
REQUIRED_FIELDS: Dict[ParticipantKind, List[str]] = {
    ParticipantKind.PLAYER: ["id", "name", "email"],
    ParticipantKind.DOUBLE: ["id", "player1Id", "player2Id"],
    ParticipantKind.TEAM: ["id", "name", "playerIds"],
}


def participant_from_dict(kind: ParticipantKind, data: Dict[str, Any]) -> Participant:
    """Rebuild a participant of ``kind`` from its record.

    Raises:
        ValidationError: If a required field is missing
    """
    missing = [name for name in REQUIRED_FIELDS[kind] if name not in data]
    if missing:
        raise ValidationError(
            f"{kind.value} record is missing {', '.join(missing)}",
            [f"Missing field: {name}" for name in missing],
        )
    return PARTICIPANT_CLASSES[kind].from_dict(data)


def participants_from_dicts(
    kind: ParticipantKind, records: List[Dict[str, Any]]
) -> List[Participant]:
    return [participant_from_dict(kind, record) for record in records]
