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

from .base import Participant
from .double import Double
from .factory import PARTICIPANT_CLASSES, participant_from_dict, participants_from_dicts
from .player import Player
from .ref import MatchHistoryEntry, ParticipantRef
from .team import Team

__all__ = [
    "Double",
    "MatchHistoryEntry",
    "PARTICIPANT_CLASSES",
    "Participant",
    "ParticipantRef",
    "Player",
    "Team",
    "participant_from_dict",
    "participants_from_dicts",
]
