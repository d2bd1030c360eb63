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


from .base import BaseController, ParticipantController, ParticipantDirectory, resolve_participant
from .double import DoubleController
from .match import MatchController
from .player import PlayerController
from .rule import RuleController
from .team import TeamController
from .tournament import ResultRecorder, TournamentController

__all__ = [
    "BaseController",
    "DoubleController",
    "MatchController",
    "ParticipantController",
    "ParticipantDirectory",
    "PlayerController",
    "ResultRecorder",
    "RuleController",
    "TeamController",
    "TournamentController",
    "resolve_participant",
]
