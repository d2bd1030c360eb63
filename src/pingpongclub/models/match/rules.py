"""Set and match win conditions, and the rule snapshot a match carries."""

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

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pingpongclub.constants import (
    DEFAULT_BEST_OF,
    DEFAULT_MAX_SCORE,
    DEFAULT_MIN_WIN_MARGIN,
    DEFAULT_WINNING_SCORE,
)
from pingpongclub.models.enums import Side


def set_winner(
    score1: int,
    score2: int,
    winning_score: int,
    min_win_margin: int,
    max_score: int,
) -> Optional[Side]:
    """Decide whether a set is won.

    A side wins on reaching ``winning_score`` with a lead of at least
    ``min_win_margin``, or on reaching ``max_score`` with any lead (the
    deuce ceiling).
    """
    if score1 == score2:
        return None
    leader = Side.ONE if score1 > score2 else Side.TWO
    high = max(score1, score2)
    if high >= winning_score and abs(score1 - score2) >= min_win_margin:
        return leader
    if high >= max_score:
        return leader
    return None


def sets_needed(best_of: int) -> int:
    return math.ceil(best_of / 2)


def match_winner(sets_won1: int, sets_won2: int, best_of: int) -> Optional[Side]:
    """Side holding ``ceil(best_of / 2)`` sets, if any."""
    needed = sets_needed(best_of)
    if sets_won1 >= needed:
        return Side.ONE
    if sets_won2 >= needed:
        return Side.TWO
    return None


@dataclass(frozen=True)
class MatchRules:
    """Scoring parameters frozen into a match when it is created.

    Attributes
    ----------
    best_of : int
        Maximum number of sets; ``ceil(best_of / 2)`` wins the match.
    winning_score : int
        Points needed to take a set.
    min_win_margin : int
        Lead needed at ``winning_score``.
    max_score : int
        Ceiling at which any lead takes the set.
    """

    best_of: int = DEFAULT_BEST_OF
    winning_score: int = DEFAULT_WINNING_SCORE
    min_win_margin: int = DEFAULT_MIN_WIN_MARGIN
    max_score: int = DEFAULT_MAX_SCORE

    @property
    def sets_to_win(self) -> int:
        return sets_needed(self.best_of)

    def is_set_won(self, score1: int, score2: int) -> Optional[Side]:
        return set_winner(
            score1, score2, self.winning_score, self.min_win_margin, self.max_score
        )

    def is_match_won(self, sets_won1: int, sets_won2: int) -> Optional[Side]:
        return match_winner(sets_won1, sets_won2, self.best_of)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bestOf": self.best_of,
            "winningScore": self.winning_score,
            "minWinMargin": self.min_win_margin,
            "maxScore": self.max_score,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "MatchRules":
        data = data or {}
        return cls(
            best_of=data.get("bestOf", DEFAULT_BEST_OF),
            winning_score=data.get("winningScore", DEFAULT_WINNING_SCORE),
            min_win_margin=data.get("minWinMargin", DEFAULT_MIN_WIN_MARGIN),
            max_score=data.get("maxScore", DEFAULT_MAX_SCORE),
        )
