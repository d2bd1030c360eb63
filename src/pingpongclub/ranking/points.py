"""Point-award formulas and rank-tier derivation.

Players earn a fixed base per discipline scaled by the opponent's rank tier.
Doubles and teams instead scale their base by relative strength: the ratio of
the opponent's points to their own, clamped to ``[0.5, 2.0]``.
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

from typing import Iterable, Optional

from pingpongclub.constants import (
    PLAYER_BASE_POINTS,
    RANK_LEVELS,
    RANK_MULTIPLIERS,
    RANK_THRESHOLDS,
    STRENGTH_MULTIPLIER_MAX,
    STRENGTH_MULTIPLIER_MIN,
    TOP_RANK,
)
from pingpongclub.models.enums import MatchType, Rank
from pingpongclub.utils import round_half_up


def player_points_earned(match_type: MatchType, opponent_rank: Optional[Rank]) -> int:
    """Points a player earns for beating an opponent of ``opponent_rank``.

    An opponent without a tier counts as a beginner.
    """
    base = PLAYER_BASE_POINTS[match_type.value]
    rank = opponent_rank or Rank.BEGINNER
    return round_half_up(base * RANK_MULTIPLIERS[rank.value])


def strength_multiplier(own_points: int, opponent_points: int) -> float:
    ratio = opponent_points / max(own_points, 1)
    return max(STRENGTH_MULTIPLIER_MIN, min(STRENGTH_MULTIPLIER_MAX, ratio))


def strength_points_earned(base: int, own_points: int, opponent_points: int) -> int:
    """Points a double or team earns, scaled by relative strength."""
    return round_half_up(base * strength_multiplier(own_points, opponent_points))


def derive_rank(points: int) -> Rank:
    """Rank tier for an accumulated point total.

    Beginner below 200, Intermediate below 500, Advanced below 1000 and
    Professional from 1000 up.
    """
    for rank_name, upper_bound in RANK_THRESHOLDS:
        if points < upper_bound:
            return Rank(rank_name)
    return Rank(TOP_RANK)


def average_rank(ranks: Iterable[Rank]) -> Optional[Rank]:
    """Tier closest to the mean level of ``ranks``, halves rounding up."""
    levels = [RANK_LEVELS[rank.value] for rank in ranks]
    if not levels:
        return None
    level = round_half_up(sum(levels) / len(levels))
    for name, value in RANK_LEVELS.items():
        if value == level:
            return Rank(name)
    return Rank(TOP_RANK)
