"""The collection of rules and the checks built on them."""

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
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from dateutil.relativedelta import relativedelta

from pingpongclub.constants import (
    DEFAULT_RULE_VALUES,
    DEFAULT_RULES,
    RULE_MAX_PARTICIPANTS,
    RULE_MAX_SET_SCORE,
    RULE_MIN_WIN_MARGIN,
    RULE_REGISTRATION_LEAD_HOURS,
    RULE_SET_WIN_POINTS,
    RULE_SETS_TO_WIN,
)
from pingpongclub.models.enums import MatchStatus, RuleCategory, Side
from pingpongclub.models.match import Match, MatchRules, match_winner, set_winner
from pingpongclub.models.rule.rule import Rule, RuleValue
from pingpongclub.models.tournament import Tournament
from pingpongclub.utils import utc_now
from pingpongclub.utils.validation import ValidationReport


def default_rules() -> List[Rule]:
    """Fresh copies of the built-in rules."""
    return [
        Rule(
            key=key,
            name=name,
            description=description,
            value=value,
            category=RuleCategory(category),
            priority=priority,
        )
        for key, name, description, value, category, priority in DEFAULT_RULES
    ]


class RuleSet:
    """Configurable parameters governing sets, matches and tournaments.

    Built-in rules are looked up by key. A missing or inactive built-in rule
    falls back to its default value, so the win checks always have numbers
    to work with.
    """

    def __init__(self, rules: Optional[Iterable[Rule]] = None) -> None:
        self._rules: Dict[str, Rule] = {}
        for rule in rules or []:
            self._rules[rule.id] = rule

    @classmethod
    def default(cls) -> "RuleSet":
        return cls(default_rules())

    # ========== Collection ==========

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: str) -> bool:
        return rule_id in self._rules

    def all(self) -> List[Rule]:
        return sorted(
            self._rules.values(), key=lambda r: (r.category.value, r.priority, r.name)
        )

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._rules.get(rule_id)

    def add(self, rule: Rule) -> None:
        self._rules[rule.id] = rule

    def remove(self, rule_id: str) -> Optional[Rule]:
        return self._rules.pop(rule_id, None)

    def clear(self) -> None:
        self._rules.clear()

    def find_by_key(self, key: str) -> Optional[Rule]:
        return next((r for r in self._rules.values() if r.key == key), None)

    def find_by_name(self, name: str, exclude_id: Optional[str] = None) -> Optional[Rule]:
        """Case-insensitive lookup by display name."""
        wanted = name.strip().lower()
        return next(
            (
                r
                for r in self._rules.values()
                if r.name.strip().lower() == wanted and r.id != exclude_id
            ),
            None,
        )

    def by_category(self, category: RuleCategory) -> List[Rule]:
        return [r for r in self.all() if r.category is category]

    def active(self) -> List[Rule]:
        return [r for r in self.all() if r.is_active]

    # ========== Values ==========

    def get_value(self, key: str) -> Optional[RuleValue]:
        """Current value of a rule, or None for an unknown key."""
        rule = self.find_by_key(key)
        if rule is not None and rule.is_active:
            return rule.value
        return DEFAULT_RULE_VALUES.get(key)

    def _number(self, key: str) -> int:
        value = self.get_value(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return int(value)
        return int(DEFAULT_RULE_VALUES[key])

    @property
    def winning_score(self) -> int:
        return self._number(RULE_SET_WIN_POINTS)

    @property
    def min_win_margin(self) -> int:
        return self._number(RULE_MIN_WIN_MARGIN)

    @property
    def max_score(self) -> int:
        return self._number(RULE_MAX_SET_SCORE)

    @property
    def sets_to_win(self) -> int:
        return self._number(RULE_SETS_TO_WIN)

    @property
    def best_of(self) -> int:
        return 2 * self.sets_to_win - 1

    @property
    def max_participants(self) -> int:
        return self._number(RULE_MAX_PARTICIPANTS)

    @property
    def registration_lead_hours(self) -> int:
        return self._number(RULE_REGISTRATION_LEAD_HOURS)

    # ========== Win conditions ==========

    def is_set_won(self, score1: int, score2: int) -> Optional[Side]:
        return set_winner(
            score1, score2, self.winning_score, self.min_win_margin, self.max_score
        )

    def is_match_won(
        self, sets_won1: int, sets_won2: int, best_of: Optional[int] = None
    ) -> Optional[Side]:
        return match_winner(sets_won1, sets_won2, best_of or self.best_of)

    def match_rules(self) -> MatchRules:
        """Snapshot of the scoring parameters for a new match."""
        return MatchRules(
            best_of=self.best_of,
            winning_score=self.winning_score,
            min_win_margin=self.min_win_margin,
            max_score=self.max_score,
        )

    # ========== Validation ==========

    def _is_enforced(self, key: str) -> bool:
        rule = self.find_by_key(key)
        return rule is None or rule.is_active

    def validate(
        self, context: Union[Match, Tournament], now: Optional[datetime] = None
    ) -> ValidationReport:
        """Check a tournament or a match against the active rules."""
        if isinstance(context, Tournament):
            return self._validate_tournament(context, now or utc_now())
        if isinstance(context, Match):
            return self._validate_match(context)
        raise TypeError(f"Cannot validate rules against {type(context).__name__}")

    def _validate_tournament(self, tournament: Tournament, now: datetime) -> ValidationReport:
        report = ValidationReport()

        if self._is_enforced(RULE_MAX_PARTICIPANTS):
            limit = self.max_participants
            if len(tournament.participants) > limit:
                report.add(
                    f"{len(tournament.participants)} participants exceed the limit of {limit}"
                )

        if self._is_enforced(RULE_REGISTRATION_LEAD_HOURS) and tournament.start_date:
            lead = self.registration_lead_hours
            if tournament.start_date - relativedelta(hours=lead) < now:
                report.add(f"The tournament must start at least {lead} hours from now")

        return report

    def _validate_match(self, match: Match) -> ValidationReport:
        report = ValidationReport()
        winning_score = self.winning_score
        margin = self.min_win_margin
        ceiling = self.max_score

        for set_score in match.sets:
            if not set_score.completed or set_score.winner is None:
                continue
            won = set_score.score_for(set_score.winner)
            lost = set_score.score_for(set_score.winner.other)
            if self._is_enforced(RULE_SET_WIN_POINTS) and won < winning_score:
                report.add(
                    f"Set {set_score.number} was won with {won} points, "
                    f"{winning_score} are required"
                )
            if (
                self._is_enforced(RULE_MIN_WIN_MARGIN)
                and won < ceiling
                and won - lost < margin
            ):
                report.add(
                    f"Set {set_score.number} was won by {won - lost}, "
                    f"a margin of {margin} is required"
                )

        if (
            self._is_enforced(RULE_SETS_TO_WIN)
            and match.status is MatchStatus.COMPLETED
            and match.winner_side is not None
        ):
            sets = match.sets_won(match.winner_side)
            if sets < self.sets_to_win:
                report.add(
                    f"The winner took {sets} sets, {self.sets_to_win} are required"
                )

        return report

    # ========== Serialization ==========

    def to_list(self) -> List[Dict[str, Any]]:
        return [rule.to_dict() for rule in self.all()]

    @classmethod
    def from_list(cls, records: Iterable[Dict[str, Any]]) -> "RuleSet":
        return cls(Rule.from_dict(record) for record in records)
