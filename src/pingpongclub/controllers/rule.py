"""Rule registry and the rule set view built from it."""

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
from typing import Any, List, Optional, Union

from pingpongclub.constants import KEY_RULES
from pingpongclub.controllers.base import BaseController, apply_changes
from pingpongclub.events import EventBus, EventType
from pingpongclub.exceptions import ProtectedResourceError, ValidationError
from pingpongclub.models.enums import MatchType, RuleCategory
from pingpongclub.models.match import Match
from pingpongclub.models.rule import Rule, RuleSet, RuleValue, default_rules
from pingpongclub.models.tournament import Tournament
from pingpongclub.storage import Record, StoragePort
from pingpongclub.utils import setup_logger
from pingpongclub.utils.validation import ValidationReport, raise_if_invalid

logger = setup_logger(__name__)

RULE_FIELDS = ["name", "value", "description", "priority", "category", "applicable_types"]


class RuleController(BaseController[Rule]):
    """Manages the club's rules.

    Rules in the scoring and match categories are protected: they can be
    edited but never deleted or deactivated.

    Args:
        storage: Persistence port
        events: Change notifications
        seed_defaults: Store the built-in rules when none are stored yet
    """

    storage_key = KEY_RULES
    label = "rule"

    def __init__(
        self, storage: StoragePort, events: EventBus, seed_defaults: bool = True
    ) -> None:
        super().__init__(storage, events)
        self.seed_defaults = seed_defaults
        if seed_defaults:
            for rule in default_rules():
                self._store(rule)

    def _from_record(self, record: Record) -> Rule:
        return Rule.from_dict(record)

    @property
    def rule_set(self) -> RuleSet:
        """Current rules as a :class:`RuleSet`."""
        return RuleSet(self._items.values())

    def load(self) -> int:
        count = super().load()
        if count == 0 and self.seed_defaults:
            for rule in default_rules():
                self._store(rule)
            self.save()
            logger.info("Seeded %s default rules", len(self._items))
            count = len(self._items)
        return count

    def _check(self, rule: Rule) -> None:
        errors = rule.validate()
        if rule.name and self.rule_set.find_by_name(rule.name, exclude_id=rule.id):
            errors.append(f"A rule named {rule.name} already exists")
        raise_if_invalid(errors, "Invalid rule")

    # ========== Commands ==========

    def create(
        self,
        name: str,
        value: RuleValue,
        category: Union[RuleCategory, str] = RuleCategory.CUSTOM,
        description: str = "",
        priority: int = 0,
        applicable_types: Optional[List[MatchType]] = None,
    ) -> Rule:
        """Add a custom rule.

        Raises:
            ValidationError: If the name is empty or taken, or the value is invalid
        """
        rule = Rule(
            name=(name or "").strip(),
            value=value,
            category=_as_category(category),
            description=description,
            priority=priority,
        )
        if applicable_types is not None:
            rule.applicable_types = list(applicable_types)
        self._check(rule)

        self._store(rule)
        self._commit(EventType.RULE_CREATED, rule)
        logger.info("Created rule %s = %s", rule.name, rule.value)
        return rule

    def update(self, rule_id: str, **changes: Any) -> Rule:
        """Edit a rule.

        Raises:
            ProtectedResourceError: If a protected rule would leave its category
            ValidationError: If the new values are invalid
        """
        rule = self.get(rule_id)
        if "category" in changes:
            changes["category"] = _as_category(changes["category"])
            if rule.is_protected and changes["category"] is not rule.category:
                raise ProtectedResourceError(
                    f"Rule {rule.name} is a core rule; its category cannot change"
                )
        if "name" in changes:
            changes["name"] = (changes["name"] or "").strip()

        candidate = Rule.from_dict(rule.to_dict())
        apply_changes(candidate, changes, RULE_FIELDS)
        self._check(candidate)

        apply_changes(rule, changes, RULE_FIELDS)
        rule.touch()
        self._commit(EventType.RULE_UPDATED, rule, changes=sorted(changes))
        return rule

    def delete(self, rule_id: str) -> Rule:
        rule = self.get(rule_id)
        if rule.is_protected:
            raise ProtectedResourceError(f"Rule {rule.name} is a core rule and cannot be deleted")
        self._discard(rule_id)
        self._commit(EventType.RULE_DELETED, rule)
        logger.info("Deleted rule %s", rule.name)
        return rule

    def activate(self, rule_id: str) -> Rule:
        rule = self.get(rule_id)
        rule.is_active = True
        rule.touch()
        self._commit(EventType.RULE_ACTIVATED, rule)
        return rule

    def deactivate(self, rule_id: str) -> Rule:
        rule = self.get(rule_id)
        if rule.is_protected:
            raise ProtectedResourceError(
                f"Rule {rule.name} is a core rule and cannot be deactivated"
            )
        rule.is_active = False
        rule.touch()
        self._commit(EventType.RULE_DEACTIVATED, rule)
        return rule

    def reset_to_defaults(self) -> List[Rule]:
        """Drop every rule, custom ones included, and restore the built-in set."""
        self._items = {}
        for rule in default_rules():
            self._store(rule)
        self._commit(EventType.RULES_RESET, count=len(self._items))
        logger.info("Rules reset to defaults")
        return self.rule_set.all()

    # ========== Queries ==========

    def all(self) -> List[Rule]:
        return self.rule_set.all()

    def search(
        self, term: str = "", category: Optional[Union[RuleCategory, str]] = None
    ) -> List[Rule]:
        term = (term or "").strip().lower()
        found = self.all()
        if term:
            found = [
                r
                for r in found
                if term in r.name.lower()
                or term in r.description.lower()
                or term in str(r.value).lower()
            ]
        if category is not None:
            category = _as_category(category)
            found = [r for r in found if r.category is category]
        return found

    def find_by_key(self, key: str) -> Optional[Rule]:
        return self.rule_set.find_by_key(key)

    def validate(
        self, context: Union[Match, Tournament], now: Optional[datetime] = None
    ) -> ValidationReport:
        return self.rule_set.validate(context, now=now)


def _as_category(value: Union[RuleCategory, str]) -> RuleCategory:
    if isinstance(value, RuleCategory):
        return value
    try:
        return RuleCategory(value)
    except ValueError:
        raise ValidationError(f"Invalid rule category: {value!r}") from None
