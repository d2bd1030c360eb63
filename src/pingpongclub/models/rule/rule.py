"""A single configurable club rule."""

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
from typing import Any, Dict, List, Optional, Union

from pingpongclub.constants import POSITIVE_RULE_KEYS, PROTECTED_RULE_CATEGORIES
from pingpongclub.models.enums import MatchType, RuleCategory
from pingpongclub.utils import from_iso, generate_id, to_iso, utc_now
from pingpongclub.utils.validation import validate_name, validate_non_negative_number

RuleValue = Union[int, float, str]


@dataclass
class Rule:
    """A named parameter governing scoring, matches or tournaments.

    Attributes
    ----------
    name : str
        Display label, unique in a rule set (case-insensitive).
    value : int, float or str
        Numeric for built-in rules; custom rules may hold text.
    category : RuleCategory
        Rules in the scoring and match categories are protected.
    key : str or None
        Stable machine name of a built-in rule; None for custom rules.
    description : str
        Free text shown next to the rule.
    is_active : bool
        Inactive rules fall back to their default value.
    priority : int
        Ordering hint, never negative.
    applicable_types : list of MatchType
        Disciplines the rule applies to.
    """

    name: str
    value: RuleValue
    category: RuleCategory = RuleCategory.CUSTOM
    key: Optional[str] = None
    description: str = ""
    is_active: bool = True
    priority: int = 0
    applicable_types: List[MatchType] = field(default_factory=lambda: list(MatchType))
    id: str = field(default_factory=lambda: generate_id("rule"))
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def is_protected(self) -> bool:
        return self.category.value in PROTECTED_RULE_CATEGORIES

    @property
    def numeric_value(self) -> Optional[float]:
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            return None
        return self.value

    def applies_to(self, match_type: MatchType) -> bool:
        return match_type in self.applicable_types

    def touch(self) -> None:
        self.updated_at = utc_now()

    def validate(self) -> List[str]:
        """Return a list of problems with this rule's fields."""
        errors = []
        result = validate_name(self.name, field_name="Rule name")
        if not result:
            errors.append(result.error_message)
        if self.key is not None or not isinstance(self.value, str):
            minimum = 1 if self.key in POSITIVE_RULE_KEYS else 0
            result = validate_non_negative_number(
                self.value, field_name=self.name or "Rule value", minimum=minimum
            )
            if not result:
                errors.append(result.error_message)
        if self.priority < 0:
            errors.append("Priority cannot be negative")
        if not self.applicable_types:
            errors.append("A rule must apply to at least one match type")
        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Serialize rule to dictionary."""
        return {
            "id": self.id,
            "key": self.key,
            "name": self.name,
            "description": self.description,
            "value": self.value,
            "category": self.category.value,
            "isActive": self.is_active,
            "priority": self.priority,
            "applicableTypes": [t.value for t in self.applicable_types],
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rule":
        """Deserialize rule from dictionary."""
        created_at = from_iso(data.get("createdAt")) or utc_now()
        return cls(
            id=data["id"],
            key=data.get("key"),
            name=data["name"],
            description=data.get("description", ""),
            value=data["value"],
            category=RuleCategory(data.get("category", RuleCategory.CUSTOM.value)),
            is_active=data.get("isActive", True),
            priority=data.get("priority", 0),
            applicable_types=[
                MatchType(t)
                for t in data.get("applicableTypes", [t.value for t in MatchType])
            ],
            created_at=created_at,
            updated_at=from_iso(data.get("updatedAt")) or created_at,
        )
