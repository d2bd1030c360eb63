"""Input validation helpers for club records.

Each ``validate_*`` function returns a :class:`ValidationResult` instead of
raising, so callers can collect every problem before rejecting a command.
:func:`raise_if_invalid` turns a collected list into a ``ValidationError``.
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

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from pingpongclub.constants import MIN_ADDRESS_LENGTH, MIN_NAME_LENGTH
from pingpongclub.exceptions import ValidationError

EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"


class ValidationResult:
    """Result of a validation operation.

    Attributes:
        is_valid: Whether the validation passed
        error_message: Human-readable error message if invalid
        sanitized_value: Cleaned/normalized value if valid
    """

    def __init__(
        self,
        is_valid: bool,
        error_message: Optional[str] = None,
        sanitized_value: Any = None,
    ):
        self.is_valid = is_valid
        self.error_message = error_message
        self.sanitized_value = sanitized_value

    def __bool__(self) -> bool:
        """Allow using result in boolean context: if result: ..."""
        return self.is_valid

    def __repr__(self) -> str:
        if self.is_valid:
            return f"ValidationResult(VALID, {self.sanitized_value!r})"
        return f"ValidationResult(INVALID, {self.error_message!r})"


@dataclass
class ValidationReport:
    """Outcome of validating a whole entity against a set of rules.

    Attributes
    ----------
    valid : bool
        True when no violation was found.
    violations : list of str
        Human readable description of each broken rule.
    """

    violations: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.violations

    def add(self, message: str) -> None:
        self.violations.append(message)

    def __bool__(self) -> bool:
        return self.valid


def raise_if_invalid(errors: Iterable[str], message: str) -> None:
    """Raise ``ValidationError`` carrying ``errors`` when there are any."""
    errors = list(errors)
    if errors:
        raise ValidationError(f"{message}: {'; '.join(errors)}", errors)


# ========== Email Validation ==========


def validate_email(email: Optional[str], required: bool = False) -> ValidationResult:
    """Validate an email address.

    Args:
        email: Email address to validate
        required: Whether email is required (empty = invalid)

    Returns:
        ValidationResult with validation status

    Example:
        >>> result = validate_email("user@example.com")
        >>> if result:
        ...     print(f"Valid email: {result.sanitized_value}")
    """
    if not email or not email.strip():
        if required:
            return ValidationResult(
                is_valid=False,
                error_message="Email address is required",
            )
        return ValidationResult(is_valid=True, sanitized_value=None)

    email = email.strip()

    if re.match(EMAIL_PATTERN, email):
        return ValidationResult(is_valid=True, sanitized_value=email.lower())

    return ValidationResult(
        is_valid=False,
        error_message=f"Invalid email format: {email}",
    )


# ========== Name Validation ==========


def validate_name(
    name: Optional[str],
    required: bool = True,
    min_length: int = MIN_NAME_LENGTH,
    field_name: str = "Name",
) -> ValidationResult:
    """Validate a display name.

    Unicode letters are accepted; club members have Vietnamese names.

    Args:
        name: Name to validate
        required: Whether name is required
        min_length: Minimum length after stripping
        field_name: Name of the field for error messages

    Returns:
        ValidationResult with validation status
    """
    if not name or not name.strip():
        if required:
            return ValidationResult(
                is_valid=False,
                error_message=f"{field_name} is required",
            )
        return ValidationResult(is_valid=True, sanitized_value=None)

    name = name.strip()

    if len(name) < min_length:
        return ValidationResult(
            is_valid=False,
            error_message=f"{field_name} must be at least {min_length} characters",
        )

    return ValidationResult(is_valid=True, sanitized_value=name)


def validate_address(address: Optional[str]) -> ValidationResult:
    """Validate a postal address (required, at least a few characters)."""
    return validate_name(
        address, required=True, min_length=MIN_ADDRESS_LENGTH, field_name="Address"
    )


# ========== Generic Validation ==========


def validate_choice(
    value: Any, choices: Iterable[Any], field_name: str = "Value"
) -> ValidationResult:
    """Validate that ``value`` is one of ``choices``.

    Args:
        value: Value to validate
        choices: Accepted values
        field_name: Name of the field for error messages

    Returns:
        ValidationResult with validation status
    """
    choices = list(choices)
    if value in choices:
        return ValidationResult(is_valid=True, sanitized_value=value)
    return ValidationResult(
        is_valid=False,
        error_message=f"{field_name} must be one of {', '.join(map(str, choices))}: {value}",
    )


def validate_non_negative_number(
    value: Any, field_name: str = "Value", minimum: float = 0
) -> ValidationResult:
    """Validate that a value is a number no smaller than ``minimum``.

    Booleans are rejected even though they are ints in Python.

    Args:
        value: Value to validate
        field_name: Name of the field for error messages
        minimum: Smallest accepted value

    Returns:
        ValidationResult with the number as sanitized value
    """
    if value is None or isinstance(value, bool):
        return ValidationResult(
            is_valid=False,
            error_message=f"{field_name} must be a number",
        )

    try:
        number = float(value)
    except (ValueError, TypeError):
        return ValidationResult(
            is_valid=False,
            error_message=f"{field_name} must be a number: {value}",
        )

    if number < minimum:
        return ValidationResult(
            is_valid=False,
            error_message=f"{field_name} must be at least {minimum:g}: {value}",
        )

    if number.is_integer():
        number = int(number)
    return ValidationResult(is_valid=True, sanitized_value=number)
