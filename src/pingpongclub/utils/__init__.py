"""Shared helpers: logging setup, id generation and date handling."""

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

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Optional, Union

from dateutil import parser as date_parser

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(name: str) -> logging.Logger:
    """Return the module logger for ``name``.

    Handlers are attached once on the package logger by
    :func:`configure_logging`; module loggers only propagate.
    """
    return logging.getLogger(name)


def configure_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Attach a stream handler to the package logger.

    Calling this more than once only updates the level.

    Args:
        level: Logging level name or number

    Returns:
        The package logger
    """
    root = logging.getLogger("pingpongclub")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    root.setLevel(level)
    if not any(getattr(h, "_pingpongclub", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._pingpongclub = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    return root


def generate_id(prefix: str) -> str:
    """Generate a unique id such as ``player_1f3a9c0b2d4e``."""
    return f"{prefix.lower()}_{uuid.uuid4().hex[:12]}"


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime to an ISO-8601 string, passing None through."""
    if value is None:
        return None
    return value.isoformat()


def from_iso(value: Optional[Union[str, datetime]]) -> Optional[datetime]:
    """Parse an ISO-8601 string into an aware datetime.

    Naive values are taken to be UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = date_parser.isoparse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))
