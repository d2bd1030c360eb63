"""Exceptions for use in Ping Pong Club"""

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

from typing import List, Optional


# ========== Base Application Exception ==========


class PingPongClubException(Exception):
    """Base exception for all Ping Pong Club errors.

    All custom exceptions in the application should inherit from this class.
    This enables catching all application-specific errors with a single except clause.
    """

    pass


# ========== Validation Exceptions ==========


class ValidationError(PingPongClubException):
    """Raised when a command carries malformed, missing or duplicate data.

    The entity the command targeted is left unchanged.

    Attributes:
        errors: Individual validation messages
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors: List[str] = list(errors) if errors else [message]


class ProtectedResourceError(ValidationError):
    """Raised when deleting or deactivating a protected core rule."""

    pass


# ========== Lifecycle Exceptions ==========


class InvalidStateError(PingPongClubException):
    """Raised when a command does not fit the entity's lifecycle state.

    Examples are scoring a scheduled match or starting a tournament twice.
    """

    pass


class NotFoundError(PingPongClubException):
    """Raised when an operation references an id absent from the registry."""

    pass


# ========== Storage Exceptions ==========


class StorageException(PingPongClubException):
    """Base exception for persistence errors."""

    pass


class FileLoadException(StorageException):
    """Raised when a stored collection cannot be loaded."""

    pass


class FileSaveException(StorageException):
    """Raised when a collection cannot be saved."""

    pass


class ImportBundleException(StorageException):
    """Raised when an export bundle is unreadable as a whole."""

    pass
