"""Persistence port and its in-memory implementation."""

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

import copy
from typing import Any, Dict, List, Protocol, runtime_checkable

Record = Dict[str, Any]


@runtime_checkable
class StoragePort(Protocol):
    """Loads and saves entity collections by key.

    Records are plain JSON-compatible dicts; the storage medium never sees
    model objects.
    """

    def load(self, key: str) -> List[Record]:
        """Return the records stored under ``key`` (empty if none)."""
        ...

    def save(self, key: str, records: List[Record]) -> bool:
        """Replace the records stored under ``key``."""
        ...


class MemoryStorage:
    """Keeps collections in a dict. Records are deep-copied in and out."""

    def __init__(self) -> None:
        self._collections: Dict[str, List[Record]] = {}
        self.save_count: int = 0

    def load(self, key: str) -> List[Record]:
        return copy.deepcopy(self._collections.get(key, []))

    def save(self, key: str, records: List[Record]) -> bool:
        self._collections[key] = copy.deepcopy(records)
        self.save_count += 1
        return True

    def keys(self) -> List[str]:
        return list(self._collections)
