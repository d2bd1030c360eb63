"""Application configuration."""

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

from dataclasses import dataclass
from typing import Any, Dict, Optional

from pingpongclub.constants import EXPORT_VERSION
from pingpongclub.storage import JsonFileStorage, MemoryStorage, StoragePort


@dataclass
class ClubConfig:
    """Club application settings.

    Attributes
    ----------
    data_dir : str or None
        Directory for the JSON collection files. None keeps everything in
        memory.
    log_level : str
        Level passed to ``configure_logging`` by applications and tools.
    seed_default_rules : bool
        Store the built-in rules when no rules are stored yet.
    export_version : str
        Version written into export bundles.
    """

    data_dir: Optional[str] = None
    log_level: str = "INFO"
    seed_default_rules: bool = True
    export_version: str = EXPORT_VERSION

    def make_storage(self) -> StoragePort:
        if self.data_dir is None:
            return MemoryStorage()
        return JsonFileStorage(self.data_dir)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration to dictionary."""
        return {
            "data_dir": self.data_dir,
            "log_level": self.log_level,
            "seed_default_rules": self.seed_default_rules,
            "export_version": self.export_version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClubConfig":
        """Deserialize configuration from dictionary."""
        return cls(
            data_dir=data.get("data_dir"),
            log_level=data.get("log_level", "INFO"),
            seed_default_rules=data.get("seed_default_rules", True),
            export_version=data.get("export_version", EXPORT_VERSION),
        )
