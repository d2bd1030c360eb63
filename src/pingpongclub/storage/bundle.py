"""Export bundle: every collection in one JSON document.

The bundle shape is::

    {"version": "1.0", "exportDate": "...", "players": [...], "doubles": [...],
     "teams": [...], "tournaments": [...], "matches": [...], "rules": [...]}

Importing checks each collection on its own. A collection with a bad
record is skipped and reported; the others are still written.
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

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from pingpongclub.constants import (
    COLLECTION_KEYS,
    EXPORT_VERSION,
    KEY_DOUBLES,
    KEY_MATCHES,
    KEY_PLAYERS,
    KEY_RULES,
    KEY_TEAMS,
    KEY_TOURNAMENTS,
)
from pingpongclub.exceptions import (
    FileLoadException,
    FileSaveException,
    ImportBundleException,
    PingPongClubException,
)
from pingpongclub.models.enums import ParticipantKind
from pingpongclub.models.match import Match
from pingpongclub.models.participant import participant_from_dict
from pingpongclub.models.rule import Rule
from pingpongclub.models.tournament import Tournament
from pingpongclub.storage.port import Record, StoragePort
from pingpongclub.utils import setup_logger, to_iso, utc_now

logger = setup_logger(__name__)

REQUIRED_FIELDS: Dict[str, List[str]] = {
    KEY_PLAYERS: ["id", "name", "email"],
    KEY_DOUBLES: ["id", "player1Id", "player2Id"],
    KEY_TEAMS: ["id", "name", "playerIds"],
    KEY_TOURNAMENTS: ["id", "name", "type"],
    KEY_MATCHES: ["id", "type"],
    KEY_RULES: ["id", "name", "value"],
}

# Parsers used to prove a record can be loaded before it is stored
RECORD_PARSERS: Dict[str, Callable[[Record], Any]] = {
    KEY_PLAYERS: lambda r: participant_from_dict(ParticipantKind.PLAYER, r),
    KEY_DOUBLES: lambda r: participant_from_dict(ParticipantKind.DOUBLE, r),
    KEY_TEAMS: lambda r: participant_from_dict(ParticipantKind.TEAM, r),
    KEY_TOURNAMENTS: Tournament.from_dict,
    KEY_MATCHES: Match.from_dict,
    KEY_RULES: Rule.from_dict,
}


@dataclass
class ImportReport:
    """Outcome of importing a bundle.

    Attributes
    ----------
    imported : dict
        Number of records written, per collection.
    errors : dict
        Why a collection was skipped, per collection.
    """

    imported: Dict[str, int] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def total_imported(self) -> int:
        return sum(self.imported.values())


def build_bundle(
    collections: Dict[str, List[Record]],
    now: Optional[datetime] = None,
    version: str = EXPORT_VERSION,
) -> Dict[str, Any]:
    bundle: Dict[str, Any] = {
        "version": version,
        "exportDate": to_iso(now or utc_now()),
    }
    for key in COLLECTION_KEYS:
        bundle[key] = list(collections.get(key, []))
    return bundle


def validate_collection(key: str, records: Any) -> Optional[str]:
    """Return why ``records`` cannot be imported as ``key``, or None."""
    if not isinstance(records, list):
        return f"{key} must be a list"
    required = REQUIRED_FIELDS[key]
    parser = RECORD_PARSERS[key]
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            return f"{key}[{index}] is not an object"
        missing = [name for name in required if record.get(name) in (None, "")]
        if missing:
            return f"{key}[{index}] is missing {', '.join(missing)}"
        try:
            parser(record)
        except (KeyError, ValueError, TypeError, PingPongClubException) as e:
            return f"{key}[{index}] is invalid: {e}"
    return None


def import_bundle(storage: StoragePort, bundle: Dict[str, Any]) -> ImportReport:
    """Validate and store every collection present in ``bundle``."""
    if not isinstance(bundle, dict):
        raise ImportBundleException("An export bundle must be a JSON object")

    report = ImportReport()
    version = bundle.get("version")
    if version is not None and version != EXPORT_VERSION:
        logger.warning("Importing bundle version %s (expected %s)", version, EXPORT_VERSION)

    for key in COLLECTION_KEYS:
        if key not in bundle:
            continue
        error = validate_collection(key, bundle[key])
        if error:
            logger.warning("Skipping %s: %s", key, error)
            report.errors[key] = error
            continue
        storage.save(key, bundle[key])
        report.imported[key] = len(bundle[key])

    logger.info(
        "Imported %s records (%s collections skipped)",
        report.total_imported,
        len(report.errors),
    )
    return report


def write_bundle(bundle: Dict[str, Any], path: Union[str, Path]) -> Path:
    """Write a bundle to ``path`` as pretty-printed JSON."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(bundle, f, indent=2, ensure_ascii=False)
    except (OSError, TypeError, ValueError) as e:
        raise FileSaveException(f"Failed to write export to {path}: {e}") from e
    logger.info("Export saved to: %s", path)
    return path


def read_bundle(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise FileLoadException(f"Failed to read export from {path}: {e}") from e
