"""JSON file storage: one ``<key>.json`` file per collection."""

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
from pathlib import Path
from typing import List, Union

from pingpongclub.constants import SAVE_FILE_EXTENSION
from pingpongclub.exceptions import FileLoadException, FileSaveException
from pingpongclub.storage.port import Record
from pingpongclub.utils import setup_logger

logger = setup_logger(__name__)


class JsonFileStorage:
    """Stores each collection as a pretty-printed JSON array.

    Args:
        data_dir: Directory holding the collection files; created on demand
    """

    def __init__(self, data_dir: Union[str, Path]) -> None:
        self.data_dir = Path(data_dir)

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{key}{SAVE_FILE_EXTENSION}"

    def load(self, key: str) -> List[Record]:
        """Read a collection.

        Returns:
            The stored records, or an empty list if the file does not exist

        Raises:
            FileLoadException: If the file cannot be read or is not a JSON array
        """
        path = self.path_for(key)
        if not path.exists():
            logger.debug("No stored %s at %s", key, path)
            return []

        try:
            with open(path, "r", encoding="utf-8") as f:
                records = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise FileLoadException(f"Failed to load {key} from {path}: {e}") from e

        if not isinstance(records, list):
            raise FileLoadException(f"{path} does not contain a list of records")
        logger.debug("Loaded %s %s from %s", len(records), key, path)
        return records

    def save(self, key: str, records: List[Record]) -> bool:
        """Write a collection, replacing any previous contents.

        Raises:
            FileSaveException: If the file cannot be written
        """
        path = self.path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
        except (OSError, TypeError, ValueError) as e:
            raise FileSaveException(f"Failed to save {key} to {path}: {e}") from e

        logger.debug("Saved %s %s to %s", len(records), key, path)
        return True
