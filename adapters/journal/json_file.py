"""
Read-only journal source backed by a JSON file.

The file holds an array of entries such as
``{"date": "2024-05-06", "symptoms": ["Headache"], "mood": 3, ...}``.
Entries are handed to the engine untouched; validation happens there so a
single bad entry is skipped instead of failing the whole load.
"""

import json
from pathlib import Path
from typing import Any

from healthcast.services.sources import logger


class JournalLoadError(Exception):
    """The journal file exists but cannot be read as a JSON array."""


class JsonFileJournalSource:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.logger = logger.bind(source="json_journal", path=str(self.path))

    def fetch_records(self) -> list[Any]:
        if not self.path.exists():
            self.logger.info("journal_file_missing")
            return []

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            self.logger.error("journal_load_failed", error=str(e))
            raise JournalLoadError(f"Cannot read journal {self.path}: {e}") from e

        if not isinstance(data, list):
            raise JournalLoadError(f"Journal {self.path} must contain a JSON array")

        self.logger.info("journal_loaded", records=len(data))
        return data
