"""
JSON File Repository: Infrastructure adapter for a single-file store.

Implements CardRepository on top of the export format, so the file on disk
is also a valid backup blob.
"""

import logging
import os
import tempfile
from pathlib import Path

from mnemo.domain.errors import ImportDataError, StorageError
from mnemo.domain.models import Card
from mnemo.domain.ports import CardRepository
from mnemo.infrastructure.serialization import dump_store, load_store

logger = logging.getLogger(__name__)


class JsonFileCardRepository(CardRepository):
    """
    Persists the whole store to one JSON file.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so a failed save leaves the previous file intact.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> dict[str, Card]:
        if not self.path.exists():
            logger.debug(f"No store at {self.path}, starting empty")
            return {}

        try:
            blob = self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to read store {self.path}: {e}")
            raise StorageError(f"Could not read {self.path}: {e}") from e

        try:
            cards = load_store(blob)
        except ImportDataError as e:
            logger.error(f"Store {self.path} is corrupt")
            raise StorageError(f"Store file {self.path} is corrupt: {e}") from e

        logger.debug(f"Loaded {len(cards)} cards from {self.path}")
        return cards

    def save(self, cards: dict[str, Card]) -> None:
        blob = dump_store(cards)
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                handle.write(blob)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            logger.error(f"Failed to write store {self.path}: {e}")
            raise StorageError(f"Could not write {self.path}: {e}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.debug(f"Saved {len(cards)} cards to {self.path}")
