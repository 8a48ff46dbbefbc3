"""
Ports (interfaces) for the engine's collaborators.

Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import Card


class Clock(ABC):
    """Source of the current time. Implementations must return aware UTC datetimes."""

    @abstractmethod
    def now(self) -> datetime:
        pass


class CardRepository(ABC):
    """
    Port for persisting the card store.

    Implementations:
        - InMemoryCardRepository: Keeps a private copy in memory.
        - JsonFileCardRepository: Reads and writes a JSON file.
    """

    @abstractmethod
    def load(self) -> dict[str, Card]:
        """
        Load the full store.

        Returns:
            Mapping of card id to Card. Empty if nothing was saved yet.

        Raises:
            StorageError: If stored data cannot be read or is malformed.
        """
        pass

    @abstractmethod
    def save(self, cards: dict[str, Card]) -> None:
        """
        Durably replace the stored cards with *cards*.

        Raises:
            StorageError: If the write fails. Stored data must be left as it was.
        """
        pass
