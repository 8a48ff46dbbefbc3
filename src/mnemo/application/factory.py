"""
Engine Factory
Centralizes the wiring of the engine to its persistence adapter.
"""

from mnemo.application.config import AppConfig
from mnemo.application.engine import SpacedRepetitionEngine
from mnemo.domain.ports import CardRepository, Clock
from mnemo.infrastructure.adapters.json_repository import JsonFileCardRepository


def get_card_repository(config: AppConfig) -> CardRepository:
    """Returns the repository backing the configured store file."""
    return JsonFileCardRepository(config.store_path)


def build_engine(config: AppConfig, clock: Clock | None = None) -> SpacedRepetitionEngine:
    """
    Returns an engine loaded from the configured store.

    Raises:
        StorageError: If the store file exists but cannot be read.
    """
    return SpacedRepetitionEngine(repository=get_card_repository(config), clock=clock)
