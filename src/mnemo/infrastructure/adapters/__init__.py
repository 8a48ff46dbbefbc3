# Infrastructure Persistence Adapters Package
from .json_repository import JsonFileCardRepository
from .memory_repository import InMemoryCardRepository

__all__ = ["InMemoryCardRepository", "JsonFileCardRepository"]
