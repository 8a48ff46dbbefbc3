from mnemo.application.engine import SpacedRepetitionEngine
from mnemo.consts import VERSION
from mnemo.domain.errors import (
    CardNotFoundError,
    ImportDataError,
    InvalidQualityError,
    MnemoError,
    StorageError,
)
from mnemo.domain.models import Card, CardState, ReviewRecord

__version__ = VERSION

__all__ = [
    "Card",
    "CardNotFoundError",
    "CardState",
    "ImportDataError",
    "InvalidQualityError",
    "MnemoError",
    "ReviewRecord",
    "SpacedRepetitionEngine",
    "StorageError",
]
