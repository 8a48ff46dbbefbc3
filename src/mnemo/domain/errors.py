"""Exception hierarchy for the engine. All errors are local and recoverable."""


class MnemoError(Exception):
    """Base class for every error raised by mnemo."""


class InvalidQualityError(MnemoError, ValueError):
    """A review quality outside the integers 0..5."""

    def __init__(self, quality: object):
        self.quality = quality
        super().__init__(f"Quality must be an integer between 0 and 5, got {quality!r}")


class CardNotFoundError(MnemoError, KeyError):
    """No card exists for the requested item id."""

    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(card_id)

    def __str__(self) -> str:
        return f"No card with id {self.card_id!r}"


class ImportDataError(MnemoError, ValueError):
    """A serialized store blob could not be decoded or failed validation."""


class StorageError(MnemoError):
    """The persistence layer failed to load or save the store."""
