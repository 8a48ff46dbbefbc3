"""Service for generating stable card ids."""

from ulid import ULID


def generate_card_id() -> str:
    """Generate a stable, sortable card id using ULID."""
    return f"card_{ULID()}"
