"""Service for generating stable identifiers for cards, decks, tests and results."""

from collections.abc import Callable

from ulid import ULID

IdGenerator = Callable[[], str]


def generate_id() -> str:
    """Generate a stable, sortable opaque id using ULID."""
    return str(ULID()).lower()
