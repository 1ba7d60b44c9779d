"""
Ports (interfaces) for the external collaborators of the study core.

Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Literal, Protocol

StoreKind = Literal["notes", "flashcards", "decks", "tests", "testResults"]


class CollectionStore(ABC):
    """
    Port for persisting whole collections of records keyed by entity kind.

    Implementations:
        - YamlCollectionStore: One YAML file per kind under a data directory.
        - MemoryCollectionStore: In-process dict, used by tests and dry runs.
    """

    @abstractmethod
    def load(self, kind: StoreKind) -> list[dict[str, Any]]:
        """
        Return every record of the given kind (empty list if none were saved).
        """
        pass

    @abstractmethod
    def save(self, kind: StoreKind, records: list[dict[str, Any]]) -> None:
        """
        Replace the stored collection of the given kind. Last write wins.
        """
        pass


class Clock(Protocol):
    """Source of the current time. Must return timezone-aware datetimes."""

    def now(self) -> datetime: ...
