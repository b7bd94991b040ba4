"""
Ports (interfaces) for review state persistence.

These define the contract that infrastructure adapters must implement.
The item store depends on this abstraction, not on a storage technology.
"""

from abc import ABC, abstractmethod

from .models import ReviewItem


class ReviewItemRepository(ABC):
    """
    Port for loading and saving the full set of review items.

    Implementations:
        - InMemoryItemRepository: Keeps the last saved snapshot in memory.
        - JsonFileItemRepository: Stores the snapshot in a JSON file.
    """

    @abstractmethod
    def load(self) -> list[ReviewItem]:
        """
        Load every stored review item.

        Returns:
            The stored items, or an empty list when nothing was saved yet.

        Raises:
            StorageError: If stored state exists but cannot be decoded.
        """
        pass

    @abstractmethod
    def save(self, items: list[ReviewItem]) -> None:
        """
        Replace the stored snapshot with the given items.

        Every field of each ReviewItem must round-trip through load().
        """
        pass
