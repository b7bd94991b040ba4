# Infrastructure Storage Adapters Package
from .json_store import JsonFileItemRepository
from .memory_store import InMemoryItemRepository

__all__ = ["InMemoryItemRepository", "JsonFileItemRepository"]
