"""
Review Service Factory
Centralizes the logic for selecting the storage adapter and wiring the service.
"""

from collections.abc import Callable
from datetime import datetime

from keyrecall.application.config import AppConfig
from keyrecall.application.item_store import ItemStore
from keyrecall.application.review_service import ReviewService, utc_now
from keyrecall.application.stats import StatisticsCalculator
from keyrecall.domain.review.ports import ReviewItemRepository
from keyrecall.infrastructure.adapters.json_store import JsonFileItemRepository
from keyrecall.infrastructure.adapters.memory_store import InMemoryItemRepository


def get_item_repository(config: AppConfig) -> ReviewItemRepository:
    """
    Returns the ReviewItemRepository implementation selected by config.
    """
    if config.storage == "memory":
        return InMemoryItemRepository()
    return JsonFileItemRepository(config.data_file)


def build_review_service(
    config: AppConfig,
    clock: Callable[[], datetime] = utc_now,
    repository: ReviewItemRepository | None = None,
) -> ReviewService:
    """
    Build a ReviewService whose store is loaded from the configured repository.
    """
    store = ItemStore(
        repository=repository if repository is not None else get_item_repository(config),
        policy=config.scheduling_policy(),
        history_limit=config.history_limit,
    )
    return ReviewService(
        store,
        clock=clock,
        calculator=StatisticsCalculator(config.mastery_repetitions),
        default_max_items=config.default_max_items,
    )
