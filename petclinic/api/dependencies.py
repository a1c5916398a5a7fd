"""Shared collaborators for the route modules.

Instances are process-wide; tests swap them through
``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

from petclinic.adapters.owners.base import AbstractOwnerRepository
from petclinic.adapters.owners.in_memory import InMemoryOwnerRepository
from petclinic.core.config import settings
from petclinic.services.analytics_service import PetAnalyticsService


@lru_cache(maxsize=1)
def get_owner_repository() -> AbstractOwnerRepository:
    return InMemoryOwnerRepository.with_sample_data()


@lru_cache(maxsize=1)
def get_analytics_service() -> PetAnalyticsService:
    return PetAnalyticsService(
        get_owner_repository(),
        max_workers=settings.analytics.max_workers,
        task_timeout_seconds=settings.analytics.task_timeout_seconds,
    )


def shutdown() -> None:
    """Release the analytics worker pool if it was ever created."""
    if get_analytics_service.cache_info().currsize:
        get_analytics_service().close()
        get_analytics_service.cache_clear()
