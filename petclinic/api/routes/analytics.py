from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from petclinic.adapters.owners.base import AbstractOwnerRepository
from petclinic.api.dependencies import get_analytics_service, get_owner_repository
from petclinic.core.errors import NotFoundAppError
from petclinic.schemas.analytics import AnalyticsReport
from petclinic.services.analytics_service import PetAnalyticsService, generate_report

router = APIRouter(tags=["Analytics"])


@router.get("/api/analytics", response_model=AnalyticsReport)
async def get_analytics(
    service: Annotated[PetAnalyticsService, Depends(get_analytics_service)],
) -> AnalyticsReport:
    """Aggregate statistics over every pet of every owner.

    Pets are analyzed concurrently; any failure fails the whole request
    with a 500 error envelope and no partial data.

    Returns:
        AnalyticsReport: totalPets, petsByType, petsByHealthStatus,
            averageAge, totalVisits and analysisDate.
    """
    return await service.analyze_all()


@router.get("/api/pets/{pet_id}/report", response_class=PlainTextResponse)
def get_pet_report(
    pet_id: int,
    owner_id: Annotated[int, Query(alias="ownerId")],
    repository: Annotated[AbstractOwnerRepository, Depends(get_owner_repository)],
) -> str:
    """Plain-text report for one pet of one owner.

    Raises:
        NotFoundAppError: 404 when the owner or the pet does not exist.
    """
    owner = repository.find_by_id(owner_id)
    if owner is None:
        raise NotFoundAppError(
            code="owner_not_found",
            message=f"Owner {owner_id} not found.",
            details={"owner_id": owner_id},
        )

    pet = owner.get_pet(pet_id)
    if pet is None:
        raise NotFoundAppError(
            code="pet_not_found",
            message=f"Pet {pet_id} not found for owner {owner_id}.",
            details={"owner_id": owner_id, "pet_id": pet_id},
        )

    return generate_report(pet)
