from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from petclinic.adapters.owners.base import AbstractOwnerRepository
from petclinic.api.dependencies import get_owner_repository
from petclinic.schemas.owners import Owner, PetList, PetListEntry

router = APIRouter(tags=["Owners"])


@router.get("/owners/find", response_model=list[Owner])
def find_owners(
    repository: Annotated[AbstractOwnerRepository, Depends(get_owner_repository)],
    last_name: Annotated[str, Query(alias="lastName")] = "",
) -> list[Owner]:
    """Search owners by last name prefix (case-insensitive).

    An empty ``lastName`` returns every owner. This is the default rate
    limited route (see ``RATE_LIMIT_PROTECTED_ROUTE``).
    """
    return repository.find_by_last_name(last_name.strip())


@router.get("/pets", response_model=PetList)
def list_pets(
    repository: Annotated[AbstractOwnerRepository, Depends(get_owner_repository)],
) -> PetList:
    """List every pet with its owner id and visits."""
    entries = [
        PetListEntry(
            id=pet.id,
            name=pet.name,
            type=pet.type,
            birth_date=pet.birth_date,
            owner_id=owner.id,
            visits=pet.visits,
        )
        for owner in repository.find_all()
        for pet in owner.pets
    ]
    return PetList(pet_list=entries)
