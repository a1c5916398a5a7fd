"""Pydantic schemas for owners, pets and visits.

Instances are frozen: the analytics fan-out hands the same pet objects to
several worker threads, which only ever read them.
"""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Visit(_Frozen):
    """A single visit of a pet to the clinic."""

    id: int
    date: dt.date
    description: str = ""


class Pet(_Frozen):
    """A pet together with its visit history."""

    id: int
    name: str
    type: str = Field(..., description="Pet type name, e.g. 'dog' or 'cat'.")
    birth_date: dt.date | None = None
    visits: tuple[Visit, ...] = ()

    @property
    def visit_dates(self) -> list[dt.date]:
        return [visit.date for visit in self.visits]


class Owner(_Frozen):
    """A clinic customer owning zero or more pets."""

    id: int
    first_name: str
    last_name: str
    address: str = ""
    city: str = ""
    telephone: str = ""
    pets: tuple[Pet, ...] = ()

    def get_pet(self, pet_id: int) -> Pet | None:
        """Return the pet with the given id, or None if this owner has none."""
        for pet in self.pets:
            if pet.id == pet_id:
                return pet
        return None


class PetListEntry(_Frozen):
    """Flattened pet row for the pet list resource."""

    id: int
    name: str
    type: str
    birth_date: dt.date | None = None
    owner_id: int
    visits: tuple[Visit, ...] = ()


class PetList(_Frozen):
    """Response wrapper for ``GET /pets``."""

    pet_list: list[PetListEntry] = Field(default_factory=list)
