"""In-memory owner repository seeded with the clinic's sample data."""

from __future__ import annotations

import datetime as dt
from typing import Iterable

from petclinic.adapters.owners.base import AbstractOwnerRepository
from petclinic.schemas.owners import Owner, Pet, Visit


class InMemoryOwnerRepository(AbstractOwnerRepository):
    """Owner store kept in a dict keyed by owner id.

    Owners are immutable, so callers may share the returned objects freely.
    """

    def __init__(self, owners: Iterable[Owner] = ()) -> None:
        self._owners: dict[int, Owner] = {owner.id: owner for owner in owners}

    @classmethod
    def with_sample_data(cls) -> "InMemoryOwnerRepository":
        return cls(sample_owners())

    def find_all(self) -> list[Owner]:
        return list(self._owners.values())

    def find_by_id(self, owner_id: int) -> Owner | None:
        return self._owners.get(owner_id)

    def find_by_last_name(self, last_name: str) -> list[Owner]:
        prefix = last_name.lower()
        return [owner for owner in self._owners.values() if owner.last_name.lower().startswith(prefix)]


def _pet(pet_id: int, name: str, type_: str, birth_date: str, *visits: Visit) -> Pet:
    return Pet(id=pet_id, name=name, type=type_, birth_date=dt.date.fromisoformat(birth_date), visits=visits)


def _visit(visit_id: int, date: str, description: str) -> Visit:
    return Visit(id=visit_id, date=dt.date.fromisoformat(date), description=description)


def sample_owners() -> list[Owner]:
    """Return the ten sample owners with their pets and visits."""

    return [
        Owner(
            id=1, first_name="George", last_name="Franklin",
            address="110 W. Liberty St.", city="Madison", telephone="6085551023",
            pets=(_pet(1, "Leo", "cat", "2010-09-07"),),
        ),
        Owner(
            id=2, first_name="Betty", last_name="Davis",
            address="638 Cardinal Ave.", city="Sun Prairie", telephone="6085551749",
            pets=(_pet(2, "Basil", "hamster", "2012-08-06"),),
        ),
        Owner(
            id=3, first_name="Eduardo", last_name="Rodriquez",
            address="2693 Commerce St.", city="McFarland", telephone="6085558763",
            pets=(
                _pet(3, "Rosy", "dog", "2011-04-17"),
                _pet(4, "Jewel", "dog", "2010-03-07"),
            ),
        ),
        Owner(
            id=4, first_name="Harold", last_name="Davis",
            address="563 Friendly St.", city="Windsor", telephone="6085553198",
            pets=(_pet(5, "Iggy", "lizard", "2010-11-30"),),
        ),
        Owner(
            id=5, first_name="Peter", last_name="McTavish",
            address="2387 S. Fair Way", city="Madison", telephone="6085552765",
            pets=(_pet(6, "George", "snake", "2010-01-20"),),
        ),
        Owner(
            id=6, first_name="Jean", last_name="Coleman",
            address="105 N. Lake St.", city="Monona", telephone="6085552654",
            pets=(
                _pet(
                    7, "Samantha", "cat", "2012-09-04",
                    _visit(1, "2013-01-01", "rabies shot"),
                    _visit(4, "2013-01-04", "spayed"),
                ),
                _pet(
                    8, "Max", "cat", "2012-09-04",
                    _visit(2, "2013-01-02", "rabies shot"),
                    _visit(3, "2013-01-03", "neutered"),
                ),
            ),
        ),
        Owner(
            id=7, first_name="Jeff", last_name="Black",
            address="1450 Oak Blvd.", city="Monona", telephone="6085555387",
            pets=(_pet(9, "Lucky", "bird", "2011-08-06"),),
        ),
        Owner(
            id=8, first_name="Maria", last_name="Escobito",
            address="345 Maple St.", city="Madison", telephone="6085557683",
            pets=(_pet(10, "Mulligan", "dog", "2007-02-24"),),
        ),
        Owner(
            id=9, first_name="David", last_name="Schroeder",
            address="2749 Blackhawk Trail", city="Madison", telephone="6085559435",
            pets=(_pet(11, "Freddy", "bird", "2010-03-09"),),
        ),
        Owner(
            id=10, first_name="Carlos", last_name="Estaban",
            address="2335 Independence La.", city="Waunakee", telephone="6085555487",
            pets=(
                _pet(12, "Lucky", "dog", "2010-06-24"),
                _pet(13, "Sly", "cat", "2012-06-08"),
            ),
        ),
    ]
