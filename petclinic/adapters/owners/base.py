"""Owner repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from petclinic.schemas.owners import Owner


class AbstractOwnerRepository(ABC):
    """Read access to owners with their nested pets and visits."""

    @abstractmethod
    def find_all(self) -> list[Owner]:
        """Return every owner with pets and visits populated."""
        raise NotImplementedError

    @abstractmethod
    def find_by_id(self, owner_id: int) -> Owner | None:
        """Return the owner with the given id, or None if unknown."""
        raise NotImplementedError

    @abstractmethod
    def find_by_last_name(self, last_name: str) -> list[Owner]:
        """Return owners whose last name starts with ``last_name``.

        An empty prefix matches every owner.
        """
        raise NotImplementedError
