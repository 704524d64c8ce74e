"""Grant store contract.

The store is the single source of truth for grants. Implementations must
serialize mutations and resolve duplicate active grants with
``pet_access.core.access_grants.models.most_recent``'s order.
"""

import abc

from pet_access.core.access_grants.models import Grant


class GrantStore(abc.ABC):
    """Keyed, durable storage of grant records."""

    @abc.abstractmethod
    async def create(self, grant: Grant) -> None:
        """Persist a new grant.

        Raises:
            GrantAlreadyExistsError: If a grant with the same id exists.
        """

    @abc.abstractmethod
    async def update(self, grant: Grant, expected: Grant | None = None) -> None:
        """Replace the stored grant with the same id.

        With ``expected``, the write is a compare-and-set: it only happens
        if the stored grant still has ``expected.version()``.

        Raises:
            GrantNotFoundError: If no grant with that id exists.
            GrantConflictError: If the stored grant no longer matches ``expected``.
        """

    @abc.abstractmethod
    async def get_by_id(self, grant_id: str) -> Grant:
        """Raises GrantNotFoundError if missing."""

    @abc.abstractmethod
    async def list_by_pet(self, pet_id: str) -> list[Grant]:
        """All grants for a pet, oldest first."""

    @abc.abstractmethod
    async def list_by_grantee(self, grantee_user_id: str) -> list[Grant]:
        """All grants held by a grantee, most recently updated first."""

    @abc.abstractmethod
    async def get_active_grant(self, pet_id: str, grantee_user_id: str) -> Grant:
        """The winning active grant for the pair.

        Raises:
            GrantNotFoundError: If the pair has no active grant.
        """

    async def check_connection(self) -> bool:
        """Return True if the backing storage is reachable."""
        return True
