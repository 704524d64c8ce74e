"""Pet ownership lookups.

Pet profiles are managed elsewhere; the grant core only needs to know who
owns a pet. The in-memory registry backs development and tests, the SQL
lookup reads the pet service's ``pets`` table.
"""

import asyncio

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pet_access.core.errors import InvalidInputError, PetNotFoundError


class InMemoryPetRegistry:
    """pet_id -> owner_user_id map."""

    def __init__(self, owners: dict[str, str] | None = None) -> None:
        self._lock = asyncio.Lock()
        self._owners: dict[str, str] = dict(owners or {})

    def register(self, pet_id: str, owner_user_id: str) -> None:
        if not pet_id.strip() or not owner_user_id.strip():
            raise InvalidInputError("pet_id and owner_user_id are required")
        self._owners[pet_id] = owner_user_id

    async def owner_of(self, pet_id: str) -> str:
        async with self._lock:
            owner = self._owners.get(pet_id)
        if not owner:
            raise PetNotFoundError(pet_id=pet_id)
        return owner


class SqlPetOwnerLookup:
    """Reads ``pets.owner_user_id``."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def owner_of(self, pet_id: str) -> str:
        async with self._session_maker() as session:
            result = await session.execute(
                text("SELECT owner_user_id FROM pets WHERE id = :pet_id"),
                {"pet_id": pet_id},
            )
            owner = result.scalar_one_or_none()
        if not owner:
            raise PetNotFoundError(pet_id=pet_id)
        return owner
