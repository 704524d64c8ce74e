"""In-memory grant store.

Reference implementation of the store contract. Each instance owns its
table and lock, so independent stores can coexist in one process.
"""

import asyncio

from pet_access.core.access_grants.enums import GrantStatus
from pet_access.core.access_grants.models import Grant, by_precedence, most_recent
from pet_access.core.errors import (
    GrantAlreadyExistsError,
    GrantConflictError,
    GrantNotFoundError,
)
from pet_access.stores.base import GrantStore


class InMemoryGrantStore(GrantStore):
    """Grants keyed by id, guarded by one asyncio lock per instance."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._by_id: dict[str, Grant] = {}

    async def create(self, grant: Grant) -> None:
        async with self._lock:
            if grant.id in self._by_id:
                raise GrantAlreadyExistsError(grant_id=grant.id)
            self._by_id[grant.id] = grant

    async def update(self, grant: Grant, expected: Grant | None = None) -> None:
        async with self._lock:
            current = self._by_id.get(grant.id)
            if current is None:
                raise GrantNotFoundError(grant_id=grant.id)
            if expected is not None and current.version() != expected.version():
                raise GrantConflictError(grant_id=grant.id)
            self._by_id[grant.id] = grant

    async def get_by_id(self, grant_id: str) -> Grant:
        async with self._lock:
            grant = self._by_id.get(grant_id)
        if grant is None:
            raise GrantNotFoundError(grant_id=grant_id)
        return grant

    async def list_by_pet(self, pet_id: str) -> list[Grant]:
        async with self._lock:
            grants = [g for g in self._by_id.values() if g.pet_id == pet_id]
        return sorted(grants, key=lambda g: (g.created_at, g.id))

    async def list_by_grantee(self, grantee_user_id: str) -> list[Grant]:
        async with self._lock:
            grants = [
                g for g in self._by_id.values() if g.grantee_user_id == grantee_user_id
            ]
        return by_precedence(grants)

    async def get_active_grant(self, pet_id: str, grantee_user_id: str) -> Grant:
        async with self._lock:
            winner = most_recent(
                g
                for g in self._by_id.values()
                if g.pet_id == pet_id
                and g.grantee_user_id == grantee_user_id
                and g.status is GrantStatus.ACTIVE
            )
        if winner is None:
            raise GrantNotFoundError(pet_id=pet_id, grantee_user_id=grantee_user_id)
        return winner

    def __len__(self) -> int:
        return len(self._by_id)
