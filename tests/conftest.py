"""Pytest configuration and shared fixtures."""

import asyncio
import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient

# Set testing mode BEFORE importing the app
os.environ["TESTING"] = "true"
os.environ.setdefault("GRANT_STORE_BACKEND", "memory")

from pet_access.core.access_grants.enums import GrantStatus
from pet_access.core.access_grants.models import Grant
from pet_access.core.access_grants.service import AccessGrantService
from pet_access.core.scopes import Scope
from pet_access.main import create_app
from pet_access.services.pet_ownership import InMemoryPetRegistry
from pet_access.stores.memory import InMemoryGrantStore

T0 = datetime(2025, 12, 22, 10, 0, tzinfo=UTC)

PET_ID = "pet-1"
OWNER_ID = "owner-1"
DELEGATE_ID = "delegate-1"


class FrozenClock:
    """Deterministic clock for the grant engine."""

    def __init__(self, start: datetime = T0):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


class YieldingGrantStore(InMemoryGrantStore):
    """In-memory store that yields to the event loop before every call.

    A networked backend suspends on each round trip; this lets concurrent
    engine operations interleave the same way.
    """

    async def create(self, grant):
        await asyncio.sleep(0)
        await super().create(grant)

    async def update(self, grant, expected=None):
        await asyncio.sleep(0)
        await super().update(grant, expected)

    async def get_by_id(self, grant_id):
        await asyncio.sleep(0)
        return await super().get_by_id(grant_id)

    async def list_by_pet(self, pet_id):
        await asyncio.sleep(0)
        return await super().list_by_pet(pet_id)

    async def list_by_grantee(self, grantee_user_id):
        await asyncio.sleep(0)
        return await super().list_by_grantee(grantee_user_id)

    async def get_active_grant(self, pet_id, grantee_user_id):
        await asyncio.sleep(0)
        return await super().get_active_grant(pet_id, grantee_user_id)


def _make_grant(
    grant_id: str = "g1",
    status: GrantStatus = GrantStatus.INVITED,
    scopes: frozenset[Scope] | set[Scope] = frozenset({Scope.EVENTS_READ}),
    created_at: datetime = T0,
    updated_at: datetime | None = None,
    pet_id: str = PET_ID,
    owner_user_id: str = OWNER_ID,
    grantee_user_id: str = DELEGATE_ID,
) -> Grant:
    """Build a grant for seeding stores directly."""
    return Grant(
        id=grant_id,
        pet_id=pet_id,
        owner_user_id=owner_user_id,
        grantee_user_id=grantee_user_id,
        scopes=frozenset(scopes),
        status=status,
        created_at=created_at,
        updated_at=updated_at or created_at,
        revoked_at=(updated_at or created_at)
        if status is GrantStatus.REVOKED
        else None,
    )


@pytest.fixture
def make_grant():
    """Factory for grants seeded directly into a store."""
    return _make_grant


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def store() -> InMemoryGrantStore:
    return InMemoryGrantStore()


@pytest.fixture
def service(store: InMemoryGrantStore, clock: FrozenClock) -> AccessGrantService:
    return AccessGrantService(store, now=clock)


@pytest.fixture
def yielding_store() -> YieldingGrantStore:
    return YieldingGrantStore()


@pytest.fixture
def racing_service(
    yielding_store: YieldingGrantStore, clock: FrozenClock
) -> AccessGrantService:
    """Engine over a store whose calls interleave under asyncio.gather."""
    return AccessGrantService(yielding_store, now=clock)


@pytest.fixture
def pet_registry() -> InMemoryPetRegistry:
    return InMemoryPetRegistry({PET_ID: OWNER_ID})


@pytest.fixture
async def client(
    store: InMemoryGrantStore, pet_registry: InMemoryPetRegistry
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client over an app wired to fresh in-memory backends."""
    app = create_app(grant_store=store, pet_owners=pet_registry)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
