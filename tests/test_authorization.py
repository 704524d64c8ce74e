"""Tests for the pet authorization predicate."""

import pytest

from pet_access.core.authorization import (
    AccessDecision,
    authorize,
    authorize_pet_access,
    find_active_grant,
)
from pet_access.core.errors import PetNotFoundError
from pet_access.core.scopes import VALID_SCOPES

PET_ID = "pet-1"
OWNER_ID = "owner-1"
DELEGATE_ID = "delegate-1"


class TestAuthorize:
    """Tests for authorize()."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("scope", sorted(VALID_SCOPES))
    async def test_owner_allowed_without_grants(self, service, scope):
        decision = await authorize(service, OWNER_ID, OWNER_ID, PET_ID, scope)
        assert decision is AccessDecision.ALLOW

    @pytest.mark.asyncio
    async def test_blank_caller_denied(self, service):
        assert not (await authorize(service, "", OWNER_ID, PET_ID, "pet:read")).allowed
        assert not (await authorize(service, "  ", OWNER_ID, PET_ID, "pet:read")).allowed

    @pytest.mark.asyncio
    async def test_stranger_denied(self, service):
        decision = await authorize(service, "stranger", OWNER_ID, PET_ID, "pet:read")
        assert decision is AccessDecision.DENY

    @pytest.mark.asyncio
    async def test_invited_grant_grants_nothing(self, service):
        await service.invite(PET_ID, OWNER_ID, DELEGATE_ID, ["events:read"])
        decision = await authorize(service, DELEGATE_ID, OWNER_ID, PET_ID, "events:read")
        assert decision is AccessDecision.DENY

    @pytest.mark.asyncio
    async def test_unknown_scope_denied_for_delegate(self, service):
        invited = await service.invite(PET_ID, OWNER_ID, DELEGATE_ID)
        await service.accept(invited.grant.id, DELEGATE_ID)

        decision = await authorize(
            service, DELEGATE_ID, OWNER_ID, PET_ID, "events:unknown"
        )
        assert decision is AccessDecision.DENY

    @pytest.mark.asyncio
    async def test_grant_on_other_pet_does_not_apply(self, service):
        invited = await service.invite("pet-2", OWNER_ID, DELEGATE_ID, ["events:read"])
        await service.accept(invited.grant.id, DELEGATE_ID)

        decision = await authorize(service, DELEGATE_ID, OWNER_ID, PET_ID, "events:read")
        assert decision is AccessDecision.DENY

    @pytest.mark.asyncio
    async def test_delegate_lifecycle(self, service):
        """Invite, accept and revoke flip the delegate's access."""
        invited = await service.invite(
            PET_ID, OWNER_ID, DELEGATE_ID, ["pet:read", "events:read", "events:create"]
        )
        assert not (
            await authorize(service, DELEGATE_ID, OWNER_ID, PET_ID, "events:read")
        ).allowed

        await service.accept(invited.grant.id, DELEGATE_ID)
        assert (
            await authorize(service, DELEGATE_ID, OWNER_ID, PET_ID, "events:read")
        ).allowed
        assert (
            await authorize(service, DELEGATE_ID, OWNER_ID, PET_ID, "events:create")
        ).allowed

        await service.revoke(invited.grant.id, OWNER_ID)
        assert not (
            await authorize(service, DELEGATE_ID, OWNER_ID, PET_ID, "events:read")
        ).allowed

    @pytest.mark.asyncio
    async def test_reinvite_widens_active_grant(self, service):
        """A re-invite updates scopes in place and takes effect immediately."""
        invited = await service.invite(PET_ID, OWNER_ID, DELEGATE_ID, ["events:read"])
        await service.accept(invited.grant.id, DELEGATE_ID)
        assert not (
            await authorize(service, DELEGATE_ID, OWNER_ID, PET_ID, "events:create")
        ).allowed

        await service.invite(
            PET_ID, OWNER_ID, DELEGATE_ID, ["events:read", "events:create"]
        )

        assert (
            await authorize(service, DELEGATE_ID, OWNER_ID, PET_ID, "events:create")
        ).allowed


class TestFindActiveGrant:
    """Tests for find_active_grant()."""

    @pytest.mark.asyncio
    async def test_none_without_grant(self, service):
        assert await find_active_grant(service, PET_ID, DELEGATE_ID) is None

    @pytest.mark.asyncio
    async def test_returns_active_grant(self, service):
        invited = await service.invite(PET_ID, OWNER_ID, DELEGATE_ID)
        await service.accept(invited.grant.id, DELEGATE_ID)

        grant = await find_active_grant(service, PET_ID, DELEGATE_ID)
        assert grant.id == invited.grant.id


class TestAuthorizePetAccess:
    """Tests for authorize_pet_access()."""

    @pytest.mark.asyncio
    async def test_resolves_owner(self, service, pet_registry):
        decision = await authorize_pet_access(
            service, pet_registry, OWNER_ID, PET_ID, "events:void"
        )
        assert decision.allowed

    @pytest.mark.asyncio
    async def test_unknown_pet(self, service, pet_registry):
        with pytest.raises(PetNotFoundError):
            await authorize_pet_access(
                service, pet_registry, OWNER_ID, "missing-pet", "pet:read"
            )
