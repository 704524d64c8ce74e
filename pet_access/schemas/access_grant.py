"""Access grant request/response schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from pet_access.core.access_grants.enums import GrantStatus
from pet_access.core.access_grants.models import Grant


class InviteGrantRequest(BaseModel):
    """Body of an invite: who gets access, and with which scopes.

    Scopes are validated by the grant engine so unknown values surface as
    a 400 with the offending names. Omitted, null or empty means the
    default set.
    """

    model_config = ConfigDict(extra="forbid")

    grantee_user_id: str = Field(min_length=1)
    scopes: list[str] | None = None


class GrantResponse(BaseModel):
    """A delegated access grant."""

    id: str
    pet_id: str
    owner_user_id: str
    grantee_user_id: str
    scopes: list[str]
    status: GrantStatus
    created_at: datetime
    updated_at: datetime
    revoked_at: datetime | None = None

    @classmethod
    def from_grant(cls, grant: Grant) -> "GrantResponse":
        return cls(
            id=grant.id,
            pet_id=grant.pet_id,
            owner_user_id=grant.owner_user_id,
            grantee_user_id=grant.grantee_user_id,
            scopes=grant.scope_values(),
            status=grant.status,
            created_at=grant.created_at,
            updated_at=grant.updated_at,
            revoked_at=grant.revoked_at,
        )


class GrantListResponse(BaseModel):
    grants: list[GrantResponse]
    count: int


class SharedPetItem(BaseModel):
    """A pet shared with the caller through an active grant."""

    pet_id: str
    owner_user_id: str
    grant_id: str
    scopes: list[str]


class SharedPetsResponse(BaseModel):
    pets: list[SharedPetItem]
    count: int


class PetAccessResponse(BaseModel):
    """What the caller may do on a pet."""

    pet_id: str
    role: Literal["owner", "delegate"]
    scopes: list[str]
    grant_id: str | None = None
