"""Pet-scoped access routes.

Pet profiles live in the pet service; this router only reports what the
caller may do on a pet, gated by the same predicate every resource
route uses.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from pet_access.core.auth import GrantServiceDep, PetOwnersDep, PetScopeChecker
from pet_access.core.authorization import find_active_grant
from pet_access.core.errors import PetNotFoundError
from pet_access.core.scopes import VALID_SCOPES, Scope
from pet_access.schemas.access_grant import PetAccessResponse

router = APIRouter(tags=["pets"])


@router.get("/pets/{pet_id}/access", response_model=PetAccessResponse)
async def get_pet_access(
    pet_id: str,
    caller_id: Annotated[str, Depends(PetScopeChecker(Scope.PET_READ))],
    grants: GrantServiceDep,
    pet_owners: PetOwnersDep,
) -> PetAccessResponse:
    """Effective access of the caller: every scope for the owner, the
    active grant's scopes for a delegate."""
    try:
        owner_id = await pet_owners.owner_of(pet_id)
    except PetNotFoundError:
        # Removed after the scope check resolved it
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="pet not found",
        )

    if owner_id == caller_id:
        return PetAccessResponse(
            pet_id=pet_id,
            role="owner",
            scopes=sorted(VALID_SCOPES),
        )

    grant = await find_active_grant(grants, pet_id, caller_id)
    return PetAccessResponse(
        pet_id=pet_id,
        role="delegate",
        scopes=grant.scope_values() if grant else [],
        grant_id=grant.id if grant else None,
    )
