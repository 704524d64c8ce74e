"""Access grant router.

Endpoints for owners inviting delegates to a pet and revoking them,
grantees accepting invitations, and delegates listing what has been
shared with them.
"""

from fastapi import APIRouter, HTTPException, Query, status

from pet_access.core.auth import CurrentCaller, GrantServiceDep, PetOwnersDep
from pet_access.core.authorization import PetOwnerLookup
from pet_access.core.errors import (
    AccessGrantError,
    BadStateError,
    ForbiddenError,
    GrantConflictError,
    InvalidInputError,
    NotFoundError,
    PetNotFoundError,
)
from pet_access.core.scopes import Scope
from pet_access.logging_config import get_logger
from pet_access.schemas.access_grant import (
    GrantListResponse,
    GrantResponse,
    InviteGrantRequest,
    SharedPetItem,
    SharedPetsResponse,
)

logger = get_logger(__name__)

router = APIRouter(tags=["grants"])

_STATUS_BY_CODE = {
    InvalidInputError.code: status.HTTP_400_BAD_REQUEST,
    ForbiddenError.code: status.HTTP_403_FORBIDDEN,
    NotFoundError.code: status.HTTP_404_NOT_FOUND,
    BadStateError.code: status.HTTP_409_CONFLICT,
    GrantConflictError.code: status.HTTP_409_CONFLICT,
}


def _to_http(exc: AccessGrantError) -> HTTPException:
    """Map the grant error taxonomy to an HTTP error.

    403 and 404 carry a fixed detail so responses never echo grant internals.
    """
    status_code = _STATUS_BY_CODE.get(exc.code, status.HTTP_409_CONFLICT)
    if status_code == status.HTTP_403_FORBIDDEN:
        detail = "forbidden"
    elif status_code == status.HTTP_404_NOT_FOUND:
        detail = "not found"
    else:
        detail = exc.message
    return HTTPException(status_code=status_code, detail=detail)


async def _require_pet_owner(
    pet_owners: PetOwnerLookup, pet_id: str, caller_id: str
) -> str:
    try:
        owner_id = await pet_owners.owner_of(pet_id)
    except PetNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="pet not found",
        )
    if owner_id != caller_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="forbidden",
        )
    return owner_id


def _parse_status_filter(raw: str | None) -> set[str]:
    """Parse a CSV status filter like 'invited,active'."""
    if not raw:
        return set()
    return {part.strip() for part in raw.split(",") if part.strip()}


@router.post(
    "/pets/{pet_id}/grants",
    response_model=GrantResponse,
    status_code=status.HTTP_201_CREATED,
)
async def invite_grant(
    pet_id: str,
    body: InviteGrantRequest,
    caller_id: CurrentCaller,
    grants: GrantServiceDep,
    pet_owners: PetOwnersDep,
) -> GrantResponse:
    """Invite a delegate to a pet. Only the pet's owner can invite.

    Re-inviting the same delegate updates the scopes of the existing
    invitation or active grant instead of creating a second one.
    """
    owner_id = await _require_pet_owner(pet_owners, pet_id, caller_id)

    try:
        outcome = await grants.invite(
            pet_id=pet_id,
            owner_user_id=owner_id,
            grantee_user_id=body.grantee_user_id,
            scopes=body.scopes,
        )
    except AccessGrantError as exc:
        raise _to_http(exc) from exc

    if not outcome.repaired_cleanly:
        logger.warning(
            "Invite left duplicate grants in place",
            grant_id=outcome.grant.id,
            failed_grant_ids=[f.grant_id for f in outcome.repair_failures],
        )
    return GrantResponse.from_grant(outcome.grant)


@router.get("/pets/{pet_id}/grants", response_model=GrantListResponse)
async def list_pet_grants(
    pet_id: str,
    caller_id: CurrentCaller,
    grants: GrantServiceDep,
    pet_owners: PetOwnersDep,
) -> GrantListResponse:
    """List every grant on a pet, including revoked ones. Owner only."""
    await _require_pet_owner(pet_owners, pet_id, caller_id)

    try:
        items = await grants.list_by_pet(pet_id)
    except AccessGrantError as exc:
        raise _to_http(exc) from exc

    return GrantListResponse(
        grants=[GrantResponse.from_grant(g) for g in items],
        count=len(items),
    )


@router.post("/grants/{grant_id}/accept", response_model=GrantResponse)
async def accept_grant(
    grant_id: str,
    caller_id: CurrentCaller,
    grants: GrantServiceDep,
) -> GrantResponse:
    """Accept an invitation. Only the invited grantee can accept."""
    try:
        outcome = await grants.accept(grant_id, caller_id)
    except AccessGrantError as exc:
        raise _to_http(exc) from exc

    if not outcome.repaired_cleanly:
        logger.warning(
            "Accept left duplicate grants in place",
            grant_id=outcome.grant.id,
            failed_grant_ids=[f.grant_id for f in outcome.repair_failures],
        )
    return GrantResponse.from_grant(outcome.grant)


@router.post("/grants/{grant_id}/revoke", response_model=GrantResponse)
async def revoke_grant(
    grant_id: str,
    caller_id: CurrentCaller,
    grants: GrantServiceDep,
) -> GrantResponse:
    """Revoke a grant. Only the owner who issued it can revoke."""
    try:
        grant = await grants.revoke(grant_id, caller_id)
    except AccessGrantError as exc:
        raise _to_http(exc) from exc
    return GrantResponse.from_grant(grant)


@router.get("/me/grants", response_model=GrantListResponse)
async def list_my_grants(
    caller_id: CurrentCaller,
    grants: GrantServiceDep,
    status_filter: str | None = Query(default=None, alias="status"),
) -> GrantListResponse:
    """List grants where the caller is the delegate.

    ``status`` optionally restricts the result, e.g. ``status=invited,active``.
    """
    items = await grants.list_by_grantee(caller_id)

    allowed = _parse_status_filter(status_filter)
    if allowed:
        items = [g for g in items if g.status.value in allowed]

    return GrantListResponse(
        grants=[GrantResponse.from_grant(g) for g in items],
        count=len(items),
    )


@router.get("/me/shared-pets", response_model=SharedPetsResponse)
async def list_shared_pets(
    caller_id: CurrentCaller,
    grants: GrantServiceDep,
) -> SharedPetsResponse:
    """Pets shared with the caller through active grants carrying pet:read."""
    items = await grants.list_by_grantee(caller_id)

    seen: set[str] = set()
    pets: list[SharedPetItem] = []
    # list_by_grantee is most recent first, so the first hit per pet wins
    for grant in items:
        if not grant.is_active or not grant.has_scope(Scope.PET_READ):
            continue
        if grant.pet_id in seen:
            continue
        seen.add(grant.pet_id)
        pets.append(
            SharedPetItem(
                pet_id=grant.pet_id,
                owner_user_id=grant.owner_user_id,
                grant_id=grant.id,
                scopes=grant.scope_values(),
            )
        )

    return SharedPetsResponse(pets=pets, count=len(pets))
