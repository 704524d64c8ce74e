"""Caller identity and scope-checking dependencies.

Authentication happens upstream: the identity verifier in front of this
service sets a trusted header with the caller's user id. These
dependencies only read that identity and apply the authorization
predicate to pet-scoped routes.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Path, Request, status

from pet_access.config import settings
from pet_access.core.access_grants.service import AccessGrantService
from pet_access.core.authorization import PetOwnerLookup, authorize_pet_access
from pet_access.core.errors import PetNotFoundError
from pet_access.core.scopes import Scope
from pet_access.logging_config import caller_id_ctx, get_logger

logger = get_logger(__name__)


async def get_caller_id(request: Request) -> str:
    """Extract the caller's user id set by the identity verifier.

    Raises:
        HTTPException 401: If the identity header is missing or blank
    """
    caller_id = (request.headers.get(settings.identity_header) or "").strip()
    if not caller_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    caller_id_ctx.set(caller_id)
    return caller_id


def get_grant_service(request: Request) -> AccessGrantService:
    return request.app.state.grant_service


def get_pet_owners(request: Request) -> PetOwnerLookup:
    return request.app.state.pet_owners


# Type aliases for cleaner route signatures
CurrentCaller = Annotated[str, Depends(get_caller_id)]
GrantServiceDep = Annotated[AccessGrantService, Depends(get_grant_service)]
PetOwnersDep = Annotated[PetOwnerLookup, Depends(get_pet_owners)]


class PetScopeChecker:
    """Dependency that enforces a scope on a ``{pet_id}`` route.

    The pet's owner always passes. Anyone else needs an active grant on
    the pet carrying the scope. Every denial is the same 403 so callers
    cannot discover which grants exist.

    Usage:
        @router.get("/pets/{pet_id}/events")
        async def list_events(
            pet_id: str,
            caller_id: str = Depends(PetScopeChecker(Scope.EVENTS_READ)),
        ):
            ...
    """

    def __init__(self, required_scope: Scope):
        self.required_scope = required_scope

    async def __call__(
        self,
        request: Request,
        pet_id: Annotated[str, Path()],
        caller_id: CurrentCaller,
        grants: GrantServiceDep,
        pet_owners: PetOwnersDep,
    ) -> str:
        try:
            decision = await authorize_pet_access(
                grants, pet_owners, caller_id, pet_id, self.required_scope.value
            )
        except PetNotFoundError:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="pet not found",
            )

        if not decision.allowed:
            logger.warning(
                "Pet access denied",
                pet_id=pet_id,
                required_scope=self.required_scope.value,
                path=request.url.path,
                method=request.method,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="forbidden",
            )
        return caller_id


def require_pet_scope(scope: Scope) -> PetScopeChecker:
    """Create a scope checker dependency for a pet-scoped route."""
    return PetScopeChecker(scope)
