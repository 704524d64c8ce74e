"""Authorization predicate for pet resources.

Answers "may this caller do X on this pet?" for every protected resource
operation: the owner always may; anyone else needs an ACTIVE grant that
carries the required scope. Decisions are computed fresh on every call so
a revoke is effective on the very next request.
"""

from enum import Enum
from typing import Protocol

from pet_access.core.access_grants.models import Grant
from pet_access.core.access_grants.service import AccessGrantService
from pet_access.core.errors import NotFoundError
from pet_access.core.scopes import is_valid_scope


class PetOwnerLookup(Protocol):
    """Resolves a pet's owner. Supplied by the pet-management collaborator."""

    async def owner_of(self, pet_id: str) -> str:
        """Raises PetNotFoundError if the pet does not exist."""
        ...


class AccessDecision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"

    @property
    def allowed(self) -> bool:
        return self is AccessDecision.ALLOW


async def find_active_grant(
    grants: AccessGrantService, pet_id: str, caller_id: str
) -> Grant | None:
    """The caller's active grant on the pet, or None."""
    try:
        return await grants.get_active_grant(pet_id, caller_id)
    except NotFoundError:
        return None


async def authorize(
    grants: AccessGrantService,
    caller_id: str,
    pet_owner_id: str,
    pet_id: str,
    required_scope: str,
) -> AccessDecision:
    """Decide whether ``caller_id`` may act on ``pet_id`` with ``required_scope``.

    Denials are uniform: no grant, a grant lacking the scope, a blank
    caller and an unknown scope all yield DENY.
    """
    caller_id = (caller_id or "").strip()
    if not caller_id:
        return AccessDecision.DENY
    if caller_id == pet_owner_id:
        return AccessDecision.ALLOW
    if not is_valid_scope(required_scope) or not (pet_id or "").strip():
        return AccessDecision.DENY

    grant = await find_active_grant(grants, pet_id, caller_id)
    if grant is None or not grant.has_scope(required_scope):
        return AccessDecision.DENY
    return AccessDecision.ALLOW


async def authorize_pet_access(
    grants: AccessGrantService,
    pet_owners: PetOwnerLookup,
    caller_id: str,
    pet_id: str,
    required_scope: str,
) -> AccessDecision:
    """Resolve the pet's owner, then apply ``authorize``.

    Raises:
        PetNotFoundError: If the pet does not exist.
    """
    owner_id = await pet_owners.owner_of(pet_id)
    return await authorize(grants, caller_id, owner_id, pet_id, required_scope)
