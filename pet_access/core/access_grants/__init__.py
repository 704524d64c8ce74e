"""Delegated access grants.

A pet owner invites another user to a pet with a set of scopes; the
grantee accepts; the owner may revoke at any time. The engine keeps at
most one ACTIVE grant per (pet, grantee), repairing duplicates left by
concurrent invites on every invite and accept.
"""

from pet_access.core.access_grants.enums import GrantStatus
from pet_access.core.access_grants.models import (
    Grant,
    GrantOutcome,
    RepairFailure,
    by_precedence,
    most_recent,
)
from pet_access.core.access_grants.service import AccessGrantService, resolve_scopes

__all__ = [
    "AccessGrantService",
    "Grant",
    "GrantOutcome",
    "GrantStatus",
    "RepairFailure",
    "by_precedence",
    "most_recent",
    "resolve_scopes",
]
