"""Access grant Pydantic models.

Pure data models, no database dependencies. Stores hand these values to
the engine and receive new copies back; nothing holds on to them.
"""

from collections.abc import Iterable
from typing import Self

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, model_validator

from pet_access.core.access_grants.enums import GrantStatus
from pet_access.core.scopes import Scope


class Grant(BaseModel):
    """Delegation of a set of scopes over one pet, from its owner to a grantee."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    pet_id: str = Field(min_length=1)
    owner_user_id: str = Field(min_length=1)
    grantee_user_id: str = Field(min_length=1)
    scopes: frozenset[Scope] = Field(min_length=1)
    status: GrantStatus
    created_at: AwareDatetime
    updated_at: AwareDatetime
    revoked_at: AwareDatetime | None = None

    @model_validator(mode="after")
    def _check_invariants(self) -> Self:
        if self.owner_user_id == self.grantee_user_id:
            raise ValueError("owner and grantee must differ")
        if (self.status is GrantStatus.REVOKED) != (self.revoked_at is not None):
            raise ValueError("revoked_at must be set exactly when status is revoked")
        return self

    @property
    def is_active(self) -> bool:
        return self.status is GrantStatus.ACTIVE

    @property
    def is_revoked(self) -> bool:
        return self.status is GrantStatus.REVOKED

    def has_scope(self, scope: str) -> bool:
        """Return True if the grant carries ``scope``. Unknown scopes never match."""
        try:
            return Scope(scope) in self.scopes
        except ValueError:
            return False

    def scope_values(self) -> list[str]:
        """Scope strings in a stable order, for responses and storage."""
        return sorted(scope.value for scope in self.scopes)

    def version(self) -> tuple:
        """Fields a conditional store update compares against the stored grant."""
        return (self.status, self.updated_at, self.scopes)

    def precedence(self) -> tuple:
        """Sort key: most recently updated, then created, then highest id wins."""
        return (self.updated_at, self.created_at, self.id)


def most_recent(grants: Iterable[Grant]) -> Grant | None:
    """Pick the winning grant among duplicates, or None if there are none.

    Every store resolves duplicate active grants with this same order.
    """
    return max(grants, key=Grant.precedence, default=None)


def by_precedence(grants: Iterable[Grant]) -> list[Grant]:
    """Grants ordered winner first."""
    return sorted(grants, key=Grant.precedence, reverse=True)


class RepairFailure(BaseModel):
    """A duplicate grant the cleanup pass could not revoke."""

    model_config = ConfigDict(frozen=True)

    grant_id: str
    error: str


class GrantOutcome(BaseModel):
    """Primary result of a lifecycle operation plus its advisory repair outcome.

    The grant is the operation's contract. ``repair_failures`` lists stale
    duplicates that stayed non-revoked because their revoke write failed.
    """

    model_config = ConfigDict(frozen=True)

    grant: Grant
    repair_failures: tuple[RepairFailure, ...] = ()

    @property
    def repaired_cleanly(self) -> bool:
        return not self.repair_failures
