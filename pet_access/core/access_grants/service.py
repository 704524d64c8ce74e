"""Grant lifecycle engine.

Owns the invite -> accept -> revoke state machine, scope resolution, and
the single-active-grant invariant: at most one ACTIVE grant per
(pet, grantee). The engine holds no grant state of its own; every
operation works through the injected store.

Every write is a conditional update against the version that was read.
When another request changed the grant in between, the operation re-reads
and decides again, so a revoke can never be overwritten by a stale accept.
"""

import uuid
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from pet_access.core.access_grants.enums import GrantStatus
from pet_access.core.access_grants.models import (
    Grant,
    GrantOutcome,
    RepairFailure,
    by_precedence,
    most_recent,
)
from pet_access.core.errors import (
    BadStateError,
    ForbiddenError,
    GrantConflictError,
    GrantNotFoundError,
    InvalidInputError,
    NotFoundError,
)
from pet_access.core.scopes import DEFAULT_SCOPES, Scope, is_valid_scope, normalize_scopes
from pet_access.logging_config import get_logger
from pet_access.stores.base import GrantStore

logger = get_logger(__name__)

# Each retry follows a concurrent write to the same grant or pair
MAX_ATTEMPTS = 16


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _required(*values: str | None) -> list[str]:
    cleaned = [(value or "").strip() for value in values]
    if not all(cleaned):
        raise InvalidInputError("identifiers must not be empty")
    return cleaned


def resolve_scopes(requested: Iterable[str] | None) -> frozenset[Scope]:
    """Resolve an invite's requested scopes.

    Empty (after trimming) falls back to DEFAULT_SCOPES. Otherwise every
    scope must be in the catalog; one unknown scope rejects the whole set.

    Raises:
        InvalidInputError: If any requested scope is unknown.
    """
    scopes = normalize_scopes(requested)
    if not scopes:
        return DEFAULT_SCOPES

    invalid = [scope for scope in scopes if not is_valid_scope(scope)]
    if invalid:
        raise InvalidInputError(
            f"Invalid scopes: {', '.join(sorted(invalid))}",
            invalid_scopes=sorted(invalid),
        )
    return frozenset(Scope(scope) for scope in scopes)


class AccessGrantService:
    """Lifecycle operations over delegated access grants."""

    def __init__(
        self,
        store: GrantStore,
        now: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self.store = store
        self._now = now
        self._new_id = id_factory

    async def invite(
        self,
        pet_id: str,
        owner_user_id: str,
        grantee_user_id: str,
        scopes: Iterable[str] | None = None,
    ) -> GrantOutcome:
        """Invite a grantee to a pet, or refresh the pending/active grant.

        A non-revoked grant for the same (pet, owner, grantee) is reused:
        its scopes are replaced and its id returned. Extra non-revoked
        duplicates are revoked best-effort. Revoked grants are never
        resurrected; a fresh INVITED grant is created instead.

        Args:
            pet_id: The pet being shared.
            owner_user_id: The pet's owner, issuing the invite.
            grantee_user_id: The user receiving access.
            scopes: Requested scopes; empty means DEFAULT_SCOPES.

        Returns:
            The created or refreshed grant plus any repair failures.

        Raises:
            InvalidInputError: On blank ids, self-invites or unknown scopes.
            GrantConflictError: If the grant kept changing under the refresh.
        """
        pet_id, owner_user_id, grantee_user_id = _required(
            pet_id, owner_user_id, grantee_user_id
        )
        if owner_user_id == grantee_user_id:
            raise InvalidInputError("owner cannot invite themselves")

        resolved = resolve_scopes(scopes)

        for _ in range(MAX_ATTEMPTS):
            now = self._now()
            existing = by_precedence(
                g
                for g in await self.store.list_by_pet(pet_id)
                if g.owner_user_id == owner_user_id
                and g.grantee_user_id == grantee_user_id
                and not g.is_revoked
            )

            if not existing:
                grant = Grant(
                    id=self._new_id(),
                    pet_id=pet_id,
                    owner_user_id=owner_user_id,
                    grantee_user_id=grantee_user_id,
                    scopes=resolved,
                    status=GrantStatus.INVITED,
                    created_at=now,
                    updated_at=now,
                )
                await self.store.create(grant)
                logger.info(
                    "Created access grant invitation",
                    grant_id=grant.id,
                    pet_id=pet_id,
                    grantee_user_id=grantee_user_id,
                    scopes=grant.scope_values(),
                )
                return GrantOutcome(grant=grant)

            keep, stale = existing[0], existing[1:]
            grant = keep.model_copy(update={"scopes": resolved, "updated_at": now})
            try:
                await self.store.update(grant, expected=keep)
            except GrantConflictError:
                logger.debug("Grant changed during re-invite, retrying", grant_id=keep.id)
                continue

            logger.info(
                "Refreshed access grant on re-invite",
                grant_id=grant.id,
                pet_id=pet_id,
                grantee_user_id=grantee_user_id,
                scopes=grant.scope_values(),
            )
            # Duplicates changed by another request are left to the next accept
            failures, _ = await self._revoke_duplicates(stale, now)
            return GrantOutcome(grant=grant, repair_failures=failures)

        raise GrantConflictError(pet_id=pet_id, grantee_user_id=grantee_user_id)

    async def accept(self, grant_id: str, grantee_user_id: str) -> GrantOutcome:
        """Accept an invitation as its grantee.

        Accepting an ACTIVE grant is a no-op. Either way, the pair is then
        settled: the highest-precedence ACTIVE grant for (pet, grantee)
        survives and every other non-revoked grant for the pair is revoked.
        The returned grant is that survivor. It is the accepted grant
        unless a duplicate accepted concurrently outranks it.

        Returns:
            The pair's active grant plus any repair failures.

        Raises:
            InvalidInputError: On blank ids.
            NotFoundError: If the grant does not exist.
            ForbiddenError: If the caller is not the grantee.
            BadStateError: If the grant has been revoked.
            GrantConflictError: If the grant kept changing under the accept.
        """
        grant_id, grantee_user_id = _required(grant_id, grantee_user_id)

        for _ in range(MAX_ATTEMPTS):
            current = await self._get(grant_id)
            if current.grantee_user_id != grantee_user_id:
                raise ForbiddenError("only the grantee can accept this grant")
            if current.is_revoked:
                raise BadStateError("a revoked grant cannot be accepted")
            if current.is_active:
                grant = current
                break

            grant = current.model_copy(
                update={"status": GrantStatus.ACTIVE, "updated_at": self._now()}
            )
            try:
                await self.store.update(grant, expected=current)
            except GrantConflictError:
                logger.debug("Grant changed during accept, retrying", grant_id=grant_id)
                continue

            logger.info(
                "Access grant accepted",
                grant_id=grant.id,
                pet_id=grant.pet_id,
                grantee_user_id=grantee_user_id,
            )
            break
        else:
            raise GrantConflictError(grant_id=grant_id)

        winner, failures = await self._settle_pair(grant, self._now())
        return GrantOutcome(grant=winner, repair_failures=failures)

    async def revoke(self, grant_id: str, owner_user_id: str) -> Grant:
        """Revoke a grant as its owner. Revoking twice is a no-op.

        Raises:
            InvalidInputError: On blank ids.
            NotFoundError: If the grant does not exist.
            ForbiddenError: If the caller is not the grant's owner.
            GrantConflictError: If the grant kept changing under the revoke.
        """
        grant_id, owner_user_id = _required(grant_id, owner_user_id)

        for _ in range(MAX_ATTEMPTS):
            current = await self._get(grant_id)
            if current.owner_user_id != owner_user_id:
                raise ForbiddenError("only the owner can revoke this grant")
            if current.is_revoked:
                return current

            grant = self._revoked(current, self._now())
            try:
                await self.store.update(grant, expected=current)
            except GrantConflictError:
                logger.debug("Grant changed during revoke, retrying", grant_id=grant_id)
                continue

            logger.info(
                "Access grant revoked",
                grant_id=grant.id,
                pet_id=grant.pet_id,
                grantee_user_id=grant.grantee_user_id,
            )
            return grant

        raise GrantConflictError(grant_id=grant_id)

    async def get_active_grant(self, pet_id: str, grantee_user_id: str) -> Grant:
        """The active grant for (pet, grantee).

        Raises:
            InvalidInputError: On blank ids.
            NotFoundError: If the pair holds no active grant.
        """
        pet_id, grantee_user_id = _required(pet_id, grantee_user_id)
        try:
            return await self.store.get_active_grant(pet_id, grantee_user_id)
        except GrantNotFoundError as exc:
            raise NotFoundError("no active grant") from exc

    async def list_by_pet(self, pet_id: str) -> list[Grant]:
        (pet_id,) = _required(pet_id)
        return await self.store.list_by_pet(pet_id)

    async def list_by_grantee(self, grantee_user_id: str) -> list[Grant]:
        (grantee_user_id,) = _required(grantee_user_id)
        return await self.store.list_by_grantee(grantee_user_id)

    async def _get(self, grant_id: str) -> Grant:
        try:
            return await self.store.get_by_id(grant_id)
        except GrantNotFoundError as exc:
            raise NotFoundError("grant not found") from exc

    @staticmethod
    def _revoked(grant: Grant, now: datetime) -> Grant:
        return grant.model_copy(
            update={
                "status": GrantStatus.REVOKED,
                "updated_at": now,
                "revoked_at": now,
            }
        )

    async def _settle_pair(
        self, accepted: Grant, now: datetime
    ) -> tuple[Grant, tuple[RepairFailure, ...]]:
        """Keep the pair's highest-precedence ACTIVE grant, revoke the rest.

        Every accept picks the survivor by the same order, so concurrent
        accepts of duplicate invitations agree on it instead of revoking
        each other. A pass that loses a race to another write re-reads the
        pair and starts over.
        """
        failures: tuple[RepairFailure, ...] = ()
        conflicts: list[str] = []
        for _ in range(MAX_ATTEMPTS):
            pair = [
                g
                for g in await self.store.list_by_pet(accepted.pet_id)
                if g.grantee_user_id == accepted.grantee_user_id and not g.is_revoked
            ]
            winner = most_recent(g for g in pair if g.is_active)
            if winner is None:
                # The owner revoked it after the accept landed
                return await self._get(accepted.id), ()

            failures, conflicts = await self._revoke_duplicates(
                [g for g in pair if g.id != winner.id], now
            )
            if not conflicts:
                if winner.id != accepted.id:
                    logger.info(
                        "Accepted grant superseded by a concurrent accept",
                        grant_id=accepted.id,
                        winner_grant_id=winner.id,
                        pet_id=accepted.pet_id,
                    )
                return winner, failures

        return winner, failures + tuple(
            RepairFailure(grant_id=grant_id, error="changed concurrently")
            for grant_id in conflicts
        )

    async def _revoke_duplicates(
        self, duplicates: Iterable[Grant], now: datetime
    ) -> tuple[tuple[RepairFailure, ...], list[str]]:
        """Best-effort conditional revoke of redundant grants.

        Returns store failures, and the ids of duplicates that another
        request changed since they were read. Those are left untouched.
        """
        failures: list[RepairFailure] = []
        conflicts: list[str] = []
        for duplicate in duplicates:
            try:
                await self.store.update(self._revoked(duplicate, now), expected=duplicate)
            except GrantConflictError:
                conflicts.append(duplicate.id)
                logger.info(
                    "Duplicate access grant changed before repair",
                    grant_id=duplicate.id,
                    pet_id=duplicate.pet_id,
                    grantee_user_id=duplicate.grantee_user_id,
                )
            except Exception as exc:
                logger.warning(
                    "Failed to revoke duplicate access grant",
                    grant_id=duplicate.id,
                    pet_id=duplicate.pet_id,
                    grantee_user_id=duplicate.grantee_user_id,
                    error=repr(exc),
                )
                failures.append(RepairFailure(grant_id=duplicate.id, error=repr(exc)))
            else:
                logger.info(
                    "Revoked duplicate access grant",
                    grant_id=duplicate.id,
                    pet_id=duplicate.pet_id,
                    grantee_user_id=duplicate.grantee_user_id,
                )
        return tuple(failures), conflicts
