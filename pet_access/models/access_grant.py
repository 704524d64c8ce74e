"""Access grant table.

Row representation of ``pet_access.core.access_grants.models.Grant``.
Timestamps are written by the grant engine, not by database defaults, so
re-invites and repairs keep the engine's clock.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, String, text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from pet_access.core.access_grants.enums import GrantStatus
from pet_access.core.access_grants.models import Grant
from pet_access.models.base import Base


class AccessGrantRecord(Base):
    """A delegated access grant over one pet."""

    __tablename__ = "access_grants"
    __table_args__ = (
        CheckConstraint(
            "owner_user_id != grantee_user_id", name="ck_grant_not_self"
        ),
        CheckConstraint(
            "(status = 'revoked') = (revoked_at IS NOT NULL)",
            name="ck_grant_revoked_at",
        ),
        Index(
            "ix_access_grants_active_lookup",
            "pet_id",
            "grantee_user_id",
            "updated_at",
            postgresql_where=text("status = 'active'"),
        ),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    pet_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    owner_user_id: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True
    )
    grantee_user_id: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True
    )
    scopes: Mapped[list[str]] = mapped_column(ARRAY(String(32)), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=GrantStatus.INVITED.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    revoked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    @classmethod
    def from_grant(cls, grant: Grant) -> "AccessGrantRecord":
        return cls(
            id=grant.id,
            pet_id=grant.pet_id,
            owner_user_id=grant.owner_user_id,
            grantee_user_id=grant.grantee_user_id,
            scopes=grant.scope_values(),
            status=grant.status.value,
            created_at=grant.created_at,
            updated_at=grant.updated_at,
            revoked_at=grant.revoked_at,
        )

    def to_grant(self) -> Grant:
        return Grant(
            id=self.id,
            pet_id=self.pet_id,
            owner_user_id=self.owner_user_id,
            grantee_user_id=self.grantee_user_id,
            scopes=frozenset(self.scopes),
            status=GrantStatus(self.status),
            created_at=self.created_at,
            updated_at=self.updated_at,
            revoked_at=self.revoked_at,
        )

    def __repr__(self) -> str:
        return (
            f"<AccessGrantRecord(id={self.id}, pet={self.pet_id}, "
            f"grantee={self.grantee_user_id}, status={self.status})>"
        )
