"""SQLAlchemy-backed grant store.

Each operation runs in its own session and transaction. Conditional
updates put the expected version in the WHERE clause, so the database
serializes competing writes to one grant. The active lookup applies the
same precedence order as the in-memory store.
"""

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pet_access.core.access_grants.enums import GrantStatus
from pet_access.core.access_grants.models import Grant
from pet_access.core.errors import (
    GrantAlreadyExistsError,
    GrantConflictError,
    GrantNotFoundError,
)
from pet_access.logging_config import get_logger
from pet_access.models.access_grant import AccessGrantRecord
from pet_access.stores.base import GrantStore

logger = get_logger(__name__)


class SqlAlchemyGrantStore(GrantStore):
    """Grant store on an async SQLAlchemy session maker."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def create(self, grant: Grant) -> None:
        async with self._session_maker() as session:
            session.add(AccessGrantRecord.from_grant(grant))
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                logger.warning("Grant insert rejected", grant_id=grant.id)
                raise GrantAlreadyExistsError(grant_id=grant.id) from exc

    async def update(self, grant: Grant, expected: Grant | None = None) -> None:
        stmt = update(AccessGrantRecord).where(AccessGrantRecord.id == grant.id)
        if expected is not None:
            stmt = stmt.where(
                AccessGrantRecord.status == expected.status.value,
                AccessGrantRecord.updated_at == expected.updated_at,
                AccessGrantRecord.scopes == expected.scope_values(),
            )

        async with self._session_maker() as session:
            result = await session.execute(
                stmt.values(
                    scopes=grant.scope_values(),
                    status=grant.status.value,
                    updated_at=grant.updated_at,
                    revoked_at=grant.revoked_at,
                )
            )
            if result.rowcount == 0:
                await session.rollback()
                if expected is not None and await self._exists(session, grant.id):
                    raise GrantConflictError(grant_id=grant.id)
                raise GrantNotFoundError(grant_id=grant.id)
            await session.commit()

    @staticmethod
    async def _exists(session: AsyncSession, grant_id: str) -> bool:
        result = await session.execute(
            select(AccessGrantRecord.id).where(AccessGrantRecord.id == grant_id)
        )
        return result.scalar_one_or_none() is not None

    async def get_by_id(self, grant_id: str) -> Grant:
        async with self._session_maker() as session:
            result = await session.execute(
                select(AccessGrantRecord).where(AccessGrantRecord.id == grant_id)
            )
            record = result.scalar_one_or_none()
        if record is None:
            raise GrantNotFoundError(grant_id=grant_id)
        return record.to_grant()

    async def list_by_pet(self, pet_id: str) -> list[Grant]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(AccessGrantRecord)
                .where(AccessGrantRecord.pet_id == pet_id)
                .order_by(AccessGrantRecord.created_at, AccessGrantRecord.id)
            )
            records = list(result.scalars().all())
        return [record.to_grant() for record in records]

    async def list_by_grantee(self, grantee_user_id: str) -> list[Grant]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(AccessGrantRecord)
                .where(AccessGrantRecord.grantee_user_id == grantee_user_id)
                .order_by(
                    AccessGrantRecord.updated_at.desc(),
                    AccessGrantRecord.created_at.desc(),
                    AccessGrantRecord.id.desc(),
                )
            )
            records = list(result.scalars().all())
        return [record.to_grant() for record in records]

    async def get_active_grant(self, pet_id: str, grantee_user_id: str) -> Grant:
        async with self._session_maker() as session:
            result = await session.execute(
                select(AccessGrantRecord)
                .where(
                    AccessGrantRecord.pet_id == pet_id,
                    AccessGrantRecord.grantee_user_id == grantee_user_id,
                    AccessGrantRecord.status == GrantStatus.ACTIVE.value,
                )
                .order_by(
                    AccessGrantRecord.updated_at.desc(),
                    AccessGrantRecord.created_at.desc(),
                    AccessGrantRecord.id.desc(),
                )
                .limit(1)
            )
            record = result.scalars().first()
        if record is None:
            raise GrantNotFoundError(pet_id=pet_id, grantee_user_id=grantee_user_id)
        return record.to_grant()

    async def check_connection(self) -> bool:
        from pet_access.database import check_database_connection

        return await check_database_connection()
