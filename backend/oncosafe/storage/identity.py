"""Removal of external identity records.

The auth server's tables live in the same database. After a user row is
hard-deleted, its identity (sessions, linked accounts, identity user) is
removed too so the email address can sign up again.
"""

import logging

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from oncosafe.models.identity import IdentityAccount, IdentitySession, IdentityUser

logger = logging.getLogger(__name__)


class IdentityStore:
    """Deletes identity records for a user id."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def delete_identity(self, user_id: str) -> bool:
        """Remove sessions, accounts and the identity user in one transaction.

        Returns:
            True if an identity user row was removed.

        Raises:
            sqlalchemy.exc.SQLAlchemyError: If any of the deletes failed.
        """
        async with self._session_factory() as session:
            try:
                await session.execute(delete(IdentitySession).where(IdentitySession.userId == user_id))
                await session.execute(delete(IdentityAccount).where(IdentityAccount.userId == user_id))
                result = await session.execute(delete(IdentityUser).where(IdentityUser.id == user_id))
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        removed = bool(result.rowcount)
        if not removed:
            logger.info("No identity record for user %s", user_id)
        return removed
