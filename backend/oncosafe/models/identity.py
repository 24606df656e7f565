"""Models for the external identity tables.

The auth server owns these tables and reads/writes them itself. The storage
service only touches them at the end of a hard delete, when the identity
record behind a user is purged so the email can register again.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from oncosafe.database import Base


class IdentityUser(Base):
    """Identity record for a signed-up account."""

    __tablename__ = "user"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    emailVerified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    createdAt: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updatedAt: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class IdentitySession(Base):
    """Bearer sessions issued by the auth server."""

    __tablename__ = "session"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    expiresAt: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    token: Mapped[str] = mapped_column(Text, unique=True, index=True)
    createdAt: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    userId: Mapped[str] = mapped_column(Text, nullable=False, index=True)


class IdentityAccount(Base):
    """Linked login methods (password, OAuth provider) for an identity."""

    __tablename__ = "account"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    accountId: Mapped[str] = mapped_column(Text, nullable=False)
    providerId: Mapped[str] = mapped_column(Text, nullable=False)
    userId: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    password: Mapped[str | None] = mapped_column(Text, nullable=True)
    createdAt: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updatedAt: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
