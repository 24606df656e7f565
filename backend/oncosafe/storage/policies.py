"""Role override policy applied to every user read.

Production historically reported one support account as ``super_admin``
regardless of its stored role. That behaviour lives here, behind a named
hook, so it can be switched off (empty ``PRIVILEGED_OVERRIDE_EMAIL``)
without touching either store.
"""

import logging
from typing import Any, Protocol

from oncosafe.config import Settings

logger = logging.getLogger(__name__)


class RoleOverridePolicy(Protocol):
    def apply(self, user: dict[str, Any] | None) -> dict[str, Any] | None:
        """Return the user as callers should see it."""
        ...


class NoRoleOverride:
    """Report stored roles unchanged."""

    def apply(self, user: dict[str, Any] | None) -> dict[str, Any] | None:
        return user


class PinnedRoleOverride:
    """Always report ``role`` for one exact email address.

    The stored row is never modified; only the returned copy is.
    """

    def __init__(self, email: str, role: str = "super_admin"):
        self.email = email
        self.role = role

    def apply(self, user: dict[str, Any] | None) -> dict[str, Any] | None:
        if user is None or user.get("email") != self.email:
            return user
        return {**user, "role": self.role}


def role_override_from_settings(settings: Settings) -> RoleOverridePolicy:
    if not settings.privileged_override_email:
        return NoRoleOverride()
    logger.warning(
        "Role override active: %s is always reported as %s",
        settings.privileged_override_email,
        settings.privileged_override_role,
    )
    return PinnedRoleOverride(settings.privileged_override_email, settings.privileged_override_role)
