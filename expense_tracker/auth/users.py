"""
Local user mirror.

Sign-in is handled by a hosted identity provider. The first time a
signed-in user reaches the app, a local account is created from the
provider's profile; afterwards it is simply looked up.
"""

from typing import Optional
from uuid import UUID

from expense_tracker.audit import AuditLogger
from expense_tracker.errors import AuthenticationError
from expense_tracker.models.expense import UserAccount, UserIdentity
from expense_tracker.services.storage import ExpenseStoreInterface

USER_NOT_FOUND_MESSAGE = "User not found"


def require_identity(identity: Optional[UserIdentity]) -> UserIdentity:
    """Return the identity, or raise when nobody is signed in."""
    if identity is None or not identity.external_id:
        raise AuthenticationError(USER_NOT_FOUND_MESSAGE)
    return identity


class UserSync:
    """Find-or-create for the local user account."""

    def __init__(
        self,
        store: ExpenseStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit = audit_logger or AuditLogger()

    async def check_user(
        self,
        identity: Optional[UserIdentity],
        correlation_id: Optional[UUID] = None,
    ) -> Optional[UserAccount]:
        """
        Return the local account for the signed-in user.

        Returns None when nobody is signed in. Raises StoreError if the
        store cannot be read or written.
        """
        if identity is None:
            return None

        existing = await self._store.get_user_by_external_id(identity.external_id)
        if existing:
            return existing

        user = await self._store.create_user(UserAccount(
            external_id=identity.external_id,
            name=identity.display_name or None,
            email=identity.email,
            image_url=identity.image_url,
        ))
        await self._audit.log_user_created(user.id, user.external_id, correlation_id)
        return user
