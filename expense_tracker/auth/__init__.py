"""Signed-in user handling."""

from expense_tracker.auth.users import USER_NOT_FOUND_MESSAGE, UserSync, require_identity

__all__ = ["USER_NOT_FOUND_MESSAGE", "UserSync", "require_identity"]
