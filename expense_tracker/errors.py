"""
Error taxonomy for Expense Tracker.

The hierarchy is deliberately shallow. Every error raised below the
action layer is one of these, and the action layer turns each of them
into a plain message for the UI.
"""


class ExpenseTrackerError(Exception):
    """Base exception for all expected failures."""
    pass


class ValidationError(ExpenseTrackerError):
    """A required form field is missing or malformed."""
    pass


class AuthenticationError(ExpenseTrackerError):
    """No signed-in user could be identified."""
    pass


class StoreError(ExpenseTrackerError):
    """Base exception for record store operations."""
    pass


class StoreConnectionError(StoreError):
    """Could not connect to storage backend."""
    pass


class AIUnavailableError(ExpenseTrackerError):
    """The language model request failed or returned nothing usable."""
    pass
