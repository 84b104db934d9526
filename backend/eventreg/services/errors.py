"""Domain errors raised by the account-deletion services.

Routers translate these into HTTP responses (see ``eventreg.main``); the sweep
catches ``DeletionFailed`` per user.
"""


class GDPRError(Exception):
    """Base class for deletion lifecycle errors."""

    def __init__(self, user_id: str, message: str):
        super().__init__(message)
        self.user_id = user_id


class UserNotFound(GDPRError):
    def __init__(self, user_id: str):
        super().__init__(user_id, f"User {user_id} not found")


class AlreadyScheduled(GDPRError):
    def __init__(self, user_id: str):
        super().__init__(user_id, f"Deletion of user {user_id} is already scheduled")


class AlreadyEligible(GDPRError):
    def __init__(self, user_id: str):
        super().__init__(user_id, f"User {user_id} can be deleted immediately, no need to schedule")


class NotScheduled(GDPRError):
    def __init__(self, user_id: str):
        super().__init__(user_id, f"No deletion is scheduled for user {user_id}")


class DeletionFailed(GDPRError):
    """The atomic deletion unit could not complete and was rolled back."""

    def __init__(self, user_id: str, cause: Exception):
        super().__init__(user_id, f"Failed to delete user {user_id}: {cause}")
        self.cause = cause
