"""Typed failures raised by Campus Bites services.

Every service operation fails with exactly one of these. The HTTP layer maps
them to a ``{"success": false, "message": ...}`` envelope using the
``status_code`` carried by each class.
"""

from collections.abc import Sequence


class CampusBitesError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputValidationError(CampusBitesError):
    """Missing or malformed input."""

    status_code = 400


class DuplicateEmailError(CampusBitesError):
    """An identity with this email already exists."""

    status_code = 400

    def __init__(self, message: str = "User already exists with this email") -> None:
        super().__init__(message)


class NotFoundError(CampusBitesError):
    """A referenced id does not resolve to a record."""

    status_code = 404


class UnauthorizedError(CampusBitesError):
    """No credential, or a credential that does not verify."""

    status_code = 401


class ForbiddenError(CampusBitesError):
    """Authenticated, but the action is not permitted."""

    status_code = 403


class InvalidTransitionError(CampusBitesError):
    """Requested order status is not reachable from the current one."""

    status_code = 400

    def __init__(self, current: str, requested: str, allowed: Sequence[str]) -> None:
        self.current = current
        self.requested = requested
        self.allowed = list(allowed)
        allowed_text = ", ".join(self.allowed) if self.allowed else "None (order is final)"
        super().__init__(
            f'Invalid status transition. Cannot change from "{current}" to "{requested}". '
            f"Allowed transitions: {allowed_text}"
        )


class AlreadyRatedError(CampusBitesError):
    """The order already carries a rating."""

    status_code = 400

    def __init__(self, message: str = "You have already rated this order") -> None:
        super().__init__(message)


class InvalidRatingError(CampusBitesError):
    """Rating out of range, or the order is not completed."""

    status_code = 400


class StorageError(CampusBitesError):
    """A write to the document store did not succeed."""

    status_code = 500
