"""Typed failures raised by the account core and mapped to HTTP statuses in warden.main."""


class WardenError(Exception):
    """Base class for expected, reportable failures. Never fatal to the process."""

    kind = "Error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DuplicateEmailError(WardenError):
    """Raised when an email is already registered to another user."""

    kind = "DuplicateEmail"

    def __init__(self, message: str = "The email has already been taken.") -> None:
        super().__init__(message)


class InvalidCredentialsError(WardenError):
    """Raised on failed login; identical for unknown email and wrong password."""

    kind = "InvalidCredentials"

    def __init__(self, message: str = "Invalid email or password.") -> None:
        super().__init__(message)


class InvalidTokenError(WardenError):
    """Raised when a bearer token is forged, malformed, expired or revoked."""

    kind = "InvalidToken"

    def __init__(self, message: str = "Invalid or expired token.") -> None:
        super().__init__(message)


class UnauthorizedError(WardenError):
    """Raised when the authorization policy denies an action."""

    kind = "Unauthorized"

    def __init__(self, message: str = "You are not allowed to perform this action.") -> None:
        super().__init__(message)


class NotFoundError(WardenError):
    """Raised when a user record does not exist."""

    kind = "NotFound"

    def __init__(self, message: str = "User not found.") -> None:
        super().__init__(message)


class LastAdminProtectedError(WardenError):
    """Raised when a deletion would leave the system without an Admin."""

    kind = "LastAdminProtected"

    def __init__(self, message: str = "Cannot delete the last admin account.") -> None:
        super().__init__(message)


class RoleSeedMissingError(WardenError):
    """Raised when a required role has not been seeded into the roles table."""

    kind = "RoleSeedMissing"

    def __init__(self, role: str) -> None:
        self.role = role
        super().__init__(
            f"Role '{role}' not found. Seed roles with: python -m warden.scripts.seed_roles"
        )


class ValidationFailedError(WardenError):
    """Raised when input is malformed before reaching the store or hasher."""

    kind = "ValidationFailed"
