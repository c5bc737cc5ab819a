class AuthError(Exception):
    """Raised when the auth platform rejects a sign-in or token exchange."""


class NotAuthenticatedError(AuthError):
    """Raised when a request has no valid session."""
