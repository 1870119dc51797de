class TailorboardError(Exception):
    """Base client error."""


class ConfigurationError(TailorboardError):
    """Raised at startup when required backend settings are absent."""


class AuthError(TailorboardError):
    """Raised when sign-up, sign-in or sign-out is rejected or unreachable."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class IdentityLookupError(TailorboardError):
    """Raised when an authenticated principal has no matching users row."""


class GatewayError(TailorboardError):
    """Raised when a collection query or command fails."""

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class GatewayNotFoundError(GatewayError):
    """Raised when a scoped read or write matched no record."""


class MalformedResponseError(GatewayError):
    """Raised when a backend row does not match the expected result type."""


class SessionExpiredError(GatewayError):
    """Raised when the backend rejects the bearer token of an active session."""


class ValidationError(TailorboardError):
    """Raised by client-side form checks before any gateway call."""


class AccessDeniedError(TailorboardError):
    """Raised when the access policy forbids an action."""
