"""Domain exceptions for the classcharts library."""


class ClassChartsError(Exception):
    """Base class for all classcharts library exceptions."""


class DecodeError(ClassChartsError):
    """Raised when a response body matches neither envelope shape.

    The request that produced the body is never retried.
    """


class ApiError(ClassChartsError):
    """Raised when the API reports a failure for a request.

    Attributes:
        message: The error message returned by the server.
        expired: ``True`` when the server considers the session invalid and
            the user may need to log in again.
    """

    def __init__(self, message: str, expired: bool = False):
        super().__init__(message)
        self.message = message
        self.expired = expired

    def __str__(self) -> str:
        suffix = " (session expired)" if self.expired else ""
        return f"{self.message}{suffix}"


class ServerRejectedError(ApiError):
    """Raised when the server answers with a failure envelope."""


class UnauthorizedError(ApiError):
    """Raised when the server answers with HTTP 401."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, expired=True)


class AuthError(ClassChartsError):
    """Raised when a session credential cannot be obtained or renewed."""


class AuthRejectedError(AuthError, ApiError):
    """Raised when the renewal endpoint answers with a failure envelope."""


class SessionExpiredError(AuthError, ApiError):
    """Raised when the server still rejects a request after its session was
    renewed.

    The original rejection (a failure envelope or an HTTP 401) is chained as
    ``__cause__``.  The user has to log in again.
    """

    def __init__(self, message: str):
        super().__init__(message, expired=True)


class AuthTransportError(AuthError):
    """Raised when the renewal call fails before a usable body arrives."""


class RefreshTimeoutError(AuthError):
    """Raised when a caller gives up waiting for a shared renewal.

    The renewal itself keeps running for the other callers.
    """


class AuthenticationRequiredError(AuthError):
    """Raised when an authenticated endpoint is called without a session.

    The caller (CLI or application) is responsible for guiding the user
    through :meth:`~classcharts.providers.classcharts.client.ClassChartsClient.login`;
    the client has no way to create a session from nothing.
    """


class StoreError(ClassChartsError):
    """Raised when a credential cannot be persisted."""
