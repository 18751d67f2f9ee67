"""Custom exceptions for the service layer."""


class ServiceError(Exception):
    """Base exception for service layer errors."""

    status_code = 500

    def __init__(self, message: str, code: str = "SERVICE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class BadRequestError(ServiceError):
    """Malformed input or a state conflict the caller can fix."""

    status_code = 400

    def __init__(self, message: str, code: str = "BAD_REQUEST"):
        super().__init__(message=message, code=code)


class EmailAlreadyExistsError(BadRequestError):
    """Unique email constraint violated."""

    def __init__(self, message: str = "User already exists"):
        super().__init__(message=message, code="EMAIL_ALREADY_EXISTS")


class UnauthorizedError(ServiceError):
    """Authentication failed error."""

    status_code = 401

    def __init__(self, message: str = "Please authenticate", code: str = "UNAUTHORIZED"):
        super().__init__(message=message, code=code)


class InvalidTokenError(UnauthorizedError):
    """Token signature or structure is invalid."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message=message, code="INVALID_TOKEN")


class ExpiredTokenError(UnauthorizedError):
    """Token is past its expiry."""

    def __init__(self, message: str = "Token expired"):
        super().__init__(message=message, code="EXPIRED_TOKEN")


class WrongTokenTypeError(UnauthorizedError):
    """Token was issued for a different purpose."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            message=f"Expected {expected} token, got {actual}",
            code="WRONG_TOKEN_TYPE",
        )


class OAuthProviderError(UnauthorizedError):
    """Exchanging an authorization code with a provider failed."""

    def __init__(self, provider_type: str, detail: str = ""):
        self.provider_type = provider_type
        self.detail = detail
        super().__init__(message="Unauthorized", code="OAUTH_PROVIDER_ERROR")


class ForbiddenError(ServiceError):
    """Authorization failed error."""

    status_code = 403

    def __init__(self, message: str = "Forbidden", code: str = "FORBIDDEN"):
        super().__init__(message=message, code=code)


class NotFoundError(ServiceError):
    """Resource not found error."""

    status_code = 404

    def __init__(self, message: str = "Not found", code: str = "NOT_FOUND"):
        super().__init__(message=message, code=code)


class UserNotFoundError(NotFoundError):
    """User not found error."""

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(message="User not found", code="USER_NOT_FOUND")


class TooManyRequestsError(ServiceError):
    """Rejected by the rate limit policy."""

    status_code = 429

    def __init__(self, message: str = "Too many requests"):
        super().__init__(message=message, code="TOO_MANY_REQUESTS")


class InternalConfigError(ServiceError):
    """Required configuration is missing or invalid."""

    status_code = 500

    def __init__(self, message: str, fatal: bool = False):
        self.fatal = fatal
        super().__init__(message=message, code="INVALID_CONFIGURATION")
