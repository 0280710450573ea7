"""Gateway error taxonomy.

Every failure a request can end in maps to one of these classes. Components
below the routes return typed results; the request handlers translate those
into GatewayError subclasses, and a single exception handler in main.py
renders them as `{"error": message}` with the class's status code.
"""

from enum import Enum


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    MISCONFIGURED = "misconfigured"
    UPSTREAM = "upstream"
    INFRASTRUCTURE = "infrastructure"


class GatewayError(Exception):
    status_code: int = 500
    category: ErrorCategory = ErrorCategory.INFRASTRUCTURE
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, **context: str | int | None):
        self.message = message or self.default_message
        # Extra fields for the log line, never rendered to the caller
        self.context = {k: v for k, v in context.items() if v is not None}
        super().__init__(self.message)


class RequestValidationError(GatewayError):
    status_code = 400
    category = ErrorCategory.VALIDATION
    default_message = "Invalid request"


class UnknownPlatformError(RequestValidationError):
    default_message = "Unsupported platform"


class InvalidSignatureError(GatewayError):
    status_code = 401
    category = ErrorCategory.AUTHENTICATION
    default_message = "Invalid signature"


class MissingBearerTokenError(GatewayError):
    status_code = 401
    category = ErrorCategory.AUTHENTICATION
    default_message = "Missing authorization header"


class InvalidSessionError(GatewayError):
    status_code = 401
    category = ErrorCategory.AUTHENTICATION
    default_message = "Invalid or expired session"


class OrganizationNotFoundError(GatewayError):
    status_code = 404
    category = ErrorCategory.NOT_FOUND
    default_message = "Store not found"


class OrganizationMembershipError(GatewayError):
    """The user exists but belongs to no organization. Operator-actionable."""

    status_code = 400
    category = ErrorCategory.MISCONFIGURED
    default_message = "User is not a member of any organization"


class TokenExchangeError(GatewayError):
    status_code = 400
    category = ErrorCategory.UPSTREAM
    default_message = "Token exchange failed"


class InfrastructureError(GatewayError):
    status_code = 500
    category = ErrorCategory.INFRASTRUCTURE
    default_message = "Internal server error"
