"""Error Taxonomy — typed failures carrying an HTTP status and a public message.

Invariants:
    - Every RouteMapError has http_status (int), public_message (str), code (str)
    - public_message is the ONLY text a caller ever sees; message is logged only
    - Anything that is not a RouteMapError is unclassified: 500 "Internal Server Error"
    - to_response() always produces {"Error": <public_message>}

Design Decisions:
    - Single hierarchy with RouteMapError base: the responder and the FastAPI
      handlers resolve every typed failure the same way (ADR: uniform error shape)
    - Fixed kinds declare status/message as class attributes; DomainError takes them
      per instance so applications can extend the taxonomy without subclassing
"""

from enum import Enum

INTERNAL_SERVER_ERROR = "Internal Server Error"


class ErrorCategory(str, Enum):
    """High-level error categories for logging and routing."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    RESOURCE_NOT_FOUND = "resource_not_found"
    BUSINESS_RULE = "business_rule"
    DATABASE = "database"
    INTERNAL = "internal"


class RouteMapError(Exception):
    """Base exception for all typed request failures."""

    http_status: int = 500
    public_message: str = INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(self, message: str | None = None):
        self.message = message or self.public_message
        super().__init__(self.message)

    def to_response(self) -> dict:
        """Convert to the public error envelope."""
        return {"Error": self.public_message}


# ─── Built-in kinds ──────────────────────────────────────────────

class UnauthorizedError(RouteMapError):
    """No authenticated user, or credentials were rejected."""
    http_status = 401
    public_message = "Unauthorized"
    code = "UNAUTHORIZED"
    category = ErrorCategory.AUTHENTICATION


class ForbiddenError(RouteMapError):
    """Authenticated but not allowed. The detail is logged, never shown."""
    http_status = 403
    public_message = "Forbidden"
    code = "FORBIDDEN"
    category = ErrorCategory.AUTHORIZATION


class BadRequestError(RouteMapError):
    """Invalid input. The caller-supplied message IS the public message."""
    http_status = 400
    public_message = "Bad Request"
    code = "BAD_REQUEST"
    category = ErrorCategory.VALIDATION

    def __init__(self, message: str = "Bad Request"):
        super().__init__(message)
        self.public_message = self.message


class NotFoundError(RouteMapError):
    """Requested resource does not exist."""
    http_status = 404
    public_message = "Not Found"
    code = "NOT_FOUND"
    category = ErrorCategory.RESOURCE_NOT_FOUND


# ─── Domain-specific (extensible) ────────────────────────────────

class DomainError(RouteMapError):
    """Application-defined failure with a caller-chosen status and public message."""
    code = "DOMAIN_ERROR"
    category = ErrorCategory.BUSINESS_RULE

    def __init__(
        self,
        message: str,
        public_message: str | None = None,
        http_status: int | None = None,
        code: str | None = None,
    ):
        super().__init__(message)
        if public_message is not None:
            self.public_message = public_message
        if http_status is not None:
            self.http_status = http_status
        if code is not None:
            self.code = code


class EmailAlreadyTakenError(DomainError):
    """Signup attempted with an email that already has an account."""
    public_message = "Email Already Taken"
    code = "EMAIL_ALREADY_TAKEN"

    def __init__(self, message: str = "Email Already Taken"):
        super().__init__(message)


class DatabaseError(DomainError):
    """Database operation failed inside a transaction."""
    http_status = 503
    public_message = "Service Unavailable"
    code = "DATABASE_ERROR"
    category = ErrorCategory.DATABASE

    def __init__(self, message: str, operation: str):
        super().__init__(f"Database {operation} failed: {message}")
        self.operation = operation


# ─── Untyped / programming errors ────────────────────────────────

class MissingObjectError(LookupError):
    """A required shared-store key was absent. Untyped on purpose: surfaces as 500."""

    def __init__(self, key: str):
        super().__init__(f"{key} not found")
        self.key = key


class ResponseAlreadySentError(RuntimeError):
    """make_response or a response sink was used more than once."""


def describe_failure(exc: BaseException) -> tuple[int, str]:
    """Resolve (status, public message) for any failure. Untyped → 500."""
    if isinstance(exc, RouteMapError):
        return exc.http_status or 500, exc.public_message or INTERNAL_SERVER_ERROR
    return 500, INTERNAL_SERVER_ERROR
