"""
Application error hierarchy.

Services raise these exceptions; the application factory registers a
single error handler that turns any ``LoanerDeskError`` into a JSON
``{"error": message}`` response with the exception's ``status_code``.
Nothing in the request path retries on error.
"""


class LoanerDeskError(Exception):
    """
    Base class for all expected application errors.

    Attributes:
        message:     Human-readable message returned to the client.
        status_code: HTTP status code the API layer responds with.
    """

    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# -- 404 -------------------------------------------------------------------


class NotFoundError(LoanerDeskError):
    """A referenced device, school, or user does not exist."""

    status_code = 404
    default_message = "Not found"


class DeviceNotFound(NotFoundError):
    default_message = "Device not found"


class SchoolNotFound(NotFoundError):
    default_message = "School not found"


class UserNotFound(NotFoundError):
    default_message = "User not found"


# -- 400: state conflicts --------------------------------------------------


class ConflictError(LoanerDeskError):
    """The request conflicts with the current state of a record."""

    status_code = 400
    default_message = "Conflict"


class DuplicateAssetTag(ConflictError):
    default_message = "Device already exists"


class AlreadyCheckedOut(ConflictError):
    default_message = "Device is already checked out"


class AlreadyAvailable(ConflictError):
    default_message = "Device is already checked in"


class DuplicateUser(ConflictError):
    default_message = "Username or email already exists"


# -- 400: input ------------------------------------------------------------


class ValidationError(LoanerDeskError):
    """A required field is missing or an input value is malformed."""

    status_code = 400
    default_message = "Invalid request"


# -- 500: external ticketing service ---------------------------------------


class UpstreamError(LoanerDeskError):
    """The external ticketing service rejected or failed a request."""

    status_code = 500
    default_message = "Upstream service error"


class TicketSubmissionFailed(UpstreamError):
    default_message = "Failed to create repair ticket"


# -- 401 / 403 -------------------------------------------------------------


class AuthError(LoanerDeskError):
    """Missing or invalid credentials or session token."""

    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(LoanerDeskError):
    """The authenticated user may not perform this action."""

    status_code = 403
    default_message = "Admin access required"


class AutoRegistrationDisabled(ForbiddenError):
    default_message = "This school does not allow registering new devices"
