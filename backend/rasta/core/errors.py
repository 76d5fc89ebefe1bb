"""
Domain errors raised by services and guards.

Services never produce HTTP status codes; they raise one of the classes
below and the application maps the *family* to a status in ``main.py``.
Each class carries a fixed, user-safe message; internal detail goes to the
log, never into the exception text.
"""

# -- Messages -----------------------------------------------------------------

MSG_USER_NOT_FOUND = "user not found"
MSG_UNAUTHORIZED_TOKEN = "unauthorized, invalid token"
MSG_FORBIDDEN = "forbidden"
MSG_USER_NOT_VERIFIED = "user not verified"
MSG_ACCOUNT_DISABLED = "account disabled"
MSG_INVALID_CREDENTIALS = "invalid credentials"
MSG_INVALID_OAUTH = "invalid one-time password"
MSG_INVALID_OR_EXPIRED_OTP = "invalid or expired otp"
MSG_INVALID_USER_ID = "invalid user ID"
MSG_EMAIL_ALREADY_EXISTS = "email already exists"
MSG_EMAIL_NOT_EXISTS = "email not exists"
MSG_INVALID_EMAIL = "invalid email address"
MSG_USERNAME_ALREADY_EXISTS = "username already exists"
MSG_USERNAME_NOT_EXISTS = "username not exists"
MSG_INVALID_USERNAME = (
    "username must be at least 4 characters long and contain only letters and numbers"
)
MSG_INVALID_REQUEST_BODY = "invalid request body"
MSG_PASSWORD_TOO_WEAK = (
    "password too weak. must be at least 8 characters long and contain at least "
    "one uppercase letter, one lowercase letter, one number, and one special character"
)
MSG_PASSWORDS_NOT_MATCH = "password do not match"
MSG_OAUTH_ALREADY_ENABLED = "OAuth is already enabled"
MSG_OAUTH_ALREADY_DISABLED = "OAuth is already disabled"
MSG_INTERNAL_SERVER = "internal server error"


class RastaError(Exception):
    """Base class; ``message`` is safe to show to the client."""

    message = MSG_INTERNAL_SERVER

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


# -- (a) validation ----------------------------------------------------------


class ValidationFailed(RastaError):
    message = MSG_INVALID_REQUEST_BODY


class InvalidRequestBody(ValidationFailed):
    message = MSG_INVALID_REQUEST_BODY


class PasswordTooWeak(ValidationFailed):
    message = MSG_PASSWORD_TOO_WEAK


class PasswordsNotMatch(ValidationFailed):
    message = MSG_PASSWORDS_NOT_MATCH


class InvalidEmail(ValidationFailed):
    message = MSG_INVALID_EMAIL


class InvalidUsername(ValidationFailed):
    message = MSG_INVALID_USERNAME


# -- (b) not found ------------------------------------------------------------


class NotFound(RastaError):
    message = MSG_USER_NOT_FOUND


class UserNotFound(NotFound):
    message = MSG_USER_NOT_FOUND


class InvalidUserId(NotFound):
    message = MSG_INVALID_USER_ID


class UsernameNotExists(NotFound):
    message = MSG_USERNAME_NOT_EXISTS


class EmailNotExists(NotFound):
    message = MSG_EMAIL_NOT_EXISTS


# -- (c) credentials -----------------------------------------------------------


class CredentialError(RastaError):
    message = MSG_INVALID_CREDENTIALS


class InvalidCredentials(CredentialError):
    message = MSG_INVALID_CREDENTIALS


class InvalidOrExpiredOtp(CredentialError):
    """Wrong code, expired code and missing code are deliberately the same error."""

    message = MSG_INVALID_OR_EXPIRED_OTP


class InvalidOAuth(CredentialError):
    message = MSG_INVALID_OAUTH


class UserNotVerified(CredentialError):
    message = MSG_USER_NOT_VERIFIED


class AccountDisabled(CredentialError):
    message = MSG_ACCOUNT_DISABLED


# -- (d) conflicts -------------------------------------------------------------


class Conflict(RastaError):
    pass


class EmailAlreadyExists(Conflict):
    message = MSG_EMAIL_ALREADY_EXISTS


class UsernameAlreadyExists(Conflict):
    message = MSG_USERNAME_ALREADY_EXISTS


class OAuthAlreadyEnabled(Conflict):
    message = MSG_OAUTH_ALREADY_ENABLED


class OAuthAlreadyDisabled(Conflict):
    message = MSG_OAUTH_ALREADY_DISABLED


# -- (e) internal ----------------------------------------------------------------


class InternalError(RastaError):
    message = MSG_INTERNAL_SERVER


class EmailDispatchError(InternalError):
    """Raised by email senders; carries no detail for the client."""


# -- auth guards ---------------------------------------------------------------


class Unauthorized(RastaError):
    message = MSG_UNAUTHORIZED_TOKEN


class InvalidToken(Unauthorized):
    """Raised by the token codec for any malformed, forged or expired token."""


class Forbidden(RastaError):
    message = MSG_FORBIDDEN
