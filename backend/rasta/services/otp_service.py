# ---------------------------------------------------------------------------
# Project : rasta
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Emailed one-time codes: signup verification and password reset.

Both flows run the same protocol over their own table:

generate(user)
    8-character code from ``[0-9A-Z]`` (CSPRNG), hashed with the secret
    hasher, expiry = now + EMAIL_OTP_EXPIRY.  The user's previous code for
    the same flow is replaced in one upsert, then the plaintext is emailed.
    If the email cannot be sent the row is deleted again so no unreachable
    code is left behind.

consume(user_id, code)
    A missing row, a wrong code and an expired code all raise the same
    :class:`InvalidOrExpiredOtp`.  On success the flow's side effect and the
    deletion of the row commit together; the delete is conditional on the
    stored hash, so the same code cannot be redeemed twice.
"""

import secrets
import string
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rasta.core.config import Settings
from rasta.core.email import (
    RESET_PASSWORD_TEMPLATE,
    VERIFY_EMAIL_TEMPLATE,
    EmailSender,
    base_template_data,
)
from rasta.core.errors import (
    EmailDispatchError,
    InternalError,
    InvalidOrExpiredOtp,
    InvalidRequestBody,
    InvalidUserId,
    PasswordsNotMatch,
    PasswordTooWeak,
)
from rasta.core.logger import logger
from rasta.core.security import SecretHasher
from rasta.core.validators import email_validate, password_valid
from rasta.models.user import User
from rasta.repositories.base import commit
from rasta.repositories.otp_repository import email_otp_repository, reset_pwd_repository
from rasta.repositories.user_repository import UserRepository

OTP_CODE_LENGTH = 8
OTP_CHARSET = string.digits + string.ascii_uppercase


def generate_otp_code(length: int = OTP_CODE_LENGTH) -> str:
    return "".join(secrets.choice(OTP_CHARSET) for _ in range(length))


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class OneTimeCodeService:
    """Shared generate/consume protocol; subclasses pick table, template and side effect."""

    template = ""
    subject = ""
    purpose = ""

    def __init__(
        self,
        db: Session,
        settings: Settings,
        hasher: SecretHasher,
        email_sender: EmailSender,
        codes,
    ):
        self.db = db
        self.settings = settings
        self.hasher = hasher
        self.email_sender = email_sender
        self.codes = codes
        self.users = UserRepository(db)
        self.ttl = timedelta(seconds=settings.email_otp_expiry)

    # -- generate -----------------------------------------------------------

    def generate(self, user: User) -> None:
        code = generate_otp_code()
        expiry = datetime.now(timezone.utc) + self.ttl

        try:
            self.codes.replace(user.id, self.hasher.hash(code), expiry)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to store %s code for %s: %s", self.purpose, user.id, exc)
            raise InternalError() from exc
        commit(self.db, f"store {self.purpose} code")

        data = {
            **base_template_data(self.settings),
            "otp": code,
            "first_name": user.first_name,
            "username": user.username,
            "expires_in_minutes": max(1, self.settings.email_otp_expiry // 60),
        }
        try:
            self.email_sender.send(self.template, user.email, self.subject, data)
        except EmailDispatchError:
            logger.error("Could not email %s code to user %s", self.purpose, user.id)
            self._discard(user.id)
            raise

        logger.info("Issued %s code for user %s", self.purpose, user.id)

    def _discard(self, user_id: uuid.UUID) -> None:
        """Best-effort cleanup after a failed send; never masks the send error."""
        try:
            self.codes.delete(user_id)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to discard unsent %s code for %s: %s", self.purpose, user_id, exc)

    # -- consume ------------------------------------------------------------

    def consume(self, user_id: uuid.UUID, code: str, apply: Callable[[], object]) -> None:
        """
        Redeem *code* for *user_id*.  *apply* stages the flow's side effect
        and commits together with the deletion of the code.
        """
        try:
            row = self.codes.get(user_id)
        except SQLAlchemyError as exc:
            logger.error("Failed to load %s code for %s: %s", self.purpose, user_id, exc)
            raise InvalidOrExpiredOtp() from exc

        if row is None:
            raise InvalidOrExpiredOtp()

        code_matches = self.hasher.verify(code or "", row.code_hash)
        expired = datetime.now(timezone.utc) > _as_utc(row.expiry)
        if not code_matches or expired:
            raise InvalidOrExpiredOtp()

        try:
            if not self.codes.take(user_id, row.code_hash):
                # Someone else redeemed or replaced it in the meantime
                self.db.rollback()
                raise InvalidOrExpiredOtp()
            apply()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to consume %s code for %s: %s", self.purpose, user_id, exc)
            raise InternalError() from exc

        commit(self.db, f"consume {self.purpose} code")
        logger.info("Consumed %s code for user %s", self.purpose, user_id)


class EmailVerificationService(OneTimeCodeService):
    template = VERIFY_EMAIL_TEMPLATE
    subject = "Verify your E-mail address"
    purpose = "email verification"

    def __init__(self, db, settings, hasher, email_sender):
        super().__init__(db, settings, hasher, email_sender, email_otp_repository(db))

    def resend(self, email: str) -> User:
        """Issue a fresh verification code to an unverified account."""
        ok, email = email_validate(email)
        if not ok:
            raise InvalidRequestBody()
        user = self._find_unverified(lambda: self.users.get_by_email(email))
        self.generate(user)
        return user

    def verify(self, user_id: uuid.UUID, code: str) -> None:
        self._find_unverified(lambda: self.users.get_by_id(user_id))
        self.consume(user_id, code, lambda: self.users.mark_verified(user_id))

    def _find_unverified(self, lookup) -> User:
        # Unknown, unreadable and already-verified accounts look the same
        try:
            user = lookup()
        except SQLAlchemyError as exc:
            logger.error("User lookup for email verification failed: %s", exc)
            raise InvalidUserId() from exc
        if user is None or user.is_verified:
            raise InvalidUserId()
        return user


class PasswordResetService(OneTimeCodeService):
    template = RESET_PASSWORD_TEMPLATE
    subject = "Reset password"
    purpose = "password reset"

    def __init__(self, db, settings, hasher, email_sender):
        super().__init__(db, settings, hasher, email_sender, reset_pwd_repository(db))

    def request(self, email: str) -> User:
        """Email a reset code to the account registered under *email*."""
        ok, email = email_validate(email)
        if not ok:
            raise InvalidRequestBody()
        try:
            user = self.users.get_by_email(email)
        except SQLAlchemyError as exc:
            logger.error("User lookup for password reset failed: %s", exc)
            raise InvalidRequestBody() from exc
        if user is None:
            raise InvalidRequestBody()
        self.generate(user)
        return user

    def reset(self, user_id: uuid.UUID, code: str, new_password1: str, new_password2: str) -> None:
        """
        Redeem a reset code and rotate the password.  Verification and
        two-factor state are left untouched.
        """
        if new_password1 != new_password2:
            raise PasswordsNotMatch()
        if not password_valid(new_password1):
            raise PasswordTooWeak()

        try:
            user = self.users.get_by_id(user_id)
        except SQLAlchemyError as exc:
            logger.error("User lookup for password reset failed: %s", exc)
            raise InvalidUserId() from exc
        if user is None:
            raise InvalidUserId()

        # Hashed only once the code has matched
        self.consume(
            user_id,
            code,
            lambda: self.users.update_fields(
                user_id, password_hash=self.hasher.hash(new_password1)
            ),
        )
