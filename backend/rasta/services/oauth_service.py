"""
TOTP enrollment for a single user.

    [disabled, no secret] --generate_secret--> [disabled, pending secret]
    [disabled, pending]   --enable(code)-----> [enabled]
    [enabled]             --disable(code)----> [disabled, no secret]

A fresh ``generate_secret`` while pending replaces the pending secret.
While enabled it is refused; the user has to disable first.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rasta.core.errors import (
    InternalError,
    InvalidOAuth,
    OAuthAlreadyDisabled,
    OAuthAlreadyEnabled,
)
from rasta.core.logger import logger
from rasta.core.totp import TotpEngine
from rasta.models.oauth import OAuth
from rasta.models.user import User
from rasta.repositories.base import commit
from rasta.repositories.oauth_repository import OAuthRepository


class OAuthService:
    def __init__(self, db: Session, totp: TotpEngine):
        self.db = db
        self.totp = totp
        self.oauth = OAuthRepository(db)

    def _load(self, user: User) -> OAuth | None:
        try:
            return self.oauth.get(user.id)
        except SQLAlchemyError as exc:
            logger.error("Failed to load TOTP enrollment for %s: %s", user.id, exc)
            raise InternalError() from exc

    def _stage(self, user: User, action: str, write) -> None:
        try:
            write()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to %s for %s: %s", action, user.id, exc)
            raise InternalError() from exc
        commit(self.db, action)

    def generate_secret(self, user: User) -> tuple[str, str]:
        """Store a new pending secret; returns ``(secret, provisioning_uri)``."""
        row = self._load(user)
        if row is not None and row.enabled:
            raise OAuthAlreadyEnabled()

        secret = self.totp.create_secret(user.email)
        self._stage(user, "store TOTP secret", lambda: self.oauth.replace(user.id, secret))

        logger.info("Generated pending TOTP secret for user %s", user.id)
        return secret, self.totp.provisioning_uri(user.email, secret)

    def enable(self, user: User, code: str) -> None:
        row = self._load(user)
        if row is not None and row.enabled:
            raise OAuthAlreadyEnabled()
        if row is None or not self.totp.validate_code(code, row.secret):
            raise InvalidOAuth()

        self._stage(user, "enable TOTP", lambda: self.oauth.set_enabled(user.id, True))
        logger.info("Enabled TOTP for user %s", user.id)

    def disable(self, user: User, code: str) -> None:
        row = self._load(user)
        if row is None or not row.enabled:
            raise OAuthAlreadyDisabled()
        if not self.totp.validate_code(code, row.secret):
            raise InvalidOAuth()

        self._stage(user, "disable TOTP", lambda: self.oauth.delete(user.id))
        logger.info("Disabled TOTP for user %s", user.id)

    def validate(self, user: User, code: str) -> bool:
        """Second factor check at login; False when TOTP is not enabled."""
        row = self._load(user)
        if row is None or not row.enabled:
            return False
        return self.totp.validate_code(code, row.secret)
