"""
User accounts: creation, credential checks, profile updates and the admin
directory.

Lookups follow one rule: a missing row and a failed query raise the same
not-found error, so the error shape never tells a caller whether an
account exists.
"""

import uuid

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from rasta.core.errors import (
    EmailAlreadyExists,
    EmailNotExists,
    InternalError,
    InvalidCredentials,
    InvalidEmail,
    InvalidUsername,
    PasswordsNotMatch,
    PasswordTooWeak,
    UserNotFound,
    UsernameAlreadyExists,
    UsernameNotExists,
)
from rasta.core.logger import logger
from rasta.core.security import SecretHasher
from rasta.core.validators import email_validate, password_valid, username_valid
from rasta.models.user import AccountType, RegionType, User
from rasta.repositories.base import commit
from rasta.repositories.user_repository import UserRepository

DEFAULT_PAGE_LIMIT = 10
DEFAULT_PAGE = 1


def normalize_username(username: str) -> str:
    return (username or "").lower()


class UserService:
    def __init__(self, db: Session, hasher: SecretHasher):
        self.db = db
        self.hasher = hasher
        self.users = UserRepository(db)

    # -- lookups --------------------------------------------------------------

    def _lookup(self, what: str, query, not_found):
        try:
            user = query()
        except SQLAlchemyError as exc:
            logger.error("User lookup by %s failed: %s", what, exc)
            raise not_found() from exc
        if user is None:
            raise not_found()
        return user

    def find_by_id(self, user_id: uuid.UUID, with_credentials: bool = False) -> User:
        return self._lookup(
            "id", lambda: self.users.get_by_id(user_id, with_credentials), UserNotFound
        )

    def find_by_username(self, username: str) -> User:
        username = normalize_username(username)
        return self._lookup(
            "username", lambda: self.users.get_by_username(username), UsernameNotExists
        )

    def find_by_email(self, email: str) -> User:
        ok, email = email_validate(email)
        if not ok:
            raise EmailNotExists()
        return self._lookup("email", lambda: self.users.get_by_email(email), EmailNotExists)

    def list_users(self, limit: int | None = None, page: int | None = None) -> list[User]:
        """
        One page of the directory.  Missing or non-positive *limit* / *page*
        fall back to 10 and 1.
        """
        limit = limit if limit and limit > 0 else DEFAULT_PAGE_LIMIT
        page = page if page and page > 0 else DEFAULT_PAGE
        try:
            return self.users.list_page(offset=(page - 1) * limit, limit=limit)
        except SQLAlchemyError as exc:
            logger.error("Listing users failed: %s", exc)
            raise InternalError() from exc

    def count_users(self) -> int:
        try:
            return self.users.count()
        except SQLAlchemyError as exc:
            logger.error("Counting users failed: %s", exc)
            raise InternalError() from exc

    # -- signup ---------------------------------------------------------------

    def create(
        self,
        first_name: str,
        last_name: str,
        username: str,
        email: str,
        password: str,
        region: RegionType,
        account: AccountType = AccountType.NORMAL,
        is_verified: bool = False,
    ) -> User:
        """
        Validate and insert a new account.  New accounts start unverified,
        enabled and without TOTP unless the caller says otherwise (the admin
        bootstrap script does).
        """
        if not password_valid(password):
            raise PasswordTooWeak()
        ok, email = email_validate(email)
        if not ok:
            raise InvalidEmail()
        username = normalize_username(username)
        if not username_valid(username):
            raise InvalidUsername()

        self._ensure_unique(username, email)

        user = User(
            first_name=first_name,
            last_name=last_name,
            username=username,
            email=email,
            password_hash=self.hasher.hash(password),
            region=region,
            account=account,
            is_verified=is_verified,
            is_disabled=False,
        )
        try:
            self.users.add(user)
            self.db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent signup for the same name/address
            self.db.rollback()
            logger.warning("Signup hit a uniqueness constraint: %s", exc.orig)
            self._ensure_unique(username, email)
            raise UsernameAlreadyExists() from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to create user %s: %s", username, exc)
            raise InternalError() from exc

        self.db.refresh(user)
        logger.info("Created user %s (%s)", user.id, user.username)
        return user

    def _ensure_unique(self, username: str, email: str) -> None:
        try:
            existing = self.users.get_by_username_or_email(username, email)
        except SQLAlchemyError as exc:
            logger.error("Uniqueness check failed: %s", exc)
            raise InternalError() from exc
        if existing is None:
            return
        if existing.email == email:
            raise EmailAlreadyExists()
        raise UsernameAlreadyExists()

    # -- credentials ----------------------------------------------------------

    def authenticate(self, username_or_email: str, password: str) -> User:
        """
        Resolve an account by username or email and check its password.
        Unknown account and wrong password are the same error and cost the
        same hashing work.
        """
        identifier = (username_or_email or "").strip()
        try:
            if "@" in identifier:
                ok, email = email_validate(identifier)
                user = self.users.get_by_email(email) if ok else None
            else:
                user = self.users.get_by_username(normalize_username(identifier))
        except SQLAlchemyError as exc:
            logger.error("Login lookup failed: %s", exc)
            user = None

        if user is None:
            self.hasher.verify_dummy(password or "")
            raise InvalidCredentials()
        if not self.hasher.verify(password or "", user.password_hash):
            raise InvalidCredentials()
        return user

    def update_password(
        self,
        user_id: uuid.UUID,
        old_password: str,
        new_password1: str,
        new_password2: str,
    ) -> None:
        """Self-service password change; the current password must be supplied."""
        if new_password1 != new_password2:
            raise PasswordsNotMatch()
        if not password_valid(new_password1):
            raise PasswordTooWeak()

        user = self.find_by_id(user_id)
        if not self.hasher.verify(old_password or "", user.password_hash):
            raise InvalidCredentials()

        self._update(user_id, "update password", password_hash=self.hasher.hash(new_password1))
        logger.info("Password changed for user %s", user_id)

    # -- profile --------------------------------------------------------------

    def update_username(self, user_id: uuid.UUID, username: str) -> None:
        username = normalize_username(username)
        if not username_valid(username):
            raise InvalidUsername()
        try:
            taken = self.users.get_by_username(username)
        except SQLAlchemyError as exc:
            logger.error("Username lookup failed: %s", exc)
            raise InternalError() from exc
        if taken is not None and taken.id != user_id:
            raise UsernameAlreadyExists()
        self._update(user_id, "update username", username=username)

    def update_region(self, user_id: uuid.UUID, region: RegionType) -> None:
        self._update(user_id, "update region", region=region)

    def _update(self, user_id: uuid.UUID, action: str, **values) -> None:
        try:
            updated = self.users.update_fields(user_id, **values)
        except IntegrityError as exc:
            self.db.rollback()
            raise UsernameAlreadyExists() from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to %s for %s: %s", action, user_id, exc)
            raise InternalError() from exc
        if updated == 0:
            self.db.rollback()
            raise UserNotFound()
        commit(self.db, action)

    # -- admin ----------------------------------------------------------------

    def set_disabled(self, user_id: uuid.UUID, disabled: bool) -> None:
        action = "disable user" if disabled else "enable user"
        self._update(user_id, action, is_disabled=disabled)
        logger.info("User %s %s", user_id, "disabled" if disabled else "enabled")

    def delete(self, user_id: uuid.UUID) -> None:
        """Remove the account together with its TOTP and one-time code rows."""
        user = self.find_by_id(user_id, with_credentials=True)
        try:
            self.users.delete(user)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to delete user %s: %s", user_id, exc)
            raise InternalError() from exc
        commit(self.db, "delete user")
        logger.info("Deleted user %s", user_id)
