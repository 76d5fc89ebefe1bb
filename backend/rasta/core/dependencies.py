# ---------------------------------------------------------------------------
# Project : rasta
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
FastAPI dependencies: shared components, per-request services and the auth
guards.

Process-wide components (settings, hasher, token codec, TOTP engine, email
sender, session factory) are built once by ``create_app()`` and parked on
``app.state``.  Services are cheap and built per request around the
request's DB session.
"""

import uuid
from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from rasta.core.config import Settings
from rasta.core.email import EmailSender
from rasta.core.errors import Forbidden, NotFound, Unauthorized
from rasta.core.logger import logger
from rasta.core.security import SecretHasher, TokenCodec
from rasta.core.totp import TotpEngine
from rasta.database import get_db
from rasta.models.user import User
from rasta.services.auth_service import AuthService
from rasta.services.oauth_service import OAuthService
from rasta.services.otp_service import EmailVerificationService, PasswordResetService
from rasta.services.user_service import UserService

# ---------------------------------------------------------------------------
# 1.  Shared components
# ---------------------------------------------------------------------------


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_hasher(request: Request) -> SecretHasher:
    return request.app.state.hasher


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_totp_engine(request: Request) -> TotpEngine:
    return request.app.state.totp_engine


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email_sender


# ---------------------------------------------------------------------------
# 2.  Services
# ---------------------------------------------------------------------------


def get_user_service(
    db: Session = Depends(get_db),
    hasher: SecretHasher = Depends(get_hasher),
) -> UserService:
    return UserService(db, hasher)


def get_oauth_service(
    db: Session = Depends(get_db),
    totp: TotpEngine = Depends(get_totp_engine),
) -> OAuthService:
    return OAuthService(db, totp)


def get_email_verification_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    hasher: SecretHasher = Depends(get_hasher),
    sender: EmailSender = Depends(get_email_sender),
) -> EmailVerificationService:
    return EmailVerificationService(db, settings, hasher, sender)


def get_password_reset_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    hasher: SecretHasher = Depends(get_hasher),
    sender: EmailSender = Depends(get_email_sender),
) -> PasswordResetService:
    return PasswordResetService(db, settings, hasher, sender)


def get_auth_service(
    users: UserService = Depends(get_user_service),
    oauth: OAuthService = Depends(get_oauth_service),
    verification: EmailVerificationService = Depends(get_email_verification_service),
    codec: TokenCodec = Depends(get_token_codec),
) -> AuthService:
    return AuthService(users, oauth, verification, codec)


# ---------------------------------------------------------------------------
# 3.  Auth guards
# ---------------------------------------------------------------------------

# tokenUrl is only used by the generated OpenAPI docs.  auto_error is off so
# a missing header raises our own Unauthorized and gets the usual error body.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/users/login", auto_error=False)


@dataclass(frozen=True)
class Identity:
    user_id: uuid.UUID
    email: str


def get_current_identity(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
    codec: TokenCodec = Depends(get_token_codec),
) -> Identity:
    """
    Dependency: validate the bearer token and return who it belongs to.
    Raises :class:`Unauthorized` before any handler logic runs.
    """
    if not token:
        raise Unauthorized()
    claims = codec.validate_token(token)
    try:
        user_id = uuid.UUID(claims.user_id)
    except ValueError as exc:
        raise Unauthorized() from exc

    identity = Identity(user_id=user_id, email=claims.email)
    request.state.identity = identity
    return identity


def get_current_user(
    identity: Identity = Depends(get_current_identity),
    users: UserService = Depends(get_user_service),
) -> User:
    """Dependency: the account behind the token.  A deleted account is 401."""
    try:
        return users.find_by_id(identity.user_id)
    except NotFound as exc:
        raise Unauthorized() from exc


def require_admin(
    request: Request,
    user: User = Depends(get_current_user),
) -> User:
    """
    Dependency: wraps :func:`get_current_user` and additionally asserts the
    Admin account type.  Raises 403 otherwise.
    """
    if not user.is_admin:
        logger.warning("Non-admin user %s tried to reach %s", user.id, request.url.path)
        raise Forbidden()
    request.state.user = user
    return user
