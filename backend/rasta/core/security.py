# ---------------------------------------------------------------------------
# Project : rasta
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Central security module.  Password/code hashing and bearer tokens live
here.  No other module should touch raw crypto directly.

Responsibilities
----------------
1. Secret hashing / verification            (passlib pbkdf2_sha256)
2. JWT creation / validation                (PyJWT / HMAC-SHA256)

The FastAPI guards that consume the token codec live in
``rasta.core.dependencies``.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt as _jwt        # PyJWT
from passlib.hash import pbkdf2_sha256 as _pbkdf2  # pure Python, no binary deps

from rasta.core.config import Settings
from rasta.core.errors import InvalidToken

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – adaptive salted hashing
# ---------------------------------------------------------------------------
# Used uniformly for login passwords and for emailed one-time codes, so a
# leaked otp_email / reset_pwd table is as useless as a leaked users table.
# The work factor comes from Settings.hash_rounds; tests turn it down.
# ---------------------------------------------------------------------------


class SecretHasher:
    """Hash and verify secrets with a fixed, configurable work factor."""

    def __init__(self, rounds: int):
        self._hasher = _pbkdf2.using(rounds=rounds)
        self._dummy_hash: str | None = None

    def hash(self, secret: str) -> str:
        """
        Return a full passlib hash string (``$pbkdf2-sha256$...``).  The salt
        and round count are embedded, so two calls never return the same
        string for the same input.
        """
        return self._hasher.hash(secret)

    def verify(self, secret: str, stored_hash: str) -> bool:
        """
        Constant-time verification.  A malformed or foreign hash string is a
        mismatch, never an exception.
        """
        if not stored_hash:
            return False
        try:
            return self._hasher.verify(secret, stored_hash)
        except (ValueError, TypeError):
            return False

    def verify_dummy(self, secret: str) -> bool:
        """
        Spend the same work as a real verify against a throwaway hash, so a
        login for an unknown account takes as long as a wrong password.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self._hasher.hash("rasta-dummy-secret")
        self._hasher.verify(secret, self._dummy_hash)
        return False


def build_hasher(settings: Settings) -> SecretHasher:
    return SecretHasher(settings.hash_rounds)


# ---------------------------------------------------------------------------
# 2.  JWT – access tokens
# ---------------------------------------------------------------------------

# Any HMAC variant is acceptable on the way in; we only ever sign with HS256.
_HMAC_ALGORITHMS = ["HS256", "HS384", "HS512"]
_SIGNING_ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ("email", "userId")


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    email: str


class TokenCodec:
    """Sign and validate the bearer tokens handed out at login and signup."""

    def __init__(self, secret: str, expiry_seconds: int):
        self._secret = secret
        self._expiry = timedelta(seconds=expiry_seconds)

    def generate_token(self, email: str, user_id: str, now: datetime | None = None) -> str:
        """
        Sign a JWT with claims ``{email, userId, exp}``.

        *now* is only overridden by tests that need an already-expired token.
        """
        issued = now or datetime.now(timezone.utc)
        payload = {
            "email": email,
            "userId": str(user_id),
            "exp": issued + self._expiry,
        }
        return _jwt.encode(payload, self._secret, algorithm=_SIGNING_ALGORITHM)

    def validate_token(self, token: str) -> TokenClaims:
        """
        Verify signature, algorithm family and expiry, then check the claims.
        Raises :class:`InvalidToken` on any failure; there is no partial
        success.
        """
        if not token:
            raise InvalidToken()
        try:
            payload = _jwt.decode(
                token,
                self._secret,
                algorithms=_HMAC_ALGORITHMS,
                options={"require": ["exp"]},
            )
        except _jwt.PyJWTError as exc:
            raise InvalidToken() from exc

        for claim in _REQUIRED_CLAIMS:
            if not isinstance(payload.get(claim), str):
                raise InvalidToken()
        return TokenClaims(user_id=payload["userId"], email=payload["email"])


def build_token_codec(settings: Settings) -> TokenCodec:
    return TokenCodec(settings.jwt_secret, settings.jwt_expiry)
