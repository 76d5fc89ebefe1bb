"""
Signup and login: the two places where a bearer token is minted.

Login gate, in order:
    1. username/email + password            -> InvalidCredentials
    2. account verified                     -> UserNotVerified
    3. account not disabled                 -> AccountDisabled
    4. TOTP code, only if TOTP is enabled   -> InvalidOAuth
"""

from dataclasses import dataclass

from rasta.core.errors import AccountDisabled, InvalidOAuth, UserNotVerified
from rasta.core.logger import logger
from rasta.core.security import TokenCodec
from rasta.models.user import RegionType, User
from rasta.services.oauth_service import OAuthService
from rasta.services.otp_service import EmailVerificationService
from rasta.services.user_service import UserService


@dataclass
class AuthResult:
    user: User
    token: str


class AuthService:
    def __init__(
        self,
        users: UserService,
        oauth: OAuthService,
        verification: EmailVerificationService,
        codec: TokenCodec,
    ):
        self.users = users
        self.oauth = oauth
        self.verification = verification
        self.codec = codec

    def _issue(self, user: User) -> str:
        return self.codec.generate_token(user.email, str(user.id))

    def signup(
        self,
        first_name: str,
        last_name: str,
        username: str,
        email: str,
        password: str,
        region: RegionType,
    ) -> AuthResult:
        """
        Create an unverified account and email its verification code.  If
        the email cannot be sent the account is kept and the error is raised;
        the user can ask for a new code via resend.
        """
        user = self.users.create(first_name, last_name, username, email, password, region)
        self.verification.generate(user)
        return AuthResult(user=user, token=self._issue(user))

    def login(self, username_or_email: str, password: str, otp: str | None = None) -> AuthResult:
        user = self.users.authenticate(username_or_email, password)

        if not user.is_verified:
            raise UserNotVerified()
        if user.is_disabled:
            logger.warning("Login refused for disabled user %s", user.id)
            raise AccountDisabled()

        if user.oauth_enabled and not self.oauth.validate(user, otp or ""):
            raise InvalidOAuth()

        logger.info("User %s logged in", user.id)
        return AuthResult(user=user, token=self._issue(user))
