# ---------------------------------------------------------------------------
# Project : rasta
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
User endpoints: signup, login, email verification, password reset, the
caller's own profile and TOTP enrollment.

Security notes
--------------
* Login returns the *same* error whether the account doesn't exist or the
  password is wrong.  This prevents user-enumeration attacks.
* Wrong, expired and already-used email codes all return the same
  "invalid or expired otp" error.
* update-password verifies the old password before accepting the new one,
  so a stolen (but not yet expired) token alone cannot change the password.

Handlers never build error responses themselves: services raise the domain
errors from ``rasta.core.errors`` and ``main.py`` maps them to statuses.
"""

import uuid

from fastapi import APIRouter, Depends

from rasta.auth.schemas import (
    EmailRequest,
    LoginRequest,
    LoginResponse,
    OAuthCodeRequest,
    OAuthSecretResponse,
    ResetPasswordRequest,
    SignupRequest,
    SuccessResponse,
    UpdatePasswordRequest,
    UpdateProfileRequest,
    UserPrivate,
    UserPublic,
    VerifyEmailRequest,
)
from rasta.core.dependencies import (
    get_auth_service,
    get_current_user,
    get_email_verification_service,
    get_oauth_service,
    get_password_reset_service,
    get_user_service,
)
from rasta.models.user import User
from rasta.services.auth_service import AuthService
from rasta.services.oauth_service import OAuthService
from rasta.services.otp_service import EmailVerificationService, PasswordResetService
from rasta.services.user_service import UserService

router = APIRouter(prefix="/api/v1/users", tags=["users"])


# ---------------------------------------------------------------------------
# POST /users/signup
# ---------------------------------------------------------------------------


@router.post("/signup", response_model=LoginResponse)
def signup(body: SignupRequest, auth: AuthService = Depends(get_auth_service)):
    """Create an unverified account, email its verification code, return a token."""
    result = auth.signup(
        first_name=body.first_name,
        last_name=body.last_name,
        username=body.username,
        email=body.email,
        password=body.password,
        region=body.region,
    )
    return LoginResponse(user=UserPublic.model_validate(result.user), token=result.token)


# ---------------------------------------------------------------------------
# POST /users/login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    """Authenticate and return a signed JWT.  ``otp`` is required once TOTP is on."""
    result = auth.login(body.username, body.password, body.otp)
    return LoginResponse(user=UserPublic.model_validate(result.user), token=result.token)


# ---------------------------------------------------------------------------
# POST /users/otp/resend  ,  POST /users/otp/{id}/verify
# ---------------------------------------------------------------------------


@router.post("/otp/resend", response_model=SuccessResponse)
def resend_otp(
    body: EmailRequest,
    verification: EmailVerificationService = Depends(get_email_verification_service),
):
    user = verification.resend(body.email)
    return SuccessResponse(data={"id": str(user.id), "message": "verification code sent"})


@router.post("/otp/{user_id}/verify", response_model=SuccessResponse)
def verify_email(
    user_id: uuid.UUID,
    body: VerifyEmailRequest,
    verification: EmailVerificationService = Depends(get_email_verification_service),
):
    verification.verify(user_id, body.otp)
    return SuccessResponse(data={"message": "email verified"})


# ---------------------------------------------------------------------------
# POST /users/reset-password  ,  POST /users/reset-password/{id}/verify
# ---------------------------------------------------------------------------


@router.post("/reset-password", response_model=SuccessResponse)
def request_password_reset(
    body: EmailRequest,
    resets: PasswordResetService = Depends(get_password_reset_service),
):
    user = resets.request(body.email)
    return SuccessResponse(data={"id": str(user.id), "message": "reset code sent"})


@router.post("/reset-password/{user_id}/verify", response_model=SuccessResponse)
def reset_password(
    user_id: uuid.UUID,
    body: ResetPasswordRequest,
    resets: PasswordResetService = Depends(get_password_reset_service),
):
    resets.reset(user_id, body.otp, body.new_password1, body.new_password2)
    return SuccessResponse(data={"message": "password reset successfully"})


# ---------------------------------------------------------------------------
# GET /users/me  ,  PATCH /users/me
# ---------------------------------------------------------------------------


@router.get("/me", response_model=SuccessResponse)
def me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's own profile (no secrets)."""
    return SuccessResponse(data=UserPrivate.from_user(current_user))


@router.patch("/me", response_model=SuccessResponse)
def update_me(
    body: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    """Change username and/or region; omitted fields are left alone."""
    if body.username is not None:
        users.update_username(current_user.id, body.username)
    if body.region is not None:
        users.update_region(current_user.id, body.region)
    return SuccessResponse(data=UserPrivate.from_user(users.find_by_id(current_user.id)))


# ---------------------------------------------------------------------------
# PUT /users/update-password
# ---------------------------------------------------------------------------


@router.put("/update-password", response_model=SuccessResponse)
def update_password(
    body: UpdatePasswordRequest,
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    users.update_password(
        current_user.id, body.old_password, body.new_password1, body.new_password2
    )
    return SuccessResponse(data={"message": "password updated successfully"})


# ---------------------------------------------------------------------------
# /users/oauth/*  – TOTP enrollment
# ---------------------------------------------------------------------------


@router.get("/oauth/generate", response_model=SuccessResponse)
def generate_oauth(
    current_user: User = Depends(get_current_user),
    oauth: OAuthService = Depends(get_oauth_service),
):
    """New pending secret plus the otpauth:// URI to render as a QR code."""
    secret, url = oauth.generate_secret(current_user)
    return SuccessResponse(data=OAuthSecretResponse(secret=secret, url=url))


@router.post("/oauth/enable", response_model=SuccessResponse)
def enable_oauth(
    body: OAuthCodeRequest,
    current_user: User = Depends(get_current_user),
    oauth: OAuthService = Depends(get_oauth_service),
):
    oauth.enable(current_user, body.oauth)
    return SuccessResponse(data={"message": "OAuth enabled"})


@router.delete("/oauth/disable", response_model=SuccessResponse)
def disable_oauth(
    body: OAuthCodeRequest,
    current_user: User = Depends(get_current_user),
    oauth: OAuthService = Depends(get_oauth_service),
):
    oauth.disable(current_user, body.oauth)
    return SuccessResponse(data={"message": "OAuth disabled"})


# ---------------------------------------------------------------------------
# GET /users/{username}
# ---------------------------------------------------------------------------
# Declared last so it never shadows the fixed paths above.


@router.get("/{username}", response_model=SuccessResponse)
def find_by_username(
    username: str,
    _: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    return SuccessResponse(data=UserPublic.model_validate(users.find_by_username(username)))
