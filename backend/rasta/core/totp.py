"""
TOTP (RFC 6238) helpers for two-factor login.

Secrets are base32 seeds; codes are 6 digits on a 30-second step.  Nothing
here persists anything: the caller stores the secret on the user's OAuth row.
"""

from datetime import datetime

import pyotp

from rasta.core.config import Settings
from rasta.core.logger import logger

TOTP_DIGITS = 6
TOTP_INTERVAL = 30
# One step either side, the usual allowance for clock drift
TOTP_VALID_WINDOW = 1


class TotpEngine:
    def __init__(self, issuer: str):
        self.issuer = issuer

    def create_secret(self, account_label: str) -> str:
        """Fresh random base32 seed for *account_label* (the user's email)."""
        secret = pyotp.random_base32()
        logger.debug("Generated TOTP secret for %s", account_label)
        return secret

    def provisioning_uri(self, account_label: str, secret: str) -> str:
        """``otpauth://totp/<issuer>:<label>?secret=...&issuer=...`` for QR enrollment."""
        return self._totp(secret).provisioning_uri(
            name=account_label, issuer_name=self.issuer
        )

    def validate_code(self, code: str, secret: str, for_time: datetime | None = None) -> bool:
        """
        True only if *code* is a 6-digit string matching *secret* at the
        current step (or an adjacent one).
        """
        if not code or not secret:
            return False
        if len(code) != TOTP_DIGITS or not code.isdigit():
            return False
        try:
            totp = self._totp(secret)
            if for_time is None:
                return totp.verify(code, valid_window=TOTP_VALID_WINDOW)
            return totp.verify(code, for_time=for_time, valid_window=TOTP_VALID_WINDOW)
        except (ValueError, TypeError):
            # binascii.Error (bad base32) is a ValueError subclass
            logger.warning("TOTP validation against a malformed secret")
            return False

    @staticmethod
    def _totp(secret: str) -> pyotp.TOTP:
        return pyotp.TOTP(secret, digits=TOTP_DIGITS, interval=TOTP_INTERVAL)


def build_totp_engine(settings: Settings) -> TotpEngine:
    return TotpEngine(settings.jwt_issuer)
