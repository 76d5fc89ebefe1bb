"""Unit tests for the TOTP engine."""

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import pyotp

from rasta.core.totp import TotpEngine


class TestTotpEngine:
    def test_fresh_secret_validates_current_code(self, totp_engine) -> None:
        secret = totp_engine.create_secret("john@example.com")
        assert totp_engine.validate_code(pyotp.TOTP(secret).now(), secret)

    def test_secrets_are_random_base32(self, totp_engine) -> None:
        first = totp_engine.create_secret("a@b.co")
        second = totp_engine.create_secret("a@b.co")
        assert first != second
        assert set(first) <= set("ABCDEFGHIJKLMNOPQRSTUVWXYZ234567")

    def test_code_from_other_secret_rejected(self, totp_engine) -> None:
        secret = totp_engine.create_secret("a@b.co")
        other = totp_engine.create_secret("a@b.co")
        now = datetime.now(timezone.utc)
        code = pyotp.TOTP(other).at(now)
        if code == pyotp.TOTP(secret).at(now):
            return  # one-in-a-million collision
        assert not totp_engine.validate_code(code, secret, for_time=now)

    def test_adjacent_step_tolerated(self, totp_engine) -> None:
        secret = totp_engine.create_secret("a@b.co")
        now = datetime.now(timezone.utc)
        previous = pyotp.TOTP(secret).at(now - timedelta(seconds=30))
        assert totp_engine.validate_code(previous, secret, for_time=now)

    def test_step_outside_tolerance_rejected(self, totp_engine) -> None:
        secret = totp_engine.create_secret("a@b.co")
        now = datetime.now(timezone.utc)
        totp = pyotp.TOTP(secret)
        stale = totp.at(now - timedelta(minutes=5))
        if stale in {totp.at(now + timedelta(seconds=d)) for d in (-30, 0, 30)}:
            return
        assert not totp_engine.validate_code(stale, secret, for_time=now)

    def test_malformed_input_rejected(self, totp_engine) -> None:
        secret = totp_engine.create_secret("a@b.co")
        assert not totp_engine.validate_code("", secret)
        assert not totp_engine.validate_code("12345", secret)
        assert not totp_engine.validate_code("abcdef", secret)
        assert not totp_engine.validate_code("123456", "not base32!")

    def test_provisioning_uri(self) -> None:
        engine = TotpEngine("Rasta")
        uri = engine.provisioning_uri("john@example.com", "JBSWY3DPEHPK3PXP")
        parsed = urlparse(uri)
        assert parsed.scheme == "otpauth"
        assert parsed.netloc == "totp"
        query = parse_qs(parsed.query)
        assert query["secret"] == ["JBSWY3DPEHPK3PXP"]
        assert query["issuer"] == ["Rasta"]
        assert "john%40example.com" in parsed.path or "john@example.com" in parsed.path
