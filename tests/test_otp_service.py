"""
Tests for the emailed one-time code lifecycle (verification and reset).
"""

import uuid
from datetime import datetime, timedelta, timezone
from unittest import mock

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError

from rasta.core.email import RESET_PASSWORD_TEMPLATE, VERIFY_EMAIL_TEMPLATE
from rasta.core.errors import (
    EmailDispatchError,
    InternalError,
    InvalidOrExpiredOtp,
    InvalidRequestBody,
    InvalidUserId,
    PasswordsNotMatch,
    PasswordTooWeak,
)
from rasta.models.otp import OtpEmail, ResetPwd
from rasta.models.user import User
from rasta.services.otp_service import (
    OTP_CHARSET,
    EmailVerificationService,
    PasswordResetService,
    generate_otp_code,
)

from conftest import create_user


@pytest.fixture
def verification(db, settings, hasher, email_sender):
    return EmailVerificationService(db, settings, hasher, email_sender)


@pytest.fixture
def resets(db, settings, hasher, email_sender):
    return PasswordResetService(db, settings, hasher, email_sender)


def _rows(db, model) -> int:
    return db.execute(select(func.count()).select_from(model)).scalar_one()


def _expire(db, model, user_id) -> None:
    past = datetime.now(timezone.utc) - timedelta(seconds=1)
    db.execute(update(model).where(model.user_id == user_id).values(expiry=past))
    db.commit()


class TestCodeGeneration:
    def test_format(self) -> None:
        for _ in range(50):
            code = generate_otp_code()
            assert len(code) == 8
            assert set(code) <= set(OTP_CHARSET)

    def test_charset_is_digits_and_uppercase(self) -> None:
        assert OTP_CHARSET == "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


class TestEmailVerification:
    def test_generate_stores_only_a_hash(self, db, hasher, verification, email_sender) -> None:
        user = create_user(db, hasher, verified=False)
        verification.generate(user)

        code = email_sender.last_code(user.email)
        row = db.execute(select(OtpEmail).where(OtpEmail.user_id == user.id)).scalar_one()
        assert row.code_hash != code
        assert hasher.verify(code, row.code_hash)

        message = email_sender.sent[-1]
        assert message["template"] == VERIFY_EMAIL_TEMPLATE
        assert message["data"]["first_name"] == "John"
        assert message["data"]["issuer_name"] == "RastaTest"

    def test_consume_exactly_once(self, db, hasher, verification, email_sender) -> None:
        user = create_user(db, hasher, verified=False)
        verification.generate(user)
        code = email_sender.last_code()

        verification.verify(user.id, code)

        db.expire_all()
        assert db.get(User, user.id).is_verified is True
        assert _rows(db, OtpEmail) == 0
        # Second redemption: the account is verified now, so the lookup fails first
        with pytest.raises(InvalidUserId):
            verification.verify(user.id, code)

    def test_consume_twice_at_protocol_level(self, db, hasher, verification, email_sender) -> None:
        user = create_user(db, hasher, verified=False)
        verification.generate(user)
        code = email_sender.last_code()

        verification.consume(user.id, code, lambda: None)
        with pytest.raises(InvalidOrExpiredOtp):
            verification.consume(user.id, code, lambda: None)

    def test_wrong_code_rejected_and_row_kept(self, db, hasher, verification, email_sender) -> None:
        user = create_user(db, hasher, verified=False)
        verification.generate(user)

        with pytest.raises(InvalidOrExpiredOtp):
            verification.verify(user.id, "WRONG123")

        db.expire_all()
        assert db.get(User, user.id).is_verified is False
        assert _rows(db, OtpEmail) == 1

    def test_expired_code_same_error_as_wrong_code(self, db, hasher, verification, email_sender) -> None:
        user = create_user(db, hasher, verified=False)
        verification.generate(user)
        code = email_sender.last_code()
        _expire(db, OtpEmail, user.id)

        with pytest.raises(InvalidOrExpiredOtp) as expired:
            verification.verify(user.id, code)
        with pytest.raises(InvalidOrExpiredOtp) as wrong:
            verification.verify(user.id, "WRONG123")
        assert expired.value.message == wrong.value.message == "invalid or expired otp"

    def test_no_outstanding_code(self, db, hasher, verification) -> None:
        user = create_user(db, hasher, verified=False)
        with pytest.raises(InvalidOrExpiredOtp):
            verification.verify(user.id, "ABCD1234")

    def test_regenerate_replaces_previous_code(self, db, hasher, verification, email_sender) -> None:
        user = create_user(db, hasher, verified=False)
        verification.generate(user)
        first = email_sender.last_code()
        verification.generate(user)
        second = email_sender.last_code()

        assert _rows(db, OtpEmail) == 1
        if first != second:
            with pytest.raises(InvalidOrExpiredOtp):
                verification.verify(user.id, first)
        verification.verify(user.id, second)

    def test_send_failure_discards_code(self, db, hasher, verification, email_sender) -> None:
        user = create_user(db, hasher, verified=False)
        email_sender.fail = True

        with pytest.raises(EmailDispatchError):
            verification.generate(user)
        assert _rows(db, OtpEmail) == 0

    def test_store_failure_is_internal_error(self, db, hasher, verification, email_sender) -> None:
        user = create_user(db, hasher, verified=False)

        with mock.patch.object(
            verification.codes, "replace", side_effect=OperationalError("INSERT", {}, Exception("locked"))
        ):
            with pytest.raises(InternalError):
                verification.generate(user)
        assert email_sender.sent == []
        assert _rows(db, OtpEmail) == 0

    def test_resend(self, db, hasher, verification, email_sender) -> None:
        user = create_user(db, hasher, email="Jane@example.com", username="jane", verified=False)
        verification.resend("JANE@example.com")
        assert email_sender.sent[-1]["recipient"] == user.email

    def test_resend_rejects_verified_unknown_and_malformed(self, db, hasher, verification) -> None:
        create_user(db, hasher, verified=True)
        with pytest.raises(InvalidUserId):
            verification.resend("john@example.com")
        with pytest.raises(InvalidUserId):
            verification.resend("nobody@example.com")
        with pytest.raises(InvalidRequestBody):
            verification.resend("not-an-email")


class TestPasswordReset:
    def test_reset_rotates_password_only(self, db, hasher, resets, email_sender) -> None:
        user = create_user(db, hasher, verified=True)
        resets.request(user.email)
        assert email_sender.sent[-1]["template"] == RESET_PASSWORD_TEMPLATE

        resets.reset(user.id, email_sender.last_code(), "N3w-passw0rd", "N3w-passw0rd")

        db.expire_all()
        stored = db.get(User, user.id)
        assert hasher.verify("N3w-passw0rd", stored.password_hash)
        assert stored.is_verified is True
        assert _rows(db, ResetPwd) == 0

    def test_reset_code_single_use(self, db, hasher, resets, email_sender) -> None:
        user = create_user(db, hasher)
        resets.request(user.email)
        code = email_sender.last_code()
        resets.reset(user.id, code, "N3w-passw0rd", "N3w-passw0rd")
        with pytest.raises(InvalidOrExpiredOtp):
            resets.reset(user.id, code, "An0ther-pass", "An0ther-pass")

    def test_password_checks_run_first(self, db, hasher, resets, email_sender) -> None:
        user = create_user(db, hasher)
        resets.request(user.email)
        code = email_sender.last_code()

        with pytest.raises(PasswordsNotMatch):
            resets.reset(user.id, code, "N3w-passw0rd", "different-1!")
        with pytest.raises(PasswordTooWeak):
            resets.reset(user.id, code, "weak", "weak")
        # Code survives rejected attempts
        assert _rows(db, ResetPwd) == 1

    def test_wrong_code_skips_password_hashing(self, db, hasher, resets, email_sender) -> None:
        user = create_user(db, hasher)
        resets.request(user.email)
        code = email_sender.last_code()
        wrong = "0" * len(code) if code != "0" * len(code) else "1" * len(code)

        with mock.patch.object(hasher, "hash", wraps=hasher.hash) as spy:
            with pytest.raises(InvalidOrExpiredOtp):
                resets.reset(user.id, wrong, "N3w-passw0rd", "N3w-passw0rd")
            spy.assert_not_called()

            resets.reset(user.id, code, "N3w-passw0rd", "N3w-passw0rd")
            spy.assert_called_once_with("N3w-passw0rd")

    def test_flows_do_not_cross(self, db, hasher, verification, resets, email_sender) -> None:
        user = create_user(db, hasher, verified=False)
        verification.generate(user)
        verify_code = email_sender.last_code()

        with pytest.raises(InvalidOrExpiredOtp):
            resets.reset(user.id, verify_code, "N3w-passw0rd", "N3w-passw0rd")

        resets.request(user.email)
        reset_code = email_sender.last_code()
        if reset_code != verify_code:
            with pytest.raises(InvalidOrExpiredOtp):
                verification.verify(user.id, reset_code)

    def test_expired_reset_code(self, db, hasher, resets, email_sender) -> None:
        user = create_user(db, hasher)
        resets.request(user.email)
        code = email_sender.last_code()
        _expire(db, ResetPwd, user.id)
        with pytest.raises(InvalidOrExpiredOtp):
            resets.reset(user.id, code, "N3w-passw0rd", "N3w-passw0rd")

    def test_request_for_unknown_email(self, resets) -> None:
        with pytest.raises(InvalidRequestBody):
            resets.request("ghost@example.com")

    def test_reset_for_unknown_user(self, resets) -> None:
        with pytest.raises(InvalidUserId):
            resets.reset(uuid.uuid4(), "ABCD1234", "N3w-passw0rd", "N3w-passw0rd")
