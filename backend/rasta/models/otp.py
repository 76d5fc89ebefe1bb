"""
One-time email code tables.

``otp_email`` backs signup verification and ``reset_pwd`` backs password
reset.  They share a shape but are separate tables, so a code issued for one
flow can never be redeemed in the other.  ``user_id`` is unique: a user has
at most one outstanding code per flow.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import declared_attr, relationship

from rasta.database import Base


class _OneTimeCodeMixin:
    id = Column(Integer, primary_key=True, autoincrement=True)
    # pbkdf2 hash of the emailed code – the plaintext is never stored
    code_hash = Column(String(256), nullable=False)
    expiry = Column(DateTime(timezone=True), nullable=False)

    @declared_attr
    def user_id(cls):
        return Column(
            Uuid,
            ForeignKey("users.id", ondelete="CASCADE"),
            unique=True,
            nullable=False,
        )


class OtpEmail(_OneTimeCodeMixin, Base):
    __tablename__ = "otp_email"

    user = relationship("User", back_populates="otp_email")


class ResetPwd(_OneTimeCodeMixin, Base):
    __tablename__ = "reset_pwd"

    user = relationship("User", back_populates="reset_pwd")
