"""OAuth ORM model – a user's TOTP enrollment (at most one row per user)."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship

from rasta.database import Base


class OAuth(Base):
    __tablename__ = "oauth"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    # False while the secret is pending confirmation
    enabled = Column(Boolean, nullable=False, default=False)
    # base32 TOTP seed
    secret = Column(String(512), nullable=False)

    user = relationship("User", back_populates="oauth")
