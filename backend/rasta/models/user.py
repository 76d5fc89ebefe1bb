# ---------------------------------------------------------------------------
# Project : rasta
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""User ORM model – the aggregate root for every credential table."""

import enum
import uuid

from sqlalchemy import Boolean, Column, DateTime, Enum, String, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from rasta.database import Base


class AccountType(str, enum.Enum):
    NORMAL = "User"
    SELLER = "Seller"
    ADMIN = "Admin"


class RegionType(str, enum.Enum):
    NORTHERN_AMERICA = "Northern America"
    CENTRAL_AMERICA = "Central America"
    CARIBBEAN = "Caribbean"

    NORTHERN_SOUTH_AMERICA = "Northern South America"
    SOUTHERN_SOUTH_AMERICA = "Southern South America"
    WESTERN_SOUTH_AMERICA = "Western South America"
    EASTERN_SOUTH_AMERICA = "Eastern South America"

    SCANDINAVIA = "Scandinavia"
    SOUTHERN_EUROPE = "Southern Europe"
    WESTERN_EUROPE = "Western Europe"
    EASTERN_EUROPE = "Eastern Europe"
    CENTRAL_EUROPE = "Central Europe"

    MIDDLE_EAST = "Middle East"
    CENTRAL_ASIA = "Central Asia"
    EASTERN_ASIA = "Eastern Asia"
    SOUTHERN_ASIA = "Southern Asia"
    SOUTHEASTERN_ASIA = "Southeastern Asia"
    SIBERIA = "Siberia"

    NORTHERN_AFRICA = "Northern Africa"
    WESTERN_AFRICA = "Western Africa"
    CENTRAL_AFRICA = "Central Africa"
    HORN_OF_AFRICA = "Horn of Africa"
    SOUTHERN_AFRICA = "Southern Africa"

    AUSTRALIA_AND_NEW_ZEALAND = "Australia and New Zealand"
    MELANESIA = "Melanesia"
    MICRONESIA = "Micronesia"
    POLYNESIA = "Polynesia"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name = Column(String(64), nullable=False)
    last_name = Column(String(64), nullable=False)
    # Stored lower-cased; all lookups lower-case the input first
    username = Column(String(64), unique=True, nullable=False, index=True)
    # Local part lower-cased by validators.email_validate before storage
    email = Column(String(128), unique=True, nullable=False, index=True)
    password_hash = Column(String(256), nullable=False)
    is_verified = Column(Boolean, nullable=False, default=False)
    is_disabled = Column(Boolean, nullable=False, default=False)
    account = Column(
        Enum(AccountType, name="account_type", values_callable=_enum_values),
        nullable=False,
        default=AccountType.NORMAL,
    )
    region = Column(
        Enum(RegionType, name="region_type", values_callable=_enum_values, length=32),
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # One-to-one children; deleting the user deletes them too
    oauth = relationship(
        "OAuth", uselist=False, back_populates="user",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    otp_email = relationship(
        "OtpEmail", uselist=False, back_populates="user",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    reset_pwd = relationship(
        "ResetPwd", uselist=False, back_populates="user",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    @property
    def oauth_enabled(self) -> bool:
        return bool(self.oauth and self.oauth.enabled)

    @property
    def is_admin(self) -> bool:
        return self.account == AccountType.ADMIN
