"""ORM models.  Importing the package registers every table on Base.metadata."""

from rasta.models.user import AccountType, RegionType, User
from rasta.models.oauth import OAuth
from rasta.models.otp import OtpEmail, ResetPwd

__all__ = ["AccountType", "OAuth", "OtpEmail", "RegionType", "ResetPwd", "User"]
