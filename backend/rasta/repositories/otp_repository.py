"""
Row-level access to the one-time email code tables.

One class serves both ``otp_email`` and ``reset_pwd``; the model is fixed
at construction so a repository can never read the other flow's table.
"""

import uuid
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from rasta.models.otp import OtpEmail, ResetPwd
from rasta.repositories.base import upsert_by_user


class OneTimeCodeRepository:
    def __init__(self, db: Session, model):
        self.db = db
        self.model = model

    def get(self, user_id: uuid.UUID):
        stmt = (
            select(self.model)
            .where(self.model.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def replace(self, user_id: uuid.UUID, code_hash: str, expiry: datetime) -> None:
        upsert_by_user(
            self.db, self.model, user_id, {"code_hash": code_hash, "expiry": expiry}
        )

    def take(self, user_id: uuid.UUID, code_hash: str) -> bool:
        """
        Delete the row only if it still holds *code_hash*.  False means a
        concurrent request consumed or replaced it first.
        """
        result = self.db.execute(
            delete(self.model).where(
                self.model.user_id == user_id,
                self.model.code_hash == code_hash,
            )
        )
        return result.rowcount == 1

    def delete(self, user_id: uuid.UUID) -> int:
        result = self.db.execute(delete(self.model).where(self.model.user_id == user_id))
        return result.rowcount


def email_otp_repository(db: Session) -> OneTimeCodeRepository:
    return OneTimeCodeRepository(db, OtpEmail)


def reset_pwd_repository(db: Session) -> OneTimeCodeRepository:
    return OneTimeCodeRepository(db, ResetPwd)
