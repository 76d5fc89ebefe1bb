"""Row-level access to the oauth (TOTP enrollment) table."""

import uuid

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from rasta.models.oauth import OAuth
from rasta.repositories.base import upsert_by_user


class OAuthRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: uuid.UUID) -> OAuth | None:
        stmt = (
            select(OAuth)
            .where(OAuth.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def replace(self, user_id: uuid.UUID, secret: str) -> None:
        """Store a new pending (disabled) secret, discarding any previous one."""
        upsert_by_user(self.db, OAuth, user_id, {"secret": secret, "enabled": False})

    def set_enabled(self, user_id: uuid.UUID, enabled: bool) -> int:
        result = self.db.execute(
            update(OAuth).where(OAuth.user_id == user_id).values(enabled=enabled)
        )
        return result.rowcount

    def delete(self, user_id: uuid.UUID) -> int:
        result = self.db.execute(delete(OAuth).where(OAuth.user_id == user_id))
        return result.rowcount
