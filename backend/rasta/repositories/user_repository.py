"""Row-level access to the users table."""

import uuid

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session, selectinload

from rasta.models.user import User


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def _select(self, with_credentials: bool):
        stmt = select(User)
        if with_credentials:
            stmt = stmt.options(
                selectinload(User.oauth),
                selectinload(User.otp_email),
                selectinload(User.reset_pwd),
            )
        return stmt

    def get_by_id(self, user_id: uuid.UUID, with_credentials: bool = False) -> User | None:
        stmt = self._select(with_credentials).where(User.id == user_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_email(self, email: str, with_credentials: bool = False) -> User | None:
        stmt = self._select(with_credentials).where(User.email == email)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_username(self, username: str) -> User | None:
        stmt = select(User).where(User.username == username)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_username_or_email(self, username: str, email: str) -> User | None:
        stmt = (
            self._select(with_credentials=True)
            .where(or_(User.username == username, User.email == email))
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_page(self, offset: int, limit: int) -> list[User]:
        stmt = (
            self._select(with_credentials=True)
            .order_by(User.created_at, User.username)
            .offset(offset)
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars())

    def count(self) -> int:
        return self.db.execute(select(func.count()).select_from(User)).scalar_one()

    def add(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()
        return user

    def update_fields(self, user_id: uuid.UUID, **values) -> int:
        """UPDATE selected columns of one user; returns the affected row count."""
        result = self.db.execute(
            update(User).where(User.id == user_id).values(**values)
        )
        return result.rowcount

    def mark_verified(self, user_id: uuid.UUID) -> int:
        # Only ever flips false -> true
        result = self.db.execute(
            update(User)
            .where(User.id == user_id, User.is_verified.is_(False))
            .values(is_verified=True)
        )
        return result.rowcount

    def delete(self, user: User) -> None:
        # ORM delete so the one-to-one children go with it
        self.db.delete(user)
        self.db.flush()
