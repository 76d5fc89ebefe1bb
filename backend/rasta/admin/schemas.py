# ---------------------------------------------------------------------------
# Project : rasta
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Pydantic response models for the admin endpoints."""

from typing import List

from pydantic import BaseModel

from rasta.auth.schemas import UserPrivate


class UserPage(BaseModel):
    users: List[UserPrivate]
    limit: int
    page: int


class UserCount(BaseModel):
    user_count: int
