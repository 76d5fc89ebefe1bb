# ---------------------------------------------------------------------------
# Project : rasta
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Admin endpoints – the user directory and account lifecycle.

Every endpoint in this router is guarded by ``require_admin``.  A request
that carries a valid JWT but belongs to a non-Admin account will receive
403 before any business logic runs.
"""

import uuid

from fastapi import APIRouter, Depends, Query

from rasta.admin.schemas import UserCount, UserPage
from rasta.auth.schemas import SuccessResponse, UserPrivate
from rasta.core.dependencies import get_user_service, require_admin
from rasta.core.errors import Forbidden
from rasta.models.user import User
from rasta.services.user_service import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT, UserService

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# GET /admin/users  – paginated directory
# ---------------------------------------------------------------------------


@router.get("/users", response_model=SuccessResponse)
def list_users(
    limit: int = Query(DEFAULT_PAGE_LIMIT),
    page: int = Query(DEFAULT_PAGE),
    admin: User = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    """Non-positive ``limit`` / ``page`` fall back to the defaults."""
    limit = limit if limit > 0 else DEFAULT_PAGE_LIMIT
    page = page if page > 0 else DEFAULT_PAGE
    rows = users.list_users(limit=limit, page=page)
    return SuccessResponse(
        data=UserPage(users=[UserPrivate.from_user(u) for u in rows], limit=limit, page=page)
    )


# ---------------------------------------------------------------------------
# GET /admin/users/count
# ---------------------------------------------------------------------------


@router.get("/users/count", response_model=SuccessResponse)
def count_users(
    admin: User = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    return SuccessResponse(data=UserCount(user_count=users.count_users()))


# ---------------------------------------------------------------------------
# GET /admin/users/{id}
# ---------------------------------------------------------------------------


@router.get("/users/{user_id}", response_model=SuccessResponse)
def get_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    return SuccessResponse(data=UserPrivate.from_user(users.find_by_id(user_id, with_credentials=True)))


# ---------------------------------------------------------------------------
# PUT /admin/users/{id}/disable  – block logins for an account
# ---------------------------------------------------------------------------


@router.put("/users/{user_id}/disable", response_model=SuccessResponse)
def disable_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    """
    Set ``is_disabled``.  The user can no longer log in.

    Guard: an admin cannot disable their own account.
    """
    if user_id == admin.id:
        raise Forbidden("cannot disable yourself")
    users.set_disabled(user_id, True)
    return SuccessResponse(data={"message": "user disabled"})


# ---------------------------------------------------------------------------
# PUT /admin/users/{id}/enable  – re-activate a disabled account
# ---------------------------------------------------------------------------


@router.put("/users/{user_id}/enable", response_model=SuccessResponse)
def enable_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    users.set_disabled(user_id, False)
    return SuccessResponse(data={"message": "user enabled"})


# ---------------------------------------------------------------------------
# DELETE /admin/users/{id}
# ---------------------------------------------------------------------------


@router.delete("/users/{user_id}", response_model=SuccessResponse)
def delete_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    """Delete the account; its TOTP enrollment and pending codes go with it."""
    if user_id == admin.id:
        raise Forbidden("cannot delete yourself")
    users.delete(user_id)
    return SuccessResponse(data={"message": "user deleted"})
