"""
api/routes/admin.py -- Directory-wide user management (admin only).

Routes (mounted under Settings.api_prefix):
  GET    /admin/users        -- list every user
  PUT    /admin/users/{id}   -- update profile fields, role or status
  DELETE /admin/users/{id}   -- permanently remove a user

Every route depends on require_admin, which itself depends on
get_current_user: 401 without a token, 400 with a bad one, 403 for non-admins.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import AdminUserUpdateRequest, MessageResponse, UserEnvelope, UserResponse
from auth.dependencies import get_account_service, require_admin
from auth.models import User
from auth.service import AccountService

router = APIRouter(prefix="/admin")


@router.get("/users", response_model=list[UserResponse])
def list_users(
    current_user: User = Depends(require_admin),
    accounts: AccountService = Depends(get_account_service),
) -> list[UserResponse]:
    return [UserResponse.from_user(u) for u in accounts.list_users()]


@router.put("/users/{user_id}", response_model=UserEnvelope)
def update_user(
    user_id: str,
    body: AdminUserUpdateRequest,
    current_user: User = Depends(require_admin),
    accounts: AccountService = Depends(get_account_service),
) -> UserEnvelope:
    """Update a user. email and password in the body are ignored."""
    updated = accounts.admin_update_user(user_id, body.to_domain())
    return UserEnvelope(message="User updated successfully", user=UserResponse.from_user(updated))


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    current_user: User = Depends(require_admin),
    accounts: AccountService = Depends(get_account_service),
) -> MessageResponse:
    """Delete a user. Succeeds whether or not the id exists."""
    accounts.delete_user(user_id)
    return MessageResponse(message="User deleted successfully")
