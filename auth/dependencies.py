"""
auth/dependencies.py -- FastAPI Depends() guards for protected routes.

Two stages, composed through Depends:
  get_current_user() -- reads the Authorization header, verifies the access
      token and loads the caller's record. Raises MissingTokenError (401) when
      no token is sent, InvalidTokenError (400) when it does not verify or the
      account is gone or inactive.
  require_admin()    -- depends on get_current_user(), so it can never run on an
      unauthenticated request. Raises AuthorizationError (403) unless the
      caller's stored role is admin.

The role is read from the store, not from the token, so a demotion takes
effect on the next request rather than when the token expires.

Layer rule: auth/dependencies.py may import from fastapi (Depends/Request)
because it is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, Request

from auth.models import User
from auth.service import AccountService
from core.errors import AuthorizationError, InvalidTokenError, MissingTokenError


def get_account_service(request: Request) -> AccountService:
    return request.app.state.accounts


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "").strip()
    if not header:
        return None
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer":
        return credentials.strip() or None
    # Older clients send the bare token without a scheme.
    return header


def get_current_user(request: Request, accounts: AccountService = Depends(get_account_service)) -> User:
    """Require a valid access token.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    token = _bearer_token(request)
    if token is None:
        raise MissingTokenError("Access denied. No token provided.")
    claims = accounts.tokens.verify_access_token(token)
    user = accounts.store.get_by_id(claims["sub"], include_password=False)
    if user is None or not user.is_active:
        raise InvalidTokenError("Invalid token.")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Require the admin role on top of authentication."""
    if not user.is_admin:
        raise AuthorizationError("Access denied. You do not have admin privileges.")
    return user
