"""
api/routes/users.py -- Public account routes and self-service profile routes.

Routes (mounted under Settings.api_prefix, default /api/user):
  POST  /signup          -- register; emails a verification code
  POST  /signin          -- password sign-in; sets the refresh token cookie
  POST  /verify          -- confirm email with the emailed code
  POST  /resend-otp      -- issue a fresh code to an unverified account
  POST  /refresh_token   -- trade the refresh cookie for an access token
  POST  /logout          -- clear the refresh cookie
  GET   /user-infor      -- current user's record (requires auth)
  PATCH /user-infor      -- update own name/address/phone/social links (requires auth)

Handlers are plain def: bcrypt and SMTP block, so FastAPI runs them in its
thread pool. Failures are raised as core.errors exceptions and rendered by the
handler registered in api/main.py.

Security:
  The refresh token travels only in the httpOnly cookie, never in a body.
  Cache-Control: no-store on credential responses.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import (
    AccessTokenResponse,
    MessageResponse,
    ProfileUpdateRequest,
    ResendOtpRequest,
    SignInRequest,
    SignInResponse,
    SignUpRequest,
    SignUpResponse,
    UserEnvelope,
    UserResponse,
    UserSummary,
    VerifyRequest,
)
from auth.dependencies import get_account_service, get_current_user
from auth.models import User
from auth.service import AccountService
from auth.tokens import clear_refresh_cookie, set_refresh_cookie

# Auth policy:
# - signup, signin, verify, resend-otp, logout: public
# - refresh_token: refresh cookie
# - user-infor (GET, PATCH): requires auth (get_current_user)
router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/signup", response_model=SignUpResponse, response_model_exclude_none=True)
def sign_up(body: SignUpRequest, accounts: AccountService = Depends(get_account_service)) -> SignUpResponse:
    user = accounts.sign_up(body.to_domain())
    return SignUpResponse(
        message="User registered successfully. Please check your email for the OTP to verify your account.",
        user=UserSummary(id=user.id, email=user.email),
    )


@router.post("/signin", response_model=SignInResponse)
def sign_in(
    request: Request,
    body: SignInRequest,
    accounts: AccountService = Depends(get_account_service),
) -> JSONResponse:
    """Check credentials; the refresh token is returned only as a cookie.

    An unknown email and a wrong password produce the same 400 so the response
    does not reveal which emails are registered.
    """
    user, refresh_token = accounts.sign_in(body.email, body.password)
    resp = JSONResponse(
        content=SignInResponse(
            message="Sign In successfully!",
            user=UserSummary(id=user.id, name=user.name, email=user.email),
        ).model_dump(),
    )
    set_refresh_cookie(resp, refresh_token, request.app.state.settings)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/verify", response_model=SignInResponse)
def verify_email(body: VerifyRequest, accounts: AccountService = Depends(get_account_service)) -> SignInResponse:
    user = accounts.verify_email(body.email, body.otp)
    return SignInResponse(
        message="Email verified successfully",
        user=UserSummary(id=user.id, email=user.email, name=user.name),
    )


@router.post("/resend-otp", response_model=MessageResponse)
def resend_otp(body: ResendOtpRequest, accounts: AccountService = Depends(get_account_service)) -> MessageResponse:
    accounts.resend_otp(body.email)
    return MessageResponse(message="A new OTP has been sent to your email.")


@router.post("/refresh_token", response_model=AccessTokenResponse)
def refresh_token(request: Request, accounts: AccountService = Depends(get_account_service)) -> JSONResponse:
    settings = request.app.state.settings
    access_token = accounts.refresh_access_token(request.cookies.get(settings.refresh_cookie_name))
    resp = JSONResponse(
        content=AccessTokenResponse(
            access_token=access_token,
            expires_in=accounts.tokens.access_token_lifetime,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request) -> JSONResponse:
    resp = JSONResponse(content={"message": "Logged out."})
    clear_refresh_cookie(resp, request.app.state.settings)
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/user-infor", response_model=UserResponse)
def user_info(
    current_user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
) -> UserResponse:
    return UserResponse.from_user(accounts.get_profile(current_user.id))


@router.patch("/user-infor", response_model=UserEnvelope)
def update_user_info(
    body: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
) -> UserEnvelope:
    updated = accounts.update_profile(current_user.id, body.to_domain())
    return UserEnvelope(message="Profile updated successfully", user=UserResponse.from_user(updated))
