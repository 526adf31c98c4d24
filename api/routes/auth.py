"""
api/routes/auth.py -- Registration, login, and identity endpoints.

Routes:
  POST /auth/register  -- create an account; 201 with the user (no password)
  POST /auth/login     -- exchange email + password for a bearer token
  GET  /auth/me        -- current user (requires auth)

Security:
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_email() + verify().
  Wrong email and wrong password return the same "bad_credentials" error.
  Cache-Control: no-store on every login response, success or failure.
  A duplicate email during registration is an expected outcome (400
  email_taken), including when two requests race for the same address.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import LoginRequest, LoginResponse, RegisterRequest, UserResponse
from auth.dependencies import require_principal
from auth.models import Principal
from auth.passwords import PasswordHasher
from auth.service import authenticate_user, register_user
from auth.store import UserStore
from auth.tokens import TokenService
from core.errors import AuthenticationError, NotFoundError

# Auth policy:
# - POST /auth/register: public
# - POST /auth/login:    public
# - GET  /auth/me:       requires auth (require_principal)
router = APIRouter()


@router.post("/auth/register", response_model=UserResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> UserResponse:
    """Create a new account.

    Errors (mapped by the TodoVaultError handler):
      DuplicateEmailError -> 400 email_taken
      HashingError / StoreError -> 500
    """
    user_store: UserStore = request.app.state.user_store
    hasher: PasswordHasher = request.app.state.hasher
    user = register_user(user_store, hasher, body.email, body.password)
    return UserResponse.from_user(user)


@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return a signed access token."""
    user_store: UserStore = request.app.state.user_store
    hasher: PasswordHasher = request.app.state.hasher
    tokens: TokenService = request.app.state.token_service

    # BadCredentialsError propagates; the handler renders it as 401 with no-store.
    user = authenticate_user(user_store, hasher, body.email, body.password)
    issued = tokens.issue(user)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            access_token=issued.token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=issued.expires_in,
            expires_at=issued.expires_at,
        ).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/me", response_model=UserResponse)
def me(request: Request, principal: Principal = Depends(require_principal)) -> UserResponse:
    """Return the account behind the presented token.

    A valid token for a user id that no longer resolves is answered as
    unauthenticated rather than 404, since the token names no real identity.
    """
    user_store: UserStore = request.app.state.user_store
    try:
        user = user_store.get_by_id(principal.user_id)
    except NotFoundError as exc:
        raise AuthenticationError(f"token subject {principal.user_id} has no user") from exc
    return UserResponse.from_user(user)
