"""
api/routes/v1/users.py -- Registration and self-service profile endpoints.

Routes:
  POST  /api/v1/users             -- register a new account (public)
  GET   /api/v1/users/me          -- current user's safe view
  PATCH /api/v1/users/me          -- change username and/or password
  POST  /api/v1/users/me/api-key  -- rotate the API key; plaintext shown ONCE

A duplicate username raises IntegrityError in the store, which api/main.py
maps to 409 "conflict".
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from api.models import ApiKeyCreatedResponse, ErrorDetail, UserCreate, UserPatch, UserResponse
from auth.dependencies import get_current_user
from auth.models import SafeUser
from auth.store import UserStore

# Auth policy:
# - POST  /api/v1/users:            public -- registration
# - GET   /api/v1/users/me:         requires auth (get_current_user)
# - PATCH /api/v1/users/me:         requires auth (get_current_user)
# - POST  /api/v1/users/me/api-key: requires auth (get_current_user)
router = APIRouter()


@router.post("/users", response_model=UserResponse, status_code=201)
def register(request: Request, body: UserCreate) -> UserResponse:
    """Create a new account. The password is hashed before it reaches the DB."""
    user_store: UserStore = request.app.state.user_store
    user = user_store.create(body.username, body.password)
    return UserResponse.from_safe_user(user)


@router.get("/users/me", response_model=UserResponse)
def me(current_user: SafeUser = Depends(get_current_user)) -> UserResponse:
    """Return the safe view of the authenticated user."""
    return UserResponse.from_safe_user(current_user)


@router.patch("/users/me", response_model=UserResponse)
def update_me(
    request: Request,
    body: UserPatch,
    current_user: SafeUser = Depends(get_current_user),
) -> UserResponse:
    """Change the caller's username and/or password.

    Issued tokens stay valid after a password change until they expire.
    """
    user_store: UserStore = request.app.state.user_store
    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(
            status_code=400,
            detail=ErrorDetail(code="no_changes", message="No fields to update.").model_dump(),
        )
    updated = user_store.update(current_user.id, **updates)
    return UserResponse.from_safe_user(updated)


@router.post("/users/me/api-key", response_model=ApiKeyCreatedResponse, status_code=201)
def rotate_api_key(
    request: Request,
    current_user: SafeUser = Depends(get_current_user),
) -> ApiKeyCreatedResponse:
    """Generate a new API key, replacing any previous one.

    The raw key is returned once and never stored; only its bcrypt hash is
    persisted. Use composite_key as the X-API-Key header value.
    """
    user_store: UserStore = request.app.state.user_store
    api_key = user_store.update_api_key(current_user.id)
    return ApiKeyCreatedResponse(
        user_id=current_user.id,
        api_key=api_key,
        composite_key=f"{current_user.id}:{api_key}",
    )
