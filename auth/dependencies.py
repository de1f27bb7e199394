"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two auth methods are checked in priority order:
  1. Authorization: Bearer <token> header -- JWTs issued by POST /auth.
  2. X-API-Key: <userId>:<apiKey> header -- scripts and service accounts.

Both methods converge on a SafeUser after successful verification. The full
User record (with hashes) never leaves auth/store.py.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises HTTP 401 if unauthenticated.

Layer rule: no imports from api/, acl/, files/, or projects/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from auth.models import SafeUser
from auth.tokens import verify_access_token
from core.errors import KnownError

logger = logging.getLogger("boilerplate.auth")


def try_get_current_user(request: Request) -> SafeUser | None:
    """Attempt to authenticate the request via Bearer token or API key.

    Returns the authenticated SafeUser on success, None on any failure.
    Never raises -- callers that need a hard 401 should use get_current_user().
    """
    user_store = request.app.state.user_store

    # 1. Authorization: Bearer header
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:]
        payload = verify_access_token(token, request.app.state.token_cache)
        if payload:
            try:
                return user_store.get_safe_by_id(payload["user_id"])
            except KnownError:
                # Valid signature but the user row is gone.
                return None

    # 2. X-API-Key header
    composite_key = request.headers.get("X-API-Key", "")
    if composite_key:
        try:
            user_store.validate_composite_api_key(composite_key)
            user_id = int(composite_key.partition(":")[0])
            return user_store.get_safe_by_id(user_id)
        except KnownError as exc:
            logger.debug("API key rejected: %s", exc.code.value)

    return None


def get_current_user(request: Request) -> SafeUser:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(user: SafeUser = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return user
