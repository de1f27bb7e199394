"""
api/routes/v1/auth.py -- Password login.

Routes:
  POST /api/v1/auth  -- exchange username + password for a bearer JWT

Security:
  [H2] POST /auth is rate-limited per IP (LOGIN_RATE_LIMIT, default 10/minute).
  [C1] UserStore.get_by_credentials() provides timing equalization -- use it,
       never inline get_full_by_username() + verify_secret().
  [M5] Cache-Control: no-store on login responses.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import LoginRequest, LoginResponse
from auth.store import UserStore
from auth.tokens import create_access_token
from core.config import get_settings
from core.errors import UserCredentialsNotValidError, UserNotFoundError

# Auth policy:
# - POST /api/v1/auth: public -- login endpoint must be unauthenticated
router = APIRouter()

_settings = get_settings()


@router.post("/auth", response_model=LoginResponse)
@limiter.limit(_settings.login_rate_limit)  # [H2] BELOW @router: the registered endpoint must be the limited wrapper
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; return a bearer JWT.

    Returns the same generic error for wrong username and wrong password
    ("bad_credentials") to avoid leaking username existence information.
    """
    user_store: UserStore = request.app.state.user_store
    try:
        user = user_store.get_by_credentials(body.username, body.password)
    except (UserNotFoundError, UserCredentialsNotValidError):
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "bad_credentials", "message": "Invalid username or password."}},
        )
        resp.headers["Cache-Control"] = "no-store"  # [M5]
        return resp

    token = create_access_token(user.id, user.username)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            username=user.username,
            token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=_settings.token_expire_seconds,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp
