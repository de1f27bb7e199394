"""
auth/tokens.py -- JWT, password hashing, and API key utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       user_id, username (sub), iat and exp. Verification returns None on any
       failure -- route layer turns that into a 401.

  Max age: independent of exp, a token is accepted only while
       iat + TOKEN_EXPIRE_SECONDS is in the future. verify_access_token() caches
       the decoded claims until the earliest of exp, the max age, and the
       cache TTL, so a cache hit can never outlive the token.

  Passwords and API keys: bcrypt with work factor 10. API keys are hashed the
       same way as passwords; the plaintext leaves the process exactly once,
       in the rotation response. The _DUMMY_HASH constant enables timing
       equalization when a username does not exist [C1].

  API keys: secrets.token_hex(32) gives 256 bits of entropy.

  SECRET_KEY: sourced from core.config.get_settings(), which validates the key
       at startup [M6].

Layer rule: no imports from api/, acl/, files/, or projects/. Import from core/
is allowed -- core/ is the kernel and has no reverse dependencies. The token
cache is passed in by the caller rather than imported.
"""

from __future__ import annotations

import logging
import secrets
import time
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings
from core.errors import SecretTooLongError

if TYPE_CHECKING:
    from cache.store import TokenCache

logger = logging.getLogger("boilerplate.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton [M6]
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"
_BCRYPT_ROUNDS = 10
MAX_SECRET_BYTES = 72  # bcrypt input limit

# ---------------------------------------------------------------------------
# Hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_secret(plain: str) -> str:
    """Return a salted bcrypt hash of a password or API key.

    bcrypt accepts at most 72 bytes of input. Longer secrets raise
    SecretTooLongError rather than being truncated. The API models enforce the
    same byte limit; API keys are 64 hex characters.
    """
    if len(plain.encode("utf-8")) > MAX_SECRET_BYTES:
        raise SecretTooLongError()
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=_BCRYPT_ROUNDS)).decode("utf-8")


def verify_secret(plain: str, hashed: str) -> bool:
    """Return True if the plaintext matches the bcrypt hash.

    A malformed stored hash or over-long input counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# Timing equalization dummy hash [C1]. Computed once at module load so the
# first login attempt is not measurably slower than subsequent ones.
_DUMMY_HASH: str = hash_secret("boilerplate_timing_dummy")


def equalize_timing(plain: str) -> None:
    """Burn one bcrypt comparison so a missing user costs the same as a wrong password."""
    verify_secret(plain, _DUMMY_HASH)


def generate_api_key() -> str:
    """Generate a new API key: 32 random bytes as 64 hex characters."""
    return secrets.token_hex(32)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: int, username: str, expire_seconds: int = 0) -> str:
    """Encode a signed JWT with user identity and expiry.

    Args:
        user_id:        Numeric user ID stored in the DB.
        username:       Username stored as the JWT subject claim.
        expire_seconds: Token lifetime. If 0 (default), uses
                        Settings.token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    issued = datetime.now(timezone.utc)
    payload = {
        "sub": username,
        "user_id": user_id,
        "iat": issued,
        "exp": issued + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and verify a JWT signature and exp. Returns the payload or None."""
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if "user_id" not in payload or "iat" not in payload:
        return None
    return payload


def verify_access_token(token: str, cache: TokenCache) -> dict | None:
    """Return the claims of a valid bearer token, consulting the cache first.

    On a miss: full signature verification, then the absolute max-age check on
    iat. Only a token still inside its window is cached, and the entry expires
    at the earliest of exp, the max age, and the cache TTL.
    """
    cached = cache.get(token)
    if cached is not None:
        return cached

    payload = decode_access_token(token)
    if payload is None:
        return None

    issued_at = payload["iat"]
    if not isinstance(issued_at, (int, float)):
        return None
    now = time.time()
    max_age_left = issued_at + _settings.token_expire_seconds - now
    if max_age_left <= 0:
        logger.debug("Rejected token past max age (user_id=%s)", payload["user_id"])
        return None

    # The entry must expire no later than exp, the max age, or the cache TTL.
    ttl = min(max_age_left, cache.ttl)
    exp = payload.get("exp")
    if isinstance(exp, (int, float)):
        ttl = min(ttl, exp - now)
    if ttl > 0:
        cache.set(token, payload, ttl=ttl)
    return payload
