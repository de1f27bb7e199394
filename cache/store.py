"""
cache/store.py -- In-memory TTL cache for verified access tokens.

Skips repeated signature verification for tokens that were already checked
and are still inside their lifetime. Entries are keyed by the raw token and
hold the decoded claims. Process-local: each worker keeps its own cache, and
losing it only costs one extra verification per token.

Usage:
    cache = TokenCache()
    claims = cache.get(token)            # returns dict or None
    cache.set(token, claims, ttl=3600)   # per-entry TTL, defaults to cache TTL
    cache.purge_expired()                # call periodically to trim old entries
"""

import time
from typing import Optional

_DEFAULT_TTL = 60 * 60 * 24  # 24 hours in seconds


class TokenCache:
    def __init__(self, ttl: float = _DEFAULT_TTL) -> None:
        self.ttl = ttl
        self._entries: dict[str, tuple[dict, float]] = {}

    def get(self, token: str) -> Optional[dict]:
        """Return cached claims for token if they exist and haven't expired."""
        entry = self._entries.get(token)
        if entry is None:
            return None
        claims, expires_at = entry
        if time.monotonic() >= expires_at:
            self._delete(token)
            return None
        return claims

    def set(self, token: str, claims: dict, ttl: Optional[float] = None) -> None:
        """Store claims for token, replacing any existing entry."""
        lifetime = self.ttl if ttl is None else ttl
        self._entries[token] = (claims, time.monotonic() + lifetime)

    def purge_expired(self) -> int:
        """Delete all entries past their expiry. Returns number of entries removed."""
        now = time.monotonic()
        stale = [token for token, (_, expires_at) in self._entries.items() if now >= expires_at]
        for token in stale:
            self._delete(token)
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def _delete(self, token: str) -> None:
        self._entries.pop(token, None)

    def __len__(self) -> int:
        return len(self._entries)
