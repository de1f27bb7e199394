"""
auth/models.py -- Domain dataclasses for identity entities.

Pattern: Data class (pure data container, zero logic). Stores do the work.

Two shapes of the same row:
  User      -- the full record, including the bcrypt hashes. Only credential
               verification code inside auth/ ever holds one.
  SafeUser  -- the projection returned across every trust boundary. It has no
               password or api_key field at all, so serializing it cannot leak
               a secret by accident.

Layer rule: no imports from api/, acl/, cache/, files/, or projects/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """Full user record. password and api_key are bcrypt hashes, never plaintext.

    api_key is None until the user rotates a key for the first time.
    """

    id: int
    username: str
    password: str
    api_key: str | None = None
    created_at: str = ""


@dataclass(frozen=True)
class SafeUser:
    """Read-only user view with all secret fields stripped."""

    id: int
    username: str
    created_at: str = ""
