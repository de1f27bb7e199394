"""
auth/store.py -- User identity service over SQLAlchemy Core.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user /
_row_to_safe_user are the mappers. Route and dependency code never touches
SQL directly.

Safe vs. full reads are separate methods rather than a flag:
  get_safe_by_id / get_safe_by_username  -> SafeUser (secret columns never selected)
  get_full_by_id / get_full_by_username  -> User     (hashes included)
Only credential verification in this module needs the full shape.

Check vs. validate: is_api_composite_key_valid() returns a bool for
conditional logic; validate_composite_api_key() raises for fail-fast guards.
Both share one comparison.

Transactions: every method takes an optional `conn`. See core/db.py.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Plaintext passwords and API keys are never logged or persisted.

Layer rule: no imports from api/, acl/, files/, or projects/.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from auth.models import SafeUser, User
from auth.tokens import equalize_timing, generate_api_key, hash_secret, verify_secret
from core.db import Database, now_iso
from core.errors import AccessDeniedError, UserApiTokenNotValidError, UserCredentialsNotValidError, UserNotFoundError
from core.schema import users as _users

logger = logging.getLogger("boilerplate.auth.store")

_SAFE_COLUMNS = (_users.c.id, _users.c.username, _users.c.created_at)


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore(Database())
        alice = store.create("alice", "pw1")
        key = store.update_api_key(alice.id)
        store.validate_composite_api_key(f"{alice.id}:{key}")
    """

    # Fields a caller may change through update(). api_key is excluded:
    # rotation goes through update_api_key() only.
    _UPDATABLE_FIELDS: set = {"username", "password"}

    def __init__(self, db: Database) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, username: str, password: str, conn: Optional[Connection] = None) -> SafeUser:
        """Insert a new user with a bcrypt-hashed password and return the safe view.

        Raises sqlalchemy.exc.IntegrityError if the username already exists and
        SecretTooLongError if the password exceeds 72 UTF-8 bytes.
        """
        hashed = hash_secret(password)
        with self.db.scope(conn) as c:
            result = c.execute(_users.insert().values(username=username, password=hashed, created_at=now_iso()))
            user_id = result.inserted_primary_key[0]
            user = self._get_safe(_users.c.id == user_id, c)
        logger.info("User %s created (id=%d)", username, user_id)
        return user

    def update(self, user_id: int, conn: Optional[Connection] = None, **fields) -> SafeUser:
        """Update username and/or password. A new password is re-hashed before writing.

        Unknown keys and an empty password raise ValueError. A password over 72
        UTF-8 bytes raises SecretTooLongError.
        Raises UserNotFoundError if no row has this id.
        """
        unknown = set(fields) - self._UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {unknown!r}")
        if "password" in fields:
            if not fields["password"]:
                raise ValueError("password must not be empty")
            fields["password"] = hash_secret(fields["password"])

        with self.db.scope(conn) as c:
            if fields:
                result = c.execute(_users.update().where(_users.c.id == user_id).values(**fields))
                if result.rowcount == 0:
                    raise UserNotFoundError()
            return self._get_safe(_users.c.id == user_id, c)

    def update_api_key(self, user_id: int, conn: Optional[Connection] = None) -> str:
        """Rotate the user's API key and return the new plaintext key.

        Only the bcrypt hash is persisted. The previous key stops working in
        the same UPDATE. If the returned value is lost, rotate again.
        """
        api_key = generate_api_key()
        hashed = hash_secret(api_key)
        with self.db.scope(conn) as c:
            result = c.execute(_users.update().where(_users.c.id == user_id).values(api_key=hashed))
            if result.rowcount == 0:
                raise UserNotFoundError()
        logger.info("API key rotated for user id=%d", user_id)
        return api_key

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_safe_by_id(self, user_id: int, conn: Optional[Connection] = None) -> SafeUser:
        with self.db.scope(conn) as c:
            return self._get_safe(_users.c.id == user_id, c)

    def get_safe_by_username(self, username: str, conn: Optional[Connection] = None) -> SafeUser:
        with self.db.scope(conn) as c:
            return self._get_safe(_users.c.username == username, c)

    def get_full_by_id(self, user_id: int, conn: Optional[Connection] = None) -> User:
        with self.db.scope(conn) as c:
            return self._get_full(_users.c.id == user_id, c)

    def get_full_by_username(self, username: str, conn: Optional[Connection] = None) -> User:
        with self.db.scope(conn) as c:
            return self._get_full(_users.c.username == username, c)

    # ------------------------------------------------------------------
    # Credential checks
    # ------------------------------------------------------------------

    def get_by_credentials(self, username: str, password: str, conn: Optional[Connection] = None) -> SafeUser:
        """Return the safe view if username and password match.

        Raises UserNotFoundError for an unknown username (after a dummy bcrypt
        round [C1]) and UserCredentialsNotValidError for a wrong password.
        """
        try:
            user = self.get_full_by_username(username, conn)
        except UserNotFoundError:
            equalize_timing(password)
            raise
        if not verify_secret(password, user.password):
            raise UserCredentialsNotValidError()
        return SafeUser(id=user.id, username=user.username, created_at=user.created_at)

    def is_api_composite_key_valid(self, composite_key: str, conn: Optional[Connection] = None) -> bool:
        """Check a "<userId>:<apiKey>" credential.

        Splits on the first colon. Raises UserNotFoundError when the id part is
        not a known user, AccessDeniedError when that user has never been given
        an API key. A wrong key is a normal False.
        """
        raw_id, _, api_key = composite_key.partition(":")
        try:
            user_id = int(raw_id)
        except ValueError:
            raise UserNotFoundError() from None

        with self.db.scope(conn) as c:
            row = c.execute(select(_users.c.api_key).where(_users.c.id == user_id)).fetchone()
        if row is None:
            raise UserNotFoundError()
        if not row.api_key:
            raise AccessDeniedError()
        return verify_secret(api_key, row.api_key)

    def validate_composite_api_key(self, composite_key: str, conn: Optional[Connection] = None) -> None:
        """Raise UserApiTokenNotValidError unless the composite key is valid."""
        if not self.is_api_composite_key_valid(composite_key, conn):
            raise UserApiTokenNotValidError()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_safe(self, where, conn: Connection) -> SafeUser:
        row = conn.execute(select(*_SAFE_COLUMNS).where(where)).fetchone()
        if row is None:
            raise UserNotFoundError()
        return _row_to_safe_user(row)

    def _get_full(self, where, conn: Connection) -> User:
        row = conn.execute(_users.select().where(where)).fetchone()
        if row is None:
            raise UserNotFoundError()
        return _row_to_user(row)


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        password=row.password,
        api_key=row.api_key,
        created_at=row.created_at,
    )


def _row_to_safe_user(row) -> SafeUser:
    return SafeUser(id=row.id, username=row.username, created_at=row.created_at)
