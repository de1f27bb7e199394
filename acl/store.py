"""
acl/store.py -- Access control service over the acl table.

An ACL entry is the triple (user_id, resource_type, resource_id). Access is
pure existence: if the row is there, the user may act on the resource. There
is no role, permission level, or inheritance.

  grant_access   INSERT; a second identical grant raises IntegrityError
  has_access     bool existence check, never raises for a missing triple
  check_access   raises AccessDeniedError when the triple is missing
  revoke_access  DELETE; raises AclEntryNotFoundError when nothing matched
  revoke_all     DELETE every grant on one resource, returns the row count

Every method takes an optional `conn` so a grant can share a transaction with
the resource it protects. See core/db.py.

Security: all queries use bound parameters. No f-strings in SQL.

Layer rule: imports core/ and acl/ only.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import and_, delete, select
from sqlalchemy.engine import Connection

from acl.models import ResourceType
from core.db import Database
from core.errors import AccessDeniedError, AclEntryNotFoundError
from core.schema import acl as _acl

logger = logging.getLogger("boilerplate.acl")


def _match(user_id: int, resource_type: ResourceType, resource_id: int):
    return and_(
        _acl.c.user_id == user_id,
        _acl.c.resource_type == ResourceType(resource_type).value,
        _acl.c.resource_id == resource_id,
    )


class ACLStore:
    """Repository for ACL entries.

    Usage:
        acl = ACLStore(Database())
        acl.grant_access(1, ResourceType.PROJECT, 10)
        acl.has_access(1, ResourceType.PROJECT, 10)    # True
        acl.check_access(2, ResourceType.PROJECT, 10)  # raises AccessDeniedError
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def grant_access(
        self, user_id: int, resource_type: ResourceType, resource_id: int, conn: Optional[Connection] = None
    ) -> None:
        """Record that user_id may access the resource.

        Raises ValueError for an unknown resource type and
        sqlalchemy.exc.IntegrityError for a duplicate grant or unknown user.
        """
        rtype = ResourceType(resource_type)
        with self.db.scope(conn) as c:
            c.execute(_acl.insert().values(user_id=user_id, resource_type=rtype.value, resource_id=resource_id))
        logger.info("Granted user %d access to %s %d", user_id, rtype.value, resource_id)

    def has_access(
        self, user_id: int, resource_type: ResourceType, resource_id: int, conn: Optional[Connection] = None
    ) -> bool:
        with self.db.scope(conn) as c:
            row = c.execute(select(_acl.c.user_id).where(_match(user_id, resource_type, resource_id))).fetchone()
        return row is not None

    def check_access(
        self, user_id: int, resource_type: ResourceType, resource_id: int, conn: Optional[Connection] = None
    ) -> None:
        """Raise AccessDeniedError unless user_id holds a grant on the resource."""
        if not self.has_access(user_id, resource_type, resource_id, conn):
            rtype = ResourceType(resource_type)
            raise AccessDeniedError(
                f"User {user_id} does not have access to resource {rtype.value} {resource_id}"
            )

    def revoke_access(
        self, user_id: int, resource_type: ResourceType, resource_id: int, conn: Optional[Connection] = None
    ) -> None:
        with self.db.scope(conn) as c:
            result = c.execute(delete(_acl).where(_match(user_id, resource_type, resource_id)))
        if result.rowcount == 0:
            raise AclEntryNotFoundError()
        logger.info("Revoked user %d access to %s %d", user_id, ResourceType(resource_type).value, resource_id)

    def revoke_all(self, resource_type: ResourceType, resource_id: int, conn: Optional[Connection] = None) -> int:
        """Remove every grant on one resource. Returns the number of rows deleted."""
        rtype = ResourceType(resource_type)
        with self.db.scope(conn) as c:
            result = c.execute(
                delete(_acl).where(and_(_acl.c.resource_type == rtype.value, _acl.c.resource_id == resource_id))
            )
        return result.rowcount
