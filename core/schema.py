"""
core/schema.py -- SQLAlchemy Core table definitions for the credential store.

Three tables share one MetaData so foreign keys resolve and a single
create_all() builds the whole schema:

  users     -- identity; username UNIQUE, api_key UNIQUE (NULL allowed)
  projects  -- owned by exactly one user
  acl       -- (user_id, resource_type, resource_id) composite primary key,
               no surrogate id; rows vanish with their user (ON DELETE CASCADE)

The composite PK is the whole ACL invariant: at most one grant per
(user, resource) pair, enforced by the database rather than by code.

Layer rule: core/ is the kernel. No imports from other project packages.
"""

from sqlalchemy import Column, ForeignKey, Integer, MetaData, PrimaryKeyConstraint, String, Table, Text

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("password", String(60), nullable=False),  # bcrypt hash
    Column("api_key", String(60), unique=True),  # bcrypt hash, NULL until first rotation
    Column("created_at", String(32), nullable=False),
)

projects = Table(
    "projects",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("name", String(255), nullable=False),
    Column("description", Text),
    Column("created_at", String(32), nullable=False),
)

acl = Table(
    "acl",
    metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("resource_type", String(32), nullable=False),
    Column("resource_id", Integer, nullable=False),
    PrimaryKeyConstraint("user_id", "resource_type", "resource_id", name="pk_acl"),
)
