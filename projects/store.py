"""
projects/store.py -- SQLAlchemy Core persistence for projects.

Pattern: Repository + Data Mapper, same as auth/store.py.

ProjectStore does not make access decisions. list_for_user() joins through
the acl table so a caller only sees projects it holds a grant on; every other
guard lives in the route layer via ACLStore.check_access().

Usage:
    projects = ProjectStore(db)
    with db.transaction() as conn:
        project = projects.create(Project(user_id=1, name="demo"), conn=conn)
        acl.grant_access(1, ResourceType.PROJECT, project.id, conn=conn)
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import and_, delete, select
from sqlalchemy.engine import Connection

from acl.models import ResourceType
from core.db import Database, now_iso
from core.errors import ProjectNotFoundError
from core.schema import acl as _acl
from core.schema import projects as _projects
from projects.models import Project

logger = logging.getLogger("boilerplate.projects")


class ProjectStore:
    _UPDATABLE_FIELDS: set = {"name", "description"}

    def __init__(self, db: Database) -> None:
        self.db = db

    def create(self, project: Project, conn: Optional[Connection] = None) -> Project:
        """Insert a project and return it with id and created_at filled in."""
        created_at = now_iso()
        with self.db.scope(conn) as c:
            result = c.execute(
                _projects.insert().values(
                    user_id=project.user_id,
                    name=project.name,
                    description=project.description,
                    created_at=created_at,
                )
            )
            project_id = result.inserted_primary_key[0]
        logger.info("Project %d created by user %d", project_id, project.user_id)
        return Project(
            id=project_id,
            user_id=project.user_id,
            name=project.name,
            description=project.description,
            created_at=created_at,
        )

    def get_by_id(self, project_id: int, conn: Optional[Connection] = None) -> Project:
        with self.db.scope(conn) as c:
            row = c.execute(select(_projects).where(_projects.c.id == project_id)).fetchone()
        if row is None:
            raise ProjectNotFoundError()
        return _row_to_project(row)

    def list_for_user(self, user_id: int, conn: Optional[Connection] = None) -> list[Project]:
        """Return every project user_id holds an ACL grant on, oldest first."""
        stmt = (
            select(_projects)
            .join(
                _acl,
                and_(
                    _acl.c.resource_id == _projects.c.id,
                    _acl.c.resource_type == ResourceType.PROJECT.value,
                ),
            )
            .where(_acl.c.user_id == user_id)
            .order_by(_projects.c.id)
        )
        with self.db.scope(conn) as c:
            rows = c.execute(stmt).fetchall()
        return [_row_to_project(r) for r in rows]

    def update(self, project_id: int, conn: Optional[Connection] = None, **fields) -> Project:
        """Update name and/or description. Unknown keys raise ValueError."""
        unknown = set(fields) - self._UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown project fields: {unknown!r}")
        with self.db.scope(conn) as c:
            if fields:
                result = c.execute(_projects.update().where(_projects.c.id == project_id).values(**fields))
                if result.rowcount == 0:
                    raise ProjectNotFoundError()
            row = c.execute(select(_projects).where(_projects.c.id == project_id)).fetchone()
        if row is None:
            raise ProjectNotFoundError()
        return _row_to_project(row)

    def delete(self, project_id: int, conn: Optional[Connection] = None) -> None:
        """Delete the project row. Grants must be revoked by the caller first."""
        with self.db.scope(conn) as c:
            result = c.execute(delete(_projects).where(_projects.c.id == project_id))
        if result.rowcount == 0:
            raise ProjectNotFoundError()
        logger.info("Project %d deleted", project_id)


def _row_to_project(row) -> Project:
    return Project(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        description=row.description,
        created_at=row.created_at,
    )
