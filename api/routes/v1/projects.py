"""
api/routes/v1/projects.py -- Project CRUD guarded by the ACL.

Routes:
  POST   /api/v1/projects              -- create; creator is granted access
  GET    /api/v1/projects              -- projects the caller holds a grant on
  GET    /api/v1/projects/{project_id} -- detail
  PATCH  /api/v1/projects/{project_id} -- rename / describe
  DELETE /api/v1/projects/{project_id} -- revoke every grant, then delete

Access: every per-project route resolves the project first (404 if missing),
then calls ACLStore.check_access() (403 without a grant). Ownership alone
grants nothing; only the acl row does.

Atomicity: create+grant and revoke+delete each run inside one
Database.transaction(), so a failure leaves neither half behind.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from acl.models import ResourceType
from acl.store import ACLStore
from api.models import ErrorDetail, ProjectCreate, ProjectPatch, ProjectResponse
from auth.dependencies import get_current_user
from auth.models import SafeUser
from core.db import Database
from projects.models import Project
from projects.store import ProjectStore

# All project routes require authentication. Handlers still take the user
# explicitly because every one of them needs the caller's id.
router = APIRouter(dependencies=[Depends(get_current_user)])


def _guarded_project(request: Request, project_id: int, user: SafeUser) -> Project:
    projects: ProjectStore = request.app.state.project_store
    acl: ACLStore = request.app.state.acl
    project = projects.get_by_id(project_id)
    acl.check_access(user.id, ResourceType.PROJECT, project_id)
    return project


@router.post("/projects", response_model=ProjectResponse, status_code=201)
def create_project(
    request: Request,
    body: ProjectCreate,
    current_user: SafeUser = Depends(get_current_user),
) -> ProjectResponse:
    db: Database = request.app.state.db
    projects: ProjectStore = request.app.state.project_store
    acl: ACLStore = request.app.state.acl
    with db.transaction() as conn:
        project = projects.create(
            Project(user_id=current_user.id, name=body.name, description=body.description),
            conn=conn,
        )
        acl.grant_access(current_user.id, ResourceType.PROJECT, project.id, conn=conn)
    return ProjectResponse.from_project(project)


@router.get("/projects", response_model=list[ProjectResponse])
def list_projects(
    request: Request,
    current_user: SafeUser = Depends(get_current_user),
) -> list[ProjectResponse]:
    projects: ProjectStore = request.app.state.project_store
    return [ProjectResponse.from_project(p) for p in projects.list_for_user(current_user.id)]


@router.get("/projects/{project_id}", response_model=ProjectResponse)
def get_project(
    request: Request,
    project_id: int,
    current_user: SafeUser = Depends(get_current_user),
) -> ProjectResponse:
    return ProjectResponse.from_project(_guarded_project(request, project_id, current_user))


@router.patch("/projects/{project_id}", response_model=ProjectResponse)
def update_project(
    request: Request,
    project_id: int,
    body: ProjectPatch,
    current_user: SafeUser = Depends(get_current_user),
) -> ProjectResponse:
    _guarded_project(request, project_id, current_user)
    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(
            status_code=400,
            detail=ErrorDetail(code="no_changes", message="No fields to update.").model_dump(),
        )
    projects: ProjectStore = request.app.state.project_store
    return ProjectResponse.from_project(projects.update(project_id, **updates))


@router.delete("/projects/{project_id}", status_code=204)
def delete_project(
    request: Request,
    project_id: int,
    current_user: SafeUser = Depends(get_current_user),
) -> Response:
    _guarded_project(request, project_id, current_user)
    db: Database = request.app.state.db
    projects: ProjectStore = request.app.state.project_store
    acl: ACLStore = request.app.state.acl
    with db.transaction() as conn:
        acl.revoke_all(ResourceType.PROJECT, project_id, conn=conn)
        projects.delete(project_id, conn=conn)
    return Response(status_code=204)
