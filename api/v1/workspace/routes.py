from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from core.db.dependencies import get_db
from core.responses import api_response
from api.v1.auth.utils import get_current_user

from . import services
from .schemas import (
    MemberAdd,
    MemberListOut,
    MemberPermissionUpdate,
    MembershipOut,
    WorkspaceCreate,
    WorkspaceOut,
    WorkspaceUpdate,
)

workspace_router = APIRouter(prefix="/workspaces", tags=["Workspaces"])
members_router = APIRouter(prefix="/workspaces/{workspace_id}", tags=["Workspace Members"])


### WORKSPACE ROUTES ###

@workspace_router.post("", status_code=status.HTTP_201_CREATED)
def create_workspace(
    request: Request,
    data: WorkspaceCreate,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user),
):
    workspace = services.create_workspace(db, current_user_id, data.name)
    return api_response(request, 201, "Workspace created successfully", WorkspaceOut.model_validate(workspace))


@workspace_router.get("")
def list_user_workspaces(
    request: Request,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user),
):
    workspaces = services.get_user_workspaces(db, current_user_id)
    return api_response(request, 200, "Successfully retrieved workspaces", {"workspaces": workspaces})


# Declared before /{workspace_id} so the literal path wins
@workspace_router.get("/current-workspace")
def current_workspace(
    request: Request,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user),
):
    workspace = services.get_current_workspace(db, current_user_id)
    return api_response(request, 200, "Successfully retrieved current workspace", WorkspaceOut.model_validate(workspace))


@workspace_router.get("/{workspace_id}")
def get_workspace(
    workspace_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user),
):
    workspace = services.get_workspace_by_id(db, current_user_id, workspace_id)
    return api_response(request, 200, "Successfully retrieved workspace", workspace)


@workspace_router.patch("/{workspace_id}")
def update_workspace(
    workspace_id: str,
    data: WorkspaceUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user),
):
    workspace = services.update_workspace(db, current_user_id, workspace_id, data.name)
    return api_response(request, 200, "Workspace updated successfully", WorkspaceOut.model_validate(workspace))


@workspace_router.get("/{workspace_id}/storage")
def workspace_storage(
    workspace_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user),
):
    usage = services.get_workspace_storage_usage(db, current_user_id, workspace_id)
    return api_response(request, 200, "Successfully retrieved storage usage", usage)


### MEMBER ROUTES ###

@members_router.get("/members")
def list_workspace_members(
    workspace_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user),
):
    members = services.get_workspace_members(db, current_user_id, workspace_id)
    return api_response(request, 200, "Successfully retrieved workspace members", MemberListOut(members=members))


@members_router.post("/members", status_code=status.HTTP_201_CREATED)
def add_workspace_member(
    workspace_id: str,
    data: MemberAdd,
    request: Request,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user),
):
    member = services.add_workspace_member(db, current_user_id, workspace_id, data.user_id, data.permission)
    return api_response(request, 201, "Member added to workspace successfully", MembershipOut.model_validate(member))


@members_router.patch("/members/{member_id}")
def update_member_permission(
    workspace_id: str,
    member_id: str,
    data: MemberPermissionUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user),
):
    member = services.update_member_permission(db, current_user_id, workspace_id, member_id, data.permission)
    return api_response(
        request, 200, "Member permission updated successfully", {"member": MembershipOut.model_validate(member)}
    )


@members_router.delete("/members/{member_id}")
def remove_workspace_member(
    workspace_id: str,
    member_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user),
):
    services.remove_workspace_member(db, current_user_id, workspace_id, member_id)
    return api_response(request, 200, "Member removed from workspace successfully", None)


@members_router.patch("/leave")
def leave_workspace(
    workspace_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user),
):
    services.leave_workspace(db, current_user_id, workspace_id)
    return api_response(request, 200, "Left workspace successfully", None)
