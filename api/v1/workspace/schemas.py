from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

from models.workspace_member import Permission

WORKSPACE_NAME_MAX_LENGTH = 50

# -----------------------------
#  Requests
# -----------------------------

class WorkspaceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=WORKSPACE_NAME_MAX_LENGTH)


class WorkspaceUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=WORKSPACE_NAME_MAX_LENGTH)

    model_config = ConfigDict(extra="forbid")


class MemberAdd(BaseModel):
    user_id: str = Field(..., min_length=1)
    permission: Permission = Permission.READ_ONLY


class MemberPermissionUpdate(BaseModel):
    permission: Permission


# -----------------------------
#  Responses
# -----------------------------

class WorkspaceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    owner_id: str
    logo_url: Optional[str] = None
    current_storage_bytes: int
    created_at: datetime
    updated_at: datetime


class UserWorkspaceOut(WorkspaceOut):
    permission: Permission
    joined_at: datetime


class OwnerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_image: Optional[str] = None


class WorkspaceDetailOut(WorkspaceOut):
    owner: OwnerOut
    member_count: int
    permission: Permission
    joined_at: datetime


class StorageUsageOut(BaseModel):
    workspace_id: str
    current_storage_bytes: int
    storage_limit_bytes: int
    usage_percentage: float


class MemberUserOut(BaseModel):
    id: str
    email: str
    full_name: str
    avatar_image: Optional[str] = None


class MemberOut(BaseModel):
    # The member's user id, which is what the /members/{member_id} routes take
    id: str
    membership_id: str
    user: MemberUserOut
    permission: Permission
    is_owner: bool
    joined_at: datetime
    updated_at: datetime


class MembershipOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    workspace_id: str
    user_id: str
    permission: Permission
    joined_at: datetime
    updated_at: datetime


class MemberListOut(BaseModel):
    members: List[MemberOut]
