import re
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.db.base import utcnow
from core.errors import BadRequestError, NotFoundError, UnauthorizedError
from models.user import User
from models.workspace import Workspace
from models.workspace_member import WorkspaceMember, Permission

from .schemas import (
    WORKSPACE_NAME_MAX_LENGTH,
    MemberOut,
    MemberUserOut,
    OwnerOut,
    StorageUsageOut,
    UserWorkspaceOut,
    WorkspaceDetailOut,
    WorkspaceOut,
)
from .tiers import get_user_tier

logger = logging.getLogger(__name__)

DEFAULT_SLUG = "workspace"


@contextmanager
def atomic(db: Session, integrity_message: str = "Conflicting workspace data") -> Iterator[None]:
    """Commit everything done inside the block as one unit, or nothing."""
    try:
        yield
        db.commit()
    except IntegrityError:
        db.rollback()
        raise BadRequestError(integrity_message)
    except Exception:
        db.rollback()
        raise


### SLUGS & VALIDATION ###

def slugify(name: str) -> str:
    slug = re.sub(r"\s+", "-", name.strip().lower())
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-{2,}", "-", slug).strip("-")
    return slug or DEFAULT_SLUG


def generate_unique_slug(db: Session, base: str) -> str:
    slug = base
    counter = 1

    while db.query(Workspace).filter_by(slug=slug).first():
        slug = f"{base}-{counter}"
        counter += 1

    return slug


def validate_workspace_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise BadRequestError("Workspace name is required")
    if len(name) > WORKSPACE_NAME_MAX_LENGTH:
        raise BadRequestError(f"Workspace name must be at most {WORKSPACE_NAME_MAX_LENGTH} characters")
    return name


### ACCESS CHECKS ###

def get_membership(db: Session, workspace_id: str, user_id: str) -> Optional[WorkspaceMember]:
    return db.query(WorkspaceMember).filter_by(workspace_id=workspace_id, user_id=user_id).first()


def require_membership(db: Session, workspace_id: str, user_id: str) -> WorkspaceMember:
    membership = get_membership(db, workspace_id, user_id)
    if not membership:
        raise UnauthorizedError("User does not have access to this workspace")
    return membership


def get_owned_workspace(
    db: Session,
    workspace_id: str,
    user_id: str,
    message: str,
    lock: bool = False,
) -> Workspace:
    """Return the workspace if ``user_id`` owns it, else raise ``BadRequestError``.

    With ``lock`` the row is selected FOR UPDATE so a following
    check-then-write cannot interleave with another request.
    """
    query = db.query(Workspace).filter_by(id=workspace_id, owner_id=user_id)
    if lock:
        query = query.with_for_update()
    workspace = query.first()
    if not workspace:
        raise BadRequestError(message)
    return workspace


def count_members(db: Session, workspace_id: str) -> int:
    return db.query(func.count(WorkspaceMember.id)).filter(WorkspaceMember.workspace_id == workspace_id).scalar() or 0


### WORKSPACE SERVICES ###

def build_owner_membership(workspace: Workspace) -> WorkspaceMember:
    return WorkspaceMember(
        workspace_id=workspace.id,
        user_id=workspace.owner_id,
        permission=Permission.FULL_ACCESS,
    )


def create_workspace(db: Session, user_id: str, name: str) -> Workspace:
    """Create the caller's workspace together with their FULL_ACCESS membership."""
    name = validate_workspace_name(name)

    with atomic(db, "Workspace slug already exists"):
        # Serialises concurrent creates by the same caller
        if not db.query(User).filter_by(id=user_id).with_for_update().first():
            raise UnauthorizedError("User not found")

        if db.query(Workspace).filter_by(owner_id=user_id).first():
            raise BadRequestError("User already owns a workspace")

        workspace = Workspace(
            name=f"{name}'s Workspace",
            slug=generate_unique_slug(db, slugify(name)),
            owner_id=user_id,
        )
        db.add(workspace)
        db.flush()
        db.add(build_owner_membership(workspace))

    db.refresh(workspace)
    logger.info("Workspace %s (%s) created by %s", workspace.id, workspace.slug, user_id)
    return workspace


def get_user_workspaces(db: Session, user_id: str) -> List[UserWorkspaceOut]:
    rows = (
        db.query(Workspace, WorkspaceMember)
        .join(WorkspaceMember, WorkspaceMember.workspace_id == Workspace.id)
        .filter(WorkspaceMember.user_id == user_id)
        .order_by(WorkspaceMember.joined_at.asc())
        .all()
    )
    if not rows:
        raise NotFoundError("No workspaces found for this user")

    return [
        UserWorkspaceOut(
            **WorkspaceOut.model_validate(workspace).model_dump(),
            permission=membership.permission,
            joined_at=membership.joined_at,
        )
        for workspace, membership in rows
    ]


def get_current_workspace(db: Session, user_id: str) -> Workspace:
    workspace = db.query(Workspace).filter_by(owner_id=user_id).first()
    if not workspace:
        raise NotFoundError("User does not own a workspace")
    return workspace


def get_workspace_by_id(db: Session, user_id: str, workspace_id: str) -> WorkspaceDetailOut:
    membership = require_membership(db, workspace_id, user_id)
    workspace = membership.workspace

    return WorkspaceDetailOut(
        **WorkspaceOut.model_validate(workspace).model_dump(),
        owner=OwnerOut.model_validate(workspace.owner),
        member_count=count_members(db, workspace_id),
        permission=membership.permission,
        joined_at=membership.joined_at,
    )


def update_workspace(db: Session, user_id: str, workspace_id: str, name: str) -> Workspace:
    workspace = get_owned_workspace(db, workspace_id, user_id, "Only workspace owners can update the workspace")
    name = validate_workspace_name(name)
    slug = slugify(name)

    clash = db.query(Workspace).filter(Workspace.slug == slug, Workspace.id != workspace_id).first()
    if clash:
        raise BadRequestError("A workspace with this name already exists")

    with atomic(db, "A workspace with this name already exists"):
        workspace.name = name
        workspace.slug = slug
        workspace.updated_at = utcnow()

    db.refresh(workspace)
    logger.info("Workspace %s renamed to %s", workspace.id, workspace.slug)
    return workspace


### STORAGE SERVICES ###

def calculate_usage_percentage(current_bytes: int, limit_bytes: int) -> float:
    if limit_bytes <= 0:
        return 0.0
    percentage = current_bytes / limit_bytes * 100
    return round(min(max(percentage, 0.0), 100.0), 2)


def get_workspace_storage_usage(db: Session, user_id: str, workspace_id: str) -> StorageUsageOut:
    membership = require_membership(db, workspace_id, user_id)
    workspace = membership.workspace

    # Quota follows the owner's subscription, which is the caller's when they own it
    tier = get_user_tier(db, workspace.owner_id)
    current = workspace.current_storage_bytes or 0

    return StorageUsageOut(
        workspace_id=workspace.id,
        current_storage_bytes=current,
        storage_limit_bytes=tier.storage_limit_bytes,
        usage_percentage=calculate_usage_percentage(current, tier.storage_limit_bytes),
    )


def update_workspace_storage(db: Session, workspace_id: str, delta_bytes: int) -> Workspace:
    """Apply a storage delta, enforcing the owner tier's upload and storage limits."""
    with atomic(db):
        workspace = db.query(Workspace).filter_by(id=workspace_id).with_for_update().first()
        if not workspace:
            raise NotFoundError("Workspace not found")

        current = workspace.current_storage_bytes or 0
        if delta_bytes > 0:
            tier = get_user_tier(db, workspace.owner_id)
            if delta_bytes > tier.file_upload_limit_bytes:
                raise BadRequestError("File exceeds the upload size limit")
            if current + delta_bytes > tier.storage_limit_bytes:
                raise BadRequestError("Workspace storage limit exceeded")

        workspace.current_storage_bytes = max(0, current + delta_bytes)
        workspace.updated_at = utcnow()

    db.refresh(workspace)
    return workspace


### MEMBER SERVICES ###

def get_workspace_members(db: Session, user_id: str, workspace_id: str) -> List[MemberOut]:
    require_membership(db, workspace_id, user_id)

    rows = (
        db.query(WorkspaceMember, User, Workspace.owner_id)
        .join(User, User.id == WorkspaceMember.user_id)
        .join(Workspace, Workspace.id == WorkspaceMember.workspace_id)
        .filter(WorkspaceMember.workspace_id == workspace_id)
        .order_by(WorkspaceMember.joined_at.asc())
        .all()
    )

    return [
        MemberOut(
            id=user.id,
            membership_id=member.id,
            user=MemberUserOut(
                id=user.id,
                email=user.email,
                full_name=user.full_name,
                avatar_image=user.avatar_image,
            ),
            permission=member.permission,
            is_owner=user.id == owner_id,
            joined_at=member.joined_at,
            updated_at=member.updated_at,
        )
        for member, user, owner_id in rows
    ]


def add_workspace_member(
    db: Session,
    user_id: str,
    workspace_id: str,
    target_user_id: str,
    permission: Permission,
) -> WorkspaceMember:
    with atomic(db, "User is already a member of this workspace"):
        get_owned_workspace(db, workspace_id, user_id, "Only workspace owners can add members", lock=True)

        if not db.query(User).filter_by(id=target_user_id).first():
            raise NotFoundError("User to add not found")

        if get_membership(db, workspace_id, target_user_id):
            raise BadRequestError("User is already a member of this workspace")

        tier = get_user_tier(db, user_id)
        if count_members(db, workspace_id) >= tier.members_per_workspace_limit:
            raise BadRequestError("Workspace member limit exceeded")

        member = WorkspaceMember(
            workspace_id=workspace_id,
            user_id=target_user_id,
            permission=permission,
        )
        db.add(member)

    db.refresh(member)
    logger.info("User %s added to workspace %s as %s", target_user_id, workspace_id, permission.value)
    return member


def update_member_permission(
    db: Session,
    user_id: str,
    workspace_id: str,
    member_id: str,
    permission: Permission,
) -> WorkspaceMember:
    # The owner's own row is not exempt; its permission can be changed like any other
    with atomic(db):
        get_owned_workspace(db, workspace_id, user_id, "Only workspace owners can update member permissions", lock=True)

        member = get_membership(db, workspace_id, member_id)
        if not member:
            raise BadRequestError("Member not found in this workspace")

        member.permission = permission
        member.updated_at = utcnow()

    db.refresh(member)
    logger.info("Member %s in workspace %s now has %s", member_id, workspace_id, permission.value)
    return member


def remove_workspace_member(db: Session, user_id: str, workspace_id: str, member_id: str) -> None:
    with atomic(db):
        workspace = get_owned_workspace(db, workspace_id, user_id, "Only workspace owners can remove members", lock=True)

        if workspace.owner_id == member_id:
            raise BadRequestError("Cannot remove the workspace owner")

        member = get_membership(db, workspace_id, member_id)
        if not member:
            raise BadRequestError("Member not found in this workspace")

        db.delete(member)

    logger.info("Member %s removed from workspace %s", member_id, workspace_id)


def leave_workspace(db: Session, user_id: str, workspace_id: str) -> None:
    with atomic(db):
        workspace = db.query(Workspace).filter_by(id=workspace_id).first()
        if not workspace:
            raise NotFoundError("Workspace not found")

        if workspace.owner_id == user_id:
            raise BadRequestError("Workspace owners cannot leave their own workspace")

        member = get_membership(db, workspace_id, user_id)
        if not member:
            raise BadRequestError("User is not a member of this workspace")

        db.delete(member)

    logger.info("User %s left workspace %s", user_id, workspace_id)
