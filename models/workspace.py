import uuid

from sqlalchemy import Column, String, BigInteger, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from core.db.base import Base, utcnow


class Workspace(Base):
    __tablename__ = "workspaces"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    logo_url = Column(String(1000), nullable=True)
    current_storage_bytes = Column(BigInteger, nullable=False, default=0)

    # One workspace per owner is enforced on creation, not by the schema
    owner_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    owner = relationship("User", back_populates="workspace")
    members = relationship(
        "WorkspaceMember",
        back_populates="workspace",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("current_storage_bytes >= 0", name="ck_workspaces_storage_non_negative"),
    )
