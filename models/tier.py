from sqlalchemy import Column, Integer, BigInteger, Enum, CheckConstraint
from core.db.base import Base
import enum

MIB = 1024 * 1024
GIB = 1024 * MIB


class TierName(str, enum.Enum):
    FREE = "FREE"
    PRO = "PRO"
    ENTERPRISE = "ENTERPRISE"


# Reference data seeded into the tiers table
DEFAULT_TIER_LIMITS = {
    TierName.FREE: {
        "storage_limit_bytes": 500 * MIB,
        "file_upload_limit_bytes": 10 * MIB,
        "members_per_workspace_limit": 5,
        "projects_limit": 3,
        "docs_limit": 50,
        "drafts_limit": 20,
    },
    TierName.PRO: {
        "storage_limit_bytes": 10 * GIB,
        "file_upload_limit_bytes": 100 * MIB,
        "members_per_workspace_limit": 25,
        "projects_limit": 50,
        "docs_limit": 1000,
        "drafts_limit": 500,
    },
    TierName.ENTERPRISE: {
        "storage_limit_bytes": 1024 * GIB,
        "file_upload_limit_bytes": 1 * GIB,
        "members_per_workspace_limit": 500,
        "projects_limit": 1000,
        "docs_limit": 100000,
        "drafts_limit": 10000,
    },
}


class Tier(Base):
    __tablename__ = "tiers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Enum(TierName), unique=True, nullable=False)

    storage_limit_bytes = Column(BigInteger, nullable=False, default=0)
    file_upload_limit_bytes = Column(BigInteger, nullable=False, default=0)
    members_per_workspace_limit = Column(Integer, nullable=False, default=0)
    projects_limit = Column(Integer, nullable=False, default=0)
    docs_limit = Column(Integer, nullable=False, default=0)
    drafts_limit = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("storage_limit_bytes >= 0", name="ck_tiers_storage_limit"),
        CheckConstraint("file_upload_limit_bytes >= 0", name="ck_tiers_file_upload_limit"),
        CheckConstraint("members_per_workspace_limit >= 0", name="ck_tiers_members_limit"),
        CheckConstraint("projects_limit >= 0", name="ck_tiers_projects_limit"),
        CheckConstraint("docs_limit >= 0", name="ck_tiers_docs_limit"),
        CheckConstraint("drafts_limit >= 0", name="ck_tiers_drafts_limit"),
    )
