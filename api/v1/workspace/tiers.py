import logging
from typing import Optional

from sqlalchemy.orm import Session

from core.errors import BadRequestError
from models.tier import Tier, TierName, DEFAULT_TIER_LIMITS
from models.user import User

logger = logging.getLogger(__name__)


def get_tier_by_id(db: Session, tier_id: Optional[int]) -> Optional[Tier]:
    if tier_id is None:
        return None
    return db.query(Tier).filter_by(id=tier_id).first()


def get_tier_by_name(db: Session, name: TierName) -> Optional[Tier]:
    return db.query(Tier).filter_by(name=name).first()


def get_user_tier(db: Session, user_id: str) -> Tier:
    """Resolve the subscription tier whose limits apply to ``user_id``."""
    user = db.query(User).filter_by(id=user_id).first()
    if not user or user.tier_id is None:
        raise BadRequestError("User tier not found")

    tier = get_tier_by_id(db, user.tier_id)
    if not tier:
        raise BadRequestError("Tier details not found")
    return tier


def seed_default_tiers(db: Session) -> int:
    """Insert any missing reference tiers. Returns how many were added."""
    existing = {tier.name for tier in db.query(Tier).all()}
    added = 0
    for name, limits in DEFAULT_TIER_LIMITS.items():
        if name in existing:
            continue
        db.add(Tier(name=name, **limits))
        added += 1

    if added:
        db.commit()
        logger.info("Seeded %d subscription tiers", added)
    return added
