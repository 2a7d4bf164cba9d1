import logging
from typing import Mapping, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from svix.webhooks import Webhook, WebhookVerificationError

from core.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    StandardError,
    VerificationError,
)
from models.tier import TierName
from models.user import User

from api.v1.workspace.tiers import get_tier_by_name
from .schemas import UserCreatedData

logger = logging.getLogger(__name__)

SVIX_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")
USER_CREATED_EVENT = "user.created"


def extract_svix_headers(headers: Mapping[str, str]) -> dict:
    """Pick the three svix signature headers, failing if any is missing."""
    picked = {name: headers.get(name) for name in SVIX_HEADERS}
    if not all(picked.values()):
        raise AuthenticationError()
    return picked


def primary_email(data: UserCreatedData) -> str:
    for address in data.email_addresses:
        if address.id == data.primary_email_address_id:
            return address.email_address
    raise NotFoundError("Primary email not found", "PRIMARY_EMAIL_NOT_FOUND")


def create_user_from_event(db: Session, data: UserCreatedData) -> User:
    email = primary_email(data)
    if db.query(User).filter(or_(User.id == data.id, User.email == email)).first():
        raise ConflictError("User already exists", "USER_ALREADY_EXISTS")

    free_tier = get_tier_by_name(db, TierName.FREE)
    user = User(
        id=data.id,
        email=email,
        first_name=data.first_name,
        last_name=data.last_name,
        avatar_image=data.image_url,
        tier_id=free_tier.id if free_tier else None,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User already exists", "USER_ALREADY_EXISTS")
    db.refresh(user)
    return user


def onboard_user(
    db: Session,
    verifier: Webhook,
    payload: bytes,
    headers: Mapping[str, str],
) -> Optional[User]:
    """Handle one identity-provider webhook delivery.

    Only ``user.created`` events produce a user row; every other event
    type is acknowledged and ignored.
    """
    svix_headers = extract_svix_headers(headers)

    try:
        event = verifier.verify(payload, svix_headers)

        if event.get("type") != USER_CREATED_EVENT:
            logger.info("Ignoring identity event %s", event.get("type"))
            return None

        data = UserCreatedData.model_validate(event.get("data") or {})
        user = create_user_from_event(db, data)
        logger.info("Onboarded user %s", user.id)
        return user

    except StandardError:
        raise
    except WebhookVerificationError as e:
        logger.warning("Webhook signature rejected: %s", e)
        raise VerificationError()
    except (PydanticValidationError, ValueError, AttributeError) as e:
        logger.error("Webhook payload could not be processed: %s", e)
        raise VerificationError()
