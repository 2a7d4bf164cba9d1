import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from svix.webhooks import Webhook

from core.db.dependencies import get_db
from core.responses import api_response

from .schemas import UserOut
from .services import onboard_user
from .utils import get_webhook_verifier

# Mounted outside the authenticated routers: the identity provider calls it directly
webhook_router = APIRouter(tags=["Auth Webhook"])

logger = logging.getLogger(__name__)


@webhook_router.post("/auth-webhook")
async def auth_webhook(
    request: Request,
    db: Session = Depends(get_db),
    verifier: Webhook = Depends(get_webhook_verifier),
):
    # Signature is computed over the raw body, so it must not be parsed first
    payload = await request.body()
    # Verification and the insert block, so they run off the event loop
    user = await run_in_threadpool(onboard_user, db, verifier, payload, request.headers)
    if user is None:
        return api_response(request, 200, "Event ignored", None)
    return api_response(request, 200, "User onboarded successfully", UserOut.model_validate(user))
