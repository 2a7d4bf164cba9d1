import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError
from sqlalchemy.orm import Session
from svix.webhooks import Webhook

from core.config import Settings
from core.db.dependencies import get_db
from core.errors import InternalServerError, UnauthorizedError
from models.user import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class TokenManager:
    """Signs and verifies session tokens with one configured key.

    Built once by the application factory and shared through ``app.state``.
    """

    def __init__(
        self,
        key: str,
        algorithm: str = "HS256",
        issuer: Optional[str] = None,
        expire_minutes: int = 60,
    ):
        self.key = key
        self.algorithm = algorithm
        self.issuer = issuer
        self.expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenManager":
        return cls(
            key=settings.AUTH_TOKEN_KEY,
            algorithm=settings.AUTH_TOKEN_ALGORITHM,
            issuer=settings.AUTH_TOKEN_ISSUER,
            expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        )

    def create_access_token(self, subject: str, expires_delta: Optional[timedelta] = None) -> str:
        if not self.key:
            raise InternalServerError("Token signing key is not configured")

        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=self.expire_minutes))
        claims: Dict[str, Any] = {"sub": subject, "exp": expire}
        if self.issuer:
            claims["iss"] = self.issuer
        return jwt.encode(claims, self.key, algorithm=self.algorithm)

    def verify_access_token(self, token: str) -> Dict[str, Any]:
        if not self.key:
            raise UnauthorizedError("Token verification key is not configured")
        try:
            return jwt.decode(
                token,
                self.key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"verify_aud": False},
            )
        except JWTError as e:
            raise UnauthorizedError(f"Invalid or expired access token: {e}")


def get_token_manager(request: Request) -> TokenManager:
    return request.app.state.token_manager


def get_webhook_verifier(request: Request) -> Webhook:
    verifier = getattr(request.app.state, "webhook_verifier", None)
    if verifier is None:
        raise InternalServerError("Webhook secret is not configured", "WEBHOOK_SECRET_MISSING")
    return verifier


def build_webhook_verifier(secret: str) -> Optional[Webhook]:
    if not secret:
        logger.warning("CLERK_WEBHOOK_SECRET is not set; the auth webhook will reject every call")
        return None
    return Webhook(secret)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token_manager: TokenManager = Depends(get_token_manager),
    db: Session = Depends(get_db),
) -> str:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("User not authenticated")

    payload = token_manager.verify_access_token(credentials.credentials)
    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Invalid token")

    user = db.query(User).filter_by(id=user_id).first()
    if not user:
        raise UnauthorizedError("User not found")
    return user.id
