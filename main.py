import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from core.config import Settings, get_settings
from core.db.base import Base
from core.db.session import SessionLocal, check_db_connection, engine
from core.errors import register_exception_handlers
from api.v1.auth.routes import webhook_router
from api.v1.auth.utils import TokenManager, build_webhook_verifier
from api.v1.workspace.routes import workspace_router, members_router
from api.v1.workspace.tiers import seed_default_tiers
import models  # noqa: F401  registers every table on Base.metadata

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info("%s starting (%s)", settings.PROJECT_NAME, settings.ENVIRONMENT)

    if settings.AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)
        db = SessionLocal()
        try:
            seed_default_tiers(db)
        finally:
            db.close()

    try:
        yield
    finally:
        engine.dispose()
        logger.info("%s shut down", settings.PROJECT_NAME)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.token_manager = TokenManager.from_settings(settings)
    app.state.webhook_verifier = build_webhook_verifier(settings.CLERK_WEBHOOK_SECRET)

    register_exception_handlers(app)

    app.include_router(webhook_router, prefix=settings.API_PREFIX)
    app.include_router(workspace_router, prefix=settings.API_PREFIX)
    app.include_router(members_router, prefix=settings.API_PREFIX)

    @app.get("/health")
    def health():
        try:
            check_db_connection()
        except Exception as e:
            logger.error("Health check failed: %s", e)
            return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "unreachable"})
        return {"status": "ok", "database": "connected"}

    return app


app = create_app()
