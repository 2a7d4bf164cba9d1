import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _compose_db_url() -> str:
    user = os.getenv("DB_USER", "root")
    password = os.getenv("DB_PASSWORD", "")
    host = os.getenv("DB_HOST", "localhost")
    port = os.getenv("DB_PORT", "3306")
    name = os.getenv("DB_NAME", "workspaces")
    return f"mysql+pymysql://{user}:{password}@{host}:{port}/{name}"


class Settings:
    PROJECT_NAME = "Workspace Backend"
    ENVIRONMENT = "development"
    API_PREFIX = "/api/v1"
    LOG_LEVEL = "INFO"

    DB_URL: str = ""
    AUTO_CREATE_TABLES = False

    # Clerk signs its webhooks through svix
    CLERK_WEBHOOK_SECRET: str = ""

    # Session tokens issued by the identity provider
    AUTH_TOKEN_KEY: str = ""
    AUTH_TOKEN_ALGORITHM = "HS256"
    AUTH_TOKEN_ISSUER: Optional[str] = None
    ACCESS_TOKEN_EXPIRE_MINUTES = 60

    def __init__(self) -> None:
        self.PROJECT_NAME = os.getenv("PROJECT_NAME", self.PROJECT_NAME)
        self.ENVIRONMENT = os.getenv("ENVIRONMENT", self.ENVIRONMENT).lower()
        self.API_PREFIX = os.getenv("API_PREFIX", self.API_PREFIX)
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", self.LOG_LEVEL).upper()

        self.DB_URL = os.getenv("DB_URL") or _compose_db_url()
        self.AUTO_CREATE_TABLES = os.getenv("AUTO_CREATE_TABLES", "false").lower() == "true"

        self.CLERK_WEBHOOK_SECRET = os.getenv("CLERK_WEBHOOK_SECRET", "")

        self.AUTH_TOKEN_KEY = os.getenv("AUTH_TOKEN_KEY", "")
        self.AUTH_TOKEN_ALGORITHM = os.getenv("AUTH_TOKEN_ALGORITHM", self.AUTH_TOKEN_ALGORITHM)
        self.AUTH_TOKEN_ISSUER = os.getenv("AUTH_TOKEN_ISSUER") or None
        self.ACCESS_TOKEN_EXPIRE_MINUTES = int(
            os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(self.ACCESS_TOKEN_EXPIRE_MINUTES))
        )

    @property
    def IS_PRODUCTION(self) -> bool:
        return self.ENVIRONMENT == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
