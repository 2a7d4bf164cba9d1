from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

from core.config import settings

engine = create_engine(settings.DB_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def check_db_connection() -> None:
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
