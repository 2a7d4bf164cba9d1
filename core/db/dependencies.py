from typing import Iterator

from sqlalchemy.orm import Session

from core.db.session import SessionLocal


def get_db() -> Iterator[Session]:
    """Request-scoped session; anything left uncommitted by a failed request is rolled back."""
    db: Session = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
