"""Engine, session factory and declarative base for the coupon tables."""

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from coupons.core.config import settings

_is_sqlite = settings.APP_DATABASE_DSN.startswith("sqlite")

# Row locks taken by RedemptionLedger.redeem need a server database;
# SQLite ignores FOR UPDATE and serializes writers instead.
engine = create_engine(
    settings.APP_DATABASE_DSN,
    echo=settings.DEBUG,
    pool_pre_ping=not _is_sqlite,
    connect_args={"check_same_thread": False} if _is_sqlite else {},
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create the coupon tables on the configured engine if they are missing."""
    import coupons.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
