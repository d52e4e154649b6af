from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from aurelo.core.config import settings


def _engine_kwargs(url: str) -> dict:
    kwargs = {"echo": settings.DB_ECHO, "future": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_pre_ping"] = True
    return kwargs


def _normalize_url(url: str) -> str:
    # Hosted Postgres providers hand out the short scheme.
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


DATABASE_URL = _normalize_url(settings.DATABASE_URL)

engine = create_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
