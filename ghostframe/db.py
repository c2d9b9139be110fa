from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.pool import StaticPool

from ghostframe import config
from ghostframe import models  # noqa: F401  registers tables on SQLModel.metadata

# Prefer DATABASE_URL (e.g. Postgres). Fallback to local SQLite.
DATABASE_URL = config.DATABASE_URL


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    kwargs = {"connect_args": {"check_same_thread": False}}
    # in-memory SQLite must share one connection across threads
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return kwargs


engine = create_engine(DATABASE_URL, echo=False, **_engine_kwargs(DATABASE_URL))


def init_db() -> None:
    """Create all tables if they don't exist."""
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
