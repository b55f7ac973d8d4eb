# vegbazar/database.py
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from vegbazar.core.config import get_settings

settings = get_settings()


def build_engine(db_url: str):
    """
    Create the SQLAlchemy engine for the given URL.

    Postgres:
      - sslmode=require   : enforce SSL when running in the cloud
      - pool_pre_ping=True: validate connections before using them

    SQLite (local dev / tests):
      - check_same_thread=False so FastAPI's threadpool can share it
      - in-memory databases use StaticPool so every session sees
        the same connection (and therefore the same tables)
    """
    if db_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in db_url or db_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return create_engine(db_url, echo=False, **kwargs)

    if db_url.startswith("postgres") and "sslmode=" not in db_url:
        separator = "&" if "?" in db_url else "?"
        db_url = f"{db_url}{separator}sslmode=require"

    return create_engine(
        db_url,
        echo=False,        # set to True if you want to debug SQL queries
        pool_pre_ping=True,
    )


engine = build_engine(settings.DATABASE_URL)


def create_db_and_tables() -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session
