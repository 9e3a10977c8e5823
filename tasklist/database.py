from sqlmodel import SQLModel, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool, StaticPool

# Import all models to ensure they are registered with SQLModel metadata
from .models import Task  # noqa: F401


def create_db_engine(database_url: str) -> Engine:
    """Create the engine for the configured database URL."""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection so every session sees the same in-memory database
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=False, **kwargs)

    # Managed Postgres: disable pooling for serverless and enable pre-ping
    return create_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,
        poolclass=NullPool,
    )


def create_tables(engine: Engine) -> None:
    """Create all database tables."""
    SQLModel.metadata.create_all(bind=engine)
