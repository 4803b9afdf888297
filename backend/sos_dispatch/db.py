from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

# registers the tables on SQLModel.metadata
from . import models  # noqa: F401

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def make_engine(database_url: str = "sqlite://", echo: bool = False) -> Engine:
    """Create the engine backing the stores and make sure the tables exist.

    An in-memory SQLite database is shared across threads through a single
    connection, so the request threadpool and the simulator see the same data.
    """
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in IN_MEMORY_URLS:
            kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, echo=echo, **kwargs)
    SQLModel.metadata.create_all(engine)
    return engine
