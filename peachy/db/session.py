from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.config import settings


def make_engine(url: str, *, echo: bool = False) -> Engine:
    # Required for SQLite (otherwise "no such table" and threading errors)
    connect_args = {}
    kwargs = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, or every session sees an empty database
            kwargs["poolclass"] = StaticPool
    return create_engine(url, echo=echo, future=True, connect_args=connect_args, **kwargs)


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


engine = make_engine(settings.DATABASE_URL)
SessionLocal = make_session_factory(engine)
