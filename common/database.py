import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)


def postgres_url(user: str, password: str, host: str, port: str, db: str) -> str:
    """Build a psycopg2 connection URL."""
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{db}"


def build_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine with connection health checks."""
    return create_engine(database_url, echo=False, pool_pre_ping=True, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    # expire_on_commit=False: rows are read after the transaction closes
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@contextmanager
def transaction(session_factory: sessionmaker, read_only: bool = False) -> Iterator[Session]:
    """
    Open a session inside one database transaction.

    Read-write scopes commit when the block exits normally. Read-only scopes
    never commit; closing the session returns the connection to the pool,
    which rolls it back, and leaves loaded rows readable. Any exception rolls
    back and propagates, which also covers a cancelled caller: nothing from
    the block is committed.
    """
    session = session_factory()
    try:
        if read_only and session.get_bind().dialect.name == "postgresql":
            session.execute(text("SET TRANSACTION READ ONLY"))
        yield session
        if not read_only:
            session.commit()
    except BaseException:
        session.rollback()
        raise
    finally:
        session.close()
