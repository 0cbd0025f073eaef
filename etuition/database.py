import logging
from collections.abc import Iterator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from etuition.core import config

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Engine and session factory for one process.

    Built once at application startup and stored on ``app.state``; request
    handlers receive sessions through :func:`get_db`.
    """

    def __init__(self, url: str, **engine_options) -> None:
        self.url = url
        if url.startswith("sqlite"):
            engine_options.setdefault("connect_args", {"check_same_thread": False})
            if url in {"sqlite://", "sqlite:///:memory:"}:
                engine_options.setdefault("poolclass", StaticPool)
        else:
            engine_options.setdefault("pool_pre_ping", True)
            engine_options.setdefault("pool_timeout", config.DB_POOL_TIMEOUT)
            engine_options.setdefault("connect_args", {"connect_timeout": config.DB_CONNECT_TIMEOUT})
        engine_options.setdefault("echo", config.DB_ECHO)

        self.engine = create_engine(url, **engine_options)
        self.session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
        )

    def create_all(self) -> None:
        # Model modules register their tables on Base when imported.
        from etuition.models import (  # noqa: F401
            application,
            bookmark,
            messaging,
            notification,
            payment,
            review,
            role_request,
            schedule,
            tuition,
            user,
        )

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def session(self) -> Session:
        return self.session_factory()

    def ping(self) -> bool:
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True

    def dispose(self) -> None:
        self.engine.dispose()


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(request: Request) -> Iterator[Session]:
    db = get_database(request).session()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
