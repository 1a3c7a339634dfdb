from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from . import errors

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


@dataclass(frozen=True)
class Deadline:
    """Point on the monotonic clock after which a request should give up."""

    expires_at: float

    @classmethod
    def after(cls, budget: timedelta, start: Optional[float] = None) -> "Deadline":
        start = time.monotonic() if start is None else start
        return cls(start + budget.total_seconds())

    def remaining(self) -> float:
        return self.expires_at - time.monotonic()

    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self) -> None:
        if self.expired():
            raise errors.RequestTimeout()


class Database:
    """Owns the engine (and its connection pool) plus the session factory."""

    def __init__(self, url: str):
        options: dict = {"pool_pre_ping": True}
        if url.startswith("sqlite"):
            options["connect_args"] = {"check_same_thread": False}
            if make_url(url).database in (None, "", ":memory:"):
                # one shared connection, otherwise every session sees an empty DB
                options["poolclass"] = StaticPool
        self._engine = create_engine(url, **options)
        self._session_factory = sessionmaker(
            bind=self._engine, autocommit=False, autoflush=False, expire_on_commit=False
        )

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self._engine)

    def dispose(self) -> None:
        self._engine.dispose()
        logger.info("database pool closed url=%s", self._engine.url.render_as_string(hide_password=True))

    @contextmanager
    def session(self, deadline: Optional[Deadline] = None) -> Iterator[Session]:
        db = self._session_factory()
        if deadline is not None and self._engine.dialect.name == "postgresql":
            _bind_statement_timeout(db, deadline)
        try:
            yield db
        finally:
            db.close()


def _bind_statement_timeout(db: Session, deadline: Deadline) -> None:
    # SET LOCAL lasts for one transaction, so re-apply on every begin
    @event.listens_for(db, "after_begin")
    def _apply(session, transaction, connection):
        remaining_ms = max(int(deadline.remaining() * 1000), 1)
        connection.exec_driver_sql(f"SET LOCAL statement_timeout = {remaining_ms}")


__all__ = ["Base", "Database", "Deadline"]
