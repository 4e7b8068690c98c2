import os
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./notes.db")


def _sync_url(url: str) -> str:
    """Return a synchronous SQLAlchemy URL.

    The key-value store runs on a synchronous engine and Alembic expects a
    synchronous driver too, but deployments may still hand us an async URL
    such as ``sqlite+aiosqlite`` or ``postgresql+asyncpg``.
    ``sqlalchemy.engine.make_url`` lets us safely parse any URL and drop the
    ``+driver`` suffix regardless of the specific async driver that is used.
    """

    try:
        parsed = make_url(url)
    except Exception:  # pragma: no cover - malformed URLs are passed through
        return url

    drivername = parsed.drivername
    if "+" not in drivername:
        return url

    dialect, _, _ = drivername.partition("+")
    sync_url = parsed.set(drivername=dialect)
    return sync_url.render_as_string(hide_password=False)


SYNC_DATABASE_URL = _sync_url(DATABASE_URL)

engine = create_engine(SYNC_DATABASE_URL, echo=False, future=True)
session_maker = sessionmaker(engine, expire_on_commit=False, class_=Session)


class Base(DeclarativeBase):
    pass


def init_db(bind: Optional[Engine] = None) -> None:
    # Import for the side effect of registering the table on Base.metadata.
    from app.models.kv_entry import KeyValueEntry  # noqa: F401

    Base.metadata.create_all(bind or engine)


__all__ = [
    "DATABASE_URL",
    "SYNC_DATABASE_URL",
    "engine",
    "session_maker",
    "init_db",
    "Base",
]
