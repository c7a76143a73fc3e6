import threading
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from printqueue.common.errors import NoWritableLocation, StorageError
from printqueue.common.logs import log_event
from printqueue.db.paths import candidate_paths, ensure_writable, probe


class Base(DeclarativeBase):
    pass


def make_engine(path: Path):
    return create_engine(
        URL.create("sqlite", database=str(path)),
        # one handle is shared by the ingestion thread and local callers
        connect_args={"check_same_thread": False, "timeout": 30},
        pool_pre_ping=True,
    )


class Store:
    """The single owned handle on the backing SQLite file."""

    def __init__(self, path: Path, engine):
        self.path = path
        self.engine = engine
        self.session = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
        self.write_lock = threading.RLock()

    def init_schema(self) -> None:
        # registers the tables on Base.metadata
        from printqueue.db import models  # noqa: F401

        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StorageError(f"schema initialisation failed: {e.__class__.__name__}") from e

    def dispose(self) -> None:
        self.engine.dispose()


def open_store(candidates=None) -> Store:
    attempted = []
    for candidate in candidate_paths() if candidates is None else candidates:
        try:
            path = candidate() if callable(candidate) else candidate
        except (OSError, RuntimeError) as e:
            log_event("store_candidate_rejected", path=None, error=str(e))
            continue
        if path is None:
            continue
        path = Path(path)
        if path in attempted:
            continue
        attempted.append(path)

        engine = None
        try:
            ensure_writable(path)
            engine = make_engine(path)
            probe(engine)
        except (OSError, RuntimeError, SQLAlchemyError) as e:
            if engine is not None:
                engine.dispose()
            log_event("store_candidate_rejected", path=str(path), error=str(e))
            continue

        store = Store(path, engine)
        try:
            store.init_schema()
        except StorageError as e:
            store.dispose()
            log_event("store_schema_failed", path=str(path), error=str(e))
            raise
        log_event("store_opened", path=str(path))
        return store

    log_event("store_unavailable", attempted=[str(p) for p in attempted])
    raise NoWritableLocation(attempted)
