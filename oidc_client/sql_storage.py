"""
Persistent storage adapter backed by a SQLAlchemy table.
One row per (namespace, key); values are stored as JSON text. The namespace scopes rows to a
browser session (or to an application, when used as the metadata/JWKS cache).
"""
import json
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, String, Text, UniqueConstraint, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from oidc_client.storage import Storage


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class StorageEntry(Base):
    __tablename__ = "oidc_storage"
    __table_args__ = (UniqueConstraint("namespace", "key", name="uq_oidc_storage_namespace_key"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    namespace: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)  # JSON
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, onupdate=_utc_now)


def create_storage_engine(database_url: str) -> Engine:
    """Engine for the storage table. In-memory SQLite needs StaticPool so all connections share one DB."""
    if database_url.startswith("sqlite:///:memory:"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    connect_args = {"check_same_thread": False} if "sqlite" in database_url else {}
    return create_engine(database_url, connect_args=connect_args)


def init_storage(engine: Engine) -> sessionmaker:
    """Create the storage table if needed and return a session factory bound to the engine."""
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


class SqlStorage(Storage):
    def __init__(self, session_factory: sessionmaker, namespace: str = "default"):
        self._session_factory = session_factory
        self.namespace = namespace

    def _find(self, db, key: str) -> StorageEntry | None:
        return (
            db.query(StorageEntry)
            .filter(StorageEntry.namespace == self.namespace, StorageEntry.key == key)
            .first()
        )

    def get(self, key: str) -> Any | None:
        with self._session_factory() as db:
            row = self._find(db, key)
            if row is None:
                return None
            return json.loads(row.value)

    def set(self, key: str, value: Any) -> None:
        encoded = json.dumps(value)
        with self._session_factory() as db:
            row = self._find(db, key)
            if row is None:
                db.add(StorageEntry(namespace=self.namespace, key=key, value=encoded))
            else:
                row.value = encoded
            db.commit()

    def remove(self, key: str) -> None:
        with self._session_factory() as db:
            db.query(StorageEntry).filter(
                StorageEntry.namespace == self.namespace, StorageEntry.key == key
            ).delete()
            db.commit()

    def clear(self) -> None:
        """Drop every key in this namespace (e.g. when a browser session ends)."""
        with self._session_factory() as db:
            db.query(StorageEntry).filter(StorageEntry.namespace == self.namespace).delete()
            db.commit()
