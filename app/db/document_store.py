"""Document store abstraction and its SQLAlchemy implementation.

The notification service only needs a handful of document operations on
named collections (get, set, update, delete, list, equality query, batched
writes). ``DocumentStore`` captures that surface so Firestore and a plain SQL
database can be swapped behind it.
"""
from __future__ import annotations

import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Literal, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from app.db.base import Base
from app.db.models.document import DocumentRow


class _ServerTimestamp:
    """Sentinel replaced by the store's clock when a document is written."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class ArrayUnion:
    """Add values to an array field, skipping those already present."""

    values: tuple[Any, ...]

    def __init__(self, *values: Any) -> None:
        object.__setattr__(self, "values", tuple(values))


class DocumentNotFoundError(KeyError):
    """Raised when updating a document that does not exist."""


@dataclass(frozen=True)
class Document:
    id: str
    data: dict[str, Any]

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


@dataclass(frozen=True)
class WriteOp:
    """One write in a batch."""

    kind: Literal["set", "update", "delete"]
    collection: str
    doc_id: str
    data: dict[str, Any] = field(default_factory=dict)
    merge: bool = False

    @classmethod
    def set(cls, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> "WriteOp":
        return cls("set", collection, doc_id, data, merge)

    @classmethod
    def update(cls, collection: str, doc_id: str, data: dict[str, Any]) -> "WriteOp":
        return cls("update", collection, doc_id, data)

    @classmethod
    def delete(cls, collection: str, doc_id: str) -> "WriteOp":
        return cls("delete", collection, doc_id)


class DocumentStore(ABC):
    """Minimal document database interface used by the services."""

    def new_id(self, collection: str) -> str:
        """Return a fresh document identifier for ``collection``."""

        return uuid.uuid4().hex

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        ...

    @abstractmethod
    def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None:
        ...

    @abstractmethod
    def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        ...

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        ...

    @abstractmethod
    def list(self, collection: str) -> list[Document]:
        ...

    @abstractmethod
    def query(
        self,
        collection: str,
        field_name: str,
        value: Any,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]:
        ...

    @abstractmethod
    def batch(self, ops: Sequence[WriteOp]) -> None:
        """Apply ``ops`` atomically."""

    def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = self.new_id(collection)
        self.set(collection, doc_id, data)
        return doc_id


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _resolve_value(current: Any, value: Any, now: str) -> Any:
    if value is SERVER_TIMESTAMP:
        return now
    if isinstance(value, ArrayUnion):
        existing = list(current) if isinstance(current, list) else []
        for item in value.values:
            if item not in existing:
                existing.append(item)
        return existing
    if isinstance(value, dict):
        return {key: _resolve_value(None, item, now) for key, item in value.items()}
    return value


def _apply(base: dict[str, Any], changes: dict[str, Any], now: str) -> dict[str, Any]:
    merged = dict(base)
    for key, value in changes.items():
        merged[key] = _resolve_value(base.get(key), value, now)
    return merged


def _sort_key(value: Any) -> tuple[int, Any]:
    # Missing values sort first, like Firestore's null ordering.
    if value is None:
        return (0, "")
    return (1, value)


class SQLDocumentStore(DocumentStore):
    """Document store persisted in the ``documents`` table.

    Queries load the collection and filter in Python, which keeps the JSON
    handling portable between SQLite and PostgreSQL. Access is serialised with
    a lock because the same store is shared by concurrent worker threads.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory
        self._lock = threading.Lock()

    def create_schema(self) -> None:
        engine = self._session_factory.kw["bind"]
        Base.metadata.create_all(bind=engine, tables=[DocumentRow.__table__])

    def _row(self, db: Session, collection: str, doc_id: str) -> DocumentRow | None:
        return db.get(DocumentRow, (collection, doc_id))

    def _write(self, db: Session, op: WriteOp, now: str) -> None:
        row = self._row(db, op.collection, op.doc_id)
        if op.kind == "delete":
            if row is not None:
                db.delete(row)
            return
        if op.kind == "update":
            if row is None:
                raise DocumentNotFoundError(f"{op.collection}/{op.doc_id}")
            row.data = _apply(row.data or {}, op.data, now)
            return
        if row is None:
            db.add(DocumentRow(collection=op.collection, doc_id=op.doc_id, data=_apply({}, op.data, now)))
        elif op.merge:
            row.data = _apply(row.data or {}, op.data, now)
        else:
            row.data = _apply({}, op.data, now)

    def _commit(self, ops: Iterable[WriteOp]) -> None:
        now = _now_iso()
        with self._lock, self._session_factory() as db:
            try:
                for op in ops:
                    self._write(db, op, now)
                    db.flush()
                db.commit()
            except Exception:
                db.rollback()
                raise

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        with self._lock, self._session_factory() as db:
            row = self._row(db, collection, doc_id)
            return dict(row.data) if row is not None else None

    def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None:
        self._commit([WriteOp.set(collection, doc_id, data, merge=merge)])

    def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self._commit([WriteOp.update(collection, doc_id, data)])

    def delete(self, collection: str, doc_id: str) -> None:
        self._commit([WriteOp.delete(collection, doc_id)])

    def batch(self, ops: Sequence[WriteOp]) -> None:
        if ops:
            self._commit(ops)

    def list(self, collection: str) -> list[Document]:
        with self._lock, self._session_factory() as db:
            stmt = select(DocumentRow).where(DocumentRow.collection == collection).order_by(DocumentRow.doc_id)
            return [Document(row.doc_id, dict(row.data)) for row in db.scalars(stmt)]

    def query(
        self,
        collection: str,
        field_name: str,
        value: Any,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]:
        matches = [doc for doc in self.list(collection) if doc.data.get(field_name) == value]
        if order_by:
            matches.sort(key=lambda doc: _sort_key(doc.data.get(order_by)), reverse=descending)
        if limit is not None:
            matches = matches[:limit]
        return matches
