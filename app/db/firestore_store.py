"""Cloud Firestore implementation of ``DocumentStore``."""
from __future__ import annotations

from typing import Any, Sequence

from firebase_admin import App, firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from app.db.document_store import (
    SERVER_TIMESTAMP,
    ArrayUnion,
    Document,
    DocumentNotFoundError,
    DocumentStore,
    WriteOp,
)

# Firestore rejects batches larger than this.
MAX_BATCH_WRITES = 500


def _to_firestore(value: Any) -> Any:
    if value is SERVER_TIMESTAMP:
        return firestore.SERVER_TIMESTAMP
    if isinstance(value, ArrayUnion):
        return firestore.ArrayUnion(list(value.values))
    if isinstance(value, dict):
        return {key: _to_firestore(item) for key, item in value.items()}
    return value


def _snapshot(snapshot) -> Document:
    return Document(snapshot.id, snapshot.to_dict() or {})


class FirestoreDocumentStore(DocumentStore):
    """Thin adapter over the Firestore client of an initialised Firebase app."""

    def __init__(self, app: App) -> None:
        self._client = firestore.client(app)

    def new_id(self, collection: str) -> str:
        return self._client.collection(collection).document().id

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        snapshot = self._client.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = False) -> None:
        self._client.collection(collection).document(doc_id).set(_to_firestore(data), merge=merge)

    def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        ref = self._client.collection(collection).document(doc_id)
        if not ref.get().exists:
            raise DocumentNotFoundError(f"{collection}/{doc_id}")
        ref.update(_to_firestore(data))

    def delete(self, collection: str, doc_id: str) -> None:
        self._client.collection(collection).document(doc_id).delete()

    def list(self, collection: str) -> list[Document]:
        return [_snapshot(snapshot) for snapshot in self._client.collection(collection).stream()]

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
        query = self._client.collection(collection).where(filter=FieldFilter(field_name, "==", value))
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        if limit is not None:
            query = query.limit(limit)
        return [_snapshot(snapshot) for snapshot in query.stream()]

    def batch(self, ops: Sequence[WriteOp]) -> None:
        for start in range(0, len(ops), MAX_BATCH_WRITES):
            batch = self._client.batch()
            for op in ops[start : start + MAX_BATCH_WRITES]:
                ref = self._client.collection(op.collection).document(op.doc_id)
                if op.kind == "delete":
                    batch.delete(ref)
                elif op.kind == "update":
                    batch.update(ref, _to_firestore(op.data))
                else:
                    batch.set(ref, _to_firestore(op.data), merge=op.merge)
            batch.commit()
