"""Notification feed: durable per-recipient records."""
from __future__ import annotations

from typing import Iterable, List

from app.core.messages import NotificationContent
from app.db.document_store import SERVER_TIMESTAMP, ArrayUnion, Document, DocumentStore, WriteOp
from app.utils.exceptions import NotFound

NOTIFICATIONS = "notifications"


class NotificationFeedService:
    """Writes NotificationRecords and lets recipients acknowledge them."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def record_ops(self, content: NotificationContent, user_ids: Iterable[str]) -> List[WriteOp]:
        return [
            WriteOp.set(
                NOTIFICATIONS,
                self.store.new_id(NOTIFICATIONS),
                {
                    "userId": user_id,
                    "type": content.kind,
                    "jobId": content.subject_id,
                    "title": content.record_title,
                    "description": content.record_description,
                    "createdAt": SERVER_TIMESTAMP,
                    "readBy": [],
                },
            )
            for user_id in user_ids
        ]

    def create_records(self, content: NotificationContent, user_ids: Iterable[str]) -> int:
        """Write one record per user in a single batch."""

        ops = self.record_ops(content, user_ids)
        self.store.batch(ops)
        return len(ops)

    def list_for_user(self, user_id: str, limit: int = 25) -> List[Document]:
        return self.store.query(
            NOTIFICATIONS,
            "userId",
            user_id,
            order_by="createdAt",
            descending=True,
            limit=limit,
        )

    def mark_read(self, user_id: str, notification_id: str) -> None:
        """Add ``user_id`` to the record's ``readBy`` set.

        Only the recipient may acknowledge a record; anything else looks like
        a missing record.
        """

        record = self.store.get(NOTIFICATIONS, notification_id)
        if not record or record.get("userId") != user_id:
            raise NotFound("Notification not found")
        if user_id in (record.get("readBy") or []):
            return
        self.store.update(NOTIFICATIONS, notification_id, {"readBy": ArrayUnion(user_id)})

    def mark_all_read(self, user_id: str) -> int:
        unread = [
            doc
            for doc in self.store.query(NOTIFICATIONS, "userId", user_id)
            if user_id not in (doc.get("readBy") or [])
        ]
        self.store.batch([WriteOp.update(NOTIFICATIONS, doc.id, {"readBy": ArrayUnion(user_id)}) for doc in unread])
        return len(unread)
