"""Registry janitor: drop push registrations the providers reported as dead."""
from __future__ import annotations

import asyncio
from typing import Iterable, List

from loguru import logger

from app.db.document_store import DocumentStore, WriteOp
from app.services.delivery import FCM, WEBPUSH, DeliveryOutcome
from app.services.registry import FCM_TOKENS, WEBPUSH_SUBS


class RegistryJanitor:
    """Deletes stale registrations in one batch after a fan-out."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def _stale_ops(self, outcomes: Iterable[DeliveryOutcome]) -> List[WriteOp]:
        ops: List[WriteOp] = []
        for outcome in outcomes:
            if outcome.channel == FCM:
                # Keep a token the user re-registered since the send.
                doc = self.store.get(FCM_TOKENS, outcome.recipient_id)
                if doc and doc.get("token") == outcome.address:
                    ops.append(WriteOp.delete(FCM_TOKENS, outcome.recipient_id))
            elif outcome.channel == WEBPUSH:
                doc = self.store.get(WEBPUSH_SUBS, outcome.recipient_id)
                endpoint = ((doc or {}).get("subscription") or {}).get("endpoint")
                if doc and endpoint == outcome.address:
                    ops.append(WriteOp.delete(WEBPUSH_SUBS, outcome.recipient_id))
        return ops

    def prune_sync(self, outcomes: Iterable[DeliveryOutcome]) -> int:
        failures = [outcome for outcome in outcomes if not outcome.success]
        for outcome in failures:
            if not outcome.invalid_endpoint:
                logger.warning(
                    "Push delivery failed, registration kept",
                    user_id=outcome.recipient_id,
                    channel=outcome.channel,
                    detail=str(outcome.detail),
                )
        stale = [outcome for outcome in failures if outcome.invalid_endpoint]
        if not stale:
            return 0
        ops = self._stale_ops(stale)
        self.store.batch(ops)
        for op in ops:
            logger.info(f"Removed stale push registration {op.collection}/{op.doc_id}")
        return len(ops)

    async def prune(self, outcomes: Iterable[DeliveryOutcome]) -> int:
        """Remove registrations behind ``invalid_endpoint`` outcomes.

        Never raises: a cleanup failure is logged and the fan-out result
        stands.
        """

        try:
            return await asyncio.to_thread(self.prune_sync, list(outcomes))
        except Exception as exc:
            logger.opt(exception=exc).error("Push registration cleanup failed")
            return 0
