"""Tests for stale registration cleanup."""
from __future__ import annotations

import pytest

from app.db.document_store import SQLDocumentStore
from app.services.delivery import FCM, INVALID_ENDPOINT, TRANSIENT_ERROR, WEBPUSH, DeliveryOutcome
from app.services.janitor import RegistryJanitor
from app.services.registry import FCM_TOKENS, WEBPUSH_SUBS
from tests.conftest import seed_subscription, seed_token


def test_prunes_only_invalid_endpoints(store: SQLDocumentStore) -> None:
    seed_token(store, "bob", "tok-b")
    seed_token(store, "dave", "tok-d")
    outcomes = [
        DeliveryOutcome("bob", FCM, False, INVALID_ENDPOINT, "tok-b"),
        DeliveryOutcome("dave", FCM, False, TRANSIENT_ERROR, "tok-d"),
    ]

    removed = RegistryJanitor(store).prune_sync(outcomes)

    assert removed == 1
    assert store.get(FCM_TOKENS, "bob") is None
    assert store.get(FCM_TOKENS, "dave")["token"] == "tok-d"


def test_keeps_token_registered_after_the_send(store: SQLDocumentStore) -> None:
    seed_token(store, "bob", "tok-new")

    removed = RegistryJanitor(store).prune_sync([DeliveryOutcome("bob", FCM, False, INVALID_ENDPOINT, "tok-old")])

    assert removed == 0
    assert store.get(FCM_TOKENS, "bob")["token"] == "tok-new"


def test_keeps_resubscribed_browser(store: SQLDocumentStore) -> None:
    seed_subscription(store, "alice", "https://push.example/new")
    stale = DeliveryOutcome("alice", WEBPUSH, False, INVALID_ENDPOINT, "https://push.example/old")

    assert RegistryJanitor(store).prune_sync([stale]) == 0
    assert store.get(WEBPUSH_SUBS, "alice") is not None


def test_removes_expired_subscription(store: SQLDocumentStore) -> None:
    seed_subscription(store, "alice", "https://push.example/alice")
    stale = DeliveryOutcome("alice", WEBPUSH, False, INVALID_ENDPOINT, "https://push.example/alice")

    assert RegistryJanitor(store).prune_sync([stale]) == 1
    assert store.get(WEBPUSH_SUBS, "alice") is None


def test_successes_are_ignored(store: SQLDocumentStore) -> None:
    seed_token(store, "bob", "tok-b")

    assert RegistryJanitor(store).prune_sync([DeliveryOutcome("bob", FCM, True, address="tok-b")]) == 0
    assert store.get(FCM_TOKENS, "bob") is not None


@pytest.mark.asyncio
async def test_prune_swallows_store_errors(store: SQLDocumentStore, monkeypatch: pytest.MonkeyPatch) -> None:
    seed_token(store, "bob", "tok-b")

    def broken_batch(ops):
        raise RuntimeError("store offline")

    monkeypatch.setattr(store, "batch", broken_batch)

    removed = await RegistryJanitor(store).prune([DeliveryOutcome("bob", FCM, False, INVALID_ENDPOINT, "tok-b")])

    assert removed == 0
