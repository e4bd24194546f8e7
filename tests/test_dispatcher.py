"""Tests for the notification fan-out."""
from __future__ import annotations

import json

import pytest

from app.core.messages import NEW_JOB
from app.schemas import ApplicationAcceptedEvent, DiagnosticEvent, NewApplicationEvent, NewJobEvent
from app.services.container import ServiceContainer
from app.services.notifications import NOTIFICATIONS
from app.services.registry import FCM_TOKENS, WEBPUSH_SUBS
from app.utils.exceptions import Forbidden, InternalError
from tests.conftest import StubNativeSender, StubWebPushSender, seed_subscription, seed_token, seed_user


def new_job(job_id: str = "j1", title: str = "Serveur") -> NewJobEvent:
    return NewJobEvent(jobId=job_id, title=title, description="Service du soir")


@pytest.mark.asyncio
async def test_new_job_reaches_each_user_once(
    container: ServiceContainer,
    native_sender: StubNativeSender,
    webpush_sender: StubWebPushSender,
) -> None:
    store = container.store
    seed_user(store, "root", is_admin=True)
    seed_user(store, "alice")
    seed_token(store, "alice", "tok-a")
    seed_subscription(store, "alice", "https://push.example/alice")
    seed_token(store, "bob", "tok-b")
    seed_user(store, "carol")

    summary = await container.dispatcher.new_job(new_job(), "root")

    assert webpush_sender.endpoints == ["https://push.example/alice"]
    assert native_sender.tokens == ["tok-b"]
    assert summary.sent == 2
    assert summary.records == 4
    records = store.list(NOTIFICATIONS)
    assert sorted(doc.get("userId") for doc in records) == ["alice", "bob", "carol", "root"]


@pytest.mark.asyncio
async def test_records_carry_kind_subject_and_empty_read_set(container: ServiceContainer) -> None:
    seed_user(container.store, "alice")

    await container.dispatcher.new_job(new_job(), "root")

    [record] = container.store.list(NOTIFICATIONS)
    assert record.get("type") == NEW_JOB
    assert record.get("jobId") == "j1"
    assert record.get("title") == "Nouveau job: Serveur"
    assert record.get("description") == "Service du soir"
    assert record.get("readBy") == []
    assert record.get("createdAt")


@pytest.mark.asyncio
async def test_same_nid_on_both_channels(
    container: ServiceContainer,
    native_sender: StubNativeSender,
    webpush_sender: StubWebPushSender,
) -> None:
    seed_subscription(container.store, "alice", "https://push.example/alice")
    seed_token(container.store, "bob", "tok-b")

    await container.dispatcher.new_job(new_job(job_id="job 7"), "root")

    payload = json.loads(webpush_sender.sent[0][1])
    [(_, message)] = native_sender.calls
    assert payload["nid"] == message.nid == "new_job:job 7"
    assert payload["link"] == message.link == "/jobs?jobId=job%207"
    assert message.data()["type"] == "new_job"
    assert message.data()["jobId"] == "job 7"


@pytest.mark.asyncio
async def test_new_application_goes_to_admins_only(
    container: ServiceContainer,
    native_sender: StubNativeSender,
) -> None:
    store = container.store
    seed_user(store, "root", is_admin=True)
    seed_user(store, "alice")
    seed_token(store, "root", "tok-root")
    seed_token(store, "alice", "tok-a")
    event = NewApplicationEvent(jobId="j1", jobTitle="Serveur", applicantId="alice", applicantName="Alice")

    summary = await container.dispatcher.new_application(event, "alice")

    assert native_sender.tokens == ["tok-root"]
    assert summary.sent == 1
    [record] = store.list(NOTIFICATIONS)
    assert record.get("userId") == "root"
    assert record.get("description") == "Alice a postulé."


@pytest.mark.asyncio
async def test_new_application_for_someone_else_is_forbidden(
    container: ServiceContainer,
    native_sender: StubNativeSender,
) -> None:
    seed_user(container.store, "root", is_admin=True)
    seed_token(container.store, "root", "tok-root")
    event = NewApplicationEvent(jobId="j1", jobTitle="Serveur", applicantId="alice")

    with pytest.raises(Forbidden):
        await container.dispatcher.new_application(event, "mallory")

    assert native_sender.calls == []
    assert container.store.list(NOTIFICATIONS) == []


@pytest.mark.asyncio
async def test_application_accepted_targets_applicant(
    container: ServiceContainer,
    webpush_sender: StubWebPushSender,
) -> None:
    seed_subscription(container.store, "alice", "https://push.example/alice")
    seed_subscription(container.store, "bob", "https://push.example/bob")
    event = ApplicationAcceptedEvent(jobId="j1", jobTitle="Serveur", applicantId="alice")

    summary = await container.dispatcher.application_accepted(event, "root")

    assert webpush_sender.endpoints == ["https://push.example/alice"]
    assert summary.sent == 1
    assert summary.nid == "application_accepted:j1"


@pytest.mark.asyncio
async def test_record_written_even_without_registration(
    container: ServiceContainer,
    native_sender: StubNativeSender,
    webpush_sender: StubWebPushSender,
) -> None:
    event = ApplicationAcceptedEvent(jobId="j1", jobTitle="Serveur", applicantId="alice")

    summary = await container.dispatcher.application_accepted(event, "root")

    assert summary.sent == 0
    assert summary.records == 1
    assert native_sender.calls == []
    assert webpush_sender.sent == []


@pytest.mark.asyncio
async def test_send_test_reports_channels(
    container: ServiceContainer,
    native_sender: StubNativeSender,
    webpush_sender: StubWebPushSender,
) -> None:
    seed_token(container.store, "alice", "tok-a")
    seed_subscription(container.store, "alice", "https://push.example/alice")

    summary = await container.dispatcher.send_test(DiagnosticEvent(title="Ping", body="Pong"), "alice")

    assert summary.sent_webpush == 1
    assert summary.sent_fcm == 0
    assert native_sender.calls == []
    assert summary.nid.startswith("test:")
    [recipient] = summary.recipients
    assert recipient.has_token and recipient.has_subscription


@pytest.mark.asyncio
async def test_dead_registrations_are_pruned(
    container: ServiceContainer,
    native_sender: StubNativeSender,
    webpush_sender: StubWebPushSender,
) -> None:
    store = container.store
    seed_token(store, "bob", "tok-b")
    seed_token(store, "dave", "tok-d")
    seed_subscription(store, "alice", "https://push.example/alice")
    native_sender.failures["tok-b"] = "messaging/registration-token-not-registered"
    webpush_sender.gone.add("https://push.example/alice")

    summary = await container.dispatcher.new_job(new_job(), "root")

    assert summary.sent == 1
    assert summary.failed == 2
    assert summary.pruned == 2
    assert store.get(FCM_TOKENS, "bob") is None
    assert store.get(WEBPUSH_SUBS, "alice") is None
    assert store.get(FCM_TOKENS, "dave") is not None


@pytest.mark.asyncio
async def test_transient_failures_keep_registrations(
    container: ServiceContainer,
    native_sender: StubNativeSender,
    webpush_sender: StubWebPushSender,
) -> None:
    store = container.store
    seed_token(store, "bob", "tok-b")
    seed_subscription(store, "alice", "https://push.example/alice")
    native_sender.failures["tok-b"] = "messaging/internal-error"
    webpush_sender.flaky.add("https://push.example/alice")

    summary = await container.dispatcher.new_job(new_job(), "root")

    assert summary.sent == 0
    assert summary.pruned == 0
    assert store.get(FCM_TOKENS, "bob") is not None
    assert store.get(WEBPUSH_SUBS, "alice") is not None


@pytest.mark.asyncio
async def test_multicast_exception_does_not_abort(
    container: ServiceContainer,
    native_sender: StubNativeSender,
    webpush_sender: StubWebPushSender,
) -> None:
    seed_token(container.store, "bob", "tok-b")
    seed_subscription(container.store, "alice", "https://push.example/alice")
    native_sender.error = RuntimeError("FCM unavailable")

    summary = await container.dispatcher.new_job(new_job(), "root")

    assert summary.sent == 1
    assert summary.sent_webpush == 1
    assert summary.pruned == 0
    assert container.store.get(FCM_TOKENS, "bob") is not None


@pytest.mark.asyncio
async def test_storage_failure_sends_nothing(
    container: ServiceContainer,
    native_sender: StubNativeSender,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    seed_token(container.store, "bob", "tok-b")

    def broken_batch(ops):
        raise RuntimeError("disk full")

    monkeypatch.setattr(container.store, "batch", broken_batch)

    with pytest.raises(InternalError):
        await container.dispatcher.new_job(new_job(), "root")

    assert native_sender.calls == []


@pytest.mark.asyncio
async def test_janitor_failure_does_not_fail_dispatch(
    container: ServiceContainer,
    native_sender: StubNativeSender,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    seed_token(container.store, "bob", "tok-b")
    native_sender.failures["tok-b"] = "messaging/invalid-registration-token"

    def broken_prune(outcomes):
        raise RuntimeError("store offline")

    monkeypatch.setattr(container.janitor, "prune_sync", broken_prune)

    summary = await container.dispatcher.new_job(new_job(), "root")

    assert summary.pruned == 0
    assert summary.failed == 1


@pytest.mark.asyncio
async def test_dispatch_routes_by_event_type(container: ServiceContainer) -> None:
    seed_user(container.store, "alice")

    summary = await container.dispatcher.dispatch(new_job(), "root")

    assert summary.nid == "new_job:j1"


@pytest.mark.asyncio
async def test_repeated_event_keeps_the_same_nid(
    container: ServiceContainer,
    native_sender: StubNativeSender,
) -> None:
    seed_token(container.store, "bob", "tok-b")

    first = await container.dispatcher.new_job(new_job(job_id="J1"), "root")
    second = await container.dispatcher.new_job(new_job(job_id="J1", title="Serveur (mis à jour)"), "root")

    assert first.nid == second.nid == "new_job:J1"
    assert [message.nid for _, message in native_sender.calls] == ["new_job:J1", "new_job:J1"]


@pytest.mark.asyncio
async def test_application_reaches_every_admin_with_the_same_nid(
    container: ServiceContainer,
    native_sender: StubNativeSender,
) -> None:
    store = container.store
    seed_user(store, "admin1", is_admin=True)
    seed_user(store, "admin2", is_admin=True)
    seed_user(store, "u1")
    seed_token(store, "admin1", "tok-admin1")
    seed_token(store, "admin2", "tok-admin2")
    seed_token(store, "u1", "tok-u1")
    event = NewApplicationEvent(jobId="J2", jobTitle="Serveur", applicantId="u1")

    summary = await container.dispatcher.new_application(event, "u1")

    assert sorted(native_sender.tokens) == ["tok-admin1", "tok-admin2"]
    assert {message.nid for _, message in native_sender.calls} == {"new_application:J2"}
    assert summary.sent == 2
    assert sorted(doc.get("userId") for doc in store.list(NOTIFICATIONS)) == ["admin1", "admin2"]


@pytest.mark.asyncio
async def test_failed_native_results_carry_provider_message(
    container: ServiceContainer,
    native_sender: StubNativeSender,
) -> None:
    seed_token(container.store, "bob", "tok-b")
    native_sender.failures["tok-b"] = "messaging/internal-error"

    summary = await container.dispatcher.new_job(new_job(), "root")

    [outcome] = summary.outcomes
    assert outcome.reason == "transient_error"
    assert outcome.detail == "FCM rejected tok-b"
