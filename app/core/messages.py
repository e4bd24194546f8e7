"""User-facing notification texts, deep links and dedup keys.

The job board's UI is French, so are the notification texts.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from urllib.parse import quote

NEW_JOB = "new_job"
NEW_APPLICATION = "new_application"
APPLICATION_ACCEPTED = "application_accepted"
TEST = "test"

EVENT_KINDS = (NEW_JOB, NEW_APPLICATION, APPLICATION_ACCEPTED, TEST)


@dataclass(frozen=True)
class NotificationContent:
    """What a recipient sees: the feed entry and the push banner."""

    kind: str
    subject_id: str
    record_title: str
    record_description: str
    push_title: str
    push_body: str
    link: str
    nid: str


def make_nid(kind: str, subject_id: str) -> str:
    """Stable client-side dedup key for a logical notification."""

    return f"{kind}:{subject_id}"


def job_link(job_id: str) -> str:
    return f"/jobs?jobId={quote(job_id, safe='')}"


def new_job_content(job_id: str, title: str, description: str | None) -> NotificationContent:
    return NotificationContent(
        kind=NEW_JOB,
        subject_id=job_id,
        record_title=f"Nouveau job: {title}",
        record_description=description or "",
        push_title="Nouveau job disponible",
        push_body=title,
        link=job_link(job_id),
        nid=make_nid(NEW_JOB, job_id),
    )


def new_application_content(job_id: str, job_title: str, applicant_name: str | None) -> NotificationContent:
    who = applicant_name or "Un utilisateur"
    return NotificationContent(
        kind=NEW_APPLICATION,
        subject_id=job_id,
        record_title=f"Nouvelle candidature: {job_title}",
        record_description=f"{who} a postulé.",
        push_title="Nouvelle candidature",
        push_body=f"{who} a postulé: {job_title}",
        link=job_link(job_id),
        nid=make_nid(NEW_APPLICATION, job_id),
    )


def application_accepted_content(job_id: str, job_title: str, applicant_name: str | None) -> NotificationContent:
    if applicant_name:
        description = f"{applicant_name}, votre candidature a été acceptée."
    else:
        description = "Votre candidature a été acceptée."
    return NotificationContent(
        kind=APPLICATION_ACCEPTED,
        subject_id=job_id,
        record_title=f"Candidature acceptée: {job_title}",
        record_description=description,
        push_title="Candidature acceptée",
        push_body=f"Votre candidature a été acceptée: {job_title}",
        link=job_link(job_id),
        nid=make_nid(APPLICATION_ACCEPTED, job_id),
    )


def diagnostic_content(title: str, body: str, now_ms: int | None = None) -> NotificationContent:
    # Each test push is its own logical notification.
    stamp = str(now_ms if now_ms is not None else int(time.time() * 1000))
    return NotificationContent(
        kind=TEST,
        subject_id="",
        record_title=title,
        record_description=body,
        push_title=title,
        push_body=body,
        link="/",
        nid=make_nid(TEST, stamp),
    )
