"""Event payloads accepted by the notification endpoints."""
from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StringConstraints, TypeAdapter, ValidationError

from app.core.messages import APPLICATION_ACCEPTED, EVENT_KINDS, NEW_APPLICATION, NEW_JOB, TEST
from app.utils.exceptions import InvalidArgument

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _number_to_str(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


# Subject and user ids may arrive as JSON numbers.
IdText = Annotated[RequiredText, BeforeValidator(_number_to_str)]


class _EventBase(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class NewJobEvent(_EventBase):
    """An admin published a job."""

    kind: Literal["new_job"] = NEW_JOB
    job_id: IdText = Field(alias="jobId")
    title: RequiredText
    description: Optional[str] = None


class NewApplicationEvent(_EventBase):
    """A user applied to a job."""

    kind: Literal["new_application"] = NEW_APPLICATION
    job_id: IdText = Field(alias="jobId")
    job_title: RequiredText = Field(alias="jobTitle")
    applicant_id: IdText = Field(alias="applicantId")
    applicant_name: Optional[str] = Field(default=None, alias="applicantName")


class ApplicationAcceptedEvent(_EventBase):
    """An admin accepted an application."""

    kind: Literal["application_accepted"] = APPLICATION_ACCEPTED
    job_id: IdText = Field(alias="jobId")
    job_title: RequiredText = Field(alias="jobTitle")
    applicant_id: IdText = Field(alias="applicantId")
    applicant_name: Optional[str] = Field(default=None, alias="applicantName")


class DiagnosticEvent(_EventBase):
    """A user asked for a test push to themselves."""

    kind: Literal["test"] = TEST
    title: RequiredText
    body: RequiredText


EventPayload = Annotated[
    Union[NewJobEvent, NewApplicationEvent, ApplicationAcceptedEvent, DiagnosticEvent],
    Field(discriminator="kind"),
]

_event_adapter: TypeAdapter[EventPayload] = TypeAdapter(EventPayload)


def _field_name(loc: tuple[Any, ...]) -> str:
    # loc is (<variant tag>, <field alias>, ...) for discriminated unions
    names = [str(part) for part in loc if part not in EVENT_KINDS]
    return ".".join(names) or "body"


def decode_event(kind: str, raw: Any) -> EventPayload:
    """Validate ``raw`` as the payload of ``kind`` or raise ``InvalidArgument``.

    This runs before any read or write so that malformed input never causes a
    partial fan-out.
    """

    if not isinstance(raw, dict):
        raise InvalidArgument("Request body must be a JSON object")
    try:
        return _event_adapter.validate_python({**raw, "kind": kind})
    except ValidationError as exc:
        fields = sorted({_field_name(err["loc"]) for err in exc.errors()})
        raise InvalidArgument(f"Missing or invalid fields: {', '.join(fields)}", {"fields": fields}) from exc


class NotifyResponse(BaseModel):
    ok: bool = True
    sent: int


class DiagnosticNotifyResponse(NotifyResponse):
    model_config = ConfigDict(populate_by_name=True)

    sent_fcm: bool = Field(serialization_alias="sentFCM")
    sent_webpush: bool = Field(serialization_alias="sentWebPush")
    has_token: bool = Field(serialization_alias="hasToken")
    has_sub: bool = Field(serialization_alias="hasSub")
