# coursehub/schemas/notification.py
"""
Queue payloads exchanged between producers and the notification worker.

Every item is a self-describing JSON record: a `kind` tag plus its payload,
with camelCase keys on the wire. Items are frozen once built.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, conint, constr
from pydantic.alias_generators import to_camel

AlertAction = Literal["submitted", "updated", "deleted"]

WeekNumber = conint(ge=1, le=52)
AcademicYear = constr(pattern=r"^\d{4}$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _QueueItemBase(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    facilitator_id: conint(ge=1)
    week_number: WeekNumber
    academic_year: AcademicYear
    enqueued_at: datetime = Field(default_factory=_utcnow)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class ReminderItem(_QueueItemBase):
    """Missing weekly submission for one (facilitator, allocation) pair."""

    kind: Literal["reminder"] = "reminder"
    allocation_id: conint(ge=1)


class AlertItem(_QueueItemBase):
    """Activity-log lifecycle event for managers."""

    kind: Literal["alert"] = "alert"
    action: AlertAction
    log_id: conint(ge=1)


QueueItem = Annotated[Union[ReminderItem, AlertItem], Field(discriminator="kind")]

_queue_item_adapter = TypeAdapter(QueueItem)


def parse_queue_item(raw: str | bytes) -> Union[ReminderItem, AlertItem]:
    """
    Validate a raw queue payload into its variant.
    Raises pydantic.ValidationError on malformed JSON, unknown kind or bad fields.
    """
    return _queue_item_adapter.validate_json(raw)


class OutboundMessage(BaseModel):
    """Rendered message handed to the transport."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["reminder", "alert"]
    recipients: List[str]
    subject: str
    body: str
    created_at: datetime = Field(default_factory=_utcnow)
