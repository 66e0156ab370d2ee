"""
Batch domain models and their decoders.

Models validate the server's camelCase JSON at the cache boundary; a
decoder raising is how the cache learns a payload is unusable.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic.alias_generators import to_camel

from tutorix._types import Decoder

# ═══════════════════════════════════════════════════════════════════════════════
# Base
# ═══════════════════════════════════════════════════════════════════════════════


class _Model(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        # JSON null means "use the default", as for an absent field.
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


# ═══════════════════════════════════════════════════════════════════════════════
# Batch
# ═══════════════════════════════════════════════════════════════════════════════

_SHORT_DAYS = {
    "MON": "Mon",
    "TUE": "Tue",
    "WED": "Wed",
    "THU": "Thu",
    "FRI": "Fri",
    "SAT": "Sat",
    "SUN": "Sun",
}


class BatchCounts(_Model):
    members: int = 0
    notes: int = 0
    notices: int = 0


class BatchTeacher(_Model):
    member_id: str = ""
    user_id: str = ""
    name: str | None = None
    picture: str | None = None


class Batch(_Model):
    """A class group inside a coaching, e.g. "Class 10 Maths Morning"."""

    id: str
    coaching_id: str | None = None
    name: str
    subject: str | None = None
    description: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    days: list[str] = Field(default_factory=list)
    max_students: int = 0
    status: str = "active"
    created_at: datetime | None = None
    updated_at: datetime | None = None
    counts: BatchCounts = Field(default_factory=BatchCounts, alias="_count")
    members: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def teacher(self) -> BatchTeacher | None:
        """First teacher of the list query's members, if any."""
        if not self.members:
            return None
        member = self.members[0].get("member") or {}
        user = member.get("user")
        if not user:
            return None
        return BatchTeacher(
            member_id=member.get("id") or "",
            user_id=user.get("id") or "",
            name=user.get("name"),
            picture=user.get("picture"),
        )

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def schedule_text(self) -> str:
        """E.g. "Mon, Wed, Fri • 09:00 – 10:30"."""
        day_str = ", ".join(self.short_day(d) for d in self.days)
        if self.start_time is not None and self.end_time is not None:
            return f"{day_str} • {self.start_time} – {self.end_time}"
        return day_str or "No schedule set"

    def capacity_text(self, current: int) -> str:
        if self.max_students > 0:
            return f"{current} / {self.max_students} students"
        return f"{current} students"

    @staticmethod
    def short_day(day: str) -> str:
        return _SHORT_DAYS.get(day.upper(), day)


# ═══════════════════════════════════════════════════════════════════════════════
# Members
# ═══════════════════════════════════════════════════════════════════════════════


class MemberUser(_Model):
    id: str
    name: str | None = None
    email: str | None = None
    picture: str | None = None


class MemberWard(_Model):
    id: str
    name: str = "Unknown"
    picture: str | None = None


class CoachingMember(_Model):
    """The coaching-level membership behind a batch member."""

    id: str | None = None
    role: str | None = None
    user: MemberUser | None = None
    ward: MemberWard | None = None


class BatchMember(_Model):
    """A teacher or student enrolled in a batch."""

    id: str
    batch_id: str = ""
    member_id: str = ""
    role: str = "STUDENT"
    created_at: datetime | None = None
    member: CoachingMember | None = None

    @property
    def user(self) -> MemberUser | None:
        return self.member.user if self.member else None

    @property
    def ward(self) -> MemberWard | None:
        return self.member.ward if self.member else None

    @property
    def member_role(self) -> str | None:
        return self.member.role if self.member else None

    @property
    def display_name(self) -> str:
        if self.user is not None:
            return self.user.name or "Unknown"
        if self.ward is not None:
            return self.ward.name
        return "Unknown"

    @property
    def display_picture(self) -> str | None:
        if self.user is not None:
            return self.user.picture
        if self.ward is not None:
            return self.ward.picture
        return None

    @property
    def subtitle(self) -> str:
        return (self.user.email or "") if self.user is not None else ""


# ═══════════════════════════════════════════════════════════════════════════════
# Notes
# ═══════════════════════════════════════════════════════════════════════════════


class NoteUploader(_Model):
    id: str
    name: str | None = None
    picture: str | None = None


class NoteAttachment(_Model):
    id: str
    url: str
    file_name: str | None = None
    file_type: str = "pdf"
    file_size: int = 0
    mime_type: str | None = None

    @property
    def formatted_size(self) -> str:
        if self.file_size < 1024:
            return f"{self.file_size} B"
        if self.file_size < 1024 * 1024:
            return f"{self.file_size / 1024:.1f} KB"
        return f"{self.file_size / (1024 * 1024):.1f} MB"


class BatchNote(_Model):
    """Study material uploaded by a teacher."""

    id: str
    batch_id: str = ""
    title: str
    description: str | None = None
    attachments: list[NoteAttachment] = Field(default_factory=list)
    uploaded_by_id: str = ""
    uploaded_by: NoteUploader | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def total_size(self) -> int:
        return sum(a.file_size for a in self.attachments)


# ═══════════════════════════════════════════════════════════════════════════════
# Notices
# ═══════════════════════════════════════════════════════════════════════════════

_PRIORITY_LABELS = {"urgent": "Urgent", "high": "High", "low": "Low"}
_TYPE_LABELS = {
    "timetable_update": "Timetable Update",
    "event": "Event",
    "exam": "Exam",
    "holiday": "Holiday",
    "assignment": "Assignment",
}


class NoticeSender(_Model):
    id: str
    name: str | None = None
    picture: str | None = None


class BatchNotice(_Model):
    """Announcement sent to a batch."""

    id: str
    batch_id: str = ""
    title: str
    message: str
    priority: str = "normal"  # low, normal, high, urgent
    kind: str = Field(default="general", alias="type")
    sent_by_id: str = ""
    sent_by: NoticeSender | None = None
    created_at: datetime | None = None
    date: datetime | None = None
    start_time: str | None = None
    end_time: str | None = None
    day: str | None = None
    location: str | None = None

    @property
    def is_important(self) -> bool:
        return self.priority in ("high", "urgent")

    @property
    def has_schedule_info(self) -> bool:
        return any(v is not None for v in (self.date, self.start_time, self.end_time, self.day))

    @property
    def priority_label(self) -> str:
        return _PRIORITY_LABELS.get(self.priority, "Normal")

    @property
    def type_label(self) -> str:
        return _TYPE_LABELS.get(self.kind, "General")


# ═══════════════════════════════════════════════════════════════════════════════
# Decoders — response envelope → model
# ═══════════════════════════════════════════════════════════════════════════════


def envelope[T](field: str, adapter: TypeAdapter[T]) -> Decoder[T]:
    """
    Decoder for responses shaped like {"<field>": ...}.

    Example:
        decode_batches = envelope("batches", TypeAdapter(list[Batch]))
        decode_batches({"batches": [...]})   # list[Batch]
    """

    def decode(raw: Any) -> T:
        if not isinstance(raw, dict) or field not in raw:
            raise ValueError(f"response has no {field!r} field")
        return adapter.validate_python(raw[field])

    return decode


decode_batches: Decoder[list[Batch]] = envelope("batches", TypeAdapter(list[Batch]))
decode_batch: Decoder[Batch] = envelope("batch", TypeAdapter(Batch))
decode_members: Decoder[list[BatchMember]] = envelope("members", TypeAdapter(list[BatchMember]))
decode_notes: Decoder[list[BatchNote]] = envelope("notes", TypeAdapter(list[BatchNote]))
decode_note: Decoder[BatchNote] = envelope("note", TypeAdapter(BatchNote))
decode_notices: Decoder[list[BatchNotice]] = envelope("notices", TypeAdapter(list[BatchNotice]))
decode_notice: Decoder[BatchNotice] = envelope("notice", TypeAdapter(BatchNotice))


__all__ = (
    "MemberUser",
    "BatchCounts",
    "BatchTeacher",
    "Batch",
    "MemberWard",
    "CoachingMember",
    "BatchMember",
    "NoteUploader",
    "NoteAttachment",
    "BatchNote",
    "NoticeSender",
    "BatchNotice",
    "envelope",
    "decode_batches",
    "decode_batch",
    "decode_members",
    "decode_notes",
    "decode_note",
    "decode_notices",
    "decode_notice",
)
