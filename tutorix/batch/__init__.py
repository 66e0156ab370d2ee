"""
Batch — class groups of a coaching, with their members, notes and notices.

    from tutorix import batch as B

    service = B.BatchService(api, cache)
    async for members in service.watch_members("c1", "b1"):
        ...
"""

from __future__ import annotations

from tutorix.batch._models import (
    Batch,
    BatchCounts,
    BatchTeacher,
    BatchMember,
    CoachingMember,
    MemberUser,
    MemberWard,
    BatchNote,
    NoteAttachment,
    NoteUploader,
    BatchNotice,
    NoticeSender,
    envelope,
    decode_batches,
    decode_batch,
    decode_members,
    decode_notes,
    decode_note,
    decode_notices,
    decode_notice,
)
from tutorix.batch._keys import (
    INVALIDATION_TABLE,
    Invalidation,
    Resource,
    invalidation_plan,
)
from tutorix.batch import _keys as keys
from tutorix.batch._service import BatchService, latest

__all__ = (
    # Models
    "Batch",
    "BatchCounts",
    "BatchTeacher",
    "BatchMember",
    "CoachingMember",
    "MemberUser",
    "MemberWard",
    "BatchNote",
    "NoteAttachment",
    "NoteUploader",
    "BatchNotice",
    "NoticeSender",
    # Decoders
    "envelope",
    "decode_batches",
    "decode_batch",
    "decode_members",
    "decode_notes",
    "decode_note",
    "decode_notices",
    "decode_notice",
    # Keys
    "keys",
    "INVALIDATION_TABLE",
    "Invalidation",
    "Resource",
    "invalidation_plan",
    # Service
    "BatchService",
    "latest",
)
