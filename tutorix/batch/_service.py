"""
Batch data access — reads through the SWR cache, writes invalidate it.

    service = BatchService(api, cache)

    async for batches in service.watch_batches("c1"):
        render(batches)                  # cached, then fresh

    await service.create_batch("c1", name="Maths A")   # evicts batch:c1:*
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

from tutorix import lift as L
from tutorix._errors import DecodeError, FetchError
from tutorix._types import Decoder, Fetcher
from tutorix.api import ApiClient, ApiError, Endpoints, with_query
from tutorix.batch import _keys as keys
from tutorix.batch._keys import Resource, invalidation_plan
from tutorix.batch._models import (
    Batch,
    BatchMember,
    BatchNote,
    BatchNotice,
    decode_batch,
    decode_batches,
    decode_members,
    decode_note,
    decode_notes,
    decode_notice,
    decode_notices,
)
from tutorix.cache import SwrCache
from tutorix.log import get_logger

logger = get_logger("tutorix.batch")


async def latest[T](values: AsyncIterator[T]) -> T:
    """Drain a read sequence and return its last value."""
    collected = [value async for value in values]
    return collected[-1]


def _body(**fields: Any) -> dict[str, Any]:
    """Request body without the fields left unset."""
    return {k: v for k, v in fields.items() if v is not None}


class BatchService:
    """
    Batches, members, notes and notices of a coaching.

    Every read has two forms: `watch_*` yields the cached value and then the
    fresh one, the matching one-shot helper returns only the last of them.
    """

    def __init__(
        self,
        api: ApiClient,
        cache: SwrCache,
        *,
        endpoints: Endpoints | None = None,
    ) -> None:
        self._api = api
        self._cache = cache
        self._urls = endpoints or api.endpoints

    # ───────────────────────────────────────────────────────────────────────────
    # Plumbing
    # ───────────────────────────────────────────────────────────────────────────

    def _get(self, url: str) -> Fetcher[ApiError]:
        return lambda: L.from_api(lambda: self._api.get(url))

    def _watch[T](self, key: str, url: str, decode: Decoder[T]) -> AsyncIterator[T]:
        return self._cache.swr(key, self._get(url), decode)

    async def _invalidate(
        self,
        resource: Resource,
        coaching_id: str,
        batch_id: str | None = None,
    ) -> None:
        for target in invalidation_plan(resource, coaching_id, batch_id):
            if target.prefix:
                await self._cache.invalidate_prefix(target.key)
            else:
                await self._cache.invalidate(target.key)
        logger.debug(
            "invalidated after write",
            resource=resource.value,
            coaching_id=coaching_id,
            batch_id=batch_id,
        )

    # ───────────────────────────────────────────────────────────────────────────
    # Batches
    # ───────────────────────────────────────────────────────────────────────────

    def watch_batches(self, coaching_id: str, status: str | None = None) -> AsyncIterator[list[Batch]]:
        url = with_query(self._urls.batches(coaching_id), status=status)
        return self._watch(keys.batch_list(coaching_id, status), url, decode_batches)

    def watch_my_batches(self, coaching_id: str) -> AsyncIterator[list[Batch]]:
        return self._watch(
            keys.my_batches(coaching_id),
            self._urls.my_batches(coaching_id),
            decode_batches,
        )

    def watch_batch(self, coaching_id: str, batch_id: str) -> AsyncIterator[Batch]:
        return self._watch(
            keys.batch_detail(coaching_id, batch_id),
            self._urls.batch_by_id(coaching_id, batch_id),
            decode_batch,
        )

    async def list_batches(self, coaching_id: str, status: str | None = None) -> list[Batch]:
        return await latest(self.watch_batches(coaching_id, status))

    async def get_my_batches(self, coaching_id: str) -> list[Batch]:
        return await latest(self.watch_my_batches(coaching_id))

    async def get_batch(self, coaching_id: str, batch_id: str) -> Batch:
        return await latest(self.watch_batch(coaching_id, batch_id))

    async def create_batch(
        self,
        coaching_id: str,
        *,
        name: str,
        subject: str | None = None,
        description: str | None = None,
        start_time: str | None = None,
        end_time: str | None = None,
        days: list[str] | None = None,
        max_students: int | None = None,
    ) -> Batch:
        data = await self._api.post(
            self._urls.batches(coaching_id),
            _body(
                name=name,
                subject=subject,
                description=description,
                startTime=start_time,
                endTime=end_time,
                days=days,
                maxStudents=max_students,
            ),
        )
        await self._invalidate(Resource.FAMILY, coaching_id)
        return decode_batch(data)

    async def update_batch(
        self,
        coaching_id: str,
        batch_id: str,
        *,
        name: str | None = None,
        subject: str | None = None,
        description: str | None = None,
        start_time: str | None = None,
        end_time: str | None = None,
        days: list[str] | None = None,
        max_students: int | None = None,
        status: str | None = None,
    ) -> Batch:
        data = await self._api.patch(
            self._urls.batch_by_id(coaching_id, batch_id),
            _body(
                name=name,
                subject=subject,
                description=description,
                startTime=start_time,
                endTime=end_time,
                days=days,
                maxStudents=max_students,
                status=status,
            ),
        )
        await self._invalidate(Resource.FAMILY, coaching_id)
        return decode_batch(data)

    async def delete_batch(self, coaching_id: str, batch_id: str) -> bool:
        deleted = await self._api.delete(self._urls.batch_by_id(coaching_id, batch_id))
        if deleted:
            await self._invalidate(Resource.FAMILY, coaching_id)
        return deleted

    # ───────────────────────────────────────────────────────────────────────────
    # Members
    # ───────────────────────────────────────────────────────────────────────────

    def watch_members(self, coaching_id: str, batch_id: str) -> AsyncIterator[list[BatchMember]]:
        return self._watch(
            keys.members(coaching_id, batch_id),
            self._urls.batch_members(coaching_id, batch_id),
            decode_members,
        )

    async def get_members(self, coaching_id: str, batch_id: str) -> list[BatchMember]:
        return await latest(self.watch_members(coaching_id, batch_id))

    async def get_available_members(
        self,
        coaching_id: str,
        batch_id: str,
        role: str | None = None,
    ) -> list[dict[str, Any]]:
        """Coaching members not yet in the batch. Not cached."""
        url = with_query(self._urls.batch_available_members(coaching_id, batch_id), role=role)
        data = await self._api.get(url)
        return list(data.get("members") or [])

    async def add_members(
        self,
        coaching_id: str,
        batch_id: str,
        *,
        member_ids: list[str],
        role: str = "STUDENT",
    ) -> list[BatchMember]:
        data = await self._api.post(
            self._urls.batch_members(coaching_id, batch_id),
            {"memberIds": member_ids, "role": role},
        )
        await self._invalidate(Resource.MEMBERS, coaching_id, batch_id)
        return decode_members(data) if "members" in data else []

    async def remove_member(self, coaching_id: str, batch_id: str, batch_member_id: str) -> bool:
        deleted = await self._api.delete(
            self._urls.remove_batch_member(coaching_id, batch_id, batch_member_id)
        )
        if deleted:
            await self._invalidate(Resource.MEMBERS, coaching_id, batch_id)
        return deleted

    # ───────────────────────────────────────────────────────────────────────────
    # Notes
    # ───────────────────────────────────────────────────────────────────────────

    def watch_notes(self, coaching_id: str, batch_id: str) -> AsyncIterator[list[BatchNote]]:
        return self._watch(
            keys.notes(coaching_id, batch_id),
            self._urls.batch_notes(coaching_id, batch_id),
            decode_notes,
        )

    def watch_recent_notes(self, coaching_id: str) -> AsyncIterator[list[BatchNote]]:
        return self._watch(
            keys.recent_notes(coaching_id),
            self._urls.recent_notes(coaching_id),
            decode_notes,
        )

    async def list_notes(self, coaching_id: str, batch_id: str) -> list[BatchNote]:
        return await latest(self.watch_notes(coaching_id, batch_id))

    async def get_recent_notes(self, coaching_id: str) -> list[BatchNote]:
        """Latest notes across batches; empty when nothing could be loaded."""
        try:
            return await latest(self.watch_recent_notes(coaching_id))
        except (FetchError, DecodeError) as e:
            logger.warning("recent notes unavailable", coaching_id=coaching_id, error=str(e))
            return []

    async def create_note(
        self,
        coaching_id: str,
        batch_id: str,
        *,
        title: str,
        description: str | None = None,
        attachments: list[dict[str, Any]] | None = None,
    ) -> BatchNote:
        """
        Create a note. Attachments are the file descriptors returned by
        upload_note_file / upload_note_files.
        """
        data = await self._api.post(
            self._urls.batch_notes(coaching_id, batch_id),
            _body(
                title=title,
                description=description,
                attachments=attachments or None,
            ),
        )
        await self._invalidate(Resource.NOTES, coaching_id, batch_id)
        return decode_note(data)

    async def delete_note(self, coaching_id: str, batch_id: str, note_id: str) -> bool:
        deleted = await self._api.delete(
            self._urls.delete_batch_note(coaching_id, batch_id, note_id)
        )
        if deleted:
            await self._invalidate(Resource.NOTES, coaching_id, batch_id)
        return deleted

    async def upload_note_file(self, file_path: str | Path) -> dict[str, Any]:
        return await self._api.upload_file(
            self._urls.upload_note, field_name="file", file_path=file_path
        )

    async def upload_note_files(self, file_paths: list[str] | list[Path]) -> dict[str, Any]:
        return await self._api.upload_files(
            self._urls.upload_notes, field_name="files", file_paths=file_paths
        )

    async def get_storage_usage(self, coaching_id: str) -> dict[str, Any]:
        """Storage used by note attachments. Not cached."""
        return await self._api.get(self._urls.batch_storage(coaching_id))

    # ───────────────────────────────────────────────────────────────────────────
    # Notices
    # ───────────────────────────────────────────────────────────────────────────

    def watch_notices(self, coaching_id: str, batch_id: str) -> AsyncIterator[list[BatchNotice]]:
        return self._watch(
            keys.notices(coaching_id, batch_id),
            self._urls.batch_notices(coaching_id, batch_id),
            decode_notices,
        )

    async def list_notices(self, coaching_id: str, batch_id: str) -> list[BatchNotice]:
        return await latest(self.watch_notices(coaching_id, batch_id))

    async def create_notice(
        self,
        coaching_id: str,
        batch_id: str,
        *,
        title: str,
        message: str,
        priority: str = "normal",
        notice_type: str = "general",
        date: str | None = None,
        start_time: str | None = None,
        end_time: str | None = None,
        day: str | None = None,
        location: str | None = None,
    ) -> BatchNotice:
        data = await self._api.post(
            self._urls.batch_notices(coaching_id, batch_id),
            _body(
                title=title,
                message=message,
                priority=priority,
                type=notice_type,
                date=date,
                startTime=start_time,
                endTime=end_time,
                day=day,
                location=location,
            ),
        )
        await self._invalidate(Resource.NOTICES, coaching_id, batch_id)
        return decode_notice(data)

    async def delete_notice(self, coaching_id: str, batch_id: str, notice_id: str) -> bool:
        deleted = await self._api.delete(
            self._urls.delete_batch_notice(coaching_id, batch_id, notice_id)
        )
        if deleted:
            await self._invalidate(Resource.NOTICES, coaching_id, batch_id)
        return deleted


__all__ = ("BatchService", "latest")
