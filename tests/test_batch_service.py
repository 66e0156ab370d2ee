"""BatchService scenarios against a mocked backend and an in-memory cache."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest
from aioresponses import aioresponses
from yarl import URL

from tutorix._errors import CacheKeyError, FetchError
from tutorix.api import ApiError, Endpoints
from tutorix.batch import Batch, BatchService, keys
from tutorix.cache import SwrCache

URLS = Endpoints("http://api.test")


def batch_json(batch_id: str, name: str) -> dict[str, Any]:
    return {"id": batch_id, "name": name, "days": ["MON"], "_count": {"members": 0}}


def note_json(note_id: str) -> dict[str, Any]:
    return {"id": note_id, "batchId": "b1", "title": f"Note {note_id}"}


def request_count(http: aioresponses, method: str, url: str) -> int:
    return len(http.requests.get((method, URL(url)), []))


class TestReads:
    async def test_cold_list_yields_fresh(
        self, service: BatchService, cache: SwrCache, http: aioresponses
    ) -> None:
        http.get(URLS.batches("c1"), payload={"batches": [batch_json("b1", "Maths")]})

        values = [v async for v in service.watch_batches("c1")]

        assert len(values) == 1
        assert [b.name for b in values[0]] == ["Maths"]
        assert await cache.get(keys.batch_list("c1")) == {"batches": [batch_json("b1", "Maths")]}

    async def test_warm_list_yields_cached_then_fresh(
        self, service: BatchService, cache: SwrCache, http: aioresponses
    ) -> None:
        await cache.put(keys.batch_list("c1"), {"batches": [batch_json("b1", "Old")]})
        http.get(URLS.batches("c1"), payload={"batches": [batch_json("b1", "New")]})

        values = [[b.name for b in v] async for v in service.watch_batches("c1")]

        assert values == [["Old"], ["New"]]

    async def test_status_filter_has_its_own_key(
        self, service: BatchService, cache: SwrCache, http: aioresponses
    ) -> None:
        http.get(f"{URLS.batches('c1')}?status=archived", payload={"batches": []})

        assert await service.list_batches("c1", status="archived") == []
        assert await cache.get(keys.batch_list("c1", "archived")) == {"batches": []}
        assert await cache.get(keys.batch_list("c1")) is None

    async def test_one_shot_returns_latest(
        self, service: BatchService, cache: SwrCache, http: aioresponses
    ) -> None:
        await cache.put(keys.batch_detail("c1", "b1"), {"batch": batch_json("b1", "Old")})
        http.get(URLS.batch_by_id("c1", "b1"), payload={"batch": batch_json("b1", "New")})

        batch = await service.get_batch("c1", "b1")

        assert isinstance(batch, Batch)
        assert batch.name == "New"

    async def test_one_shot_falls_back_to_cache_when_offline(
        self, service: BatchService, cache: SwrCache, http: aioresponses
    ) -> None:
        await cache.put(keys.notes("c1", "b1"), {"notes": [note_json("n1")]})
        http.get(URLS.batch_notes("c1", "b1"), status=503)

        notes = await service.list_notes("c1", "b1")

        assert [n.id for n in notes] == ["n1"]

    async def test_cold_failure_raises(self, service: BatchService, http: aioresponses) -> None:
        http.get(URLS.batch_notices("c1", "b1"), status=500, payload={"message": "boom"})

        with pytest.raises(FetchError) as exc_info:
            await service.list_notices("c1", "b1")

        cause = exc_info.value.cause
        assert isinstance(cause, ApiError)
        assert cause.status == 500

    async def test_recent_notes_empty_on_cold_failure(
        self, service: BatchService, http: aioresponses
    ) -> None:
        http.get(URLS.recent_notes("c1"), status=500)

        assert await service.get_recent_notes("c1") == []

    async def test_two_screens_watching_members_share_one_request(
        self, service: BatchService, http: aioresponses
    ) -> None:
        url = URLS.batch_members("c1", "b1")
        http.get(url, payload={"members": [{"id": "bm1"}]}, repeat=True)

        async def screen() -> list[list[str]]:
            return [[m.id for m in v] async for v in service.watch_members("c1", "b1")]

        first, second = await asyncio.gather(screen(), screen())

        assert first == second == [["bm1"]]
        assert request_count(http, "GET", url) == 1

    async def test_two_screens_on_warm_members_get_cached_then_fresh(
        self, service: BatchService, cache: SwrCache, http: aioresponses
    ) -> None:
        await cache.put(keys.members("c1", "b1"), {"members": [{"id": "studentA"}]})
        url = URLS.batch_members("c1", "b1")
        http.get(url, payload={"members": [{"id": "studentA"}, {"id": "studentB"}]}, repeat=True)

        async def screen() -> list[list[str]]:
            return [[m.id for m in v] async for v in service.watch_members("c1", "b1")]

        first, second = await asyncio.gather(screen(), screen())

        assert first == second == [["studentA"], ["studentA", "studentB"]]
        assert request_count(http, "GET", url) == 1
        assert await cache.get(keys.members("c1", "b1")) == {
            "members": [{"id": "studentA"}, {"id": "studentB"}]
        }

    async def test_my_batches(self, service: BatchService, http: aioresponses) -> None:
        http.get(URLS.my_batches("c1"), payload={"batches": [batch_json("b9", "Mine")]})

        assert [b.id for b in await service.get_my_batches("c1")] == ["b9"]

    async def test_reserved_batch_id_is_rejected_before_reading(
        self, service: BatchService, cache: SwrCache, http: aioresponses
    ) -> None:
        await cache.put(keys.batch_list("c1"), {"batches": [batch_json("b1", "Maths")]})

        with pytest.raises(CacheKeyError):
            await service.get_batch("c1", "list")

        assert await cache.get(keys.batch_list("c1")) == {"batches": [batch_json("b1", "Maths")]}
        assert request_count(http, "GET", URLS.batch_by_id("c1", "list")) == 0


class TestWrites:
    async def test_create_batch_evicts_family_only(
        self, service: BatchService, cache: SwrCache, http: aioresponses
    ) -> None:
        await cache.put(keys.batch_list("c1"), {"batches": []})
        await cache.put(keys.notes("c1", "b1"), {"notes": []})
        await cache.put(keys.batch_list("c10"), {"batches": []})
        http.post(URLS.batches("c1"), status=201, payload={"batch": batch_json("b2", "Physics")})
        http.get(URLS.batches("c1"), payload={"batches": [batch_json("b2", "Physics")]})

        created = await service.create_batch("c1", name="Physics", days=["TUE"])

        assert created.id == "b2"
        assert await cache.get(keys.notes("c1", "b1")) is None
        assert await cache.get(keys.batch_list("c10")) == {"batches": []}

        values = [v async for v in service.watch_batches("c1")]
        assert len(values) == 1
        assert [b.id for b in values[0]] == ["b2"]

    async def test_create_batch_sends_only_set_fields(
        self, service: BatchService, http: aioresponses
    ) -> None:
        http.post(URLS.batches("c1"), status=201, payload={"batch": batch_json("b2", "Physics")})

        await service.create_batch("c1", name="Physics", max_students=25)

        call = http.requests[("POST", URL(URLS.batches("c1")))][0]
        assert call.kwargs["data"] == '{"name": "Physics", "maxStudents": 25}'

    async def test_failed_write_keeps_cache(
        self, service: BatchService, cache: SwrCache, http: aioresponses
    ) -> None:
        await cache.put(keys.batch_list("c1"), {"batches": []})
        http.patch(URLS.batch_by_id("c1", "b1"), status=403, payload={"error": "Forbidden"})

        with pytest.raises(ApiError):
            await service.update_batch("c1", "b1", status="inactive")

        assert await cache.get(keys.batch_list("c1")) == {"batches": []}

    async def test_note_writes_evict_notes_and_recent_notes(
        self, service: BatchService, cache: SwrCache, http: aioresponses
    ) -> None:
        await cache.put(keys.notes("c1", "b1"), {"notes": []})
        await cache.put(keys.recent_notes("c1"), {"notes": []})
        await cache.put(keys.members("c1", "b1"), {"members": []})
        http.post(URLS.batch_notes("c1", "b1"), status=201, payload={"note": note_json("n1")})

        note = await service.create_note("c1", "b1", title="Note n1")

        assert note.id == "n1"
        assert await cache.get(keys.notes("c1", "b1")) is None
        assert await cache.get(keys.recent_notes("c1")) is None
        assert await cache.get(keys.members("c1", "b1")) == {"members": []}

    @pytest.mark.parametrize(("status", "evicted"), [(200, True), (404, False)])
    async def test_delete_note_evicts_only_on_success(
        self,
        service: BatchService,
        cache: SwrCache,
        http: aioresponses,
        status: int,
        evicted: bool,
    ) -> None:
        await cache.put(keys.notes("c1", "b1"), {"notes": [note_json("n1")]})
        await cache.put(keys.recent_notes("c1"), {"notes": [note_json("n1")]})
        http.delete(URLS.delete_batch_note("c1", "b1", "n1"), status=status)

        assert await service.delete_note("c1", "b1", "n1") is evicted

        assert (await cache.get(keys.notes("c1", "b1")) is None) is evicted
        assert (await cache.get(keys.recent_notes("c1")) is None) is evicted

    async def test_member_writes_evict_members(
        self, service: BatchService, cache: SwrCache, http: aioresponses
    ) -> None:
        await cache.put(keys.members("c1", "b1"), {"members": []})
        await cache.put(keys.batch_detail("c1", "b1"), {"batch": batch_json("b1", "Maths")})
        http.post(URLS.batch_members("c1", "b1"), status=201, payload={"members": [{"id": "bm7"}]})

        added = await service.add_members("c1", "b1", member_ids=["cm7"])

        assert [m.id for m in added] == ["bm7"]
        assert await cache.get(keys.members("c1", "b1")) is None
        assert await cache.get(keys.batch_detail("c1", "b1")) is not None

    async def test_remove_member(
        self, service: BatchService, cache: SwrCache, http: aioresponses
    ) -> None:
        await cache.put(keys.members("c1", "b1"), {"members": [{"id": "bm1"}]})
        http.delete(URLS.remove_batch_member("c1", "b1", "bm1"), status=200)

        assert await service.remove_member("c1", "b1", "bm1") is True
        assert await cache.get(keys.members("c1", "b1")) is None

    async def test_notice_writes_evict_notices(
        self, service: BatchService, cache: SwrCache, http: aioresponses
    ) -> None:
        await cache.put(keys.notices("c1", "b1"), {"notices": []})
        http.post(
            URLS.batch_notices("c1", "b1"),
            status=201,
            payload={"notice": {"id": "x1", "title": "Test", "message": "Bring ID", "type": "exam"}},
        )

        notice = await service.create_notice(
            "c1", "b1", title="Test", message="Bring ID", notice_type="exam"
        )

        assert notice.type_label == "Exam"
        assert await cache.get(keys.notices("c1", "b1")) is None

    async def test_delete_batch_evicts_family(
        self, service: BatchService, cache: SwrCache, http: aioresponses
    ) -> None:
        await cache.put(keys.batch_detail("c1", "b1"), {"batch": batch_json("b1", "Maths")})
        http.delete(URLS.batch_by_id("c1", "b1"), status=200)

        assert await service.delete_batch("c1", "b1") is True
        assert await cache.entry_count() == 0


class TestUncached:
    async def test_available_members(
        self, service: BatchService, cache: SwrCache, http: aioresponses
    ) -> None:
        http.get(
            f"{URLS.batch_available_members('c1', 'b1')}?role=STUDENT",
            payload={"members": [{"id": "cm3"}]},
        )

        members = await service.get_available_members("c1", "b1", role="STUDENT")

        assert members == [{"id": "cm3"}]
        assert await cache.entry_count() == 0

    async def test_storage_usage(self, service: BatchService, http: aioresponses) -> None:
        http.get(URLS.batch_storage("c1"), payload={"usedBytes": 1024, "limitBytes": 4096})

        assert await service.get_storage_usage("c1") == {"usedBytes": 1024, "limitBytes": 4096}

    async def test_upload_note_files(
        self, service: BatchService, http: aioresponses, tmp_path: Path
    ) -> None:
        paths = []
        for name in ("a.pdf", "b.png"):
            path = tmp_path / name
            path.write_bytes(b"x")
            paths.append(path)
        http.post(URLS.upload_notes, payload={"files": [{"url": "u1"}, {"url": "u2"}]})

        uploaded = await service.upload_note_files(paths)

        assert len(uploaded["files"]) == 2
