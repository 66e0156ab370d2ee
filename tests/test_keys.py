"""Cache key grammar and the batch invalidation table."""

from __future__ import annotations

import pytest

from tutorix._errors import CacheKeyError
from tutorix.batch import INVALIDATION_TABLE, Invalidation, Resource, invalidation_plan, keys
from tutorix.cache import cache_key, family_prefix


class TestCacheKey:
    def test_joins_segments(self) -> None:
        assert cache_key("batch", "c1", "list") == "batch:c1:list"

    @pytest.mark.parametrize("segments", [(), ("batch", ""), ("batch", "c:1")])
    def test_rejects_malformed_segments(self, segments: tuple[str, ...]) -> None:
        with pytest.raises(CacheKeyError):
            cache_key(*segments)

    def test_family_prefix_adds_separator_once(self) -> None:
        assert family_prefix("batch:c1") == "batch:c1:"
        assert family_prefix("batch:c1:") == "batch:c1:"


class TestBatchKeys:
    def test_key_layout(self) -> None:
        assert keys.family("c1") == "batch:c1"
        assert keys.batch_list("c1") == "batch:c1:list"
        assert keys.batch_list("c1", "active") == "batch:c1:list:active"
        assert keys.my_batches("c1") == "batch:c1:my"
        assert keys.recent_notes("c1") == "batch:c1:recent-notes"
        assert keys.batch_detail("c1", "b1") == "batch:c1:b1"
        assert keys.members("c1", "b1") == "batch:c1:b1:members"
        assert keys.notes("c1", "b1") == "batch:c1:b1:notes"
        assert keys.notices("c1", "b1") == "batch:c1:b1:notices"

    def test_every_key_lives_under_its_family(self) -> None:
        root = family_prefix(keys.family("c1"))
        for key in (
            keys.batch_list("c1", "archived"),
            keys.my_batches("c1"),
            keys.recent_notes("c1"),
            keys.batch_detail("c1", "b1"),
            keys.notices("c1", "b1"),
        ):
            assert key.startswith(root)

    @pytest.mark.parametrize("batch_id", sorted(keys.RESERVED_SEGMENTS))
    def test_reserved_segments_are_not_batch_ids(self, batch_id: str) -> None:
        for build in (keys.batch_detail, keys.members, keys.notes, keys.notices):
            with pytest.raises(CacheKeyError) as exc_info:
                build("c1", batch_id)
            assert exc_info.value.segment == batch_id

    def test_similar_ids_are_allowed(self) -> None:
        assert keys.batch_detail("c1", "lists") == "batch:c1:lists"
        assert keys.members("c1", "my-batch") == "batch:c1:my-batch:members"


class TestInvalidationPlan:
    def test_table_covers_every_resource(self) -> None:
        assert set(INVALIDATION_TABLE) == set(Resource)

    def test_batch_writes_evict_the_family(self) -> None:
        assert invalidation_plan(Resource.FAMILY, "c1") == (
            Invalidation("batch:c1", prefix=True),
        )

    def test_note_writes_fan_out_to_recent_notes(self) -> None:
        assert invalidation_plan(Resource.NOTES, "c1", "b1") == (
            Invalidation("batch:c1:b1:notes"),
            Invalidation("batch:c1:recent-notes"),
        )

    @pytest.mark.parametrize(
        ("resource", "key"),
        [
            (Resource.MEMBERS, "batch:c1:b1:members"),
            (Resource.NOTICES, "batch:c1:b1:notices"),
        ],
    )
    def test_scoped_writes_evict_one_key(self, resource: Resource, key: str) -> None:
        assert invalidation_plan(resource, "c1", "b1") == (Invalidation(key),)

    def test_batch_scoped_resource_needs_batch_id(self) -> None:
        with pytest.raises(CacheKeyError):
            invalidation_plan(Resource.MEMBERS, "c1")
