"""
Batch cache keys and the invalidation table.

    batch:<cid>                      family root (prefix target)
    batch:<cid>:list[:<status>]      batch list, optionally filtered
    batch:<cid>:my                   batches of the current user
    batch:<cid>:recent-notes         latest notes across batches
    batch:<cid>:<bid>                one batch
    batch:<cid>:<bid>:members
    batch:<cid>:<bid>:notes
    batch:<cid>:<bid>:notices
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from tutorix._errors import CacheKeyError
from tutorix.cache import cache_key

DOMAIN = "batch"

RESERVED_SEGMENTS = frozenset({"list", "my", "recent-notes"})
"""Fixed segments in the batch-id position; never valid batch ids."""


# ═══════════════════════════════════════════════════════════════════════════════
# Keys
# ═══════════════════════════════════════════════════════════════════════════════


def family(coaching_id: str) -> str:
    return cache_key(DOMAIN, coaching_id)


def batch_list(coaching_id: str, status: str | None = None) -> str:
    if status is None:
        return cache_key(DOMAIN, coaching_id, "list")
    return cache_key(DOMAIN, coaching_id, "list", status)


def my_batches(coaching_id: str) -> str:
    return cache_key(DOMAIN, coaching_id, "my")


def recent_notes(coaching_id: str) -> str:
    return cache_key(DOMAIN, coaching_id, "recent-notes")


def _batch_scoped(coaching_id: str, batch_id: str, *rest: str) -> str:
    if batch_id in RESERVED_SEGMENTS:
        raise CacheKeyError(f"batch id {batch_id!r} is a reserved key segment", segment=batch_id)
    return cache_key(DOMAIN, coaching_id, batch_id, *rest)


def batch_detail(coaching_id: str, batch_id: str) -> str:
    return _batch_scoped(coaching_id, batch_id)


def members(coaching_id: str, batch_id: str) -> str:
    return _batch_scoped(coaching_id, batch_id, "members")


def notes(coaching_id: str, batch_id: str) -> str:
    return _batch_scoped(coaching_id, batch_id, "notes")


def notices(coaching_id: str, batch_id: str) -> str:
    return _batch_scoped(coaching_id, batch_id, "notices")


# ═══════════════════════════════════════════════════════════════════════════════
# Invalidation
# ═══════════════════════════════════════════════════════════════════════════════


class Resource(Enum):
    """What a write touched."""

    FAMILY = "family"
    MEMBERS = "members"
    NOTES = "notes"
    RECENT_NOTES = "recent-notes"
    NOTICES = "notices"


@dataclass(frozen=True, slots=True)
class Invalidation:
    """One eviction: an exact key, or a whole family when `prefix` is set."""

    key: str
    prefix: bool = False


INVALIDATION_TABLE: Mapping[Resource, tuple[Resource, ...]] = MappingProxyType({
    Resource.FAMILY: (),
    Resource.MEMBERS: (),
    Resource.NOTES: (Resource.RECENT_NOTES,),
    Resource.RECENT_NOTES: (),
    Resource.NOTICES: (),
})
"""Written resource → resources whose cached views also go stale."""


def _target(resource: Resource, coaching_id: str, batch_id: str | None) -> Invalidation:
    match resource:
        case Resource.FAMILY:
            return Invalidation(family(coaching_id), prefix=True)
        case Resource.RECENT_NOTES:
            return Invalidation(recent_notes(coaching_id))
        case _:
            pass

    if batch_id is None:
        raise CacheKeyError(f"{resource.value} invalidation needs a batch id")
    match resource:
        case Resource.MEMBERS:
            return Invalidation(members(coaching_id, batch_id))
        case Resource.NOTES:
            return Invalidation(notes(coaching_id, batch_id))
        case _:
            return Invalidation(notices(coaching_id, batch_id))


def invalidation_plan(
    resource: Resource,
    coaching_id: str,
    batch_id: str | None = None,
) -> tuple[Invalidation, ...]:
    """
    Everything to evict after a write to `resource`, dependents included.

    Example:
        invalidation_plan(Resource.NOTES, "c1", "b1")
        # (Invalidation("batch:c1:b1:notes"), Invalidation("batch:c1:recent-notes"))
    """
    plan: list[Invalidation] = []
    seen: set[Resource] = set()
    queue = [resource]
    while queue:
        current = queue.pop(0)
        if current in seen:
            continue
        seen.add(current)
        plan.append(_target(current, coaching_id, batch_id))
        queue.extend(INVALIDATION_TABLE[current])
    return tuple(plan)


__all__ = (
    "DOMAIN",
    "RESERVED_SEGMENTS",
    "family",
    "batch_list",
    "my_batches",
    "recent_notes",
    "batch_detail",
    "members",
    "notes",
    "notices",
    "Resource",
    "Invalidation",
    "INVALIDATION_TABLE",
    "invalidation_plan",
)
