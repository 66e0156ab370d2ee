"""
Cache key grammar.

Keys are colon-delimited scope segments:

    <domain>:<scopeId>:<subResource>[:<qualifier>]

so that every invalidation target is a prefix of the entries it evicts.
"""

from __future__ import annotations

from tutorix._errors import CacheKeyError

SEPARATOR = ":"


def cache_key(*segments: str) -> str:
    """
    Join segments into a key.

    Example:
        cache_key("batch", coaching_id, "list")   # "batch:c1:list"

    Raises:
        CacheKeyError: no segments, an empty segment, or a segment holding ':'
    """
    if not segments:
        raise CacheKeyError("cache key needs at least one segment")
    for segment in segments:
        if not segment or SEPARATOR in segment:
            raise CacheKeyError(f"invalid cache key segment: {segment!r}", segment=segment)
    return SEPARATOR.join(segments)


def family_prefix(prefix: str) -> str:
    """Prefix that matches only keys strictly below `prefix` in the grammar."""
    return prefix if prefix.endswith(SEPARATOR) else prefix + SEPARATOR


__all__ = ("SEPARATOR", "cache_key", "family_prefix")
