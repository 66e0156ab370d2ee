"""
Endpoint URLs of the coaching backend.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlencode


def with_query(url: str, **params: str | None) -> str:
    """Append the non-None params as a query string."""
    present = {k: v for k, v in params.items() if v is not None}
    return f"{url}?{urlencode(present)}" if present else url


@dataclass(frozen=True, slots=True)
class Endpoints:
    """
    URL builders rooted at one base URL.

    Example:
        urls = Endpoints("https://api.example.com")
        urls.batch_members("c1", "b1")
        # "https://api.example.com/coaching/c1/batches/b1/members"
    """

    base_url: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    # Upload
    @property
    def upload_note(self) -> str:
        return f"{self.base_url}/upload/note"

    @property
    def upload_notes(self) -> str:
        return f"{self.base_url}/upload/notes"

    # Batches
    def batches(self, coaching_id: str) -> str:
        return f"{self.base_url}/coaching/{coaching_id}/batches"

    def my_batches(self, coaching_id: str) -> str:
        return f"{self.batches(coaching_id)}/my"

    def recent_notes(self, coaching_id: str) -> str:
        return f"{self.batches(coaching_id)}/recent-notes"

    def batch_storage(self, coaching_id: str) -> str:
        return f"{self.batches(coaching_id)}/storage"

    def batch_by_id(self, coaching_id: str, batch_id: str) -> str:
        return f"{self.batches(coaching_id)}/{batch_id}"

    # Members
    def batch_members(self, coaching_id: str, batch_id: str) -> str:
        return f"{self.batch_by_id(coaching_id, batch_id)}/members"

    def batch_available_members(self, coaching_id: str, batch_id: str) -> str:
        return f"{self.batch_members(coaching_id, batch_id)}/available"

    def remove_batch_member(self, coaching_id: str, batch_id: str, batch_member_id: str) -> str:
        return f"{self.batch_members(coaching_id, batch_id)}/{batch_member_id}"

    # Notes
    def batch_notes(self, coaching_id: str, batch_id: str) -> str:
        return f"{self.batch_by_id(coaching_id, batch_id)}/notes"

    def delete_batch_note(self, coaching_id: str, batch_id: str, note_id: str) -> str:
        return f"{self.batch_notes(coaching_id, batch_id)}/{note_id}"

    # Notices
    def batch_notices(self, coaching_id: str, batch_id: str) -> str:
        return f"{self.batch_by_id(coaching_id, batch_id)}/notices"

    def delete_batch_notice(self, coaching_id: str, batch_id: str, notice_id: str) -> str:
        return f"{self.batch_notices(coaching_id, batch_id)}/{notice_id}"


__all__ = ("Endpoints", "with_query")
