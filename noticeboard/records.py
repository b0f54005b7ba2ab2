"""
Pure operations on record collections. None of these mutate their inputs.
"""

from collections.abc import Sequence
from typing import Any, TypeVar

from noticeboard.errors import CorruptRemoteState
from noticeboard.types import AnnouncementRecord, LocalizedText, NotificationRecord

R = TypeVar("R", bound=dict[str, Any])

DEFAULT_ANNOUNCEMENT_TITLE: LocalizedText = {"en": "Announcement", "ka": "ಪ್ರಕಟಣೆ"}


def add_record(collection: Sequence[R], record: R) -> list[R]:
    """
    Returns a new list with record at the front (newest first).
    """
    return [record, *collection]


def remove_record(collection: Sequence[R], record_id: int) -> list[R]:
    return [record for record in collection if record.get("id") != record_id]


def find_record(collection: Sequence[R], record_id: int) -> R | None:
    for record in collection:
        if record.get("id") == record_id:
            return record
    return None


def unique_id(collection: Sequence[dict[str, Any]], candidate: int) -> int:
    """
    Bumps a timestamp-derived id until nothing in the collection has it.
    """
    taken = {record.get("id") for record in collection}
    while candidate in taken:
        candidate += 1
    return candidate


def localized(en: str, ka: str = "") -> LocalizedText:
    """
    Builds a localized text pair, falling back to English for Kannada.
    """
    return {"en": en, "ka": ka or en}


def make_notification(
    record_id: int, title: LocalizedText, date: str, file_url: str = ""
) -> NotificationRecord:
    return {"id": record_id, "title": title, "date": date, "fileUrl": file_url}


def default_announcement() -> AnnouncementRecord:
    return {
        "active": True,
        "title": dict(DEFAULT_ANNOUNCEMENT_TITLE),  # type: ignore[typeddict-item]
        "subtitle": {"en": "", "ka": ""},
        "description": {"en": "", "ka": ""},
        "images": [],
    }


def check_notifications(value: list) -> list[NotificationRecord]:
    """
    Makes sure a decoded list looks like notifications before we start
    prepending to it.
    """
    for entry in value:
        if not isinstance(entry, dict) or "id" not in entry:
            raise CorruptRemoteState(f"Notification entry without an id: {entry!r}")
    return value
