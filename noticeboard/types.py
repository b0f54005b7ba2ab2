from dataclasses import dataclass
from typing import TypedDict

from noticeboard.errors import CorruptRemoteState


class LocalizedText(TypedDict):
    en: str
    ka: str


class NotificationRecord(TypedDict):
    id: int
    title: LocalizedText
    date: str
    fileUrl: str


class AnnouncementRecord(TypedDict):
    active: bool
    title: LocalizedText
    subtitle: LocalizedText
    description: LocalizedText
    images: list[str]


@dataclass(frozen=True)
class RemoteFile:
    """
    A file as read from a store, along with the version token that must be
    passed back when overwriting it.
    """

    path: str
    content: bytes
    version: str

    @property
    def text(self) -> str:
        try:
            return self.content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptRemoteState(f"{self.path} is not valid UTF-8 text") from e
