import base64
import logging
import mimetypes
import re
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from noticeboard.stores.base import BaseStore

logger = logging.getLogger(__name__)

WHITESPACE_RE = re.compile(r"\s+")


def now_ms() -> int:
    return int(time.time() * 1000)


def sanitize_filename(name: str) -> str:
    """
    Replaces each run of whitespace with a single hyphen.
    """
    return WHITESPACE_RE.sub("-", name)


def asset_filename(prefix: str, name: str, timestamp: int) -> str:
    return f"{prefix}-{timestamp}-{sanitize_filename(name)}"


@dataclass(frozen=True)
class UploadedAsset:
    """
    A file the user has picked but that isn't in the store yet.
    """

    name: str
    content: bytes = field(repr=False)
    mime_type: str = ""

    def __post_init__(self):
        if not self.mime_type:
            guessed, _ = mimetypes.guess_type(self.name)
            object.__setattr__(self, "mime_type", guessed or "application/octet-stream")

    @classmethod
    def from_path(cls, path: Path) -> "UploadedAsset":
        path = Path(path).expanduser()
        return cls(name=path.name, content=path.read_bytes())

    @property
    def size(self) -> int:
        return len(self.content)

    def base64(self) -> str:
        return base64.b64encode(self.content).decode("ascii")

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


class AssetUploader:
    """
    Commits staged assets into the store as brand new files.

    Filenames carry a millisecond timestamp, which is what keeps them unique;
    the uploader never hands out the same timestamp twice, even when several
    files are uploaded within the same millisecond.
    """

    def __init__(self, store: BaseStore, clock: Callable[[], int] = now_ms):
        self.store = store
        self.clock = clock
        self.last_timestamp = 0
        self.lock = threading.Lock()

    def next_timestamp(self) -> int:
        with self.lock:
            self.last_timestamp = max(self.clock(), self.last_timestamp + 1)
            return self.last_timestamp

    def upload(
        self,
        asset: UploadedAsset,
        directory: str,
        prefix: str,
        message: str | None = None,
    ) -> str:
        """
        Uploads the asset and returns the store path it now lives at.
        """
        filename = asset_filename(prefix, asset.name, self.next_timestamp())
        path = f"{directory.rstrip('/')}/{filename}"
        self.store.commit(
            path,
            asset.base64(),
            message=message or f"Upload file: {filename}",
            is_binary=True,
        )
        logger.info(f"Uploaded {asset.name} ({asset.size} bytes) to {path}")
        return path
